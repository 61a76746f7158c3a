"""Interactive CLI application."""
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from studybuddy.analytics import get_weak_topics, rebuild_topic_analytics
from studybuddy.config import configure_logging, get_current_user, set_current_user
from studybuddy.dashboard import (
    build_analytics_report, get_performance_color, get_performance_label, get_strength_color,
)
from studybuddy.db import DEFAULT_DB_PATH, init_db
from studybuddy.errors import InsufficientContent, QuizNotFound, StudyBuddyError
from studybuddy.flashcards import (
    add_flashcard, count_flashcards, get_flashcards, record_flashcard_review,
)
from studybuddy.importer import import_document
from studybuddy.results import count_pending_results, list_quizzes, reconcile_pending_results
from studybuddy.runner import QuizReplay, QuizRunner
from studybuddy.seed import seed_starter_deck

console = Console()
logger = logging.getLogger(__name__)

EXIT_WORDS = ("q", "menu")


class SessionExitRequested(Exception):
    """User asked to leave the running session."""


def session_prompt(prompt: str, **kwargs) -> str:
    if "choices" in kwargs:
        kwargs["choices"] = list(kwargs["choices"]) + list(EXIT_WORDS)
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def session_int_prompt(prompt: str, choices: list[str]) -> int:
    answer = Prompt.ask(f"{prompt} [dim](q to quit)[/dim]", choices=choices + list(EXIT_WORDS), show_choices=False)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return int(answer)


def show_welcome(user_id: str):
    console.print(Panel(
        f"[bold]StudyBuddy[/bold]\n[dim]Signed in as {user_id}[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("quiz", "Practice quiz from your flashcards"),
        ("history", "Past quizzes"),
        ("replay", "Retake a past quiz"),
        ("flashcards", "Review flashcards"),
        ("add", "Add a flashcard"),
        ("import", "Import flashcards from a document"),
        ("analytics", "Performance analytics"),
        ("weak", "Weak topics"),
        ("rebuild", "Recalculate topic analytics"),
        ("login", "Switch user"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def run_quiz_session(runner) -> tuple[int, int] | None:
    """Drive a started QuizRunner/QuizReplay. Returns (score, total), or None if abandoned."""
    session = runner.session
    console.print(f"\n[bold]Quiz[/bold] — {session.total_questions} questions\n")
    try:
        while not session.is_complete:
            q = runner.current_question
            console.print(
                f"[bold]Q{session.current_index + 1}/{session.total_questions}[/bold] "
                f"[magenta]{q.topic}[/magenta]\n{q.question_text}\n"
            )
            for i, option in enumerate(q.options, 1):
                console.print(f"  [cyan]{i})[/cyan] {option}")
            choice = session_int_prompt(
                "\nYour answer", choices=[str(i) for i in range(1, len(q.options) + 1)],
            )
            answer = runner.answer(q.options[choice - 1])
            if answer.is_correct:
                console.print("[green]Correct![/green]\n")
            else:
                console.print(f"[red]Incorrect.[/red] Answer: [green]{q.correct_answer}[/green]\n")
    except SessionExitRequested:
        runner.abandon()
        if isinstance(runner, QuizReplay):
            console.print("[dim]Retake stopped. Answers already given were saved to this quiz.[/dim]")
        else:
            console.print("[dim]Quiz abandoned. Nothing was saved.[/dim]")
        return None

    score, total, pct = session.score, session.total_questions, session.percentage
    color = get_performance_color(pct)
    console.print(Panel(
        f"[bold]{score}/{total}[/bold]  [{color}]{pct}%[/{color}]\n{get_performance_label(pct)}",
        title="Quiz Complete!", border_style=color,
    ))
    if getattr(runner, "save_failed", False):
        console.print("[yellow]Your result couldn't be saved right now; it will be retried next time.[/yellow]")
    return score, total


def run_flashcard_review(db_path: str, user_id: str, cards: list) -> tuple[int, int]:
    if not cards:
        console.print("[yellow]No flashcards yet! Use 'add' or 'import' to create some.[/yellow]")
        return 0, 0
    known = 0
    reviewed = 0
    console.print(f"\n[bold]Flashcard Review[/bold] — {len(cards)} cards\n")
    try:
        for i, card in enumerate(cards, 1):
            title = f"Card {i}/{len(cards)}" + (f" · {card.subject}" if card.subject else "")
            console.print(Panel(card.question, title=title, border_style="cyan"))
            session_prompt("[dim]Press Enter to reveal answer[/dim]", default="")
            console.print(Panel(card.answer, border_style="green"))
            verdict = session_prompt("Did you know it?", choices=["y", "n"])
            record_flashcard_review(db_path, user_id, card.id)
            reviewed += 1
            if verdict == "y":
                known += 1
    except SessionExitRequested:
        console.print("[dim]Review stopped.[/dim]")
    if reviewed:
        console.print(f"[bold]Knew {known}/{reviewed}[/bold]\n")
    return known, reviewed


def cmd_quiz(db_path: str, user_id: str):
    runner = QuizRunner(db_path, user_id)
    try:
        runner.start()
    except InsufficientContent as e:
        console.print(f"[yellow]{e}[/yellow]")
        return
    run_quiz_session(runner)


def cmd_history(db_path: str, user_id: str):
    quizzes = list_quizzes(db_path, user_id)
    if not quizzes:
        console.print("[yellow]No quizzes yet. Take one with 'quiz'.[/yellow]")
        return
    table = Table(title=f"Quizzes ({len(quizzes)})")
    table.add_column("ID", justify="right")
    table.add_column("Title")
    table.add_column("Subject", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Time", justify="right")
    for quiz in quizzes:
        color = get_performance_color(quiz.percentage)
        table.add_row(
            str(quiz.id), quiz.title, quiz.subject,
            f"[{color}]{quiz.score}/{quiz.total_questions} ({quiz.percentage:.0f}%)[/{color}]",
            f"{quiz.time_taken_seconds}s" if quiz.time_taken_seconds is not None else "-",
        )
    console.print(table)


def cmd_replay(db_path: str, user_id: str):
    quizzes = list_quizzes(db_path, user_id)
    if not quizzes:
        console.print("[yellow]No quizzes to retake yet.[/yellow]")
        return
    cmd_history(db_path, user_id)
    quiz_id = Prompt.ask("Quiz to retake", choices=[str(q.id) for q in quizzes], show_choices=False)
    replay = QuizReplay(db_path, user_id, int(quiz_id))
    try:
        replay.start()
    except QuizNotFound as e:
        console.print(f"[red]{e}[/red]")
        return
    run_quiz_session(replay)


def cmd_flashcards(db_path: str, user_id: str):
    run_flashcard_review(db_path, user_id, get_flashcards(db_path, user_id))


def cmd_add(db_path: str, user_id: str):
    question = Prompt.ask("Question")
    answer = Prompt.ask("Answer")
    subject = Prompt.ask("Subject", default="") or None
    difficulty = Prompt.ask("Difficulty", choices=["easy", "medium", "hard", "none"], default="none")
    try:
        add_flashcard(db_path, user_id, question, answer, subject=subject,
                      difficulty=None if difficulty == "none" else difficulty)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        return
    console.print(f"[green]Added! You now have {count_flashcards(db_path, user_id)} flashcards.[/green]")


def cmd_import(db_path: str, user_id: str):
    file_path = Prompt.ask("File path")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    subject = Prompt.ask("Subject (optional)", default="") or None
    result = import_document(db_path, user_id, file_path, subject=subject)
    if result["flashcards"]:
        console.print(f"[green]Imported {result['filename']} → {result['flashcards']} flashcards[/green]")
    else:
        console.print(f"[yellow]No Q:/A: pairs found in {result['filename']}[/yellow]")


def cmd_analytics(db_path: str, user_id: str):
    report = build_analytics_report(db_path, user_id)
    stats = report.quiz_stats
    console.print(Panel(
        f"Quizzes: [bold]{stats['total_quizzes']}[/bold]  |  "
        f"Avg Score: [bold]{stats['average_score']}%[/bold]  |  "
        f"Best: [bold]{stats['best_score']:.0f}%[/bold]  |  "
        f"Trend: [bold]{report.trend}[/bold]",
        title="Performance Analytics", border_style="blue",
    ))

    if report.topics:
        table = Table(title="Topic Mastery")
        table.add_column("Topic", style="cyan")
        table.add_column("Attempts", justify="right")
        table.add_column("Accuracy", justify="right")
        table.add_column("Strength")
        for t in report.topics:
            color = get_strength_color(t.strength_level)
            table.add_row(
                t.topic, f"{t.correct_attempts}/{t.total_attempts}",
                f"{t.accuracy_percentage:.0f}%", f"[{color}]{t.strength_level}[/{color}]",
            )
        console.print(table)
        summary = report.strength_summary
        console.print(
            f"  [green]{summary['strong']} strong[/green]  "
            f"[yellow]{summary['moderate']} moderate[/yellow]  "
            f"[red]{summary['weak']} weak[/red]"
        )

    if report.subjects:
        table = Table(title="Subjects")
        table.add_column("Subject", style="cyan")
        table.add_column("Quizzes", justify="right")
        table.add_column("Average", justify="right")
        for s in report.subjects:
            table.add_row(s["subject"], str(s["quiz_count"]), f"{s['average_score']}%")
        console.print(table)

    if not report.topics and not report.subjects:
        console.print("[yellow]No data yet. Take a quiz to see your analytics.[/yellow]")


def cmd_weak(db_path: str, user_id: str):
    weak = get_weak_topics(db_path, user_id)
    if not weak:
        console.print("[green]No weak topics detected! Keep up the good work.[/green]")
        return
    console.print("\n[bold]Weak Topics:[/bold]")
    for t in weak:
        console.print(f"  [red]{t.accuracy_percentage:.0f}%[/red] — {t.topic} ({t.total_attempts} attempts)")


def cmd_rebuild(db_path: str, user_id: str):
    count = rebuild_topic_analytics(db_path, user_id)
    console.print(f"[green]Recalculated {count} topics from your quiz history.[/green]")


def cmd_login(db_path: str) -> str:
    user_id = Prompt.ask("User id").strip()
    while not user_id:
        user_id = Prompt.ask("User id").strip()
    set_current_user(db_path, user_id)
    if count_flashcards(db_path, user_id) == 0 and Confirm.ask("Add a starter flashcard deck?", default=True):
        added = seed_starter_deck(db_path, user_id)
        console.print(f"[green]Added {added} starter flashcards.[/green]")
    return user_id


COMMANDS = {
    "quiz": cmd_quiz,
    "history": cmd_history,
    "replay": cmd_replay,
    "flashcards": cmd_flashcards,
    "add": cmd_add,
    "import": cmd_import,
    "analytics": cmd_analytics,
    "weak": cmd_weak,
    "rebuild": cmd_rebuild,
}


def main():
    configure_logging(console, verbose="-v" in sys.argv[1:])
    db_path = DEFAULT_DB_PATH
    init_db(db_path)
    if count_pending_results(db_path):
        recovered = reconcile_pending_results(db_path)
        if recovered:
            console.print(f"[dim]Saved {recovered} quiz result(s) from a previous session.[/dim]")

    user_id = get_current_user(db_path) or cmd_login(db_path)
    show_welcome(user_id)

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="quiz").strip().lower()
        try:
            if choice in COMMANDS:
                COMMANDS[choice](db_path, user_id)
            elif choice == "login":
                user_id = cmd_login(db_path)
                show_welcome(user_id)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]Happy studying![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except StudyBuddyError as e:
            console.print(f"[red]Error: {e}[/red]")
        except Exception as e:
            logger.exception("Command %r failed", choice)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
