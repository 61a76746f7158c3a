import pytest
from unittest.mock import patch

from studybuddy.app import (
    SessionExitRequested, session_prompt, session_int_prompt, run_quiz_session,
    run_flashcard_review, cmd_quiz, cmd_login, cmd_add, cmd_history,
)
from studybuddy.analytics import get_topic
from studybuddy.config import get_current_user
from studybuddy.flashcards import count_flashcards, get_flashcards
from studybuddy.results import list_quizzes
from studybuddy.runner import QuizReplay, QuizRunner

USER = "student-1"


def test_session_exit_requested_is_exception():
    with pytest.raises(SessionExitRequested):
        raise SessionExitRequested()


def test_session_prompt_raises_on_q():
    with patch("studybuddy.app.Prompt.ask", return_value="q"):
        with pytest.raises(SessionExitRequested):
            session_prompt("test prompt")


def test_session_prompt_raises_on_menu():
    with patch("studybuddy.app.Prompt.ask", return_value="menu"):
        with pytest.raises(SessionExitRequested):
            session_prompt("test prompt")


def test_session_prompt_returns_normal_input():
    with patch("studybuddy.app.Prompt.ask", return_value="hello"):
        result = session_prompt("test prompt")
        assert result == "hello"


def test_session_prompt_accepts_exit_words_as_choices():
    with patch("studybuddy.app.Prompt.ask", return_value="y") as ask:
        session_prompt("Knew it?", choices=["y", "n"])
    assert ask.call_args.kwargs["choices"] == ["y", "n", "q", "menu"]


def test_session_int_prompt_raises_on_q():
    with patch("studybuddy.app.Prompt.ask", return_value="q"):
        with pytest.raises(SessionExitRequested):
            session_int_prompt("pick", choices=["1", "2", "3", "4"])


def test_session_int_prompt_returns_normal_input():
    with patch("studybuddy.app.Prompt.ask", return_value="3"):
        result = session_int_prompt("pick", choices=["1", "2", "3", "4"])
        assert result == 3


def _started_runner(db, add_cards, rng, n=5):
    add_cards(n)
    runner = QuizRunner(db, USER, rng=rng)
    runner.start()
    return runner


def test_run_quiz_session_all_correct(db, add_cards, rng):
    runner = _started_runner(db, add_cards, rng)
    picks = [str(q.options.index(q.correct_answer) + 1) for q in runner.session.questions]
    with patch("studybuddy.app.Prompt.ask", side_effect=picks):
        assert run_quiz_session(runner) == (5, 5)
    quizzes = list_quizzes(db, USER)
    assert len(quizzes) == 1
    assert quizzes[0].percentage == 100


def test_run_quiz_session_quit_abandons_without_saving(db, add_cards, rng):
    """User answers the first question then types 'q' on the second."""
    runner = _started_runner(db, add_cards, rng)
    first = runner.session.questions[0]
    pick = str(first.options.index(first.correct_answer) + 1)
    with patch("studybuddy.app.Prompt.ask", side_effect=[pick, "q"]):
        assert run_quiz_session(runner) is None
    assert runner.session.state == "not_started"
    assert list_quizzes(db, USER) == []
    # The answered question still counted toward analytics
    assert get_topic(db, USER, "Biology").total_attempts == 1


def test_cmd_quiz_with_too_few_cards(db, add_cards):
    add_cards(4)
    with patch("studybuddy.app.Prompt.ask") as ask:
        cmd_quiz(db, USER)
    ask.assert_not_called()
    assert list_quizzes(db, USER) == []


def test_run_flashcard_review_counts_known(db, add_cards):
    add_cards(2)
    cards = get_flashcards(db, USER)
    with patch("studybuddy.app.Prompt.ask", side_effect=["", "y", "", "n"]):
        assert run_flashcard_review(db, USER, cards) == (1, 2)
    assert all(c.times_reviewed == 1 for c in get_flashcards(db, USER))


def test_run_flashcard_review_exits_on_q(db, add_cards):
    add_cards(2)
    cards = get_flashcards(db, USER)
    with patch("studybuddy.app.Prompt.ask", side_effect=["", "y", "q"]):
        assert run_flashcard_review(db, USER, cards) == (1, 1)


def test_run_flashcard_review_empty(db):
    assert run_flashcard_review(db, USER, []) == (0, 0)


def test_cmd_login_seeds_starter_deck(db):
    with patch("studybuddy.app.Prompt.ask", return_value="new-student"), \
            patch("studybuddy.app.Confirm.ask", return_value=True):
        assert cmd_login(db) == "new-student"
    assert get_current_user(db) == "new-student"
    assert count_flashcards(db, "new-student") > 0


def test_cmd_login_without_starter_deck(db):
    with patch("studybuddy.app.Prompt.ask", return_value="bare"), \
            patch("studybuddy.app.Confirm.ask", return_value=False):
        cmd_login(db)
    assert count_flashcards(db, "bare") == 0


def test_cmd_add(db):
    with patch("studybuddy.app.Prompt.ask", side_effect=["What is 2+2?", "4", "Math", "easy"]):
        cmd_add(db, USER)
    card = get_flashcards(db, USER)[0]
    assert (card.question, card.answer, card.subject, card.difficulty) == ("What is 2+2?", "4", "Math", "easy")


def test_cmd_add_rejects_empty_answer(db):
    with patch("studybuddy.app.Prompt.ask", side_effect=["Q?", "", "", "none"]):
        cmd_add(db, USER)
    assert count_flashcards(db, USER) == 0


def test_cmd_history_empty(db):
    cmd_history(db, USER)  # should not raise


def _printed(console):
    return " ".join(str(c.args[0]) for c in console.print.call_args_list if c.args)


def test_quit_during_quiz_says_nothing_saved(db, add_cards, rng):
    runner = _started_runner(db, add_cards, rng)
    with patch("studybuddy.app.Prompt.ask", return_value="q"), \
            patch("studybuddy.app.console") as console:
        assert run_quiz_session(runner) is None
    assert "Nothing was saved" in _printed(console)


def test_quit_during_retake_says_answers_were_kept(db, add_cards, rng):
    runner = _started_runner(db, add_cards, rng)
    while not runner.session.is_complete:
        runner.answer(runner.current_question.correct_answer)
    replay = QuizReplay(db, USER, runner.quiz_id, rng=rng)
    replay.start()
    first = replay.current_question
    wrong = next(i for i, o in enumerate(first.options, 1) if o != first.correct_answer)
    with patch("studybuddy.app.Prompt.ask", side_effect=[str(wrong), "q"]), \
            patch("studybuddy.app.console") as console:
        assert run_quiz_session(replay) is None
    printed = _printed(console)
    assert "Nothing was saved" not in printed
    assert "Retake stopped" in printed
