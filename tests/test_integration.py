# tests/test_integration.py
"""End-to-end test of the core workflow."""
import random

from studybuddy.analytics import get_topic, get_weak_topics
from studybuddy.dashboard import build_analytics_report
from studybuddy.db import init_db
from studybuddy.flashcards import add_flashcard
from studybuddy.importer import import_document
from studybuddy.results import list_quizzes, get_question_results
from studybuddy.runner import QuizRunner, QuizReplay
from studybuddy.seed import seed_starter_deck

USER = "student-1"


def test_full_quiz_workflow(tmp_db, tmp_path):
    """Import cards, take a quiz, retake it, and read the analytics."""
    init_db(tmp_db)
    notes = tmp_path / "photosynthesis.md"
    notes.write_text("\n".join(
        f"Q: Photosynthesis fact {i}?\nA: Fact {i}" for i in range(6)
    ))
    result = import_document(tmp_db, USER, str(notes), subject="Photosynthesis")
    assert result["flashcards"] == 6

    # First attempt: only the first question right
    runner = QuizRunner(tmp_db, USER, rng=random.Random(9))
    questions = runner.start()
    assert len(questions) == 6
    runner.answer(runner.current_question.correct_answer)
    while not runner.session.is_complete:
        q = runner.current_question
        runner.answer(next(o for o in q.options if o != q.correct_answer))
    assert runner.quiz_id is not None

    topic = get_topic(tmp_db, USER, "Photosynthesis")
    assert (topic.total_attempts, topic.correct_attempts) == (6, 1)
    assert topic.accuracy_percentage == 17
    assert topic.strength_level == "weak"
    assert [t.topic for t in get_weak_topics(tmp_db, USER)] == ["Photosynthesis"]

    # Retake: everything right
    replay = QuizReplay(tmp_db, USER, runner.quiz_id, rng=random.Random(3))
    replay.start()
    while not replay.session.is_complete:
        replay.answer(replay.current_question.correct_answer)

    quizzes = list_quizzes(tmp_db, USER)
    assert len(quizzes) == 1
    assert quizzes[0].score == 6
    assert all(r.is_correct for r in get_question_results(tmp_db, USER, runner.quiz_id))

    topic = get_topic(tmp_db, USER, "Photosynthesis")
    assert (topic.total_attempts, topic.correct_attempts) == (12, 7)
    assert topic.accuracy_percentage == 58
    assert topic.strength_level == "moderate"

    report = build_analytics_report(tmp_db, USER)
    assert report.quiz_stats["total_quizzes"] == 1
    assert report.quiz_stats["average_score"] == 100.0
    assert report.subjects == [{"subject": "Photosynthesis", "quiz_count": 1, "average_score": 100}]


def test_starter_deck_supports_a_full_quiz(tmp_db):
    init_db(tmp_db)
    seed_starter_deck(tmp_db, USER)
    add_flashcard(tmp_db, USER, "Extra?", "Extra answer", subject="History")
    runner = QuizRunner(tmp_db, USER, rng=random.Random(1))
    questions = runner.start()
    assert len(questions) == 10
    for q in questions:
        assert len(q.options) == 4
        assert q.correct_answer in q.options
    while not runner.session.is_complete:
        runner.answer(runner.current_question.correct_answer)
    assert list_quizzes(tmp_db, USER)[0].percentage == 100
