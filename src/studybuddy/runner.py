"""Quiz orchestration: sessions wired to analytics and result storage."""
import logging
import random
import sqlite3

from studybuddy.analytics import record_topic_attempt, round_percentage
from studybuddy.errors import (
    AnalyticsUpdateFailure, PersistenceFailure, QuizNotFound,
)
from studybuddy.flashcards import get_flashcards
from studybuddy.models import DEFAULT_TOPIC, Answer, QuizQuestion
from studybuddy.quiz import QuizSession, build_options, generate_quiz
from studybuddy.results import (
    get_question_results, get_quiz, save_quiz_result, update_question_result,
    update_quiz_score,
)

logger = logging.getLogger(__name__)


def _record_attempt(db_path: str, user_id: str, topic: str, is_correct: bool, subject: str) -> None:
    # Analytics never block the quiz.
    try:
        record_topic_attempt(db_path, user_id, topic, is_correct, subject=subject)
    except AnalyticsUpdateFailure:
        logger.exception("Analytics update failed for topic %r", topic)


class QuizRunner:
    """A new quiz built from the user's flashcards.

    Each answer updates topic analytics; the last answer saves the quiz. Score
    and percentage come from the local session, so a failed save still leaves
    the result available to show.
    """

    def __init__(self, db_path: str, user_id: str, rng: random.Random | None = None):
        self.db_path = db_path
        self.user_id = user_id
        self.rng = rng or random.Random()
        self.session = QuizSession()
        self.subject = DEFAULT_TOPIC
        self.quiz_id: int | None = None
        self.save_failed = False

    def start(self) -> list[QuizQuestion]:
        cards = get_flashcards(self.db_path, self.user_id)
        questions = generate_quiz(cards, rng=self.rng)
        self.subject = cards[0].subject or DEFAULT_TOPIC
        self.quiz_id = None
        self.save_failed = False
        self.session = QuizSession()
        self.session.start(questions)
        logger.info("Started quiz for %s with %d questions", self.user_id, len(questions))
        return questions

    @property
    def current_question(self) -> QuizQuestion | None:
        return self.session.current_question

    def answer(self, choice: str) -> Answer:
        question = self.session.current_question
        result = self.session.submit_answer(choice)
        _record_attempt(self.db_path, self.user_id, question.topic, result.is_correct, question.topic)
        if self.session.is_complete:
            self._save()
        return result

    def abandon(self) -> None:
        self.session.abandon()
        logger.info("Quiz abandoned by %s", self.user_id)

    def _save(self) -> None:
        try:
            self.quiz_id = save_quiz_result(self.db_path, self.user_id, self.session, self.subject)
        except PersistenceFailure:
            self.save_failed = True
            logger.error("Quiz result for %s not saved; it will be retried on next start", self.user_id)


class QuizReplay:
    """Retake a stored quiz, rewriting its question results in place."""

    def __init__(self, db_path: str, user_id: str, quiz_id: int, rng: random.Random | None = None):
        self.db_path = db_path
        self.user_id = user_id
        self.quiz_id = quiz_id
        self.rng = rng or random.Random()
        self.session = QuizSession()
        self.quiz = None
        self.results = []

    def start(self) -> list[QuizQuestion]:
        self.quiz = get_quiz(self.db_path, self.user_id, self.quiz_id)
        if self.quiz is None:
            raise QuizNotFound(f"Quiz {self.quiz_id} not found")
        self.results = get_question_results(self.db_path, self.user_id, self.quiz_id)
        if not self.results:
            raise QuizNotFound(f"Quiz {self.quiz_id} has no questions")
        answers = [r.correct_answer for r in self.results]
        questions = [
            QuizQuestion(
                source_flashcard_id=r.id,
                question_text=r.question_text,
                correct_answer=r.correct_answer,
                options=build_options(r.correct_answer, answers, self.rng),
                topic=r.topic,
            )
            for r in self.results
        ]
        self.session = QuizSession()
        self.session.start(questions)
        return questions

    @property
    def current_question(self) -> QuizQuestion | None:
        return self.session.current_question

    def answer(self, choice: str) -> Answer:
        index = self.session.current_index
        result = self.session.submit_answer(choice)
        result_row = self.results[index]
        try:
            update_question_result(self.db_path, self.user_id, result_row.id, choice, result.is_correct)
        except sqlite3.Error:
            logger.exception("Could not update answer for question %s", result_row.id)
        _record_attempt(
            self.db_path, self.user_id, result_row.topic, result.is_correct,
            self.quiz.subject or result_row.topic,
        )
        if self.session.is_complete:
            self._finish()
        return result

    def abandon(self) -> None:
        self.session.abandon()

    def _finish(self) -> None:
        score = self.session.score
        percentage = round_percentage(score, self.session.total_questions)
        try:
            update_quiz_score(self.db_path, self.user_id, self.quiz_id, score, percentage)
        except sqlite3.Error:
            logger.exception("Could not update score for quiz %s", self.quiz_id)
