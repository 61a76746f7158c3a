"""Persisting finished quizzes and reading quiz history."""
import json
import logging
import random
import sqlite3
import time
from datetime import datetime
from pathlib import Path

from studybuddy.db import get_connection
from studybuddy.errors import PersistenceFailure
from studybuddy.models import Quiz, QuizQuestionResult

logger = logging.getLogger(__name__)

QUIZ_TYPE_FLASHCARD = "flashcard_review"
MAX_RETRIES = 3
BACKOFF_BASE = 0.2


def call_with_backoff(fn, max_retries: int = MAX_RETRIES, base: float = BACKOFF_BASE):
    """Retry fn on transient SQLite errors (locked/busy database)."""
    for attempt in range(max_retries):
        try:
            return fn()
        except sqlite3.OperationalError as e:
            if attempt == max_retries - 1:
                raise
            delay = min(5.0, base * (2 ** attempt)) + random.uniform(0, base / 2)
            logger.warning("Write failed (attempt %d/%d): %s", attempt + 1, max_retries, e)
            time.sleep(delay)


def pending_path(db_path: str) -> Path:
    return Path(f"{db_path}.pending.jsonl")


def build_quiz_payload(user_id: str, session, subject: str, title: str | None = None,
                       quiz_type: str = QUIZ_TYPE_FLASHCARD) -> dict:
    """Snapshot a completed session as a plain dict ready for writing."""
    now = datetime.now()
    results = []
    for question, answer in zip(session.questions, session.answers):
        results.append({
            "topic": question.topic,
            "question_text": question.question_text,
            "correct_answer": question.correct_answer,
            "user_answer": answer.chosen_answer,
            "is_correct": answer.is_correct,
        })
    return {
        "user_id": user_id,
        "title": title or f"Quiz - {now.date().isoformat()}",
        "subject": subject,
        "total_questions": session.total_questions,
        "score": session.score,
        "percentage": session.percentage,
        "time_taken_seconds": session.time_taken_seconds,
        "quiz_type": quiz_type,
        "created_at": now.isoformat(),
        "results": results,
    }


def _write_quiz(db_path: str, payload: dict) -> int:
    # Header and detail rows commit together or not at all.
    conn = get_connection(db_path)
    try:
        with conn:
            cur = conn.execute(
                """INSERT INTO quizzes
                (user_id, title, subject, total_questions, score, percentage,
                 time_taken_seconds, quiz_type, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (payload["user_id"], payload["title"], payload["subject"],
                 payload["total_questions"], payload["score"], payload["percentage"],
                 payload["time_taken_seconds"], payload["quiz_type"], payload["created_at"]),
            )
            quiz_id = cur.lastrowid
            conn.executemany(
                """INSERT INTO quiz_question_results
                (quiz_id, user_id, topic, question_text, correct_answer, user_answer, is_correct, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                [
                    (quiz_id, payload["user_id"], r["topic"], r["question_text"],
                     r["correct_answer"], r["user_answer"], int(r["is_correct"]), payload["created_at"])
                    for r in payload["results"]
                ],
            )
    finally:
        conn.close()
    return quiz_id


def _append_pending(db_path: str, payload: dict) -> None:
    path = pending_path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(payload) + "\n")


def save_quiz_payload(db_path: str, payload: dict) -> int:
    """Write a quiz payload, queueing it for the next start if the store refuses.

    Raises:
        PersistenceFailure: the write failed after retries. The payload was
            appended to the pending file when that file could be written.
    """
    try:
        quiz_id = call_with_backoff(lambda: _write_quiz(db_path, payload))
    except sqlite3.Error as e:
        logger.error("Could not save quiz %r: %s", payload["title"], e)
        try:
            _append_pending(db_path, payload)
        except OSError:
            logger.exception("Could not queue quiz %r for retry; the result is lost", payload["title"])
            raise PersistenceFailure(f"Quiz result could not be saved or queued: {e}") from e
        raise PersistenceFailure(f"Quiz result queued for retry: {e}") from e
    logger.info("Saved quiz %s (%s/%s)", quiz_id, payload["score"], payload["total_questions"])
    return quiz_id


def save_quiz_result(db_path: str, user_id: str, session, subject: str,
                     title: str | None = None, quiz_type: str = QUIZ_TYPE_FLASHCARD) -> int:
    if not session.is_complete:
        raise ValueError("Only completed sessions can be saved")
    payload = build_quiz_payload(user_id, session, subject, title=title, quiz_type=quiz_type)
    return save_quiz_payload(db_path, payload)


def count_pending_results(db_path: str) -> int:
    path = pending_path(db_path)
    if not path.exists():
        return 0
    return sum(1 for line in path.read_text(encoding="utf-8").splitlines() if line.strip())


def _rewrite_pending(path: Path, lines: list[str]) -> None:
    if lines:
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    elif path.exists():
        path.unlink()


def reconcile_pending_results(db_path: str) -> int:
    """Replay queued quiz writes.

    Entries that still fail stay queued; malformed entries are dropped. The
    file is rewritten after every entry, so a written quiz is never replayed.
    """
    path = pending_path(db_path)
    if not path.exists():
        return 0
    queue = [line for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]
    written = 0
    kept = []
    while queue:
        line = queue.pop(0)
        try:
            payload = json.loads(line)
            _write_quiz(db_path, payload)
            written += 1
        except (ValueError, KeyError, TypeError) as e:
            logger.error("Dropping malformed pending quiz entry: %r", e)
        except sqlite3.Error as e:
            logger.warning("Pending quiz %r still failing: %s", payload.get("title"), e)
            kept.append(line)
        _rewrite_pending(path, kept + queue)
    _rewrite_pending(path, kept)
    if written:
        logger.info("Recovered %d pending quiz result(s)", written)
    return written


def list_quizzes(db_path: str, user_id: str, limit: int | None = None) -> list[Quiz]:
    query = "SELECT * FROM quizzes WHERE user_id = ? ORDER BY created_at DESC, id DESC"
    params: tuple = (user_id,)
    if limit is not None:
        query += " LIMIT ?"
        params = (user_id, limit)
    conn = get_connection(db_path)
    rows = conn.execute(query, params).fetchall()
    conn.close()
    return [Quiz.from_row(r) for r in rows]


def get_quiz(db_path: str, user_id: str, quiz_id: int) -> Quiz | None:
    conn = get_connection(db_path)
    row = conn.execute(
        "SELECT * FROM quizzes WHERE id = ? AND user_id = ?", (quiz_id, user_id)
    ).fetchone()
    conn.close()
    return Quiz.from_row(row) if row else None


def get_question_results(db_path: str, user_id: str, quiz_id: int) -> list[QuizQuestionResult]:
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT * FROM quiz_question_results
        WHERE quiz_id = ? AND user_id = ?
        ORDER BY created_at ASC, id ASC""",
        (quiz_id, user_id),
    ).fetchall()
    conn.close()
    return [QuizQuestionResult.from_row(r) for r in rows]


def update_question_result(db_path: str, user_id: str, result_id: int,
                           user_answer: str, is_correct: bool) -> None:
    conn = get_connection(db_path)
    try:
        with conn:
            conn.execute(
                """UPDATE quiz_question_results SET user_answer = ?, is_correct = ?
                WHERE id = ? AND user_id = ?""",
                (user_answer, int(is_correct), result_id, user_id),
            )
    finally:
        conn.close()


def update_quiz_score(db_path: str, user_id: str, quiz_id: int, score: int, percentage: float) -> None:
    conn = get_connection(db_path)
    try:
        with conn:
            conn.execute(
                "UPDATE quizzes SET score = ?, percentage = ? WHERE id = ? AND user_id = ?",
                (score, percentage, quiz_id, user_id),
            )
    finally:
        conn.close()
