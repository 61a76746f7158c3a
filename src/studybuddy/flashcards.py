"""Flashcard storage and review bookkeeping."""
import logging
from datetime import datetime

from studybuddy.db import get_connection
from studybuddy.models import DIFFICULTIES, Flashcard

logger = logging.getLogger(__name__)


def add_flashcard(
    db_path: str,
    user_id: str,
    question: str,
    answer: str,
    subject: str | None = None,
    difficulty: str | None = None,
    document_id: int | None = None,
) -> int:
    question = (question or "").strip()
    answer = (answer or "").strip()
    if not question or not answer:
        raise ValueError("Flashcards need both a question and an answer")
    if difficulty is not None:
        difficulty = difficulty.strip().lower()
        if difficulty not in DIFFICULTIES:
            raise ValueError(f"Unknown difficulty: {difficulty}")
    subject = subject.strip() if subject and subject.strip() else None
    conn = get_connection(db_path)
    cur = conn.execute(
        """INSERT INTO flashcards
        (user_id, question, answer, subject, difficulty, document_id, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)""",
        (user_id, question, answer, subject, difficulty, document_id, datetime.now().isoformat()),
    )
    conn.commit()
    card_id = cur.lastrowid
    conn.close()
    logger.debug("Added flashcard %s for %s", card_id, user_id)
    return card_id


def get_flashcards(db_path: str, user_id: str) -> list[Flashcard]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM flashcards WHERE user_id = ? ORDER BY created_at DESC, id DESC",
        (user_id,),
    ).fetchall()
    conn.close()
    return [Flashcard.from_row(r) for r in rows]


def count_flashcards(db_path: str, user_id: str) -> int:
    conn = get_connection(db_path)
    count = conn.execute(
        "SELECT COUNT(*) FROM flashcards WHERE user_id = ?", (user_id,)
    ).fetchone()[0]
    conn.close()
    return count


def has_flashcards(db_path: str, user_id: str) -> bool:
    return count_flashcards(db_path, user_id) > 0


def delete_flashcard(db_path: str, user_id: str, card_id: int) -> bool:
    conn = get_connection(db_path)
    cur = conn.execute(
        "DELETE FROM flashcards WHERE id = ? AND user_id = ?", (card_id, user_id)
    )
    conn.commit()
    conn.close()
    return cur.rowcount > 0


def record_flashcard_review(db_path: str, user_id: str, card_id: int) -> None:
    conn = get_connection(db_path)
    conn.execute(
        """UPDATE flashcards
        SET times_reviewed = COALESCE(times_reviewed, 0) + 1, last_reviewed_at = ?
        WHERE id = ? AND user_id = ?""",
        (datetime.now().isoformat(), card_id, user_id),
    )
    conn.commit()
    conn.close()


def get_subjects(db_path: str, user_id: str) -> list[str]:
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT DISTINCT subject FROM flashcards
        WHERE user_id = ? AND subject IS NOT NULL
        ORDER BY subject""",
        (user_id,),
    ).fetchall()
    conn.close()
    return [r["subject"] for r in rows]
