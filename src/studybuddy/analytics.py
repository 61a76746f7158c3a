"""Per-topic mastery tracking and weak area identification."""
import logging
import math
import sqlite3
from datetime import datetime

from studybuddy.db import get_connection
from studybuddy.errors import AnalyticsUpdateFailure
from studybuddy.models import PerformanceAnalytics

logger = logging.getLogger(__name__)

STRONG_THRESHOLD = 70
WEAK_THRESHOLD = 40

# Counters are bumped and re-derived inside a single statement so two writers
# on the same (user, topic) can't lose each other's attempt.
_UPSERT_ATTEMPT = """
INSERT INTO performance_analytics
    (user_id, subject, topic, total_attempts, correct_attempts,
     accuracy_percentage, strength_level, last_updated)
VALUES (:user_id, :subject, :topic, 1, :correct, :accuracy, :strength, :now)
ON CONFLICT(user_id, topic) DO UPDATE SET
    total_attempts = total_attempts + 1,
    correct_attempts = correct_attempts + excluded.correct_attempts,
    accuracy_percentage = ROUND(
        100.0 * (correct_attempts + excluded.correct_attempts) / (total_attempts + 1)
    ),
    strength_level = CASE
        WHEN ROUND(100.0 * (correct_attempts + excluded.correct_attempts) / (total_attempts + 1)) >= :strong
            THEN 'strong'
        WHEN ROUND(100.0 * (correct_attempts + excluded.correct_attempts) / (total_attempts + 1)) < :weak
            THEN 'weak'
        ELSE 'moderate'
    END,
    last_updated = excluded.last_updated
"""

_UPSERT_TOTALS = """
INSERT INTO performance_analytics
    (user_id, subject, topic, total_attempts, correct_attempts,
     accuracy_percentage, strength_level, last_updated)
VALUES (?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(user_id, topic) DO UPDATE SET
    subject = excluded.subject,
    total_attempts = excluded.total_attempts,
    correct_attempts = excluded.correct_attempts,
    accuracy_percentage = excluded.accuracy_percentage,
    strength_level = excluded.strength_level,
    last_updated = excluded.last_updated
"""


def round_percentage(correct: int, total: int) -> int:
    """Percentage rounded half-up, matching SQLite's ROUND for positive values."""
    if total <= 0:
        return 0
    return int(math.floor(100 * correct / total + 0.5))


def classify_strength(accuracy: float) -> str:
    if accuracy >= STRONG_THRESHOLD:
        return "strong"
    elif accuracy < WEAK_THRESHOLD:
        return "weak"
    return "moderate"


def record_topic_attempt(
    db_path: str,
    user_id: str,
    topic: str,
    is_correct: bool,
    subject: str | None = None,
) -> PerformanceAnalytics:
    """Fold one answered question into the running (user, topic) aggregate.

    The first attempt creates the row (100% strong or 0% weak); later attempts
    increment the counters and recompute accuracy and strength level.

    Raises:
        AnalyticsUpdateFailure: the store rejected the write.
    """
    correct = 1 if is_correct else 0
    params = {
        "user_id": user_id,
        "subject": subject or topic,
        "topic": topic,
        "correct": correct,
        "accuracy": 100 * correct,
        "strength": classify_strength(100 * correct),
        "now": datetime.now().isoformat(),
        "strong": STRONG_THRESHOLD,
        "weak": WEAK_THRESHOLD,
    }
    try:
        conn = get_connection(db_path)
        try:
            with conn:
                conn.execute(_UPSERT_ATTEMPT, params)
            row = conn.execute(
                "SELECT * FROM performance_analytics WHERE user_id = ? AND topic = ?",
                (user_id, topic),
            ).fetchone()
        finally:
            conn.close()
    except sqlite3.Error as e:
        raise AnalyticsUpdateFailure(f"Could not update analytics for topic {topic!r}: {e}") from e
    logger.debug(
        "Topic %r for %s now %s/%s (%s)",
        topic, user_id, row["correct_attempts"], row["total_attempts"], row["strength_level"],
    )
    return PerformanceAnalytics.from_row(row)


def get_topic_analytics(db_path: str, user_id: str) -> list[PerformanceAnalytics]:
    """All topic aggregates for a user, weakest first."""
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT * FROM performance_analytics
        WHERE user_id = ?
        ORDER BY accuracy_percentage ASC, topic ASC""",
        (user_id,),
    ).fetchall()
    conn.close()
    return [PerformanceAnalytics.from_row(r) for r in rows]


def get_topic(db_path: str, user_id: str, topic: str) -> PerformanceAnalytics | None:
    conn = get_connection(db_path)
    row = conn.execute(
        "SELECT * FROM performance_analytics WHERE user_id = ? AND topic = ?",
        (user_id, topic),
    ).fetchone()
    conn.close()
    return PerformanceAnalytics.from_row(row) if row else None


def get_weak_topics(db_path: str, user_id: str) -> list[PerformanceAnalytics]:
    return [t for t in get_topic_analytics(db_path, user_id) if t.strength_level == "weak"]


def get_strong_topics(db_path: str, user_id: str) -> list[PerformanceAnalytics]:
    topics = [t for t in get_topic_analytics(db_path, user_id) if t.strength_level == "strong"]
    return sorted(topics, key=lambda t: t.accuracy_percentage, reverse=True)


def rebuild_topic_analytics(db_path: str, user_id: str) -> int:
    """Recompute every topic aggregate from the stored question results.

    Only answered results (user_answer set) count as attempts. Returns the
    number of topics written.
    """
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT topic, COUNT(*) as total, SUM(is_correct) as correct
        FROM quiz_question_results
        WHERE user_id = ? AND user_answer IS NOT NULL
        GROUP BY topic""",
        (user_id,),
    ).fetchall()
    now = datetime.now().isoformat()
    try:
        with conn:
            for r in rows:
                accuracy = round_percentage(r["correct"], r["total"])
                conn.execute(
                    _UPSERT_TOTALS,
                    (user_id, r["topic"], r["topic"], r["total"], r["correct"],
                     accuracy, classify_strength(accuracy), now),
                )
    except sqlite3.Error as e:
        raise AnalyticsUpdateFailure(f"Could not rebuild analytics: {e}") from e
    finally:
        conn.close()
    logger.info("Rebuilt %d topic aggregates for %s", len(rows), user_id)
    return len(rows)
