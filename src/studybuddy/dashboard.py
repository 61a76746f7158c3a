"""Performance summaries for the analytics screen."""
from studybuddy.analytics import get_topic_analytics, round_percentage
from studybuddy.db import get_connection
from studybuddy.models import STRENGTH_LEVELS, AnalyticsReport

TREND_MARGIN = 5.0


def get_performance_label(percentage: float) -> str:
    if percentage >= 80:
        return "Excellent work!"
    elif percentage >= 60:
        return "Good job!"
    elif percentage >= 40:
        return "Not bad, keep practicing!"
    return "Keep studying, you'll improve!"


def get_performance_color(percentage: float) -> str:
    if percentage >= 80:
        return "green"
    elif percentage >= 60:
        return "yellow"
    return "red"


def get_strength_color(level: str) -> str:
    return {"strong": "green", "moderate": "yellow"}.get(level, "red")


def get_quiz_stats(db_path: str, user_id: str, limit: int = 20) -> dict:
    """Totals over the most recent quizzes."""
    conn = get_connection(db_path)
    row = conn.execute(
        """SELECT COUNT(*) as quizzes, AVG(percentage) as avg, MAX(percentage) as best,
            SUM(total_questions) as questions
        FROM (SELECT * FROM quizzes WHERE user_id = ?
              ORDER BY created_at DESC, id DESC LIMIT ?)""",
        (user_id, limit),
    ).fetchone()
    conn.close()
    return {
        "total_quizzes": row["quizzes"],
        "average_score": round(row["avg"], 1) if row["avg"] is not None else 0.0,
        "best_score": row["best"] or 0.0,
        "total_questions_answered": row["questions"] or 0,
    }


def get_subject_breakdown(db_path: str, user_id: str) -> list[dict]:
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT subject, COUNT(*) as quizzes, SUM(score) as score, SUM(total_questions) as total
        FROM quizzes WHERE user_id = ?
        GROUP BY subject
        ORDER BY subject""",
        (user_id,),
    ).fetchall()
    conn.close()
    return [
        {
            "subject": r["subject"],
            "quiz_count": r["quizzes"],
            "average_score": round_percentage(r["score"], r["total"]),
        }
        for r in rows
    ]


def get_recent_trend(db_path: str, user_id: str, limit: int = 10) -> list[dict]:
    """Most recent quiz scores, newest first."""
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT created_at, percentage, subject FROM quizzes
        WHERE user_id = ?
        ORDER BY created_at DESC, id DESC LIMIT ?""",
        (user_id, limit),
    ).fetchall()
    conn.close()
    return [
        {"date": r["created_at"], "percentage": r["percentage"], "subject": r["subject"]}
        for r in rows
    ]


def get_trend_direction(percentages: list[float]) -> str:
    """Compare the newer half of scores (listed newest first) with the older half."""
    if len(percentages) < 2:
        return "stable"
    half = len(percentages) // 2
    newer = percentages[:half]
    older = percentages[-half:]
    delta = sum(newer) / len(newer) - sum(older) / len(older)
    if delta > TREND_MARGIN:
        return "improving"
    elif delta < -TREND_MARGIN:
        return "declining"
    return "stable"


def get_strength_summary(db_path: str, user_id: str) -> dict:
    summary = {level: 0 for level in STRENGTH_LEVELS}
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT strength_level, COUNT(*) as n FROM performance_analytics
        WHERE user_id = ? GROUP BY strength_level""",
        (user_id,),
    ).fetchall()
    conn.close()
    for r in rows:
        summary[r["strength_level"]] = r["n"]
    return summary


def build_analytics_report(db_path: str, user_id: str) -> AnalyticsReport:
    recent = get_recent_trend(db_path, user_id)
    return AnalyticsReport(
        quiz_stats=get_quiz_stats(db_path, user_id),
        subjects=get_subject_breakdown(db_path, user_id),
        topics=get_topic_analytics(db_path, user_id),
        strength_summary=get_strength_summary(db_path, user_id),
        recent=recent,
        trend=get_trend_direction([r["percentage"] for r in recent]),
    )
