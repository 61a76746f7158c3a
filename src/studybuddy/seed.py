"""Seed a new user's account with a starter flashcard deck."""
import json
from datetime import datetime
from pathlib import Path

from studybuddy.db import get_connection
from studybuddy.flashcards import has_flashcards

CONTENT_DIR = Path(__file__).parent / "content"


def load_starter_deck() -> list[dict]:
    data = json.loads((CONTENT_DIR / "starter_flashcards.json").read_text())
    return data["flashcards"]


def seed_starter_deck(db_path: str, user_id: str) -> int:
    """Insert the starter deck for a user with no flashcards. Returns cards added."""
    if has_flashcards(db_path, user_id):
        return 0
    cards = load_starter_deck()
    now = datetime.now().isoformat()
    conn = get_connection(db_path)
    conn.executemany(
        """INSERT INTO flashcards (user_id, question, answer, subject, difficulty, created_at)
        VALUES (?, ?, ?, ?, ?, ?)""",
        [
            (user_id, c["question"], c["answer"], c.get("subject"), c.get("difficulty"), now)
            for c in cards
        ],
    )
    conn.commit()
    conn.close()
    return len(cards)
