import random

import pytest

from studybuddy.db import init_db
from studybuddy.flashcards import add_flashcard

USER = "student-1"


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_studybuddy.db")
    return db_path


@pytest.fixture
def db(tmp_db):
    """Initialized temporary database."""
    init_db(tmp_db)
    return tmp_db


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def add_cards(db):
    """Factory that inserts n distinct flashcards for a user and returns their ids."""
    def _add(n, subject="Biology", user_id=USER, prefix="card"):
        return [
            add_flashcard(db, user_id, f"{prefix} question {i}?", f"{prefix} answer {i}", subject=subject)
            for i in range(n)
        ]
    return _add
