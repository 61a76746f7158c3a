# tests/test_importer.py
import json

from studybuddy.db import get_connection
from studybuddy.flashcards import get_flashcards
from studybuddy.importer import read_file_content, parse_flashcards, extract_flashcards, import_document

USER = "student-1"

NOTES = """Subject: Biology
Q: Which organelle carries out photosynthesis?
A: Chloroplast
Difficulty: easy

Q: What does the mitochondrion produce?
A: ATP,
the cell's energy currency

Subject: Chemistry
Question: Symbol for sodium?
Answer: Na
"""


def test_read_txt_file(tmp_path):
    f = tmp_path / "notes.txt"
    f.write_text("Photosynthesis converts light into chemical energy.")
    content = read_file_content(str(f))
    assert "Photosynthesis" in content


def test_read_md_file(tmp_path):
    f = tmp_path / "notes.md"
    f.write_text("# Cells\n\nThe nucleus stores DNA.")
    content = read_file_content(str(f))
    assert "nucleus" in content


def test_read_json_file(tmp_path):
    f = tmp_path / "notes.json"
    f.write_text('{"notes": "Enzymes lower activation energy"}')
    content = read_file_content(str(f))
    assert "Enzymes" in content


def test_parse_flashcards_pairs_and_subjects():
    cards = parse_flashcards(NOTES)
    assert len(cards) == 3
    assert cards[0] == {
        "question": "Which organelle carries out photosynthesis?",
        "answer": "Chloroplast",
        "subject": "Biology",
        "difficulty": "easy",
    }
    assert cards[1]["answer"] == "ATP, the cell's energy currency"
    assert cards[1]["subject"] == "Biology"
    assert cards[2]["question"] == "Symbol for sodium?"
    assert cards[2]["subject"] == "Chemistry"


def test_parse_flashcards_default_subject():
    cards = parse_flashcards("Q: 2+2?\nA: 4", subject="Math")
    assert cards[0]["subject"] == "Math"


def test_parse_flashcards_skips_incomplete_pairs():
    cards = parse_flashcards("Q: No answer here\n\nQ: Has one?\nA: yes\nA lone line")
    assert [c["question"] for c in cards] == ["Has one?"]


def test_parse_flashcards_ignores_unknown_difficulty():
    cards = parse_flashcards("Q: a?\nA: b\nDifficulty: brutal")
    assert cards[0]["difficulty"] is None


def test_parse_flashcards_no_pairs():
    assert parse_flashcards("Just some prose about cells.") == []


def test_extract_flashcards_from_json_list(tmp_path):
    f = tmp_path / "deck.json"
    f.write_text(json.dumps({"flashcards": [
        {"question": "Q1?", "answer": "A1", "difficulty": "hard"},
        {"question": "Q2?", "answer": ""},
    ]}))
    cards = extract_flashcards(str(f), subject="Physics")
    assert cards == [{"question": "Q1?", "answer": "A1", "subject": "Physics", "difficulty": "hard"}]


def test_import_document(tmp_path, db):
    f = tmp_path / "bio_notes.txt"
    f.write_text(NOTES)
    result = import_document(db, USER, str(f))
    assert result["filename"] == "bio_notes.txt"
    assert result["flashcards"] == 3
    cards = get_flashcards(db, USER)
    assert len(cards) == 3
    assert all(c.document_id == result["document_id"] for c in cards)
    conn = get_connection(db)
    doc = conn.execute("SELECT * FROM documents WHERE id = ?", (result["document_id"],)).fetchone()
    conn.close()
    assert doc["user_id"] == USER
    assert doc["file_type"] == "txt"
    assert doc["processed"] == 1
    assert doc["file_size"] > 0


def test_import_document_without_pairs(tmp_path, db):
    f = tmp_path / "prose.md"
    f.write_text("# Notes\nNothing in question form.")
    result = import_document(db, USER, str(f))
    assert result["flashcards"] == 0
    conn = get_connection(db)
    doc = conn.execute("SELECT processed FROM documents").fetchone()
    conn.close()
    assert doc["processed"] == 0
