"""Import flashcards from study documents in various file formats."""
import json
import logging
import re
from datetime import datetime
from pathlib import Path

from studybuddy.db import get_connection
from studybuddy.models import DIFFICULTIES

logger = logging.getLogger(__name__)

_FIELD = re.compile(r"^\s*(q|question|a|answer|subject|difficulty)\s*:\s*(.*)$", re.IGNORECASE)
_KEYS = {"q": "question", "question": "question", "a": "answer", "answer": "answer",
         "subject": "subject", "difficulty": "difficulty"}


def _load_structured(path: Path):
    suffix = path.suffix.lower()
    if suffix == ".json":
        return json.loads(path.read_text())
    import yaml
    return yaml.safe_load(path.read_text())


def read_file_content(file_path: str) -> str:
    path = Path(file_path)
    suffix = path.suffix.lower()

    if suffix in (".txt", ".md"):
        return path.read_text()
    elif suffix in (".json", ".yaml", ".yml"):
        data = _load_structured(path)
        return json.dumps(data, indent=2) if isinstance(data, (dict, list)) else str(data)
    elif suffix == ".pdf":
        from PyPDF2 import PdfReader
        reader = PdfReader(file_path)
        return "\n".join(page.extract_text() or "" for page in reader.pages)
    elif suffix == ".docx":
        from docx import Document
        doc = Document(file_path)
        return "\n".join(p.text for p in doc.paragraphs)
    elif suffix in (".html", ".htm"):
        from bs4 import BeautifulSoup
        html = path.read_text()
        return BeautifulSoup(html, "html.parser").get_text("\n")
    else:
        # Try reading as plain text
        return path.read_text()


def _clean_card(card: dict, default_subject: str | None) -> dict | None:
    question = str(card.get("question") or "").strip()
    answer = str(card.get("answer") or "").strip()
    if not question or not answer:
        return None
    difficulty = str(card.get("difficulty") or "").strip().lower() or None
    if difficulty not in DIFFICULTIES:
        difficulty = None
    subject = str(card.get("subject") or "").strip() or default_subject
    return {"question": question, "answer": answer, "subject": subject, "difficulty": difficulty}


def parse_flashcards(text: str, subject: str | None = None) -> list[dict]:
    """Extract Q:/A: pairs from free text.

    A "Subject:" line applies to every card after it until the next one;
    "Difficulty:" applies to the card being built.
    """
    cards = []
    current: dict = {}
    last_key = None
    for line in text.splitlines():
        match = _FIELD.match(line)
        if not match:
            # Continuation lines extend the previous question or answer.
            if last_key in ("question", "answer") and line.strip():
                current[last_key] = f"{current[last_key]} {line.strip()}".strip()
            continue
        key = _KEYS[match.group(1).lower()]
        value = match.group(2).strip()
        if key == "subject":
            subject = value or subject
            last_key = None
            continue
        if key == "question" and current.get("question"):
            cards.append(current)
            current = {}
        if key == "question":
            current["subject"] = subject
        current[key] = value
        last_key = key
    if current:
        cards.append(current)
    return [c for c in (_clean_card(card, None) for card in cards) if c]


def extract_flashcards(file_path: str, subject: str | None = None) -> list[dict]:
    path = Path(file_path)
    if path.suffix.lower() in (".json", ".yaml", ".yml"):
        data = _load_structured(path)
        if isinstance(data, dict):
            data = data.get("flashcards", [])
        if isinstance(data, list):
            return [c for c in (_clean_card(card, subject) for card in data if isinstance(card, dict)) if c]
    return parse_flashcards(read_file_content(file_path), subject=subject)


def import_document(db_path: str, user_id: str, file_path: str, subject: str | None = None) -> dict:
    """Store a document record and one flashcard per Q/A pair found in it."""
    path = Path(file_path)
    cards = extract_flashcards(file_path, subject=subject)
    now = datetime.now().isoformat()
    conn = get_connection(db_path)
    with conn:
        cur = conn.execute(
            """INSERT INTO documents (user_id, title, file_type, file_size, processed, created_at)
            VALUES (?, ?, ?, ?, ?, ?)""",
            (user_id, path.name, path.suffix.lower().lstrip(".") or "txt",
             path.stat().st_size, int(bool(cards)), now),
        )
        document_id = cur.lastrowid
        conn.executemany(
            """INSERT INTO flashcards
            (user_id, question, answer, subject, difficulty, document_id, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)""",
            [
                (user_id, c["question"], c["answer"], c["subject"], c["difficulty"], document_id, now)
                for c in cards
            ],
        )
    conn.close()
    logger.info("Imported %s: %d flashcards", path.name, len(cards))
    return {"document_id": document_id, "filename": path.name, "flashcards": len(cards)}
