"""Application settings and logging setup."""
import logging

from rich.console import Console
from rich.logging import RichHandler

from studybuddy.db import get_connection

CURRENT_USER_KEY = "current_user"


def get_setting(db_path: str, key: str, default: str = None) -> str | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
    conn.close()
    return row["value"] if row else default


def set_setting(db_path: str, key: str, value: str) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
        (key, value, value),
    )
    conn.commit()
    conn.close()


def get_current_user(db_path: str) -> str | None:
    return get_setting(db_path, CURRENT_USER_KEY)


def set_current_user(db_path: str, user_id: str) -> None:
    user_id = user_id.strip()
    if not user_id:
        raise ValueError("User id must not be empty")
    set_setting(db_path, CURRENT_USER_KEY, user_id)


def configure_logging(console: Console | None = None, verbose: bool = False) -> None:
    """Route log records through rich so they share the CLI console."""
    handler = RichHandler(console=console, show_path=False, rich_tracebacks=True)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
