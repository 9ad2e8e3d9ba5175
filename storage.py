from __future__ import annotations

import getpass
import logging
import os
import sqlite3
from datetime import date
from decimal import Decimal
from pathlib import Path

from models import Config, Template, TimeEntry, with_id
from utils import format_time, parse_time

logger = logging.getLogger(__name__)


def _get_db_path() -> Path:
    """Get database path from environment variable or default location."""
    if env_path := os.environ.get("TIMESHEET_DB"):
        return Path(env_path)
    return Path(__file__).parent / "data" / "timesheet.db"


DB_PATH = _get_db_path()


def get_user_id() -> str:
    """Owner of new entries: TIMESHEET_USER, or the OS login name."""
    return os.environ.get("TIMESHEET_USER") or getpass.getuser()


def get_connection() -> sqlite3.Connection:
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


def init_db():
    """Create tables if they don't exist."""
    conn = get_connection()
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS time_entries (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            date TEXT NOT NULL,
            start_time TEXT NOT NULL,
            end_time TEXT,
            break_time INTEGER NOT NULL DEFAULT 0,
            hourly_rate TEXT NOT NULL DEFAULT '0',
            currency TEXT NOT NULL DEFAULT 'USD',
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS entry_templates (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            name TEXT NOT NULL,
            start_time TEXT,
            end_time TEXT,
            break_time INTEGER NOT NULL DEFAULT 0,
            hourly_rate TEXT NOT NULL DEFAULT '0',
            currency TEXT NOT NULL DEFAULT 'USD',
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS config (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_entries_user_date ON time_entries(user_id, date);
        CREATE INDEX IF NOT EXISTS idx_templates_user ON entry_templates(user_id);
    """)
    conn.commit()
    conn.close()


def _row_to_entry(row: sqlite3.Row) -> TimeEntry:
    return TimeEntry(
        id=row["id"],
        user_id=row["user_id"],
        date=date.fromisoformat(row["date"]),
        start_time=parse_time(row["start_time"]),
        end_time=parse_time(row["end_time"]),
        break_time=row["break_time"] or 0,
        hourly_rate=Decimal(row["hourly_rate"]),
        currency=row["currency"],
    )


def _entry_params(entry: TimeEntry) -> tuple:
    return (
        entry.user_id,
        entry.date.isoformat(),
        format_time(entry.start_time),
        format_time(entry.end_time),
        entry.break_time,
        str(entry.hourly_rate),
        entry.currency,
    )


def create_entry(entry: TimeEntry) -> TimeEntry:
    """Insert a new time entry. Returns it with its assigned id."""
    conn = get_connection()
    cursor = conn.execute("""
        INSERT INTO time_entries
        (user_id, date, start_time, end_time, break_time, hourly_rate, currency)
        VALUES (?, ?, ?, ?, ?, ?, ?)
    """, _entry_params(entry))
    conn.commit()
    entry_id = cursor.lastrowid
    conn.close()
    logger.debug("Created entry %s for %s on %s", entry_id, entry.user_id, entry.date)
    return with_id(entry, entry_id)


def update_entry(entry: TimeEntry) -> None:
    """Update an existing entry. Raises LookupError if it no longer exists."""
    conn = get_connection()
    cursor = conn.execute("""
        UPDATE time_entries
        SET user_id = ?, date = ?, start_time = ?, end_time = ?,
            break_time = ?, hourly_rate = ?, currency = ?
        WHERE id = ? AND user_id = ?
    """, _entry_params(entry) + (entry.id, entry.user_id))
    conn.commit()
    updated = cursor.rowcount
    conn.close()
    if not updated:
        raise LookupError(f"Time entry {entry.id} not found")
    logger.debug("Updated entry %s", entry.id)


def delete_entry(entry_id: int, user_id: str) -> bool:
    """Delete an entry. Returns False if there was nothing to delete."""
    conn = get_connection()
    cursor = conn.execute(
        "DELETE FROM time_entries WHERE id = ? AND user_id = ?",
        (entry_id, user_id),
    )
    conn.commit()
    deleted = cursor.rowcount > 0
    conn.close()
    logger.debug("Deleted entry %s: %s", entry_id, deleted)
    return deleted


def get_entry(entry_id: int) -> TimeEntry | None:
    """Get a single entry by id."""
    conn = get_connection()
    row = conn.execute(
        "SELECT * FROM time_entries WHERE id = ?", (entry_id,)
    ).fetchone()
    conn.close()

    if row:
        return _row_to_entry(row)
    return None


def get_entries_range(user_id: str, start: date, end: date) -> list[TimeEntry]:
    """Get a user's entries between two dates (inclusive)."""
    conn = get_connection()
    rows = conn.execute(
        """
        SELECT * FROM time_entries
        WHERE user_id = ? AND date >= ? AND date <= ?
        ORDER BY date, start_time, id
        """,
        (user_id, start.isoformat(), end.isoformat())
    ).fetchall()
    conn.close()

    return [_row_to_entry(row) for row in rows]


def get_latest_entry(user_id: str) -> TimeEntry | None:
    """The user's most recently created entry."""
    conn = get_connection()
    row = conn.execute(
        "SELECT * FROM time_entries WHERE user_id = ? ORDER BY id DESC LIMIT 1",
        (user_id,),
    ).fetchone()
    conn.close()
    return _row_to_entry(row) if row else None


# --- Template Functions ---


def _row_to_template(row: sqlite3.Row) -> Template:
    return Template(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        start_time=parse_time(row["start_time"]),
        end_time=parse_time(row["end_time"]),
        break_time=row["break_time"] or 0,
        hourly_rate=Decimal(row["hourly_rate"]),
        currency=row["currency"],
        created_at=date.fromisoformat(row["created_at"]) if row["created_at"] else None,
    )


def _template_params(template: Template) -> tuple:
    return (
        template.user_id,
        template.name,
        format_time(template.start_time),
        format_time(template.end_time),
        template.break_time,
        str(template.hourly_rate),
        template.currency,
    )


def create_template(template: Template) -> Template:
    """Insert a new template. Returns it with its id and creation date."""
    created_at = template.created_at or date.today()
    conn = get_connection()
    cursor = conn.execute(
        """
        INSERT INTO entry_templates
        (user_id, name, start_time, end_time, break_time, hourly_rate, currency, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """,
        _template_params(template) + (created_at.isoformat(),),
    )
    conn.commit()
    template_id = cursor.lastrowid
    conn.close()
    logger.debug("Created template %s (%s)", template_id, template.name)
    created = with_id(template, template_id)
    created.created_at = created_at
    return created


def update_template(template: Template) -> None:
    """Update an existing template. Raises LookupError if it no longer exists."""
    conn = get_connection()
    cursor = conn.execute(
        """
        UPDATE entry_templates
        SET user_id = ?, name = ?, start_time = ?, end_time = ?,
            break_time = ?, hourly_rate = ?, currency = ?
        WHERE id = ? AND user_id = ?
        """,
        _template_params(template) + (template.id, template.user_id),
    )
    conn.commit()
    updated = cursor.rowcount
    conn.close()
    if not updated:
        raise LookupError(f"Template {template.id} not found")


def delete_template(template_id: int, user_id: str) -> bool:
    """Delete a template. Returns False if there was nothing to delete."""
    conn = get_connection()
    cursor = conn.execute(
        "DELETE FROM entry_templates WHERE id = ? AND user_id = ?",
        (template_id, user_id),
    )
    conn.commit()
    deleted = cursor.rowcount > 0
    conn.close()
    return deleted


def get_template(template_id: int) -> Template | None:
    conn = get_connection()
    row = conn.execute(
        "SELECT * FROM entry_templates WHERE id = ?", (template_id,)
    ).fetchone()
    conn.close()
    return _row_to_template(row) if row else None


def get_templates(user_id: str) -> list[Template]:
    """Get a user's templates, newest first."""
    conn = get_connection()
    rows = conn.execute(
        "SELECT * FROM entry_templates WHERE user_id = ? ORDER BY created_at DESC, id DESC",
        (user_id,),
    ).fetchall()
    conn.close()
    return [_row_to_template(row) for row in rows]


# --- Config Functions ---


def get_config() -> Config:
    """Load config from database."""
    conn = get_connection()
    rows = conn.execute("SELECT key, value FROM config").fetchall()
    conn.close()

    config = Config()
    for row in rows:
        if row["key"] == "hourly_rate":
            config.hourly_rate = Decimal(row["value"])
        elif row["key"] == "currency":
            config.currency = row["value"]
        elif row["key"] == "break_time":
            config.break_time = int(row["value"])

    return config


def save_config(config: Config):
    """Save config to database."""
    conn = get_connection()
    conn.execute("INSERT OR REPLACE INTO config (key, value) VALUES (?, ?)",
                 ("hourly_rate", str(config.hourly_rate)))
    conn.execute("INSERT OR REPLACE INTO config (key, value) VALUES (?, ?)",
                 ("currency", config.currency))
    conn.execute("INSERT OR REPLACE INTO config (key, value) VALUES (?, ?)",
                 ("break_time", str(config.break_time)))
    conn.commit()
    conn.close()


def get_entry_defaults(user_id: str) -> Config:
    """Rate, currency and break for a new entry.

    Taken from the user's latest entry when there is one, else from config.
    """
    latest = get_latest_entry(user_id)
    if latest:
        return Config(
            hourly_rate=latest.hourly_rate,
            currency=latest.currency,
            break_time=latest.break_time,
        )
    return get_config()
