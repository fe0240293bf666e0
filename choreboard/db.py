"""Database connection and timestamp helpers."""

from __future__ import annotations

import os
import re
import sqlite3
from datetime import datetime, timedelta, timezone

from .migrations import DEFAULT_DIRECTORY, run_migrations

DEFAULT_DATABASE = "chores.db"

_RFC3339 = re.compile(
    r"(\d{4}-\d{2}-\d{2})T(\d{2}:\d{2}:\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})"
)


class NotFoundError(LookupError):
    """Raised when a requested record does not exist."""


def parse_timestamp(value: object) -> datetime | None:
    """Parse an RFC 3339 timestamp; anything else yields None."""
    if not isinstance(value, str):
        return None
    match = _RFC3339.fullmatch(value)
    if not match:
        return None
    date, clock, fraction, zone = match.groups()
    try:
        base = datetime.strptime(f"{date}T{clock}", "%Y-%m-%dT%H:%M:%S")
    except ValueError:
        return None
    microsecond = int((fraction or "").ljust(6, "0")[:6])
    if zone == "Z":
        tz = timezone.utc
    else:
        hours, minutes = int(zone[1:3]), int(zone[4:6])
        if hours > 23 or minutes > 59:
            return None
        offset = timedelta(hours=hours, minutes=minutes)
        tz = timezone(offset if zone[0] == "+" else -offset)
    return base.replace(microsecond=microsecond, tzinfo=tz)


def format_timestamp(moment: datetime) -> str:
    """Format a moment as an RFC 3339 UTC timestamp with second precision."""
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def open_database(path: str | os.PathLike = DEFAULT_DATABASE) -> sqlite3.Connection:
    """Open a SQLite database in autocommit mode."""
    return sqlite3.connect(path, isolation_level=None, check_same_thread=False)


def init_database(
    path: str | os.PathLike = DEFAULT_DATABASE,
    migrations_dir: str | os.PathLike = DEFAULT_DIRECTORY,
) -> sqlite3.Connection:
    """Open the database and apply any pending migrations."""
    db = open_database(path)
    try:
        run_migrations(db, migrations_dir)
    except BaseException:
        db.close()
        raise
    return db