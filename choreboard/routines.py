"""Storage of routines, the concrete instances of routine blueprints."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Any

from .db import format_timestamp, parse_timestamp
from .models import Routine, User

_ROUTINE_QUERY = """
SELECT r.id, r.created, r.modified, r.owner_id, r.routine_blueprint_id,
       u.name AS owner_name,
       rb.image AS image_url
FROM routines r
LEFT JOIN users u ON r.owner_id = u.id
LEFT JOIN routine_blueprints rb ON r.routine_blueprint_id = rb.id
"""


def _routine_from_row(row: tuple[Any, ...]) -> Routine:
    routine_id, created, modified, owner_id, blueprint_id, owner_name, image_url = row
    if owner_name is None:
        raise ValueError(f"routine {routine_id} has no owner name")
    return Routine(
        id=routine_id,
        created=parse_timestamp(created),
        modified=parse_timestamp(modified),
        owner_id=owner_id,
        routine_blueprint_id=blueprint_id,
        image_url=image_url or "",
        owner=User(name=owner_name),
    )


def get_routines(db: sqlite3.Connection, user_id: int) -> list[Routine]:
    """Return the routines owned by a user, newest first."""
    rows = db.execute(
        _ROUTINE_QUERY + " WHERE r.owner_id = ? ORDER BY r.created DESC", (user_id,)
    ).fetchall()
    return [_routine_from_row(row) for row in rows]


def get_routine(db: sqlite3.Connection, routine_id: int) -> Routine | None:
    """Return one routine, or None if there is none with that ID."""
    row = db.execute(_ROUTINE_QUERY + " WHERE r.id = ?", (routine_id,)).fetchone()
    return _routine_from_row(row) if row is not None else None


def create_routine(db: sqlite3.Connection, routine: Routine) -> Routine:
    """Insert a routine, filling in its ID and timestamps."""
    now = format_timestamp(datetime.now(timezone.utc))
    cursor = db.execute(
        """
        INSERT INTO routines (created, modified, owner_id, routine_blueprint_id)
        VALUES (?, ?, ?, ?)
        """,
        (now, now, routine.owner_id, routine.routine_blueprint_id),
    )
    routine.id = cursor.lastrowid
    routine.created = parse_timestamp(now)
    routine.modified = routine.created
    return routine


def get_chore_counts_for_routine(db: sqlite3.Connection, routine_id: int) -> tuple[int, int]:
    """Return (total, completed) counts of the chore records of a routine."""
    total, completed = db.execute(
        """
        SELECT COUNT(*),
               COUNT(CASE WHEN completed_at IS NOT NULL THEN 1 END)
        FROM chore_routines
        WHERE routine_id = ?
        """,
        (routine_id,),
    ).fetchone()
    return total, completed