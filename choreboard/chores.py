"""Storage of chores and of their completion within routines."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Any

from .db import NotFoundError, format_timestamp, parse_timestamp
from .models import Chore, ChoreRoutine

_CHORE_COLUMNS = "id, created, modified, name, default_points, image"


def _chore_from_row(row: tuple[Any, ...]) -> Chore:
    chore_id, created, modified, name, default_points, image = row
    return Chore(
        id=chore_id,
        created=parse_timestamp(created),
        modified=parse_timestamp(modified),
        name=name,
        default_points=default_points,
        image=image or "",
    )


def _nullable(text: str) -> str | None:
    return text if text else None


def get_chores(db: sqlite3.Connection) -> list[Chore]:
    """Return every chore, ordered by name."""
    rows = db.execute(f"SELECT {_CHORE_COLUMNS} FROM chores ORDER BY name").fetchall()
    return [_chore_from_row(row) for row in rows]


def get_chore(db: sqlite3.Connection, chore_id: int) -> Chore:
    """Return one chore; raise NotFoundError if there is none with that ID."""
    row = db.execute(
        f"SELECT {_CHORE_COLUMNS} FROM chores WHERE id = ?", (chore_id,)
    ).fetchone()
    if row is None:
        raise NotFoundError(f"chore {chore_id} not found")
    return _chore_from_row(row)


def create_chore(db: sqlite3.Connection, chore: Chore) -> Chore:
    """Insert a chore, filling in its ID and timestamps."""
    now = format_timestamp(datetime.now(timezone.utc))
    cursor = db.execute(
        """
        INSERT INTO chores (created, modified, name, default_points, image)
        VALUES (?, ?, ?, ?, ?)
        """,
        (now, now, chore.name, chore.default_points, _nullable(chore.image)),
    )
    chore.id = cursor.lastrowid
    chore.created = parse_timestamp(now)
    chore.modified = chore.created
    return chore


def update_chore(db: sqlite3.Connection, chore: Chore) -> Chore:
    """Store a chore's name, points and image, refreshing its modified time."""
    now = format_timestamp(datetime.now(timezone.utc))
    db.execute(
        """
        UPDATE chores
        SET modified = ?, name = ?, default_points = ?, image = ?
        WHERE id = ?
        """,
        (now, chore.name, chore.default_points, _nullable(chore.image), chore.id),
    )
    chore.modified = parse_timestamp(now)
    return chore


def delete_chore(db: sqlite3.Connection, chore_id: int) -> None:
    """Remove a chore."""
    db.execute("DELETE FROM chores WHERE id = ?", (chore_id,))


def upsert_chore_routine(
    db: sqlite3.Connection,
    routine_id: int,
    chore_id: int,
    completed: bool,
    user_id: int,
) -> ChoreRoutine:
    """Create or update the completion record of a chore within a routine.

    A new record takes its points from the chore's default points; raises
    NotFoundError when the chore does not exist.
    """
    row = db.execute(
        """
        SELECT id, created, modified, completed_at, completed_by,
               points_awarded, routine_id, chore_id
        FROM chore_routines
        WHERE routine_id = ? AND chore_id = ?
        """,
        (routine_id, chore_id),
    ).fetchone()

    now = datetime.now(timezone.utc)
    now_str = format_timestamp(now)
    completed_at_param = now_str if completed else None
    completed_by_param = user_id if completed else None

    if row is None:
        points_row = db.execute(
            "SELECT default_points FROM chores WHERE id = ?", (chore_id,)
        ).fetchone()
        if points_row is None:
            raise NotFoundError(f"chore {chore_id} not found")
        default_points = points_row[0]
        cursor = db.execute(
            """
            INSERT INTO chore_routines (
                created, modified, completed_at, completed_by,
                points_awarded, routine_id, chore_id
            )
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                now_str,
                now_str,
                completed_at_param,
                completed_by_param,
                default_points,
                routine_id,
                chore_id,
            ),
        )
        return ChoreRoutine(
            id=cursor.lastrowid,
            created=now,
            modified=now,
            completed_at=now if completed else None,
            completed_by_id=user_id if completed else None,
            points_awarded=default_points,
            routine_id=routine_id,
            chore_id=chore_id,
        )

    record_id, created, _modified, completed_at, completed_by, points, r_id, c_id = row
    chore_routine = ChoreRoutine(
        id=record_id,
        created=parse_timestamp(created),
        modified=now,
        completed_at=parse_timestamp(completed_at) if completed_at is not None else None,
        completed_by_id=completed_by,
        points_awarded=points,
        routine_id=r_id,
        chore_id=c_id,
    )
    if completed_at is not None and chore_routine.completed_at is None:
        # A stored but unreadable completion time still counts as completed.
        chore_routine.completed_at = datetime.min.replace(tzinfo=timezone.utc)

    is_currently_completed = completed_at is not None
    if completed != is_currently_completed:
        db.execute(
            """
            UPDATE chore_routines
            SET modified = ?, completed_at = ?, completed_by = ?
            WHERE id = ?
            """,
            (now_str, completed_at_param, completed_by_param, record_id),
        )
        chore_routine.completed_at = now if completed else None
        chore_routine.completed_by_id = user_id if completed else None

    return chore_routine