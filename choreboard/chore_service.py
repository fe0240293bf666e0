"""Assembling the chores of a routine from stored and blueprint records."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Any

from .blueprints import get_blueprint_chores
from .db import NotFoundError, parse_timestamp
from .models import Chore, ChoreRoutine

_EXISTING_QUERY = """
SELECT
    cr.id, cr.created, cr.modified, cr.completed_at, cr.completed_by,
    cr.points_awarded, cr.routine_id, cr.chore_id,
    c.id, c.name, c.default_points, c.image
FROM chore_routines cr
JOIN chores c ON cr.chore_id = c.id
WHERE cr.routine_id = ?
ORDER BY cr.id
"""


def _chore_routine_from_row(row: tuple[Any, ...]) -> ChoreRoutine:
    (
        record_id,
        created,
        modified,
        completed_at,
        completed_by,
        points,
        routine_id,
        chore_id,
        c_id,
        c_name,
        c_points,
        c_image,
    ) = row
    completed_moment = None
    if completed_at is not None:
        completed_moment = parse_timestamp(completed_at) or datetime.min.replace(
            tzinfo=timezone.utc
        )
    return ChoreRoutine(
        id=record_id,
        created=parse_timestamp(created),
        modified=parse_timestamp(modified),
        completed_at=completed_moment,
        completed_by_id=completed_by,
        points_awarded=points,
        routine_id=routine_id,
        chore_id=chore_id,
        chore=Chore(id=c_id, name=c_name, default_points=c_points, image=c_image or ""),
    )


class ChoreService:
    """Business logic concerning the chores of routines."""

    def __init__(self, db: sqlite3.Connection):
        self.db = db

    def _existing_chore_routines(self, routine_id: int) -> list[ChoreRoutine]:
        rows = self.db.execute(_EXISTING_QUERY, (routine_id,)).fetchall()
        return [_chore_routine_from_row(row) for row in rows]

    def get_chores_for_routine(self, routine_id: int) -> list[ChoreRoutine]:
        """Return the stored chore records of a routine, followed by unsaved
        records for the blueprint chores that have none yet.

        Raises NotFoundError when the routine does not exist.
        """
        row = self.db.execute(
            "SELECT routine_blueprint_id FROM routines WHERE id = ?", (routine_id,)
        ).fetchone()
        if row is None:
            raise NotFoundError(f"routine {routine_id} not found")
        blueprint_id = row[0]

        existing = self._existing_chore_routines(routine_id)
        if not blueprint_id:
            return existing

        present = {record.chore_id for record in existing}
        synthetic = [
            ChoreRoutine(
                routine_id=routine_id,
                chore_id=link.chore_id,
                points_awarded=link.chore.default_points,
                chore=link.chore,
            )
            for link in get_blueprint_chores(self.db, blueprint_id)
            if link.chore_id not in present
        ]
        return existing + synthetic