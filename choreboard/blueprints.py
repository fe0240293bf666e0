"""Storage of routine blueprints and the chores they are made of."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from enum import Enum
from typing import Any, Iterable, Iterator

from .db import NotFoundError, parse_timestamp
from .models import Chore, RecurrenceType, RoutineBlueprint, RoutineBlueprintChore

_BLUEPRINT_COLUMNS = (
    "id, created, modified, name, to_be_completed_by, "
    "allow_multiple_instances_per_day, recurrence, image"
)

_BLUEPRINT_CHORES_QUERY = """
SELECT
    rbc.id, rbc.created, rbc.modified, rbc.routine_blueprint_id, rbc.chore_id,
    c.id, c.name, c.default_points, c.image
FROM routine_blueprint_chores rbc
JOIN chores c ON rbc.chore_id = c.id
WHERE rbc.routine_blueprint_id = ?
"""


@contextmanager
def _transaction(db: sqlite3.Connection) -> Iterator[None]:
    """Run the enclosed statements in one transaction, rolling back on error."""
    db.execute("BEGIN")
    try:
        yield
    except BaseException:
        db.rollback()
        raise
    db.commit()


def _recurrence(value: Any) -> RecurrenceType | str:
    text = value or ""
    try:
        return RecurrenceType(text)
    except ValueError:
        return text


def _recurrence_text(value: RecurrenceType | str) -> str:
    return value.value if isinstance(value, Enum) else str(value)


def _blueprint_from_row(row: tuple[Any, ...]) -> RoutineBlueprint:
    blueprint_id, created, modified, name, deadline, allow_multiple, recurrence, image = row
    return RoutineBlueprint(
        id=blueprint_id,
        created=parse_timestamp(created),
        modified=parse_timestamp(modified),
        name=name,
        to_be_completed_by=deadline or "",
        allow_multiple_instances_per_day=bool(allow_multiple),
        recurrence=_recurrence(recurrence),
        image=image or "",
    )


def _blueprint_chore_from_row(row: tuple[Any, ...]) -> RoutineBlueprintChore:
    link_id, created, modified, blueprint_id, chore_id, c_id, c_name, c_points, c_image = row
    chore = Chore(id=c_id, name=c_name, default_points=c_points, image=c_image or "")
    return RoutineBlueprintChore(
        id=link_id,
        created=parse_timestamp(created),
        modified=parse_timestamp(modified),
        routine_blueprint_id=blueprint_id,
        chore_id=chore_id,
        image=chore.image,
        chore=chore,
    )


def _insert_chore_links(
    db: sqlite3.Connection, blueprint_id: int, chore_ids: Iterable[int]
) -> None:
    db.executemany(
        "INSERT INTO routine_blueprint_chores (routine_blueprint_id, chore_id) VALUES (?, ?)",
        ((blueprint_id, chore_id) for chore_id in chore_ids),
    )


def get_blueprints(db: sqlite3.Connection) -> list[RoutineBlueprint]:
    """Return every routine blueprint, newest first."""
    rows = db.execute(
        f"SELECT {_BLUEPRINT_COLUMNS} FROM routine_blueprints ORDER BY created DESC"
    ).fetchall()
    return [_blueprint_from_row(row) for row in rows]


def get_blueprint_chores(
    db: sqlite3.Connection, blueprint_id: int
) -> list[RoutineBlueprintChore]:
    """Return the chores that make up a blueprint, each with its chore attached."""
    rows = db.execute(_BLUEPRINT_CHORES_QUERY, (blueprint_id,)).fetchall()
    return [_blueprint_chore_from_row(row) for row in rows]


def get_blueprint(
    db: sqlite3.Connection, blueprint_id: int
) -> tuple[RoutineBlueprint, list[RoutineBlueprintChore]]:
    """Return a blueprint and its chores; raise NotFoundError if it does not exist."""
    row = db.execute(
        f"SELECT {_BLUEPRINT_COLUMNS} FROM routine_blueprints WHERE id = ?", (blueprint_id,)
    ).fetchone()
    if row is None:
        raise NotFoundError(f"blueprint {blueprint_id} not found")
    return _blueprint_from_row(row), get_blueprint_chores(db, blueprint_id)


def create_blueprint(
    db: sqlite3.Connection, blueprint: RoutineBlueprint, chore_ids: Iterable[int]
) -> RoutineBlueprint:
    """Insert a blueprint with its chores in one transaction, filling in its ID."""
    with _transaction(db):
        cursor = db.execute(
            """
            INSERT INTO routine_blueprints (
                name, to_be_completed_by, allow_multiple_instances_per_day, recurrence, image
            ) VALUES (?, ?, ?, ?, ?)
            """,
            (
                blueprint.name,
                blueprint.to_be_completed_by,
                blueprint.allow_multiple_instances_per_day,
                _recurrence_text(blueprint.recurrence),
                blueprint.image,
            ),
        )
        blueprint_id = cursor.lastrowid
        _insert_chore_links(db, blueprint_id, chore_ids)
    blueprint.id = blueprint_id
    return blueprint


def update_blueprint(
    db: sqlite3.Connection, blueprint: RoutineBlueprint, chore_ids: Iterable[int]
) -> RoutineBlueprint:
    """Store a blueprint's fields and replace its chores in one transaction."""
    with _transaction(db):
        db.execute(
            """
            UPDATE routine_blueprints
            SET name = ?,
                to_be_completed_by = ?,
                allow_multiple_instances_per_day = ?,
                recurrence = ?,
                image = ?,
                modified = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            (
                blueprint.name,
                blueprint.to_be_completed_by,
                blueprint.allow_multiple_instances_per_day,
                _recurrence_text(blueprint.recurrence),
                blueprint.image,
                blueprint.id,
            ),
        )
        db.execute(
            "DELETE FROM routine_blueprint_chores WHERE routine_blueprint_id = ?",
            (blueprint.id,),
        )
        _insert_chore_links(db, blueprint.id, chore_ids)
    return blueprint


def delete_blueprint(db: sqlite3.Connection, blueprint_id: int) -> None:
    """Remove a blueprint and its chore links in one transaction."""
    with _transaction(db):
        db.execute(
            "DELETE FROM routine_blueprint_chores WHERE routine_blueprint_id = ?",
            (blueprint_id,),
        )
        db.execute("DELETE FROM routine_blueprints WHERE id = ?", (blueprint_id,))