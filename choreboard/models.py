"""Domain records for chores, routines and routine blueprints."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any


class RecurrenceType(str, Enum):
    """How often a routine blueprint applies."""

    DAILY = "Daily"
    WEEKLY = "Weekly"
    WEEKDAY = "Weekday"


class SourceType(str, Enum):
    """Where a displayable routine comes from."""

    DATABASE = "database"
    BLUEPRINT = "blueprint"


def _timestamp(moment: datetime | None) -> str | None:
    if moment is None:
        return None
    text = moment.isoformat()
    if moment.utcoffset() == timedelta(0) and text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


def _text(value: Any) -> str:
    return value.value if isinstance(value, Enum) else str(value)


def _drop_empty(data: dict[str, Any], *keys: str) -> dict[str, Any]:
    """Remove the given keys where their value is empty (None or "")."""
    for key in keys:
        if data.get(key) in (None, ""):
            data.pop(key, None)
    return data


@dataclass
class User:
    id: int = 0
    created: datetime | None = None
    modified: datetime | None = None
    name: str = ""
    password: str = field(default="", repr=False)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready mapping; the password is never included."""
        return {
            "id": self.id,
            "created": _timestamp(self.created),
            "modified": _timestamp(self.modified),
            "name": self.name,
        }


@dataclass
class Chore:
    id: int = 0
    created: datetime | None = None
    modified: datetime | None = None
    name: str = ""
    default_points: int = 0
    image: str = ""

    def to_dict(self) -> dict[str, Any]:
        data = {
            "id": self.id,
            "created": _timestamp(self.created),
            "modified": _timestamp(self.modified),
            "name": self.name,
            "default_points": self.default_points,
            "image": self.image,
        }
        return _drop_empty(data, "image")


@dataclass
class Routine:
    id: int = 0
    created: datetime | None = None
    modified: datetime | None = None
    owner_id: int = 0
    routine_blueprint_id: int | None = None
    image_url: str = ""
    owner: User | None = None

    def to_dict(self) -> dict[str, Any]:
        data = {
            "id": self.id,
            "created": _timestamp(self.created),
            "modified": _timestamp(self.modified),
            "owner_id": self.owner_id,
            "routine_blueprint_id": self.routine_blueprint_id,
            "image_url": self.image_url,
            "owner": self.owner.to_dict() if self.owner else None,
        }
        return _drop_empty(data, "routine_blueprint_id", "image_url", "owner")


@dataclass
class RoutineBlueprint:
    id: int = 0
    created: datetime | None = None
    modified: datetime | None = None
    name: str = ""
    to_be_completed_by: str = ""
    allow_multiple_instances_per_day: bool = False
    recurrence: RecurrenceType | str = ""
    image: str = ""

    def to_dict(self) -> dict[str, Any]:
        data = {
            "id": self.id,
            "created": _timestamp(self.created),
            "modified": _timestamp(self.modified),
            "name": self.name,
            "to_be_completed_by": self.to_be_completed_by,
            "allow_multiple_instances_per_day": self.allow_multiple_instances_per_day,
            "recurrence": _text(self.recurrence),
            "image": self.image,
        }
        return _drop_empty(data, "recurrence", "image")


@dataclass
class RoutineBlueprintChore:
    id: int = 0
    created: datetime | None = None
    modified: datetime | None = None
    routine_blueprint_id: int = 0
    chore_id: int = 0
    image: str = ""
    chore: Chore | None = None

    def to_dict(self) -> dict[str, Any]:
        data = {
            "id": self.id,
            "created": _timestamp(self.created),
            "modified": _timestamp(self.modified),
            "routine_blueprint_id": self.routine_blueprint_id,
            "chore_id": self.chore_id,
            "image": self.image,
            "chore": self.chore.to_dict() if self.chore else None,
        }
        return _drop_empty(data, "image", "chore")


@dataclass
class ChoreRoutine:
    id: int = 0
    created: datetime | None = None
    modified: datetime | None = None
    completed_at: datetime | None = None
    completed_by_id: int | None = None
    points_awarded: int = 0
    routine_id: int = 0
    chore_id: int = 0
    completed_by: User | None = None
    routine: Routine | None = None
    chore: Chore | None = None

    def to_dict(self) -> dict[str, Any]:
        data = {
            "id": self.id,
            "created": _timestamp(self.created),
            "modified": _timestamp(self.modified),
            "completed_at": _timestamp(self.completed_at),
            "completed_by": self.completed_by_id,
            "points_awarded": self.points_awarded,
            "routine_id": self.routine_id,
            "chore_id": self.chore_id,
            "completed_by_user": self.completed_by.to_dict() if self.completed_by else None,
            "routine": self.routine.to_dict() if self.routine else None,
            "chore": self.chore.to_dict() if self.chore else None,
        }
        return _drop_empty(
            data, "completed_at", "completed_by", "completed_by_user", "routine", "chore"
        )


@dataclass
class DisplayableRoutine:
    """A routine shown to a user: either stored, or derived from a blueprint."""

    id: int = 0
    name: str = ""
    to_be_completed_by: str = ""
    image_url: str = ""
    owner_id: int = 0
    owner: User | None = None
    source_type: SourceType = SourceType.DATABASE
    blueprint_id: int | None = None
    created: datetime | None = None
    modified: datetime | None = None
    chore_count: int = 0
    completed_chores: int = 0
    from_routine: Routine | None = field(default=None, repr=False, compare=False)
    from_blueprint: RoutineBlueprint | None = field(default=None, repr=False, compare=False)

    def is_complete(self) -> bool:
        """True when the routine has chores and all of them are done."""
        return self.chore_count > 0 and self.completed_chores == self.chore_count

    def completion_percentage(self) -> int:
        """Share of completed chores as a whole percentage (0-100)."""
        if self.chore_count == 0:
            return 0
        return (self.completed_chores * 100) // self.chore_count

    def to_dict(self) -> dict[str, Any]:
        data = {
            "id": self.id,
            "name": self.name,
            "to_be_completed_by": self.to_be_completed_by,
            "image_url": self.image_url,
            "owner_id": self.owner_id,
            "owner": self.owner.to_dict() if self.owner else None,
            "source_type": _text(self.source_type),
            "blueprint_id": self.blueprint_id,
            "created": _timestamp(self.created),
            "modified": _timestamp(self.modified),
            "chore_count": self.chore_count,
            "completed_chores": self.completed_chores,
        }
        return _drop_empty(data, "image_url", "owner", "blueprint_id", "created", "modified")