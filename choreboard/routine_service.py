"""Selecting the routines that are relevant to a user right now."""

from __future__ import annotations

import logging
import re
import sqlite3
from datetime import datetime

from .blueprints import get_blueprint_chores, get_blueprints
from .models import (
    DisplayableRoutine,
    RecurrenceType,
    RoutineBlueprint,
    RoutineBlueprintChore,
    SourceType,
)
from .routines import get_chore_counts_for_routine, get_routines

log = logging.getLogger(__name__)

UNKNOWN_TIME_PRIORITY = 1000

_PRIORITIES = {
    "morning": 10,
    "breakfast": 20,
    "noon": 30,
    "lunch": 40,
    "afternoon": 50,
    "evening": 60,
    "dinner": 70,
    "night": 80,
    "bedtime": 90,
}

_CLOCK_TIME = re.compile(r"(\d{1,2})[:.]?(\d{2})?\s*(am|pm)?", re.ASCII)


def time_of_day_priority(time_str: str) -> int:
    """Return a sort key for a time-of-day description; lower comes first.

    Named periods ("morning", "dinner", ...) have fixed priorities; clock
    times ("8:00", "2pm") map to minutes after midnight; anything else sorts
    last.
    """
    text = time_str.lower()
    if text in _PRIORITIES:
        return _PRIORITIES[text]
    for key, priority in _PRIORITIES.items():
        if key in text:
            return priority

    match = _CLOCK_TIME.search(text)
    if match:
        hour = int(match[1])
        suffix = match[3]
        if suffix == "pm" and hour < 12:
            hour += 12
        elif suffix == "am" and hour == 12:
            hour = 0
        minutes = int(match[2]) if match[2] else 0
        return hour * 60 + minutes

    return UNKNOWN_TIME_PRIORITY


def _applies_on(recurrence: RecurrenceType | str, weekday: int) -> bool:
    if recurrence in (RecurrenceType.DAILY, RecurrenceType.WEEKLY):
        return True
    if recurrence == RecurrenceType.WEEKDAY:
        return weekday < 5  # Monday to Friday
    return False


def _first_chore_image(links: list[RoutineBlueprintChore]) -> str:
    if not links:
        return ""
    first = links[0]
    if first.image:
        return first.image
    if first.chore is not None and first.chore.image:
        return first.chore.image
    return ""


class RoutineService:
    """Business logic concerning routines."""

    def __init__(self, db: sqlite3.Connection):
        self.db = db

    def _chore_counts(self, routine_id: int) -> tuple[int, int]:
        try:
            return get_chore_counts_for_routine(self.db, routine_id)
        except sqlite3.Error as exc:
            log.error("Error counting chores for routine %d: %s", routine_id, exc)
            return 0, 0

    def _blueprint_chores(self, blueprint: RoutineBlueprint) -> list[RoutineBlueprintChore]:
        try:
            return get_blueprint_chores(self.db, blueprint.id)
        except sqlite3.Error as exc:
            log.error("Error fetching chores for blueprint %d: %s", blueprint.id, exc)
            return []

    def get_relevant_routines(
        self, user_id: int, now: datetime | None = None
    ) -> list[DisplayableRoutine]:
        """Return the user's stored routines plus virtual routines for the
        blueprints that apply today, ordered by time of day."""
        weekday = (now or datetime.now()).weekday()

        stored_routines = get_routines(self.db, user_id)
        blueprints = get_blueprints(self.db)
        by_id = {blueprint.id: blueprint for blueprint in blueprints}

        relevant: list[DisplayableRoutine] = []
        covered: set[int] = set()

        for routine in stored_routines:
            blueprint_id = routine.routine_blueprint_id
            if blueprint_id is None:
                continue
            blueprint = by_id.get(blueprint_id)
            if blueprint is None:
                log.warning(
                    "Routine %d links to non-existent blueprint %d", routine.id, blueprint_id
                )
                continue

            total, completed = self._chore_counts(routine.id)
            relevant.append(
                DisplayableRoutine(
                    id=routine.id,
                    name=blueprint.name,
                    to_be_completed_by=blueprint.to_be_completed_by,
                    image_url=routine.image_url or blueprint.image,
                    owner_id=routine.owner_id,
                    owner=routine.owner,
                    source_type=SourceType.DATABASE,
                    blueprint_id=blueprint_id,
                    created=routine.created,
                    modified=routine.modified,
                    chore_count=total,
                    completed_chores=completed,
                    from_routine=routine,
                    from_blueprint=blueprint,
                )
            )
            covered.add(blueprint_id)

        for blueprint in blueprints:
            if blueprint.id in covered or not _applies_on(blueprint.recurrence, weekday):
                continue
            links = self._blueprint_chores(blueprint)
            relevant.append(
                DisplayableRoutine(
                    id=-blueprint.id,
                    name=blueprint.name,
                    to_be_completed_by=blueprint.to_be_completed_by,
                    image_url=blueprint.image or _first_chore_image(links),
                    owner_id=user_id,
                    source_type=SourceType.BLUEPRINT,
                    blueprint_id=blueprint.id,
                    chore_count=len(links),
                    completed_chores=0,
                    from_blueprint=blueprint,
                )
            )

        relevant.sort(key=lambda item: time_of_day_priority(item.to_be_completed_by))
        return relevant