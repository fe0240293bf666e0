from datetime import datetime, timezone

import pytest

from choreboard.models import (
    Chore,
    ChoreRoutine,
    DisplayableRoutine,
    RecurrenceType,
    Routine,
    RoutineBlueprint,
    RoutineBlueprintChore,
    SourceType,
    User,
)

MOMENT = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def test_user_to_dict_never_includes_password():
    password = "password"
    user = User(id=7, name="admin", password=password)
    data = user.to_dict()
    assert "password" not in data
    assert data["name"] == "admin"
    assert data["id"] == 7


def test_chore_to_dict_omits_empty_image():
    data = Chore(id=1, name="Dishes", default_points=5).to_dict()
    assert "image" not in data
    assert data["default_points"] == 5


def test_chore_to_dict_keeps_image_and_formats_time():
    data = Chore(id=1, name="Dishes", default_points=5, image="dish.avif", created=MOMENT).to_dict()
    assert data["image"] == "dish.avif"
    assert data["created"] == "2024-01-02T03:04:05Z"


def test_routine_to_dict_optional_fields():
    bare = Routine(id=3, owner_id=1).to_dict()
    assert "routine_blueprint_id" not in bare
    assert "owner" not in bare
    assert "image_url" not in bare

    password = "password"
    full = Routine(
        id=3, owner_id=1, routine_blueprint_id=9, image_url="x.avif",
        owner=User(id=1, name="admin", password=password),
    ).to_dict()
    assert full["routine_blueprint_id"] == 9
    assert full["owner"]["name"] == "admin"
    assert "password" not in full["owner"]


def test_blueprint_recurrence_serialised_as_text():
    data = RoutineBlueprint(id=2, name="Morning", recurrence=RecurrenceType.DAILY).to_dict()
    assert data["recurrence"] == "Daily"
    assert "recurrence" not in RoutineBlueprint(id=2).to_dict()


def test_recurrence_lookup_by_value():
    assert RecurrenceType("Weekday") is RecurrenceType.WEEKDAY
    assert RecurrenceType.WEEKLY == "Weekly"


def test_blueprint_chore_nests_chore():
    item = RoutineBlueprintChore(id=4, routine_blueprint_id=2, chore_id=1, chore=Chore(id=1, name="Teeth"))
    data = item.to_dict()
    assert data["chore"]["name"] == "Teeth"
    assert "image" not in data


def test_chore_routine_incomplete_omits_completion():
    data = ChoreRoutine(id=1, routine_id=2, chore_id=3, points_awarded=4).to_dict()
    assert "completed_at" not in data
    assert "completed_by" not in data
    assert "chore" not in data
    assert data["points_awarded"] == 4


def test_chore_routine_completed_fields():
    data = ChoreRoutine(id=1, completed_at=MOMENT, completed_by_id=8, chore=Chore(id=3)).to_dict()
    assert data["completed_by"] == 8
    assert data["completed_at"].startswith("2024-01-02T03:04:05")
    assert data["chore"]["id"] == 3


@pytest.mark.parametrize(
    "count, completed, expected",
    [(0, 0, False), (3, 3, True), (3, 2, False)],
)
def test_is_complete(count, completed, expected):
    routine = DisplayableRoutine(chore_count=count, completed_chores=completed)
    assert routine.is_complete() is expected


@pytest.mark.parametrize(
    "count, completed, expected",
    [(0, 0, 0), (4, 4, 100), (3, 1, 33)],
)
def test_completion_percentage(count, completed, expected):
    routine = DisplayableRoutine(chore_count=count, completed_chores=completed)
    assert routine.completion_percentage() == expected


def test_completion_percentage_stays_in_range():
    for count in range(1, 8):
        for completed in range(count + 1):
            value = DisplayableRoutine(chore_count=count, completed_chores=completed).completion_percentage()
            assert 0 <= value <= 100


def test_displayable_routine_to_dict_hides_sources():
    blueprint = RoutineBlueprint(id=5, name="Evening")
    routine = DisplayableRoutine(
        id=-5, name="Evening", source_type=SourceType.BLUEPRINT, blueprint_id=5,
        chore_count=2, from_blueprint=blueprint,
    )
    data = routine.to_dict()
    assert data["source_type"] == "blueprint"
    assert data["blueprint_id"] == 5
    assert "from_blueprint" not in data
    assert "from_routine" not in data
    assert "created" not in data