from types import SimpleNamespace

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError

from habit_tracker.models.habit import Category, HabitCompletion
from habit_tracker.schemas.schema_habit import HabitCreate, HabitUpdate
from habit_tracker.services import habits as habit_service
from habit_tracker.services.errors import Forbidden, InvalidId, NotFound, StoreFailure, Unauthenticated

from tests.conftest import ALICE, BOB


def make_habit(db, identity=ALICE, **overrides):
    data = {
        "title": "Morning Run",
        "description": "Run 3km before breakfast",
        "category": "Morning",
        "reminderTime": "06:30",
    }
    data.update(overrides)
    return habit_service.create_habit(db, HabitCreate.model_validate(data), identity)


# ---------- create ----------
def test_create_stamps_owner_and_defaults(db, clock):
    row = make_habit(db)

    assert row.id
    assert row.owner_email == "alice@x.com"
    assert row.owner_name == "alice"
    assert row.is_public is True
    assert row.completions == []
    assert row.created_at == clock.now


def test_create_keeps_explicit_private_flag(db, clock):
    row = make_habit(db, isPublic=False)
    assert row.is_public is False


def test_create_requires_identity(db, clock):
    with pytest.raises(Unauthenticated):
        make_habit(db, identity=None)


@pytest.mark.parametrize(
    "overrides",
    [
        {"category": "Weekend"},
        {"title": "x" * 101},
        {"description": "x" * 501},
        {"ownerEmail": "mallory@x.com"},
        {"streak": 10},
    ],
)
def test_create_schema_rejects_invalid_input(overrides):
    data = {
        "title": "Read",
        "description": "Read 20 pages",
        "category": "Study",
        "reminderTime": "21:00",
    }
    data.update(overrides)
    with pytest.raises(ValidationError):
        HabitCreate.model_validate(data)


def test_create_schema_requires_core_fields():
    with pytest.raises(ValidationError):
        HabitCreate.model_validate({"title": "Read", "category": "Study"})


# ---------- featured / public ----------
def test_featured_returns_six_newest_public(db, clock):
    for i in range(8):
        make_habit(db, title=f"Public {i}")
        clock.tick(minutes=1)
    make_habit(db, title="Secret", isPublic=False)

    rows = habit_service.list_featured(db)

    assert len(rows) == 6
    assert all(r.is_public for r in rows)
    assert [r.title for r in rows] == [f"Public {i}" for i in range(7, 1, -1)]
    assert [r.id for r in habit_service.list_featured(db)] == [r.id for r in rows]


def test_featured_tie_order_is_stable(db, clock):
    for i in range(3):
        make_habit(db, title=f"Same time {i}")

    first = [r.id for r in habit_service.list_featured(db)]
    second = [r.id for r in habit_service.list_featured(db)]
    assert first == second
    assert first == sorted(first, reverse=True)


def test_public_search_matches_title_substring(db, clock):
    make_habit(db, title="Morning Run")
    clock.tick(minutes=1)
    make_habit(db, title="Evening Walk", description="Walk the dog", category="Evening")

    rows = habit_service.list_public(db, search="Morning")
    assert [r.title for r in rows] == ["Morning Run"]


def test_public_search_is_case_insensitive_and_covers_description(db, clock):
    make_habit(db, title="Stretch", description="Gentle MORNING yoga")
    clock.tick(minutes=1)
    make_habit(db, title="Evening Walk", description="Walk the dog", category="Evening")

    rows = habit_service.list_public(db, search="morning")
    assert [r.title for r in rows] == ["Stretch"]


def test_public_search_treats_wildcards_literally(db, clock):
    make_habit(db, title="100% focus", category="Work")
    clock.tick(minutes=1)
    make_habit(db, title="Deep work", category="Work")

    rows = habit_service.list_public(db, search="%")
    assert [r.title for r in rows] == ["100% focus"]


def test_public_filters_compose(db, clock):
    make_habit(db, title="Morning Run", category="Fitness")
    clock.tick(minutes=1)
    make_habit(db, title="Morning Pages", category="Study")
    clock.tick(minutes=1)
    make_habit(db, title="Morning Secret", category="Fitness", isPublic=False)

    rows = habit_service.list_public(db, search="morning", category=Category.fitness)
    assert [r.title for r in rows] == ["Morning Run"]

    everything = habit_service.list_public(db)
    assert [r.title for r in everything] == ["Morning Pages", "Morning Run"]


# ---------- owned ----------
def test_list_owned_only_returns_own_habits(db, clock):
    make_habit(db, title="Alice public")
    clock.tick(minutes=1)
    make_habit(db, title="Alice private", isPublic=False)
    clock.tick(minutes=1)
    make_habit(db, identity=BOB, title="Bob habit")

    rows = habit_service.list_owned(db, ALICE)
    assert [r.title for r in rows] == ["Alice private", "Alice public"]


def test_list_owned_requires_identity(db):
    with pytest.raises(Unauthenticated):
        habit_service.list_owned(db, None)


# ---------- detail ----------
def test_private_habit_visible_only_to_owner(db, clock):
    row = make_habit(db, isPublic=False)

    with pytest.raises(Forbidden):
        habit_service.get_detail(db, row.id, BOB)
    with pytest.raises(Forbidden):
        habit_service.get_detail(db, row.id, None)

    assert habit_service.get_detail(db, row.id, ALICE).id == row.id


def test_public_habit_visible_without_identity(db, clock):
    row = make_habit(db)
    assert habit_service.get_detail(db, row.id).title == "Morning Run"


def test_detail_distinguishes_invalid_and_missing_ids(db):
    with pytest.raises(InvalidId):
        habit_service.get_detail(db, "not-an-id", ALICE)
    with pytest.raises(NotFound):
        habit_service.get_detail(db, "6f1c1f0e-5b0a-4c8e-9a55-1c2b3d4e5f60", ALICE)


# ---------- update ----------
def test_update_ignores_protected_fields(db, clock):
    row = make_habit(db)
    created_at = row.created_at
    patch = HabitUpdate.model_validate({
        "title": "Sunrise Run",
        "ownerEmail": "bob@x.com",
        "ownerName": "bob",
        "createdAt": "2020-01-01T00:00:00",
        "completionHistory": ["2020-01-01T00:00:00"],
    })

    updated = habit_service.update_habit(db, row.id, patch, ALICE)

    assert updated.title == "Sunrise Run"
    assert updated.owner_email == "alice@x.com"
    assert updated.owner_name == "alice"
    assert updated.created_at == created_at
    assert updated.completions == []


def test_update_only_changes_named_fields(db, clock):
    row = make_habit(db, image="https://img.example/run.png")
    patch = HabitUpdate.model_validate({"isPublic": False})

    updated = habit_service.update_habit(db, row.id, patch, ALICE)

    assert updated.is_public is False
    assert updated.title == "Morning Run"
    assert updated.image == "https://img.example/run.png"


def test_update_with_no_changes_still_succeeds(db, clock):
    row = make_habit(db)
    updated = habit_service.update_habit(db, row.id, HabitUpdate.model_validate({"title": "Morning Run"}), ALICE)
    assert updated.title == "Morning Run"

    unchanged = habit_service.update_habit(db, row.id, HabitUpdate(), ALICE)
    assert unchanged.id == row.id


def test_update_by_non_owner_is_forbidden(db, clock):
    row = make_habit(db)

    with pytest.raises(Forbidden):
        habit_service.update_habit(db, row.id, HabitUpdate.model_validate({"title": "Hijacked"}), BOB)
    with pytest.raises(Forbidden):
        habit_service.update_habit(db, row.id, HabitUpdate(), BOB)

    assert habit_service.get_detail(db, row.id).title == "Morning Run"


def test_update_missing_habit(db):
    with pytest.raises(NotFound):
        habit_service.update_habit(
            db, "6f1c1f0e-5b0a-4c8e-9a55-1c2b3d4e5f60", HabitUpdate.model_validate({"title": "x"}), ALICE
        )


def test_update_schema_rejects_blank_title():
    with pytest.raises(ValidationError):
        HabitUpdate.model_validate({"title": "   "})


def test_update_strips_title_whitespace(db, clock):
    row = make_habit(db)
    updated = habit_service.update_habit(db, row.id, HabitUpdate.model_validate({"title": "  Sunrise Run "}), ALICE)
    assert updated.title == "Sunrise Run"


def test_update_schema_rejects_null_required_field():
    with pytest.raises(ValidationError):
        HabitUpdate.model_validate({"title": None})


# ---------- delete ----------
def test_delete_by_owner_removes_habit_and_history(db, clock):
    row = make_habit(db)
    habit_service.complete_habit(db, row.id, ALICE)

    habit_service.delete_habit(db, row.id, ALICE)

    with pytest.raises(NotFound):
        habit_service.get_detail(db, row.id, ALICE)
    assert db.query(HabitCompletion).count() == 0


def test_delete_by_non_owner_is_forbidden(db, clock):
    row = make_habit(db)

    with pytest.raises(Forbidden):
        habit_service.delete_habit(db, row.id, BOB)
    assert habit_service.get_detail(db, row.id).id == row.id


def test_delete_twice_reports_not_found(db, clock):
    row = make_habit(db)
    habit_service.delete_habit(db, row.id, ALICE)

    with pytest.raises(NotFound):
        habit_service.delete_habit(db, row.id, ALICE)


# ---------- complete ----------
def test_complete_twice_same_day_records_once(db, clock):
    row = make_habit(db)

    first, already = habit_service.complete_habit(db, row.id, ALICE)
    assert already is False
    assert len(first.completions) == 1

    clock.tick(hours=10)
    second, already = habit_service.complete_habit(db, row.id, ALICE)
    assert already is True
    assert len(second.completions) == 1


def test_complete_stores_raw_timestamp(db, clock):
    row = make_habit(db)
    clock.tick(hours=3, minutes=17)

    habit, _ = habit_service.complete_habit(db, row.id, ALICE)

    assert habit.completions[0].completed_at == clock.now
    assert habit.completions[0].completed_on == clock.now.date()


def test_complete_on_next_day_appends(db, clock):
    row = make_habit(db)
    habit_service.complete_habit(db, row.id, ALICE)

    clock.tick(hours=16)  # 8시 + 16시간 = 다음날 0시
    habit, already = habit_service.complete_habit(db, row.id, ALICE)

    assert already is False
    assert [c.completed_on.day for c in habit.completions] == [1, 2]


def test_complete_by_non_owner_is_forbidden(db, clock):
    row = make_habit(db)

    with pytest.raises(Forbidden):
        habit_service.complete_habit(db, row.id, BOB)
    with pytest.raises(Unauthenticated):
        habit_service.complete_habit(db, row.id, None)


def test_concurrent_same_day_completion_reports_already_completed(db, clock, monkeypatch):
    row = make_habit(db)
    habit_service.complete_habit(db, row.id, ALICE)

    # 다른 요청이 먼저 기록했지만 이 요청의 조회에는 아직 안 보이는 상황
    monkeypatch.setattr(habit_service, "_load_owned", lambda db, hid, identity: SimpleNamespace(completions=[]))
    clock.tick(minutes=5)

    habit, already = habit_service.complete_habit(db, row.id, ALICE)

    assert already is True
    assert habit.id == row.id
    assert len(habit.completions) == 1


def test_same_day_duplicate_is_rejected_by_store(db, clock):
    row = make_habit(db)
    db.add(HabitCompletion(habit_id=row.id, completed_at=clock.now, completed_on=clock.now.date()))
    db.add(HabitCompletion(habit_id=row.id, completed_at=clock.now, completed_on=clock.now.date()))

    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


# ---------- store failure ----------
def test_store_errors_are_wrapped(db, monkeypatch):
    def boom(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection lost"))

    monkeypatch.setattr(db, "execute", boom)

    with pytest.raises(StoreFailure) as exc_info:
        habit_service.list_featured(db)
    assert "connection lost" not in exc_info.value.message


def test_errors_fall_back_to_default_message():
    assert NotFound().message == "Habit not found."
    assert Forbidden("Not yours.").message == "Not yours."
    assert StoreFailure().status_code == 500
