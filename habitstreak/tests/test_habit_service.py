import pytest

from habitstreak.core.errors import NotFoundError, UnauthorizedError, ValidationError
from habitstreak.models.habit import HabitSchedule

D1 = "2024-03-10"


def test_create_habit_stores_schedule(habits_service, store):
    schedule = HabitSchedule(active_days=["Mon", "Wed"], reminder_enabled=True, reminder_time="07:00", duration=30)
    habit, result = habits_service.create_habit("u1", " Meditate ", schedule)

    stored = store.find_habit(habit.id)
    assert stored.name == "Meditate"
    assert stored.schedule.active_days == ["Mon", "Wed"]
    assert stored.schedule.duration == 30
    assert stored.completions == set()
    assert result.changed is False


def test_create_habit_requires_name(habits_service):
    with pytest.raises(ValidationError):
        habits_service.create_habit("u1", "")


def test_list_habits_newest_first(habits_service, store):
    first, _ = habits_service.create_habit("u1", "first")
    second, _ = habits_service.create_habit("u1", "second")
    # Creation timestamps come from the wall clock; pin them for a deterministic order
    first.created_at = second.created_at.replace(year=2000)
    store.save_habit(first)

    assert [h.name for h in habits_service.list_habits("u1")] == ["second", "first"]
    assert habits_service.list_habits("someone-else") == []


def test_update_habit_name_only(habits_service):
    habit, _ = habits_service.create_habit("u1", "Read")
    updated, result = habits_service.update_habit(habit.id, "u1", name="Read 10 pages")
    assert updated.name == "Read 10 pages"
    assert result.changed is False


def test_update_habit_rejects_blank_name(habits_service, store):
    habit, _ = habits_service.create_habit("u1", "Read")
    with pytest.raises(ValidationError):
        habits_service.update_habit(habit.id, "u1", name="   ")
    with pytest.raises(ValidationError):
        habits_service.update_habit(habit.id, "u1", name="")
    assert store.find_habit(habit.id).name == "Read"


def test_update_habit_completions_runs_trigger(habits_service):
    habit, _ = habits_service.create_habit("u1", "Read")
    updated, result = habits_service.update_habit(habit.id, "u1", name="Read more", completions=[D1])
    assert updated.name == "Read more"
    assert updated.completions == {D1}
    assert result.transition == "credit"
    assert result.streak_count == 1


def test_update_and_delete_check_owner(habits_service):
    habit, _ = habits_service.create_habit("u1", "Read")
    with pytest.raises(UnauthorizedError):
        habits_service.update_habit(habit.id, "u2", completions=[D1])
    with pytest.raises(UnauthorizedError):
        habits_service.delete_habit(habit.id, "u2")
    with pytest.raises(NotFoundError):
        habits_service.delete_habit("missing", "u1")


def test_delete_habit_returns_streak(habits_service, store):
    habit, _ = habits_service.create_habit("u1", "Read")
    habits_service.update_habit(habit.id, "u1", completions=[D1])

    result = habits_service.delete_habit(habit.id, "u1")

    assert result.transition == "revert"
    assert result.streak_count == 0
    assert store.find_habit(habit.id) is None


def test_ensure_user_is_idempotent(habits_service, store):
    habits_service.ensure_user("u1", display_name="One")
    habits_service.ensure_user("u1")
    assert store.find_user("u1").display_name == "One"
