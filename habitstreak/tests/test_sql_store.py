"""
SQL entity store, exercised against in-memory SQLite.

Covers:
- Round trips for habits, ledgers, groups and users
- Group lookups by member and by habit link
- Store failures surfacing as StoreFailureError
- The streak engine running end to end on the SQL store
"""

import pytest

from habitstreak.core.database import create_all_tables, dispose_engine, drop_all_tables, init_engine
from habitstreak.core.errors import ConflictError, StoreFailureError
from habitstreak.features.store.sql import SqlEntityStore
from habitstreak.features.streaks.service import StreakService
from habitstreak.models.group import Group, HabitLink
from habitstreak.models.habit import Habit, HabitSchedule
from habitstreak.models.streak import StreakLedger
from habitstreak.models.user import User

D1 = "2024-03-10"


@pytest.fixture
def sql_store():
    init_engine("sqlite://")
    create_all_tables()
    yield SqlEntityStore()
    drop_all_tables()
    dispose_engine()


def test_habit_round_trip(sql_store):
    habit = Habit(
        id="h1",
        user_id="u1",
        name="Run",
        schedule=HabitSchedule(active_days=["Mon"], visibility="friends"),
        completions={"2024-03-09", D1},
    )
    sql_store.save_habit(habit)

    loaded = sql_store.find_habit("h1")
    assert loaded.completions == {"2024-03-09", D1}
    assert loaded.schedule.active_days == ["Mon"]
    assert loaded.schedule.visibility == "friends"
    assert [h.id for h in sql_store.find_habits("u1")] == ["h1"]

    loaded.completions = set()
    loaded.name = "Run far"
    sql_store.save_habit(loaded)
    again = sql_store.find_habit("h1")
    assert (again.name, again.completions) == ("Run far", set())

    sql_store.delete_habit("h1")
    assert sql_store.find_habit("h1") is None
    assert sql_store.find_habits("u1") == []


def test_ledger_create_and_save(sql_store):
    assert sql_store.find_ledger("u1") is None
    created = sql_store.create_ledger("u1")
    assert (created.streak_count, created.last_completed_day, created.history) == (0, None, [])

    with pytest.raises(ConflictError):
        sql_store.create_ledger("u1")

    sql_store.save_ledger(StreakLedger(user_id="u1", streak_count=2, last_completed_day=D1, history=["2024-03-09", D1]))
    loaded = sql_store.find_ledger("u1")
    assert loaded.streak_count == 2
    assert loaded.history == ["2024-03-09", D1]
    assert loaded.last_completed_day == D1


def test_save_ledger_inserts_when_missing(sql_store):
    sql_store.save_ledger(StreakLedger(user_id="u9", streak_count=1, last_completed_day=D1, history=[D1]))
    assert sql_store.find_ledger("u9").streak_count == 1


def test_group_round_trip_and_lookups(sql_store):
    group = Group(
        id="g1",
        name="Pair",
        creator_id="alice",
        members=["alice", "bob"],
        member_habits=[HabitLink("alice", "ha")],
    )
    sql_store.save_group(group)
    sql_store.save_group(Group(id="g2", name="Old", creator_id="bob", members=["bob"], is_active=False))

    loaded = sql_store.find_group("g1")
    assert loaded.members == ["alice", "bob"]
    assert loaded.member_habits == [HabitLink("alice", "ha")]

    assert [g.id for g in sql_store.find_groups_by_member("bob")] == ["g1"]
    assert sorted(g.id for g in sql_store.find_groups_by_member("bob", active_only=False)) == ["g1", "g2"]
    assert [g.id for g in sql_store.find_groups_by_habit_link("ha")] == ["g1"]
    assert sql_store.find_groups_by_habit_link("zzz") == []

    loaded.group_streak = 3
    loaded.last_group_completed_day = D1
    loaded.members = ["alice"]
    loaded.member_habits = []
    sql_store.save_group(loaded)
    again = sql_store.find_group("g1")
    assert (again.group_streak, again.last_group_completed_day) == (3, D1)
    assert again.members == ["alice"]
    assert sql_store.find_groups_by_habit_link("ha") == []


def test_users_lookup_preserves_requested_order(sql_store):
    sql_store.save_user(User(id="a", username="a"))
    sql_store.save_user(User(id="b", username="b", display_name="Bee"))
    assert [u.id for u in sql_store.find_users(["b", "missing", "a"])] == ["b", "a"]
    assert sql_store.find_users([]) == []
    assert sql_store.find_user("b").display_name == "Bee"


def test_store_failure_is_typed(sql_store):
    drop_all_tables()
    with pytest.raises(StoreFailureError):
        sql_store.find_habit("h1")
    with pytest.raises(StoreFailureError):
        sql_store.save_ledger(StreakLedger(user_id="u1"))
    create_all_tables()


def test_engine_on_sql_store(sql_store, calendar, locks):
    streaks = StreakService(store=sql_store, calendar=calendar, locks=locks)
    sql_store.save_user(User(id="u1", username="u1"))
    sql_store.save_habit(Habit(id="h1", user_id="u1", name="Run"))
    sql_store.save_group(Group(id="g1", name="Solo", creator_id="u1", members=["u1"], member_habits=[HabitLink("u1", "h1")]))

    result = streaks.on_habit_completion_changed("h1", [D1])
    assert result.streak_count == 1
    assert sql_store.find_group("g1").group_streak == 1

    result = streaks.on_habit_deleted("h1")
    assert result.transition == "revert"
    group = sql_store.find_group("g1")
    assert group.group_streak == 0
    assert group.member_habits == []
