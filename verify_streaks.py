#!/usr/bin/env python
"""
Verification script for habit streak reconciliation.
Walks through credit, revert, creation, deletion and group scenarios on an
in-memory store with a pinned clock.
"""

from datetime import datetime, timezone

from habitstreak.core.locks import KeyedLocks
from habitstreak.features.groups.service import GroupService
from habitstreak.features.habits.service import HabitService
from habitstreak.features.store.memory import InMemoryEntityStore
from habitstreak.features.streaks.calendar import FixedClock, LocalDayCalendar
from habitstreak.features.streaks.service import StreakService
from habitstreak.models.user import User

NOON_IST = datetime(2024, 3, 10, 6, 30, tzinfo=timezone.utc)


def demo_scenario(name: str, demo_fn) -> None:
    print(f"\n{'='*70}")
    print(f"SCENARIO: {name}")
    print('='*70)
    demo_fn()


def _services():
    store = InMemoryEntityStore()
    clock = FixedClock(NOON_IST)
    calendar = LocalDayCalendar(clock=clock, tz_name="Asia/Kolkata")
    locks = KeyedLocks()
    streaks = StreakService(store=store, calendar=calendar, locks=locks)
    habits = HabitService(store=store, streaks=streaks, locks=locks)
    groups = GroupService(store=store, calendar=calendar, locks=locks)
    return store, clock, streaks, habits, groups


def scenario_two_day_run():
    """Complete on D1 and D2, then unmark on D2."""
    store, clock, streaks, habits, _ = _services()
    habit, _ = habits.create_habit("alice", "Meditate")

    d1 = streaks.calendar.today()
    habits.update_habit(habit.id, "alice", completions=[d1])
    clock.advance(days=1)
    d2 = streaks.calendar.today()
    _, result = habits.update_habit(habit.id, "alice", completions=[d1, d2])
    print(f"✓ After D2: streak={result.streak_count} history={store.find_ledger('alice').history}")
    assert result.streak_count == 2

    _, result = habits.update_habit(habit.id, "alice", completions=[d1])
    print(f"✓ After unmarking D2: streak={result.streak_count} history={store.find_ledger('alice').history}")
    assert result.streak_count == 1
    assert store.find_ledger("alice").history == [d1]


def scenario_new_habit_reverts():
    """A habit created after today's credit invalidates it."""
    store, _, streaks, habits, _ = _services()
    today = streaks.calendar.today()
    h1, _ = habits.create_habit("bob", "Run")
    h2, _ = habits.create_habit("bob", "Read")
    habits.update_habit(h1.id, "bob", completions=[today])
    _, result = habits.update_habit(h2.id, "bob", completions=[today])
    print(f"✓ Both complete: streak={result.streak_count}")

    _, result = habits.create_habit("bob", "Stretch")
    print(f"✓ Third habit created: streak={result.streak_count} transition={result.transition}")
    assert result.streak_count == 0
    assert store.find_ledger("bob").last_completed_day is None


def scenario_delete_keeps_credit():
    """Deleting one of two complete habits leaves the count alone."""
    _, _, streaks, habits, _ = _services()
    today = streaks.calendar.today()
    h1, _ = habits.create_habit("carol", "Run")
    h2, _ = habits.create_habit("carol", "Read")
    habits.update_habit(h1.id, "carol", completions=[today])
    habits.update_habit(h2.id, "carol", completions=[today])

    result = habits.delete_habit(h2.id, "carol")
    print(f"✓ After deletion: streak={result.streak_count} changed={result.changed}")
    assert result.streak_count == 1
    assert result.changed is False


def scenario_group_credit_once():
    """Two members complete on the same day; the group advances once."""
    store, _, streaks, habits, groups = _services()
    today = streaks.calendar.today()
    for uid in ("dana", "eli"):
        store.save_user(User(id=uid, username=uid))
    group = groups.create_group("dana", "Pair", members=["eli"])
    hd, _ = habits.create_habit("dana", "Run")
    he, _ = habits.create_habit("eli", "Run")

    habits.update_habit(hd.id, "dana", completions=[today])
    habits.update_habit(he.id, "eli", completions=[today])
    habits.update_habit(he.id, "eli", completions=[today])
    print(f"✓ Group streak: {store.find_group(group.id).group_streak}")
    assert store.find_group(group.id).group_streak == 1

    habits.update_habit(he.id, "eli", completions=[])
    print(f"✓ After eli uncompletes: group streak={store.find_group(group.id).group_streak}")
    assert store.find_group(group.id).group_streak == 1


if __name__ == "__main__":
    demo_scenario("Two-day run with same-day revert", scenario_two_day_run)
    demo_scenario("New habit reverts today's credit", scenario_new_habit_reverts)
    demo_scenario("Deletion keeps a valid credit", scenario_delete_keeps_credit)
    demo_scenario("Group credited exactly once", scenario_group_credit_once)
    print("\nAll scenarios passed.")
