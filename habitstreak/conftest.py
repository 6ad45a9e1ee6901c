# habitstreak/conftest.py
from datetime import datetime, timezone

import pytest

from habitstreak.core.locks import KeyedLocks
from habitstreak.features.groups.service import GroupService
from habitstreak.features.habits.service import HabitService
from habitstreak.features.store.memory import InMemoryEntityStore
from habitstreak.features.streaks.calendar import FixedClock, LocalDayCalendar
from habitstreak.features.streaks.service import StreakService
from habitstreak.models.habit import Habit
from habitstreak.models.user import User

# 12:00 in Asia/Kolkata on 2024-03-10
NOON_IST = datetime(2024, 3, 10, 6, 30, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return FixedClock(NOON_IST)


@pytest.fixture
def calendar(clock):
    return LocalDayCalendar(clock=clock, tz_name="Asia/Kolkata")


@pytest.fixture
def store():
    return InMemoryEntityStore()


@pytest.fixture
def locks():
    return KeyedLocks()


@pytest.fixture
def streaks(store, calendar, locks):
    return StreakService(store=store, calendar=calendar, locks=locks)


@pytest.fixture
def habits_service(store, streaks, locks):
    return HabitService(store=store, streaks=streaks, locks=locks)


@pytest.fixture
def groups_service(store, calendar, locks):
    return GroupService(store=store, calendar=calendar, locks=locks)


@pytest.fixture
def add_user(store):
    def _add(user_id: str) -> User:
        user = User(id=user_id, username=user_id)
        store.save_user(user)
        return user
    return _add


@pytest.fixture
def add_habit(store):
    """Insert a habit directly, bypassing the creation trigger."""
    def _add(owner_id: str, habit_id: str, completions=()) -> Habit:
        habit = Habit(id=habit_id, user_id=owner_id, name=habit_id, completions=set(completions), created_at=NOON_IST)
        store.save_habit(habit)
        return habit
    return _add
