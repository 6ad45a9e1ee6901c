from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple
from uuid import uuid4

from habitstreak.core.errors import NotFoundError, UnauthorizedError, ValidationError
from habitstreak.core.locks import KeyedLocks, entity_locks
from habitstreak.features.store import get_store
from habitstreak.features.store.base import EntityStore
from habitstreak.features.streaks.service import StreakService, streak_service
from habitstreak.models.habit import Habit, HabitSchedule
from habitstreak.models.streak import TransitionResult
from habitstreak.models.user import User


class HabitService:
    """Habit lifecycle; every mutation is handed to the streak engine."""

    def __init__(
        self,
        store: Optional[EntityStore] = None,
        streaks: Optional[StreakService] = None,
        locks: Optional[KeyedLocks] = None,
    ):
        self._store = store
        self.streaks = streaks or streak_service
        self.locks = locks or entity_locks

    @property
    def store(self) -> EntityStore:
        return self._store if self._store is not None else get_store()

    def ensure_user(self, user_id: str, display_name: Optional[str] = None) -> User:
        user = self.store.find_user(user_id)
        if user is None:
            user = User(id=user_id, username=user_id, display_name=display_name)
            self.store.save_user(user)
        return user

    def create_habit(
        self,
        owner_id: str,
        name: str,
        schedule: Optional[HabitSchedule] = None,
    ) -> Tuple[Habit, TransitionResult]:
        if not name or not name.strip():
            raise ValidationError("Habit name is required")
        habit = Habit(
            id=str(uuid4()),
            user_id=owner_id,
            name=name.strip(),
            schedule=schedule or HabitSchedule(),
            completions=set(),
            created_at=datetime.now(timezone.utc),
        )
        with self.locks.user(owner_id):
            self.store.save_habit(habit)
            result = self.streaks.on_habit_created(owner_id)
        return habit, result

    def list_habits(self, owner_id: str) -> List[Habit]:
        habits = self.store.find_habits(owner_id)
        epoch = datetime.min.replace(tzinfo=timezone.utc)
        return sorted(habits, key=lambda h: _aware(h.created_at) or epoch, reverse=True)

    def get_habit(self, habit_id: str, acting_user_id: Optional[str] = None) -> Habit:
        habit = self.store.find_habit(habit_id)
        if habit is None:
            raise NotFoundError(f"Habit {habit_id} not found")
        if acting_user_id is not None and habit.user_id != acting_user_id:
            raise UnauthorizedError("Not authorized")
        return habit

    def update_habit(
        self,
        habit_id: str,
        acting_user_id: Optional[str] = None,
        *,
        name: Optional[str] = None,
        completions: Optional[Iterable[str]] = None,
    ) -> Tuple[Habit, TransitionResult]:
        habit = self.get_habit(habit_id, acting_user_id)
        if name is not None:
            if not name.strip():
                raise ValidationError("Habit name is required")
            with self.locks.user(habit.user_id):
                habit = self.get_habit(habit_id, acting_user_id)
                habit.name = name.strip()
                self.store.save_habit(habit)

        if completions is None:
            state = self.streaks.get_state(habit.user_id)
            return habit, TransitionResult(streak_count=state["streak_count"], changed=False)

        result = self.streaks.on_habit_completion_changed(habit_id, completions, acting_user_id=acting_user_id)
        return self.get_habit(habit_id), result

    def delete_habit(self, habit_id: str, acting_user_id: Optional[str] = None) -> TransitionResult:
        return self.streaks.on_habit_deleted(habit_id, acting_user_id=acting_user_id)


def _aware(moment: Optional[datetime]) -> Optional[datetime]:
    if moment is None or moment.tzinfo is not None:
        return moment
    return moment.replace(tzinfo=timezone.utc)


habit_service = HabitService()
