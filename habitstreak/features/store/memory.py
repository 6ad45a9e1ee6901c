"""
In-memory entity store.

Used in tests and whenever no database is configured. Every read hands back a
copy so callers cannot mutate stored state without an explicit save.
"""

from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Optional

from habitstreak.core.errors import ConflictError
from habitstreak.models.group import Group
from habitstreak.models.habit import Habit
from habitstreak.models.streak import StreakLedger
from habitstreak.models.user import User


class InMemoryEntityStore:
    def __init__(self):
        self._habits: Dict[str, Habit] = {}
        self._ledgers: Dict[str, StreakLedger] = {}
        self._groups: Dict[str, Group] = {}
        self._users: Dict[str, User] = {}
        self._lock = threading.Lock()

    # Habits -----------------------------------------------------------
    def find_habits(self, owner_id: str) -> List[Habit]:
        with self._lock:
            return [h.copy() for h in self._habits.values() if h.user_id == owner_id]

    def find_habit(self, habit_id: str) -> Optional[Habit]:
        with self._lock:
            habit = self._habits.get(habit_id)
            return habit.copy() if habit else None

    def save_habit(self, habit: Habit) -> None:
        with self._lock:
            self._habits[habit.id] = habit.copy()

    def delete_habit(self, habit_id: str) -> None:
        with self._lock:
            self._habits.pop(habit_id, None)

    # Ledgers ----------------------------------------------------------
    def find_ledger(self, owner_id: str) -> Optional[StreakLedger]:
        with self._lock:
            ledger = self._ledgers.get(owner_id)
            return ledger.copy() if ledger else None

    def create_ledger(self, owner_id: str) -> StreakLedger:
        with self._lock:
            if owner_id in self._ledgers:
                raise ConflictError(f"Ledger for {owner_id} already exists")
            ledger = StreakLedger(user_id=owner_id)
            self._ledgers[owner_id] = ledger
            return ledger.copy()

    def save_ledger(self, ledger: StreakLedger) -> None:
        with self._lock:
            self._ledgers[ledger.user_id] = ledger.copy()

    # Groups -----------------------------------------------------------
    def find_group(self, group_id: str) -> Optional[Group]:
        with self._lock:
            group = self._groups.get(group_id)
            return group.copy() if group else None

    def find_groups_by_member(self, user_id: str, active_only: bool = True) -> List[Group]:
        with self._lock:
            return [
                g.copy()
                for g in self._groups.values()
                if user_id in g.members and (g.is_active or not active_only)
            ]

    def find_groups_by_habit_link(self, habit_id: str) -> List[Group]:
        with self._lock:
            return [g.copy() for g in self._groups.values() if g.links_habit(habit_id)]

    def save_group(self, group: Group) -> None:
        with self._lock:
            self._groups[group.id] = group.copy()

    # Users ------------------------------------------------------------
    def find_user(self, user_id: str) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            return User(user.id, user.username, user.display_name) if user else None

    def find_users(self, ids: Iterable[str]) -> List[User]:
        wanted = list(ids)
        with self._lock:
            return [
                User(u.id, u.username, u.display_name)
                for uid in wanted
                for u in [self._users.get(uid)]
                if u is not None
            ]

    def save_user(self, user: User) -> None:
        with self._lock:
            self._users[user.id] = User(user.id, user.username, user.display_name)

    def clear(self) -> None:
        """FOR TESTING ONLY."""
        with self._lock:
            self._habits.clear()
            self._ledgers.clear()
            self._groups.clear()
            self._users.clear()
