"""
Entity store contract consumed by the streak core.

Implementations return detached copies; callers write back with ``save_*``.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Protocol

from habitstreak.models.group import Group
from habitstreak.models.habit import Habit
from habitstreak.models.streak import StreakLedger
from habitstreak.models.user import User


class EntityStore(Protocol):
    # Habits
    def find_habits(self, owner_id: str) -> List[Habit]: ...
    def find_habit(self, habit_id: str) -> Optional[Habit]: ...
    def save_habit(self, habit: Habit) -> None: ...
    def delete_habit(self, habit_id: str) -> None: ...

    # Ledgers
    def find_ledger(self, owner_id: str) -> Optional[StreakLedger]: ...
    def create_ledger(self, owner_id: str) -> StreakLedger: ...
    def save_ledger(self, ledger: StreakLedger) -> None: ...

    # Groups
    def find_group(self, group_id: str) -> Optional[Group]: ...
    def find_groups_by_member(self, user_id: str, active_only: bool = True) -> List[Group]: ...
    def find_groups_by_habit_link(self, habit_id: str) -> List[Group]: ...
    def save_group(self, group: Group) -> None: ...

    # Users
    def find_user(self, user_id: str) -> Optional[User]: ...
    def find_users(self, ids: Iterable[str]) -> List[User]: ...
    def save_user(self, user: User) -> None: ...

    def clear(self) -> None: ...
