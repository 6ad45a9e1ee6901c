"""
Group membership and habit links.

Membership changes re-evaluate the group for today through the propagator, so
removing the last incomplete member can complete the group. They never revert
a group credit.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, Optional
from uuid import uuid4

from habitstreak.core.errors import NotFoundError, UnauthorizedError, ValidationError
from habitstreak.core.locks import KeyedLocks, entity_locks
from habitstreak.core.logging import log_event
from habitstreak.features.groups.propagator import GroupStreakPropagator
from habitstreak.features.store import get_store
from habitstreak.features.store.base import EntityStore
from habitstreak.features.streaks.calendar import LocalDayCalendar, day_calendar
from habitstreak.models.group import Group, HabitLink


class GroupService:
    def __init__(
        self,
        store: Optional[EntityStore] = None,
        calendar: Optional[LocalDayCalendar] = None,
        locks: Optional[KeyedLocks] = None,
    ):
        self._store = store
        self.calendar = calendar or day_calendar
        self.locks = locks or entity_locks

    @property
    def store(self) -> EntityStore:
        return self._store if self._store is not None else get_store()

    @property
    def propagator(self) -> GroupStreakPropagator:
        return GroupStreakPropagator(self.store, self.locks)

    def create_group(
        self,
        creator_id: str,
        name: str,
        *,
        members: Iterable[str] = (),
        tracking_type: str = "shared",
        duration: int = 0,
        avatar: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Group:
        if not name or not name.strip():
            raise ValidationError("Group name is required")
        if tracking_type not in ("shared", "individual"):
            raise ValidationError(f"Unsupported tracking type: {tracking_type}")

        member_ids = list(dict.fromkeys([creator_id, *members]))
        self._require_users(member_ids)

        group = Group(
            id=str(uuid4()),
            name=name.strip(),
            creator_id=creator_id,
            members=member_ids,
            tracking_type=tracking_type,
            duration=duration,
            description=description,
            created_at=datetime.now(timezone.utc),
        )
        if avatar:
            group.avatar = avatar
        self.store.save_group(group)
        log_event("info", "group.created", user_id=creator_id, group_id=group.id, event_type="group.created")
        return group

    def get_group(self, group_id: str) -> Group:
        group = self.store.find_group(group_id)
        if group is None:
            raise NotFoundError(f"Group {group_id} not found")
        return group

    def list_groups(self, user_id: str, active_only: bool = True) -> List[Group]:
        return self.store.find_groups_by_member(user_id, active_only=active_only)

    def add_member(self, group_id: str, user_id: str, *, acting_user_id: Optional[str] = None) -> Group:
        self._require_users([user_id])
        with self.locks.group(group_id):
            group = self._load_for_member(group_id, acting_user_id)
            if user_id not in group.members:
                group.members.append(user_id)
                self.store.save_group(group)
        return self._reevaluate(group_id) or group

    def remove_member(self, group_id: str, user_id: str, *, acting_user_id: Optional[str] = None) -> Group:
        with self.locks.group(group_id):
            group = self._load_for_member(group_id, acting_user_id)
            if acting_user_id is not None and acting_user_id not in (user_id, group.creator_id):
                raise UnauthorizedError("Only the group creator can remove other members")
            if user_id not in group.members:
                raise NotFoundError(f"User {user_id} is not a member of group {group_id}")
            group.members = [m for m in group.members if m != user_id]
            group.member_habits = [link for link in group.member_habits if link.user_id != user_id]
            self.store.save_group(group)
        return self._reevaluate(group_id) or group

    def link_habit(self, group_id: str, habit_id: str, *, acting_user_id: Optional[str] = None) -> Group:
        habit = self.store.find_habit(habit_id)
        if habit is None:
            raise NotFoundError(f"Habit {habit_id} not found")
        if acting_user_id is not None and habit.user_id != acting_user_id:
            raise UnauthorizedError("Not authorized")

        with self.locks.group(group_id):
            group = self.get_group(group_id)
            if habit.user_id not in group.members:
                raise UnauthorizedError("Habit owner is not a member of this group")
            if not group.links_habit(habit_id):
                group.member_habits.append(HabitLink(user_id=habit.user_id, habit_id=habit_id))
                self.store.save_group(group)
            return group

    def deactivate_group(self, group_id: str, *, acting_user_id: Optional[str] = None) -> Group:
        with self.locks.group(group_id):
            group = self.get_group(group_id)
            if acting_user_id is not None and acting_user_id != group.creator_id:
                raise UnauthorizedError("Only the group creator can deactivate a group")
            group.is_active = False
            self.store.save_group(group)
            return group

    # Internal helpers -------------------------------------------------
    def _require_users(self, user_ids: List[str]) -> None:
        found = {user.id for user in self.store.find_users(user_ids)}
        missing = [uid for uid in user_ids if uid not in found]
        if missing:
            raise NotFoundError(f"Unknown users: {', '.join(missing)}")

    def _load_for_member(self, group_id: str, acting_user_id: Optional[str]) -> Group:
        group = self.get_group(group_id)
        if acting_user_id is not None and acting_user_id not in group.members:
            raise UnauthorizedError("Not a member of this group")
        return group

    def _reevaluate(self, group_id: str) -> Optional[Group]:
        return self.propagator.evaluate(group_id, self.calendar.today())


group_service = GroupService()
