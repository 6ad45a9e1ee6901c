"""
Group streak propagation.

A group is credited for a day when every member's own ledger is credited for
that day. Credits are additive only: a member uncompleting a habit later never
takes the group credit back. The one exception is structural: deleting a habit
that a group tracks reverts the group's credit for today when that deletion
reverts its owner's credit.
"""

from __future__ import annotations

from typing import List, Optional

from habitstreak.core.locks import KeyedLocks, entity_locks
from habitstreak.core.logging import log_event
from habitstreak.features.store.base import EntityStore
from habitstreak.features.streaks.ledger import is_credited
from habitstreak.models.group import Group


def credit_group(group: Group, day: str) -> Group:
    updated = group.copy()
    updated.group_streak = group.group_streak + 1
    updated.last_group_completed_day = day
    return updated


def revert_group(group: Group) -> Group:
    # Groups keep no day history, so the prior credited day cannot be restored
    updated = group.copy()
    updated.group_streak = max(0, group.group_streak - 1)
    updated.last_group_completed_day = None
    return updated


class GroupStreakPropagator:
    def __init__(self, store: EntityStore, locks: Optional[KeyedLocks] = None):
        self.store = store
        self.locks = locks or entity_locks

    def members_complete(self, group: Group, day: str) -> bool:
        """True iff the group has members and every one of them is credited for ``day``."""
        member_ids = list(dict.fromkeys(group.members))
        if not member_ids:
            return False
        members = self.store.find_users(member_ids)
        if len(members) != len(member_ids):
            # Unresolvable members can never be credited
            return False
        return all(is_credited(self.store.find_ledger(member.id), day) for member in members)

    def evaluate(self, group_id: str, day: str) -> Optional[Group]:
        """Credit one group for ``day`` if it has just become complete. Returns the updated group."""
        with self.locks.group(group_id):
            group = self.store.find_group(group_id)
            if group is None or not group.is_active:
                return None
            if group.last_group_completed_day == day:
                return None
            if not self.members_complete(group, day):
                return None

            updated = credit_group(group, day)
            self.store.save_group(updated)

        log_event(
            "info",
            "group.credited",
            group_id=group_id,
            event_type="group.credited",
            extra={"day": day, "group_streak": updated.group_streak},
        )
        return updated

    def propagate(self, user_id: str, day: str) -> List[Group]:
        """Run after a successful individual credit for ``user_id`` on ``day``."""
        credited = []
        for group in self.store.find_groups_by_member(user_id, active_only=True):
            updated = self.evaluate(group.id, day)
            if updated is not None:
                credited.append(updated)
        return credited

    def detach_habit(self, habit_id: str, day: str, owner_reverted: bool) -> List[Group]:
        """
        Remove a deleted habit's group links.

        Groups credited for ``day`` are reverted only when the deletion itself
        reverted the owner's credit for ``day``. An owner who had already lost
        the day beforehand leaves the group credit untouched. Returns the groups
        that were reverted.
        """
        reverted = []
        for linked in self.store.find_groups_by_habit_link(habit_id):
            with self.locks.group(linked.id):
                group = self.store.find_group(linked.id)
                if group is None:
                    continue
                group.member_habits = [link for link in group.member_habits if link.habit_id != habit_id]
                if group.last_group_completed_day == day and owner_reverted:
                    group = revert_group(group)
                    reverted.append(group)
                self.store.save_group(group)

        for group in reverted:
            log_event(
                "info",
                "group.reverted",
                group_id=group.id,
                habit_id=habit_id,
                event_type="group.reverted",
                extra={"day": day, "group_streak": group.group_streak},
            )
        return reverted
