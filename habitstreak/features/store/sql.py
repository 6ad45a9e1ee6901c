"""
SQL-backed entity store.

Maintains the same interface as InMemoryEntityStore. Any SQLAlchemy failure is
surfaced as StoreFailureError so triggers abort without partial ledger writes.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select, insert, update, delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from habitstreak.core.database import (
    get_db_session,
    users,
    habits,
    streak_ledgers,
    groups,
    group_members,
    group_habit_links,
)
from habitstreak.core.errors import ConflictError, StoreFailureError
from habitstreak.models.group import Group, HabitLink
from habitstreak.models.habit import Habit, HabitSchedule
from habitstreak.models.streak import StreakLedger
from habitstreak.models.user import User


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@contextmanager
def _session(operation: str):
    try:
        with get_db_session() as session:
            yield session
    except IntegrityError as exc:
        raise ConflictError(f"{operation} conflicted with existing data") from exc
    except SQLAlchemyError as exc:
        raise StoreFailureError(f"{operation} failed: {exc.__class__.__name__}") from exc


def _habit_from_row(row) -> Habit:
    return Habit(
        id=row.id,
        user_id=row.user_id,
        name=row.name,
        schedule=HabitSchedule.from_dict(row.schedule),
        completions=set(row.completions or []),
        created_at=row.created_at,
    )


def _ledger_from_row(row) -> StreakLedger:
    return StreakLedger(
        user_id=row.user_id,
        streak_count=row.streak_count,
        last_completed_day=row.last_completed_day,
        history=list(row.history or []),
        updated_at=row.updated_at,
    )


class SqlEntityStore:
    # Habits -----------------------------------------------------------
    def find_habits(self, owner_id: str) -> List[Habit]:
        with _session("find_habits") as session:
            rows = session.execute(
                select(habits).where(habits.c.user_id == owner_id).order_by(habits.c.created_at)
            ).all()
            return [_habit_from_row(r) for r in rows]

    def find_habit(self, habit_id: str) -> Optional[Habit]:
        with _session("find_habit") as session:
            row = session.execute(select(habits).where(habits.c.id == habit_id)).first()
            return _habit_from_row(row) if row else None

    def save_habit(self, habit: Habit) -> None:
        values = {
            "user_id": habit.user_id,
            "name": habit.name,
            "schedule": habit.schedule.to_dict(),
            "completions": sorted(habit.completions),
        }
        with _session("save_habit") as session:
            exists = session.execute(select(habits.c.id).where(habits.c.id == habit.id)).first()
            if exists:
                session.execute(update(habits).where(habits.c.id == habit.id).values(**values))
            else:
                session.execute(
                    insert(habits).values(id=habit.id, created_at=habit.created_at or _utc_now(), **values)
                )

    def delete_habit(self, habit_id: str) -> None:
        with _session("delete_habit") as session:
            session.execute(delete(habits).where(habits.c.id == habit_id))

    # Ledgers ----------------------------------------------------------
    def find_ledger(self, owner_id: str) -> Optional[StreakLedger]:
        with _session("find_ledger") as session:
            row = session.execute(
                select(streak_ledgers).where(streak_ledgers.c.user_id == owner_id)
            ).first()
            return _ledger_from_row(row) if row else None

    def create_ledger(self, owner_id: str) -> StreakLedger:
        ledger = StreakLedger(user_id=owner_id, updated_at=_utc_now())
        with _session("create_ledger") as session:
            session.execute(
                insert(streak_ledgers).values(
                    user_id=owner_id,
                    streak_count=0,
                    last_completed_day=None,
                    history=[],
                    updated_at=ledger.updated_at,
                )
            )
        return ledger

    def save_ledger(self, ledger: StreakLedger) -> None:
        values = {
            "streak_count": ledger.streak_count,
            "last_completed_day": ledger.last_completed_day,
            "history": list(ledger.history),
            "updated_at": _utc_now(),
        }
        with _session("save_ledger") as session:
            result = session.execute(
                update(streak_ledgers).where(streak_ledgers.c.user_id == ledger.user_id).values(**values)
            )
            if result.rowcount == 0:
                session.execute(insert(streak_ledgers).values(user_id=ledger.user_id, **values))

    # Groups -----------------------------------------------------------
    def _load_groups(self, session, group_ids: List[str]) -> List[Group]:
        if not group_ids:
            return []
        group_rows = session.execute(
            select(groups).where(groups.c.id.in_(group_ids)).order_by(groups.c.created_at)
        ).all()
        member_rows = session.execute(
            select(group_members)
            .where(group_members.c.group_id.in_(group_ids))
            .order_by(group_members.c.position)
        ).all()
        link_rows = session.execute(
            select(group_habit_links).where(group_habit_links.c.group_id.in_(group_ids))
        ).all()

        members: Dict[str, List[str]] = {}
        for row in member_rows:
            members.setdefault(row.group_id, []).append(row.user_id)
        links: Dict[str, List[HabitLink]] = {}
        for row in link_rows:
            links.setdefault(row.group_id, []).append(HabitLink(user_id=row.user_id, habit_id=row.habit_id))

        return [
            Group(
                id=row.id,
                name=row.name,
                creator_id=row.creator_id,
                members=members.get(row.id, []),
                tracking_type=row.tracking_type,
                duration=row.duration,
                avatar=row.avatar,
                description=row.description,
                is_active=row.is_active,
                group_streak=row.group_streak,
                last_group_completed_day=row.last_group_completed_day,
                member_habits=links.get(row.id, []),
                created_at=row.created_at,
            )
            for row in group_rows
        ]

    def find_group(self, group_id: str) -> Optional[Group]:
        with _session("find_group") as session:
            found = self._load_groups(session, [group_id])
            return found[0] if found else None

    def find_groups_by_member(self, user_id: str, active_only: bool = True) -> List[Group]:
        with _session("find_groups_by_member") as session:
            query = (
                select(groups.c.id)
                .join(group_members, group_members.c.group_id == groups.c.id)
                .where(group_members.c.user_id == user_id)
            )
            if active_only:
                query = query.where(groups.c.is_active.is_(True))
            ids = [row.id for row in session.execute(query).all()]
            return self._load_groups(session, ids)

    def find_groups_by_habit_link(self, habit_id: str) -> List[Group]:
        with _session("find_groups_by_habit_link") as session:
            ids = [
                row.group_id
                for row in session.execute(
                    select(group_habit_links.c.group_id).where(group_habit_links.c.habit_id == habit_id)
                ).all()
            ]
            return self._load_groups(session, ids)

    def save_group(self, group: Group) -> None:
        values = {
            "name": group.name,
            "creator_id": group.creator_id,
            "tracking_type": group.tracking_type,
            "duration": group.duration,
            "avatar": group.avatar,
            "description": group.description,
            "is_active": group.is_active,
            "group_streak": group.group_streak,
            "last_group_completed_day": group.last_group_completed_day,
        }
        with _session("save_group") as session:
            result = session.execute(update(groups).where(groups.c.id == group.id).values(**values))
            if result.rowcount == 0:
                session.execute(
                    insert(groups).values(id=group.id, created_at=group.created_at or _utc_now(), **values)
                )

            session.execute(delete(group_members).where(group_members.c.group_id == group.id))
            for position, member_id in enumerate(group.members):
                session.execute(
                    insert(group_members).values(group_id=group.id, user_id=member_id, position=position)
                )

            session.execute(delete(group_habit_links).where(group_habit_links.c.group_id == group.id))
            for link in group.member_habits:
                session.execute(
                    insert(group_habit_links).values(group_id=group.id, user_id=link.user_id, habit_id=link.habit_id)
                )

    # Users ------------------------------------------------------------
    def find_user(self, user_id: str) -> Optional[User]:
        with _session("find_user") as session:
            row = session.execute(select(users).where(users.c.id == user_id)).first()
            return User(id=row.id, username=row.username, display_name=row.display_name) if row else None

    def find_users(self, ids: Iterable[str]) -> List[User]:
        wanted = list(ids)
        if not wanted:
            return []
        with _session("find_users") as session:
            rows = session.execute(select(users).where(users.c.id.in_(wanted))).all()
            by_id = {row.id: User(id=row.id, username=row.username, display_name=row.display_name) for row in rows}
            return [by_id[uid] for uid in wanted if uid in by_id]

    def save_user(self, user: User) -> None:
        with _session("save_user") as session:
            result = session.execute(
                update(users).where(users.c.id == user.id).values(username=user.username, display_name=user.display_name)
            )
            if result.rowcount == 0:
                session.execute(
                    insert(users).values(id=user.id, username=user.username, display_name=user.display_name)
                )

    def clear(self) -> None:
        """FOR TESTING ONLY."""
        with _session("clear") as session:
            for table in (group_habit_links, group_members, groups, streak_ledgers, habits, users):
                session.execute(delete(table))
