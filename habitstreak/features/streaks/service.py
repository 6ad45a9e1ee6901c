from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from habitstreak.core.errors import ConflictError, NotFoundError, UnauthorizedError
from habitstreak.core.locks import KeyedLocks, entity_locks
from habitstreak.core.logging import log_event
from habitstreak.features.groups.propagator import GroupStreakPropagator
from habitstreak.features.store import get_store
from habitstreak.features.store.base import EntityStore
from habitstreak.features.streaks.aggregator import all_complete
from habitstreak.features.streaks.calendar import LocalDayCalendar, canonical_days, day_calendar
from habitstreak.features.streaks.ledger import credit_day, is_credited, revert_day, trailing_run
from habitstreak.models.habit import Habit
from habitstreak.models.streak import StreakLedger, StreakStatus, TransitionKind, TransitionResult


class StreakService:
    """
    Reconciles a user's streak ledger with their habit set.

    Every trigger recomputes from current habit state rather than trusting its
    previous output, and only today's ledger entry is ever credited or reverted.
    """

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

    # Triggers ---------------------------------------------------------
    def on_habit_completion_changed(
        self,
        habit_id: str,
        completions: Iterable[str],
        *,
        acting_user_id: Optional[str] = None,
    ) -> TransitionResult:
        days = set(canonical_days(completions))
        habit = self._load_habit(habit_id, acting_user_id)
        owner_id = habit.user_id

        with self.locks.user(owner_id):
            today = self.calendar.today()
            # Re-read under the lock; the habit may have been deleted meanwhile
            habit = self._load_habit(habit_id, acting_user_id)
            complete = all_complete(self.store.find_habits(owner_id), today, override=(habit.id, days))

            habit.completions = days
            self.store.save_habit(habit)

            ledger = self._ensure_ledger(owner_id)
            kind, updated = self._reconcile(ledger, complete, today)
            if kind != "noop":
                self.store.save_ledger(updated)

        self._log_transition(kind, updated, today, trigger="completion", habit_id=habit_id)
        if kind == "credit":
            self.propagator.propagate(owner_id, today)
        return TransitionResult(streak_count=updated.streak_count, changed=kind != "noop", transition=kind)

    def on_habit_created(self, owner_id: str) -> TransitionResult:
        """A new habit has no completion today, so a credit for today no longer holds."""
        with self.locks.user(owner_id):
            today = self.calendar.today()
            ledger = self._ensure_ledger(owner_id)
            kind: TransitionKind = "noop"
            updated = ledger
            if is_credited(ledger, today):
                kind, updated = "revert", revert_day(ledger, today)
                self.store.save_ledger(updated)

        self._log_transition(kind, updated, today, trigger="creation")
        return TransitionResult(streak_count=updated.streak_count, changed=kind != "noop", transition=kind)

    def on_habit_deleted(self, habit_id: str, *, acting_user_id: Optional[str] = None) -> TransitionResult:
        habit = self._load_habit(habit_id, acting_user_id)
        owner_id = habit.user_id

        with self.locks.user(owner_id):
            today = self.calendar.today()
            habit = self._load_habit(habit_id, acting_user_id)
            remaining = [h for h in self.store.find_habits(owner_id) if h.id != habit_id]
            complete = all_complete(remaining, today)

            ledger = self._ensure_ledger(owner_id)
            kind: TransitionKind = "noop"
            updated = ledger
            if complete and not is_credited(ledger, today):
                # Recovery credit only when it continues the run; a deletion never revives a broken streak
                if ledger.last_completed_day in (None, self.calendar.previous_day(today)):
                    kind, updated = "credit", credit_day(ledger, today, self.calendar.previous_day(today))
            elif not complete and is_credited(ledger, today):
                kind, updated = "revert", revert_day(ledger, today)

            self.store.delete_habit(habit_id)
            if kind != "noop":
                self.store.save_ledger(updated)

        self._log_transition(kind, updated, today, trigger="deletion", habit_id=habit_id)
        self.propagator.detach_habit(habit_id, today, owner_reverted=kind == "revert")
        if kind == "credit":
            self.propagator.propagate(owner_id, today)
        return TransitionResult(streak_count=updated.streak_count, changed=kind != "noop", transition=kind)

    # Read side ------------------------------------------------------------
    def get_state(self, user_id: str) -> dict:
        """Current streak state. Never creates or mutates the ledger."""
        today = self.calendar.today()
        yesterday = self.calendar.previous_day(today)
        ledger = self.store.find_ledger(user_id) or StreakLedger(user_id=user_id)
        status = self._status_for(ledger, today, yesterday)
        return {
            "user_id": user_id,
            "streak_count": ledger.streak_count,
            "current_streak": 0 if status in ("lapsed", "empty") else ledger.streak_count,
            "history_run": trailing_run(ledger, today, self.calendar.previous_day),
            "last_completed_day": ledger.last_completed_day,
            "credited_today": ledger.last_completed_day == today,
            "status": status,
            "today": today,
        }

    def history(self, user_id: str) -> List[str]:
        ledger = self.store.find_ledger(user_id)
        return list(ledger.history) if ledger else []

    # Internal helpers -------------------------------------------------
    def _load_habit(self, habit_id: str, acting_user_id: Optional[str]) -> Habit:
        habit = self.store.find_habit(habit_id)
        if habit is None:
            raise NotFoundError(f"Habit {habit_id} not found")
        if acting_user_id is not None and habit.user_id != acting_user_id:
            raise UnauthorizedError("Not authorized")
        return habit

    def _ensure_ledger(self, user_id: str) -> StreakLedger:
        ledger = self.store.find_ledger(user_id)
        if ledger is not None:
            return ledger
        try:
            return self.store.create_ledger(user_id)
        except ConflictError:
            # Created concurrently by another process
            ledger = self.store.find_ledger(user_id)
            if ledger is None:
                raise
            return ledger

    def _reconcile(self, ledger: StreakLedger, complete: bool, today: str) -> Tuple[TransitionKind, StreakLedger]:
        credited = is_credited(ledger, today)
        if complete and not credited:
            if ledger.last_completed_day is not None and ledger.last_completed_day > today:
                log_event(
                    "warning",
                    "streak.clock_behind_ledger",
                    user_id=ledger.user_id,
                    event_type="streak.noop",
                    extra={"today": today, "last_completed_day": ledger.last_completed_day},
                )
                return "noop", ledger
            return "credit", credit_day(ledger, today, self.calendar.previous_day(today))
        if not complete and credited:
            return "revert", revert_day(ledger, today)
        return "noop", ledger

    def _log_transition(self, kind: TransitionKind, ledger: StreakLedger, today: str, *, trigger: str, habit_id: Optional[str] = None) -> None:
        event = {"credit": "streak.credited", "revert": "streak.reverted", "noop": "streak.noop"}[kind]
        log_event(
            "info" if kind != "noop" else "debug",
            event,
            user_id=ledger.user_id,
            habit_id=habit_id,
            event_type=event,
            extra={"trigger": trigger, "day": today, "streak_count": ledger.streak_count},
        )

    @staticmethod
    def _status_for(ledger: StreakLedger, today: str, yesterday: str) -> StreakStatus:
        if not ledger.history:
            return "empty"
        if ledger.last_completed_day == today:
            return "credited"
        if ledger.last_completed_day == yesterday:
            return "pending"
        return "lapsed"


# Singleton service used by routes
streak_service = StreakService()
