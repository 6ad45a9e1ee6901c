"""
Ledger transition primitives.

Pure functions over ``StreakLedger`` values: each returns a new ledger and never
touches persistence, so the reconciliation rules can be tested without a store.
"""

from __future__ import annotations

from typing import Optional

from habitstreak.models.streak import StreakLedger


def new_ledger(user_id: str) -> StreakLedger:
    return StreakLedger(user_id=user_id)


def is_credited(ledger: Optional[StreakLedger], day: str) -> bool:
    return ledger is not None and ledger.last_completed_day == day


def has_continuity(ledger: StreakLedger, previous_day: str) -> bool:
    """A credit today continues the run only if yesterday was the last credited day."""
    return ledger.last_completed_day == previous_day


def credit_day(ledger: StreakLedger, day: str, previous_day: str) -> StreakLedger:
    """
    Credit ``day``: increment when it continues the run, otherwise restart at 1.

    Callers must not pass a day that is already credited or that precedes the
    last credited day.
    """
    if ledger.last_completed_day is not None and day <= ledger.last_completed_day:
        raise ValueError(f"cannot credit {day}: last credited day is {ledger.last_completed_day}")

    updated = ledger.copy()
    if has_continuity(ledger, previous_day):
        updated.streak_count = ledger.streak_count + 1
    else:
        updated.streak_count = 1
    if day not in updated.history:
        updated.history.append(day)
    updated.last_completed_day = day
    return updated


def revert_day(ledger: StreakLedger, day: str) -> StreakLedger:
    """
    Undo the credit for ``day`` (which must be the most recent entry).

    The count drops by exactly one, floored at zero. The prior run length is not
    recomputed from history, so this is the inverse of a credit only when it
    immediately follows that credit.
    """
    if ledger.last_completed_day != day:
        raise ValueError(f"cannot revert {day}: last credited day is {ledger.last_completed_day}")

    updated = ledger.copy()
    updated.history = [d for d in updated.history if d != day]
    updated.streak_count = max(0, ledger.streak_count - 1)
    updated.last_completed_day = updated.history[-1] if updated.history else None
    return updated


def trailing_run(ledger: StreakLedger, today: str, previous_day) -> int:
    """
    Length of the consecutive run ending today or yesterday, derived from history.

    ``previous_day`` is the calendar's day-decrement function.
    """
    if not ledger.history:
        return 0
    cursor = ledger.history[-1]
    if cursor != today and cursor != previous_day(today):
        return 0
    run = 0
    for day in reversed(ledger.history):
        if day != cursor:
            break
        run += 1
        cursor = previous_day(cursor)
    return run
