"""Ledger primitives: credit, revert and derived run length."""

import pytest

from habitstreak.features.streaks.calendar import LocalDayCalendar
from habitstreak.features.streaks.ledger import (
    credit_day,
    has_continuity,
    is_credited,
    new_ledger,
    revert_day,
    trailing_run,
)
from habitstreak.models.streak import StreakLedger

prev = LocalDayCalendar.previous_day


def test_first_credit_starts_at_one():
    ledger = credit_day(new_ledger("u1"), "2024-03-10", "2024-03-09")
    assert ledger.streak_count == 1
    assert ledger.history == ["2024-03-10"]
    assert ledger.last_completed_day == "2024-03-10"


def test_consecutive_credit_increments():
    ledger = StreakLedger(user_id="u1", streak_count=4, last_completed_day="2024-03-09", history=["2024-03-09"])
    assert has_continuity(ledger, "2024-03-09")
    updated = credit_day(ledger, "2024-03-10", "2024-03-09")
    assert updated.streak_count == 5
    assert updated.history == ["2024-03-09", "2024-03-10"]


def test_gap_resets_to_one():
    ledger = StreakLedger(user_id="u1", streak_count=4, last_completed_day="2024-03-07", history=["2024-03-07"])
    updated = credit_day(ledger, "2024-03-10", "2024-03-09")
    assert updated.streak_count == 1
    assert updated.history == ["2024-03-07", "2024-03-10"]


def test_credit_does_not_mutate_input():
    ledger = new_ledger("u1")
    credit_day(ledger, "2024-03-10", "2024-03-09")
    assert ledger.streak_count == 0
    assert ledger.history == []


def test_credit_rejects_same_or_earlier_day():
    ledger = StreakLedger(user_id="u1", streak_count=1, last_completed_day="2024-03-10", history=["2024-03-10"])
    with pytest.raises(ValueError):
        credit_day(ledger, "2024-03-10", "2024-03-09")
    with pytest.raises(ValueError):
        credit_day(ledger, "2024-03-08", "2024-03-07")


def test_revert_is_inverse_of_credit():
    before = StreakLedger(user_id="u1", streak_count=3, last_completed_day="2024-03-09", history=["2024-03-08", "2024-03-09"])
    credited = credit_day(before, "2024-03-10", "2024-03-09")
    reverted = revert_day(credited, "2024-03-10")
    assert reverted.streak_count == before.streak_count
    assert reverted.last_completed_day == before.last_completed_day
    assert reverted.history == before.history


def test_revert_after_reset_credit_uses_decrement_heuristic():
    # Credit after a gap reset the count to 1; reverting drops it to 0 rather than restoring the old run
    before = StreakLedger(user_id="u1", streak_count=5, last_completed_day="2024-03-05", history=["2024-03-05"])
    reverted = revert_day(credit_day(before, "2024-03-10", "2024-03-09"), "2024-03-10")
    assert reverted.streak_count == 0
    assert reverted.last_completed_day == "2024-03-05"


def test_revert_of_only_entry_clears_last_day():
    ledger = credit_day(new_ledger("u1"), "2024-03-10", "2024-03-09")
    reverted = revert_day(ledger, "2024-03-10")
    assert reverted.streak_count == 0
    assert reverted.history == []
    assert reverted.last_completed_day is None


def test_revert_floors_at_zero():
    ledger = StreakLedger(user_id="u1", streak_count=0, last_completed_day="2024-03-10", history=["2024-03-10"])
    assert revert_day(ledger, "2024-03-10").streak_count == 0


def test_revert_requires_most_recent_day():
    ledger = StreakLedger(user_id="u1", streak_count=2, last_completed_day="2024-03-10", history=["2024-03-09", "2024-03-10"])
    with pytest.raises(ValueError):
        revert_day(ledger, "2024-03-09")


def test_is_credited():
    assert is_credited(None, "2024-03-10") is False
    assert is_credited(StreakLedger(user_id="u1", last_completed_day="2024-03-10", history=["2024-03-10"]), "2024-03-10")


def test_trailing_run_from_history():
    ledger = StreakLedger(
        user_id="u1",
        streak_count=3,
        last_completed_day="2024-03-10",
        history=["2024-03-05", "2024-03-08", "2024-03-09", "2024-03-10"],
    )
    assert trailing_run(ledger, "2024-03-10", prev) == 3
    assert trailing_run(ledger, "2024-03-11", prev) == 3
    assert trailing_run(ledger, "2024-03-12", prev) == 0
    assert trailing_run(new_ledger("u1"), "2024-03-10", prev) == 0
