from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Literal, Optional

TransitionKind = Literal["credit", "revert", "noop"]
StreakStatus = Literal["credited", "pending", "lapsed", "empty"]


@dataclass
class StreakLedger:
    """
    Durable per-user streak state. Day-level, one civil timezone, no direct DB concerns.

    ``history`` is strictly increasing and duplicate-free; ``last_completed_day`` is
    always ``history[-1]`` (or None when the history is empty).
    """

    user_id: str
    streak_count: int = 0
    last_completed_day: Optional[str] = None
    history: List[str] = field(default_factory=list)
    updated_at: Optional[datetime] = None

    def copy(self) -> "StreakLedger":
        return StreakLedger(
            user_id=self.user_id,
            streak_count=self.streak_count,
            last_completed_day=self.last_completed_day,
            history=list(self.history),
            updated_at=self.updated_at,
        )


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of one trigger, relayed by callers to their own response shape."""

    streak_count: int
    changed: bool
    transition: TransitionKind = "noop"
