from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Set


@dataclass
class HabitSchedule:
    """Scheduling metadata. Opaque to streak accounting."""

    micro_identity: Optional[str] = None
    habit_type: Optional[str] = None
    goal: Optional[str] = None
    active_days: List[str] = field(default_factory=list)
    reminder_enabled: bool = False
    reminder_time: Optional[str] = None
    visibility: str = "private"
    duration: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "micro_identity": self.micro_identity,
            "habit_type": self.habit_type,
            "goal": self.goal,
            "active_days": list(self.active_days),
            "reminder_enabled": self.reminder_enabled,
            "reminder_time": self.reminder_time,
            "visibility": self.visibility,
            "duration": self.duration,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "HabitSchedule":
        data = data or {}
        return cls(
            micro_identity=data.get("micro_identity"),
            habit_type=data.get("habit_type"),
            goal=data.get("goal"),
            active_days=list(data.get("active_days") or []),
            reminder_enabled=bool(data.get("reminder_enabled", False)),
            reminder_time=data.get("reminder_time"),
            visibility=data.get("visibility") or "private",
            duration=data.get("duration"),
        )


@dataclass
class Habit:
    id: str
    user_id: str
    name: str
    schedule: HabitSchedule = field(default_factory=HabitSchedule)
    completions: Set[str] = field(default_factory=set)
    created_at: Optional[datetime] = None

    def copy(self) -> "Habit":
        return Habit(
            id=self.id,
            user_id=self.user_id,
            name=self.name,
            schedule=HabitSchedule.from_dict(self.schedule.to_dict()),
            completions=set(self.completions),
            created_at=self.created_at,
        )
