from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Literal, Optional

TrackingType = Literal["shared", "individual"]


@dataclass(frozen=True)
class HabitLink:
    """A member's habit tracked by a group."""

    user_id: str
    habit_id: str


@dataclass
class Group:
    id: str
    name: str
    creator_id: str
    members: List[str] = field(default_factory=list)
    tracking_type: TrackingType = "shared"
    duration: int = 0
    avatar: str = "\U0001F680"
    description: Optional[str] = None
    is_active: bool = True
    group_streak: int = 0
    last_group_completed_day: Optional[str] = None
    member_habits: List[HabitLink] = field(default_factory=list)
    created_at: Optional[datetime] = None

    def copy(self) -> "Group":
        return Group(
            id=self.id,
            name=self.name,
            creator_id=self.creator_id,
            members=list(self.members),
            tracking_type=self.tracking_type,
            duration=self.duration,
            avatar=self.avatar,
            description=self.description,
            is_active=self.is_active,
            group_streak=self.group_streak,
            last_group_completed_day=self.last_group_completed_day,
            member_habits=list(self.member_habits),
            created_at=self.created_at,
        )

    def links_habit(self, habit_id: str) -> bool:
        return any(link.habit_id == habit_id for link in self.member_habits)
