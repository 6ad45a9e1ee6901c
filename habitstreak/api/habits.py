"""
Habits API: create, list, update completions, delete.

Mutating responses carry the resulting streak so clients can refresh without a
second round trip.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from habitstreak.api.deps import acting_user
from habitstreak.features.habits.service import habit_service
from habitstreak.models.habit import Habit, HabitSchedule

router = APIRouter(prefix="/api/habits", tags=["habits"])


class HabitCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    micro_identity: Optional[str] = None
    type: Optional[str] = None
    goal: Optional[str] = None
    days: List[str] = Field(default_factory=list)
    reminder_enabled: bool = False
    reminder_time: Optional[str] = None
    visibility: str = "private"
    duration: Optional[int] = Field(default=None, ge=0)

    def to_schedule(self) -> HabitSchedule:
        return HabitSchedule(
            micro_identity=self.micro_identity,
            habit_type=self.type,
            goal=self.goal,
            active_days=list(self.days),
            reminder_enabled=self.reminder_enabled,
            reminder_time=self.reminder_time,
            visibility=self.visibility,
            duration=self.duration,
        )


class HabitUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, max_length=200)
    completions: Optional[List[str]] = None


def serialize_habit(habit: Habit) -> dict:
    return {
        "id": habit.id,
        "user_id": habit.user_id,
        "name": habit.name,
        **habit.schedule.to_dict(),
        "completions": sorted(habit.completions),
        "created_at": habit.created_at.isoformat() if habit.created_at else None,
    }


@router.post("", status_code=201)
def create_habit(request: HabitCreateRequest, user_id: str = Depends(acting_user)):
    habit, result = habit_service.create_habit(user_id, request.name, request.to_schedule())
    return {**serialize_habit(habit), "streak": result.streak_count, "streakUpdated": result.changed}


@router.get("")
def list_habits(user_id: str = Depends(acting_user)):
    return [serialize_habit(h) for h in habit_service.list_habits(user_id)]


@router.put("/{habit_id}")
def update_habit(habit_id: str, request: HabitUpdateRequest, user_id: str = Depends(acting_user)):
    habit, result = habit_service.update_habit(
        habit_id,
        user_id,
        name=request.name,
        completions=request.completions,
    )
    return {**serialize_habit(habit), "streak": result.streak_count, "streakUpdated": result.changed}


@router.delete("/{habit_id}")
def delete_habit(habit_id: str, user_id: str = Depends(acting_user)):
    result = habit_service.delete_habit(habit_id, user_id)
    return {"message": "Habit removed", "streak": result.streak_count, "streakUpdated": result.changed}
