from __future__ import annotations

from fastapi import APIRouter, Depends

from habitstreak.api.deps import acting_user
from habitstreak.features.streaks.service import streak_service

router = APIRouter(prefix="/v1/streaks", tags=["streaks"])


@router.get("/current")
def get_current_streak(user_id: str = Depends(acting_user)):
    """Return the current streak state for a user."""
    return streak_service.get_state(user_id)


@router.get("/history")
def get_streak_history(user_id: str = Depends(acting_user)):
    return {"history": streak_service.history(user_id)}
