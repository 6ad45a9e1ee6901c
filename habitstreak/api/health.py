from fastapi import APIRouter

from habitstreak.features.store import get_store
from habitstreak.features.streaks.calendar import day_calendar

router = APIRouter(tags=["health"])


@router.get("/healthz")
def healthz():
    """Lightweight liveness check."""
    return {
        "status": "ok",
        "store": type(get_store()).__name__,
        "today": day_calendar.today(),
    }
