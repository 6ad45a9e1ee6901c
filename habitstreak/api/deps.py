from fastapi import Header

from habitstreak.core.errors import UnauthorizedError
from habitstreak.features.habits.service import habit_service


def acting_user(x_user_id: str = Header(default="", alias="X-User-Id")) -> str:
    """Resolve the acting user. Credentials are verified upstream; the id is trusted here."""
    user_id = x_user_id.strip()
    if not user_id:
        raise UnauthorizedError("Missing X-User-Id header")
    habit_service.ensure_user(user_id)
    return user_id
