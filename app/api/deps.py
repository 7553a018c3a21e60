"""Request-scoped dependencies: the acting user and the text assistant."""
from functools import lru_cache
from typing import Optional

from fastapi import Header, HTTPException, status

from app.ai.assistant import PrayerAssistant
from app.services.authorization import Actor


def get_actor(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None)
) -> Actor:
    """
    The auth proxy in front of this service sets X-User-Id and X-User-Role.
    Anything missing or unrecognised is treated as unauthenticated.
    """
    if not x_user_id or not x_user_role:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing user identity")
    try:
        return Actor(user_id=x_user_id, role=x_user_role)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Unknown role: {x_user_role}"
        )


def get_optional_actor(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None)
) -> Optional[Actor]:
    if not x_user_id or not x_user_role:
        return None
    return get_actor(x_user_id, x_user_role)


@lru_cache(maxsize=1)
def get_assistant() -> PrayerAssistant:
    return PrayerAssistant()
