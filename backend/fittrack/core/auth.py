"""
User identity at the service boundary.

Authentication itself is handled upstream; this module only enforces
that an authenticated user id is present.
"""
from typing import Optional

from fastapi import Header, HTTPException, status


class NotAuthenticatedError(Exception):
    """Raised when an operation that needs a user id has none."""

    def __init__(self, message: str = "User not authenticated"):
        super().__init__(message)


def require_user_id(user_id: Optional[str]) -> str:
    """Return the user id or raise NotAuthenticatedError if it is missing."""
    if not user_id or not user_id.strip():
        raise NotAuthenticatedError()
    return user_id


async def get_current_user_id(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> str:
    """FastAPI dependency resolving the caller's user id."""
    try:
        return require_user_id(x_user_id)
    except NotAuthenticatedError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        )
