"""Viewer identity for FastAPI routes.

Session validation happens upstream; the gateway forwards the authenticated
user id in the ``X-User-Id`` header.
"""

from dataclasses import dataclass

from fastapi import HTTPException, Request

USER_ID_HEADER = "X-User-Id"


@dataclass(frozen=True)
class Viewer:
    """Authenticated user on whose behalf a request runs."""

    user_id: str


async def require_viewer(request: Request) -> Viewer:
    """Return the viewer for the request.

    Raises ``HTTPException(401)`` when no user id was forwarded.
    """
    user_id = request.headers.get(USER_ID_HEADER, "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")

    request.state.user_id = user_id
    return Viewer(user_id=user_id)
