"""Caller identity for API requests.

Session issuance lives in the external auth service, which forwards the
authenticated user id in the ``X-User-Id`` header. This module only reads it.
"""
from fastapi import Header, HTTPException

USER_ID_HEADER = "X-User-Id"


async def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Return the authenticated user id or reject the request with 401."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Authentication required")
    return x_user_id.strip()
