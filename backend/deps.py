"""
Shared FastAPI dependencies.

Centralizes common dependencies so routers import from a single place
(caller identity, cursor pagination).
"""

from __future__ import annotations

from typing import Optional, TypedDict

from fastapi import Depends, Query

from middleware.auth import require_authenticated_wallet
from utils.validators import validate_address


class CursorPage(TypedDict):
    start_after: Optional[str]
    limit: Optional[int]


def cursor_params(
    start_after: Optional[str] = Query(None, max_length=128, description="Return items strictly after this cursor"),
    limit: Optional[int] = Query(None, ge=1, le=1000, description="Page size (server caps it)"),
) -> CursorPage:
    return {"start_after": start_after, "limit": limit}


async def require_sender(
    wallet: str = Depends(require_authenticated_wallet),
) -> str:
    """
    The caller address for /execute.

    Authenticated via middleware.auth, then checked against the configured
    address format so malformed identities never reach the registry.
    """
    return validate_address(wallet)
