"""
Mutating endpoints.

Endpoints:
    POST /instantiate   — one-time registry setup (caller becomes minter unless `minter` given)
    POST /execute       — run one ExecuteMsg as the authenticated caller, with attached funds

Every response carries the execute result: action, attributes, and the
outbound messages (payouts, receiver notifications) the caller's
environment must deliver.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import require_sender
from domain.responses import success_response
from models import ExecuteRequest, InstantiateMsg
from services import registry_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["execute"])


# ── POST /instantiate ──────────────────────────────────────────────
@router.post("/instantiate")
async def instantiate(
    msg: InstantiateMsg,
    db: AsyncSession = Depends(get_db),
    sender: str = Depends(require_sender),
):
    """Set up the collection. Fails with 409 once instantiated."""
    result = await registry_service.instantiate(db, sender, msg)
    return success_response(result.model_dump())


# ── POST /execute ──────────────────────────────────────────────────
@router.post("/execute")
async def execute(
    request: ExecuteRequest,
    db: AsyncSession = Depends(get_db),
    sender: str = Depends(require_sender),
):
    """
    Execute one registry message.

    The call is atomic: on any error nothing is persisted and the
    response carries the specific error kind.
    """
    result = await registry_service.execute(db, sender, request.msg, request.funds)
    return success_response(result.model_dump())
