"""
Read-only registry endpoints.

Endpoints:
    GET /query/contract-info                           — name and symbol
    GET /query/num-tokens                              — live supply
    GET /query/minter                                  — authorized minter
    GET /query/ownership                               — owner and pending transfer
    GET /query/mint-config                             — issuance policy
    GET /query/withdraw-address                        — treasury address
    GET /query/minted/{wallet}                         — lifetime mints of a wallet
    GET /query/tokens                                  — all token ids (cursor-paginated)
    GET /query/tokens/{token_id}/owner                 — owner + approvals
    GET /query/tokens/{token_id}/approval/{spender}    — one approval
    GET /query/tokens/{token_id}/approvals             — all approvals
    GET /query/tokens/{token_id}/info                  — uri + extension
    GET /query/tokens/{token_id}/all-info              — owner_of + info
    GET /query/owners/{owner}/tokens                   — ids held by owner (cursor-paginated)
    GET /query/owners/{owner}/operators                — operator grants (cursor-paginated)
    GET /query/owners/{owner}/operators/{operator}     — one operator grant
"""
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import CursorPage, cursor_params
from domain.responses import cursor_response, success_response
from services import query_service, token_store

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/query", tags=["query"])

_INCLUDE_EXPIRED = Query(False, description="Also return expired approvals/grants")


# ── Collection ─────────────────────────────────────────────────────

@router.get("/contract-info")
async def contract_info(db: AsyncSession = Depends(get_db)):
    return success_response((await query_service.contract_info(db)).model_dump())


@router.get("/num-tokens")
async def num_tokens(db: AsyncSession = Depends(get_db)):
    return success_response((await query_service.num_tokens(db)).model_dump())


@router.get("/minter")
async def minter(db: AsyncSession = Depends(get_db)):
    return success_response((await query_service.minter(db)).model_dump())


@router.get("/ownership")
async def ownership(db: AsyncSession = Depends(get_db)):
    return success_response((await query_service.ownership(db)).model_dump())


@router.get("/mint-config")
async def mint_config(db: AsyncSession = Depends(get_db)):
    return success_response((await query_service.mint_config(db)).model_dump())


@router.get("/withdraw-address")
async def withdraw_address(db: AsyncSession = Depends(get_db)):
    return success_response((await query_service.withdraw_address(db)).model_dump())


@router.get("/minted/{wallet}")
async def minted_count(wallet: str, db: AsyncSession = Depends(get_db)):
    return success_response((await query_service.minted_count(db, wallet)).model_dump())


# ── Tokens ─────────────────────────────────────────────────────────

@router.get("/tokens")
async def all_tokens(
    page: CursorPage = Depends(cursor_params),
    db: AsyncSession = Depends(get_db),
):
    """All live token ids in mint order."""
    result = await query_service.all_tokens(db, page["start_after"], page["limit"])
    return cursor_response(
        result.tokens, token_store.clamp_limit(page["limit"]), page["start_after"]
    )


@router.get("/tokens/{token_id}/owner")
async def owner_of(
    token_id: str,
    include_expired: bool = _INCLUDE_EXPIRED,
    db: AsyncSession = Depends(get_db),
):
    result = await query_service.owner_of(db, token_id, include_expired)
    return success_response(result.model_dump())


@router.get("/tokens/{token_id}/approval/{spender}")
async def approval(
    token_id: str,
    spender: str,
    include_expired: bool = _INCLUDE_EXPIRED,
    db: AsyncSession = Depends(get_db),
):
    result = await query_service.approval(db, token_id, spender, include_expired)
    return success_response(result.model_dump())


@router.get("/tokens/{token_id}/approvals")
async def approvals(
    token_id: str,
    include_expired: bool = _INCLUDE_EXPIRED,
    db: AsyncSession = Depends(get_db),
):
    result = await query_service.approvals(db, token_id, include_expired)
    return success_response(result.model_dump())


@router.get("/tokens/{token_id}/info")
async def nft_info(token_id: str, db: AsyncSession = Depends(get_db)):
    return success_response((await query_service.nft_info(db, token_id)).model_dump())


@router.get("/tokens/{token_id}/all-info")
async def all_nft_info(
    token_id: str,
    include_expired: bool = _INCLUDE_EXPIRED,
    db: AsyncSession = Depends(get_db),
):
    result = await query_service.all_nft_info(db, token_id, include_expired)
    return success_response(result.model_dump())


# ── Owners ─────────────────────────────────────────────────────────

@router.get("/owners/{owner}/tokens")
async def tokens_by_owner(
    owner: str,
    page: CursorPage = Depends(cursor_params),
    db: AsyncSession = Depends(get_db),
):
    """Token ids held by `owner`, in mint order."""
    result = await query_service.tokens(db, owner, page["start_after"], page["limit"])
    return cursor_response(
        result.tokens, token_store.clamp_limit(page["limit"]), page["start_after"]
    )


@router.get("/owners/{owner}/operators")
async def operators(
    owner: str,
    include_expired: bool = _INCLUDE_EXPIRED,
    page: CursorPage = Depends(cursor_params),
    db: AsyncSession = Depends(get_db),
):
    """Operator grants given by `owner`, ordered by operator address."""
    result = await query_service.operators(
        db, owner, include_expired, page["start_after"], page["limit"]
    )
    items = [op.model_dump() for op in result.operators]
    return cursor_response(
        items,
        token_store.clamp_limit(page["limit"]),
        page["start_after"],
        cursor_of=lambda op: op["spender"],
    )


@router.get("/owners/{owner}/operators/{operator}")
async def operator(
    owner: str,
    operator: str,
    include_expired: bool = _INCLUDE_EXPIRED,
    db: AsyncSession = Depends(get_db),
):
    result = await query_service.operator(db, owner, operator, include_expired)
    return success_response(result.model_dump())
