"""
Query Service — read-only projections over the registry.

Nothing here mutates state. Expiry filters (include_expired=False) are
evaluated against `block`, which defaults to the chain head of the last
executed call.
"""
import logging
from typing import Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import OperatorGrant, Token
from domain.enums import ExpirationKind
from domain.errors import NotFoundError
from domain.expiration import BlockInfo, Expiration
from domain.extension import load_extension
from models import (
    AllNftInfoResponse,
    ApprovalInfo,
    ApprovalResponse,
    ApprovalsResponse,
    ContractInfoResponse,
    MintConfigResponse,
    MintedCountResponse,
    MinterResponse,
    NftInfoResponse,
    NumTokensResponse,
    OperatorResponse,
    OperatorsResponse,
    OwnerOfResponse,
    OwnershipResponse,
    TokensResponse,
    WithdrawAddressResponse,
)
from services import (
    authorization_service,
    chain_clock,
    counter_ledger,
    mint_policy_service,
    ownership_service,
    registry_service,
    token_store,
)
from utils.validators import validate_address

logger = logging.getLogger(__name__)


async def _block(db: AsyncSession, block: Optional[BlockInfo]) -> BlockInfo:
    return block if block is not None else await chain_clock.current_block(db)


def _approval_info(spender: str, expires: Expiration) -> ApprovalInfo:
    return ApprovalInfo(spender=spender, expires=expires.to_json())


def _live_approvals(token: Token, include_expired: bool, block: BlockInfo) -> list[ApprovalInfo]:
    out = []
    for approval in token.approvals:
        expires = authorization_service.approval_expiration(approval)
        if include_expired or not expires.is_expired(block):
            out.append(_approval_info(approval.spender, expires))
    return out


def _grant_is_live(block: BlockInfo):
    """SQL filter: operator grants not yet expired at `block`."""
    return or_(
        OperatorGrant.expires_kind == ExpirationKind.NEVER.value,
        and_(
            OperatorGrant.expires_kind == ExpirationKind.AT_HEIGHT.value,
            OperatorGrant.expires_value > block.height,
        ),
        and_(
            OperatorGrant.expires_kind == ExpirationKind.AT_TIME.value,
            OperatorGrant.expires_value > block.time_ns,
        ),
    )


# ── Collection ──────────────────────────────────────────────────────

async def contract_info(db: AsyncSession) -> ContractInfoResponse:
    info = await registry_service.get_collection_info(db)
    return ContractInfoResponse(name=info.name, symbol=info.symbol)


async def num_tokens(db: AsyncSession) -> NumTokensResponse:
    info = await registry_service.may_load_collection_info(db)
    return NumTokensResponse(count=info.token_count if info else 0)


async def mint_config(db: AsyncSession) -> MintConfigResponse:
    info = await registry_service.get_collection_info(db)
    return MintConfigResponse(
        max_supply=info.max_supply,
        max_nfts_per_wallet=info.max_nfts_per_wallet,
        price_per_nft=mint_policy_service.mint_price(info),
    )


async def minted_count(db: AsyncSession, wallet: str) -> MintedCountResponse:
    validate_address(wallet)
    return MintedCountResponse(
        wallet=wallet,
        minted=await counter_ledger.minted_by_wallet(db, wallet),
    )


async def withdraw_address(db: AsyncSession) -> WithdrawAddressResponse:
    info = await registry_service.get_collection_info(db)
    return WithdrawAddressResponse(address=info.withdraw_address)


# ── Contract ownership ──────────────────────────────────────────────

async def minter(db: AsyncSession) -> MinterResponse:
    return MinterResponse(minter=await ownership_service.current_minter(db))


async def ownership(db: AsyncSession) -> OwnershipResponse:
    row = await ownership_service.may_load_ownership(db)
    if row is None:
        return OwnershipResponse()
    pending = ownership_service.pending_expiry(row)
    return OwnershipResponse(
        owner=row.owner,
        pending_owner=row.pending_owner,
        pending_expiry=pending.to_json() if pending else None,
    )


# ── Tokens ──────────────────────────────────────────────────────────

async def owner_of(
    db: AsyncSession,
    token_id: str,
    include_expired: bool = False,
    block: Optional[BlockInfo] = None,
) -> OwnerOfResponse:
    token = await token_store.load(db, token_id)
    block = await _block(db, block)
    return OwnerOfResponse(
        owner=token.owner,
        approvals=_live_approvals(token, include_expired, block),
    )


async def approval(
    db: AsyncSession,
    token_id: str,
    spender: str,
    include_expired: bool = False,
    block: Optional[BlockInfo] = None,
) -> ApprovalResponse:
    """
    The approval `spender` holds on a token.

    The owner is reported as holding a never-expiring approval.
    """
    token = await token_store.load(db, token_id)

    if token.owner == spender:
        return ApprovalResponse(approval=_approval_info(spender, Expiration.never()))

    block = await _block(db, block)
    for info in _live_approvals(token, include_expired, block):
        if info.spender == spender:
            return ApprovalResponse(approval=info)
    raise NotFoundError("Approval", f"{spender} on token {token_id}")


async def approvals(
    db: AsyncSession,
    token_id: str,
    include_expired: bool = False,
    block: Optional[BlockInfo] = None,
) -> ApprovalsResponse:
    token = await token_store.load(db, token_id)
    block = await _block(db, block)
    return ApprovalsResponse(approvals=_live_approvals(token, include_expired, block))


async def nft_info(db: AsyncSession, token_id: str) -> NftInfoResponse:
    token = await token_store.load(db, token_id)
    return NftInfoResponse(
        token_uri=token.token_uri,
        extension=load_extension(token.extension).to_blob(),
    )


async def all_nft_info(
    db: AsyncSession,
    token_id: str,
    include_expired: bool = False,
    block: Optional[BlockInfo] = None,
) -> AllNftInfoResponse:
    return AllNftInfoResponse(
        access=await owner_of(db, token_id, include_expired, block),
        info=await nft_info(db, token_id),
    )


async def tokens(
    db: AsyncSession,
    owner: str,
    start_after: Optional[str] = None,
    limit: Optional[int] = None,
) -> TokensResponse:
    validate_address(owner)
    return TokensResponse(
        tokens=await token_store.list_by_owner(db, owner, start_after, limit)
    )


async def all_tokens(
    db: AsyncSession,
    start_after: Optional[str] = None,
    limit: Optional[int] = None,
) -> TokensResponse:
    return TokensResponse(tokens=await token_store.list_all(db, start_after, limit))


# ── Operators ───────────────────────────────────────────────────────

async def operator(
    db: AsyncSession,
    owner: str,
    operator: str,
    include_expired: bool = False,
    block: Optional[BlockInfo] = None,
) -> OperatorResponse:
    """
    The grant `owner` gave `operator`.

    Raises:
        NotFoundError: if absent, or expired and include_expired is False
    """
    validate_address(owner)
    validate_address(operator)
    grant = await authorization_service.get_operator_grant(db, owner, operator)
    if grant is not None:
        expires = authorization_service.grant_expiration(grant)
        block = await _block(db, block)
        if include_expired or not expires.is_expired(block):
            return OperatorResponse(approval=_approval_info(operator, expires))
    raise NotFoundError("Approval", f"operator {operator} for {owner}")


async def operators(
    db: AsyncSession,
    owner: str,
    include_expired: bool = False,
    start_after: Optional[str] = None,
    limit: Optional[int] = None,
    block: Optional[BlockInfo] = None,
) -> OperatorsResponse:
    """Grants given by `owner`, ordered by operator address."""
    validate_address(owner)
    page_size = token_store.clamp_limit(limit)

    query = (
        select(OperatorGrant)
        .where(OperatorGrant.granter == owner)
        .order_by(OperatorGrant.operator.asc())
        .limit(page_size)
    )
    if start_after is not None:
        query = query.where(OperatorGrant.operator > start_after)
    if not include_expired:
        query = query.where(_grant_is_live(await _block(db, block)))

    result = await db.execute(query)
    return OperatorsResponse(
        operators=[
            _approval_info(g.operator, authorization_service.grant_expiration(g))
            for g in result.scalars().all()
        ]
    )
