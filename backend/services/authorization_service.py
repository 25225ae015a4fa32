"""
Authorization Engine — who may approve, transfer or burn a token.

Levels, strongest first:
    owner            — the token's current owner
    token approval   — an unexpired per-token approval for the actor
    operator grant   — an unexpired blanket grant from the token's owner

approve/revoke accept owner or operator only: a per-token delegate cannot
re-delegate. transfer/send/burn accept all three levels.

Operator grants are keyed by (granter, operator). Expired grants are not
swept; they are judged against the current block whenever they are read.
"""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import OperatorGrant, Token, TokenApproval
from domain.constants import ADDRESS_LOG_PREFIX
from domain.errors import ExpiredError, UnauthorizedError
from domain.expiration import BlockInfo, Expiration
from services import token_store
from utils.validators import validate_address

logger = logging.getLogger(__name__)


def grant_expiration(grant: OperatorGrant) -> Expiration:
    return Expiration.from_columns(grant.expires_kind, grant.expires_value)


def approval_expiration(approval: TokenApproval) -> Expiration:
    return Expiration.from_columns(approval.expires_kind, approval.expires_value)


async def get_operator_grant(
    db: AsyncSession, granter: str, operator: str
) -> Optional[OperatorGrant]:
    result = await db.execute(
        select(OperatorGrant).where(
            OperatorGrant.granter == granter,
            OperatorGrant.operator == operator,
        )
    )
    return result.scalar_one_or_none()


async def _has_live_operator_grant(
    db: AsyncSession, granter: str, operator: str, block: BlockInfo
) -> bool:
    grant = await get_operator_grant(db, granter, operator)
    return grant is not None and not grant_expiration(grant).is_expired(block)


async def can_approve(db: AsyncSession, actor: str, token: Token, block: BlockInfo) -> None:
    """
    Raise UnauthorizedError unless `actor` may change the token's approvals.
    """
    if token.owner == actor:
        return
    if await _has_live_operator_grant(db, token.owner, actor, block):
        return
    raise UnauthorizedError(
        f"Caller is not the owner or an operator of token {token.token_id}",
        details={"token_id": token.token_id},
    )


async def can_transfer(db: AsyncSession, actor: str, token: Token, block: BlockInfo) -> None:
    """
    Raise UnauthorizedError unless `actor` may move or burn the token.
    """
    if token.owner == actor:
        return
    for approval in token.approvals:
        if approval.spender == actor and not approval_expiration(approval).is_expired(block):
            return
    if await _has_live_operator_grant(db, token.owner, actor, block):
        return
    raise UnauthorizedError(
        f"Caller is not authorized to transfer token {token.token_id}",
        details={"token_id": token.token_id},
    )


async def set_operator(
    db: AsyncSession,
    granter: str,
    operator: str,
    expires: Expiration,
    block: BlockInfo,
) -> OperatorGrant:
    """
    Grant (or re-grant with a new expiry) blanket rights over `granter`'s tokens.

    Raises:
        ExpiredError: if `expires` has already passed
        BadAddressError: if `operator` is malformed
    """
    if expires.is_expired(block):
        raise ExpiredError()
    validate_address(operator)

    kind, value = expires.to_columns()
    grant = await get_operator_grant(db, granter, operator)
    if grant is None:
        grant = OperatorGrant(granter=granter, operator=operator)
        db.add(grant)
    grant.expires_kind = kind
    grant.expires_value = value
    await db.flush()

    logger.info(
        f"Operator grant: {granter[:ADDRESS_LOG_PREFIX]}... -> "
        f"{operator[:ADDRESS_LOG_PREFIX]}... ({expires})"
    )
    return grant


async def clear_operator(db: AsyncSession, granter: str, operator: str) -> bool:
    """
    Remove a grant if present. Absent grants are not an error.

    Returns:
        bool: True if a grant was removed
    """
    validate_address(operator)
    grant = await get_operator_grant(db, granter, operator)
    if grant is None:
        return False
    await db.delete(grant)
    await db.flush()
    logger.info(
        f"Operator revoked: {granter[:ADDRESS_LOG_PREFIX]}... -> "
        f"{operator[:ADDRESS_LOG_PREFIX]}..."
    )
    return True


async def set_or_clear_token_approval(
    db: AsyncSession,
    actor: str,
    token_id: str,
    spender: str,
    add: bool,
    expires: Optional[Expiration],
    block: BlockInfo,
) -> Token:
    """
    Approve (add=True) or revoke (add=False) `spender` on one token.

    Approvals are a set keyed by spender: any existing entry for `spender`
    is dropped first, so re-approving replaces and revoking an absent
    spender is a no-op.

    Raises:
        NotFoundError, UnauthorizedError, BadAddressError, ExpiredError
    """
    token = await token_store.load(db, token_id)
    await can_approve(db, actor, token, block)
    validate_address(spender)

    expires = expires or Expiration.never()
    if add and expires.is_expired(block):
        raise ExpiredError()

    stale = [a for a in token.approvals if a.spender == spender]
    for approval in stale:
        token.approvals.remove(approval)
    if stale:
        # DELETE must reach the database before the replacement INSERT,
        # otherwise uq_token_approval_spender trips inside one flush.
        await db.flush()

    if add:
        kind, value = expires.to_columns()
        token.approvals.append(
            TokenApproval(spender=spender, expires_kind=kind, expires_value=value)
        )

    return await token_store.save(db, token)
