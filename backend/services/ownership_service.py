"""
Ownership Service — who administers the registry (the authorized minter).

State machine over the contract_ownership singleton:

    Owned(owner)
      -- transfer_ownership(new_owner, expiry) by owner -->  Pending(owner, new_owner, expiry)
    Pending
      -- accept_ownership by new_owner, before expiry -->     Owned(new_owner)
      -- transfer_ownership again by owner -->               Pending(owner, other, expiry')
    Owned / Pending
      -- renounce_ownership by owner -->                     Unowned

Until a transfer is accepted the old owner stays the minter.
"""
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from db_models import ContractOwnership
from domain.constants import ADDRESS_LOG_PREFIX, OWNERSHIP_ROW_ID
from domain.errors import ExpiredError, NotFoundError, UnauthorizedError
from domain.expiration import BlockInfo, Expiration
from utils.validators import validate_address

logger = logging.getLogger(__name__)

TRANSFER_OWNERSHIP = "transfer_ownership"
ACCEPT_OWNERSHIP = "accept_ownership"
RENOUNCE_OWNERSHIP = "renounce_ownership"


def _short(address: Optional[str]) -> str:
    return f"{address[:ADDRESS_LOG_PREFIX]}..." if address else "none"


async def may_load_ownership(db: AsyncSession) -> Optional[ContractOwnership]:
    return await db.get(ContractOwnership, OWNERSHIP_ROW_ID)


async def get_ownership(db: AsyncSession) -> ContractOwnership:
    row = await may_load_ownership(db)
    if row is None:
        row = ContractOwnership(id=OWNERSHIP_ROW_ID)
        db.add(row)
        await db.flush()
    return row


def pending_expiry(row: ContractOwnership) -> Optional[Expiration]:
    if row.pending_owner is None or row.pending_expiry_kind is None:
        return None
    return Expiration.from_columns(row.pending_expiry_kind, row.pending_expiry_value)


async def initialize_owner(db: AsyncSession, owner: str) -> ContractOwnership:
    validate_address(owner)
    row = await get_ownership(db)
    row.owner = owner
    row.pending_owner = None
    row.pending_expiry_kind = None
    row.pending_expiry_value = None
    await db.flush()
    return row


async def current_minter(db: AsyncSession) -> Optional[str]:
    """The resolved owner; a pending transfer does not change it."""
    row = await may_load_ownership(db)
    return row.owner if row else None


async def assert_owner(db: AsyncSession, sender: str) -> None:
    owner = await current_minter(db)
    if owner is None:
        raise UnauthorizedError("Contract ownership has been renounced")
    if sender != owner:
        raise UnauthorizedError("Caller is not the contract's current owner")


async def update_ownership(
    db: AsyncSession,
    sender: str,
    action: str,
    block: BlockInfo,
    new_owner: Optional[str] = None,
    expiry: Optional[Expiration] = None,
) -> ContractOwnership:
    """Apply one ownership transition; see the module docstring."""
    row = await get_ownership(db)

    if action == TRANSFER_OWNERSHIP:
        await assert_owner(db, sender)
        validate_address(new_owner)
        if expiry is not None and expiry.is_expired(block):
            raise ExpiredError("Ownership transfer expiry is already in the past")
        row.pending_owner = new_owner
        if expiry is None:
            row.pending_expiry_kind = None
            row.pending_expiry_value = None
        else:
            row.pending_expiry_kind, row.pending_expiry_value = expiry.to_columns()

    elif action == ACCEPT_OWNERSHIP:
        if row.pending_owner is None:
            raise NotFoundError("Pending ownership transfer", "none")
        if sender != row.pending_owner:
            raise UnauthorizedError("Caller is not the pending owner")
        expires = pending_expiry(row)
        if expires is not None and expires.is_expired(block):
            raise ExpiredError("Pending ownership transfer has expired")
        row.owner = row.pending_owner
        row.pending_owner = None
        row.pending_expiry_kind = None
        row.pending_expiry_value = None

    elif action == RENOUNCE_OWNERSHIP:
        await assert_owner(db, sender)
        row.owner = None
        row.pending_owner = None
        row.pending_expiry_kind = None
        row.pending_expiry_value = None

    else:
        raise ValueError(f"unknown ownership action: {action}")

    await db.flush()
    logger.info(
        f"Ownership {action} by {_short(sender)} -> "
        f"owner={_short(row.owner)}, pending={_short(row.pending_owner)}"
    )
    return row
