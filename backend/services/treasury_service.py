"""
Treasury Service — withdraw address and payout instructions.

The registry never holds or moves funds itself. withdraw() only decides
that a payout should happen and to whom; settlement (and any balance
check) belongs to whoever executes the returned BankSend.
"""
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from db_models import CollectionInfo
from domain.constants import ADDRESS_LOG_PREFIX
from domain.errors import NoWithdrawAddressError
from models import BankSend, Coin
from services import ownership_service
from utils.validators import validate_address

logger = logging.getLogger(__name__)


async def set_withdraw_address(
    db: AsyncSession, info: CollectionInfo, sender: str, address: str
) -> str:
    """Minter-only. Overwrites any previous address."""
    await ownership_service.assert_owner(db, sender)
    validate_address(address)
    info.withdraw_address = address
    await db.flush()
    logger.info(f"Treasury: withdraw address set to {address[:ADDRESS_LOG_PREFIX]}...")
    return address


async def remove_withdraw_address(
    db: AsyncSession, info: CollectionInfo, sender: str
) -> str:
    """
    Minter-only.

    Returns:
        str: the address that was removed

    Raises:
        NoWithdrawAddressError: if none was set
    """
    await ownership_service.assert_owner(db, sender)
    address = info.withdraw_address
    if address is None:
        raise NoWithdrawAddressError()
    info.withdraw_address = None
    await db.flush()
    logger.info(f"Treasury: withdraw address {address[:ADDRESS_LOG_PREFIX]}... removed")
    return address


def withdraw(info: CollectionInfo, amount: Coin) -> BankSend:
    """Payout instruction of `amount` to the configured address."""
    address: Optional[str] = info.withdraw_address
    if address is None:
        raise NoWithdrawAddressError()
    logger.info(f"Treasury: withdraw {amount} to {address[:ADDRESS_LOG_PREFIX]}...")
    return BankSend(to_address=address, amount=[amount])
