"""
Shared constants and call helpers for registry tests.
"""
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from domain.expiration import BlockInfo
from models import Coin, MintMsg
from services import registry_service

MINTER = "merlin"
DEMETER = "demeter"
RANDOM = "random"
PERSON = "person"
VENUS = "venus"

MAX_PER_WALLET = 2
MAX_SUPPLY = 4
PRICE = Coin(denom="usei", amount=1_000_000)


def paid(amount: int = 1_000_000, denom: str = "usei") -> list[Coin]:
    """Funds covering one mint."""
    return [Coin(denom=denom, amount=amount)]


def block_at(height: int, time_ns: int = 1_700_000_000_000_000_000) -> BlockInfo:
    return BlockInfo(height=height, time_ns=time_ns)


async def mint_to(
    db: AsyncSession,
    owner: str,
    sender: str = MINTER,
    token_uri: Optional[str] = None,
    funds: Optional[list[Coin]] = None,
) -> str:
    """Mint one token to `owner`; returns its id."""
    result = await registry_service.execute(
        db,
        sender,
        MintMsg(owner=owner, token_uri=token_uri),
        funds=paid() if funds is None else funds,
    )
    return result.attr("token_id")
