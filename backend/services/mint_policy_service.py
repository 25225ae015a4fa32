"""
Mint Policy Engine — issuance checks run before any token is created.

Checks, in this fixed order (first failure wins):
    1. supply cap        -> SupplyOverflowError
    2. per-wallet cap    -> MintPerWalletOverflowError
    3. mint price        -> NotEnoughFundsError

The price check wants one attached coin of the right denom worth at least
the price. Coins are not summed and overpayment is not refunded.
"""
import logging
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from db_models import CollectionInfo
from domain.errors import (
    MintPerWalletOverflowError,
    NotEnoughFundsError,
    SupplyOverflowError,
)
from models import Coin
from services import counter_ledger

logger = logging.getLogger(__name__)


def mint_price(info: CollectionInfo) -> Optional[Coin]:
    if info.mint_price_amount is None or not info.mint_price_denom:
        return None
    return Coin(denom=info.mint_price_denom, amount=info.mint_price_amount)


def has_sufficient_coin(funds: Iterable[Coin], price: Coin) -> bool:
    return any(c.denom == price.denom and c.amount >= price.amount for c in funds)


async def authorize_mint(
    db: AsyncSession,
    info: CollectionInfo,
    owner: str,
    funds: list[Coin],
) -> None:
    """Raise the first policy violation a mint to `owner` would commit."""
    if info.max_supply is not None and info.token_count >= info.max_supply:
        raise SupplyOverflowError(info.max_supply)

    if info.max_nfts_per_wallet is not None:
        minted = await counter_ledger.minted_by_wallet(db, owner)
        if minted >= info.max_nfts_per_wallet:
            raise MintPerWalletOverflowError(owner, info.max_nfts_per_wallet)

    price = mint_price(info)
    if price is not None and not has_sufficient_coin(funds, price):
        raise NotEnoughFundsError(price.amount, price.denom)
