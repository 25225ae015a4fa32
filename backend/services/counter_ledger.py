"""
Counter Ledger — total supply and lifetime mints per wallet.

Both counters live next to the token rows they describe and are staged on
the same session, so they commit (or roll back) together with the Token
Store mutation that caused them. Call each function exactly once per
successful mint/burn.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from db_models import CollectionInfo, WalletMintCount

logger = logging.getLogger(__name__)


async def minted_by_wallet(db: AsyncSession, wallet: str) -> int:
    """Tokens ever minted to `wallet` (0 if none)."""
    row = await db.get(WalletMintCount, wallet)
    return row.minted if row else 0


async def increment_on_mint(db: AsyncSession, info: CollectionInfo, owner: str) -> int:
    """
    Count a freshly minted token.

    Returns:
        int: the new token_count
    """
    info.token_count = info.token_count + 1

    row = await db.get(WalletMintCount, owner)
    if row is None:
        row = WalletMintCount(wallet=owner, minted=0)
        db.add(row)
    row.minted = row.minted + 1

    await db.flush()
    return info.token_count


async def decrement_on_burn(db: AsyncSession, info: CollectionInfo) -> int:
    """
    Uncount a burned token. minted_by_wallet is left untouched.

    Returns:
        int: the new token_count
    """
    if info.token_count <= 0:
        # store and ledger disagree; refuse to go negative
        raise RuntimeError("token_count underflow on burn")
    info.token_count = info.token_count - 1
    await db.flush()
    return info.token_count
