"""
Chain Clock — the registry's source of "now".

Every executed call is one block: the dispatcher advances the head before
running a handler, and all expirations in that call are evaluated against
the advanced head. Queries read the head without moving it.
"""
import logging
import time

from sqlalchemy.ext.asyncio import AsyncSession

from db_models import ChainHead
from domain.constants import BLOCK_HEIGHT_STEP, CHAIN_HEAD_ROW_ID, DEFAULT_CHAIN_ID
from domain.expiration import BlockInfo

logger = logging.getLogger(__name__)


def _now_ns() -> int:
    return time.time_ns()


async def _get_head(db: AsyncSession) -> ChainHead:
    head = await db.get(ChainHead, CHAIN_HEAD_ROW_ID)
    if head is None:
        head = ChainHead(id=CHAIN_HEAD_ROW_ID, chain_id=DEFAULT_CHAIN_ID, height=0, time_ns=0)
        db.add(head)
        await db.flush()
    return head


def _to_block(head: ChainHead) -> BlockInfo:
    return BlockInfo(height=head.height, time_ns=head.time_ns, chain_id=head.chain_id)


async def current_block(db: AsyncSession) -> BlockInfo:
    """Block info of the last executed call (height 0 before any call)."""
    head = await db.get(ChainHead, CHAIN_HEAD_ROW_ID)
    if head is None:
        return BlockInfo(height=0, time_ns=_now_ns(), chain_id=DEFAULT_CHAIN_ID)
    return _to_block(head)


async def advance(db: AsyncSession) -> BlockInfo:
    """Open a new block for the call about to execute."""
    head = await _get_head(db)
    head.height = head.height + BLOCK_HEIGHT_STEP
    # Time never runs backwards, even if the host clock does
    head.time_ns = max(head.time_ns + 1, _now_ns())
    await db.flush()
    return _to_block(head)
