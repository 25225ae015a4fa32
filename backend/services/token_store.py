"""
Token Store — live token records plus the per-owner secondary index.

Primary map:     tokens.token_id -> row
Secondary index: ix_tokens_owner_seq (owner, seq)

The secondary index is maintained by the database on every insert, owner
update and delete, so it can never drift from the primary map. Listings
iterate by `seq` (mint order), never by comparing id strings: "10" must
come after "9".
"""
import logging
import re
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from db_models import Token
from domain.constants import MAX_STORED_INT
from domain.errors import AlreadyExistsError, NotFoundError, ValidationError
from domain.extension import Extension, EmptyExtension

logger = logging.getLogger(__name__)

_SEQ_ID = re.compile(r"[0-9]+")


def clamp_limit(limit: Optional[int]) -> int:
    """Apply the default page size and the hard cap."""
    if limit is None:
        return settings.default_page_limit
    if limit < 1:
        raise ValidationError("limit must be at least 1", field="limit")
    return min(limit, settings.max_page_limit)


async def may_load(db: AsyncSession, token_id: str) -> Optional[Token]:
    result = await db.execute(select(Token).where(Token.token_id == token_id))
    return result.scalar_one_or_none()


async def load(db: AsyncSession, token_id: str) -> Token:
    """Load a live token or raise NotFoundError."""
    token = await may_load(db, token_id)
    if token is None:
        raise NotFoundError("Token", token_id)
    return token


async def create(
    db: AsyncSession,
    token_id: str,
    seq: int,
    owner: str,
    token_uri: Optional[str] = None,
    extension: Optional[Extension] = None,
) -> Token:
    """
    Insert a new token record.

    Raises:
        AlreadyExistsError: if `token_id` is occupied
    """
    if await may_load(db, token_id) is not None:
        raise AlreadyExistsError("Token", token_id)

    token = Token(
        token_id=token_id,
        seq=seq,
        owner=owner,
        token_uri=token_uri,
        extension=(extension or EmptyExtension()).to_blob(),
        approvals=[],
    )
    db.add(token)
    await db.flush()
    return token


async def save(db: AsyncSession, token: Token) -> Token:
    """Persist pending changes on a loaded token (owner, approvals, uri)."""
    db.add(token)
    await db.flush()
    return token


async def set_owner(db: AsyncSession, token: Token, new_owner: str) -> Token:
    """
    Hand a token to `new_owner`.

    Approvals never outlive a change of owner, so they are cleared in the
    same flush that moves the (owner, seq) index entry.
    """
    token.owner = new_owner
    token.approvals.clear()
    return await save(db, token)


async def remove(db: AsyncSession, token: Token) -> None:
    """Delete a token, its approvals and its index entry."""
    await db.delete(token)
    await db.flush()


async def count(db: AsyncSession) -> int:
    """Number of live token rows."""
    result = await db.execute(select(func.count()).select_from(Token))
    return int(result.scalar_one())


async def _cursor_seq(db: AsyncSession, start_after: Optional[str]) -> Optional[int]:
    """
    Translate an id cursor into a position in mint order.

    A cursor naming a token burned since the previous page is still
    honoured: minted ids are the decimal form of their sequence number.
    """
    if start_after is None:
        return None
    result = await db.execute(select(Token.seq).where(Token.token_id == start_after))
    seq = result.scalar_one_or_none()
    if seq is not None:
        return seq
    if _SEQ_ID.fullmatch(start_after) and int(start_after) <= MAX_STORED_INT:
        return int(start_after)
    raise ValidationError(f"unknown token id '{start_after}'", field="start_after")


async def list_all(
    db: AsyncSession,
    start_after: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[str]:
    """Token ids in mint order, strictly after `start_after`."""
    page_size = clamp_limit(limit)
    after = await _cursor_seq(db, start_after)

    query = select(Token.token_id).order_by(Token.seq.asc()).limit(page_size)
    if after is not None:
        query = query.where(Token.seq > after)
    result = await db.execute(query)
    return list(result.scalars().all())


async def list_by_owner(
    db: AsyncSession,
    owner: str,
    start_after: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[str]:
    """Token ids held by `owner`, in mint order, strictly after `start_after`."""
    page_size = clamp_limit(limit)
    after = await _cursor_seq(db, start_after)

    query = (
        select(Token.token_id)
        .where(Token.owner == owner)
        .order_by(Token.seq.asc())
        .limit(page_size)
    )
    if after is not None:
        query = query.where(Token.seq > after)
    result = await db.execute(query)
    return list(result.scalars().all())
