"""
Unit tests for the token store.

Tests create/load/remove, the per-owner index, and cursor listings in mint order.
"""
import pytest

from config import settings
from domain.errors import AlreadyExistsError, NotFoundError, ValidationError
from domain.extension import EmptyExtension, load_extension
from services import token_store
from tests.helpers import DEMETER, PERSON, RANDOM


async def _seed(db, owners):
    """Create tokens "0".."n-1" owned by `owners[i]`."""
    for seq, owner in enumerate(owners):
        await token_store.create(db, str(seq), seq=seq, owner=owner)
    await db.commit()


class TestCreateLoad:

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_then_load(self, db_session):
        await token_store.create(db_session, "0", seq=0, owner=DEMETER, token_uri="https://x/0")
        await db_session.commit()

        token = await token_store.load(db_session, "0")
        assert token.owner == DEMETER
        assert token.token_uri == "https://x/0"
        assert token.approvals == []
        assert load_extension(token.extension) == EmptyExtension()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_occupied_id_fails(self, db_session):
        await token_store.create(db_session, "0", seq=0, owner=DEMETER)
        with pytest.raises(AlreadyExistsError) as exc_info:
            await token_store.create(db_session, "0", seq=1, owner=RANDOM)
        assert exc_info.value.status_code == 409

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_load_missing_fails(self, db_session):
        with pytest.raises(NotFoundError) as exc_info:
            await token_store.load(db_session, "404")
        assert exc_info.value.status_code == 404

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_may_load_missing_is_none(self, db_session):
        assert await token_store.may_load(db_session, "nope") is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_remove_and_count(self, db_session):
        await _seed(db_session, [DEMETER, DEMETER, RANDOM])
        assert await token_store.count(db_session) == 3

        token = await token_store.load(db_session, "1")
        await token_store.remove(db_session, token)
        await db_session.commit()

        assert await token_store.count(db_session) == 2
        assert await token_store.may_load(db_session, "1") is None


class TestOwnerIndex:
    """The per-owner listing always agrees with token ownership."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_set_owner_moves_index_entry(self, db_session):
        await _seed(db_session, [DEMETER, DEMETER])
        token = await token_store.load(db_session, "0")
        await token_store.set_owner(db_session, token, PERSON)
        await db_session.commit()

        assert await token_store.list_by_owner(db_session, DEMETER) == ["1"]
        assert await token_store.list_by_owner(db_session, PERSON) == ["0"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_removed_token_leaves_owner_listing(self, db_session):
        await _seed(db_session, [DEMETER])
        await token_store.remove(db_session, await token_store.load(db_session, "0"))
        await db_session.commit()

        assert await token_store.list_by_owner(db_session, DEMETER) == []


class TestListings:

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_ids_past_nine_stay_in_mint_order(self, db_session):
        await _seed(db_session, [DEMETER] * 12)

        ids = await token_store.list_all(db_session, limit=30)
        assert ids == [str(i) for i in range(12)]

        # "10" must not sort before "2"
        assert await token_store.list_all(db_session, start_after="9", limit=2) == ["10", "11"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_start_after_is_exclusive(self, db_session):
        await _seed(db_session, [DEMETER, RANDOM, DEMETER, RANDOM])

        assert await token_store.list_all(db_session, start_after="1") == ["2", "3"]
        assert await token_store.list_by_owner(db_session, RANDOM, start_after="1") == ["3"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_default_and_hard_caps(self, db_session):
        await _seed(db_session, [DEMETER] * (settings.max_page_limit + 5))

        assert len(await token_store.list_all(db_session)) == settings.default_page_limit
        assert len(await token_store.list_all(db_session, limit=1000)) == settings.max_page_limit

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_cursor_on_burned_id_still_works(self, db_session):
        await _seed(db_session, [DEMETER, DEMETER, DEMETER])
        await token_store.remove(db_session, await token_store.load(db_session, "1"))
        await db_session.commit()

        assert await token_store.list_all(db_session, start_after="1") == ["2"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_non_numeric_cursor_rejected(self, db_session):
        with pytest.raises(ValidationError):
            await token_store.list_all(db_session, start_after="not-a-token")

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize("cursor", ["\u00b2", "\u0663", str(2**63)])
    async def test_cursor_outside_decimal_id_range_rejected(self, db_session, cursor):
        await _seed(db_session, [DEMETER])

        with pytest.raises(ValidationError):
            await token_store.list_all(db_session, start_after=cursor)
        with pytest.raises(ValidationError):
            await token_store.list_by_owner(db_session, DEMETER, start_after=cursor)

    @pytest.mark.unit
    def test_clamp_limit(self):
        assert token_store.clamp_limit(None) == settings.default_page_limit
        assert token_store.clamp_limit(5) == 5
        assert token_store.clamp_limit(10_000) == settings.max_page_limit
        with pytest.raises(ValidationError):
            token_store.clamp_limit(0)
