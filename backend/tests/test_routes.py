"""
Tests for API route endpoints.

Tests: health, /instantiate, /execute, /query/* and the error envelope.
"""
import pytest
from httpx import AsyncClient, ASGITransport

from database import get_db
from main import app
from tests.helpers import DEMETER, MINTER, RANDOM

MINT_BODY = {
    "msg": {"action": "mint", "owner": DEMETER, "token_uri": "https://magic/0"},
    "funds": [{"denom": "usei", "amount": 1_000_000}],
}


def _as(wallet: str) -> dict:
    return {"X-Wallet-Address": wallet}


@pytest.fixture(scope="function")
async def client(db_session):
    """ASGI client whose requests share the test's in-memory session."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


class TestHealthEndpoint:
    """Tests for GET /health."""

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_health_returns_200(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database_connected"] is True
        assert data["block_height"] == 0


class TestInstantiateEndpoint:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_instantiate(self, client):
        response = await client.post(
            "/instantiate",
            json={"name": "Magic Power", "symbol": "MGK", "max_supply": 4},
            headers=_as(MINTER),
        )
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["action"] == "instantiate"

        minter = await client.get("/query/minter")
        assert minter.json()["data"] == {"minter": MINTER}

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_instantiate_twice_conflicts(self, client, registry):
        response = await client.post(
            "/instantiate", json={"name": "Again", "symbol": "AGN"}, headers=_as(MINTER)
        )
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "alreadyexists"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_oversized_price_returns_422(self, client):
        response = await client.post(
            "/instantiate",
            json={"name": "Dear", "symbol": "DR", "price_per_nft": {"denom": "usei", "amount": 10**20}},
            headers=_as(MINTER),
        )
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "request_validation"


class TestExecuteEndpoint:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_mint_and_read_back(self, client, registry):
        response = await client.post("/execute", json=MINT_BODY, headers=_as(MINTER))
        assert response.status_code == 200
        result = response.json()["data"]
        assert result["action"] == "mint"
        assert {"key": "token_id", "value": "0"} in result["attributes"]

        owner = await client.get("/query/tokens/0/owner")
        assert owner.json()["data"] == {"owner": DEMETER, "approvals": []}

        info = await client.get("/query/tokens/0/info")
        assert info.json()["data"]["token_uri"] == "https://magic/0"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_policy_error_envelope(self, client, registry):
        body = {"msg": MINT_BODY["msg"], "funds": []}
        response = await client.post("/execute", json=body, headers=_as(MINTER))

        assert response.status_code == 402
        error = response.json()
        assert error["success"] is False
        assert error["error"]["code"] == "notenoughfunds"
        assert error["error"]["details"] == {"amount": "1000000", "denom": "usei"}

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_unauthorized_transfer(self, client, registry):
        await client.post("/execute", json=MINT_BODY, headers=_as(MINTER))
        response = await client.post(
            "/execute",
            json={"msg": {"action": "transfer_nft", "recipient": RANDOM, "token_id": "0"}},
            headers=_as(RANDOM),
        )
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "unauthorized"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_missing_identity_returns_401(self, client, registry):
        response = await client.post("/execute", json=MINT_BODY)
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "http_error"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_malformed_sender_rejected(self, client, registry):
        response = await client.post("/execute", json=MINT_BODY, headers=_as("Merlin The Great"))
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "badaddress"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_unknown_action_returns_422(self, client, registry):
        response = await client.post(
            "/execute", json={"msg": {"action": "teleport"}}, headers=_as(MINTER)
        )
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "request_validation"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_bearer_token_identity(self, client, registry):
        from middleware.auth import issue_access_token

        token = issue_access_token(wallet_address=MINTER)
        response = await client.post(
            "/execute",
            json={"msg": {"action": "set_withdraw_address", "address": "treasury"}},
            headers={"Authorization": f"Bearer {token}"},
        )
        assert response.status_code == 200

        address = await client.get("/query/withdraw-address")
        assert address.json()["data"] == {"address": "treasury"}


class TestQueryEndpoints:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_token_listing_is_cursor_paginated(self, client, registry):
        await client.post("/execute", json=MINT_BODY, headers=_as(MINTER))
        await client.post("/execute", json=MINT_BODY, headers=_as(MINTER))

        page = (await client.get("/query/tokens", params={"limit": 1})).json()
        assert page["data"] == ["0"]
        assert page["meta"] == {"limit": 1, "startAfter": None, "nextStartAfter": "0"}

        rest = (await client.get("/query/tokens", params={"limit": 1, "start_after": "0"})).json()
        assert rest["data"] == ["1"]

        mine = (await client.get(f"/query/owners/{DEMETER}/tokens")).json()
        assert mine["data"] == ["0", "1"]
        assert mine["meta"]["nextStartAfter"] is None

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_operator_listing(self, client, registry):
        await client.post(
            "/execute",
            json={"msg": {"action": "approve_all", "operator": RANDOM}},
            headers=_as(DEMETER),
        )

        listing = (await client.get(f"/query/owners/{DEMETER}/operators")).json()
        assert listing["data"] == [{"spender": RANDOM, "expires": {"never": {}}}]

        single = await client.get(f"/query/owners/{DEMETER}/operators/{RANDOM}")
        assert single.status_code == 200

        missing = await client.get(f"/query/owners/{RANDOM}/operators/{DEMETER}")
        assert missing.status_code == 404
        assert missing.json()["error"]["code"] == "notfound"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_collection_queries(self, client, registry):
        info = (await client.get("/query/contract-info")).json()["data"]
        assert info == {"name": "Magic Power", "symbol": "MGK"}

        config = (await client.get("/query/mint-config")).json()["data"]
        assert config["price_per_nft"] == {"denom": "usei", "amount": 1_000_000}

        count = (await client.get("/query/num-tokens")).json()["data"]
        assert count == {"count": 0}

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_unknown_token_returns_404(self, client, registry):
        response = await client.get("/query/tokens/42/all-info")
        assert response.status_code == 404

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_non_ascii_digit_cursor_returns_400(self, client, registry):
        response = await client.get("/query/tokens", params={"start_after": "\u00b2"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "validation"
