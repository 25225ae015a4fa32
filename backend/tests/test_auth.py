"""
Tests for caller identity middleware.

Tests: bearer JWT decoding, X-Wallet-Address fallback, production lockdown.
"""
import time

import jwt
import pytest
from fastapi import HTTPException

from config import settings
from domain.constants import DEFAULT_CHAIN_ID
from middleware.auth import (
    decode_access_token,
    get_authenticated_wallet,
    issue_access_token,
    require_authenticated_wallet,
)


class TestAccessTokens:

    @pytest.mark.unit
    def test_issue_and_decode(self):
        token = issue_access_token(wallet_address="demeter")
        payload = decode_access_token(token)
        assert payload["sub"] == "demeter"
        assert payload["iss"] == settings.jwt_issuer
        assert payload["chain"] == DEFAULT_CHAIN_ID

    @pytest.mark.unit
    def test_garbage_token_raises_401(self):
        with pytest.raises(HTTPException) as exc_info:
            decode_access_token("not.a.jwt")
        assert exc_info.value.status_code == 401

    @pytest.mark.unit
    def test_expired_token_raises_401(self):
        token = issue_access_token(wallet_address="demeter", ttl_minutes=-5)
        with pytest.raises(HTTPException) as exc_info:
            decode_access_token(token)
        assert exc_info.value.status_code == 401
        assert "expired" in exc_info.value.detail

    @pytest.mark.unit
    def test_token_for_other_chain_raises_401(self):
        now = int(time.time())
        token = jwt.encode(
            {
                "iss": settings.jwt_issuer,
                "sub": "demeter",
                "chain": "some-other-chain",
                "iat": now,
                "exp": now + 60,
            },
            settings.jwt_secret,
            algorithm="HS256",
        )
        with pytest.raises(HTTPException) as exc_info:
            decode_access_token(token)
        assert exc_info.value.status_code == 401
        assert "another chain" in exc_info.value.detail


class TestRequireAuthenticatedWallet:
    """Tests for the require_authenticated_wallet dependency."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_bearer_token_wins(self):
        token = issue_access_token(wallet_address="demeter")
        result = await require_authenticated_wallet(
            x_wallet_address="random",
            authorization=f"Bearer {token}",
        )
        assert result == "demeter"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_header_fallback_in_development(self):
        result = await require_authenticated_wallet(
            x_wallet_address="random",
            authorization=None,
        )
        assert result == "random"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_identity_raises_401(self):
        """No bearer token and no header should raise 401."""
        with pytest.raises(HTTPException) as exc_info:
            await require_authenticated_wallet(x_wallet_address=None, authorization=None)
        assert exc_info.value.status_code == 401
        assert "Authentication required" in exc_info.value.detail

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_header_raises_401(self):
        """Empty string header is treated as missing."""
        with pytest.raises(HTTPException) as exc_info:
            await require_authenticated_wallet(x_wallet_address="", authorization=None)
        assert exc_info.value.status_code == 401

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_non_bearer_scheme_ignored(self):
        result = await get_authenticated_wallet(
            authorization="Basic ZGVtZXRlcjpwdw==",
            x_wallet_address="random",
        )
        assert result == "random"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_header_ignored_in_production(self, monkeypatch):
        monkeypatch.setattr(settings, "environment", "production")
        result = await get_authenticated_wallet(authorization=None, x_wallet_address="random")
        assert result is None
