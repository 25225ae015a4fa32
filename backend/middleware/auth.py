"""
Caller identity for /instantiate and /execute.

The registry trusts its execution environment to say who is calling; over
HTTP that is, in order of preference:

    Authorization: Bearer <jwt>    `sub` = caller address, `chain` = registry chain id
    X-Wallet-Address: <address>    development only, never trusted in production

Reads (/query/*) are anonymous.
"""
import logging
from datetime import datetime, timezone, timedelta
from fastapi import HTTPException, Header
from typing import Optional

import jwt

from config import settings
from domain.constants import ADDRESS_LOG_PREFIX, DEFAULT_CHAIN_ID

logger = logging.getLogger(__name__)

_ALGORITHM = "HS256"
_REQUIRED_CLAIMS = ["exp", "iat", "iss", "sub", "chain"]


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _signing_secret() -> str:
    if not settings.jwt_secret:
        raise HTTPException(
            status_code=500,
            detail="Server auth misconfigured (JWT secret missing).",
        )
    return settings.jwt_secret


def _parse_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def issue_access_token(*, wallet_address: str, ttl_minutes: Optional[int] = None) -> str:
    """Sign a short-lived token naming `wallet_address` as the caller."""
    now = _now_utc().replace(microsecond=0)
    ttl = ttl_minutes if ttl_minutes is not None else settings.jwt_access_ttl_minutes
    payload = {
        "iss": settings.jwt_issuer,
        "sub": wallet_address,
        "chain": DEFAULT_CHAIN_ID,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=ttl)).timestamp()),
    }
    return jwt.encode(payload, _signing_secret(), algorithm=_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Verify signature, issuer, expiry and chain binding.

    Raises:
        HTTPException 401: expired, malformed, or issued for another chain
    """
    try:
        payload = jwt.decode(
            token,
            _signing_secret(),
            algorithms=[_ALGORITHM],
            issuer=settings.jwt_issuer,
            options={"require": _REQUIRED_CLAIMS},
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Access token expired.")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid access token.")

    if payload["chain"] != DEFAULT_CHAIN_ID:
        raise HTTPException(status_code=401, detail="Access token was issued for another chain.")
    return payload


async def get_authenticated_wallet(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    x_wallet_address: Optional[str] = Header(None, alias="X-Wallet-Address"),
) -> Optional[str]:
    """The caller address, or None when the request names no caller."""
    token = _parse_bearer_token(authorization)
    if token:
        return decode_access_token(token)["sub"]

    if not x_wallet_address:
        return None
    if settings.environment == "production":
        logger.warning("X-Wallet-Address ignored in production; bearer token required")
        return None
    logger.debug(f"Caller {x_wallet_address[:ADDRESS_LOG_PREFIX]}... identified by header")
    return x_wallet_address


async def require_authenticated_wallet(
    x_wallet_address: Optional[str] = Header(None, alias="X-Wallet-Address"),
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> str:
    caller = await get_authenticated_wallet(
        authorization=authorization,
        x_wallet_address=x_wallet_address,
    )
    if not caller:
        raise HTTPException(
            status_code=401,
            detail="Authentication required. Provide Authorization: Bearer <token> (preferred) or X-Wallet-Address.",
        )
    return caller
