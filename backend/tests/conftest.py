"""
Pytest configuration and shared fixtures for NFT Registry tests.

Provides an in-memory SQLite session per test and an instantiated registry
(minter "merlin", 2 mints per wallet, supply 4, price 1000000usei).
"""
import pytest
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from database import enable_sqlite_pragmas, init_db, make_sessionmaker
from config import settings
from models import InstantiateMsg
from services import registry_service
from tests.helpers import MAX_PER_WALLET, MAX_SUPPLY, MINTER, PRICE

# ── Test Configuration ───────────────────────────────────────────────
# Set test-only values for settings that would normally come from .env
if not settings.jwt_secret:
    settings.jwt_secret = "test-jwt-secret-for-pytest-only"
settings.address_format = "plain"
settings.environment = "development"


# ── Database Fixtures ────────────────────────────────────────────────


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create an in-memory SQLite database session for each test.

    Uses StaticPool to allow in-memory SQLite with async SQLAlchemy, and
    the same pragmas and session settings as the application engine.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_pragmas(engine)
    await init_db(engine)

    async with make_sessionmaker(engine)() as session:
        yield session

    await engine.dispose()


# ── Registry Fixtures ────────────────────────────────────────────────


@pytest.fixture
def instantiate_msg() -> InstantiateMsg:
    """The collection every registry test starts from."""
    return InstantiateMsg(
        name="Magic Power",
        symbol="MGK",
        minter=MINTER,
        max_nfts_per_wallet=MAX_PER_WALLET,
        max_supply=MAX_SUPPLY,
        price_per_nft=PRICE,
    )


@pytest.fixture
async def registry(db_session: AsyncSession, instantiate_msg: InstantiateMsg) -> AsyncSession:
    """An instantiated registry; yields the session to run calls on."""
    await registry_service.instantiate(db_session, MINTER, instantiate_msg)
    return db_session


@pytest.fixture
async def open_registry(db_session: AsyncSession) -> AsyncSession:
    """A registry without supply cap, wallet cap or price."""
    await registry_service.instantiate(
        db_session, MINTER, InstantiateMsg(name="Open", symbol="OPN", minter=MINTER)
    )
    return db_session


# ── Test Data Fixtures ────────────────────────────────────────────────


@pytest.fixture
def sample_algorand_wallet() -> str:
    """Valid Algorand address for tests."""
    return "CFZRI425PCKOE7PN3ICOQLFHXQMB2FLM45BYLEHXVLFHIQCU2NDCFKIHM4"


@pytest.fixture
def second_algorand_wallet() -> str:
    """Another valid Algorand address for tests."""
    return "K2N7KBBVYX5XOZHOPM2PVRKL6DOJXLTYNKV53372QJG4YD3UH57LBHGNCE"
