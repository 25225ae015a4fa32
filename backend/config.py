"""
Configuration management for the NFT Registry service.

Loads settings from .env via pydantic-settings.

Notes:
    - collection_* / max_* / mint_price_* keys only matter the first time the
      service starts against an empty database (see services.registry_service).
    - validate_production_settings() enforces strict CORS and a JWT secret
      in production.
"""
import logging

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── Database ────────────────────────────────────────────────────
    database_url: str = "sqlite:///./data/nft_registry.db"

    # ── Collection bootstrap (applied once on an empty registry) ────
    collection_name: str = ""
    collection_symbol: str = ""
    collection_minter: str = ""
    collection_withdraw_address: Optional[str] = None
    max_supply: Optional[int] = None
    max_nfts_per_wallet: Optional[int] = None
    mint_price_amount: Optional[int] = None
    mint_price_denom: str = "usei"

    # ── Addresses ───────────────────────────────────────────────────
    # "plain"    — lowercase account names (local chains, test fixtures)
    # "algorand" — 58-char checksummed Algorand addresses
    address_format: str = "plain"

    # ── Pagination ──────────────────────────────────────────────────
    default_page_limit: int = 10
    max_page_limit: int = 30

    # ── Application ─────────────────────────────────────────────────
    environment: str = "development"

    # ── Auth (JWT) ──────────────────────────────────────────────────
    jwt_secret: str = ""
    jwt_issuer: str = "nft-registry-api"
    jwt_access_ttl_minutes: int = 15

    # ── CORS ────────────────────────────────────────────────────────
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # allow unknown .env keys without crashing
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def bootstrap_enabled(self) -> bool:
        """True when .env describes a collection to instantiate on startup."""
        return bool(self.collection_name and self.collection_symbol and self.collection_minter)

    def validate_production_settings(self):
        """
        Validate settings for production safety.

        Called during app startup.
        """
        if self.address_format not in ("plain", "algorand"):
            raise ValueError(
                f"ADDRESS_FORMAT must be 'plain' or 'algorand', got '{self.address_format}'."
            )
        if self.default_page_limit < 1 or self.default_page_limit > self.max_page_limit:
            raise ValueError(
                "DEFAULT_PAGE_LIMIT must be between 1 and MAX_PAGE_LIMIT."
            )

        if self.environment == "production":
            if "*" in self.cors_origins:
                raise ValueError(
                    "CORS_ORIGINS must not contain '*' in production. "
                    "Set explicit allowed origins."
                )
            if not self.jwt_secret:
                raise ValueError(
                    "JWT_SECRET must be set in production. "
                    "It is used to verify caller identity on /execute."
                )
            if self.address_format == "plain":
                raise ValueError(
                    "ADDRESS_FORMAT=plain is for local development only."
                )
            logger.info("Production settings validated")
        else:
            warnings = []
            if "*" in self.cors_origins:
                warnings.append("CORS_ORIGINS contains '*' (open access)")
            if not self.jwt_secret:
                warnings.append("JWT_SECRET unset (only X-Wallet-Address caller identity)")
            for w in warnings:
                logger.warning(f"{w}")


# Global settings instance
settings = Settings()
