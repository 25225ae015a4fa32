"""
SQLAlchemy ORM models for the NFT Registry.

Tables:
    collection_info     — singleton: name/symbol, issuance policy, treasury, counters
    tokens              — live token records (burned tokens are deleted)
    token_approvals     — per-token, per-spender transfer rights
    operator_grants     — blanket (granter, operator) rights
    wallet_mint_counts  — lifetime mints per wallet (never decremented)
    contract_ownership  — singleton: current owner (= minter) and pending transfer
    chain_head          — singleton: block height/time of the last executed call
"""
from datetime import datetime

from sqlalchemy import (
    Column, Integer, BigInteger, String, DateTime, Text, JSON, ForeignKey,
    UniqueConstraint, Index,
)
from sqlalchemy.orm import relationship

from database import Base


class CollectionInfo(Base):
    """
    Registry-wide singleton row (id is always 1).

    Policy parameters are written once by instantiate and read-only after.
    token_count always equals the number of rows in `tokens`.
    next_token_seq only grows; it is the ordinal of the next minted token.
    """
    __tablename__ = "collection_info"

    id = Column(Integer, primary_key=True, default=1)
    name = Column(String(200), nullable=False)
    symbol = Column(String(50), nullable=False)

    # Issuance policy (null => unlimited / free)
    max_supply = Column(BigInteger, nullable=True)
    max_nfts_per_wallet = Column(BigInteger, nullable=True)
    mint_price_amount = Column(BigInteger, nullable=True)
    mint_price_denom = Column(String(128), nullable=True)

    # Treasury
    withdraw_address = Column(String(128), nullable=True)

    # Counters
    token_count = Column(BigInteger, nullable=False, default=0)
    next_token_seq = Column(BigInteger, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)


class Token(Base):
    """One row per live token."""
    __tablename__ = "tokens"

    token_id = Column(String(128), primary_key=True)
    seq = Column(BigInteger, unique=True, nullable=False)  # mint order
    owner = Column(String(128), nullable=False, index=True)
    token_uri = Column(Text, nullable=True)
    extension = Column(JSON, nullable=True)  # tagged payload {"kind", "data"}
    minted_at = Column(DateTime, default=datetime.utcnow)

    approvals = relationship(
        "TokenApproval",
        back_populates="token",
        cascade="all, delete-orphan",
        order_by="TokenApproval.id",
        lazy="selectin",
    )

    __table_args__ = (
        # Secondary index for per-owner enumeration in mint order
        Index("ix_tokens_owner_seq", "owner", "seq"),
    )


class TokenApproval(Base):
    """A spender's right to transfer one token, until `expires`."""
    __tablename__ = "token_approvals"

    id = Column(Integer, primary_key=True, autoincrement=True)
    token_id = Column(
        String(128),
        ForeignKey("tokens.token_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    spender = Column(String(128), nullable=False)
    expires_kind = Column(String(16), nullable=False, default="never")  # never | at_height | at_time
    expires_value = Column(BigInteger, nullable=True)  # height, or unix nanos

    token = relationship("Token", back_populates="approvals")

    __table_args__ = (
        UniqueConstraint("token_id", "spender", name="uq_token_approval_spender"),
    )


class OperatorGrant(Base):
    """Blanket right of `operator` over every token `granter` owns."""
    __tablename__ = "operator_grants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    granter = Column(String(128), nullable=False, index=True)
    operator = Column(String(128), nullable=False)
    expires_kind = Column(String(16), nullable=False, default="never")
    expires_value = Column(BigInteger, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("granter", "operator", name="uq_operator_grant_pair"),
        Index("ix_operator_grants_granter_operator", "granter", "operator"),
    )


class WalletMintCount(Base):
    """Lifetime mint volume per wallet. Burns never decrement it."""
    __tablename__ = "wallet_mint_counts"

    wallet = Column(String(128), primary_key=True)
    minted = Column(BigInteger, nullable=False, default=0)


class ContractOwnership(Base):
    """
    Singleton row tracking who may administer the registry.

    owner is the authorized minter. A transfer is two-phase: the owner
    proposes pending_owner, who must accept before pending expiry.
    """
    __tablename__ = "contract_ownership"

    id = Column(Integer, primary_key=True, default=1)
    owner = Column(String(128), nullable=True)
    pending_owner = Column(String(128), nullable=True)
    pending_expiry_kind = Column(String(16), nullable=True)
    pending_expiry_value = Column(BigInteger, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class ChainHead(Base):
    """
    Persisted block info of the last executed call.

    Expirations are evaluated against this head, so it survives restarts.
    """
    __tablename__ = "chain_head"

    id = Column(Integer, primary_key=True, default=1)
    chain_id = Column(String(64), nullable=False, default="nft-registry-1")
    height = Column(BigInteger, nullable=False, default=0)
    time_ns = Column(BigInteger, nullable=False, default=0)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
