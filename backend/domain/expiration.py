"""
Block info and expirations.

An Expiration is one of:
    Never            — {"never": {}}
    AtHeight(h)      — {"at_height": h}       expired once block height >= h
    AtTime(t_ns)     — {"at_time": "<nanos>"}  expired once block time >= t_ns

Storage keeps (kind, value) column pairs; see to_columns()/from_columns().
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from domain.constants import MAX_STORED_INT
from domain.enums import ExpirationKind
from domain.errors import ValidationError


@dataclass(frozen=True)
class BlockInfo:
    """The execution environment's notion of "now"."""
    height: int
    time_ns: int
    chain_id: str = "nft-registry-1"


@dataclass(frozen=True)
class Expiration:
    kind: ExpirationKind = ExpirationKind.NEVER
    value: Optional[int] = None

    # ── Constructors ────────────────────────────────────────────────

    @classmethod
    def never(cls) -> "Expiration":
        return cls(ExpirationKind.NEVER, None)

    @classmethod
    def at_height(cls, height: int) -> "Expiration":
        return cls(ExpirationKind.AT_HEIGHT, int(height))

    @classmethod
    def at_time(cls, time_ns: int) -> "Expiration":
        return cls(ExpirationKind.AT_TIME, int(time_ns))

    # ── Evaluation ──────────────────────────────────────────────────

    def is_expired(self, block: BlockInfo) -> bool:
        if self.kind == ExpirationKind.AT_HEIGHT:
            return block.height >= self.value
        if self.kind == ExpirationKind.AT_TIME:
            return block.time_ns >= self.value
        return False

    # ── Storage ─────────────────────────────────────────────────────

    def to_columns(self) -> tuple[str, Optional[int]]:
        return self.kind.value, self.value

    @classmethod
    def from_columns(cls, kind: Optional[str], value: Optional[int]) -> "Expiration":
        if not kind:
            return cls.never()
        return cls(ExpirationKind(kind), value)

    # ── Wire format ─────────────────────────────────────────────────

    def to_json(self) -> dict[str, Any]:
        if self.kind == ExpirationKind.AT_HEIGHT:
            return {"at_height": self.value}
        if self.kind == ExpirationKind.AT_TIME:
            # nanos exceed JS safe integers, so they travel as strings
            return {"at_time": str(self.value)}
        return {"never": {}}

    @classmethod
    def from_json(cls, data: Any) -> "Expiration":
        """Parse the wire shape; None means Never."""
        if data is None:
            return cls.never()
        if isinstance(data, Expiration):
            return data
        if not isinstance(data, dict) or len(data) != 1:
            raise ValidationError("expected exactly one of never/at_height/at_time", field="expires")

        key, raw = next(iter(data.items()))
        try:
            if key == "never":
                return cls.never()
            if key == "at_height":
                return cls.at_height(_parse_bound(raw))
            if key == "at_time":
                return cls.at_time(_parse_bound(raw))
        except (TypeError, ValueError):
            raise ValidationError(f"invalid {key} value: {raw!r}", field="expires")
        raise ValidationError(f"unknown expiration variant '{key}'", field="expires")

    def __str__(self) -> str:
        if self.kind == ExpirationKind.AT_HEIGHT:
            return f"expiration height: {self.value}"
        if self.kind == ExpirationKind.AT_TIME:
            return f"expiration time: {self.value}"
        return "expiration: never"


def _parse_bound(raw: Any) -> int:
    # bools are ints in Python; {"at_height": true} is not a height
    if isinstance(raw, bool):
        raise TypeError(raw)
    value = int(raw)
    if not 0 <= value <= MAX_STORED_INT:
        raise ValueError(raw)
    return value
