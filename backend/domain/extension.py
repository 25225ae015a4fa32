"""
Attached-data capability for token records.

The registry never looks inside a token's extension. Each extension kind
knows how to turn itself into a JSON payload and back; storage keeps the
tagged blob {"kind": ..., "data": ...}. Unknown kinds survive a round trip
as RawExtension so data written by newer deployments is never lost.
"""
from __future__ import annotations

from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field

from domain.errors import ValidationError


_REGISTRY: dict[str, type["Extension"]] = {}


def register_extension(cls: type["Extension"]) -> type["Extension"]:
    """Class decorator: make an extension kind loadable from storage."""
    _REGISTRY[cls.kind] = cls
    return cls


class Extension:
    """Base class for token extensions."""
    kind: ClassVar[str] = ""

    def to_payload(self) -> Any:
        raise NotImplementedError

    @classmethod
    def from_payload(cls, data: Any) -> "Extension":
        raise NotImplementedError

    def to_blob(self) -> dict[str, Any]:
        return {"kind": self.kind, "data": self.to_payload()}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Extension):
            return NotImplemented
        return self.kind == other.kind and self.to_payload() == other.to_payload()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.to_payload()!r})"


@register_extension
class EmptyExtension(Extension):
    kind = "empty"

    def to_payload(self) -> Any:
        return None

    @classmethod
    def from_payload(cls, data: Any) -> "EmptyExtension":
        return cls()


class Trait(BaseModel):
    display_type: Optional[str] = None
    trait_type: str
    value: str


class Metadata(BaseModel):
    """OpenSea-style token metadata."""
    model_config = ConfigDict(extra="forbid")

    image: Optional[str] = None
    image_data: Optional[str] = None
    external_url: Optional[str] = None
    description: Optional[str] = None
    name: Optional[str] = None
    attributes: Optional[list[Trait]] = None
    background_color: Optional[str] = None
    animation_url: Optional[str] = None
    youtube_url: Optional[str] = None


@register_extension
class MetadataExtension(Extension):
    kind = "metadata"

    def __init__(self, metadata: Metadata):
        self.metadata = metadata

    def to_payload(self) -> Any:
        return self.metadata.model_dump(exclude_none=True)

    @classmethod
    def from_payload(cls, data: Any) -> "MetadataExtension":
        return cls(Metadata.model_validate(data or {}))


class RawExtension(Extension):
    """Payload of a kind this deployment does not know about."""

    def __init__(self, kind: str, data: Any):
        self._kind = kind
        self.data = data

    @property
    def kind(self) -> str:  # type: ignore[override]
        return self._kind

    def to_payload(self) -> Any:
        return self.data

    @classmethod
    def from_payload(cls, data: Any) -> "RawExtension":
        return cls("raw", data)


class ExtensionInput(BaseModel):
    """Wire shape of an extension attached to a mint message."""
    kind: str = Field("empty", min_length=1, max_length=64)
    data: Any = None


def parse_extension(value: Any) -> Extension:
    """
    Build an Extension from a mint message field.

    Accepts None (empty), an Extension, an ExtensionInput, or a
    {"kind", "data"} dict. Registered kinds validate their payload.
    """
    if value is None:
        return EmptyExtension()
    if isinstance(value, Extension):
        return value
    if isinstance(value, ExtensionInput):
        value = value.model_dump()
    if not isinstance(value, dict) or "kind" not in value:
        raise ValidationError("expected {kind, data}", field="extension")

    kind = value["kind"]
    cls = _REGISTRY.get(kind)
    if cls is None:
        return RawExtension(kind, value.get("data"))
    try:
        return cls.from_payload(value.get("data"))
    except ValueError as e:
        raise ValidationError(str(e), field="extension")


def load_extension(blob: Optional[dict]) -> Extension:
    """Rebuild an Extension from its stored blob."""
    if not blob:
        return EmptyExtension()
    cls = _REGISTRY.get(blob.get("kind", ""))
    if cls is None:
        return RawExtension(blob.get("kind", "raw"), blob.get("data"))
    return cls.from_payload(blob.get("data"))
