"""Core domain models.

These dataclasses are shared across the core and adapters so neither the
message store nor the UI needs to know how a body was parsed.
"""

from __future__ import annotations

import base64
import enum
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple, Union

# Bumped whenever the payload encoding or parser output changes, so persisted
# renders from older builds get recomputed instead of trusted.
RENDER_VERSION = 1


class StyleBits(enum.IntFlag):
    """Formatting flags carried by a span; combined by union."""

    NONE = 0
    BOLD = 1 << 0
    ITALIC = 1 << 1
    STRIKE = 1 << 2
    CODE = 1 << 3
    PRE = 1 << 4
    BLOCKQUOTE = 1 << 5
    LINK = 1 << 6


class RenderKind(enum.IntEnum):
    """Which field of a precomputed render is authoritative."""

    UNKNOWN = 0
    PLAIN = 1
    RICH = 2
    FAILED = 3

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def from_label(cls, value: Any) -> "RenderKind":
        """Map a persisted label (or raw int) back to a kind, UNKNOWN if unrecognised."""

        if isinstance(value, str):
            try:
                return cls[value.upper()]
            except KeyError:
                return cls.UNKNOWN
        try:
            return cls(value)
        except (TypeError, ValueError):
            return cls.UNKNOWN


@dataclass(frozen=True)
class Span:
    """Half-open [start, end) range over output text, in UTF-16 code units."""

    start: int
    end: int
    style_bits: int
    href: Optional[str] = None


@dataclass(frozen=True)
class ParsedPayload:
    """Full parse result for one message body."""

    version: int
    text: str
    spans: Tuple[Span, ...] = ()


@dataclass(frozen=True)
class PrecomputedRender:
    """Persistable result of classification and parsing."""

    contains_markup: bool
    kind: RenderKind
    version: int
    plain_text: str
    payload: Optional[bytes] = None

    @property
    def is_current(self) -> bool:
        return self.version == RENDER_VERSION

    def to_dict(self) -> dict:
        """Return the JSON-friendly shape stored as message metadata."""

        payload = None
        if self.payload is not None:
            payload = base64.b64encode(self.payload).decode("ascii")
        return {
            "containsMarkup": self.contains_markup,
            "kind": self.kind.label,
            "version": self.version,
            "plainText": self.plain_text,
            "payload": payload,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PrecomputedRender":
        """Rebuild a record from `to_dict` output.

        Unknown kinds load as UNKNOWN so the renderer re-derives them; a
        payload that is not valid base64 is dropped rather than trusted.
        """

        payload = data.get("payload")
        payload_bytes: Optional[bytes] = None
        if isinstance(payload, str) and payload:
            try:
                payload_bytes = base64.b64decode(payload, validate=True)
            except ValueError:
                payload_bytes = None
        version = data.get("version", 0)
        return cls(
            contains_markup=bool(data.get("containsMarkup", False)),
            kind=RenderKind.from_label(data.get("kind")),
            version=version if isinstance(version, int) else 0,
            plain_text=str(data.get("plainText") or ""),
            payload=payload_bytes,
        )


@dataclass(frozen=True)
class PlainText:
    """Renderable body with no styling."""

    text: str


@dataclass(frozen=True)
class RichText:
    """Renderable body with style spans (UTF-16 offsets)."""

    text: str
    spans: Tuple[Span, ...] = field(default_factory=tuple)


RenderableText = Union[PlainText, RichText]


@dataclass(frozen=True)
class MessageIdentity:
    """Stable message id plus direction, used only for cache keys."""

    message_id: str
    incoming: bool


@dataclass(frozen=True)
class StoredMessage:
    """A message as handed over by the message store."""

    message_id: str
    body: str
    incoming: bool
    render: Optional[PrecomputedRender] = None

    @property
    def identity(self) -> MessageIdentity:
        return MessageIdentity(message_id=self.message_id, incoming=self.incoming)
