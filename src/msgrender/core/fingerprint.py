"""Cache key composition for rendered messages."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Optional

from msgrender.core.models import RenderKind, StoredMessage


@dataclass(frozen=True)
class RenderCacheKey:
    """Composite fingerprint of everything that affects a rendered message."""

    message_id: str
    version: int
    kind: int
    payload_hash: str
    plain_hash: str
    incoming: bool


def content_hash(data: Optional[bytes]) -> str:
    """Return a SHA-256 hex digest, or "0" for a missing value."""

    if data is None:
        return "0"
    return hashlib.sha256(data).hexdigest()


def _text_hash(text: str) -> str:
    return content_hash(text.encode("utf-8", "surrogatepass"))


def build_cache_key(message: StoredMessage) -> RenderCacheKey:
    """Fingerprint a message's render inputs.

    Without a stored render the raw body takes the place of the plain text so
    an edited body still changes the key.
    """

    render = message.render
    if render is None:
        return RenderCacheKey(
            message_id=message.message_id,
            version=0,
            kind=int(RenderKind.UNKNOWN),
            payload_hash="0",
            plain_hash=_text_hash(message.body),
            incoming=message.incoming,
        )

    plain_hash = _text_hash(render.plain_text)
    if render.kind not in (RenderKind.PLAIN, RenderKind.RICH) or not render.is_current:
        # Re-derived from the body on render, so the body must be in the key.
        plain_hash = _text_hash(f"{render.plain_text}\n{message.body}")

    return RenderCacheKey(
        message_id=message.message_id,
        version=render.version,
        kind=int(render.kind),
        payload_hash=content_hash(render.payload),
        plain_hash=plain_hash,
        incoming=message.incoming,
    )
