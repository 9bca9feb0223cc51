"""Turn persisted render records into display-ready values.

Payloads may have been written by an older build, so spans are never
trusted: anything outside the text is clamped or dropped here instead of
being handed to the UI.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Tuple

from msgrender.core.codec import PayloadDecodeError, decode_payload
from msgrender.core.models import (
    ParsedPayload,
    PlainText,
    PrecomputedRender,
    RenderableText,
    RenderKind,
    RichText,
    Span,
)
from msgrender.core.precompute import precompute
from msgrender.core.spans import utf16_len

LOGGER = logging.getLogger(__name__)


def clamp_spans(spans: Tuple[Span, ...], text: str) -> Tuple[Span, ...]:
    """Clamp spans to [0, utf16_len(text)] and discard empty or inverted ones."""

    limit = utf16_len(text)
    kept = []
    for span in spans:
        start = max(0, span.start)
        end = min(limit, span.end)
        if end <= start:
            continue
        if (start, end) != (span.start, span.end):
            span = replace(span, start=start, end=end)
        kept.append(span)
    return tuple(kept)


def renderable_from_payload(payload: ParsedPayload) -> RenderableText:
    spans = clamp_spans(payload.spans, payload.text)
    if not spans:
        return PlainText(payload.text)
    return RichText(text=payload.text, spans=spans)


def _from_rich_record(record: PrecomputedRender) -> Optional[RenderableText]:
    if record.payload is None:
        return None
    try:
        payload = decode_payload(record.payload)
    except PayloadDecodeError as exc:
        LOGGER.warning("Stored render payload unreadable, using plain text (%s)", exc)
        return None
    return renderable_from_payload(payload)


def _rederive(body: str) -> RenderableText:
    LOGGER.debug("Re-deriving render from message body")
    try:
        record = precompute(body)
        if record.kind == RenderKind.RICH:
            rich = _from_rich_record(record)
            if rich is not None:
                return rich
        return PlainText(record.plain_text)
    except Exception:
        LOGGER.exception("Render failed, showing message body as-is")
        return PlainText(body)


def build_renderable(body: str, record: Optional[PrecomputedRender]) -> RenderableText:
    """Materialise a renderable value for one message.

    PLAIN records are used directly, RICH records are decoded (falling back to
    their plain text), and FAILED, UNKNOWN, stale or missing records are
    re-derived from the raw body.
    """

    if record is None or not record.is_current:
        return _rederive(body)

    if record.kind == RenderKind.PLAIN:
        return PlainText(record.plain_text)

    if record.kind == RenderKind.RICH:
        rich = _from_rich_record(record)
        if rich is not None:
            return rich
        return PlainText(record.plain_text)

    return _rederive(body)
