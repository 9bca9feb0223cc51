"""Build the persistable render record for a message body."""

from __future__ import annotations

import logging

from msgrender.core.classifier import (
    EntityOnly,
    FastPathPlain,
    WrappedParagraph,
    classify,
    strip_tags_keeping_text,
)
from msgrender.core.codec import encode_payload
from msgrender.core.models import RENDER_VERSION, PrecomputedRender, RenderKind
from msgrender.core.parser import parse

LOGGER = logging.getLogger(__name__)


def _plain(text: str, contains_markup: bool, version: int = RENDER_VERSION) -> PrecomputedRender:
    return PrecomputedRender(
        contains_markup=contains_markup,
        kind=RenderKind.PLAIN,
        version=version,
        plain_text=text,
        payload=None,
    )


def precompute(raw: str) -> PrecomputedRender:
    """Classify and, when needed, parse a body into a PrecomputedRender.

    Order of outcomes:
    - fast-path plain bodies keep their text verbatim (no markup flag)
    - a single wrapped paragraph or entity-only body is decoded to plain text
    - full parses without any span are stored as plain text
    - full parses with spans are stored as RICH with a JSON payload
    - if the payload cannot be encoded the record is FAILED and carries a
      tag-stripped fallback
    """

    result = classify(raw)
    if isinstance(result, FastPathPlain):
        return _plain(result.text, contains_markup=False)
    if isinstance(result, (WrappedParagraph, EntityOnly)):
        return _plain(result.text, contains_markup=True)

    payload = parse(raw)
    if not payload.spans:
        return _plain(payload.text, contains_markup=True, version=payload.version)

    try:
        encoded = encode_payload(payload)
    except (TypeError, ValueError) as exc:
        LOGGER.warning("Payload encoding failed, storing stripped text (%s)", exc)
        return PrecomputedRender(
            contains_markup=True,
            kind=RenderKind.FAILED,
            version=RENDER_VERSION,
            plain_text=strip_tags_keeping_text(raw),
            payload=None,
        )

    return PrecomputedRender(
        contains_markup=True,
        kind=RenderKind.RICH,
        version=payload.version,
        plain_text=payload.text,
        payload=encoded,
    )
