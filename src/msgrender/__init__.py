"""msgrender: turns chat message markup into display-ready text and style spans."""

from msgrender.core.cache import RenderCache
from msgrender.core.classifier import classify
from msgrender.core.entities import decode
from msgrender.core.models import (
    RENDER_VERSION,
    ParsedPayload,
    PlainText,
    PrecomputedRender,
    RenderKind,
    RichText,
    Span,
    StoredMessage,
    StyleBits,
)
from msgrender.core.parser import parse
from msgrender.core.precompute import precompute
from msgrender.core.renderer import MessageRenderer

__all__ = [
    "RENDER_VERSION",
    "MessageRenderer",
    "ParsedPayload",
    "PlainText",
    "PrecomputedRender",
    "RenderCache",
    "RenderKind",
    "RichText",
    "Span",
    "StoredMessage",
    "StyleBits",
    "classify",
    "decode",
    "parse",
    "precompute",
]
