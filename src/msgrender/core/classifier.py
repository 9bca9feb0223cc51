"""Cheap structural checks that pick an output path before full parsing.

Every check here is a conservative substring/regex test. A false positive on
one of the fast paths would silently drop real markup, so anything that is
not obviously plain falls through to the full parser.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Union

from msgrender.core.entities import decode

TAG_PATTERN = re.compile(r"<\s*/?\s*[a-zA-Z]")
ENTITY_PATTERN = re.compile(r"&(#[0-9]+|#x[0-9A-Fa-f]+|[A-Za-z]{2,31});")
_SINGLE_PARAGRAPH = re.compile(r"<p(?:\s[^<>]*)?>([^<>]*)</p>", re.IGNORECASE)


@dataclass(frozen=True)
class FastPathPlain:
    """Body needs no decoding at all."""

    text: str


@dataclass(frozen=True)
class WrappedParagraph:
    """Body is a single <p> with plain interior."""

    text: str


@dataclass(frozen=True)
class EntityOnly:
    """Body has character references but no tags."""

    text: str


@dataclass(frozen=True)
class NeedsFullParse:
    """Body has markup the fast paths cannot handle."""


Classification = Union[FastPathPlain, WrappedParagraph, EntityOnly, NeedsFullParse]


def has_markup(text: str) -> bool:
    return TAG_PATTERN.search(text) is not None


def has_entity(text: str) -> bool:
    return ENTITY_PATTERN.search(text) is not None


def single_paragraph_text(raw: str) -> Optional[str]:
    """Return the decoded interior if the body is exactly one plain paragraph."""

    match = _SINGLE_PARAGRAPH.fullmatch(raw.strip())
    if match is None:
        return None
    return decode(match.group(1))


def strip_tags_keeping_text(raw: str) -> str:
    """Best-effort text: drop everything between '<' and '>' and decode the rest."""

    out: list[str] = []
    inside_tag = False
    for ch in raw:
        if ch == "<":
            inside_tag = True
        elif ch == ">":
            inside_tag = False
        elif not inside_tag:
            out.append(ch)
    return decode("".join(out))


def classify(raw: str) -> Classification:
    """Select an output path; first matching rule wins."""

    if not raw.strip():
        return FastPathPlain("")

    markup = has_markup(raw)
    entity = has_entity(raw)
    if not markup and not entity:
        return FastPathPlain(raw)

    paragraph = single_paragraph_text(raw)
    if paragraph is not None:
        return WrappedParagraph(paragraph)

    if not markup:
        return EntityOnly(decode(raw))

    return NeedsFullParse()
