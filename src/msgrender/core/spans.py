"""Output buffer for the parser: text, UTF-16 offsets, and merged style spans."""

from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Tuple

from msgrender.core.models import Span, StyleBits

TRAILING_TRIM = " \t\n"


def utf16_len(text: str) -> int:
    """Length of text in UTF-16 code units (astral characters count twice)."""

    return len(text) + sum(1 for ch in text if ord(ch) > 0xFFFF)


def utf16_index_table(text: str) -> List[int]:
    """Table mapping every UTF-16 offset 0..utf16_len(text) to a str index.

    An offset that lands inside a surrogate pair maps to the end of that
    character.
    """

    table: List[int] = []
    for index, ch in enumerate(text):
        table.append(index)
        if ord(ch) > 0xFFFF:
            table.append(index + 1)
    table.append(len(text))
    return table


def repair_spans(spans: List[Span], text_len: int) -> List[Span]:
    """Drop or shorten spans so none reaches past text_len."""

    repaired: List[Span] = []
    for span in spans:
        if span.start >= text_len:
            continue
        if span.end > text_len:
            span = replace(span, end=text_len)
        if span.end > span.start:
            repaired.append(span)
    return repaired


class SpanBuilder:
    """Accumulates output text and coalesces same-style runs into spans.

    The span list grows with the number of style transitions, not with the
    number of characters appended.
    """

    def __init__(self) -> None:
        self._parts: List[str] = []
        self._length = 0
        self._last_char = ""
        self._spans: List[Span] = []

    @property
    def last_char(self) -> str:
        return self._last_char

    @property
    def is_empty(self) -> bool:
        return self._length == 0

    def append(self, text: str, style_bits: int = 0, href: Optional[str] = None) -> None:
        """Append text, extending or opening a span when it carries style."""

        if not text:
            return

        start = self._length
        self._parts.append(text)
        self._length += utf16_len(text)
        self._last_char = text[-1]

        if href is not None:
            style_bits = int(style_bits | StyleBits.LINK)
        if not style_bits:
            return

        if self._spans:
            last = self._spans[-1]
            if last.end == start and last.style_bits == style_bits and last.href == href:
                self._spans[-1] = replace(last, end=self._length)
                return

        self._spans.append(Span(start=start, end=self._length, style_bits=int(style_bits), href=href))

    def newline(self, force: bool) -> None:
        """Emit a line break; unforced breaks are skipped after an existing one.

        Nothing is emitted at the very start of the output.
        """

        if self.is_empty:
            return
        if force or self._last_char != "\n":
            self.append("\n")

    def build(self) -> Tuple[str, Tuple[Span, ...]]:
        """Return the final text with trailing whitespace trimmed and spans repaired."""

        text = "".join(self._parts)
        trimmed = text.rstrip(TRAILING_TRIM)
        # Trimmed characters are all single-unit, so the new UTF-16 length is
        # the old one minus the number removed.
        length = self._length - (len(text) - len(trimmed))
        return trimmed, tuple(repair_spans(self._spans, length))
