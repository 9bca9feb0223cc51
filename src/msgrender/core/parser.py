"""Streaming tokenizer and style tracker for the message markup subset.

A single left-to-right scan turns raw markup into plain text plus merged
style spans. Open tags are kept in a flat stack searched by name on close, so
mismatched nesting degrades gracefully instead of failing.

Every branch of the scan either consumes a whole construct or advances by at
least one character, and lookups for the next '>' are memoised, so the scan is
linear in the input length even for adversarial bodies.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlsplit

from msgrender.core.entities import decode
from msgrender.core.models import RENDER_VERSION, ParsedPayload, StyleBits
from msgrender.core.spans import SpanBuilder

ALLOWED_SCHEMES = frozenset({"http", "https"})
KEPT_ATTRIBUTES = frozenset({"href", "target", "rel"})
BLOCK_TAGS = frozenset({"p", "li", "pre", "blockquote", "ul", "ol"})
SUPPRESSED_TAGS = frozenset({"script", "style"})
BULLET = "• "
# Tags opened past this depth are ignored, which keeps style lookups and
# close-tag searches bounded on deeply nested input.
MAX_OPEN_TAGS = 256

INLINE_STYLES: Dict[str, StyleBits] = {
    "strong": StyleBits.BOLD,
    "b": StyleBits.BOLD,
    "em": StyleBits.ITALIC,
    "i": StyleBits.ITALIC,
    "s": StyleBits.STRIKE,
    "code": StyleBits.CODE,
    "pre": StyleBits.PRE | StyleBits.CODE,
    "blockquote": StyleBits.BLOCKQUOTE,
}

# Matched right after '<': optional '/', then a name that starts with a letter
# and is followed by whitespace, '/' or '>'.
_TAG_OPEN = re.compile(r"(/\s*)?([A-Za-z][A-Za-z0-9:-]*)(?=[\s/>])")


@dataclass(frozen=True)
class TagToken:
    name: str
    closing: bool = False
    self_closing: bool = False
    attributes: Dict[str, str] = field(default_factory=dict)


@dataclass
class _ActiveTag:
    name: str
    style: int
    href: Optional[str] = None


@dataclass
class _ListContext:
    name: str
    next_index: int


def _scan_attributes(raw: str) -> Tuple[Dict[str, str], bool]:
    """Scan attribute text; also report whether the last value ran to the end.

    A value that runs to the end is unquoted or unterminated, so a trailing
    '/' belongs to it rather than marking the tag self-closing.
    """

    attributes: Dict[str, str] = {}
    value_to_end = False
    index = 0
    length = len(raw)
    while index < length:
        while index < length and raw[index].isspace():
            index += 1
        if index >= length:
            break

        key_start = index
        while index < length and not raw[index].isspace() and raw[index] != "=":
            index += 1
        key = raw[key_start:index].lower()
        if not key:
            break
        value_to_end = False

        while index < length and raw[index].isspace():
            index += 1

        value = ""
        if index < length and raw[index] == "=":
            index += 1
            while index < length and raw[index].isspace():
                index += 1
            if index < length and raw[index] in "\"'":
                quote = raw[index]
                close = raw.find(quote, index + 1)
                if close < 0:
                    close = length
                    value_to_end = True
                value = raw[index + 1 : close]
                index = close + 1
            else:
                value_start = index
                while index < length and not raw[index].isspace():
                    index += 1
                value = raw[value_start:index]
                value_to_end = index >= length

        if key in KEPT_ATTRIBUTES:
            attributes[key] = value

    return attributes, value_to_end


def parse_attributes(raw: str) -> Dict[str, str]:
    """Parse a tag's attribute text, keeping only href/target/rel.

    Quotes may be double, single or absent. Anything malformed stops the
    scan and returns what was collected so far.
    """

    return _scan_attributes(raw)[0]


def sanitize_href(href: Optional[str]) -> Optional[str]:
    """Return the decoded href if it is an absolute http(s) URL, else None."""

    if href is None:
        return None
    decoded = decode(href).strip()
    if not decoded:
        return None
    if any(ch.isspace() or ord(ch) < 0x20 for ch in decoded):
        return None
    try:
        parts = urlsplit(decoded)
    except ValueError:
        return None
    if parts.scheme.lower() not in ALLOWED_SCHEMES or not parts.netloc:
        return None
    return decoded


class MarkupParser:
    """One-shot parser state; use `parse()` rather than instantiating directly."""

    def __init__(self, raw: str) -> None:
        self._raw = raw
        self._out = SpanBuilder()
        self._active: List[_ActiveTag] = []
        self._lists: List[_ListContext] = []
        self._suppress_depth = 0
        # Style of a collapsed whitespace run not yet written out.
        self._pending_space: Optional[Tuple[int, Optional[str]]] = None
        self._next_gt = -1

    def parse(self) -> ParsedPayload:
        raw = self._raw
        index = 0
        length = len(raw)

        while index < length:
            if raw[index] != "<":
                next_tag = raw.find("<", index)
                if next_tag < 0:
                    next_tag = length
                self._append_chunk(raw[index:next_tag])
                index = next_tag
                continue

            if raw.startswith("<!--", index):
                comment_end = raw.find("-->", index + 2)
                if comment_end < 0:
                    break
                index = comment_end + 3
                continue

            parsed = self._parse_tag(index)
            if parsed is None:
                # Not a tag: emit the '<' literally and move on by one.
                self._append_chunk("<")
                index += 1
                continue

            token, index = parsed
            self._handle(token)

        text, spans = self._out.build()
        return ParsedPayload(version=RENDER_VERSION, text=text, spans=spans)

    def _find_gt(self, start: int) -> int:
        if self._next_gt != -2 and self._next_gt < start:
            self._next_gt = self._raw.find(">", start)
            if self._next_gt < 0:
                # No '>' anywhere further on; remember that.
                self._next_gt = -2
        return self._next_gt

    def _parse_tag(self, start: int) -> Optional[Tuple[TagToken, int]]:
        end = self._find_gt(start + 1)
        if end < 0:
            return None

        match = _TAG_OPEN.match(self._raw, start + 1, end + 1)
        if match is None:
            return None

        rest = self._raw[match.end() : end].strip()
        attributes, value_to_end = _scan_attributes(rest)
        # <a href=https://a.b/> keeps its slash in the href.
        self_closing = rest.endswith("/") and not value_to_end

        token = TagToken(
            name=match.group(2).lower(),
            closing=match.group(1) is not None,
            self_closing=self_closing,
            attributes=attributes,
        )
        return token, end + 1

    def _handle(self, token: TagToken) -> None:
        name = token.name

        if name in SUPPRESSED_TAGS:
            if token.closing:
                self._suppress_depth = max(0, self._suppress_depth - 1)
            elif not token.self_closing:
                self._suppress_depth += 1
            return

        if token.closing:
            self._handle_closing(name)
            return

        if name == "br":
            self._newline(force=True)
            return

        if name in BLOCK_TAGS:
            self._newline(force=False)

        if name == "li":
            self._append_list_prefix()
        elif not token.self_closing:
            self._open(token)

        if name in BLOCK_TAGS and token.self_closing:
            self._newline(force=True)

    def _open(self, token: TagToken) -> None:
        name = token.name
        if name in ("ul", "ol"):
            if len(self._lists) < MAX_OPEN_TAGS:
                self._lists.append(_ListContext(name=name, next_index=1))
            return

        if len(self._active) >= MAX_OPEN_TAGS:
            return
        if name in INLINE_STYLES:
            self._active.append(_ActiveTag(name=name, style=int(INLINE_STYLES[name])))
        elif name == "a":
            href = sanitize_href(token.attributes.get("href"))
            style = int(StyleBits.LINK) if href is not None else 0
            self._active.append(_ActiveTag(name=name, style=style, href=href))

    def _handle_closing(self, name: str) -> None:
        if name in BLOCK_TAGS:
            self._newline(force=True)
        if name in INLINE_STYLES or name == "a":
            self._pop_last(self._active, name)
        if name in ("ul", "ol"):
            self._pop_last(self._lists, name)

    @staticmethod
    def _pop_last(stack: list, name: str) -> None:
        for position in range(len(stack) - 1, -1, -1):
            if stack[position].name == name:
                del stack[position]
                return

    def _append_list_prefix(self) -> None:
        if self._lists and self._lists[-1].name == "ol":
            context = self._lists[-1]
            marker = f"{context.next_index}. "
            context.next_index += 1
        else:
            marker = BULLET
        self._append_text(marker)

    def _current_style(self) -> Tuple[int, Optional[str]]:
        bits = 0
        for tag in self._active:
            bits |= tag.style
        href = None
        for tag in reversed(self._active):
            if tag.href is not None:
                href = tag.href
                break
        return bits, href

    def _inside(self, name: str) -> bool:
        return any(tag.name == name for tag in self._active)

    def _newline(self, force: bool) -> None:
        self._pending_space = None
        self._out.newline(force)

    def _flush_pending_space(self) -> None:
        if self._pending_space is None:
            return
        bits, href = self._pending_space
        self._pending_space = None
        if self._out.last_char not in ("", " ", "\n"):
            self._out.append(" ", bits, href)

    def _append_text(self, text: str) -> None:
        if not text:
            return
        self._flush_pending_space()
        bits, href = self._current_style()
        self._out.append(text, bits, href)

    def _append_chunk(self, chunk: str) -> None:
        if self._suppress_depth or not chunk:
            return

        decoded = decode(chunk)
        if self._inside("pre"):
            self._append_text(decoded)
            return

        style = self._current_style()
        words = decoded.split()
        if not words:
            if decoded:
                self._pending_space = style
            return

        if decoded[0].isspace():
            self._pending_space = style
        self._append_text(" ".join(words))
        if decoded[-1].isspace():
            self._pending_space = style


def parse(raw: str) -> ParsedPayload:
    """Parse a raw message body into text plus style spans. Never raises."""

    return MarkupParser(raw).parse()
