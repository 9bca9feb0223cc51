"""Character reference decoding shared by the fast path and the parser."""

from __future__ import annotations

import re
from typing import Optional

# A reference never reaches further than this past its '&', so text with
# stray ampersands and no ';' is still decoded in linear time.
ENTITY_LOOKAHEAD = 16

NAMED_ENTITIES = {
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "quot": '"',
    "apos": "'",
    "nbsp": "\u00a0",
}

_DECIMAL = re.compile(r"[0-9]+")
_HEX = re.compile(r"[0-9A-Fa-f]+")


def _scalar(value: int) -> Optional[str]:
    if value > 0x10FFFF or 0xD800 <= value <= 0xDFFF:
        return None
    return chr(value)


def decode_entity(entity: str) -> Optional[str]:
    """Resolve the text between '&' and ';', or None if it is not a known reference."""

    named = NAMED_ENTITIES.get(entity.lower())
    if named is not None:
        return named

    if entity[:2] in ("#x", "#X"):
        digits = entity[2:]
        if not _HEX.fullmatch(digits):
            return None
        return _scalar(int(digits, 16))

    if entity.startswith("#"):
        digits = entity[1:]
        if not _DECIMAL.fullmatch(digits):
            return None
        return _scalar(int(digits))

    return None


def decode(text: str) -> str:
    """Decode named and numeric character references.

    Unresolvable sequences are copied through unchanged.
    """

    if "&" not in text:
        return text

    out: list[str] = []
    index = 0
    length = len(text)
    while index < length:
        amp = text.find("&", index)
        if amp < 0:
            out.append(text[index:])
            break
        out.append(text[index:amp])

        semicolon = text.find(";", amp + 1, amp + ENTITY_LOOKAHEAD + 1)
        if semicolon >= 0:
            decoded = decode_entity(text[amp + 1 : semicolon])
            if decoded is not None:
                out.append(decoded)
                index = semicolon + 1
                continue

        out.append("&")
        index = amp + 1

    return "".join(out)
