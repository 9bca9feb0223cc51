"""Terminal display adapter built on rich.

Maps style bits onto rich styles. Incoming and outgoing messages use
different base styles, which is why direction is part of the cache key.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from rich.style import Style
from rich.text import Text

from msgrender.core.materialize import clamp_spans
from msgrender.core.models import PlainText, RenderableText, StyleBits
from msgrender.core.spans import utf16_index_table


@dataclass(frozen=True)
class RichTheme:
    """Base and per-attribute styles for message text."""

    incoming: Style = Style(color="default")
    outgoing: Style = Style(color="bright_white")
    code: Style = Style(color="cyan")
    blockquote: Style = Style(dim=True)
    link: Style = Style(underline=True, color="bright_blue")


DEFAULT_THEME = RichTheme()


def style_for_bits(bits: int, href: Optional[str], theme: RichTheme = DEFAULT_THEME) -> Style:
    """Combine the styles for one span's bits."""

    flags = StyleBits(bits)
    style = Style()
    if flags & (StyleBits.CODE | StyleBits.PRE):
        style += theme.code
    else:
        style += Style(
            bold=bool(flags & StyleBits.BOLD) or None,
            italic=bool(flags & StyleBits.ITALIC) or None,
        )
    if flags & StyleBits.STRIKE:
        style += Style(strike=True)
    if flags & StyleBits.BLOCKQUOTE:
        style += theme.blockquote
    if flags & StyleBits.LINK and href:
        style += theme.link + Style(link=href)
    return style


def to_rich_text(
    renderable: RenderableText,
    incoming: bool,
    theme: RichTheme = DEFAULT_THEME,
) -> Text:
    """Build a rich Text for a rendered message."""

    base = theme.incoming if incoming else theme.outgoing
    text = Text(renderable.text, style=base)
    if isinstance(renderable, PlainText):
        return text

    # Clamped spans never reach past the table.
    table = utf16_index_table(renderable.text)
    for span in clamp_spans(renderable.spans, renderable.text):
        start = table[span.start]
        end = table[span.end]
        if end <= start:
            continue
        text.stylize(style_for_bits(span.style_bits, span.href, theme), start, end)
    return text
