from __future__ import annotations

import pytest

from msgrender.core.classifier import (
    EntityOnly,
    FastPathPlain,
    NeedsFullParse,
    WrappedParagraph,
    classify,
    has_entity,
    has_markup,
    single_paragraph_text,
    strip_tags_keeping_text,
)


@pytest.mark.parametrize(
    "raw",
    ["hello", "  spaced  out  ", "a > b", "1 < 2", "semi; colon", "line\nbreak", "emoji \U0001F600"],
)
def test_bodies_without_tags_or_entities_are_returned_verbatim(raw: str) -> None:
    assert classify(raw) == FastPathPlain(raw)


def test_blank_bodies_become_empty_text() -> None:
    assert classify("") == FastPathPlain("")
    assert classify(" \n\t ") == FastPathPlain("")


def test_single_paragraph_fast_path() -> None:
    assert classify("<p>Hello world</p>") == WrappedParagraph("Hello world")
    assert classify("  <P class=\"x\">Fish &amp; chips</P>\n") == WrappedParagraph("Fish & chips")
    assert classify("<p></p>") == WrappedParagraph("")


def test_paragraph_with_inner_markup_needs_full_parse() -> None:
    assert classify("<p>Hi <b>there</b></p>") == NeedsFullParse()
    assert classify("<p>one</p><p>two</p>") == NeedsFullParse()


def test_tags_that_merely_start_with_p_are_not_paragraphs() -> None:
    assert single_paragraph_text("<pre>code</p>") is None
    assert single_paragraph_text("<param>x</p>") is None
    assert classify("<pre>code</pre>") == NeedsFullParse()


def test_entity_only_bodies_are_decoded() -> None:
    assert classify("5 &lt; 6 &amp;&amp; 7 &gt; 6") == EntityOnly("5 < 6 && 7 > 6")


def test_markup_detection_is_structural() -> None:
    assert has_markup("<b>x</b>")
    assert has_markup("< / span>")
    assert not has_markup("<3 you")
    assert not has_markup("a <= b")
    assert has_entity("&#x41;")
    assert not has_entity("AT&T")


def test_strip_tags_keeping_text() -> None:
    assert strip_tags_keeping_text("<p>a <b>b</b> &amp; c</p>") == "a b & c"
    assert strip_tags_keeping_text("unterminated <b") == "unterminated "
