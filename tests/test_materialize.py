from __future__ import annotations

import logging

import pytest

from msgrender.core.codec import encode_payload
from msgrender.core.materialize import build_renderable, clamp_spans
from msgrender.core.models import (
    RENDER_VERSION,
    ParsedPayload,
    PlainText,
    PrecomputedRender,
    RenderKind,
    RichText,
    Span,
    StyleBits,
)
from msgrender.core.precompute import precompute

BOLD = int(StyleBits.BOLD)


def _rich_record(payload: ParsedPayload, plain_text: str = "fallback") -> PrecomputedRender:
    return PrecomputedRender(
        contains_markup=True,
        kind=RenderKind.RICH,
        version=RENDER_VERSION,
        plain_text=plain_text,
        payload=encode_payload(payload),
    )


def test_plain_record_is_used_directly() -> None:
    record = precompute("<p>Hello world</p>")
    assert build_renderable("<p>Hello world</p>", record) == PlainText("Hello world")


def test_rich_record_is_decoded() -> None:
    body = "<p>Hi <b>bold</b></p>"
    assert build_renderable(body, precompute(body)) == RichText(
        text="Hi bold", spans=(Span(start=3, end=7, style_bits=BOLD),)
    )


def test_corrupt_payload_falls_back_to_plain_text(caplog: pytest.LogCaptureFixture) -> None:
    record = PrecomputedRender(
        contains_markup=True,
        kind=RenderKind.RICH,
        version=RENDER_VERSION,
        plain_text="Hi bold",
        payload=b"{broken",
    )
    with caplog.at_level(logging.WARNING):
        assert build_renderable("<b>ignored</b>", record) == PlainText("Hi bold")
    assert "unreadable" in caplog.text


def test_rich_record_without_payload_uses_plain_text() -> None:
    record = PrecomputedRender(True, RenderKind.RICH, RENDER_VERSION, "plain", None)
    assert build_renderable("<b>x</b>", record) == PlainText("plain")


@pytest.mark.parametrize("kind", [RenderKind.FAILED, RenderKind.UNKNOWN])
def test_failed_and_unknown_records_are_rederived(kind: RenderKind) -> None:
    record = PrecomputedRender(True, kind, RENDER_VERSION, "stale text", None)
    assert build_renderable("<i>fresh</i>", record) == RichText(
        text="fresh", spans=(Span(start=0, end=5, style_bits=int(StyleBits.ITALIC)),)
    )


def test_missing_or_stale_record_is_rederived() -> None:
    assert build_renderable("a &amp; b", None) == PlainText("a & b")
    old = PrecomputedRender(False, RenderKind.PLAIN, RENDER_VERSION + 1, "old", None)
    assert build_renderable("new", old) == PlainText("new")


def test_rederive_failure_shows_body(monkeypatch: pytest.MonkeyPatch) -> None:
    def explode(raw: str) -> PrecomputedRender:
        raise RuntimeError("boom")

    monkeypatch.setattr("msgrender.core.materialize.precompute", explode)
    assert build_renderable("<b>x</b>", None) == PlainText("<b>x</b>")


def test_out_of_range_spans_are_clamped_or_dropped() -> None:
    payload = ParsedPayload(
        version=RENDER_VERSION,
        text="abc",
        spans=(
            Span(start=-2, end=1, style_bits=BOLD),
            Span(start=2, end=10, style_bits=BOLD),
            Span(start=5, end=8, style_bits=BOLD),
            Span(start=2, end=2, style_bits=BOLD),
        ),
    )
    assert build_renderable("", _rich_record(payload)) == RichText(
        text="abc",
        spans=(Span(start=0, end=1, style_bits=BOLD), Span(start=2, end=3, style_bits=BOLD)),
    )


def test_payload_with_only_invalid_spans_becomes_plain() -> None:
    payload = ParsedPayload(
        version=RENDER_VERSION, text="abc", spans=(Span(start=7, end=9, style_bits=BOLD),)
    )
    assert build_renderable("", _rich_record(payload)) == PlainText("abc")


def test_clamp_uses_utf16_length() -> None:
    spans = (Span(start=0, end=5, style_bits=BOLD),)
    assert clamp_spans(spans, "\U0001F600a") == (Span(start=0, end=3, style_bits=BOLD),)


@pytest.mark.parametrize(
    "payload",
    [
        b"[" * 100_000,
        b'{"version": 1, "text": "abc", "spans": [{"start": ' + b"9" * 5_000 + b', "end": 1, "styleBits": 1}]}',
    ],
)
def test_pathological_payload_falls_back_to_plain_text(payload: bytes) -> None:
    record = PrecomputedRender(True, RenderKind.RICH, RENDER_VERSION, "abc", payload)
    assert build_renderable("<b>ignored</b>", record) == PlainText("abc")
