from __future__ import annotations

import threading

import pytest

from msgrender.core.cache import RenderCache
from msgrender.core.fingerprint import build_cache_key
from msgrender.core.models import PlainText, RichText, Span, StoredMessage
from msgrender.core.precompute import precompute


def test_get_or_build_is_idempotent() -> None:
    cache: RenderCache[str, RichText] = RenderCache(capacity=10)
    calls = []

    def build() -> RichText:
        calls.append(1)
        return RichText(text="ab", spans=(Span(start=0, end=1, style_bits=1),))

    first = cache.get_or_build("k", build)
    second = cache.get_or_build("k", build)
    assert first == second
    assert len(calls) == 1
    assert (cache.hits, cache.misses) == (1, 1)


def test_capacity_evicts_least_recently_used() -> None:
    cache: RenderCache[str, PlainText] = RenderCache(capacity=2)
    cache.put("a", PlainText("a"))
    cache.put("b", PlainText("b"))
    assert cache.get("a") == PlainText("a")
    cache.put("c", PlainText("c"))

    assert len(cache) == 2
    assert "b" not in cache
    assert "a" in cache
    assert "c" in cache


def test_invalid_capacity_is_rejected() -> None:
    with pytest.raises(ValueError):
        RenderCache(capacity=0)


def test_invalidate_and_invalidate_where() -> None:
    cache: RenderCache[str, PlainText] = RenderCache(capacity=10)
    for key in ("m1|a", "m1|b", "m2|a"):
        cache.put(key, PlainText(key))

    assert cache.invalidate("m2|a")
    assert not cache.invalidate("m2|a")
    assert cache.invalidate_where(lambda key: key.startswith("m1|")) == 2
    assert len(cache) == 0


def test_concurrent_builders_never_exceed_capacity() -> None:
    cache: RenderCache[int, PlainText] = RenderCache(capacity=50)
    errors: list[BaseException] = []

    def worker(offset: int) -> None:
        try:
            for index in range(500):
                key = (index + offset) % 120
                value = cache.get_or_build(key, lambda: PlainText(str(key)))
                assert value == PlainText(str(key))
        except BaseException as exc:  # surfaced in the main thread below
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(n * 7,)) for n in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert not errors
    assert len(cache) <= 50


def test_cache_key_changes_with_content_and_direction() -> None:
    render = precompute("<b>hi</b>")
    incoming = StoredMessage(message_id="m1", body="<b>hi</b>", incoming=True, render=render)
    outgoing = StoredMessage(message_id="m1", body="<b>hi</b>", incoming=False, render=render)
    edited = StoredMessage(
        message_id="m1", body="<b>hey</b>", incoming=True, render=precompute("<b>hey</b>")
    )

    assert build_cache_key(incoming) == build_cache_key(incoming)
    assert build_cache_key(incoming) != build_cache_key(outgoing)
    assert build_cache_key(incoming) != build_cache_key(edited)


def test_cache_key_without_render_tracks_body() -> None:
    first = StoredMessage(message_id="m1", body="one", incoming=True)
    second = StoredMessage(message_id="m1", body="two", incoming=True)
    assert build_cache_key(first) != build_cache_key(second)
    assert build_cache_key(first).payload_hash == "0"
