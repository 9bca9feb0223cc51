from __future__ import annotations

from pathlib import Path

from msgrender.adapters.sqlite_store import SQLiteRenderStore
from msgrender.core.cache import RenderCache
from msgrender.core.models import RENDER_VERSION, PrecomputedRender, RenderKind, RichText
from msgrender.core.precompute import precompute
from msgrender.core.renderer import MessageRenderer


def _store(tmp_path: Path) -> SQLiteRenderStore:
    store = SQLiteRenderStore(str(tmp_path / "messages.db"))
    store.init_db()
    return store


def test_save_and_load_roundtrip(tmp_path: Path) -> None:
    store = _store(tmp_path)
    render = precompute("<p>Hi <b>bold</b></p>")
    store.save_message("m1", "<p>Hi <b>bold</b></p>", True, render)

    loaded = store.load_message("m1")
    assert loaded is not None
    assert loaded.body == "<p>Hi <b>bold</b></p>"
    assert loaded.incoming is True
    assert loaded.render == render


def test_message_without_render(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.save_message("m1", "hello", False, None)

    loaded = store.load_message("m1")
    assert loaded is not None
    assert loaded.render is None
    assert store.load_message("nope") is None


def test_save_render_updates_existing_row(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.save_message("m1", "<i>x</i>", True, None)
    store.save_render("m1", precompute("<i>x</i>"))

    loaded = store.load_message("m1")
    assert loaded is not None
    assert loaded.render is not None
    assert loaded.render.kind == RenderKind.RICH


def test_list_stale(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.save_message("fresh", "x", True, precompute("x"))
    store.save_message("missing", "y", True, None)
    old = PrecomputedRender(False, RenderKind.PLAIN, RENDER_VERSION - 1, "z", None)
    store.save_message("old", "z", True, old)

    assert store.list_stale(RENDER_VERSION) == ["missing", "old"]


def test_renderer_over_sqlite_store(tmp_path: Path) -> None:
    store = _store(tmp_path)
    renderer = MessageRenderer(cache=RenderCache(capacity=10), store=store)
    renderer.prepare("m1", "<s>gone</s>", incoming=False)

    rendered = renderer.render_by_id("m1")
    assert isinstance(rendered, RichText)
    assert rendered.text == "gone"
