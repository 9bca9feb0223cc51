"""Wires settings, logging, the render cache and the message store together."""

from __future__ import annotations

import logging
from typing import Optional

from msgrender.adapters.sqlite_store import SQLiteRenderStore
from msgrender.core.cache import RenderCache
from msgrender.core.ports import RenderStorePort
from msgrender.core.renderer import MessageRenderer
from msgrender.logging_setup import configure_logging
from msgrender.settings import Settings, load_settings

LOGGER = logging.getLogger(__name__)


def build_renderer(
    settings: Optional[Settings] = None,
    store: Optional[RenderStorePort] = None,
) -> MessageRenderer:
    """Build a MessageRenderer from settings (loaded from config when omitted).

    An explicit store wins over the configured SQLite path.
    """

    if settings is None:
        settings = load_settings()
    configure_logging(settings.logging, settings.base_dir)

    if store is None and settings.db_path:
        sqlite_store = SQLiteRenderStore(settings.db_path)
        sqlite_store.init_db()
        store = sqlite_store

    cache: RenderCache = RenderCache(settings.cache.capacity)
    LOGGER.info(
        "Renderer ready (cache capacity %s, store %s)",
        settings.cache.capacity,
        type(store).__name__ if store is not None else "none",
    )
    return MessageRenderer(cache, store)
