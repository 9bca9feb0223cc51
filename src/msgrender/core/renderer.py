"""Message rendering pipeline.

This module is store-agnostic. It relies on the store port for persistence
and on an injected cache for memoisation, so tests and callers can use
isolated instances.
"""

from __future__ import annotations

import logging
from typing import Optional

from msgrender.core.cache import RenderCache
from msgrender.core.fingerprint import RenderCacheKey, build_cache_key
from msgrender.core.materialize import build_renderable
from msgrender.core.models import PrecomputedRender, RenderableText, StoredMessage
from msgrender.core.ports import RenderStorePort
from msgrender.core.precompute import precompute

LOGGER = logging.getLogger(__name__)


class MessageRenderer:
    """Orchestrates precomputation, persistence and cached display renders."""

    def __init__(
        self,
        cache: RenderCache[RenderCacheKey, RenderableText],
        store: Optional[RenderStorePort] = None,
    ) -> None:
        self._cache = cache
        self._store = store

    @property
    def cache(self) -> RenderCache[RenderCacheKey, RenderableText]:
        return self._cache

    def prepare(self, message_id: str, body: str, incoming: bool) -> PrecomputedRender:
        """Precompute a message's render and persist it with the message.

        Called once when a message is sent or received so the display path
        never has to parse it again.
        """

        render = precompute(body)
        if self._store is not None:
            self._store.save_message(message_id, body, incoming, render)
        LOGGER.debug("Prepared %s render for %s", render.kind.label, message_id)
        return render

    def render(self, message: StoredMessage) -> RenderableText:
        """Return the display value for a message, memoised by content fingerprint."""

        key = build_cache_key(message)
        return self._cache.get_or_build(key, lambda: build_renderable(message.body, message.render))

    def render_by_id(self, message_id: str) -> Optional[RenderableText]:
        """Load a message through the store and render it; None if it is unknown."""

        if self._store is None:
            raise RuntimeError("render_by_id requires a message store")
        message = self._store.load_message(message_id)
        if message is None:
            return None
        return self.render(message)

    def refresh(self, message_id: str) -> Optional[PrecomputedRender]:
        """Recompute and persist the render of a stored message (e.g. after an upgrade)."""

        if self._store is None:
            raise RuntimeError("refresh requires a message store")
        message = self._store.load_message(message_id)
        if message is None:
            return None
        render = precompute(message.body)
        self._store.save_render(message_id, render)
        self.invalidate_message(message_id)
        return render

    def invalidate_message(self, message_id: str) -> int:
        """Drop cached renders for a message (both directions, all versions)."""

        removed = self._cache.invalidate_where(lambda key: key.message_id == message_id)
        if removed:
            LOGGER.debug("Invalidated %d cached render(s) for %s", removed, message_id)
        return removed
