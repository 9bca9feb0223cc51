"""Ports (interfaces) used by the renderer.

The message store lives outside this package; the renderer only needs to
load a message and write back its precomputed render.
"""

from __future__ import annotations

from typing import Optional, Protocol

from msgrender.core.models import PrecomputedRender, StoredMessage


class RenderStorePort(Protocol):
    """Message store operations required by the renderer."""

    def load_message(self, message_id: str) -> Optional[StoredMessage]:
        ...

    def save_message(
        self,
        message_id: str,
        body: str,
        incoming: bool,
        render: Optional[PrecomputedRender],
    ) -> None:
        ...

    def save_render(self, message_id: str, render: PrecomputedRender) -> None:
        ...
