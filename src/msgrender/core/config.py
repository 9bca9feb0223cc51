"""Core configuration dataclasses.

Config parsing stays outside the core; these dataclasses define the shape
the core expects so the settings layer can build them safely.
"""

from __future__ import annotations

from dataclasses import dataclass

from msgrender.core.cache import DEFAULT_CAPACITY


@dataclass(frozen=True)
class CacheConfig:
    """Render cache settings."""

    capacity: int = DEFAULT_CAPACITY
