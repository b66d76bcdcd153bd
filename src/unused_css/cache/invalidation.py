from __future__ import annotations

from collections.abc import Callable
from typing import Protocol


class CacheInvalidator(Protocol):
    """Page/object cache owned by the host site, purged after a page's CSS changes."""

    def invalidate(self, post_id: str) -> None: ...


class NullInvalidator:
    def invalidate(self, post_id: str) -> None:
        pass


class CallbackInvalidator:
    """Adapts a plain ``callback(post_id)`` to :class:`CacheInvalidator`."""

    def __init__(self, callback: Callable[[str], None]) -> None:
        self._callback = callback

    def invalidate(self, post_id: str) -> None:
        self._callback(post_id)
