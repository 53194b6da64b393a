"""Bounded in-memory cache of generated guide images."""

import logging
from typing import Dict, Generic, List, Optional, TypeVar

logger = logging.getLogger(__name__)

ImageT = TypeVar("ImageT")


class GuideImageCache(Generic[ImageT]):
    """Guide images keyed by segment order.

    When full, inserting a new key evicts the numerically smallest key.
    Eviction ignores recency; overwriting an existing key never evicts.
    Not persisted and not thread-safe.
    """

    DEFAULT_CAPACITY = 5

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._entries: Dict[int, ImageT] = {}

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, order: object) -> bool:
        return order in self._entries

    def keys(self) -> List[int]:
        return sorted(self._entries)

    def get(self, order: int) -> Optional[ImageT]:
        """Return the cached image without touching cache state."""
        return self._entries.get(order)

    def put(self, order: int, image: ImageT) -> Optional[int]:
        """Store ``image`` for ``order``.

        Returns:
            The evicted key, if any.
        """
        evicted = None
        if order not in self._entries and len(self._entries) >= self._capacity:
            evicted = min(self._entries)
            del self._entries[evicted]
            logger.debug(f"Evicted guide image for segment {evicted}")
        self._entries[order] = image
        return evicted

    def clear(self) -> None:
        self._entries.clear()
