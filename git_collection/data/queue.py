"""
In-process queue of item identifiers between listing and loading.
"""

from collections import deque
from typing import Iterable, Iterator

from ..core.config import NO_LIMIT


class CollectionQueue:
    """
    FIFO of item identifiers with an optional capacity.

    Items beyond `limit` are refused rather than dropped silently; `add`
    reports whether the item was queued.
    """

    NO_LIMIT = NO_LIMIT

    def __init__(self, limit: int = NO_LIMIT):
        if limit != NO_LIMIT and limit < 0:
            raise ValueError(f"limit must be non-negative or NO_LIMIT, got {limit}")
        self.limit = limit
        self._items = deque()

    def is_full(self) -> bool:
        return self.limit != NO_LIMIT and len(self._items) >= self.limit

    def add(self, item: str) -> bool:
        if self.is_full():
            return False
        self._items.append(item)
        return True

    def extend(self, items: Iterable[str]) -> int:
        """Queue items until full; returns how many were queued."""
        added = 0
        for item in items:
            if not self.add(item):
                break
            added += 1
        return added

    def drain(self) -> Iterator[str]:
        """Yield and remove items in insertion order."""
        while self._items:
            yield self._items.popleft()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items))
