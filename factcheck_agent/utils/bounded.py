"""Fixed-capacity containers for process-lifetime state."""

from __future__ import annotations

from collections import OrderedDict, deque
from typing import Deque, Generic, Hashable, Iterator, List, TypeVar

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)


class RingBuffer(Generic[T]):
    """Append-only buffer that keeps the most recent ``capacity`` entries."""

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._items: Deque[T] = deque(maxlen=capacity)

    def append(self, item: T) -> None:
        self._items.append(item)

    def latest(self, n: int | None = None) -> List[T]:
        """Return up to ``n`` newest entries, newest last."""
        items = list(self._items)
        if n is None:
            return items
        return items[-n:] if n > 0 else []

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))


class BoundedSet(Generic[K]):
    """Insertion-ordered set that evicts its oldest members beyond ``capacity``."""

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._members: "OrderedDict[K, None]" = OrderedDict()

    def add(self, key: K) -> None:
        if key in self._members:
            self._members.move_to_end(key)
            return
        self._members[key] = None
        while len(self._members) > self.capacity:
            self._members.popitem(last=False)

    def __contains__(self, key: object) -> bool:
        return key in self._members

    def __len__(self) -> int:
        return len(self._members)
