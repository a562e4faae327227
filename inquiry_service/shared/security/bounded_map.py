"""Capacity-bounded LRU map for per-address security state."""

from collections import OrderedDict
from typing import Any, Callable, Iterator, Optional, Tuple


class BoundedMap:
    """
    Dict-like store that keeps at most `capacity` keys.

    Reading or writing a key marks it most recently used; inserting past
    capacity evicts the least recently used key. Not thread-safe on its own;
    callers hold their own lock.
    """

    def __init__(self, capacity: int = 10000):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._data = OrderedDict()

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        self._data.move_to_end(key)
        return self._data[key]

    def setdefault(self, key: str, factory: Callable[[], Any]) -> Any:
        if key in self._data:
            self._data.move_to_end(key)
            return self._data[key]
        value = factory()
        self[key] = value
        return value

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._data.move_to_end(key)
        while len(self._data) > self.capacity:
            self._data.popitem(last=False)

    def pop(self, key: str, default: Optional[Any] = None) -> Any:
        return self._data.pop(key, default)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def items(self) -> Iterator[Tuple[str, Any]]:
        return iter(list(self._data.items()))

    def clear(self) -> None:
        self._data.clear()
