from __future__ import annotations

from collections import OrderedDict
from typing import Callable, Generic, Hashable, TypeVar

K = TypeVar("K")
V = TypeVar("V")


class LRUCache(Generic[K, V]):
    """Simple LRU cache with a max size limit."""

    def __init__(self, max_size: int = 128) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive.")
        self._max_size = max_size
        self._store: OrderedDict[K, V] = OrderedDict()

    def get(self, key: K) -> V | None:
        if key not in self._store:
            return None
        value = self._store.pop(key)
        self._store[key] = value
        return value

    def set(self, key: K, value: V) -> None:
        if key in self._store:
            self._store.pop(key)
        self._store[key] = value
        if len(self._store) > self._max_size:
            self._store.popitem(last=False)

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)


class AssemblyCache(Generic[V]):
    """Memoize a pure builder keyed by its (hashable) arguments.

    Builders must be pure functions of their arguments; failures are not cached.
    """

    def __init__(self, builder: Callable[..., V], max_size: int = 16) -> None:
        self._builder = builder
        self._cache: LRUCache[tuple[Hashable, ...], V] = LRUCache(max_size)
        self.hits = 0
        self.misses = 0

    def __call__(self, *args: Hashable) -> V:
        cached = self._cache.get(args)
        if cached is not None:
            self.hits += 1
            return cached
        self.misses += 1
        value = self._builder(*args)
        self._cache.set(args, value)
        return value

    def clear(self) -> None:
        self._cache.clear()
