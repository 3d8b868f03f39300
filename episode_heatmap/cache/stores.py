"""Storage backends for the TTL cache.

A store is a flat string-to-string map. It knows nothing about expiry or
JSON; TTLCache owns both. The in-memory store is used by tests and when
no MongoDB URI is configured; MongoCacheStore (episode_heatmap.storage)
is the durable one.
"""

from __future__ import annotations

from typing import Protocol

from episode_heatmap.errors import StoreQuotaExceeded


class CacheStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self, prefix: str = "") -> list[str]: ...


class MemoryStore:
    """Dict-backed store with an optional size quota.

    Args:
        max_bytes: When set, a write that would push the total size of
            stored keys and values past this limit raises
            StoreQuotaExceeded and leaves the store unchanged.
    """

    def __init__(self, max_bytes: int | None = None) -> None:
        self._data: dict[str, str] = {}
        self._max_bytes = max_bytes

    def _size(self) -> int:
        return sum(len(k) + len(v) for k, v in self._data.items())

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self._max_bytes is not None:
            current = self._size()
            if key in self._data:
                current -= len(key) + len(self._data[key])
            if current + len(key) + len(value) > self._max_bytes:
                raise StoreQuotaExceeded(
                    f"writing {key!r} exceeds quota of {self._max_bytes} bytes"
                )
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self, prefix: str = "") -> list[str]:
        return [k for k in self._data if k.startswith(prefix)]

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data
