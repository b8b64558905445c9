"""Thread-safe registry of image references discovered while crawling."""

from __future__ import annotations

from threading import Lock
from typing import Set


class ImageCache:
    """Deduplicating, append-only set of image file names.

    Only ``add`` and ``snapshot`` are exposed, so callers never iterate the
    live set while another thread inserts into it.
    """

    def __init__(self) -> None:
        self._values: Set[str] = set()
        self._lock = Lock()

    def add(self, value: str) -> None:
        with self._lock:
            self._values.add(value)

    def snapshot(self) -> list[str]:
        """Return the current values as a new sorted list."""
        with self._lock:
            return sorted(self._values)

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)

    def __contains__(self, value: object) -> bool:
        with self._lock:
            return value in self._values


__all__ = ["ImageCache"]
