"""Named thread pools hosting the pipeline's long-lived loops."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from threading import Lock
from typing import Dict


class ThreadPoolManager:
    """Hand out one executor per role, sized on first request."""

    def __init__(self, prefix: str = "crawler") -> None:
        self.prefix = prefix
        self._executors: Dict[str, ThreadPoolExecutor] = {}
        self._lock = Lock()

    def get(self, role: str, max_workers: int) -> ThreadPoolExecutor:
        with self._lock:
            if role not in self._executors:
                self._executors[role] = ThreadPoolExecutor(
                    max_workers=max_workers, thread_name_prefix=f"{self.prefix}-{role}"
                )
            return self._executors[role]

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            executors = list(self._executors.values())
            self._executors.clear()
        for executor in executors:
            executor.shutdown(wait=wait)


__all__ = ["ThreadPoolManager"]
