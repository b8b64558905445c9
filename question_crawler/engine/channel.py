"""Closable multi-producer/multi-consumer hand-off between pipeline threads."""

from __future__ import annotations

from collections import deque
from threading import Condition
from typing import Deque, Generic, Iterator, TypeVar

T = TypeVar("T")


class ChannelClosed(Exception):
    """Raised by ``put`` after close, and by ``get`` once closed and drained."""


class Channel(Generic[T]):
    """Bounded FIFO channel with explicit close.

    ``capacity=0`` makes every ``put`` a rendezvous: the producer returns only
    once a consumer has taken its item. Closing never discards queued items;
    consumers keep receiving them until the channel is empty. Only producers
    close a channel during normal operation, after their last ``put``.
    """

    def __init__(self, capacity: int = 0, name: str = "channel") -> None:
        if capacity < 0:
            raise ValueError("capacity must be >= 0")
        self.capacity = capacity
        self.name = name
        self._items: Deque[T] = deque()
        self._cond = Condition()
        self._closed = False
        self._put_count = 0
        self._taken_count = 0

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def put(self, item: T) -> None:
        slots = max(self.capacity, 1)
        with self._cond:
            while not self._closed and len(self._items) >= slots:
                self._cond.wait()
            if self._closed:
                raise ChannelClosed(f"{self.name} is closed")
            self._items.append(item)
            self._put_count += 1
            ticket = self._put_count
            self._cond.notify_all()
            if self.capacity == 0:
                # FIFO order means our item is gone once this many were taken.
                # A close while waiting releases the producer; the item stays queued.
                while self._taken_count < ticket and not self._closed:
                    self._cond.wait()

    def get(self) -> T:
        with self._cond:
            while not self._items and not self._closed:
                self._cond.wait()
            if not self._items:
                raise ChannelClosed(f"{self.name} is closed and drained")
            item = self._items.popleft()
            self._taken_count += 1
            self._cond.notify_all()
            return item

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def __iter__(self) -> Iterator[T]:
        while True:
            try:
                yield self.get()
            except ChannelClosed:
                return


__all__ = ["Channel", "ChannelClosed"]
