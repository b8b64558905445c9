"""Fixed pool of fetch loops fanning identifiers out to the sinks."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, wait

import structlog

from .channel import Channel, ChannelClosed
from .fetcher import FetchFailure, Question, RecordFetcher


class WorkerPool:
    """Run ``worker_count`` loops, each consuming identifiers until the source closes."""

    def __init__(
        self,
        fetcher: RecordFetcher,
        identifiers: Channel[int],
        results: Channel[Question],
        errors: Channel[FetchFailure],
        worker_count: int,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        if worker_count < 1:
            raise ValueError("worker_count must be >= 1")
        self.fetcher = fetcher
        self.identifiers = identifiers
        self.results = results
        self.errors = errors
        self.worker_count = worker_count
        self.logger = logger or structlog.get_logger("question_crawler.workers")
        self._futures: list[Future] = []

    def start(self, executor: ThreadPoolExecutor) -> None:
        if self._futures:
            raise RuntimeError("WorkerPool already started")
        self._futures = [
            executor.submit(self._run, index) for index in range(self.worker_count)
        ]

    @property
    def active(self) -> int:
        return sum(1 for future in self._futures if not future.done())

    def join(self) -> None:
        """Block until every loop has ended; re-raise the first crash afterwards."""
        wait(self._futures)
        for future in self._futures:
            exc = future.exception()
            if exc is not None:
                raise exc

    def _run(self, index: int) -> int:
        handled = 0
        log = self.logger.bind(worker=index)
        log.debug("worker_started")
        try:
            for identifier in self.identifiers:
                outcome = self.fetcher.fetch(identifier)
                try:
                    if isinstance(outcome, FetchFailure):
                        self.errors.put(outcome)
                    else:
                        self.results.put(outcome)
                except ChannelClosed:
                    log.error("sink_closed_early", identifier=identifier)
                    raise
                handled += 1
        except Exception:
            # stop the producer instead of leaving it blocked on a dead pool
            self.identifiers.close()
            log.exception("worker_crashed", handled=handled)
            raise
        log.debug("worker_finished", handled=handled)
        return handled


__all__ = ["WorkerPool"]
