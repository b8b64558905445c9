"""Single-consumer sinks draining the results and errors channels."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Protocol

import structlog

from .channel import Channel
from .exporter import BaseExporter
from .fetcher import FetchFailure, Question
from .image_cache import ImageCache


class OutcomeListener(Protocol):
    def advance(self, success: bool = False, failed: bool = False, current: str | None = None) -> None:
        ...


class _Sink:
    def __init__(self, channel: Channel) -> None:
        self.channel = channel
        self._future: Future | None = None

    def start(self, executor: ThreadPoolExecutor) -> None:
        if self._future is not None:
            raise RuntimeError(f"{type(self).__name__} already started")
        self._future = executor.submit(self._run)

    def join(self) -> None:
        if self._future is None:
            return
        self._future.result()

    def _run(self) -> None:
        try:
            self.drain()
        except Exception:
            # producers blocked on this sink get ChannelClosed instead of waiting forever
            self.channel.close()
            raise

    def drain(self) -> None:
        raise NotImplementedError


class ResultSink(_Sink):
    """Persist every record as it arrives and re-register its image."""

    def __init__(
        self,
        results: Channel[Question],
        exporter: BaseExporter,
        image_cache: ImageCache,
        listener: OutcomeListener | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        super().__init__(results)
        self.results = results
        self.exporter = exporter
        self.image_cache = image_cache
        self.listener = listener
        self.logger = logger or structlog.get_logger("question_crawler.sinks")
        self.persisted: list[int] = []
        self.persist_failures: list[int] = []

    def drain(self) -> None:
        for question in self.results:
            identifier = question.question_id
            if question.image_file is not None:
                self.image_cache.add(question.image_file)
            try:
                path = self.exporter.export(identifier, question.to_payload())
            except OSError as exc:
                self.persist_failures.append(identifier)
                self.logger.error("persist_failed", identifier=identifier, error=str(exc))
                if self.listener is not None:
                    self.listener.advance(failed=True, current=str(identifier))
                continue
            self.persisted.append(identifier)
            self.logger.info("question_saved", identifier=identifier, path=str(path))
            if self.listener is not None:
                self.listener.advance(success=True, current=str(identifier))


class ErrorSink(_Sink):
    """Log every failure; nothing received here stops the pipeline."""

    def __init__(
        self,
        errors: Channel[FetchFailure],
        listener: OutcomeListener | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        super().__init__(errors)
        self.errors = errors
        self.listener = listener
        self.logger = logger or structlog.get_logger("question_crawler.sinks")
        self.failures: list[FetchFailure] = []

    def drain(self) -> None:
        for failure in self.errors:
            self.failures.append(failure)
            self.logger.warning(
                "fetch_failed",
                identifier=failure.identifier,
                kind=failure.kind.value,
                status_code=failure.status_code,
                error=failure.message,
            )
            if self.listener is not None:
                self.listener.advance(failed=True, current=str(failure.identifier))


__all__ = ["ErrorSink", "OutcomeListener", "ResultSink"]
