"""Pipeline coordinator: fan identifiers out to workers, fan outcomes into sinks."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from threading import Lock
from typing import Iterator

import httpx
import structlog

from .config import CrawlConfig
from .engine import (
    Channel,
    ChannelClosed,
    ErrorSink,
    FetchFailure,
    ImageCache,
    ImageDownloader,
    ImageDownloadReport,
    Question,
    RecordFetcher,
    ResultSink,
    ThreadPoolManager,
    WorkerPool,
    build_client,
)
from .engine.exporter import BaseExporter, JsonFileExporter
from .engine.sinks import OutcomeListener
from .errors import PipelineStateError
from .infra import OutputLayout


class PipelineState(str, Enum):
    """Shutdown sequence; a run only moves forward through these."""

    CREATED = "created"
    FILLING = "filling"
    DRAINING = "draining"
    WORKERS_JOINED = "workers_joined"
    SINKS_CLOSING = "sinks_closing"
    SINKS_JOINED = "sinks_joined"


_ORDER = list(PipelineState)


def identifier_range(start: int, end: int) -> Iterator[int]:
    """Yield every identifier in the closed range ``[start, end]`` in order."""
    yield from range(start, end + 1)


@dataclass
class RunSummary:
    fetched: list[int] = field(default_factory=list)
    failures: list[FetchFailure] = field(default_factory=list)
    persist_failures: list[int] = field(default_factory=list)
    images: list[str] = field(default_factory=list)
    states: list[PipelineState] = field(default_factory=list)
    image_report: ImageDownloadReport | None = None

    @property
    def completed(self) -> bool:
        return bool(self.states) and self.states[-1] is PipelineState.SINKS_JOINED

    def as_dict(self) -> dict[str, int]:
        return {
            "fetched": len(self.fetched),
            "failed": len(self.failures),
            "persist_failed": len(self.persist_failures),
            "images": len(self.images),
            "images_downloaded": len(self.image_report.downloaded) if self.image_report else 0,
            "images_failed": len(self.image_report.failed) if self.image_report else 0,
        }


class Pipeline:
    """Run one crawl over the configured identifier range.

    The caller owns ``client`` when it passes one in; otherwise the pipeline
    builds its own and closes it after the image pass.
    """

    def __init__(
        self,
        config: CrawlConfig,
        client: httpx.Client | None = None,
        exporter: BaseExporter | None = None,
        listener: OutcomeListener | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self._owns_client = client is None
        self.client = client if client is not None else build_client(config)
        self.layout = OutputLayout(config.output_dir, config.images_subdir)
        self.exporter = exporter or JsonFileExporter(config.output_dir)
        self.listener = listener
        self.logger = logger or structlog.get_logger("question_crawler.pipeline")
        self.image_cache = ImageCache()
        self.state = PipelineState.CREATED
        self.states: list[PipelineState] = [PipelineState.CREATED]
        self._state_lock = Lock()

    # ------------------------------------------------------------------
    def _advance(self, target: PipelineState) -> None:
        with self._state_lock:
            if _ORDER.index(target) != _ORDER.index(self.state) + 1:
                raise PipelineStateError(
                    f"cannot move from {self.state.value} to {target.value}"
                )
            self.state = target
            self.states.append(target)
        self.logger.debug("pipeline_state", state=target.value)

    # ------------------------------------------------------------------
    def prepare(self) -> None:
        """Clear and recreate the output tree; failure here aborts the run."""
        self.layout.prepare()

    def run(self) -> RunSummary:
        """Fetch every identifier and return once both sinks have drained."""
        config = self.config
        identifiers: Channel[int] = Channel(0, name="identifiers")
        results: Channel[Question] = Channel(config.channel_capacity, name="results")
        errors: Channel[FetchFailure] = Channel(config.channel_capacity, name="errors")

        fetcher = RecordFetcher(config, self.client, self.image_cache)
        workers = WorkerPool(fetcher, identifiers, results, errors, config.worker_count)
        result_sink = ResultSink(results, self.exporter, self.image_cache, listener=self.listener)
        error_sink = ErrorSink(errors, listener=self.listener)

        pools = ThreadPoolManager(prefix="question-crawler")
        self.logger.info(
            "pipeline_started",
            range_start=config.range_start,
            range_end=config.range_end,
            workers=config.worker_count,
        )
        worker_error: BaseException | None = None
        try:
            sink_executor = pools.get("sink", 2)
            result_sink.start(sink_executor)
            error_sink.start(sink_executor)
            workers.start(pools.get("fetch", config.worker_count))

            self._advance(PipelineState.FILLING)
            for identifier in identifier_range(config.range_start, config.range_end):
                try:
                    identifiers.put(identifier)
                except ChannelClosed:
                    self.logger.error("identifier_source_closed", next_identifier=identifier)
                    break
            identifiers.close()
            self._advance(PipelineState.DRAINING)

            try:
                workers.join()
            except Exception as exc:  # noqa: BLE001
                worker_error = exc
                self.logger.error("worker_crashed", error=repr(exc))
            self._advance(PipelineState.WORKERS_JOINED)

            results.close()
            errors.close()
            self._advance(PipelineState.SINKS_CLOSING)
            result_sink.join()
            error_sink.join()
            self._advance(PipelineState.SINKS_JOINED)
        finally:
            # no-ops on the normal path; on an unexpected error they release every loop
            identifiers.close()
            results.close()
            errors.close()
            pools.shutdown(wait=True)

        if worker_error is not None:
            raise worker_error

        summary = RunSummary(
            fetched=sorted(result_sink.persisted),
            failures=sorted(error_sink.failures, key=lambda failure: failure.identifier),
            persist_failures=sorted(result_sink.persist_failures),
            images=self.image_cache.snapshot(),
            states=list(self.states),
        )
        self.logger.info("pipeline_finished", **summary.as_dict())
        return summary

    def download_images(self, images: list[str]) -> ImageDownloadReport:
        if self.state is not PipelineState.SINKS_JOINED:
            raise PipelineStateError("image download requires a completed pipeline run")
        downloader = ImageDownloader(self.config, self.client, self.layout)
        return downloader.download_all(images)

    def execute(self) -> RunSummary:
        """Prepare output, run the pipeline, then pull images if enabled."""
        try:
            self.prepare()
            summary = self.run()
            if self.config.download_images:
                summary.image_report = self.download_images(summary.images)
            return summary
        finally:
            self.close()

    def close(self) -> None:
        self.exporter.close()
        if self._owns_client:
            self.client.close()


__all__ = ["Pipeline", "PipelineState", "RunSummary", "identifier_range"]
