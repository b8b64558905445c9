from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest
from structlog.testing import capture_logs

from conftest import FakeQuestionApi, question_payload, read_saved
from question_crawler.engine import (
    Channel,
    ErrorSink,
    FailureKind,
    FetchFailure,
    ImageCache,
    Question,
    RecordFetcher,
    ResultSink,
    WorkerPool,
)
from question_crawler.engine.exporter import BaseExporter, JsonFileExporter
from question_crawler.ui import ProgressReporter


class FailingExporter(BaseExporter):
    def __init__(self, output_dir: Path, broken: set[int]) -> None:
        self.inner = JsonFileExporter(output_dir)
        self.broken = broken

    def export(self, identifier: int, record: dict) -> Path:
        if identifier in self.broken:
            raise PermissionError(f"read-only: {identifier}")
        return self.inner.export(identifier, record)

    def close(self) -> None:
        self.inner.close()


def test_worker_pool_routes_outcomes_to_their_channels(crawl_config) -> None:
    api = FakeQuestionApi({1: question_payload(1), 2: 503, 3: question_payload(3, "x.png")})
    cache = ImageCache()
    fetcher = RecordFetcher(crawl_config(), api.client(), cache)
    identifiers: Channel[int] = Channel(0)
    results: Channel[Question] = Channel(10)
    errors: Channel[FetchFailure] = Channel(10)
    pool = WorkerPool(fetcher, identifiers, results, errors, worker_count=2)

    with ThreadPoolExecutor(max_workers=2) as executor:
        pool.start(executor)
        for identifier in (1, 2, 3):
            identifiers.put(identifier)
        identifiers.close()
        pool.join()

    assert pool.active == 0
    results.close()
    errors.close()
    assert sorted(question.question_id for question in results) == [1, 3]
    failures = list(errors)
    assert [(failure.identifier, failure.kind) for failure in failures] == [(2, FailureKind.BAD_STATUS)]
    assert cache.snapshot() == ["x.png"]


def test_worker_pool_rejects_empty_pool(crawl_config) -> None:
    fetcher = RecordFetcher(crawl_config(), FakeQuestionApi().client(), ImageCache())
    with pytest.raises(ValueError):
        WorkerPool(fetcher, Channel(), Channel(), Channel(), worker_count=0)


def test_worker_crash_closes_identifier_source(crawl_config) -> None:
    class ExplodingFetcher:
        def fetch(self, identifier: int):
            raise RuntimeError("boom")

    identifiers: Channel[int] = Channel(0)
    pool = WorkerPool(ExplodingFetcher(), identifiers, Channel(1), Channel(1), worker_count=1)
    with ThreadPoolExecutor(max_workers=1) as executor:
        pool.start(executor)
        identifiers.put(1)
        with pytest.raises(RuntimeError, match="boom"):
            pool.join()
    assert identifiers.closed


def test_result_sink_persists_each_record_and_registers_images(tmp_path: Path) -> None:
    results: Channel[Question] = Channel(0)
    cache = ImageCache()
    progress = ProgressReporter(enabled=False)
    progress.start(2)
    sink = ResultSink(results, JsonFileExporter(tmp_path), cache, listener=progress)

    with ThreadPoolExecutor(max_workers=1) as executor:
        sink.start(executor)
        results.put(Question.model_validate(question_payload(7, "seven.gif")))
        results.put(Question.model_validate(question_payload(8)))
        results.close()
        sink.join()

    saved = read_saved(tmp_path)
    assert set(saved) == {7, 8}
    assert saved[7]["questionId"] == 7
    assert saved[7]["imageFile"] == "seven.gif"
    assert sink.persisted == [7, 8]
    assert cache.snapshot() == ["seven.gif"]
    assert progress.summary() == {"success": 2, "failed": 0}


def test_result_sink_survives_persistence_failure(tmp_path: Path) -> None:
    results: Channel[Question] = Channel(0)

    with capture_logs() as logs:
        sink = ResultSink(results, FailingExporter(tmp_path, broken={2}), ImageCache())
        with ThreadPoolExecutor(max_workers=1) as executor:
            sink.start(executor)
            for identifier in (1, 2, 3):
                results.put(Question.model_validate(question_payload(identifier)))
            results.close()
            sink.join()

    assert sink.persisted == [1, 3]
    assert sink.persist_failures == [2]
    assert set(read_saved(tmp_path)) == {1, 3}
    persist_failed = [entry for entry in logs if entry["event"] == "persist_failed"]
    assert len(persist_failed) == 1
    assert persist_failed[0]["identifier"] == 2
    assert persist_failed[0]["log_level"] == "error"
    assert "read-only: 2" in persist_failed[0]["error"]
    saved_events = [entry["identifier"] for entry in logs if entry["event"] == "question_saved"]
    assert saved_events == [1, 3]


def test_error_sink_records_and_logs_every_failure() -> None:
    errors: Channel[FetchFailure] = Channel(0)
    progress = ProgressReporter(enabled=False)
    progress.start(3)
    sent = [
        FetchFailure(1, FailureKind.TRANSPORT, "refused"),
        FetchFailure(2, FailureKind.BAD_STATUS, "status 500", status_code=500),
        FetchFailure(3, FailureKind.DECODE, "not json"),
    ]

    with capture_logs() as logs:
        sink = ErrorSink(errors, listener=progress)
        with ThreadPoolExecutor(max_workers=1) as executor:
            sink.start(executor)
            for failure in sent:
                errors.put(failure)
            errors.close()
            sink.join()

    assert sink.failures == sent
    assert progress.summary() == {"success": 0, "failed": 3}
    logged = [
        (entry["identifier"], entry["kind"], entry["status_code"], entry["log_level"])
        for entry in logs
        if entry["event"] == "fetch_failed"
    ]
    assert logged == [
        (1, "transport", None, "warning"),
        (2, "bad_status", 500, "warning"),
        (3, "decode", None, "warning"),
    ]


def test_sink_crash_closes_its_channel(tmp_path: Path) -> None:
    class BrokenExporter(FailingExporter):
        def export(self, identifier: int, record: dict) -> Path:
            raise KeyError(identifier)

    results: Channel[Question] = Channel(0)
    sink = ResultSink(results, BrokenExporter(tmp_path, broken=set()), ImageCache())
    with ThreadPoolExecutor(max_workers=1) as executor:
        sink.start(executor)
        results.put(Question.model_validate(question_payload(1)))
        with pytest.raises(KeyError):
            sink.join()
    assert results.closed
