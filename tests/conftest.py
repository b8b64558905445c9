"""Shared fixtures: crawl configs and an in-memory fake of the question API."""

from __future__ import annotations

import json
import re
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Iterable

import httpx
import pytest

from question_crawler.config import ConfigLocator, ConfigRepository, CrawlConfig

BASE_URL = "https://questions.test"
_QUESTION_PATH = re.compile(r"^/api/question/(\d+)$")
_IMAGE_PATH = re.compile(r"^/images/(.+)$")


def question_payload(identifier: int, image_file: str | None = None, **overrides: Any) -> dict:
    payload: dict[str, Any] = {
        "answer": f"answer {identifier}",
        "certificate": "general",
        "createdDate": 1_700_000_000 + identifier,
        "imageFile": image_file,
        "question": f"question {identifier}?",
        "questionId": identifier,
        "type": "written",
    }
    payload.update(overrides)
    return payload


class FakeQuestionApi:
    """Route table standing in for the remote service.

    ``questions`` maps an identifier to a payload dict, a raw ``bytes`` body,
    an ``int`` status code, or an exception instance to raise.
    """

    def __init__(
        self,
        questions: dict[int, Any] | None = None,
        images: dict[str, Any] | None = None,
    ) -> None:
        self.questions = questions or {}
        self.images = images or {}
        self.requested: list[str] = []
        self._lock = Lock()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requested.append(request.url.path)
        match = _QUESTION_PATH.match(request.url.path)
        if match:
            return self._respond(self.questions.get(int(match.group(1)), 404), request)
        match = _IMAGE_PATH.match(request.url.path)
        if match:
            return self._respond(self.images.get(match.group(1), 404), request)
        return httpx.Response(404, request=request)

    @staticmethod
    def _respond(entry: Any, request: httpx.Request) -> httpx.Response:
        if isinstance(entry, Exception):
            raise entry
        if isinstance(entry, int):
            return httpx.Response(entry, request=request)
        if isinstance(entry, bytes):
            return httpx.Response(200, content=entry, request=request)
        return httpx.Response(200, content=json.dumps(entry).encode("utf-8"), request=request)

    def question_requests(self) -> list[str]:
        with self._lock:
            return [path for path in self.requested if path.startswith("/api/question/")]

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


@pytest.fixture
def crawl_config(tmp_path: Path) -> Callable[..., CrawlConfig]:
    def _builder(**overrides: Any) -> CrawlConfig:
        base: dict[str, Any] = {
            "base_url": BASE_URL,
            "range_start": 1000,
            "range_end": 1002,
            "worker_count": 4,
            "output_dir": tmp_path / "data",
        }
        base.update(overrides)
        return CrawlConfig(**base)

    return _builder


@pytest.fixture
def scenario_api() -> FakeQuestionApi:
    """1000 and 1001 succeed (only 1000 has an image), 1002 answers HTTP 500."""
    return FakeQuestionApi(
        questions={
            1000: question_payload(1000, "a.jpg"),
            1001: question_payload(1001),
            1002: 500,
        },
        images={"a.jpg": b"\xff\xd8jpeg-bytes"},
    )


@pytest.fixture
def temp_config_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterable[ConfigRepository]:
    monkeypatch.setenv("QUESTION_CRAWLER_HOME", str(tmp_path))
    yield ConfigRepository(ConfigLocator())


def read_saved(output_dir: Path) -> dict[int, dict]:
    return {
        int(path.stem): json.loads(path.read_text(encoding="utf-8"))
        for path in output_dir.glob("*.json")
    }
