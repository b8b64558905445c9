"""HTTP fetching and decoding of a single question record."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..config import CrawlConfig
from .image_cache import ImageCache


class Question(BaseModel):
    """One decoded question record, serialised with the remote API's keys."""

    model_config = ConfigDict(populate_by_name=True)

    answer: str = ""
    certificate: str = ""
    created_date: int = Field(default=0, alias="createdDate")
    image_file: str | None = Field(default=None, alias="imageFile")
    question: str = ""
    question_id: int | None = Field(default=None, alias="questionId")
    type: str = ""

    @field_validator("image_file")
    @classmethod
    def _blank_image_is_absent(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class FailureKind(str, Enum):
    """Why an identifier did not produce a record."""

    TRANSPORT = "transport"
    BAD_STATUS = "bad_status"
    DECODE = "decode"


@dataclass(slots=True)
class FetchFailure:
    """Per-identifier failure, carried through the pipeline as data."""

    identifier: int
    kind: FailureKind
    message: str
    status_code: int | None = None


FetchOutcome = Union[Question, FetchFailure]


def build_client(config: CrawlConfig, transport: httpx.BaseTransport | None = None) -> httpx.Client:
    """Create the HTTP client shared by every worker of a run."""

    headers = {"Accept": "application/json"}
    if config.user_agent:
        headers["User-Agent"] = config.user_agent
    return httpx.Client(
        follow_redirects=True,
        timeout=config.request_timeout,
        headers=headers,
        transport=transport,
    )


class RecordFetcher:
    """Fetch one identifier per call, returning a record or a failure."""

    def __init__(
        self,
        config: CrawlConfig,
        client: httpx.Client,
        image_cache: ImageCache,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self.client = client
        self.image_cache = image_cache
        self.logger = logger or structlog.get_logger("question_crawler.fetcher")

    def fetch(self, identifier: int) -> FetchOutcome:
        url = self.config.question_url(identifier)
        try:
            response = self.client.get(url)
        except httpx.HTTPError as exc:
            return FetchFailure(
                identifier=identifier,
                kind=FailureKind.TRANSPORT,
                message=f"failed to retrieve question {identifier}: {exc!r}",
            )

        if response.status_code != httpx.codes.OK:
            return FetchFailure(
                identifier=identifier,
                kind=FailureKind.BAD_STATUS,
                status_code=response.status_code,
                message=f"failed to retrieve question {identifier}: received status {response.status_code}",
            )

        try:
            question = Question.model_validate_json(response.content)
        except ValidationError as exc:
            return FetchFailure(
                identifier=identifier,
                kind=FailureKind.DECODE,
                message=f"failed to decode question {identifier}: {exc.error_count()} error(s), first: {exc.errors()[0]['msg']}",
            )

        if question.question_id is None:
            question.question_id = identifier
        elif question.question_id != identifier:
            return FetchFailure(
                identifier=identifier,
                kind=FailureKind.DECODE,
                message=f"question {identifier} payload carries questionId {question.question_id}",
            )

        if question.image_file is not None:
            self.image_cache.add(question.image_file)
        self.logger.debug("question_fetched", identifier=identifier, image_file=question.image_file)
        return question


__all__ = [
    "FailureKind",
    "FetchFailure",
    "FetchOutcome",
    "Question",
    "RecordFetcher",
    "build_client",
]
