"""Pydantic models describing a crawl run."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_BASE_URL = "https://oral.planez.co"


class CrawlConfig(BaseModel):
    """Everything the pipeline needs to know, passed in explicitly."""

    base_url: str = DEFAULT_BASE_URL
    range_start: int = 1000
    range_end: int = 1305
    worker_count: int = Field(default=4, ge=1)
    # 0 keeps the unbuffered hand-off between workers and sinks
    channel_capacity: int = Field(default=0, ge=0)
    output_dir: Path = Field(default=Path("data"))
    images_subdir: str = "images"
    request_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Per-request timeout in seconds; None waits indefinitely.",
    )
    user_agent: str | None = None
    download_images: bool = True

    @field_validator("base_url", mode="before")
    @classmethod
    def _strip_base_url(cls, value: Any) -> str:
        text = str(value).strip()
        if not text:
            raise ValueError("base_url cannot be empty")
        return text.rstrip("/")

    @field_validator("output_dir", mode="before")
    @classmethod
    def _coerce_output_dir(cls, value: Any) -> Path:
        if value is None or not str(value).strip():
            raise ValueError("output_dir cannot be empty")
        return Path(value)

    @field_validator("images_subdir")
    @classmethod
    def _validate_images_subdir(cls, value: str) -> str:
        parts = Path(value).parts
        if not parts or Path(value).is_absolute() or ".." in parts:
            raise ValueError("images_subdir must be a relative path inside output_dir")
        return value

    @model_validator(mode="after")
    def _validate_range(self) -> "CrawlConfig":
        if self.range_end < self.range_start:
            raise ValueError("range_end must be >= range_start")
        return self

    @property
    def identifier_count(self) -> int:
        return self.range_end - self.range_start + 1

    @property
    def images_dir(self) -> Path:
        return self.output_dir / self.images_subdir

    def question_url(self, identifier: int) -> str:
        return f"{self.base_url}/api/question/{identifier}"

    def image_url(self, image_file: str) -> str:
        return f"{self.base_url}/images/{image_file}"


__all__ = ["CrawlConfig", "DEFAULT_BASE_URL"]
