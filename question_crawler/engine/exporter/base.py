"""Exporter Service Provider Interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path


class BaseExporter(ABC):
    """Uniform exporter contract keyed by record identifier."""

    @abstractmethod
    def export(self, identifier: int, record: dict) -> Path:
        """Persist a single record and return where it went."""

    @abstractmethod
    def close(self) -> None:
        """Release underlying resources."""


__all__ = ["BaseExporter"]
