"""File based exporter writing one JSON document per record."""

from __future__ import annotations

import json
from pathlib import Path

from .base import BaseExporter


class JsonFileExporter(BaseExporter):
    """Write each record to ``<output_dir>/<identifier>.json``."""

    def __init__(self, output_dir: Path, indent: int = 2) -> None:
        self.output_dir = output_dir
        self.indent = indent
        self.written = 0

    def path_for(self, identifier: int) -> Path:
        return self.output_dir / f"{identifier}.json"

    def export(self, identifier: int, record: dict) -> Path:
        path = self.path_for(identifier)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(
            json.dumps(record, ensure_ascii=False, indent=self.indent) + "\n",
            encoding="utf-8",
        )
        tmp.replace(path)
        self.written += 1
        return path

    def close(self) -> None:
        return


__all__ = ["JsonFileExporter"]
