"""Configuration loading helpers for the question crawler."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .models import CrawlConfig

CONFIG_EXTENSIONS = (".yaml", ".yml", ".json")
CONFIG_FILENAME = "crawler.yaml"
HOME_ENV_VAR = "QUESTION_CRAWLER_HOME"


def _read_file(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    return data


def _write_file(path: Path, payload: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as stream:
        if path.suffix in (".yaml", ".yml"):
            yaml.safe_dump(payload, stream, allow_unicode=True, sort_keys=False)
        else:
            json.dump(payload, stream, indent=2, ensure_ascii=False)


@dataclass(slots=True)
class ConfigLocator:
    """Resolve important paths from the project home."""

    project_root: Path | None = None
    logs_dir: Path | None = None

    def __post_init__(self) -> None:
        env_root = os.environ.get(HOME_ENV_VAR)
        if env_root:
            root = Path(env_root).expanduser().resolve()
        else:
            root = (self.project_root or Path.cwd()).resolve()
        self.project_root = root
        self.logs_dir = (root / "logs").resolve()

    def config_path(self) -> Path:
        return self.project_root / CONFIG_FILENAME

    def resolve(self, path: Path) -> Path:
        """Anchor relative paths at the project home."""

        if path.is_absolute():
            return path
        return self.project_root / path


class ConfigRepository:
    """Repository encapsulating config IO and schema validation."""

    def __init__(self, locator: ConfigLocator | None = None) -> None:
        self.locator = locator or ConfigLocator()

    def load_config(self, path: Path | None = None) -> CrawlConfig:
        path = path or self.locator.config_path()
        if path.suffix not in CONFIG_EXTENSIONS:
            raise ValueError(f"Unsupported configuration format: {path.suffix}")
        if not path.exists():
            if path != self.locator.config_path():
                raise FileNotFoundError(f"Configuration not found: {path}")
            return CrawlConfig()
        return CrawlConfig.model_validate(_read_file(path))

    def save_config(self, config: CrawlConfig, path: Path | None = None) -> Path:
        path = path or self.locator.config_path()
        _write_file(path, config.model_dump(mode="json"))
        return path

    @staticmethod
    def with_overrides(config: CrawlConfig, **overrides: Any) -> CrawlConfig:
        """Return a re-validated copy with every non-None override applied."""

        updates = {key: value for key, value in overrides.items() if value is not None}
        if not updates:
            return config
        payload = config.model_dump()
        payload.update(updates)
        return CrawlConfig.model_validate(payload)


__all__ = ["ConfigLocator", "ConfigRepository", "CONFIG_EXTENSIONS", "CONFIG_FILENAME", "HOME_ENV_VAR"]
