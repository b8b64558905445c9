"""Output directory layout for a crawl run."""

from __future__ import annotations

import shutil
from pathlib import Path

from ..errors import OutputPreparationError


class OutputLayout:
    """Own the output tree: one JSON file per record plus an images subtree."""

    def __init__(self, root: Path, images_subdir: str = "images") -> None:
        self.root = root
        self.images_dir = root / images_subdir

    def prepare(self) -> None:
        """Remove any previous run's output and recreate the empty tree."""
        try:
            if self.root.is_dir() and not self.root.is_symlink():
                shutil.rmtree(self.root)
            elif self.root.exists() or self.root.is_symlink():
                self.root.unlink()
        except OSError as exc:
            raise OutputPreparationError(f"failed to clear {self.root}: {exc}") from exc
        try:
            self.root.mkdir(parents=True)
            self.images_dir.mkdir(parents=True)
        except OSError as exc:
            raise OutputPreparationError(f"failed to create {self.images_dir}: {exc}") from exc

    def image_path(self, image_file: str) -> Path:
        """Return where an image goes, refusing names that leave the images directory."""
        candidate = (self.images_dir / image_file).resolve()
        base = self.images_dir.resolve()
        if candidate == base or base not in candidate.parents:
            raise ValueError(f"image name escapes {self.images_dir}: {image_file!r}")
        return candidate


__all__ = ["OutputLayout"]
