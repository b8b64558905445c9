"""Sequential download of the image files referenced by fetched questions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

import httpx
import structlog

from ..config import CrawlConfig
from ..infra import OutputLayout


@dataclass
class ImageDownloadReport:
    downloaded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class ImageDownloader:
    """Fetch each image in turn; every failure is logged and skipped."""

    def __init__(
        self,
        config: CrawlConfig,
        client: httpx.Client,
        layout: OutputLayout,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self.client = client
        self.layout = layout
        self.logger = logger or structlog.get_logger("question_crawler.images")

    def download_all(self, images: Iterable[str]) -> ImageDownloadReport:
        report = ImageDownloadReport()
        for image in images:
            if self.download(image):
                report.downloaded.append(image)
            else:
                report.failed.append(image)
        return report

    def download(self, image: str) -> bool:
        try:
            dest = self.layout.image_path(image)
        except ValueError as exc:
            self.logger.warning("image_rejected", image=image, error=str(exc))
            return False

        url = self.config.image_url(image)
        try:
            response = self.client.get(url)
        except httpx.HTTPError as exc:
            self.logger.warning("image_download_failed", image=image, url=url, error=repr(exc))
            return False
        if response.status_code != httpx.codes.OK:
            self.logger.warning(
                "image_download_failed", image=image, url=url, status_code=response.status_code
            )
            return False

        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_bytes(response.content)
        except OSError as exc:
            self.logger.error("image_write_failed", image=image, path=str(dest), error=str(exc))
            return False
        self.logger.info("image_downloaded", image=image, path=str(dest), size=len(response.content))
        return True


__all__ = ["ImageDownloadReport", "ImageDownloader"]
