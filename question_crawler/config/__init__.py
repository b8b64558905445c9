"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import DEFAULT_BASE_URL, CrawlConfig

__all__ = ["ConfigLocator", "ConfigRepository", "CrawlConfig", "DEFAULT_BASE_URL"]
