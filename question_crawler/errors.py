"""Exception hierarchy for fatal crawler conditions.

Per-identifier fetch problems are not exceptions; see ``engine.fetcher.FetchFailure``.
"""

from __future__ import annotations


class CrawlerError(Exception):
    """Base class for errors that abort a crawl run."""


class OutputPreparationError(CrawlerError):
    """The output directory could not be cleared or created."""


class PipelineStateError(CrawlerError):
    """A shutdown transition was attempted out of order."""


__all__ = ["CrawlerError", "OutputPreparationError", "PipelineStateError"]
