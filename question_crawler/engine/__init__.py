"""Engine components wiring fetch -> sinks -> images."""

from .channel import Channel, ChannelClosed
from .fetcher import FailureKind, FetchFailure, Question, RecordFetcher, build_client
from .image_cache import ImageCache
from .images import ImageDownloader, ImageDownloadReport
from .sinks import ErrorSink, ResultSink
from .thread_pool import ThreadPoolManager
from .workers import WorkerPool

__all__ = [
    "Channel",
    "ChannelClosed",
    "ErrorSink",
    "FailureKind",
    "FetchFailure",
    "ImageCache",
    "ImageDownloadReport",
    "ImageDownloader",
    "Question",
    "RecordFetcher",
    "ResultSink",
    "ThreadPoolManager",
    "WorkerPool",
    "build_client",
]
