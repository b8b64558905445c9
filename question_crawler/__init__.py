"""Concurrent question crawler: fetch numbered records, persist them, pull their images."""

__version__ = "0.1.0"
