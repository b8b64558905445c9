"""Exporter SPI and implementations."""

from .base import BaseExporter
from .file_exporter import JsonFileExporter

__all__ = ["BaseExporter", "JsonFileExporter"]
