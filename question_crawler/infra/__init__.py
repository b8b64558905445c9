"""Infra layer utilities (output storage)."""

from .storage import OutputLayout

__all__ = ["OutputLayout"]
