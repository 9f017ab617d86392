"""Command line interface for haper."""

from __future__ import annotations

from .main import cli

__all__ = ["cli"]
