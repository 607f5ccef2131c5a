"""Utilities for the SQLite query gateway."""

from .config import ConfigManager, setup_logging

__all__ = ["ConfigManager", "setup_logging"]
