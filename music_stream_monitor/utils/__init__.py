"""Utility modules for Music Stream Monitor."""

from .logger import setup_logger
from .platform import get_config_dir, is_windows

__all__ = ["setup_logger", "get_config_dir", "is_windows"]
