"""Listeners consuming song change events."""

from .desktop import DesktopListener
from .log_listener import LogListener, format_seconds

__all__ = ["DesktopListener", "LogListener", "format_seconds"]
