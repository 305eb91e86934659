"""Configuration module for Music Stream Monitor."""

from .settings import LoggingConfig, NotificationConfig, Settings, StreamConfig

__all__ = ["LoggingConfig", "NotificationConfig", "Settings", "StreamConfig"]
