"""Music Stream Monitor: detects and publishes changes of a playing music stream."""

from .core.monitor import MonitorState, StreamMonitor
from .core.notifier import CallbackListener, Notifier
from .models.events import ChangeType, FieldChange, SongInserted, SongRemoved, SongReplaced

__version__ = "0.1.0"

__all__ = [
    "CallbackListener",
    "ChangeType",
    "FieldChange",
    "MonitorState",
    "Notifier",
    "SongInserted",
    "SongRemoved",
    "SongReplaced",
    "StreamMonitor",
]
