"""Core functionality for Music Stream Monitor."""

from .diff import Reconciliation, apply_diff, diff_songs, reconcile
from .fetcher import HttpSnapshotFetcher, SnapshotFetcher
from .monitor import MonitorState, StreamMonitor
from .notifier import CallbackListener, Listener, Notifier
from .scheduler import PollScheduler

__all__ = [
    "CallbackListener",
    "HttpSnapshotFetcher",
    "Listener",
    "MonitorState",
    "Notifier",
    "PollScheduler",
    "Reconciliation",
    "SnapshotFetcher",
    "StreamMonitor",
    "apply_diff",
    "diff_songs",
    "reconcile",
]
