"""Data models for Music Stream Monitor."""

from .events import (
    ChangeEvent,
    ChangeType,
    DiffOp,
    FieldChange,
    FieldDiff,
    SongInserted,
    SongRemoved,
    SongReplaced,
)
from .song import PlaylistIndex, Song, SongSet, build_playlist_index, record_id

__all__ = [
    "ChangeEvent",
    "ChangeType",
    "DiffOp",
    "FieldChange",
    "FieldDiff",
    "PlaylistIndex",
    "Song",
    "SongInserted",
    "SongRemoved",
    "SongReplaced",
    "SongSet",
    "build_playlist_index",
    "record_id",
]
