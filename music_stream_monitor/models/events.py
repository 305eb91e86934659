"""Change event models."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, List, Tuple, Union

from .song import Song


class ChangeType(str, Enum):
    """Kind of change detected between two snapshots."""

    INSERT = "insert"
    REPLACE = "replace"
    REMOVE = "remove"


class DiffOp(str, Enum):
    """Field-level operation within a replacement."""

    ADD = "add"
    REPLACE = "replace"
    REMOVE = "remove"


@dataclass(frozen=True)
class FieldDiff:
    """One differing field between two versions of a song."""

    op: DiffOp
    path: str
    value: Any = None

    @property
    def has_value(self) -> bool:
        """Removed fields carry no value."""
        return self.op is not DiffOp.REMOVE

    def as_dict(self) -> Dict[str, Any]:
        data = {"op": self.op.value, "path": self.path}
        if self.has_value:
            data["value"] = self.value
        return data


# Keys with a fixed meaning in FieldChange.as_dict()
RESERVED_KEYS = frozenset({"id", "removed", "changed"})


@dataclass(frozen=True)
class FieldChange:
    """A single field change of one song, loggable on its own."""

    song_id: str
    path: str
    value: Any = None
    op: DiffOp = DiffOp.REPLACE

    def as_dict(self) -> Dict[str, Any]:
        """Render as ``{"id": ..., <path>: <value>}``.

        Removed fields render as ``{"id": ..., "removed": <path>}``. Paths
        that would clash with these keys (``id``, ``removed``, ``changed``)
        are nested: ``{"id": ..., "changed": {<path>: <value>}}``.
        """
        if self.op is DiffOp.REMOVE:
            return {"id": self.song_id, "removed": self.path}
        if self.path in RESERVED_KEYS:
            return {"id": self.song_id, "changed": {self.path: self.value}}
        return {"id": self.song_id, self.path: self.value}


@dataclass(frozen=True)
class SongInserted:
    """A song id was seen for the first time."""

    change_type: ClassVar[ChangeType] = ChangeType.INSERT

    song: Song

    @property
    def song_id(self) -> str:
        return str(self.song["id"])


@dataclass(frozen=True)
class SongReplaced:
    """A known song was fetched again with at least one differing field."""

    change_type: ClassVar[ChangeType] = ChangeType.REPLACE

    previous: Song
    current: Song
    diff: Tuple[FieldDiff, ...] = ()

    @property
    def song_id(self) -> str:
        return str(self.previous["id"])

    def field_changes(self) -> List[FieldChange]:
        """Split the replacement into one change per differing field."""
        return [
            FieldChange(song_id=self.song_id, path=d.path, value=d.value, op=d.op)
            for d in self.diff
        ]


@dataclass(frozen=True)
class SongRemoved:
    """A known song id disappeared from the playlist."""

    change_type: ClassVar[ChangeType] = ChangeType.REMOVE

    song: Song

    @property
    def song_id(self) -> str:
        return str(self.song["id"])


ChangeEvent = Union[SongInserted, SongReplaced, SongRemoved]
