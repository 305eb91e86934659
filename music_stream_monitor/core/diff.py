"""Song set reconciliation and field-level differencing."""

import copy
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional, Tuple

from ..models.events import (
    ChangeEvent,
    DiffOp,
    FieldDiff,
    SongInserted,
    SongRemoved,
    SongReplaced,
)
from ..models.song import Song, SongSet

PATH_SEPARATOR = "/"


@dataclass
class Reconciliation:
    """Outcome of reconciling one snapshot against the known song set."""

    songs: SongSet
    events: List[ChangeEvent] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)  # Ids with no detail this cycle


def _escape(token: str) -> str:
    return token.replace("~", "~0").replace("/", "~1")


def _unescape(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def _join(tokens: Tuple[str, ...]) -> str:
    return PATH_SEPARATOR.join(_escape(token) for token in tokens)


def _split(path: str) -> List[str]:
    return [_unescape(token) for token in path.split(PATH_SEPARATOR)]


def _diff_values(previous: Any, current: Any, tokens: Tuple[str, ...], out: List[FieldDiff]) -> None:
    if isinstance(previous, dict) and isinstance(current, dict):
        _diff_objects(previous, current, tokens, out)
    elif isinstance(previous, list) and isinstance(current, list):
        _diff_arrays(previous, current, tokens, out)
    # A type change (1 -> "1", 1 -> True) is a plain value change
    elif type(previous) is not type(current) or previous != current:
        out.append(FieldDiff(DiffOp.REPLACE, _join(tokens), copy.deepcopy(current)))


def _diff_objects(previous: dict, current: dict, tokens: Tuple[str, ...], out: List[FieldDiff]) -> None:
    for key, value in previous.items():
        child = tokens + (key,)
        if key in current:
            _diff_values(value, current[key], child, out)
        else:
            out.append(FieldDiff(DiffOp.REMOVE, _join(child)))

    for key, value in current.items():
        if key not in previous:
            out.append(FieldDiff(DiffOp.ADD, _join(tokens + (key,)), copy.deepcopy(value)))


def _diff_arrays(previous: list, current: list, tokens: Tuple[str, ...], out: List[FieldDiff]) -> None:
    common = min(len(previous), len(current))
    for index in range(common):
        _diff_values(previous[index], current[index], tokens + (str(index),), out)

    # Highest index first so each removal leaves the lower indices valid
    for index in reversed(range(common, len(previous))):
        out.append(FieldDiff(DiffOp.REMOVE, _join(tokens + (str(index),))))

    for index in range(common, len(current)):
        out.append(FieldDiff(DiffOp.ADD, _join(tokens + (str(index),)), copy.deepcopy(current[index])))


def diff_songs(previous: Song, current: Song) -> List[FieldDiff]:
    """Compute the flattened field differences between two song records.

    Fields of ``previous`` are visited first, in order, producing ``replace``
    for changed values and ``remove`` for vanished ones; fields that only
    exist in ``current`` follow as ``add``. Nested objects and arrays are
    descended into, so a changed ``meta.label`` is reported as the single
    path ``meta/label``.

    Args:
        previous: Song as it was stored
        current: Song as it was just fetched

    Returns:
        List of field differences (empty if the records are equal)
    """
    out: List[FieldDiff] = []
    _diff_values(previous, current, (), out)
    return out


def apply_diff(song: Song, diff: Iterable[FieldDiff]) -> Song:
    """Apply field differences to a copy of a song.

    ``apply_diff(a, diff_songs(a, b)) == b`` holds for any two records.

    Args:
        song: Base record (left untouched)
        diff: Differences as produced by diff_songs

    Returns:
        New record with the differences applied
    """
    result = copy.deepcopy(song)
    for change in diff:
        tokens = _split(change.path)
        parent = result
        for token in tokens[:-1]:
            parent = parent[int(token)] if isinstance(parent, list) else parent[token]

        last = tokens[-1]
        value = copy.deepcopy(change.value)
        if isinstance(parent, list):
            index = int(last)
            if change.op is DiffOp.REMOVE:
                del parent[index]
            elif change.op is DiffOp.ADD:
                parent.insert(index, value)
            else:
                parent[index] = value
        elif change.op is DiffOp.REMOVE:
            del parent[last]
        else:
            parent[last] = value
    return result


def reconcile(
    previous: SongSet,
    playlist_ids: Iterable[str],
    fetch_detail: Callable[[str], Optional[Song]]
) -> Reconciliation:
    """Reconcile a fresh playlist snapshot against the known song set.

    Two passes over the pre-cycle state:
    1. Every id of the playlist, in order, is fetched and classified as an
       insert, a replace, or unchanged
    2. Every known id missing from the playlist is removed, in the order of
       the known set

    Args:
        previous: Known song set (not modified)
        playlist_ids: Ids of the latest playlist listing
        fetch_detail: Returns the full record of an id, or None if it could
            not be retrieved this cycle

    Returns:
        Reconciliation with the updated song set and ordered change events
    """
    songs = dict(previous)
    result = Reconciliation(songs=songs)
    present = set()

    for song_id in playlist_ids:
        if song_id in present:
            continue
        present.add(song_id)

        song = fetch_detail(song_id)
        if song is None:
            # Keep whatever is stored until the detail can be fetched again
            result.skipped.append(song_id)
            continue

        stored = previous.get(song_id)
        if stored is None:
            result.events.append(SongInserted(song=copy.deepcopy(song)))
            songs[song_id] = song
            continue

        diff = diff_songs(stored, song)
        if diff:
            result.events.append(SongReplaced(
                previous=copy.deepcopy(stored),
                current=copy.deepcopy(song),
                diff=tuple(diff)
            ))
            songs[song_id] = song

    for song_id, stored in previous.items():
        if song_id not in present:
            result.events.append(SongRemoved(song=copy.deepcopy(stored)))
            del songs[song_id]

    return result
