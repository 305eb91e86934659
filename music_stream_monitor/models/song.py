"""Song data models."""

from typing import Any, Dict, Iterable, List

from ..exceptions import MalformedPayload, MissingField

# Ordered mapping of attribute name to JSON value, keyed by 'id'
Song = Dict[str, Any]

# Monitor's current belief about what is playing, keyed by song id
SongSet = Dict[str, Song]

# Ids from one GET /music listing, in listing order
PlaylistIndex = List[str]


def record_id(record: Any, context: str = "song record") -> str:
    """Get the identity key of a decoded record.

    Args:
        record: Decoded JSON value
        context: Description used in error messages

    Returns:
        The record id as a string

    Raises:
        MalformedPayload: If the record is not a JSON object
        MissingField: If the record has no 'id'
    """
    if not isinstance(record, dict):
        raise MalformedPayload(f"{context} is not an object: {record!r}")
    if record.get("id") is None:
        raise MissingField("id", context)
    return str(record["id"])


def build_playlist_index(records: Iterable[Any]) -> PlaylistIndex:
    """Collect the ids of a simple playlist listing.

    Duplicates are dropped, first occurrence wins.
    """
    return list(dict.fromkeys(record_id(record, "playlist entry") for record in records))
