"""Listener that renders song changes as log lines."""

import copy
import json
import logging
from typing import Any, Dict, Iterable, Optional

from ..exceptions import MissingField
from ..models.events import ChangeEvent, SongInserted, SongRemoved, SongReplaced
from ..models.song import Song

TIME_FIELDS = ("time_passed", "time_remaining")


def format_seconds(seconds: int) -> str:
    """Format a number of seconds as MM:SS.

    >>> format_seconds(275)
    '04:35'
    """
    sign = "-" if seconds < 0 else ""
    minutes, secs = divmod(abs(int(seconds)), 60)
    return f"{sign}{minutes:02d}:{secs:02d}"


class LogListener:
    """Writes each change event to a logger at INFO level."""

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        time_fields: Iterable[str] = TIME_FIELDS
    ):
        """Initialize log listener.

        Args:
            logger: Logger to write to
            time_fields: Fields holding seconds, shown as MM:SS
        """
        self.logger = logger or logging.getLogger("music_stream_monitor")
        self.time_fields = tuple(time_fields)

    def on_event(self, event: ChangeEvent) -> None:
        try:
            if isinstance(event, SongInserted):
                self.log_insertion(event.song)
            elif isinstance(event, SongReplaced):
                self.log_replacement(event)
            elif isinstance(event, SongRemoved):
                self.log_removal(event.song)
        except MissingField as e:
            self.logger.warning(f"Could not log {event.change_type.value}: {e}")

    def convert_times(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """Return a copy of a record with its time fields as MM:SS."""
        record = copy.deepcopy(record)
        for key in self.time_fields:
            value = record.get(key)
            if isinstance(value, int) and not isinstance(value, bool):
                record[key] = format_seconds(value)
        return record

    def _dump(self, record: Dict[str, Any]) -> str:
        return json.dumps(self.convert_times(record), indent=4, ensure_ascii=False)

    def log_insertion(self, song: Song) -> str:
        message = "Song added:\n" + self._dump(song)
        self.logger.info(message)
        return message

    def log_replacement(self, event: SongReplaced) -> str:
        """Log every field change of a replacement as its own entry.

        Returns:
            All logged messages, concatenated
        """
        text = ""
        for change in event.field_changes():
            message = "Song state changed: \n" + self._dump(change.as_dict())
            self.logger.info(message)
            text += message
        return text

    def log_removal(self, song: Song) -> str:
        if "name" not in song:
            raise MissingField("name", f"removed song {song.get('id')}")

        message = f"Song removed: \n{song['name']}({song['id']}) has been removed"
        self.logger.info(message)
        return message
