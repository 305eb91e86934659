"""Desktop notifications for song changes."""

import logging
from typing import Optional

from plyer import notification as plyer_notification

from ..models.events import ChangeEvent, SongInserted, SongRemoved, SongReplaced
from ..models.song import Song


def describe_song(song: Song) -> str:
    """Short human readable description of a song."""
    name = song.get('name') or f"Song {song.get('id')}"
    artist = song.get('artist')
    return f"{name} by {artist}" if artist else name


class DesktopListener:
    """Shows a desktop notification for selected change events."""

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        enabled: bool = True,
        on_insert: bool = True,
        on_replace: bool = False,
        on_remove: bool = True,
        app_name: str = "Music Stream Monitor",
        duration: int = 5
    ):
        """Initialize desktop listener.

        Args:
            logger: Logger instance
            enabled: Whether notifications are enabled
            on_insert: Notify when a song is added
            on_replace: Notify when a song changes (fires often while playing)
            on_remove: Notify when a song is removed
            app_name: Application name for notifications
            duration: Duration in seconds (ignored on some platforms)
        """
        self.logger = logger or logging.getLogger("music_stream_monitor")
        self.enabled = enabled
        self.on_insert = on_insert
        self.on_replace = on_replace
        self.on_remove = on_remove
        self.app_name = app_name
        self.duration = duration

    def on_event(self, event: ChangeEvent) -> None:
        if not self.enabled:
            return

        if isinstance(event, SongInserted) and self.on_insert:
            self.send("Song Added", describe_song(event.song))
        elif isinstance(event, SongReplaced) and self.on_replace:
            fields = ", ".join(change.path for change in event.diff)
            self.send("Song Changed", f"{describe_song(event.current)}: {fields}")
        elif isinstance(event, SongRemoved) and self.on_remove:
            self.send("Song Removed", describe_song(event.song))

    def send(self, title: str, message: str) -> bool:
        """Send a desktop notification.

        Args:
            title: Notification title
            message: Notification message

        Returns:
            True if notification sent successfully, False otherwise
        """
        try:
            plyer_notification.notify(
                title=title,
                message=message,
                app_name=self.app_name,
                timeout=self.duration
            )
            self.logger.debug(f"Notification sent: {title}")
            return True

        except Exception as e:
            # plyer raises NotImplementedError when the platform has no backend
            self.logger.warning(f"Desktop notifications unavailable, disabling them: {e}")
            self.enabled = False
            return False
