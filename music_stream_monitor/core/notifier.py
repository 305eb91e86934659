"""Publish/subscribe delivery of change events."""

import logging
import threading
from typing import Callable, List, Optional, Protocol, Tuple

from ..models.events import ChangeEvent


class Listener(Protocol):
    """Anything that wants to hear about song changes."""

    def on_event(self, event: ChangeEvent) -> None:
        """Handle one change event."""


class CallbackListener:
    """Adapts a plain function to the Listener protocol."""

    def __init__(self, callback: Callable[[ChangeEvent], None]):
        self.callback = callback

    def on_event(self, event: ChangeEvent) -> None:
        self.callback(event)

    def __repr__(self) -> str:
        name = getattr(self.callback, '__qualname__', repr(self.callback))
        return f"CallbackListener({name})"


class Notifier:
    """Delivers each change event to every subscribed listener."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """Initialize notifier.

        Args:
            logger: Logger instance
        """
        self.logger = logger or logging.getLogger("music_stream_monitor")
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener) -> bool:
        """Add a listener after the existing ones.

        Args:
            listener: Listener to add

        Returns:
            True if added, False if it was already subscribed
        """
        with self._lock:
            if any(existing is listener for existing in self._listeners):
                return False
            self._listeners.append(listener)

        self.logger.debug(f"Subscribed listener {listener!r}")
        return True

    def unsubscribe(self, listener: Listener) -> bool:
        """Remove a listener.

        Args:
            listener: Listener to remove

        Returns:
            True if removed, False if it was not subscribed
        """
        with self._lock:
            for index, existing in enumerate(self._listeners):
                if existing is listener:
                    del self._listeners[index]
                    break
            else:
                return False

        self.logger.debug(f"Unsubscribed listener {listener!r}")
        return True

    @property
    def listeners(self) -> Tuple[Listener, ...]:
        with self._lock:
            return tuple(self._listeners)

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)

    def publish(self, event: ChangeEvent) -> int:
        """Deliver an event to all listeners, in subscription order.

        The set of listeners is fixed when the call starts. A listener that
        raises is logged and skipped; the remaining listeners still receive
        the event.

        Args:
            event: Change event to deliver

        Returns:
            Number of listeners that handled the event without error
        """
        delivered = 0
        for listener in self.listeners:
            try:
                listener.on_event(event)
                delivered += 1
            except Exception as e:
                self.logger.error(
                    f"Listener {listener!r} failed on {event.change_type.value} "
                    f"of song {event.song_id}: {e}",
                    exc_info=True
                )

        return delivered
