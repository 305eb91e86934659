"""Music stream monitoring and change detection."""

import copy
import logging
import threading
from enum import Enum
from functools import partial
from typing import TYPE_CHECKING, List, Optional

from ..exceptions import FetchFailure, PayloadError
from ..models.song import Song, SongSet
from .diff import reconcile
from .fetcher import HttpSnapshotFetcher, SnapshotFetcher
from .notifier import Listener, Notifier
from .scheduler import PollScheduler

if TYPE_CHECKING:
    from ..config.settings import StreamConfig


class MonitorState(str, Enum):
    """Lifecycle of a stream monitor."""

    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class StreamMonitor:
    """Polls the music service and publishes detected song changes."""

    def __init__(
        self,
        fetcher: SnapshotFetcher,
        notifier: Optional[Notifier] = None,
        refresh_interval: float = 0.5,
        retry_delay: float = 4.5,
        max_retries: int = 60,
        logger: Optional[logging.Logger] = None
    ):
        """Initialize stream monitor.

        Args:
            fetcher: Source of playlist snapshots
            notifier: Notifier used to publish events (a new one if None)
            refresh_interval: Seconds to wait after a successful cycle
            retry_delay: Seconds to wait after a cycle with a failed fetch
            max_retries: Consecutive failed fetches before giving up
            logger: Logger instance
        """
        self.fetcher = fetcher
        self.logger = logger or logging.getLogger("music_stream_monitor")
        self.notifier = notifier if notifier is not None else Notifier(self.logger)
        self.refresh_interval = refresh_interval
        self.retry_delay = retry_delay
        self.max_retries = max_retries

        self._songs: SongSet = {}
        self._failures = 0
        self._state = MonitorState.IDLE
        self._lock = threading.RLock()
        # Held for a whole fetch-reconcile-publish cycle
        self._cycle_lock = threading.RLock()
        self._finished = threading.Event()
        self._finished.set()

        self._scheduler: Optional[PollScheduler] = None
        self._generation = 0
        self._cycle_active = False
        self._loop_thread: Optional[int] = None
        self._cycle_failed = False

    @classmethod
    def from_address(
        cls,
        address: str,
        timeout: float = 5.0,
        **kwargs
    ) -> 'StreamMonitor':
        """Create a monitor polling an HTTP music service.

        Args:
            address: Base address of the music service
            timeout: Timeout per request in seconds
            **kwargs: Passed on to the constructor

        Returns:
            StreamMonitor instance
        """
        fetcher = HttpSnapshotFetcher(address, timeout=timeout, logger=kwargs.get('logger'))
        return cls(fetcher, **kwargs)

    @classmethod
    def from_settings(
        cls,
        config: 'StreamConfig',
        logger: Optional[logging.Logger] = None,
        notifier: Optional[Notifier] = None
    ) -> 'StreamMonitor':
        """Create a monitor from the stream section of the settings."""
        return cls.from_address(
            config.address,
            timeout=config.request_timeout,
            notifier=notifier,
            refresh_interval=config.refresh_interval_ms / 1000.0,
            retry_delay=config.retry_delay_ms / 1000.0,
            max_retries=config.max_retries,
            logger=logger
        )

    # Inspection

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is MonitorState.RUNNING

    @property
    def failure_count(self) -> int:
        return self._failures

    @property
    def source_address(self) -> Optional[str]:
        return getattr(self.fetcher, 'address', None)

    @property
    def song_ids(self) -> List[str]:
        return list(self._songs)

    def get_song_set(self) -> SongSet:
        """Get a copy of the songs currently believed to be playing."""
        with self._lock:
            return copy.deepcopy(self._songs)

    def get_song(self, song_id: str) -> Optional[Song]:
        """Get a copy of one known song, or None."""
        with self._lock:
            song = self._songs.get(song_id)
            return copy.deepcopy(song) if song is not None else None

    def subscribe(self, listener: Listener) -> bool:
        return self.notifier.subscribe(listener)

    def unsubscribe(self, listener: Listener) -> bool:
        return self.notifier.unsubscribe(listener)

    # Lifecycle

    def start(self) -> None:
        """Start polling on a background thread.

        Does nothing if the monitor is already running or still stopping.
        """
        with self._lock:
            if self._state in (MonitorState.RUNNING, MonitorState.STOPPING):
                self.logger.debug(f"Monitor already {self._state.value}, ignoring start")
                return

            self._generation += 1
            self._failures = 0
            self._finished.clear()
            self._state = MonitorState.RUNNING

            self.logger.info(
                f"Monitoring music stream at {self.source_address} "
                f"(refresh {self.refresh_interval}s, retry delay {self.retry_delay}s, "
                f"max retries {self.max_retries})"
            )
            self._scheduler = PollScheduler(self.logger, partial(self._run_cycle, self._generation))
            self._scheduler.start()

    def stop(self, wait: bool = True, timeout: Optional[float] = None) -> None:
        """Ask the polling loop to exit after its current cycle.

        Safe to call more than once and from any thread.

        Args:
            wait: Block until the loop has exited (ignored on the loop thread)
            timeout: Maximum seconds to wait
        """
        with self._lock:
            if self._state is MonitorState.RUNNING:
                self.logger.info("Stopping music stream monitor")
                self._state = MonitorState.STOPPING
                if not self._cycle_active:
                    self._scheduler.cancel_pending()
                    self._finish()

        if wait and threading.get_ident() != self._loop_thread:
            self.join(timeout)

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the polling loop to exit.

        Returns:
            True if the loop is not running when the call returns
        """
        return self._finished.wait(timeout)

    def _finish(self) -> None:
        # Called with the lock held
        self._state = MonitorState.STOPPED
        if self._scheduler is not None:
            self._scheduler.stop(wait=False)
        self._finished.set()
        self.logger.info("Music stream monitor stopped")

    def _run_cycle(self, generation: int) -> None:
        """Scheduled job: run one cycle and schedule the next."""
        with self._lock:
            if generation != self._generation or self._state is not MonitorState.RUNNING:
                return
            if self._failures >= self.max_retries:
                self._give_up()
                return
            self._cycle_active = True
            self._loop_thread = threading.get_ident()

        try:
            succeeded = self.poll_once()
        except Exception as e:
            self.logger.error(f"Unexpected error in polling cycle: {e}", exc_info=True)
            succeeded = False

        with self._lock:
            self._cycle_active = False
            if self._state is MonitorState.STOPPING:
                self._finish()
            elif self._failures >= self.max_retries:
                self._give_up()
            else:
                delay = self.refresh_interval if succeeded else self.retry_delay
                self._scheduler.schedule_next(delay)

    def _give_up(self) -> None:
        self.logger.error(
            f"Giving up on {self.source_address} after {self._failures} consecutive failed requests"
        )
        self._finish()

    # Polling

    def _record_failure(self, error: FetchFailure) -> None:
        self._failures += 1
        self._cycle_failed = True
        self.logger.warning(f"{error} (failure {self._failures}/{self.max_retries})")

    def _fetch_detail(self, song_id: str) -> Optional[Song]:
        try:
            song = self.fetcher.fetch_song(song_id)
        except FetchFailure as e:
            self._record_failure(e)
            return None
        except PayloadError as e:
            self._failures = 0
            self.logger.warning(f"Skipping song {song_id}: {e}")
            return None

        self._failures = 0
        return song

    def poll_once(self) -> bool:
        """Run one fetch-reconcile-publish cycle on the calling thread.

        Cycles never overlap: a call made while the polling loop is in a
        cycle waits for that cycle to finish and then reconciles against
        its result.

        Returns:
            True if every request in the cycle succeeded
        """
        with self._cycle_lock:
            self._cycle_failed = False
            try:
                playlist_ids = self.fetcher.fetch_playlist_ids()
            except FetchFailure as e:
                self._record_failure(e)
                return False
            except PayloadError as e:
                self._failures = 0
                self.logger.warning(f"Ignoring playlist listing: {e}")
                return True

            self._failures = 0
            self.logger.debug(f"Playlist lists {len(playlist_ids)} song(s)")

            result = reconcile(self._songs, playlist_ids, self._fetch_detail)
            with self._lock:
                self._songs = result.songs

            for event in result.events:
                self.logger.debug(f"Publishing {event.change_type.value} of song {event.song_id}")
                self.notifier.publish(event)

            return not self._cycle_failed
