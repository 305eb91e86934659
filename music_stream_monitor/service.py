"""Main background service for Music Stream Monitor."""

import signal
from pathlib import Path
from typing import Optional

from .config.settings import Settings
from .core.fetcher import HttpSnapshotFetcher
from .core.monitor import StreamMonitor
from .core.notifier import Notifier
from .listeners.desktop import DesktopListener
from .listeners.log_listener import LogListener
from .utils.logger import setup_logger
from .utils.platform import is_windows


class MusicStreamService:
    """Runs a stream monitor with its listeners until stopped."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        config_path: Optional[Path] = None,
        console: bool = True
    ):
        """Initialize the service.

        Args:
            settings: Settings to use (loaded from config_path if None)
            config_path: Path to configuration file (optional)
            console: Whether to log to the console
        """
        self.running = False
        self.settings = settings or Settings.from_file_or_default(config_path)

        self.logger = setup_logger(self.settings.logging, console=console)

        self.logger.info("Initializing Music Stream Monitor service")

        stream_config = self.settings.stream
        self.fetcher = HttpSnapshotFetcher(
            stream_config.address,
            timeout=stream_config.request_timeout,
            logger=self.logger
        )
        self.notifier = Notifier(self.logger)
        self.monitor = StreamMonitor(
            self.fetcher,
            notifier=self.notifier,
            refresh_interval=stream_config.refresh_interval_ms / 1000.0,
            retry_delay=stream_config.retry_delay_ms / 1000.0,
            max_retries=stream_config.max_retries,
            logger=self.logger
        )

        self.notifier.subscribe(LogListener(self.logger))

        notifications = self.settings.notifications
        if notifications.enabled:
            self.notifier.subscribe(DesktopListener(
                logger=self.logger,
                on_insert=notifications.on_insert,
                on_replace=notifications.on_replace,
                on_remove=notifications.on_remove
            ))

    def setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""

        def signal_handler(signum, frame):
            self.logger.info(f"Received signal {signum}, shutting down...")
            self.running = False

        signal.signal(signal.SIGINT, signal_handler)

        # Windows uses SIGBREAK, Linux/macOS use SIGTERM
        if is_windows():
            signal.signal(signal.SIGBREAK, signal_handler)
        else:
            signal.signal(signal.SIGTERM, signal_handler)

    def start(self, install_signal_handlers: bool = True) -> None:
        """Start monitoring and block until stopped.

        Returns when a signal arrives or the monitor gives up retrying.
        """
        try:
            self.running = True

            if install_signal_handlers:
                self.setup_signal_handlers()

            self.monitor.start()
            self.logger.info("Service started, press Ctrl+C to stop")

            self._keep_alive()

        except KeyboardInterrupt:
            self.logger.info("Keyboard interrupt received")
        finally:
            self.shutdown()

    def _keep_alive(self) -> None:
        """Wait until shutdown is requested or the monitor stops by itself."""
        while self.running and not self.monitor.join(timeout=1.0):
            pass

    def shutdown(self) -> None:
        """Graceful shutdown."""
        self.running = False

        self.logger.info("Shutting down service...")
        self.monitor.stop(wait=True)
        self.fetcher.close()
        self.logger.info("Service stopped")
