"""Configuration management for Music Stream Monitor."""

import logging
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Optional

import yaml

from ..utils.platform import get_config_dir

# Polling faster than this can be very CPU intensive
CPU_INTENSIVE_THRESHOLD_MS = 15
# Above this, state changes display with a noticeable delay
REFRESH_DELAY_THRESHOLD_MS = 1500
# Above this, connection retries seem very slow
RETRY_DELAY_THRESHOLD_MS = 10000


def _check_interval(name: str, value_ms: int, upper_threshold_ms: int, consequence: str) -> None:
    """Validate an interval and warn about impractical values."""
    if value_ms < 0:
        raise ValueError(f"{name} must be >= 0")

    if value_ms < CPU_INTENSIVE_THRESHOLD_MS:
        logging.warning(f"{name} of {value_ms} ms can be very CPU-intensive")
    elif value_ms > upper_threshold_ms:
        logging.warning(
            f"{name} of {value_ms / 1000.0} seconds may result in {consequence} "
            f"with a noticeable delay"
        )


@dataclass
class StreamConfig:
    """Music service polling configuration."""

    address: str = "http://localhost:8080"
    refresh_interval_ms: int = 500
    retry_delay_ms: int = 4500
    max_retries: int = 60
    request_timeout: float = 5.0

    def __post_init__(self):
        """Validate configuration."""
        if not self.address or not self.address.strip():
            raise ValueError("address must not be empty")

        _check_interval(
            "refresh_interval_ms", self.refresh_interval_ms,
            REFRESH_DELAY_THRESHOLD_MS, "state changes displaying"
        )
        _check_interval(
            "retry_delay_ms", self.retry_delay_ms,
            RETRY_DELAY_THRESHOLD_MS, "connection retries occurring"
        )

        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")

        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be > 0")


@dataclass
class NotificationConfig:
    """Desktop notification configuration."""

    enabled: bool = False
    on_insert: bool = True
    on_replace: bool = False
    on_remove: bool = True


@dataclass
class LoggingConfig:
    """Logging configuration."""

    path: Optional[Path] = None
    level: str = "INFO"
    max_size_mb: int = 10
    backup_count: int = 5
    file_enabled: bool = True

    def __post_init__(self):
        """Validate configuration and set defaults."""
        if self.path is None:
            self.path = get_config_dir() / 'monitor.log'
        elif isinstance(self.path, str):
            self.path = Path(self.path).expanduser()

        # Validate log level
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.level.upper() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}")
        self.level = self.level.upper()


@dataclass
class Settings:
    """Main settings container."""

    stream: StreamConfig = field(default_factory=StreamConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, config_path: Path) -> 'Settings':
        """Load settings from YAML file.

        Args:
            config_path: Path to configuration file

        Returns:
            Settings instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Configuration file must contain a mapping: {config_path}")

        # Create config objects with validation
        try:
            return cls(
                stream=StreamConfig(**(data.get('stream') or {})),
                notifications=NotificationConfig(**(data.get('notifications') or {})),
                logging=LoggingConfig(**(data.get('logging') or {})),
            )
        except TypeError as e:
            raise ValueError(f"Invalid configuration in {config_path}: {e}") from e

    @classmethod
    def from_file_or_default(cls, config_path: Optional[Path] = None) -> 'Settings':
        """Load settings from file or return defaults.

        Args:
            config_path: Path to configuration file (optional)

        Returns:
            Settings instance
        """
        if config_path is None:
            config_path = get_config_dir() / 'config.yaml'

        if config_path.exists():
            try:
                return cls.from_file(config_path)
            except Exception as e:
                logging.warning(f"Failed to load config from {config_path}: {e}")
                logging.warning("Using default configuration")
                return cls()
        else:
            logging.info(f"Config file not found at {config_path}, using defaults")
            return cls()

    def with_overrides(self, log_level: Optional[str] = None, **stream_overrides: Any) -> 'Settings':
        """Return a copy with command line options applied.

        Options whose value is None are left alone.

        Args:
            log_level: Logging level to use instead of the configured one
            **stream_overrides: StreamConfig fields to replace

        Returns:
            New Settings instance (validated)
        """
        settings = self
        changes = {key: value for key, value in stream_overrides.items() if value is not None}
        if changes:
            settings = replace(settings, stream=replace(settings.stream, **changes))
        if log_level is not None:
            settings = replace(settings, logging=replace(settings.logging, level=log_level))
        return settings

    def to_dict(self) -> dict:
        """Convert to a plain dict suitable for YAML serialization."""
        data = asdict(self)
        data['logging']['path'] = str(self.logging.path) if self.logging.path else None
        return data

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save settings to YAML file.

        Args:
            config_path: Path to save configuration (default: config.yaml in config dir)
        """
        if config_path is None:
            config_path = get_config_dir() / 'config.yaml'

        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False, indent=2)
