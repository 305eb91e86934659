"""Command-line interface for Music Stream Monitor."""

from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from .config.settings import LoggingConfig, Settings
from .core.monitor import StreamMonitor
from .listeners.log_listener import format_seconds
from .service import MusicStreamService
from .utils.logger import setup_logger
from .utils.platform import get_config_dir

app = typer.Typer(help="Music stream change monitor")
console = Console()


def get_settings(
    config_path: Optional[Path] = None,
    address: Optional[str] = None,
    refresh: Optional[int] = None,
    retry_time: Optional[int] = None,
    retries: Optional[int] = None,
    level: Optional[str] = None
) -> Settings:
    """Load settings and apply command line overrides."""
    try:
        return Settings.from_file_or_default(config_path).with_overrides(
            log_level=level,
            address=address,
            refresh_interval_ms=refresh,
            retry_delay_ms=retry_time,
            max_retries=retries
        )
    except ValueError as e:
        console.print(f"[red]Invalid settings: {e}[/red]")
        raise typer.Exit(1)


def _cell(song: dict, key: str) -> str:
    value = song.get(key)
    return "" if value is None else str(value)


@app.command()
def watch(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file"
    ),
    address: Optional[str] = typer.Option(
        None,
        "--address",
        "-a",
        help="Address and port of the music service"
    ),
    refresh: Optional[int] = typer.Option(
        None,
        "--refresh",
        "-r",
        help="Milliseconds between refreshes of the music stream"
    ),
    retry_time: Optional[int] = typer.Option(
        None,
        "--time",
        "-t",
        help="Milliseconds between connection retries"
    ),
    retries: Optional[int] = typer.Option(
        None,
        "--retries",
        "-n",
        help="Number of consecutive failed requests before giving up"
    ),
    level: Optional[str] = typer.Option(
        None,
        "--level",
        "-l",
        help="Log level (DEBUG, INFO, WARNING, ERROR)"
    )
):
    """Monitor the music stream and log every change."""
    settings = get_settings(config, address, refresh, retry_time, retries, level)

    if settings.logging.level in ("WARNING", "ERROR", "CRITICAL"):
        console.print("[yellow]Changes to the music stream will not be printed at this log level[/yellow]")

    try:
        service = MusicStreamService(settings=settings)
        service.start()
    except Exception as e:
        console.print(f"[red]Service error: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def snapshot(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file"
    ),
    address: Optional[str] = typer.Option(
        None,
        "--address",
        "-a",
        help="Address and port of the music service"
    )
):
    """Fetch the music stream once and show what is playing."""
    settings = get_settings(config, address)

    # Console only for a one-off check
    logger = setup_logger(LoggingConfig(level="WARNING", file_enabled=False))
    monitor = StreamMonitor.from_settings(settings.stream, logger=logger)

    try:
        succeeded = monitor.poll_once()
    finally:
        monitor.fetcher.close()

    if not succeeded and not monitor.song_ids:
        console.print(f"[red]Could not fetch the music stream from {monitor.source_address}[/red]")
        raise typer.Exit(1)

    songs = monitor.get_song_set()
    if not songs:
        console.print("[yellow]Nothing is playing[/yellow]")
        return

    table = Table(title=f"Music Stream at {monitor.source_address}")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Artist")
    table.add_column("Album")
    table.add_column("Track", justify="right")
    table.add_column("Elapsed", justify="right")
    table.add_column("Remaining", justify="right")

    for song_id, song in songs.items():
        times = [
            format_seconds(song[key]) if isinstance(song.get(key), int) else _cell(song, key)
            for key in ("time_passed", "time_remaining")
        ]
        table.add_row(
            song_id,
            _cell(song, "name"),
            _cell(song, "artist"),
            _cell(song, "album"),
            _cell(song, "track_number"),
            *times
        )

    console.print(table)
    if not succeeded:
        console.print("[yellow]Some songs could not be fetched[/yellow]")


@app.command(name="show-config")
def show_config(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file"
    )
):
    """Show the effective configuration."""
    settings = get_settings(config)
    console.print(
        yaml.dump(settings.to_dict(), default_flow_style=False, sort_keys=False, indent=2),
        markup=False
    )


@app.command(name="init-config")
def init_config(
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output path for config file"
    )
):
    """Initialize a configuration file with defaults."""
    if output is None:
        output = get_config_dir() / 'config.yaml'

    if output.exists():
        overwrite = typer.confirm(
            f"Config file already exists at {output}. Overwrite?",
            default=False
        )
        if not overwrite:
            console.print("[yellow]Cancelled[/yellow]")
            return

    settings = Settings()
    settings.save(output)

    console.print(f"[green]Configuration file created: {output}[/green]")
    console.print("\nEdit this file to customize your settings")


if __name__ == "__main__":
    app()
