"""Shared fixtures for the Music Stream Monitor tests."""

import copy
import logging
from unittest.mock import Mock

import pytest

from music_stream_monitor.utils.logger import LOGGER_NAME


def make_song(song_id="1", **overrides):
    """Build a full song record like the ones served by GET /music/{id}."""
    song = {
        "id": song_id,
        "name": f"Song {song_id}",
        "artist": f"Artist {song_id}",
        "album": f"Album {song_id}",
        "track_number": 9,
        "time_passed": 255,
        "time_remaining": 32,
    }
    song.update(overrides)
    return song


def make_response(status_code=200, payload=None, invalid_json=False):
    """Build a fake requests.Response."""
    response = Mock()
    response.status_code = status_code
    if invalid_json:
        response.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
    else:
        response.json.return_value = payload
    return response


class FakeFetcher:
    """Serves scripted snapshots. Exceptions stored in place of data are raised."""

    address = "http://fake-stream:8080"

    def __init__(self):
        self.playlist = []
        self.songs = {}
        self.playlist_calls = 0
        self.song_calls = []

    def serve(self, *songs):
        """Make the given songs the complete current snapshot."""
        self.playlist = [song["id"] for song in songs]
        self.songs = {song["id"]: copy.deepcopy(song) for song in songs}

    def fetch_playlist_ids(self):
        self.playlist_calls += 1
        if isinstance(self.playlist, Exception):
            raise self.playlist
        return list(self.playlist)

    def fetch_song(self, song_id):
        self.song_calls.append(song_id)
        value = self.songs[song_id]
        if isinstance(value, Exception):
            raise value
        return copy.deepcopy(value)


class RecordingListener:
    """Remembers every event it receives."""

    def __init__(self):
        self.events = []

    def on_event(self, event):
        self.events.append(event)


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path, monkeypatch):
    """Keep config files written by the code under test inside tmp_path."""
    config_home = tmp_path / "config"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    monkeypatch.setenv("APPDATA", str(config_home))
    return config_home / "music-stream-monitor"


@pytest.fixture(autouse=True)
def reset_logger():
    """Undo setup_logger() calls so that caplog sees every record."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def listener():
    return RecordingListener()


@pytest.fixture
def logger():
    return logging.getLogger(LOGGER_NAME)
