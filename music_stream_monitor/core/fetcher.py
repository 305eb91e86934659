"""Retrieval of playlist snapshots from the music service."""

import logging
from typing import Any, Optional, Protocol
from urllib.parse import quote

import requests

from ..exceptions import FetchFailure, MalformedPayload
from ..models.song import PlaylistIndex, Song, build_playlist_index, record_id

DEFAULT_ADDRESS = "http://localhost:8080"


class SnapshotFetcher(Protocol):
    """Source of playlist snapshots.

    Implementations raise FetchFailure for transport errors and non-success
    statuses, and PayloadError subclasses for bodies that cannot be decoded
    into song records. They never retry.
    """

    def fetch_playlist_ids(self) -> PlaylistIndex:
        """Return the ids of the songs currently listed, in listing order."""

    def fetch_song(self, song_id: str) -> Song:
        """Return the full record of one song."""


def normalize_address(address: str) -> str:
    """Add a scheme to bare ``host:port`` addresses and drop trailing slashes."""
    address = address.strip().rstrip('/')
    if '://' not in address:
        address = f"http://{address}"
    return address


class HttpSnapshotFetcher:
    """Fetches snapshots over HTTP from ``GET /music`` and ``GET /music/{id}``."""

    def __init__(
        self,
        address: str = DEFAULT_ADDRESS,
        session: Optional[requests.Session] = None,
        timeout: float = 5.0,
        logger: Optional[logging.Logger] = None
    ):
        """Initialize fetcher.

        Args:
            address: Base address of the music service (``host:port`` or URL)
            session: HTTP session to use (a new one is created and owned if None)
            timeout: Timeout per request in seconds
            logger: Logger instance
        """
        self.address = normalize_address(address)
        self.timeout = timeout
        self.logger = logger or logging.getLogger("music_stream_monitor")
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()

    def _get(self, path: str) -> Any:
        """GET a path and decode its JSON body.

        Raises:
            FetchFailure: On transport error or non-200 status
            MalformedPayload: If the body is not valid JSON
        """
        url = f"{self.address}{path}"
        self.logger.debug(f"GET {url}")

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise FetchFailure(path, str(e)) from e

        if response.status_code != 200:
            raise FetchFailure(
                path,
                f"unexpected status {response.status_code}",
                status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise MalformedPayload(f"GET {path} returned an undecodable body: {e}") from e

    def fetch_playlist_ids(self) -> PlaylistIndex:
        payload = self._get("/music")
        if not isinstance(payload, list):
            raise MalformedPayload(f"GET /music returned {type(payload).__name__}, expected a list")
        return build_playlist_index(payload)

    def fetch_song(self, song_id: str) -> Song:
        path = f"/music/{quote(song_id, safe='')}"
        record = self._get(path)

        fetched_id = record_id(record, f"GET {path}")
        if fetched_id != song_id:
            raise MalformedPayload(f"GET {path} returned song '{fetched_id}'")
        return record

    def close(self) -> None:
        """Close the HTTP session if this fetcher created it."""
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> 'HttpSnapshotFetcher':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
