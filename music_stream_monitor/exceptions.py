"""Exception types raised by the stream monitor."""

from typing import Optional


class MonitorError(Exception):
    """Base class for stream monitor exceptions."""


class FetchFailure(MonitorError):
    """Raised when a request to the music service fails.

    Covers transport errors (connection refused, timeout) as well as any
    response whose status is not 200.
    """

    def __init__(self, path: str, reason: str, status_code: Optional[int] = None):
        self.path = path
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"GET {path} failed: {reason}")


class PayloadError(MonitorError):
    """Raised when a response body cannot be turned into song records."""


class MalformedPayload(PayloadError):
    """Raised when a response body is not decodable or has the wrong shape."""


class MissingField(PayloadError):
    """Raised when a record lacks an attribute that is required."""

    def __init__(self, field: str, context: str = "record"):
        self.field = field
        super().__init__(f"{context} is missing required field '{field}'")
