"""
Engraver error types.

Every failure is reported to the caller; nothing is retried automatically.
"""


class EngraverError(Exception):
    """Base class for all engraver errors."""


class DeviceConnectionError(EngraverError, ConnectionError):
    """The serial port is missing, busy or cannot be opened."""

    def __init__(self, port: str, message: str):
        super().__init__(message)
        self.port = port


class InvalidImage(EngraverError, ValueError):
    """The source image cannot be decoded."""


class InvalidLength(EngraverError, ValueError):
    """A raw raster buffer does not have the exact device length."""

    def __init__(self, actual: int, expected: int):
        super().__init__(
            f"Raw image must be exactly {expected} bytes, got {actual}"
        )
        self.actual = actual
        self.expected = expected


class WriteError(EngraverError, IOError):
    """The transport rejected a write."""


class TransmissionFailure(WriteError):
    """A chunked transmission was truncated or stalled."""

    def __init__(self, message: str, bytes_sent: int = 0):
        super().__init__(message)
        self.bytes_sent = bytes_sent


class NotErased(EngraverError, RuntimeError):
    """An image upload was attempted without a completed erase."""


class SessionClosed(EngraverError, RuntimeError):
    """The session has already released its transport."""
