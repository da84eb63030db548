# i2cbridge/transport/errors.py
from __future__ import annotations

class TransportError(Exception):
    """Base class for transport-layer failures."""

class TransportOpenError(TransportError):
    pass

class TransportIOError(TransportError):
    pass

class TransportTimeout(TransportError):
    """Deadline expired before the requested bytes arrived."""

    def __init__(self, expected: int, received: bytes, timeout_s: float | None):
        super().__init__(
            f"timed out after {timeout_s}s waiting for {expected} bytes (got {len(received)})"
        )
        self.expected = expected
        self.received = received
        self.timeout_s = timeout_s
