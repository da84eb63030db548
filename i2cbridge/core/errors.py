# i2cbridge/core/errors.py
from __future__ import annotations


class BridgeError(Exception):
    """
    Base class for all expected operational errors talking to the bridge.
    """

    #: Stable machine-readable identifier (for CLI exit mapping, logs, etc.)
    code: str = "unknown"

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Configuration errors (no hardware access yet)
# ---------------------------------------------------------------------------

class ConfigError(BridgeError):
    """
    Configuration file or override is invalid.

    Examples:
      - config file missing or not a YAML mapping
      - unknown key
      - value of the wrong type
    """
    code = "config_error"


# ---------------------------------------------------------------------------
# Session lifecycle errors
# ---------------------------------------------------------------------------

class HandshakeFailed(BridgeError):
    """
    Echo probe at connect time did not come back unmodified.

    Examples:
      - wrong port (some other device answered)
      - baud rate mismatch
      - bridge firmware wedged in capture/monitor mode
    """
    code = "handshake_failed"


class NotConnected(BridgeError):
    """
    Operation issued on a session without a live connection.
    """
    code = "not_connected"


class CaptureActive(BridgeError):
    """
    Operation issued while the session is in capture mode.

    Capture has no protocol-level exit; the session must be disconnected.
    """
    code = "capture_active"


# ---------------------------------------------------------------------------
# Protocol / data errors
# ---------------------------------------------------------------------------

class StatusParseError(BridgeError):
    """
    Status record could not be parsed.

    The previous status snapshot is kept and the connection stays open.
    """
    code = "status_parse_error"


class ChecksumMismatch(BridgeError):
    """
    Host running CRC diverged from the CRC reported by the bridge.

    Indicates bytes corrupted or dropped on the serial link. Not retried.
    """
    code = "checksum_mismatch"

    def __init__(self, observed: int, reported: int):
        super().__init__(
            f"CRC mismatch: host={observed:04X} device={reported:04X}",
            hint="Data on the serial link may have been corrupted; re-run the transfer.",
            details={"observed": observed, "reported": reported},
        )
        self.observed = observed
        self.reported = reported
