# i2cbridge/transport/base.py
from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Any, Optional

from .errors import TransportIOError, TransportTimeout

# back-off when the channel makes no progress
IDLE_S = 0.001


class Transport(ABC):
    """
    Abstract duplex byte channel to the bridge.

    Contract:
      - open()/close() manage the underlying connection.
      - read(n) returns 0..n bytes. It may return fewer than n bytes due to timeouts
        or non-blocking behavior, and may return b"" when no data is available.
      - write(data) returns the number of bytes written.
      - flush() forces pending output to be transmitted.

    The protocol layer only uses read_exact()/write_exact(), which never come back
    short: they either complete or raise. `deadline_s` bounds how long they wait;
    None waits forever.
    """

    deadline_s: Optional[float] = 1.0

    @abstractmethod
    def open(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    @abstractmethod
    def is_open(self) -> bool: ...

    @abstractmethod
    def read(self, n: int) -> bytes: ...

    @abstractmethod
    def write(self, data: bytes) -> int: ...

    @abstractmethod
    def flush(self) -> None: ...

    def discard_input(self) -> None:
        """Drop any bytes already received but not read."""

    def read_exact(self, n: int, *, deadline_s: Optional[float] = None) -> bytes:
        """Read exactly n bytes or raise TransportTimeout."""
        limit = self.deadline_s if deadline_s is None else deadline_s
        expires = None if limit is None else time.monotonic() + limit

        buf = b""
        while len(buf) < n:
            chunk = self.read(n - len(buf))
            if chunk:
                buf += chunk
                continue
            if expires is not None and time.monotonic() >= expires:
                raise TransportTimeout(n, buf, limit)
            time.sleep(IDLE_S)
        return buf

    def write_exact(self, data: bytes, *, deadline_s: Optional[float] = None) -> None:
        """Write all of data or raise TransportTimeout."""
        limit = self.deadline_s if deadline_s is None else deadline_s
        expires = None if limit is None else time.monotonic() + limit

        view = memoryview(bytes(data))
        sent = 0
        while sent < len(view):
            n = self.write(view[sent:].tobytes())
            if n is None or n < 0:
                raise TransportIOError(f"write returned {n!r}")
            sent += n
            if sent < len(view) and expires is not None and time.monotonic() >= expires:
                raise TransportTimeout(len(view), view[:sent].tobytes(), limit)
            if n == 0:
                time.sleep(IDLE_S)
        self.flush()

    def __enter__(self) -> "Transport":
        self.open()
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        self.close()
