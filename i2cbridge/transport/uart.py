# i2cbridge/transport/uart.py
from __future__ import annotations

from typing import Callable, Optional, TypeVar

import serial
from serial import SerialException

from .base import Transport
from .errors import TransportIOError, TransportOpenError

T = TypeVar("T")


class UARTTransport(Transport):
    """
    Serial link to the bridge's USB-UART chip, implemented via pyserial.

    The bridge talks raw 8N1 at 1 Mbaud with no flow control. `timeout` is how long a
    single read(n) may block; `deadline_s` bounds read_exact()/write_exact() as a whole.
    Any SerialException drops the port: the device is gone or unusable.
    """

    def __init__(
        self,
        port: str,
        baudrate: int = 1_000_000,
        timeout: float = 0.05,
        deadline_s: Optional[float] = 1.0,
        exclusive: bool = True,
    ):
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.deadline_s = deadline_s
        self.exclusive = exclusive
        self.ser: Optional[serial.Serial] = None

    def open(self) -> None:
        try:
            self.ser = serial.Serial(
                self.port,
                baudrate=self.baudrate,
                timeout=self.timeout,
                write_timeout=self.timeout,
                exclusive=self.exclusive,
            )
            self.ser.reset_input_buffer()
            self.ser.reset_output_buffer()
        except (SerialException, ValueError) as e:
            self.ser = None
            raise TransportOpenError(f"could not open serial port {self.port!r}: {e}") from None

    def close(self) -> None:
        if self.ser is not None:
            try:
                self.ser.close()
            finally:
                self.ser = None

    def is_open(self) -> bool:
        return self.ser is not None and self.ser.is_open

    def _io(self, what: str, op: Callable[[serial.Serial], T]) -> T:
        if self.ser is None:
            raise TransportIOError(f"{what} while transport not open")
        try:
            return op(self.ser)
        except SerialException as e:
            self.ser = None
            raise TransportIOError(f"UART {what} failed on {self.port!r}: {e}") from None

    def read(self, n: int) -> bytes:
        # pyserial blocks until n bytes or `timeout`, whichever comes first
        return self._io("read", lambda s: bytes(s.read(n)))

    def write(self, data: bytes) -> int:
        return self._io("write", lambda s: s.write(data) or 0)

    def flush(self) -> None:
        self._io("flush", lambda s: s.flush())

    def discard_input(self) -> None:
        self._io("discard", lambda s: s.reset_input_buffer())
