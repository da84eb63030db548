from __future__ import annotations

import pytest

from i2cbridge.protocol.crc import crc16_update
from i2cbridge.transport.base import Transport


def status_record(
    *,
    model: str = "i2cdriver1",
    serial: str = "DO01JUOP",
    uptime: int = 61,
    voltage: str = "4.971",
    current: str = "012.5",
    temperature: str = "23.8",
    mode: str = "I",
    sda: int = 1,
    scl: int = 1,
    speed: int = 100,
    pullups: int = 24,
    crc: int = 0,
) -> bytes:
    text = (
        f"[{model} {serial} {uptime:09d} {voltage} {current} {temperature} "
        f"{mode} {sda} {scl} {speed} {pullups} {crc}]"
    )
    return text.encode("ascii").ljust(80, b" ")


class FakeBridge(Transport):
    """
    In-memory bridge: answers each command written to it, keeps its own CRC.
    """

    def __init__(
        self,
        *,
        crc: int = 0x1234,
        echo_corrupt: bytes | None = None,
        acks: list[int] | None = None,
        start_ack: int = 1,
        read_data: bytes = b"",
        scan: bytes = b"0" * 112,
        reset_reply: bytes = b"\x03",
        capture_data: bytes = b"",
        status_raw: bytes | None = None,
    ):
        self.deadline_s = 0.01
        self.crc = crc
        self.echo_corrupt = echo_corrupt
        self.acks = list(acks or [])
        self.start_ack = start_ack
        self.read_data = bytearray(read_data)
        self.scan_reply = scan
        self.reset_reply = reset_reply
        self.capture_data = capture_data
        self.status_raw = status_raw

        self.writes: list[bytes] = []
        self.written_payload = bytearray()
        self.rx = bytearray()
        self.opened = 0
        self.closed = 0
        self.discards = 0
        self._open = False

    # Transport API
    def open(self) -> None:
        self.opened += 1
        self._open = True

    def close(self) -> None:
        self.closed += 1
        self._open = False

    def is_open(self) -> bool:
        return self._open

    def read(self, n: int) -> bytes:
        out = bytes(self.rx[:n])
        del self.rx[:n]
        return out

    def write(self, data: bytes) -> int:
        data = bytes(data)
        self.writes.append(data)
        self._handle(data)
        return len(data)

    def flush(self) -> None:
        return None

    def discard_input(self) -> None:
        self.discards += 1
        self.rx.clear()

    # device behaviour
    def _handle(self, data: bytes) -> None:
        cmd = data[0]
        if cmd == ord("e"):
            self.rx += self.echo_corrupt if self.echo_corrupt is not None else data[1:2]
        elif cmd == ord("?"):
            self.rx += self.status_raw if self.status_raw is not None else status_record(crc=self.crc)
        elif cmd == ord("d"):
            self.rx += self.scan_reply
        elif cmd == ord("x"):
            self.rx += self.reset_reply
        elif cmd == ord("s"):
            self.rx.append(self.start_ack)
        elif cmd == ord("c"):
            self.rx += self.capture_data
        elif cmd >= 0xC0:
            payload = data[1:]
            assert len(payload) == cmd - 0xC0 + 1
            ack = self.acks.pop(0) if self.acks else 1
            if ack & 1:
                self.crc = crc16_update(self.crc, payload)
            self.written_payload += payload
            self.rx.append(ack)
        elif cmd >= 0x80:
            n = cmd - 0x80 + 1
            chunk = bytes(self.read_data[:n])
            del self.read_data[:n]
            self.crc = crc16_update(self.crc, chunk)
            self.rx += chunk


@pytest.fixture
def make_bridge():
    return FakeBridge


@pytest.fixture
def make_status():
    return status_record
