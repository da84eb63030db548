# i2cbridge/protocol/commands.py
"""Command bytes and chunk framing of the bridge's serial protocol."""
from __future__ import annotations

from enum import IntEnum
from typing import Iterator, List

CMD_ECHO = b"e"
CMD_STATUS = b"?"
CMD_SCAN = b"d"
CMD_RESET = b"x"
CMD_START = b"s"
CMD_STOP = b"p"
CMD_CAPTURE = b"c"
CMD_MONITOR_ON = b"m"
CMD_MONITOR_OFF = b" "

WRITE_CHUNK_BASE = 0xC0
READ_CHUNK_BASE = 0x80
MAX_CHUNK = 64

STATUS_LEN = 80

SCAN_FIRST = 0x08
SCAN_LAST = 0x77
SCAN_LEN = SCAN_LAST - SCAN_FIRST + 1

HANDSHAKE_PROBES = (b"A", b"\r", b"\n", b"\xff")


class Direction(IntEnum):
    WRITE = 0
    READ = 1

    def __str__(self) -> str:
        return self.name


class Ack(IntEnum):
    """Bus acknowledge. Truthy when the target pulled SDA low."""
    NAK = 0
    ACK = 1

    def __str__(self) -> str:
        return self.name


def encode_echo(probe: bytes) -> bytes:
    if len(probe) != 1:
        raise ValueError(f"echo probe must be one byte, got {len(probe)}")
    return CMD_ECHO + probe


def encode_start(address: int, direction: Direction) -> bytes:
    if not 0 <= address <= 0x7F:
        raise ValueError(f"I2C address out of range: {address!r}")
    return CMD_START + bytes([(address << 1) | int(direction)])


def iter_write_chunks(data: bytes) -> Iterator[bytes]:
    """Split `data` into framed write commands: 0xC0 + (n - 1), then n bytes."""
    for i in range(0, len(data), MAX_CHUNK):
        chunk = bytes(data[i: i + MAX_CHUNK])
        yield bytes([WRITE_CHUNK_BASE + len(chunk) - 1]) + chunk


def encode_read_request(n: int) -> bytes:
    if not 1 <= n <= MAX_CHUNK:
        raise ValueError(f"read chunk must be 1..{MAX_CHUNK} bytes, got {n}")
    return bytes([READ_CHUNK_BASE + n - 1])


def read_chunk_sizes(count: int, *, legacy: bool = False) -> List[int]:
    """
    Chunk sizes used to read `count` bytes.

    Default sizing uses the bytes still outstanding. `legacy=True` sizes every chunk
    as min(count - 1, 64) from the requested total, as older host tools did: it reads
    one byte short for count <= 64 and over-reads the final chunk above that.
    Zero-sized chunks are dropped (nothing is sent).
    """
    if count < 0:
        raise ValueError(f"negative read count: {count}")

    sizes: List[int] = []
    for offset in range(0, count, MAX_CHUNK):
        if legacy:
            n = min(count - 1, MAX_CHUNK)
        else:
            n = min(count - offset, MAX_CHUNK)
        if n > 0:
            sizes.append(n)
    return sizes
