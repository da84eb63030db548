# i2cbridge/protocol/status.py
from __future__ import annotations

import re
from dataclasses import dataclass

from i2cbridge.core.errors import StatusParseError

_FLOAT = r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?"

_STATUS_RE = re.compile(
    r"\[(?P<model>\S{1,15}) (?P<serial>\S{1,8}) "
    r"(?P<uptime>\d+)\s+"
    rf"(?P<voltage>{_FLOAT})\s+(?P<current>{_FLOAT})\s+(?P<temperature>{_FLOAT}) "
    r"(?P<mode>\S)\s*"
    r"(?P<sda>\d+)\s+(?P<scl>\d+)\s+(?P<speed>\d+)\s+(?P<pullups>\d+)\s+(?P<crc>\d+)"
    r"\s*\]"
)


@dataclass(frozen=True)
class DeviceStatus:
    """
    Snapshot of the bridge as reported by the '?' command.
    """
    model: str
    serial: str
    uptime: int          # seconds since boot
    voltage: float       # USB supply, V
    current: float       # mA
    temperature: float   # degrees C
    mode: str            # 'I' I2C master, 'B' bit-bang
    sda: int
    scl: int
    speed: int           # kHz
    pullups: int         # bitmask, 1 = enabled
    crc: int             # bridge's running CRC-16 of transferred data

    def as_dict(self) -> dict:
        return {
            "model": self.model,
            "serial": self.serial,
            "uptime": self.uptime,
            "voltage": self.voltage,
            "current": self.current,
            "temperature": self.temperature,
            "mode": self.mode,
            "sda": self.sda,
            "scl": self.scl,
            "speed": self.speed,
            "pullups": self.pullups,
            "crc": self.crc,
        }


def parse_status(raw: bytes) -> DeviceStatus:
    """
    Parse a status record.

    Fields are extracted positionally from the bracketed record; anything after the
    closing bracket (space or NUL padding up to the fixed read size) is ignored.
    """
    text = bytes(raw).decode("latin-1")
    m = _STATUS_RE.match(text.lstrip("\x00"))
    if m is None:
        raise StatusParseError(
            "Malformed status record.",
            hint="Bridge may be in capture or monitor mode; reconnect it.",
            details={"raw": bytes(raw)},
        )

    g = m.groupdict()
    try:
        status = DeviceStatus(
            model=g["model"],
            serial=g["serial"],
            uptime=int(g["uptime"]),
            voltage=float(g["voltage"]),
            current=float(g["current"]),
            temperature=float(g["temperature"]),
            mode=g["mode"],
            sda=int(g["sda"]),
            scl=int(g["scl"]),
            speed=int(g["speed"]),
            pullups=int(g["pullups"]),
            crc=int(g["crc"]),
        )
    except ValueError as e:
        raise StatusParseError(
            "Malformed status record.",
            hint=str(e),
            details={"raw": bytes(raw)},
        ) from None

    if status.sda not in (0, 1) or status.scl not in (0, 1):
        raise StatusParseError(
            "Status record has out-of-range line levels.",
            details={"sda": status.sda, "scl": status.scl},
        )
    if status.crc > 0xFFFF:
        raise StatusParseError(
            "Status record CRC does not fit 16 bits.",
            details={"crc": status.crc},
        )
    return status

