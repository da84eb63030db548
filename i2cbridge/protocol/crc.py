# i2cbridge/protocol/crc.py
"""
CRC-16/CCITT as kept by the bridge over every I2C data byte it moves.

poly=0x1021, MSB-first, no reflection, no final XOR. The seed is whatever the
bridge reported at connect time, so callers always pass the running value in.
"""
from __future__ import annotations

POLY = 0x1021


def _make_table(poly: int) -> tuple[int, ...]:
    table = []
    for i in range(256):
        crc = i << 8
        for _ in range(8):
            crc = ((crc << 1) ^ poly) & 0xFFFF if (crc & 0x8000) else ((crc << 1) & 0xFFFF)
        table.append(crc)
    return tuple(table)


CRC_TABLE = _make_table(POLY)


def crc16_update(crc: int, data: bytes) -> int:
    """Fold `data` into the running CRC and return the new value."""
    crc &= 0xFFFF
    for b in data:
        crc = (CRC_TABLE[((crc >> 8) ^ b) & 0xFF] ^ (crc << 8)) & 0xFFFF
    return crc
