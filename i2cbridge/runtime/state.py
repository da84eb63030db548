# i2cbridge/runtime/state.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from i2cbridge.protocol.commands import SCAN_FIRST, SCAN_LAST, SCAN_LEN

ADDRESS_SPACE = 128


@dataclass(frozen=True)
class ScanResult:
    """
    Presence map over the 7-bit address space.

    presence[a] is True/False for the scanned range 0x08..0x77 and None
    ("not scanned") for the reserved addresses outside it.
    """
    presence: Tuple[Optional[bool], ...]

    @classmethod
    def from_response(cls, raw: bytes) -> "ScanResult":
        if len(raw) != SCAN_LEN:
            raise ValueError(f"scan response must be {SCAN_LEN} bytes, got {len(raw)}")
        presence: List[Optional[bool]] = [None] * ADDRESS_SPACE
        for i, flag in enumerate(raw):
            presence[SCAN_FIRST + i] = flag == ord("1")
        return cls(presence=tuple(presence))

    def __getitem__(self, address: int) -> Optional[bool]:
        return self.presence[address]

    def scanned(self) -> List[int]:
        return [a for a, p in enumerate(self.presence) if p is not None]

    def devices(self) -> List[int]:
        return [a for a, p in enumerate(self.presence) if p]

    def rows(self) -> Iterator[List[Optional[int]]]:
        """Scanned range in rows of 8; absent addresses are None."""
        row: List[Optional[int]] = []
        for a in range(SCAN_FIRST, SCAN_LAST + 1):
            row.append(a if self.presence[a] else None)
            if a % 8 == 7:
                yield row
                row = []
        if row:
            yield row
