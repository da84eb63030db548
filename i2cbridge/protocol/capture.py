# i2cbridge/protocol/capture.py
"""
Decoder for the bridge's capture stream.

After the 'c' command the bridge streams one byte per pair of bus symbols, high
nibble first:

    0        idle
    1        START seen (next 9-bit group is address + R/W)
    2        STOP
    8..15    three data bits in the low 3 bits

Three data symbols make a 9-bit group: 8 payload bits followed by the ACK bit
(low = ACK).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from .commands import Ack, Direction

SYM_IDLE = 0
SYM_START = 1
SYM_STOP = 2
SYM_DATA = 8

GROUP_BITS = 9


@dataclass(frozen=True)
class StartEvent:
    address: int
    direction: Direction
    ack: Ack

    def __str__(self) -> str:
        return f"START {self.address:02x} {self.direction.name} {self.ack.name}"


@dataclass(frozen=True)
class ByteEvent:
    value: int
    ack: Ack

    def __str__(self) -> str:
        return f"BYTE {self.value:02x} {self.ack.name}"


@dataclass(frozen=True)
class StopEvent:
    def __str__(self) -> str:
        return "STOP"


BusEvent = Union[StartEvent, ByteEvent, StopEvent]


@dataclass(frozen=True)
class DecoderState:
    pending_start: bool = False
    bits: int = 0
    nbits: int = 0


def step(state: DecoderState, symbol: int) -> Tuple[DecoderState, Optional[BusEvent]]:
    """Advance the decoder by one 4-bit symbol."""
    if symbol == SYM_START:
        return DecoderState(True, state.bits, state.nbits), None

    if symbol == SYM_STOP:
        return DecoderState(True, state.bits, state.nbits), StopEvent()

    if symbol & SYM_DATA:
        bits = (state.bits << 3) | (symbol & 7)
        nbits = state.nbits + 3
        if nbits < GROUP_BITS:
            return DecoderState(state.pending_start, bits, nbits), None

        payload = bits >> 1
        ack = Ack.NAK if bits & 1 else Ack.ACK
        if state.pending_start:
            event: BusEvent = StartEvent(payload >> 1, Direction(payload & 1), ack)
        else:
            event = ByteEvent(payload, ack)
        return DecoderState(False, 0, 0), event

    # idle and the unassigned symbols 3..7
    return state, None


def iter_symbols(data: bytes) -> Iterator[int]:
    for b in data:
        yield b >> 4
        yield b & 0x0F


class CaptureDecoder:
    """
    Push-style driver around step().

    Feed raw capture bytes in any chunking; complete events come back in order.
    Bits of an unfinished group stay in `state` and are simply dropped with the
    decoder.
    """

    def __init__(self) -> None:
        self.state = DecoderState()

    def feed(self, data: bytes) -> List[BusEvent]:
        events: List[BusEvent] = []
        state = self.state
        for sym in iter_symbols(data):
            state, event = step(state, sym)
            if event is not None:
                events.append(event)
        self.state = state
        return events


def decode_stream(chunks: Iterable[bytes]) -> Iterator[BusEvent]:
    """Lazily decode an iterable of capture byte chunks."""
    decoder = CaptureDecoder()
    for chunk in chunks:
        yield from decoder.feed(chunk)
