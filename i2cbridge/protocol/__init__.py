# protocol/__init__.py

from .commands import Ack, Direction
from .crc import crc16_update
from .status import DeviceStatus, parse_status
from .capture import (
    BusEvent, ByteEvent, StartEvent, StopEvent,
    CaptureDecoder, DecoderState, decode_stream, step,
)

__all__ = [
    "Ack", "Direction",
    "crc16_update",
    "DeviceStatus", "parse_status",
    "BusEvent", "ByteEvent", "StartEvent", "StopEvent",
    "CaptureDecoder", "DecoderState", "decode_stream", "step",
]
