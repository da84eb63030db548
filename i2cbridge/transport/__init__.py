# transport/__init__.py

from .base import Transport
from .errors import TransportError, TransportIOError, TransportOpenError, TransportTimeout
from .uart import UARTTransport

__all__ = [
    "Transport",
    "UARTTransport",
    "TransportError", "TransportIOError", "TransportOpenError", "TransportTimeout",
]
