# i2cbridge/runtime/session.py
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Tuple

from i2cbridge.core.errors import (
    CaptureActive,
    ChecksumMismatch,
    HandshakeFailed,
    NotConnected,
    StatusParseError,
)
from i2cbridge.protocol.capture import BusEvent, CaptureDecoder
from i2cbridge.protocol.commands import (
    CMD_CAPTURE,
    CMD_MONITOR_OFF,
    CMD_MONITOR_ON,
    CMD_RESET,
    CMD_SCAN,
    CMD_STATUS,
    CMD_STOP,
    HANDSHAKE_PROBES,
    SCAN_LEN,
    STATUS_LEN,
    Ack,
    Direction,
    encode_echo,
    encode_read_request,
    encode_start,
    iter_write_chunks,
    read_chunk_sizes,
)
from i2cbridge.protocol.crc import crc16_update
from i2cbridge.protocol.status import DeviceStatus, parse_status
from i2cbridge.runtime.state import ScanResult
from i2cbridge.transport.base import Transport
from i2cbridge.transport.errors import TransportIOError, TransportTimeout

CAPTURE_READ_SIZE = 64


class Session:
    """
    One connection to a bridge.

    Owns the transport, the last status snapshot and the host-side running CRC
    (`observed_crc`). Exchanges are strictly sequential; nothing here is
    thread-safe.

    Use Session.connect() to get a live session; every bus operation raises
    NotConnected otherwise.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        legacy_read_chunking: bool = False,
        logger: Optional[logging.Logger] = None,
    ):
        self.transport = transport
        self.legacy_read_chunking = legacy_read_chunking
        self._log = logger or logging.getLogger(__name__)

        self.connected = False
        self.capturing = False
        self.status: Optional[DeviceStatus] = None
        self.observed_crc = 0
        self._stale_input = False

    # ---------------- Lifecycle ----------------
    @classmethod
    def connect(
        cls,
        transport: Transport,
        *,
        legacy_read_chunking: bool = False,
        logger: Optional[logging.Logger] = None,
    ) -> "Session":
        session = cls(transport, legacy_read_chunking=legacy_read_chunking, logger=logger)
        session.open()
        return session

    def open(self) -> None:
        """Open the transport, run the echo handshake and seed the CRC."""
        if self.connected:
            return

        if not self.transport.is_open():
            self.transport.open()
        self.transport.discard_input()

        try:
            for probe in HANDSHAKE_PROBES:
                self._send(encode_echo(probe))
                try:
                    got = self._recv(1)
                except TransportTimeout as e:
                    self._log.error("HANDSHAKE_NO_ECHO probe=%r", probe)
                    raise HandshakeFailed(
                        "Bridge did not answer the handshake probe.",
                        hint="Check the port name and that the device is an I2C bridge.",
                        details={"probe": probe, "got": e.received},
                    ) from e
                if got != probe:
                    self._log.error("HANDSHAKE_FAILED probe=%r got=%r", probe, got)
                    raise HandshakeFailed(
                        "Bridge did not echo the handshake probe.",
                        hint="Check the port name and that the device is an I2C bridge.",
                        details={"probe": probe, "got": got},
                    )

            try:
                status = self._read_status()
            except StatusParseError as e:
                self._log.error("HANDSHAKE_STATUS_UNREADABLE")
                raise HandshakeFailed(
                    "Bridge answered the handshake but its status record is unreadable.",
                    hint=e.message,
                    details=e.details,
                ) from e

        except (HandshakeFailed, TransportTimeout):
            self._teardown()
            raise

        self.connected = True
        self.observed_crc = status.crc
        self._log.info(
            "CONNECTED model=%s serial=%s crc=%04X",
            status.model,
            status.serial,
            status.crc,
        )

    def disconnect(self) -> None:
        if self.connected or self.transport.is_open():
            self._log.info("DISCONNECTED")
        self._teardown()

    def _teardown(self) -> None:
        try:
            self.transport.close()
        finally:
            self.connected = False
            self.capturing = False
            self.status = None
            self.observed_crc = 0
            self._stale_input = False

    def __enter__(self) -> "Session":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()

    # ---------------- Wire helpers ----------------
    def _require(self) -> None:
        if not self.connected:
            raise NotConnected(
                "No live connection to the bridge.",
                hint="Call Session.connect() first.",
            )
        if self.capturing:
            raise CaptureActive(
                "Session is in capture mode.",
                hint="Disconnect to leave capture mode.",
            )

    def _send(self, data: bytes) -> None:
        self._log.debug("TX %s", data.hex())
        try:
            if self._stale_input:
                # a reply that missed its deadline may still be arriving
                self.transport.discard_input()
                self._stale_input = False
            self.transport.write_exact(data)
        except TransportIOError:
            self._log.exception("TRANSPORT_WRITE_FAILED")
            self._teardown()
            raise

    def _recv(self, n: int) -> bytes:
        try:
            data = self.transport.read_exact(n)
        except TransportTimeout:
            self._stale_input = True
            raise
        except TransportIOError:
            self._log.exception("TRANSPORT_READ_FAILED")
            self._teardown()
            raise
        self._log.debug("RX %s", data.hex())
        return data

    def _read_ack(self) -> Ack:
        return Ack(self._recv(1)[0] & 1)

    def _read_status(self) -> DeviceStatus:
        self._send(CMD_STATUS)
        raw = self._recv(STATUS_LEN)
        try:
            status = parse_status(raw)
        except StatusParseError:
            self._log.warning("STATUS_PARSE_FAILED raw=%r", raw)
            raise
        self.status = status
        return status

    # ---------------- Device queries ----------------
    def query_status(self) -> DeviceStatus:
        """
        Fetch a fresh status snapshot.

        On StatusParseError the previous snapshot is kept and the session stays open.
        """
        self._require()
        return self._read_status()

    def scan(self) -> ScanResult:
        self._require()
        self._send(CMD_SCAN)
        result = ScanResult.from_response(self._recv(SCAN_LEN))
        self._log.info("SCAN devices=%s", " ".join(f"{a:02x}" for a in result.devices()) or "-")
        return result

    def reset(self) -> Tuple[int, int]:
        """Reset the bus. Returns (sda, scl) line levels, (0, 0) if the bridge did not answer."""
        self._require()
        self._send(CMD_RESET)
        try:
            levels = self._recv(1)[0]
        except TransportTimeout:
            self._log.warning("RESET_NO_REPLY")
            self.transport.discard_input()
            return 0, 0
        return (levels >> 1) & 1, levels & 1

    def monitor(self, enable: bool) -> None:
        self._require()
        self._send(CMD_MONITOR_ON if enable else CMD_MONITOR_OFF)

    # ---------------- Bus transactions ----------------
    def start(self, address: int, direction: Direction = Direction.WRITE) -> Ack:
        self._require()
        self._send(encode_start(address, Direction(direction)))
        ack = self._read_ack()
        if not ack:
            self._log.info("START_NAK address=%02x direction=%s", address, Direction(direction))
        return ack

    def stop(self) -> None:
        self._require()
        self._send(CMD_STOP)

    def write(self, data: bytes) -> Ack:
        """
        Write `data` in chunks of up to 64 bytes.

        ACK only if every chunk was acknowledged. The CRC only advances on ACK,
        because the bridge does not count data it rejected.
        """
        self._require()
        data = bytes(data)

        ok = True
        for frame in iter_write_chunks(data):
            self._send(frame)
            ok &= bool(self._read_ack())

        if ok:
            self.observed_crc = crc16_update(self.observed_crc, data)
            return Ack.ACK

        self._log.info("WRITE_NAK len=%d", len(data))
        return Ack.NAK

    def read(self, count: int) -> bytes:
        self._require()

        out = bytearray()
        for n in read_chunk_sizes(count, legacy=self.legacy_read_chunking):
            self._send(encode_read_request(n))
            chunk = self._recv(n)
            self.observed_crc = crc16_update(self.observed_crc, chunk)
            out += chunk
        return bytes(out[:count])

    @contextmanager
    def transaction(self, address: int, direction: Direction = Direction.WRITE) -> Iterator[Ack]:
        """START on entry, STOP on exit. Yields the address ACK/NAK."""
        ack = self.start(address, direction)
        try:
            yield ack
        finally:
            if self.connected and not self.capturing:
                self.stop()

    # ---------------- Integrity ----------------
    def verify_crc(self, *, refresh: bool = True) -> bool:
        """Compare observed_crc against the bridge's CRC."""
        if refresh or self.status is None:
            status = self.query_status()
        else:
            self._require()
            status = self.status

        if status.crc != self.observed_crc:
            self._log.warning("CRC_MISMATCH host=%04X device=%04X", self.observed_crc, status.crc)
            return False
        return True

    def check_crc(self, *, refresh: bool = True) -> None:
        if not self.verify_crc(refresh=refresh):
            assert self.status is not None
            raise ChecksumMismatch(self.observed_crc, self.status.crc)

    # ---------------- Capture ----------------
    def capture(self) -> Iterator[BusEvent]:
        """
        Enter capture mode and return an endless iterator of bus events.

        The bridge has no command to leave capture mode: stop iterating and
        disconnect. Until then every other operation raises CaptureActive.
        """
        self._require()
        self._send(CMD_CAPTURE)
        self.capturing = True
        self._log.info("CAPTURE_STARTED")
        return self._capture_events()

    def _capture_events(self) -> Iterator[BusEvent]:
        decoder = CaptureDecoder()
        while self.capturing:
            try:
                data = self.transport.read(CAPTURE_READ_SIZE)
            except TransportIOError:
                self._log.exception("TRANSPORT_READ_FAILED")
                self._teardown()
                raise
            if data:
                yield from decoder.feed(data)
