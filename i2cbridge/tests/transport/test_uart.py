from __future__ import annotations

import pytest

import i2cbridge.transport.uart as uart_mod
from i2cbridge.transport.errors import TransportIOError, TransportOpenError, TransportTimeout


class FakeSerial:
    def __init__(self, port, baudrate, timeout, write_timeout, exclusive=True):
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.write_timeout = write_timeout
        self.exclusive = exclusive
        self.is_open = True

        self._read_chunks = []
        self._write_ret = 0
        self._raise_on_read = None
        self._raise_on_write = None
        self._raise_on_flush = None

        self.written = []
        self.reset_in_called = 0
        self.reset_out_called = 0
        self.flush_called = 0
        self.close_called = 0

    def reset_input_buffer(self):
        self.reset_in_called += 1

    def reset_output_buffer(self):
        self.reset_out_called += 1

    def read(self, n: int) -> bytes:
        if self._raise_on_read is not None:
            raise self._raise_on_read
        if not self._read_chunks:
            return b""
        return self._read_chunks.pop(0)

    def write(self, data: bytes) -> int:
        if self._raise_on_write is not None:
            raise self._raise_on_write
        self.written.append(bytes(data))
        return self._write_ret

    def flush(self) -> None:
        self.flush_called += 1
        if self._raise_on_flush is not None:
            raise self._raise_on_flush

    def close(self) -> None:
        self.close_called += 1
        self.is_open = False


def _open_with(monkeypatch, s: FakeSerial, **kwargs) -> uart_mod.UARTTransport:
    monkeypatch.setattr(uart_mod.serial, "Serial", lambda *a, **k: s)
    t = uart_mod.UARTTransport("/dev/ttyUSB0", **kwargs)
    t.open()
    return t


def test_open_success_resets_buffers(monkeypatch):
    created = {}

    def fake_serial_ctor(port, baudrate, timeout, write_timeout, exclusive):
        s = FakeSerial(port, baudrate, timeout, write_timeout, exclusive)
        created["ser"] = s
        return s

    monkeypatch.setattr(uart_mod.serial, "Serial", fake_serial_ctor)

    t = uart_mod.UARTTransport("/dev/ttyUSB0")
    t.open()

    assert t.ser is created["ser"]
    assert t.is_open() is True
    assert created["ser"].baudrate == 1_000_000
    assert created["ser"].exclusive is True
    assert created["ser"].reset_in_called == 1
    assert created["ser"].reset_out_called == 1


def test_open_serial_exception_raises_transport_open_error(monkeypatch):
    def fake_serial_ctor(*a, **k):
        raise uart_mod.SerialException("no port")

    monkeypatch.setattr(uart_mod.serial, "Serial", fake_serial_ctor)

    t = uart_mod.UARTTransport("/dev/ttyUSB9")
    with pytest.raises(TransportOpenError):
        t.open()

    assert t.ser is None
    assert t.is_open() is False


@pytest.mark.parametrize(
    "call",
    [
        lambda t: t.read(1),
        lambda t: t.write(b"\x00"),
        lambda t: t.flush(),
    ],
)
def test_io_while_not_open_raises(call):
    t = uart_mod.UARTTransport("/dev/ttyUSB0")
    with pytest.raises(TransportIOError):
        call(t)


def test_read_returns_what_arrived_before_timeout(monkeypatch):
    s = FakeSerial("/dev/ttyUSB0", 1_000_000, 0.05, 0.05)
    s._read_chunks = [b"\x01\x02", b"\x03"]
    t = _open_with(monkeypatch, s)

    assert t.read(5) == b"\x01\x02"
    assert t.read(5) == b"\x03"
    assert t.read(5) == b""


def test_read_exact_spans_several_reads(monkeypatch):
    s = FakeSerial("/dev/ttyUSB0", 1_000_000, 0.05, 0.05)
    s._read_chunks = [b"\x01", b"", b"\x02\x03"]
    t = _open_with(monkeypatch, s)

    assert t.read_exact(3) == b"\x01\x02\x03"


def test_discard_input_resets_buffer(monkeypatch):
    s = FakeSerial("/dev/ttyUSB0", 1_000_000, 0.05, 0.05)
    t = _open_with(monkeypatch, s)

    t.discard_input()
    assert s.reset_in_called == 2


def test_read_exact_times_out_on_silent_port(monkeypatch):
    s = FakeSerial("/dev/ttyUSB0", 1_000_000, 0.0, 0.0)
    s._read_chunks = [b"\x01"]
    t = _open_with(monkeypatch, s, timeout=0.0, deadline_s=0.0)

    with pytest.raises(TransportTimeout):
        t.read_exact(2)


def test_read_serial_exception_clears_ser_and_raises(monkeypatch):
    s = FakeSerial("/dev/ttyUSB0", 1_000_000, 0.05, 0.05)
    s._raise_on_read = uart_mod.SerialException("read fail")
    t = _open_with(monkeypatch, s)

    with pytest.raises(TransportIOError):
        t.read(1)

    assert t.ser is None


def test_write_exact_writes_and_flushes(monkeypatch):
    s = FakeSerial("/dev/ttyUSB0", 1_000_000, 0.05, 0.05)
    s._write_ret = 2
    t = _open_with(monkeypatch, s)

    t.write_exact(b"s\xA0")

    assert s.written == [b"s\xA0"]
    assert s.flush_called == 1


def test_write_serial_exception_clears_ser_and_raises(monkeypatch):
    s = FakeSerial("/dev/ttyUSB0", 1_000_000, 0.05, 0.05)
    s._raise_on_write = uart_mod.SerialException("write fail")
    t = _open_with(monkeypatch, s)

    with pytest.raises(TransportIOError):
        t.write(b"x")

    assert t.ser is None


def test_flush_serial_exception_clears_ser_and_raises(monkeypatch):
    s = FakeSerial("/dev/ttyUSB0", 1_000_000, 0.05, 0.05)
    s._raise_on_flush = uart_mod.SerialException("flush fail")
    t = _open_with(monkeypatch, s)

    with pytest.raises(TransportIOError):
        t.flush()

    assert t.ser is None


def test_close_closes_and_clears(monkeypatch):
    s = FakeSerial("/dev/ttyUSB0", 1_000_000, 0.05, 0.05)
    t = _open_with(monkeypatch, s)
    t.close()

    assert s.close_called == 1
    assert t.ser is None


def test_context_manager_opens_and_closes(monkeypatch):
    s = FakeSerial("/dev/ttyUSB0", 1_000_000, 0.05, 0.05)
    monkeypatch.setattr(uart_mod.serial, "Serial", lambda *a, **k: s)

    with uart_mod.UARTTransport("/dev/ttyUSB0") as t:
        assert t.is_open()
    assert s.close_called == 1
