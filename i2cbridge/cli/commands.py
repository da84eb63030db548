# i2cbridge/cli/commands.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from i2cbridge.protocol.commands import Direction
from i2cbridge.protocol.status import DeviceStatus
from i2cbridge.runtime.session import Session
from i2cbridge.runtime.state import ScanResult

from i2cbridge.cli.args import Command, parse_address, parse_byte_list, parse_count

# ---------------- Logging ----------------

def configure_logging(*, verbose: bool = False, log_file: Optional[str] = None) -> None:
    """
    Console handler on stderr plus an optional file handler (idempotent).
    Kept in CLI (presentation-layer concern).
    """
    root = logging.getLogger()
    level = logging.DEBUG if verbose else logging.WARNING
    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    if not any(type(h) is logging.StreamHandler for h in root.handlers):
        sh = logging.StreamHandler()
        sh.setFormatter(fmt)
        root.addHandler(sh)
    for h in root.handlers:
        if type(h) is logging.StreamHandler:
            h.setLevel(level)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        target = str(path.resolve())
        if not any(
            isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", None) == target
            for h in root.handlers
        ):
            fh = logging.FileHandler(path, encoding="utf-8", delay=True)
            fh.setLevel(logging.INFO)
            fh.setFormatter(fmt)
            root.addHandler(fh)

    wanted = min(level, logging.INFO) if log_file else level
    if root.level == logging.NOTSET or root.level > wanted:
        root.setLevel(wanted)

# ---------------- Report formatting ----------------

def format_status_line(st: DeviceStatus) -> str:
    return (
        f"uptime {st.uptime}  {st.voltage:.3f} V  {st.current:.0f} mA  {st.temperature:.1f} C "
        f"SDA={st.sda} SCL={st.scl} speed={st.speed} kHz"
    )


def format_scan(result: ScanResult) -> str:
    lines = [""]
    for row in result.rows():
        lines.append("".join("--  " if a is None else f"{a:02x}  " for a in row))
    lines.append("")
    return "\n".join(lines)


def format_bytes(data: bytes) -> str:
    return ",".join(f"0x{b:02x}" for b in data)

# ---------------- Commands ----------------

def cmd_info(session: Session, out: Callable[[str], None] = print) -> int:
    out(format_status_line(session.query_status()))
    return 0


def cmd_reset(session: Session, out: Callable[[str], None] = print) -> int:
    sda, scl = session.reset()
    out(f"Bus reset. SDA = {sda}, SCL = {scl}")
    return 0


def cmd_scan(session: Session, out: Callable[[str], None] = print) -> int:
    out(format_scan(session.scan()))
    return 0


def cmd_write(session: Session, dev: str, data: str, out: Callable[[str], None] = print) -> int:
    address = parse_address(dev)
    payload = parse_byte_list(data)

    if not session.start(address, Direction.WRITE):
        out(f"Device {address:02x} did not acknowledge")
        return 1
    if not session.write(payload):
        out(f"Device {address:02x} did not acknowledge data")
        return 1
    return 0


def cmd_read(session: Session, dev: str, count: str, out: Callable[[str], None] = print) -> int:
    address = parse_address(dev)
    n = parse_count(count)

    with session.transaction(address, Direction.READ):
        data = session.read(n)
    out(format_bytes(data))
    return 0


def cmd_stop(session: Session, out: Callable[[str], None] = print) -> int:
    session.stop()
    return 0


def cmd_monitor(
    session: Session,
    out: Callable[[str], None] = print,
    wait: Callable[[str], str] = input,
) -> int:
    session.monitor(True)
    try:
        wait("[Hit return to exit monitor mode]\n")
    except EOFError:
        pass
    session.monitor(False)
    return 0


def cmd_capture(session: Session, out: Callable[[str], None] = print) -> int:
    out("Capture started")
    try:
        for event in session.capture():
            out(str(event))
    except KeyboardInterrupt:
        pass
    finally:
        session.disconnect()
    return 0


def run_command(session: Session, command: Command, out: Callable[[str], None] = print) -> int:
    name, args = command.name, command.args
    if name == "i":
        return cmd_info(session, out)
    if name == "x":
        return cmd_reset(session, out)
    if name == "d":
        return cmd_scan(session, out)
    if name == "w":
        return cmd_write(session, *args, out=out)
    if name == "r":
        return cmd_read(session, *args, out=out)
    if name == "p":
        return cmd_stop(session, out)
    if name == "m":
        return cmd_monitor(session, out)
    if name == "c":
        return cmd_capture(session, out)
    return 2
