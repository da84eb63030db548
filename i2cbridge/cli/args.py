# i2cbridge/cli/args.py
from __future__ import annotations

import argparse
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

USAGE = """\
Commands are:
  i              display status information (uptime, voltage, current, temperature)
  x              I2C bus reset
  d              device scan
  w dev <bytes>  write bytes to I2C device dev
  p              send a STOP
  r dev N        read N bytes from I2C device dev, then STOP
  m              enter I2C bus monitor mode
  c              enter I2C bus capture mode
"""

# command letter -> number of positional arguments it consumes
ARITY = {"i": 0, "x": 0, "d": 0, "w": 2, "p": 0, "r": 2, "m": 0, "c": 0}

_OCTAL = re.compile(r"^[-+]?0[0-7]+$")


class CommandSyntaxError(ValueError):
    pass


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str):
        raise CommandSyntaxError(message)


@dataclass(frozen=True)
class Command:
    name: str
    args: Tuple[str, ...] = ()


def parse_int(text: str) -> int:
    """Integer literal with C-style base prefixes (0x.., 0.. octal, decimal)."""
    s = text.strip()
    if _OCTAL.match(s):
        return int(s, 8)
    return int(s, 0)


def parse_address(text: str) -> int:
    try:
        address = parse_int(text)
    except ValueError:
        raise CommandSyntaxError(f"Invalid device address '{text}'") from None
    if not 0 <= address <= 0x7F:
        raise CommandSyntaxError(f"Device address out of range '{text}'")
    return address


def parse_byte_list(text: str) -> bytes:
    """Comma-separated byte values, e.g. '0x10,2,0377'."""
    out = bytearray()
    for item in text.split(","):
        try:
            value = parse_int(item)
        except ValueError:
            raise CommandSyntaxError(f"Invalid bytes '{text}'") from None
        if not 0 <= value <= 0xFF:
            raise CommandSyntaxError(f"Invalid bytes '{text}'")
        out.append(value)
    return bytes(out)


def parse_count(text: str) -> int:
    try:
        count = parse_int(text)
    except ValueError:
        raise CommandSyntaxError(f"Invalid byte count '{text}'") from None
    if count < 0:
        raise CommandSyntaxError(f"Invalid byte count '{text}'")
    return count


def split_commands(tokens: List[str]) -> List[Command]:
    """Group the command tokens into (letter, args) commands."""
    out: List[Command] = []
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token not in ARITY:
            raise CommandSyntaxError(f"Bad command '{token}'")
        n = ARITY[token]
        args = tuple(tokens[i + 1: i + 1 + n])
        if len(args) != n:
            raise CommandSyntaxError(f"Command '{token}' needs {n} argument(s)")
        out.append(Command(token, args))
        i += 1 + n
    return out


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="i2ccl",
        description="Drive an I2C bridge over its serial port.",
        epilog=USAGE,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", default=None, help="YAML config file.")
    parser.add_argument("--baudrate", type=int, default=None)
    parser.add_argument("--timeout", type=float, default=None, help="Reply deadline in seconds.")
    parser.add_argument(
        "--legacy-read-chunking",
        action="store_true",
        default=None,
        help="Size read chunks from the total count (older host tool behaviour).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log wire traffic.")
    parser.add_argument("port", help="Serial port of the bridge, e.g. /dev/ttyUSB0.")
    parser.add_argument("commands", nargs=argparse.REMAINDER)
    return parser


def parse_args(argv: Optional[list[str]] = None) -> Tuple[argparse.Namespace, List[Command]]:
    """
    Returns: (args, commands)

    Raises CommandSyntaxError for bad options, a missing port or a malformed
    command sequence.
    """
    args = build_parser().parse_args(argv)
    return args, split_commands(list(args.commands))
