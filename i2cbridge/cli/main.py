# i2cbridge/cli/main.py
from __future__ import annotations

import sys
from typing import Optional

from i2cbridge.app.config import BridgeConfig, load_config
from i2cbridge.app.runner import open_session
from i2cbridge.core.errors import BridgeError
from i2cbridge.transport.errors import TransportError

from i2cbridge.cli.args import USAGE, CommandSyntaxError, parse_args
from i2cbridge.cli.commands import configure_logging, run_command


def _bad_command(e: CommandSyntaxError) -> int:
    print(str(e), file=sys.stderr)
    print(file=sys.stderr)
    print("Usage: i2ccl <PORTNAME> <commands>", file=sys.stderr)
    print(file=sys.stderr)
    print(USAGE, file=sys.stderr)
    return 1


def main(argv: Optional[list[str]] = None) -> int:
    try:
        args, commands = parse_args(argv)
    except CommandSyntaxError as e:
        return _bad_command(e)

    session = None
    try:
        cfg = load_config(args.config) if args.config else BridgeConfig()
        cfg = cfg.with_overrides(
            port=args.port,
            baudrate=args.baudrate,
            timeout_s=args.timeout,
            legacy_read_chunking=args.legacy_read_chunking,
        )
        configure_logging(verbose=args.verbose, log_file=cfg.log_file)

        session = open_session(cfg)
        for command in commands:
            rc = run_command(session, command)
            if rc != 0:
                return rc
        return 0

    except CommandSyntaxError as e:
        return _bad_command(e)
    except BridgeError as e:
        print(f"ERROR: {e.message}")
        if e.hint:
            print(f"Hint: {e.hint}")
        return 1
    except TransportError as e:
        print(f"ERROR: {e}")
        return 1
    finally:
        if session is not None:
            session.disconnect()


if __name__ == "__main__":
    sys.exit(main())
