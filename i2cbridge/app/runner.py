# i2cbridge/app/runner.py
from __future__ import annotations

import logging
from typing import Optional

from i2cbridge.app.config import BridgeConfig
from i2cbridge.core.errors import ConfigError
from i2cbridge.runtime.session import Session
from i2cbridge.transport.uart import UARTTransport


def build_transport(cfg: BridgeConfig) -> UARTTransport:
    """Construct (but do not open) the serial transport described by cfg."""
    if not cfg.port:
        raise ConfigError(
            "No serial port configured.",
            hint="Pass the port on the command line or set 'port' in the config file.",
        )
    return UARTTransport(cfg.port, baudrate=cfg.baudrate, deadline_s=cfg.timeout_s)


def open_session(cfg: BridgeConfig, *, logger: Optional[logging.Logger] = None) -> Session:
    """Open the port and run the connect handshake."""
    log = logger or logging.getLogger(__name__)
    transport = build_transport(cfg)
    log.info("OPENING port=%s baudrate=%d", cfg.port, cfg.baudrate)
    return Session.connect(
        transport,
        legacy_read_chunking=cfg.legacy_read_chunking,
        logger=logger,
    )
