# i2cbridge/app/config.py
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from i2cbridge.core.errors import ConfigError


@dataclass(frozen=True)
class BridgeConfig:
    port: Optional[str] = None
    baudrate: int = 1_000_000
    timeout_s: Optional[float] = 1.0
    legacy_read_chunking: bool = False
    log_file: Optional[str] = None

    def with_overrides(self, **overrides: Any) -> "BridgeConfig":
        """Copy with every non-None override applied."""
        values = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **_validate(values, source="overrides"))


_TYPES: Dict[str, tuple] = {
    "port": (str,),
    "baudrate": (int,),
    "timeout_s": (int, float),
    "legacy_read_chunking": (bool,),
    "log_file": (str,),
}


def _validate(values: Dict[str, Any], *, source: str) -> Dict[str, Any]:
    known = {f.name for f in fields(BridgeConfig)}
    out: Dict[str, Any] = {}

    for key, value in values.items():
        if key not in known:
            raise ConfigError(
                f"Unknown config key '{key}'.",
                hint=f"Valid keys: {sorted(known)}",
                details={"source": source, "key": key},
            ) from None

        if value is None:
            out[key] = None
            continue

        expected = _TYPES[key]
        # bool is an int subclass; only accept it where bool is expected
        if isinstance(value, bool) and bool not in expected:
            ok = False
        else:
            ok = isinstance(value, expected)
        if not ok:
            raise ConfigError(
                f"Invalid value for config key '{key}'.",
                hint=f"Expected {'/'.join(t.__name__ for t in expected)}, got {type(value).__name__}",
                details={"source": source, "key": key, "value": value},
            ) from None

        out[key] = float(value) if key == "timeout_s" else value

    return out


def load_config(path: str | Path) -> BridgeConfig:
    """Load a BridgeConfig from a YAML mapping."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            doc = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise ConfigError(
            f"Config file not found: {path}",
            details={"path": str(path)},
        ) from None
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Config file is not valid YAML: {path}",
            hint=str(e),
            details={"path": str(path)},
        ) from None

    if not isinstance(doc, dict):
        raise ConfigError(
            f"Config file must contain a mapping: {path}",
            details={"path": str(path)},
        )

    return BridgeConfig(**_validate(doc, source=str(path)))
