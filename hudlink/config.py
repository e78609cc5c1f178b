"""Configuration helpers for hudlink."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any

from .settings import (
    CONFIG_FILE,
    DEFAULT_BAUDRATE,
    DEFAULT_RECONNECT_PERIOD,
    DEFAULT_RFCOMM_CHANNEL,
    MAX_RECONNECT_PERIOD,
)

logger = logging.getLogger(__name__)

TRANSPORTS = ("serial", "rfcomm")


def _ensure_parent(path: Path) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except Exception:
        # Directory creation failures will surface during write; keep silent here.
        pass


def _coerce_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _coerce_float(value: Any, default: float) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    return result if result > 0 else default


@dataclass
class AppConfig:
    transport: str = "serial"
    peer_address: str = ""
    peer_name: str = ""
    baudrate: int = DEFAULT_BAUDRATE
    rfcomm_channel: int = DEFAULT_RFCOMM_CHANNEL
    reconnect_initial: float = DEFAULT_RECONNECT_PERIOD
    reconnect_max: float = MAX_RECONNECT_PERIOD
    log_level: str = "INFO"


def load_config(path: str | Path = CONFIG_FILE) -> AppConfig:
    """Load configuration data from *path* or return defaults on failure."""

    defaults = AppConfig()
    cfg_path = Path(path)
    if not cfg_path.exists():
        return defaults

    try:
        raw = json.loads(cfg_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        logger.error("Config file %s contains invalid JSON: %s", cfg_path, exc)
        return defaults
    except OSError as exc:
        logger.error("Could not read config file %s: %s", cfg_path, exc)
        return defaults

    if not isinstance(raw, dict):
        logger.error("Config file %s did not contain an object", cfg_path)
        return defaults

    data = asdict(defaults)
    transport = str(raw.get("transport", data["transport"])).strip().lower()
    if transport not in TRANSPORTS:
        logger.warning(
            "Unknown transport %r in %s; using %s", transport, cfg_path, defaults.transport
        )
        transport = defaults.transport
    data["transport"] = transport
    data["peer_address"] = str(raw.get("peer_address", data["peer_address"])).strip()
    data["peer_name"] = str(raw.get("peer_name", data["peer_name"]))
    data["baudrate"] = _coerce_int(raw.get("baudrate"), defaults.baudrate)
    data["rfcomm_channel"] = max(1, _coerce_int(raw.get("rfcomm_channel"), defaults.rfcomm_channel))
    data["reconnect_initial"] = _coerce_float(
        raw.get("reconnect_initial"), defaults.reconnect_initial
    )
    data["reconnect_max"] = max(
        data["reconnect_initial"],
        _coerce_float(raw.get("reconnect_max"), defaults.reconnect_max),
    )
    data["log_level"] = str(raw.get("log_level", data["log_level"])).upper()

    return AppConfig(**data)


def save_config(config: AppConfig, path: str | Path = CONFIG_FILE) -> None:
    """Persist *config* to *path*, logging errors without raising."""

    cfg_path = Path(path)
    _ensure_parent(cfg_path)
    try:
        cfg_path.write_text(json.dumps(asdict(config), indent=4), encoding="utf-8")
    except OSError as exc:
        logger.error("Could not write config file %s: %s", cfg_path, exc)
