from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_SERIAL_PORT_ENV = "SENSOR_SERIAL_PORT"
_SERIAL_BAUDRATE_ENV = "SENSOR_SERIAL_BAUDRATE"
_SERIAL_TIMEOUT_ENV = "SENSOR_SERIAL_TIMEOUT"
_SERIAL_SETTLE_ENV = "SENSOR_SERIAL_SETTLE_SECONDS"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    serial_port: Optional[str]
    serial_baudrate: int
    serial_timeout: float
    serial_settle_seconds: float
    log_level: str


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_baudrate(default: int) -> int:
    value = os.getenv(_SERIAL_BAUDRATE_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_seconds(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        serial_port=_read_optional_env(_SERIAL_PORT_ENV, None),
        serial_baudrate=_read_baudrate(9600),
        serial_timeout=_read_seconds(_SERIAL_TIMEOUT_ENV, 1.0),
        serial_settle_seconds=_read_seconds(_SERIAL_SETTLE_ENV, 2.0),
        log_level=_read_log_level("INFO"),
    )
