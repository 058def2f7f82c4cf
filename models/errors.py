"""Error taxonomy for the sensor registry and its ingestion paths."""

from __future__ import annotations


class SensorError(Exception):
    """Base class for recoverable registry and sensor failures."""

    reason = "sensor error"


class InvalidId(SensorError, ValueError):
    reason = "invalid id"

    def __init__(self, sensor_id: str) -> None:
        super().__init__(f"Sensor id {sensor_id!r} is empty.")
        self.sensor_id = sensor_id


class DuplicateId(SensorError, ValueError):
    reason = "duplicate id"

    def __init__(self, sensor_id: str) -> None:
        super().__init__(f"Sensor {sensor_id!r} already exists.")
        self.sensor_id = sensor_id


class KindMismatch(SensorError, ValueError):
    reason = "kind mismatch"

    def __init__(self, expected: object, actual: object, sensor_id: str | None = None) -> None:
        target = f"sensor {sensor_id!r}" if sensor_id else "history"
        super().__init__(f"Cannot record a {actual} reading on {expected} {target}.")
        self.expected = expected
        self.actual = actual
        self.sensor_id = sensor_id


class EmptyHistory(SensorError, LookupError):
    reason = "empty history"

    def __init__(self, sensor_id: str | None = None) -> None:
        subject = f"Sensor {sensor_id!r}" if sensor_id else "History"
        super().__init__(f"{subject} has no readings to aggregate.")
        self.sensor_id = sensor_id


class LineSourceError(SensorError, OSError):
    """Transport fault raised by a line source."""

    reason = "transport error"
