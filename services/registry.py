"""Insertion-ordered registry of owned sensors."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterator, List, Optional

from models.errors import DuplicateId
from models.readings import NumericKind
from models.sensors import Sensor, SensorSnapshot, create_sensor

logger = logging.getLogger(__name__)


class SensorRegistry:
    """Owns every known sensor, keyed by its unique id.

    Not thread-safe: a single owner mutates it (see ``MonitorService``).
    Traversal must not insert entries; a size change during iteration raises
    ``RuntimeError``. Appending readings to visited sensors is allowed.
    """

    def __init__(self) -> None:
        self._sensors: Dict[str, Sensor] = {}

    def insert(self, sensor: Sensor) -> None:
        if sensor.sensor_id in self._sensors:
            raise DuplicateId(sensor.sensor_id)
        self._sensors[sensor.sensor_id] = sensor
        logger.debug(
            "Sensor registered",
            extra={"sensor_id": sensor.sensor_id, "kind": sensor.kind.value},
        )

    def find(self, sensor_id: str) -> Optional[Sensor]:
        return self._sensors.get(sensor_id)

    def find_or_create(self, sensor_id: str, kind: NumericKind) -> Sensor:
        """Return the existing sensor (its kind wins) or create one of ``kind``."""
        existing = self._sensors.get(sensor_id)
        if existing is not None:
            return existing
        sensor = create_sensor(sensor_id, kind)
        self.insert(sensor)
        return sensor

    def for_each(self, visitor: Callable[[Sensor], None]) -> None:
        for sensor in self:
            visitor(sensor)

    def snapshots(self) -> List[SensorSnapshot]:
        return [sensor.describe() for sensor in self]

    def teardown(self) -> None:
        """Release every sensor. Safe to call more than once."""
        if not self._sensors:
            return
        for sensor_id, sensor in self._sensors.items():
            logger.debug(
                "Releasing sensor",
                extra={"sensor_id": sensor_id, "kind": sensor.kind.value},
            )
        released = len(self._sensors)
        self._sensors.clear()
        logger.info("Registry torn down (%d sensors released)", released)

    def __iter__(self) -> Iterator[Sensor]:
        return iter(self._sensors.values())

    def __len__(self) -> int:
        return len(self._sensors)

    def __contains__(self, sensor_id: object) -> bool:
        return sensor_id in self._sensors

    def __enter__(self) -> "SensorRegistry":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.teardown()
