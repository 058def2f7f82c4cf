"""Sensor variants bound to one reading history each."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Dict, Optional, Tuple, Type, Union

from models.errors import EmptyHistory, InvalidId, KindMismatch
from models.readings import Number, NumericKind, Reading, ReadingHistory


@dataclass(frozen=True)
class SensorSnapshot:
    """Immutable view of a sensor for presentation layers."""

    sensor_id: str
    kind: NumericKind
    sensor_type: str
    unit: str
    reading_count: int
    values: Tuple[Number, ...]
    aggregate: Optional[float]
    aggregate_name: str

    @property
    def is_empty(self) -> bool:
        return self.reading_count == 0


class Sensor:
    """Identity plus an exclusively owned reading history.

    Concrete variants fix the numeric kind; the kind never changes after
    creation. Use :func:`create_sensor` to pick the variant from a kind.
    """

    kind: ClassVar[NumericKind]
    sensor_type: ClassVar[str]
    unit: ClassVar[str]

    def __init__(self, sensor_id: str) -> None:
        if not sensor_id or not sensor_id.strip():
            raise InvalidId(sensor_id)
        self._sensor_id = sensor_id
        self._history = ReadingHistory(self.kind)

    @property
    def sensor_id(self) -> str:
        return self._sensor_id

    @property
    def history(self) -> ReadingHistory:
        return self._history

    def add_reading(self, value: Union[Reading, Number]) -> Reading:
        try:
            reading = value if isinstance(value, Reading) else Reading.of(value)
        except TypeError as exc:
            raise KindMismatch(self.kind, type(value).__name__, self._sensor_id) from exc
        if reading.kind is not self.kind:
            raise KindMismatch(self.kind, reading.kind, self._sensor_id)
        self._history.append(reading)
        return reading

    def process(self) -> float:
        try:
            return self._history.aggregate()
        except EmptyHistory as exc:
            raise EmptyHistory(self._sensor_id) from exc

    def describe(self) -> SensorSnapshot:
        aggregate = None if self._history.is_empty() else self._history.aggregate()
        return SensorSnapshot(
            sensor_id=self._sensor_id,
            kind=self.kind,
            sensor_type=self.sensor_type,
            unit=self.unit,
            reading_count=self._history.size(),
            values=self._history.values(),
            aggregate=aggregate,
            aggregate_name=self._history.aggregate_name,
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(sensor_id={self._sensor_id!r}, "
            f"readings={self._history.size()})"
        )


class TemperatureSensor(Sensor):
    kind = NumericKind.FLOAT
    sensor_type = "temperature"
    unit = "°C"


class PressureSensor(Sensor):
    kind = NumericKind.INTEGER
    sensor_type = "pressure"
    unit = "Pa"


_VARIANTS: Dict[NumericKind, Type[Sensor]] = {
    NumericKind.FLOAT: TemperatureSensor,
    NumericKind.INTEGER: PressureSensor,
}


def create_sensor(sensor_id: str, kind: NumericKind) -> Sensor:
    """Build the sensor variant matching ``kind``."""
    return _VARIANTS[NumericKind(kind)](sensor_id)
