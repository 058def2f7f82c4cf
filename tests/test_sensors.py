from __future__ import annotations

import pytest

from models.errors import EmptyHistory, InvalidId, KindMismatch
from models.readings import NumericKind
from models.sensors import PressureSensor, TemperatureSensor, create_sensor


def test_create_sensor_selects_variant_by_kind() -> None:
    temperature = create_sensor("T-001", NumericKind.FLOAT)
    pressure = create_sensor("P-105", NumericKind.INTEGER)

    assert isinstance(temperature, TemperatureSensor)
    assert isinstance(pressure, PressureSensor)
    assert temperature.kind is NumericKind.FLOAT
    assert pressure.kind is NumericKind.INTEGER


@pytest.mark.parametrize("sensor_id", ["", "   "])
def test_create_sensor_rejects_empty_id(sensor_id: str) -> None:
    with pytest.raises(InvalidId):
        create_sensor(sensor_id, NumericKind.FLOAT)


def test_pressure_sensor_processes_mean() -> None:
    sensor = PressureSensor("P-010")
    for value in (100, 101, 103):
        sensor.add_reading(value)

    assert sensor.process() == pytest.approx(304 / 3)


def test_temperature_sensor_processes_minimum() -> None:
    sensor = TemperatureSensor("T-001")
    for value in (21.5, 18.0, 25.25):
        sensor.add_reading(value)

    assert sensor.process() == 18.0


def test_process_without_readings_reports_empty_history() -> None:
    sensor = PressureSensor("P-404")

    with pytest.raises(EmptyHistory) as excinfo:
        sensor.process()

    assert excinfo.value.sensor_id == "P-404"


def test_add_reading_of_wrong_kind_leaves_history_untouched() -> None:
    sensor = PressureSensor("P-010")
    sensor.add_reading(5)

    with pytest.raises(KindMismatch) as excinfo:
        sensor.add_reading(5.5)

    assert excinfo.value.sensor_id == "P-010"
    assert sensor.history.size() == 1

    temperature = TemperatureSensor("T-001")
    with pytest.raises(KindMismatch):
        temperature.add_reading(20)
    with pytest.raises(KindMismatch):
        temperature.add_reading("20.0")  # type: ignore[arg-type]
    assert temperature.history.is_empty()


def test_describe_returns_immutable_snapshot() -> None:
    sensor = TemperatureSensor("T-001")
    sensor.add_reading(23.5)
    sensor.add_reading(22.0)

    snapshot = sensor.describe()
    sensor.add_reading(10.0)

    assert snapshot.sensor_id == "T-001"
    assert snapshot.kind is NumericKind.FLOAT
    assert snapshot.sensor_type == "temperature"
    assert snapshot.unit == "°C"
    assert snapshot.reading_count == 2
    assert snapshot.values == (23.5, 22.0)
    assert snapshot.aggregate == 22.0
    assert snapshot.aggregate_name == "minimum"
    assert not snapshot.is_empty


def test_describe_empty_sensor_has_no_aggregate() -> None:
    snapshot = PressureSensor("P-001").describe()

    assert snapshot.is_empty
    assert snapshot.aggregate is None
    assert snapshot.values == ()
