from __future__ import annotations

import pytest

from models.errors import DuplicateId
from models.readings import NumericKind
from models.sensors import PressureSensor, TemperatureSensor
from services.registry import SensorRegistry


def test_insert_preserves_creation_order() -> None:
    registry = SensorRegistry()
    for sensor in (TemperatureSensor("T-002"), PressureSensor("P-001"), TemperatureSensor("T-001")):
        registry.insert(sensor)

    assert [sensor.sensor_id for sensor in registry] == ["T-002", "P-001", "T-001"]
    assert len(registry) == 3
    assert "P-001" in registry


def test_duplicate_insert_leaves_registry_unchanged() -> None:
    registry = SensorRegistry()
    original = TemperatureSensor("T-001")
    original.add_reading(20.0)
    registry.insert(original)
    registry.insert(PressureSensor("P-001"))

    with pytest.raises(DuplicateId):
        registry.insert(PressureSensor("T-001"))

    assert len(registry) == 2
    assert registry.find("T-001") is original
    assert [sensor.sensor_id for sensor in registry] == ["T-001", "P-001"]
    assert original.history.values() == (20.0,)


def test_find_is_exact_and_case_sensitive() -> None:
    registry = SensorRegistry()
    registry.insert(TemperatureSensor("T-001"))

    assert registry.find("T-001") is not None
    assert registry.find("t-001") is None
    assert registry.find("T-00") is None


def test_find_or_create_keeps_existing_kind() -> None:
    registry = SensorRegistry()

    created = registry.find_or_create("S-1", NumericKind.FLOAT)
    again = registry.find_or_create("S-1", NumericKind.INTEGER)

    assert again is created
    assert again.kind is NumericKind.FLOAT
    assert len(registry) == 1


def test_for_each_allows_appending_readings() -> None:
    registry = SensorRegistry()
    registry.insert(PressureSensor("P-001"))
    registry.insert(PressureSensor("P-002"))

    registry.for_each(lambda sensor: sensor.add_reading(7))

    assert [sensor.history.values() for sensor in registry] == [(7,), (7,)]


def test_inserting_during_traversal_is_rejected() -> None:
    registry = SensorRegistry()
    registry.insert(PressureSensor("P-001"))

    with pytest.raises(RuntimeError):
        for sensor in registry:
            registry.insert(PressureSensor(sensor.sensor_id + "-copy"))


def test_snapshots_follow_insertion_order() -> None:
    registry = SensorRegistry()
    registry.find_or_create("P-001", NumericKind.INTEGER).add_reading(10)
    registry.find_or_create("T-001", NumericKind.FLOAT)

    snapshots = registry.snapshots()

    assert [snapshot.sensor_id for snapshot in snapshots] == ["P-001", "T-001"]
    assert snapshots[0].aggregate == 10.0
    assert snapshots[1].aggregate is None


def test_teardown_is_idempotent_and_scoped() -> None:
    with SensorRegistry() as registry:
        registry.insert(TemperatureSensor("T-001"))
        assert len(registry) == 1

    assert len(registry) == 0
    registry.teardown()
    assert list(registry) == []
