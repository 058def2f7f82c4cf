from __future__ import annotations

import threading
import time
from typing import Iterator, List, Optional

import pytest

from models.errors import DuplicateId, InvalidId, KindMismatch, LineSourceError
from models.readings import NumericKind
from services.monitor import MonitorService


class BlockingSource:
    """Hands out queued lines, then waits until cancelled."""

    def __init__(self, lines: List[str]) -> None:
        self._lines = list(lines)
        self.closed = False
        self.drained = threading.Event()

    def read_line(self, cancelled: threading.Event) -> Optional[str]:
        if self._lines:
            return self._lines.pop(0)
        self.drained.set()
        cancelled.wait(timeout=5)
        return None

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def monitor() -> Iterator[MonitorService]:
    service = MonitorService()
    yield service
    service.shutdown()


def _wait_until_stopped(service: MonitorService, timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if not service.ingestion_status().running:
            return
        time.sleep(0.01)
    pytest.fail("Ingestion worker did not stop in time")


def test_manual_entry_round_trip(monitor: MonitorService) -> None:
    monitor.create_sensor("T-001", NumericKind.FLOAT)
    monitor.add_reading("T-001", 23)
    snapshot = monitor.add_reading("T-001", 19.5)

    assert snapshot.values == (23.0, 19.5)
    assert snapshot.aggregate == 19.5


def test_manual_entry_errors(monitor: MonitorService) -> None:
    monitor.create_sensor("P-001", NumericKind.INTEGER)

    with pytest.raises(DuplicateId):
        monitor.create_sensor("P-001", NumericKind.FLOAT)
    with pytest.raises(InvalidId):
        monitor.create_sensor("", NumericKind.FLOAT)
    with pytest.raises(KindMismatch):
        monitor.add_reading("P-001", 1.5)
    with pytest.raises(KeyError):
        monitor.add_reading("missing", 1)
    with pytest.raises(KeyError):
        monitor.get_sensor("missing")

    assert monitor.get_sensor("P-001").reading_count == 0


def test_ingest_lines_shares_registry_with_manual_entry(monitor: MonitorService) -> None:
    monitor.create_sensor("P-010", NumericKind.INTEGER)

    report, outcomes = monitor.ingest_lines(["P P-010 100", "P P-010 200", "T T-1 5.5"])

    assert report.accepted == 3
    assert len(outcomes) == 3
    assert [snapshot.sensor_id for snapshot in monitor.list_sensors()] == ["P-010", "T-1"]
    assert monitor.get_sensor("P-010").aggregate == 150.0


def test_background_worker_ingests_until_stopped(monitor: MonitorService) -> None:
    source = BlockingSource(["T T-1 20.0", "T T-1 18.5", "garbage"])

    monitor.start_ingestion(lambda: source, label="fake")
    assert source.drained.wait(timeout=5)

    status = monitor.ingestion_status()
    assert status.running is True
    assert status.source == "fake"
    assert status.lines_read == 3
    assert status.accepted == 2

    monitor.stop_ingestion()

    assert monitor.ingestion_status().running is False
    assert source.closed is True
    assert monitor.get_sensor("T-1").aggregate == 18.5


def test_second_worker_is_refused_while_running(monitor: MonitorService) -> None:
    source = BlockingSource([])
    monitor.start_ingestion(lambda: source, label="first")
    assert source.drained.wait(timeout=5)

    with pytest.raises(RuntimeError):
        monitor.start_ingestion(lambda: BlockingSource([]), label="second")

    monitor.stop_ingestion()


def test_worker_records_transport_errors(monitor: MonitorService) -> None:
    def broken() -> BlockingSource:
        raise LineSourceError("could not open /dev/ttyACM9")

    monitor.start_ingestion(broken, label="/dev/ttyACM9")
    _wait_until_stopped(monitor)

    status = monitor.ingestion_status()
    assert status.error == "could not open /dev/ttyACM9"


def test_shutdown_cancels_worker_and_tears_down_registry() -> None:
    service = MonitorService()
    source = BlockingSource(["P P-1 4"])
    service.start_ingestion(lambda: source, label="fake")
    assert source.drained.wait(timeout=5)

    service.shutdown()

    assert source.closed is True
    assert len(service.registry) == 0
