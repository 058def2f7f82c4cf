"""Single owner of the sensor registry shared by the API and the serial worker."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from functools import lru_cache
from threading import Event, Lock
from typing import Callable, Iterable, List, Optional, Tuple

from models.errors import LineSourceError
from models.readings import Number, NumericKind
from models.sensors import SensorSnapshot, create_sensor
from services.ingestion import IngestionLoop, IngestionReport, LineOutcome, LineSource
from services.registry import SensorRegistry
from settings import get_settings
from sources.lines import IterableLineSource
from sources.serial_port import SerialLineSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkerStatus:
    """Progress of the background line-source worker."""

    running: bool = False
    source: Optional[str] = None
    lines_read: int = 0
    accepted: int = 0
    error: Optional[str] = None


class MonitorService:
    """Serializes every registry access behind one lock.

    Manual entry, line batches and the background worker all mutate the same
    registry; none of them touches it without holding ``_lock``.
    """

    def __init__(self, registry: Optional[SensorRegistry] = None) -> None:
        self.registry = registry if registry is not None else SensorRegistry()
        self._lock = Lock()
        self.executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="line-ingest")
        self._worker: Optional[Future[None]] = None
        self._worker_cancel = Event()
        self._status = WorkerStatus()
        self._status_lock = Lock()

    def create_sensor(self, sensor_id: str, kind: NumericKind) -> SensorSnapshot:
        """Register a new, empty sensor. Raises InvalidId or DuplicateId."""
        sensor = create_sensor(sensor_id, kind)
        with self._lock:
            self.registry.insert(sensor)
            logger.info("Sensor created", extra={"sensor_id": sensor_id, "kind": sensor.kind.value})
            return sensor.describe()

    def add_reading(self, sensor_id: str, value: Number) -> SensorSnapshot:
        """Record a manual reading. Integers are widened for float sensors."""
        with self._lock:
            sensor = self.registry.find(sensor_id)
            if sensor is None:
                raise KeyError(f"Sensor {sensor_id!r} not found.")
            if sensor.kind is NumericKind.FLOAT and type(value) is int:
                value = float(value)
            sensor.add_reading(value)
            logger.info("Reading recorded", extra={"sensor_id": sensor_id, "value": value})
            return sensor.describe()

    def get_sensor(self, sensor_id: str) -> SensorSnapshot:
        with self._lock:
            sensor = self.registry.find(sensor_id)
            if sensor is None:
                raise KeyError(f"Sensor {sensor_id!r} not found.")
            return sensor.describe()

    def list_sensors(self) -> List[SensorSnapshot]:
        with self._lock:
            return self.registry.snapshots()

    def ingest_lines(self, lines: Iterable[str]) -> Tuple[IngestionReport, List[LineOutcome]]:
        """Run a finite batch of protocol lines through an ingestion loop."""
        outcomes: List[LineOutcome] = []
        loop = IngestionLoop(self.registry, IterableLineSource(lines), guard=self._lock)
        report = loop.run(on_outcome=outcomes.append)
        return report, outcomes

    def start_ingestion(self, source_factory: Callable[[], LineSource], label: str) -> None:
        """Start the background worker on the source built by ``source_factory``."""
        if self._worker is not None and not self._worker.done():
            raise RuntimeError(f"Ingestion already running from {self._status.source}.")
        self._worker_cancel = Event()
        self._set_status(WorkerStatus(running=True, source=label))
        self._worker = self.executor.submit(self._run_worker, source_factory, self._worker_cancel)

    def start_serial_ingestion(
        self,
        port: str,
        baudrate: int = 9600,
        timeout: float = 1.0,
        settle_s: float = 2.0,
    ) -> None:
        def factory() -> LineSource:
            return SerialLineSource(port, baudrate=baudrate, timeout=timeout, settle_s=settle_s)

        self.start_ingestion(factory, label=port)

    def stop_ingestion(self, wait: bool = True) -> None:
        self._worker_cancel.set()
        worker = self._worker
        if worker is not None and wait:
            worker.result()

    def ingestion_status(self) -> WorkerStatus:
        with self._status_lock:
            return self._status

    def shutdown(self) -> None:
        """Stop the worker, release the executor and tear the registry down."""
        self._worker_cancel.set()
        self.executor.shutdown(wait=True, cancel_futures=True)
        with self._lock:
            self.registry.teardown()

    def _set_status(self, status: WorkerStatus) -> None:
        with self._status_lock:
            self._status = status

    def _track(self, outcome: LineOutcome) -> None:
        with self._status_lock:
            self._status = replace(
                self._status,
                lines_read=self._status.lines_read + 1,
                accepted=outcome.accepted_total,
            )

    def _run_worker(self, source_factory: Callable[[], LineSource], cancel: Event) -> None:
        source: Optional[LineSource] = None
        error: Optional[str] = None
        try:
            source = source_factory()
            loop = IngestionLoop(self.registry, source, guard=self._lock, cancel_event=cancel)
            loop.run(on_outcome=self._track)
        except LineSourceError as exc:
            error = str(exc)
            logger.error("Background ingestion stopped: %s", exc)
        finally:
            close = getattr(source, "close", None)
            if callable(close):
                close()
            with self._status_lock:
                self._status = replace(self._status, running=False, error=error)


@lru_cache
def build_default_monitor() -> MonitorService:
    """Factory that wires the monitor and, when configured, the serial worker."""
    settings = get_settings()
    monitor = MonitorService()
    if settings.serial_port:
        monitor.start_serial_ingestion(
            settings.serial_port,
            baudrate=settings.serial_baudrate,
            timeout=settings.serial_timeout,
            settle_s=settings.serial_settle_seconds,
        )
    return monitor
