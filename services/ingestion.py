"""Line-driven ingestion of protocol readings into a registry."""

from __future__ import annotations

import logging
import threading
from contextlib import nullcontext
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, ContextManager, Dict, Iterable, Iterator, Optional, Protocol

from models.errors import InvalidId, KindMismatch, LineSourceError
from services.classifier import DEFAULT_BANNERS, Ignore, Malformed, Record, classify
from services.registry import SensorRegistry

logger = logging.getLogger(__name__)


class LineSource(Protocol):
    """Supplier of raw protocol lines.

    ``read_line`` may block, returns ``None`` at end of stream, raises
    ``LineSourceError`` on transport faults and must give up promptly once
    ``cancelled`` is set.
    """

    def read_line(self, cancelled: threading.Event) -> Optional[str]:
        ...


class LoopState(str, Enum):
    running = "running"
    stopped = "stopped"


class OutcomeStatus(str, Enum):
    created = "created"
    accepted = "accepted"
    ignored = "ignored"
    malformed = "malformed"
    kind_mismatch = "kind_mismatch"
    rejected = "rejected"


@dataclass(frozen=True)
class LineOutcome:
    line_number: int
    raw_line: str
    status: OutcomeStatus
    sensor_id: Optional[str] = None
    reason: Optional[str] = None
    detail: Optional[str] = None
    accepted_total: int = 0


@dataclass
class IngestionReport:
    lines_read: int = 0
    accepted: int = 0
    state: LoopState = LoopState.running
    per_status: Dict[OutcomeStatus, int] = field(default_factory=dict)

    def record(self, outcome: LineOutcome) -> None:
        self.lines_read += 1
        self.per_status[outcome.status] = self.per_status.get(outcome.status, 0) + 1
        self.accepted = outcome.accepted_total

    def count(self, status: OutcomeStatus) -> int:
        return self.per_status.get(status, 0)


class IngestionLoop:
    """Pulls lines from a source and applies them to a registry.

    Every registry mutation runs inside ``guard`` so that an owner can
    serialize access with a lock; reads from the source happen outside it.
    """

    def __init__(
        self,
        registry: SensorRegistry,
        source: LineSource,
        guard: Optional[ContextManager[object]] = None,
        cancel_event: Optional[threading.Event] = None,
        banners: Iterable[str] = DEFAULT_BANNERS,
    ) -> None:
        self.registry = registry
        self.source = source
        self._guard = guard
        self._cancelled = cancel_event or threading.Event()
        self._banners = tuple(banners)
        self.state = LoopState.running
        self.accepted = 0
        self.line_number = 0

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def steps(self) -> Iterator[LineOutcome]:
        """Yield one outcome per line until end of stream or cancellation."""
        try:
            while not self._cancelled.is_set():
                try:
                    line = self.source.read_line(self._cancelled)
                except LineSourceError as exc:
                    logger.error("Line source failed: %s", exc, extra={"accepted": self.accepted})
                    raise
                if line is None:
                    break
                self.line_number += 1
                yield self._apply(line)
        finally:
            self.state = LoopState.stopped
            logger.info(
                "Ingestion stopped",
                extra={"accepted": self.accepted, "line_number": self.line_number},
            )

    def run(self, on_outcome: Optional[Callable[[LineOutcome], None]] = None) -> IngestionReport:
        report = IngestionReport()
        try:
            for outcome in self.steps():
                report.record(outcome)
                if on_outcome is not None:
                    on_outcome(outcome)
        finally:
            report.state = self.state
        return report

    def _apply(self, line: str) -> LineOutcome:
        command = classify(line, self._banners)
        number = self.line_number
        raw = line.rstrip("\r\n")

        if isinstance(command, Ignore):
            return LineOutcome(number, raw, OutcomeStatus.ignored, accepted_total=self.accepted)

        if isinstance(command, Malformed):
            logger.warning(
                "Malformed line: %s",
                command.detail or command.reason.value,
                extra={"line_number": number, "reason": command.reason.value, "raw_line": raw},
            )
            return LineOutcome(
                number,
                raw,
                OutcomeStatus.malformed,
                reason=command.reason.value,
                detail=command.detail,
                accepted_total=self.accepted,
            )

        assert isinstance(command, Record)
        return self._record(number, raw, command)

    def _record(self, number: int, raw: str, command: Record) -> LineOutcome:
        extra = {"line_number": number, "sensor_id": command.sensor_id, "kind": command.kind.value}
        with self._guard if self._guard is not None else nullcontext():
            created = command.sensor_id not in self.registry
            try:
                sensor = self.registry.find_or_create(command.sensor_id, command.kind)
                sensor.add_reading(command.value)
            except InvalidId as exc:
                logger.warning("Rejected reading: %s", exc, extra={**extra, "reason": exc.reason})
                return LineOutcome(
                    number, raw, OutcomeStatus.rejected, command.sensor_id,
                    reason=exc.reason, detail=str(exc), accepted_total=self.accepted,
                )
            except KindMismatch as exc:
                logger.warning("Discarded reading: %s", exc, extra={**extra, "reason": exc.reason})
                return LineOutcome(
                    number, raw, OutcomeStatus.kind_mismatch, command.sensor_id,
                    reason=exc.reason, detail=str(exc), accepted_total=self.accepted,
                )
            self.accepted += 1

        status = OutcomeStatus.created if created else OutcomeStatus.accepted
        logger.info(
            "Reading %s", status.value, extra={**extra, "value": command.value, "accepted": self.accepted}
        )
        return LineOutcome(number, raw, status, command.sensor_id, accepted_total=self.accepted)
