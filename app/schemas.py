"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, Field, StrictFloat, StrictInt

from models.readings import NumericKind
from models.sensors import SensorSnapshot
from services.ingestion import IngestionReport, LineOutcome, OutcomeStatus


class SensorCreate(BaseModel):
    """Payload for manually registering an empty sensor."""

    sensor_id: str = Field(..., description="Unique, case-sensitive sensor identifier.")
    kind: NumericKind = Field(..., description="'float' for temperature, 'integer' for pressure.")


class ReadingCreate(BaseModel):
    """Payload for manually recording one reading."""

    value: Union[StrictInt, StrictFloat] = Field(..., description="Booleans and numeric strings are rejected.")


class SensorView(BaseModel):
    """Presentation snapshot of one sensor."""

    sensor_id: str
    kind: NumericKind
    sensor_type: str
    unit: str
    reading_count: int = Field(..., ge=0)
    values: List[Union[int, float]] = Field(default_factory=list)
    aggregate: Optional[float] = Field(
        default=None, description="Mean (pressure) or minimum (temperature); null when empty."
    )
    aggregate_name: str
    empty_history: bool

    @classmethod
    def from_snapshot(cls, snapshot: SensorSnapshot) -> "SensorView":
        return cls(
            sensor_id=snapshot.sensor_id,
            kind=snapshot.kind,
            sensor_type=snapshot.sensor_type,
            unit=snapshot.unit,
            reading_count=snapshot.reading_count,
            values=list(snapshot.values),
            aggregate=snapshot.aggregate,
            aggregate_name=snapshot.aggregate_name,
            empty_history=snapshot.is_empty,
        )


class LineBatch(BaseModel):
    """Raw protocol lines, e.g. ``["T T-001 23.5", "P P-010 101325"]``."""

    lines: List[str] = Field(default_factory=list)


class LineOutcomeView(BaseModel):
    line_number: int = Field(..., ge=1)
    raw_line: str
    status: OutcomeStatus
    sensor_id: Optional[str] = None
    reason: Optional[str] = None
    detail: Optional[str] = None


class IngestionSummary(BaseModel):
    """Result of running a batch of lines through the ingestion loop."""

    lines_read: int = Field(..., ge=0)
    accepted: int = Field(..., ge=0)
    created: int = Field(..., ge=0)
    ignored: int = Field(..., ge=0)
    malformed: int = Field(..., ge=0)
    kind_mismatch: int = Field(..., ge=0)
    rejected: int = Field(..., ge=0)
    outcomes: List[LineOutcomeView] = Field(default_factory=list)

    @classmethod
    def from_report(cls, report: IngestionReport, outcomes: List[LineOutcome]) -> "IngestionSummary":
        return cls(
            lines_read=report.lines_read,
            accepted=report.accepted,
            created=report.count(OutcomeStatus.created),
            ignored=report.count(OutcomeStatus.ignored),
            malformed=report.count(OutcomeStatus.malformed),
            kind_mismatch=report.count(OutcomeStatus.kind_mismatch),
            rejected=report.count(OutcomeStatus.rejected),
            outcomes=[
                LineOutcomeView(
                    line_number=outcome.line_number,
                    raw_line=outcome.raw_line,
                    status=outcome.status,
                    sensor_id=outcome.sensor_id,
                    reason=outcome.reason,
                    detail=outcome.detail,
                )
                for outcome in outcomes
            ],
        )


class WorkerStatusView(BaseModel):
    running: bool
    source: Optional[str] = None
    lines_read: int = Field(..., ge=0)
    accepted: int = Field(..., ge=0)
    error: Optional[str] = None
