"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from app.schemas import (
    IngestionSummary,
    LineBatch,
    ReadingCreate,
    SensorCreate,
    SensorView,
    WorkerStatusView,
)
from models.errors import DuplicateId, InvalidId, KindMismatch
from services.monitor import MonitorService, build_default_monitor

router = APIRouter()


def get_monitor() -> MonitorService:
    return build_default_monitor()


@router.get(
    "/sensors",
    response_model=List[SensorView],
    summary="List every sensor in creation order with its aggregate.",
)
async def list_sensors(monitor: MonitorService = Depends(get_monitor)) -> List[SensorView]:
    return [SensorView.from_snapshot(snapshot) for snapshot in monitor.list_sensors()]


@router.post(
    "/sensors",
    status_code=status.HTTP_201_CREATED,
    response_model=SensorView,
    summary="Register an empty temperature or pressure sensor.",
)
async def create_sensor(
    payload: SensorCreate,
    monitor: MonitorService = Depends(get_monitor),
) -> SensorView:
    try:
        snapshot = monitor.create_sensor(payload.sensor_id, payload.kind)
    except InvalidId as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except DuplicateId as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    return SensorView.from_snapshot(snapshot)


@router.get(
    "/sensors/{sensor_id:path}",
    response_model=SensorView,
    summary="Fetch one sensor's readings and aggregate.",
)
async def get_sensor(
    sensor_id: str,
    monitor: MonitorService = Depends(get_monitor),
) -> SensorView:
    try:
        snapshot = monitor.get_sensor(sensor_id)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=exc.args[0],
        ) from exc
    return SensorView.from_snapshot(snapshot)


@router.post(
    "/sensors/{sensor_id:path}/readings",
    status_code=status.HTTP_201_CREATED,
    response_model=SensorView,
    summary="Record a reading for an existing sensor.",
)
async def add_reading(
    sensor_id: str,
    payload: ReadingCreate,
    monitor: MonitorService = Depends(get_monitor),
) -> SensorView:
    try:
        snapshot = monitor.add_reading(sensor_id, payload.value)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=exc.args[0],
        ) from exc
    except KindMismatch as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    return SensorView.from_snapshot(snapshot)


@router.post(
    "/ingest",
    response_model=IngestionSummary,
    summary="Apply a batch of 'T <id> <value>' / 'P <id> <value>' protocol lines.",
)
async def ingest_lines(
    batch: LineBatch,
    monitor: MonitorService = Depends(get_monitor),
) -> IngestionSummary:
    report, outcomes = monitor.ingest_lines(batch.lines)
    return IngestionSummary.from_report(report, outcomes)


@router.get(
    "/ingest/status",
    response_model=WorkerStatusView,
    summary="State of the background serial ingestion worker.",
)
async def ingestion_status(monitor: MonitorService = Depends(get_monitor)) -> WorkerStatusView:
    worker = monitor.ingestion_status()
    return WorkerStatusView(
        running=worker.running,
        source=worker.source,
        lines_read=worker.lines_read,
        accepted=worker.accepted,
        error=worker.error,
    )


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
