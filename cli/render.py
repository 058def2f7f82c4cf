from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping

import typer

from services.ingestion import LineOutcome, OutcomeStatus


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _format_value(value: Any, kind: str | None) -> str:
    if kind == "float" and isinstance(value, (int, float)):
        return f"{value:.1f}"
    return str(value)


def render_aggregate(payload: Mapping[str, Any]) -> str:
    if payload.get("empty_history") or payload.get("aggregate") is None:
        return "no readings to process"
    name = payload.get("aggregate_name", "aggregate")
    value = payload["aggregate"]
    precision = 2 if name == "mean" else 1
    return f"{name} {value:.{precision}f} {payload.get('unit', '')}".rstrip()


def render_sensor(payload: Mapping[str, Any]) -> None:
    echo_heading(f"Sensor {payload.get('sensor_id')}")
    echo_key_values(
        [
            ("type", payload.get("sensor_type")),
            ("kind", payload.get("kind")),
            ("readings", payload.get("reading_count")),
        ]
    )
    values = payload.get("values") or []
    if values:
        unit = payload.get("unit", "")
        formatted = " ".join(
            f"{_format_value(value, payload.get('kind'))}{unit}" for value in values
        )
        typer.echo(f"history: {formatted}")
    typer.echo(f"aggregate: {render_aggregate(payload)}")


def render_sensors(payloads: Iterable[Mapping[str, Any]]) -> None:
    rendered = False
    for payload in payloads:
        if rendered:
            typer.echo()
        render_sensor(payload)
        rendered = True
    if not rendered:
        typer.echo("No sensors registered.")


def render_processing(payloads: Iterable[Mapping[str, Any]]) -> None:
    echo_heading("Processing sensors")
    count = 0
    for payload in payloads:
        count += 1
        typer.echo(
            f"  - {payload.get('sensor_id')} [{payload.get('sensor_type')}]: "
            f"{render_aggregate(payload)}"
        )
    if not count:
        typer.echo("No sensors registered.")


def render_outcome(outcome: LineOutcome) -> None:
    if outcome.status is OutcomeStatus.ignored:
        return
    prefix = f"line {outcome.line_number}"
    if outcome.status in (OutcomeStatus.created, OutcomeStatus.accepted):
        verb = "created" if outcome.status is OutcomeStatus.created else "updated"
        typer.secho(
            f"{prefix}: {verb} sensor {outcome.sensor_id} (total accepted: {outcome.accepted_total})",
            fg=typer.colors.GREEN,
        )
        return
    subject = f" {outcome.sensor_id}" if outcome.sensor_id else ""
    detail = f" ({outcome.detail})" if outcome.detail else ""
    typer.secho(
        f"{prefix}:{subject} {outcome.reason}{detail}: {outcome.raw_line!r}",
        fg=typer.colors.YELLOW,
        err=True,
    )


def render_summary(summary: Dict[str, Any]) -> None:
    echo_heading("Ingestion Summary")
    echo_key_values(
        [
            ("lines_read", summary.get("lines_read")),
            ("accepted", summary.get("accepted")),
            ("created", summary.get("created")),
            ("ignored", summary.get("ignored")),
            ("malformed", summary.get("malformed")),
            ("kind_mismatch", summary.get("kind_mismatch")),
            ("rejected", summary.get("rejected")),
        ]
    )
    problems = [
        outcome
        for outcome in summary.get("outcomes") or []
        if outcome.get("status") in {"malformed", "kind_mismatch", "rejected"}
    ]
    if problems:
        typer.echo()
        echo_heading("Rejected lines")
        for outcome in problems:
            typer.echo(
                f"  - line {outcome.get('line_number')}: {outcome.get('reason')} "
                f"{outcome.get('raw_line')!r}"
            )
