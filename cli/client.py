from __future__ import annotations

from typing import Any, Dict, Iterable, List, Union
from urllib.parse import quote

import httpx
import typer

from cli.config import CLIConfig


def _quote_id(sensor_id: str) -> str:
    return quote(sensor_id, safe="")


class ApiClient:
    """Minimal HTTP client for the sensor registry service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.http_timeout)

    def close(self) -> None:
        self._client.close()

    def create_sensor(self, sensor_id: str, kind: str) -> Dict[str, Any]:
        return self._request("POST", "/sensors", json={"sensor_id": sensor_id, "kind": kind})

    def add_reading(self, sensor_id: str, value: Union[int, float]) -> Dict[str, Any]:
        return self._request(
            "POST", f"/sensors/{_quote_id(sensor_id)}/readings", json={"value": value}
        )

    def get_sensor(self, sensor_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/sensors/{_quote_id(sensor_id)}")

    def list_sensors(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/sensors")

    def send_lines(self, lines: Iterable[str]) -> Dict[str, Any]:
        return self._request("POST", "/ingest", json={"lines": list(lines)})

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, path, **kwargs)
            if response.status_code == 404:
                raise typer.BadParameter(self._detail(response) or f"{path} was not found.")
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1) from exc
        return response.json()

    @staticmethod
    def _detail(response: httpx.Response) -> str | None:
        try:
            detail = response.json().get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = response.text.strip()
        return str(detail) if detail else None

    @classmethod
    def _handle_http_error(cls, exc: httpx.HTTPStatusError) -> None:
        detail = cls._detail(exc.response)
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
