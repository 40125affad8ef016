from __future__ import annotations

import json
from typing import Any, Dict, Iterator, List, Optional

import httpx
import typer

from cli.config import CLIConfig

_EVENT_PREFIX = "data:"


class ApiClient:
    """Minimal HTTP client for the sensor stream service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def send_reading(self, sensor_id: str, temperature: str, humidity: str) -> Dict[str, Any]:
        payload = {"sensorId": sensor_id, "temperature": temperature, "humidity": humidity}
        return self._request("POST", "/api/sensors/data", json=payload)

    def list_sensors(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/sensors")

    def latest(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        params = {"limit": limit} if limit is not None else None
        return self._request("GET", "/api/sensors/latest", params=params)

    def history(self, sensor_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        params = {"limit": limit} if limit is not None else None
        return self._request("GET", f"/api/sensors/{sensor_id}/data", params=params)

    def stats(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/sensors/stats/global")

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/api/health")

    def stream_events(self) -> Iterator[Dict[str, Any]]:
        """Yield decoded events from the server-sent event stream until it ends."""
        try:
            with self._client.stream("GET", "/api/sensors/stream", timeout=None) as response:
                response.raise_for_status()
                for line in response.iter_lines():
                    if not line.startswith(_EVENT_PREFIX):
                        continue
                    yield json.loads(line[len(_EVENT_PREFIX):].strip())
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            self._handle_transport_error(exc)

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            self._handle_transport_error(exc)
        return response.json()

    def _handle_transport_error(self, exc: httpx.TransportError) -> None:
        typer.secho(
            f"Could not reach {self._config.base_url}: {exc}",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(code=1)

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: Any = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        if isinstance(detail, dict):
            errors = detail.get("errors") or []
            reasons = ", ".join(f"{error.get('field')}: {error.get('reason')}" for error in errors)
            detail = reasons or detail.get("message")
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
