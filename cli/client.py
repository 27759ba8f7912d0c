from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the compliance service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def create_report(
        self,
        path: Path,
        intervals: List[str],
        gap_tolerance: Optional[float] = None,
        start: Optional[str] = None,
        end: Optional[str] = None,
        days: Optional[int] = None,
        outdoor: bool = False,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"interval": intervals, "outdoor": outdoor}
        optional = {"gap_tolerance": gap_tolerance, "start": start, "end": end, "days": days}
        params.update({key: value for key, value in optional.items() if value is not None})
        return self._post_file("/reports", path, params)

    def create_radiator_report(
        self,
        path: Path,
        interval: str,
        start: Optional[str] = None,
        end: Optional[str] = None,
        days: Optional[int] = None,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"interval": interval}
        optional = {"start": start, "end": end, "days": days}
        params.update({key: value for key, value in optional.items() if value is not None})
        return self._post_file("/radiator", path, params)

    def _post_file(self, route: str, path: Path, params: Dict[str, Any]) -> Dict[str, Any]:
        if not path.exists():
            raise typer.BadParameter(f"File {path} does not exist.")
        if not path.is_file():
            raise typer.BadParameter(f"Path {path} is not a file.")

        try:
            with path.open("rb") as handle:
                response = self._client.post(
                    route,
                    params=params,
                    files={"file": (path.name, handle, "text/csv")},
                )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.HTTPError as exc:
            typer.secho(f"Could not reach {self._config.base_url}: {exc}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1)
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
