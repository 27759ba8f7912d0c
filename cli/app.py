from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional

import typer

from app.schemas import ComplianceReportResponse, RadiatorReportResponse
from cli.client import ApiClient
from cli.config import DEFAULT_TOP_PERIODS, CLIConfig, load_config
from cli.render import render_radiator_report, render_report
from logging_config import configure_logging
from models.records import TimeInterval
from services.processor import ReportService, create_report_service


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Check apartment temperature exports against the NYC heating rules.",
    context_settings={"help_option_names": ["-h", "--help"]},
)

_DATE_FORMATS = ["%Y-%m-%d"]


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


def _as_date(value: Optional[datetime]) -> Optional[date]:
    return value.date() if value is not None else None


def _as_iso(value: Optional[datetime]) -> Optional[str]:
    return value.date().isoformat() if value is not None else None


def _read_text(file: Path) -> str:
    return file.read_text(encoding="utf-8-sig")


def _local_service(ctx: typer.Context, include_outdoor: bool) -> ReportService:
    service = create_report_service(include_outdoor=include_outdoor)
    ctx.call_on_close(service.shutdown)
    return service


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Compliance API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for API responses.",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to LOG_LEVEL env or INFO).",
    ),
) -> None:
    """Entry point for the CLI."""
    configure_logging(log_level.upper() if log_level else None)
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("analyze")
def analyze_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Path to CSV export."),
    interval: List[TimeInterval] = typer.Option(
        [TimeInterval.one_hour.value],
        "--interval",
        "-i",
        help="Bucket width; repeat for several.",
    ),
    gap_tolerance: Optional[float] = typer.Option(
        None, "--gap-tolerance", min=0, help="Minutes between violation periods to merge."
    ),
    start: Optional[datetime] = typer.Option(None, "--start", formats=_DATE_FORMATS),
    end: Optional[datetime] = typer.Option(None, "--end", formats=_DATE_FORMATS),
    days: Optional[int] = typer.Option(None, "--days", min=1, help="Only the last N days."),
    outdoor: bool = typer.Option(
        False, "--outdoor/--no-outdoor", help="Fetch outdoor temperatures for the daytime waiver."
    ),
    top: int = typer.Option(DEFAULT_TOP_PERIODS, "--top", min=1, help="Longest periods to list."),
) -> None:
    """Analyze a CSV export locally."""
    service = _local_service(ctx, include_outdoor=outdoor)
    try:
        report = service.build_report(
            _read_text(file),
            intervals=interval,
            gap_tolerance_minutes=gap_tolerance,
            start=_as_date(start),
            end=_as_date(end),
            days=days,
            include_outdoor=outdoor,
            source=file.name,
        )
    except ValueError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    payload = ComplianceReportResponse.model_validate(report).model_dump(mode="json")
    render_report(payload, top=top)


@app.command("upload")
def upload_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Path to CSV export."),
    interval: List[TimeInterval] = typer.Option(
        [TimeInterval.one_hour.value],
        "--interval",
        "-i",
        help="Bucket width; repeat for several.",
    ),
    gap_tolerance: Optional[float] = typer.Option(None, "--gap-tolerance", min=0),
    start: Optional[datetime] = typer.Option(None, "--start", formats=_DATE_FORMATS),
    end: Optional[datetime] = typer.Option(None, "--end", formats=_DATE_FORMATS),
    days: Optional[int] = typer.Option(None, "--days", min=1),
    outdoor: bool = typer.Option(False, "--outdoor/--no-outdoor"),
    top: int = typer.Option(DEFAULT_TOP_PERIODS, "--top", min=1),
) -> None:
    """Send a CSV export to the compliance API and display the report."""
    state = _get_state(ctx)
    typer.echo(f"Uploading {file} to {state.config.base_url} ...")
    payload = state.client.create_report(
        file,
        intervals=[value.value for value in interval],
        gap_tolerance=gap_tolerance,
        start=_as_iso(start),
        end=_as_iso(end),
        days=days,
        outdoor=outdoor,
    )
    typer.echo()
    render_report(payload, top=top)


@app.command("radiator")
def radiator_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Path to radiator CSV export."),
    interval: TimeInterval = typer.Option(TimeInterval.one_hour.value, "--interval", "-i"),
    start: Optional[datetime] = typer.Option(None, "--start", formats=_DATE_FORMATS),
    end: Optional[datetime] = typer.Option(None, "--end", formats=_DATE_FORMATS),
    days: Optional[int] = typer.Option(None, "--days", min=1),
    remote: bool = typer.Option(
        False, "--remote/--local", help="Classify through the compliance API instead of locally."
    ),
) -> None:
    """Classify radiator heating status."""
    if remote:
        state = _get_state(ctx)
        typer.echo(f"Uploading {file} to {state.config.base_url} ...")
        payload = state.client.create_radiator_report(
            file,
            interval=interval.value,
            start=_as_iso(start),
            end=_as_iso(end),
            days=days,
        )
        typer.echo()
        render_radiator_report(payload)
        return

    service = _local_service(ctx, include_outdoor=False)
    try:
        report = service.build_radiator_report(
            _read_text(file),
            interval=interval,
            start=_as_date(start),
            end=_as_date(end),
            days=days,
            source=file.name,
        )
    except ValueError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    payload = RadiatorReportResponse.model_validate(report).model_dump(mode="json")
    render_radiator_report(payload)
