from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def format_duration(minutes: int) -> str:
    hours, mins = divmod(int(minutes), 60)
    if hours > 0:
        return f"{hours}h {mins}m"
    return f"{mins}m"


def _format_time(value: Any, fmt: str) -> str:
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    return value.strftime(fmt)


def _format_period(period: Dict[str, Any]) -> str:
    label = "Day" if period.get("type") == "daytime" else "Night"
    return (
        f"[{label}] {format_duration(period.get('duration', 0))} "
        f"{_format_time(period['start'], '%b %d, %Y %I:%M %p')} -> "
        f"{_format_time(period['end'], '%b %d, %Y %I:%M %p')} "
        f"min {period.get('min_temperature', 0):.1f}°F "
        f"avg {period.get('avg_temperature', 0):.1f}°F"
    )


def render_report(payload: Dict[str, Any], top: int = 10) -> None:
    stats = payload.get("stats") or {}
    echo_heading("Compliance Summary")
    echo_key_values(
        [
            ("total_readings", stats.get("total_readings")),
            ("compliant_readings", stats.get("compliant_readings")),
            ("violation_readings", stats.get("violation_readings")),
            ("compliance_rate", f"{stats.get('compliance_rate', 0.0):.1f}%"),
            ("daytime_violations", stats.get("daytime_violations")),
            ("nighttime_violations", stats.get("nighttime_violations")),
            ("total_violation_hours", f"{stats.get('total_violation_hours', 0.0):.1f}"),
            ("outdoor_data", "yes" if payload.get("outdoor_available") else "no"),
        ]
    )

    date_range = payload.get("date_range")
    if date_range:
        echo_key_values(
            [
                ("from", _format_time(date_range["start"], "%Y-%m-%d")),
                ("to", _format_time(date_range["end"], "%Y-%m-%d")),
            ]
        )

    periods = payload.get("longest_periods") or []
    typer.echo()
    echo_heading("Top Violation Periods")
    if periods:
        total = len(payload.get("periods") or [])
        typer.echo(f"showing {min(top, len(periods))} of {total}")
        for period in periods[:top]:
            typer.echo(f"  - {_format_period(period)}")
    else:
        typer.echo("No violations detected - all temperatures are compliant!")

    day_groups = payload.get("day_groups") or []
    if day_groups:
        typer.echo()
        echo_heading("Violations by Day")
        for group in day_groups:
            typer.echo(f"{_format_time(group['date'], '%a %b %d, %Y')}:")
            for period in group.get("periods") or []:
                typer.echo(f"  - {_format_period(period)}")

    errors = payload.get("errors") or []
    typer.echo()
    echo_heading("Skipped Rows")
    if errors:
        for error in errors:
            typer.echo(f"  - row {error.get('row_number')}: {error.get('reason')}")
    else:
        typer.echo("No rows skipped.")


def render_radiator_report(payload: Dict[str, Any]) -> None:
    echo_heading("Radiator Status")
    echo_key_values(
        [
            ("interval", payload.get("interval")),
            ("buckets", len(payload.get("buckets") or [])),
        ]
    )
    zones = payload.get("zones") or []
    typer.echo()
    echo_heading("Status Zones")
    if not zones:
        typer.echo("No radiator readings.")
    for zone in zones:
        typer.echo(
            f"  - {zone.get('status')}: "
            f"{_format_time(zone['start'], '%m/%d %I:%M %p')} -> "
            f"{_format_time(zone['end'], '%m/%d %I:%M %p')}"
        )
