"""Turns raw sensor rows into compliance-annotated readings."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional, Sequence, TypeVar

from models.records import DateRange, OutdoorTemperatureReading, Reading, SensorReading
from services.compliance import check_compliance
from services.outdoor import find_outdoor_temperature
from settings import (
    DEFAULT_COMPLIANCE_POLICY,
    DEFAULT_OUTDOOR_TOLERANCE_MINUTES,
    CompliancePolicy,
)

_Timestamped = TypeVar("_Timestamped", SensorReading, Reading)


def enrich_readings(
    sensor_readings: Iterable[SensorReading],
    outdoor_readings: Optional[Sequence[OutdoorTemperatureReading]] = None,
    tolerance_minutes: float = DEFAULT_OUTDOOR_TOLERANCE_MINUTES,
    policy: CompliancePolicy = DEFAULT_COMPLIANCE_POLICY,
) -> List[Reading]:
    """Apply the compliance rule to every row and return them time-sorted.

    Without outdoor data every reading is evaluated indoor-only.
    """
    outdoor = outdoor_readings or ()
    enriched: List[Reading] = []
    for raw in sorted(sensor_readings, key=lambda reading: reading.timestamp):
        outdoor_temperature = find_outdoor_temperature(
            raw.timestamp, outdoor, tolerance_minutes
        )
        verdict = check_compliance(
            raw.timestamp, raw.temperature, outdoor_temperature, policy
        )
        enriched.append(
            Reading(
                timestamp=raw.timestamp,
                temperature=raw.temperature,
                humidity=raw.humidity,
                is_compliant=verdict.is_compliant,
                required_temperature=verdict.required_temperature,
                outdoor_temperature=outdoor_temperature,
            )
        )
    return enriched


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max)


def resolve_date_range(
    available_start: datetime,
    available_end: datetime,
    start: Optional[date] = None,
    end: Optional[date] = None,
    days: Optional[int] = None,
) -> DateRange:
    """Build whole-day bounds for analysis.

    ``days`` selects the last N calendar days of the available data and
    takes precedence over explicit bounds. Without any selection the full
    available range is used. Bounds that cross collapse to a single day.
    """
    if days is not None:
        range_end = end_of_day(available_end.date())
        range_start = start_of_day(available_end.date() - timedelta(days=days - 1))
        earliest = start_of_day(available_start.date())
        return DateRange(start=max(range_start, earliest), end=range_end)

    range_start = start_of_day(start or available_start.date())
    range_end = end_of_day(end or available_end.date())
    if range_end < range_start:
        if start is not None and end is None:
            range_end = end_of_day(start)
        else:
            range_start = start_of_day(range_end.date())
    return DateRange(start=range_start, end=range_end)


def filter_by_date_range(
    readings: Iterable[_Timestamped], date_range: DateRange
) -> List[_Timestamped]:
    return [reading for reading in readings if date_range.contains(reading.timestamp)]
