"""Violation period extraction, gap merging and per-day grouping."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from models.records import DayGroup, PeriodType, Reading, ViolationPeriod
from services.compliance import period_type_for
from settings import (
    DEFAULT_COMPLIANCE_POLICY,
    DEFAULT_GAP_TOLERANCE_MINUTES,
    CompliancePolicy,
)

logger = logging.getLogger(__name__)


@dataclass
class _OpenPeriod:
    type: PeriodType
    readings: List[Reading] = field(default_factory=list)

    def finalize(self) -> ViolationPeriod:
        temperatures = [reading.temperature for reading in self.readings]
        return ViolationPeriod(
            start=self.readings[0].timestamp,
            end=self.readings[-1].timestamp,
            duration=len(self.readings),
            min_temperature=min(temperatures),
            avg_temperature=sum(temperatures) / len(temperatures),
            max_temperature=max(temperatures),
            type=self.type,
        )


def extract_violation_periods(
    readings: Iterable[Reading],
    policy: CompliancePolicy = DEFAULT_COMPLIANCE_POLICY,
) -> List[ViolationPeriod]:
    """Split a time-sorted series into maximal runs of same-type violations.

    A compliant reading closes the open run; a violation of the other
    type closes it and opens a new one.
    """
    periods: List[ViolationPeriod] = []
    current: Optional[_OpenPeriod] = None

    for reading in readings:
        if reading.is_compliant:
            if current is not None:
                periods.append(current.finalize())
                current = None
            continue

        period_type = period_type_for(reading.timestamp, policy)
        if current is not None and current.type is period_type:
            current.readings.append(reading)
            continue

        if current is not None:
            periods.append(current.finalize())
        current = _OpenPeriod(type=period_type, readings=[reading])

    if current is not None:
        periods.append(current.finalize())
    return periods


def _gap_minutes(earlier: ViolationPeriod, later: ViolationPeriod) -> float:
    return (later.start - earlier.end) / timedelta(minutes=1)


def _merge_pair(
    current: ViolationPeriod, following: ViolationPeriod, gap: float
) -> ViolationPeriod:
    weight = current.duration + following.duration
    return replace(
        current,
        end=following.end,
        duration=current.duration + following.duration + math.floor(gap + 0.5),
        min_temperature=min(current.min_temperature, following.min_temperature),
        max_temperature=max(current.max_temperature, following.max_temperature),
        avg_temperature=(
            current.avg_temperature * current.duration
            + following.avg_temperature * following.duration
        )
        / weight,
    )


def merge_close_periods(
    periods: Sequence[ViolationPeriod],
    gap_tolerance_minutes: float = DEFAULT_GAP_TOLERANCE_MINUTES,
) -> List[ViolationPeriod]:
    """Join chronologically adjacent periods of one type separated by a small gap.

    Bridged gap minutes are added to the merged duration.
    """
    if not periods:
        return []

    merged: List[ViolationPeriod] = []
    current = periods[0]
    for following in periods[1:]:
        gap = _gap_minutes(current, following)
        if following.type is current.type and gap <= gap_tolerance_minutes:
            current = _merge_pair(current, following, gap)
        else:
            merged.append(current)
            current = following
    merged.append(current)
    return merged


def identify_violation_periods(
    readings: Sequence[Reading],
    gap_tolerance_minutes: float = DEFAULT_GAP_TOLERANCE_MINUTES,
    policy: CompliancePolicy = DEFAULT_COMPLIANCE_POLICY,
) -> List[ViolationPeriod]:
    raw_periods = extract_violation_periods(readings, policy)
    merged = merge_close_periods(raw_periods, gap_tolerance_minutes)
    logger.debug(
        "Identified violation periods (%d before merging)",
        len(raw_periods),
        extra={"reading_count": len(readings), "period_count": len(merged)},
    )
    return merged


def longest_periods(
    periods: Iterable[ViolationPeriod], limit: int = 10
) -> List[ViolationPeriod]:
    """Return the ``limit`` longest periods, longest first."""
    ranked = sorted(periods, key=lambda period: period.duration, reverse=True)
    return ranked[:limit]


def _local_midnight(timestamp: datetime) -> datetime:
    return timestamp.replace(hour=0, minute=0, second=0, microsecond=0)


def group_periods_by_day(periods: Iterable[ViolationPeriod]) -> List[DayGroup]:
    """Group periods by the calendar day they start on, most recent day first."""
    by_day: Dict[datetime, List[ViolationPeriod]] = {}
    for period in periods:
        by_day.setdefault(_local_midnight(period.start), []).append(period)

    groups = [
        DayGroup(
            date=day,
            periods=sorted(day_periods, key=lambda period: period.start),
        )
        for day, day_periods in by_day.items()
    ]
    groups.sort(key=lambda group: group.date, reverse=True)
    return groups
