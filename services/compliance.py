"""Heating-law compliance rule and summary statistics."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from models.records import ComplianceResult, ComplianceStats, PeriodType, Reading
from settings import DEFAULT_COMPLIANCE_POLICY, CompliancePolicy

_OUT_OF_SEASON = ComplianceResult(is_compliant=True, required_temperature=0)


def is_heating_season(
    timestamp: datetime, policy: CompliancePolicy = DEFAULT_COMPLIANCE_POLICY
) -> bool:
    return timestamp.month in policy.season_months


def period_type_for(
    timestamp: datetime, policy: CompliancePolicy = DEFAULT_COMPLIANCE_POLICY
) -> PeriodType:
    """Classify a timestamp as daytime or nighttime by its local hour."""
    if policy.day_start_hour <= timestamp.hour < policy.day_end_hour:
        return PeriodType.daytime
    return PeriodType.nighttime


def check_compliance(
    timestamp: datetime,
    temperature: float,
    outdoor_temperature: Optional[float] = None,
    policy: CompliancePolicy = DEFAULT_COMPLIANCE_POLICY,
) -> ComplianceResult:
    """Evaluate one indoor reading against the heat season rules.

    Outside the season the rule is inert. The daytime minimum is waived
    when the outdoor temperature is known and at or above the waiver
    threshold; an unknown outdoor temperature keeps the requirement in
    force. The nighttime minimum always applies.
    """
    if not is_heating_season(timestamp, policy):
        return _OUT_OF_SEASON

    if period_type_for(timestamp, policy) is PeriodType.daytime:
        required = policy.daytime_minimum
        if (
            outdoor_temperature is not None
            and outdoor_temperature >= policy.outdoor_waiver_threshold
        ):
            return ComplianceResult(is_compliant=True, required_temperature=required)
        return ComplianceResult(
            is_compliant=temperature >= required, required_temperature=required
        )

    required = policy.nighttime_minimum
    return ComplianceResult(
        is_compliant=temperature >= required, required_temperature=required
    )


def calculate_compliance_stats(
    readings: Iterable[Reading],
    policy: CompliancePolicy = DEFAULT_COMPLIANCE_POLICY,
) -> ComplianceStats:
    total = 0
    compliant = 0
    daytime = 0
    nighttime = 0

    for reading in readings:
        total += 1
        if reading.is_compliant:
            compliant += 1
        elif period_type_for(reading.timestamp, policy) is PeriodType.daytime:
            daytime += 1
        else:
            nighttime += 1

    if not total:
        return ComplianceStats()

    violations = total - compliant
    return ComplianceStats(
        total_readings=total,
        compliant_readings=compliant,
        violation_readings=violations,
        compliance_rate=compliant / total * 100,
        daytime_violations=daytime,
        nighttime_violations=nighttime,
        # One reading per minute.
        total_violation_hours=violations / 60,
    )
