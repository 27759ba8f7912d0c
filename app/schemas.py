"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.records import PeriodType, RadiatorStatus, TimeInterval


class _FromRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class ComplianceCheckRequest(BaseModel):
    """A single reading to evaluate against the heating rules."""

    timestamp: datetime
    temperature: float
    outdoor_temperature: Optional[float] = None


class ComplianceResultSchema(_FromRecord):
    is_compliant: bool
    required_temperature: float


class ComplianceStatsSchema(_FromRecord):
    total_readings: int = Field(..., ge=0)
    compliant_readings: int = Field(..., ge=0)
    violation_readings: int = Field(..., ge=0)
    compliance_rate: float = Field(..., description="Percentage of compliant readings.")
    daytime_violations: int = Field(..., ge=0)
    nighttime_violations: int = Field(..., ge=0)
    total_violation_hours: float


class AggregatedBucketSchema(_FromRecord):
    timestamp: datetime
    avg_temperature: float
    min_temperature: float
    max_temperature: float
    avg_humidity: float
    is_compliant: bool
    violation_count: int = Field(..., ge=0)
    total_readings: int = Field(..., ge=1)
    avg_outdoor_temperature: Optional[float] = None


class ViolationPeriodSchema(_FromRecord):
    start: datetime
    end: datetime
    duration: int = Field(..., description="Minutes, counted as one per reading.")
    min_temperature: float
    avg_temperature: float
    max_temperature: float
    type: PeriodType


class DayGroupSchema(_FromRecord):
    date: datetime
    periods: List[ViolationPeriodSchema] = Field(default_factory=list)


class DateRangeSchema(_FromRecord):
    start: datetime
    end: datetime


class RowErrorSchema(_FromRecord):
    """Details about a row that failed parsing."""

    row_number: int = Field(..., ge=1)
    reason: str


class ComplianceReportResponse(_FromRecord):
    """Full compliance analysis of an uploaded export."""

    stats: ComplianceStatsSchema
    buckets: Dict[TimeInterval, List[AggregatedBucketSchema]] = Field(default_factory=dict)
    periods: List[ViolationPeriodSchema] = Field(default_factory=list)
    day_groups: List[DayGroupSchema] = Field(default_factory=list)
    longest_periods: List[ViolationPeriodSchema] = Field(default_factory=list)
    date_range: Optional[DateRangeSchema] = None
    errors: List[RowErrorSchema] = Field(default_factory=list)
    outdoor_available: bool = False


class RadiatorBucketSchema(_FromRecord):
    timestamp: datetime
    avg_temperature: float
    min_temperature: float
    max_temperature: float
    avg_humidity: float
    status: RadiatorStatus
    total_readings: int = Field(..., ge=1)


class StatusZoneSchema(_FromRecord):
    start: datetime
    end: datetime
    status: RadiatorStatus


class RadiatorReportResponse(_FromRecord):
    interval: TimeInterval
    buckets: List[RadiatorBucketSchema] = Field(default_factory=list)
    zones: List[StatusZoneSchema] = Field(default_factory=list)
    date_range: Optional[DateRangeSchema] = None
    errors: List[RowErrorSchema] = Field(default_factory=list)
