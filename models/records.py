"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional


class PeriodType(str, Enum):
    """Which heating requirement a violation falls under."""

    daytime = "daytime"
    nighttime = "nighttime"


class RadiatorStatus(str, Enum):
    on = "on"
    cooling = "cooling"
    off = "off"


class TimeInterval(str, Enum):
    """Bucket widths offered for aggregation."""

    one_minute = "1min"
    five_minutes = "5min"
    thirty_minutes = "30min"
    one_hour = "1hour"

    @property
    def minutes(self) -> int:
        return _INTERVAL_MINUTES[self]


_INTERVAL_MINUTES = {
    TimeInterval.one_minute: 1,
    TimeInterval.five_minutes: 5,
    TimeInterval.thirty_minutes: 30,
    TimeInterval.one_hour: 60,
}


@dataclass(frozen=True, slots=True)
class SensorReading:
    """A single validated row from a sensor export."""

    timestamp: datetime
    temperature: float
    humidity: float


@dataclass(frozen=True, slots=True)
class OutdoorTemperatureReading:
    timestamp: datetime
    temperature: float


@dataclass(frozen=True, slots=True)
class ComplianceResult:
    is_compliant: bool
    required_temperature: float


@dataclass(frozen=True, slots=True)
class Reading:
    """An indoor reading enriched with its compliance verdict."""

    timestamp: datetime
    temperature: float
    humidity: float
    is_compliant: bool
    required_temperature: float
    outdoor_temperature: Optional[float] = None


@dataclass(frozen=True, slots=True)
class AggregatedBucket:
    timestamp: datetime
    avg_temperature: float
    min_temperature: float
    max_temperature: float
    avg_humidity: float
    is_compliant: bool
    violation_count: int
    total_readings: int
    avg_outdoor_temperature: Optional[float] = None


@dataclass(frozen=True, slots=True)
class ViolationPeriod:
    """A run of non-compliant readings of one type.

    ``duration`` counts readings, which equals minutes only for a
    one-reading-per-minute export. Merged periods also include the
    bridged gap minutes.
    """

    start: datetime
    end: datetime
    duration: int
    min_temperature: float
    avg_temperature: float
    max_temperature: float
    type: PeriodType


@dataclass(frozen=True, slots=True)
class DayGroup:
    date: datetime
    periods: List[ViolationPeriod]


@dataclass(frozen=True, slots=True)
class ComplianceStats:
    total_readings: int = 0
    compliant_readings: int = 0
    violation_readings: int = 0
    compliance_rate: float = 0.0
    daytime_violations: int = 0
    nighttime_violations: int = 0
    total_violation_hours: float = 0.0


@dataclass(frozen=True, slots=True)
class RadiatorReading:
    timestamp: datetime
    temperature: float
    humidity: float
    status: RadiatorStatus


@dataclass(frozen=True, slots=True)
class AggregatedRadiatorBucket:
    timestamp: datetime
    avg_temperature: float
    min_temperature: float
    max_temperature: float
    avg_humidity: float
    status: RadiatorStatus
    total_readings: int


@dataclass(frozen=True, slots=True)
class StatusZone:
    start: datetime
    end: datetime
    status: RadiatorStatus


@dataclass(frozen=True, slots=True)
class DateRange:
    """Inclusive bounds used to trim readings before analysis."""

    start: datetime
    end: datetime

    def contains(self, timestamp: datetime) -> bool:
        return self.start <= timestamp <= self.end
