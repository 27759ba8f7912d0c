"""Report pipeline: parse, enrich, filter, aggregate and extract violations."""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from functools import lru_cache
from typing import Dict, List, Optional, Sequence

from models.records import (
    AggregatedBucket,
    AggregatedRadiatorBucket,
    ComplianceStats,
    DateRange,
    DayGroup,
    OutdoorTemperatureReading,
    Reading,
    StatusZone,
    TimeInterval,
    ViolationPeriod,
)
from services.aggregator import Aggregator
from services.compliance import calculate_compliance_stats
from services.enrichment import enrich_readings, filter_by_date_range, resolve_date_range
from services.outdoor import OpenMeteoClient, OutdoorDataError
from services.parser import RowError, parse_sensor_csv
from services.radiator import build_status_zones
from services.violations import (
    group_periods_by_day,
    identify_violation_periods,
    longest_periods,
)
from settings import get_settings

logger = logging.getLogger(__name__)

DEFAULT_INTERVALS = (TimeInterval.one_hour,)


@dataclass
class ComplianceReport:
    stats: ComplianceStats
    buckets: Dict[TimeInterval, List[AggregatedBucket]] = field(default_factory=dict)
    periods: List[ViolationPeriod] = field(default_factory=list)
    day_groups: List[DayGroup] = field(default_factory=list)
    longest_periods: List[ViolationPeriod] = field(default_factory=list)
    date_range: Optional[DateRange] = None
    errors: List[RowError] = field(default_factory=list)
    outdoor_available: bool = False


@dataclass
class RadiatorReport:
    interval: TimeInterval
    buckets: List[AggregatedRadiatorBucket] = field(default_factory=list)
    zones: List[StatusZone] = field(default_factory=list)
    date_range: Optional[DateRange] = None
    errors: List[RowError] = field(default_factory=list)


class ReportService:
    """Runs the compliance pipeline over a complete export."""

    def __init__(
        self,
        aggregator: Aggregator,
        outdoor_client: Optional[OpenMeteoClient] = None,
        workers: int = 4,
        gap_tolerance_minutes: Optional[float] = None,
        outdoor_tolerance_minutes: Optional[float] = None,
    ) -> None:
        settings = get_settings()
        self.aggregator = aggregator
        self.outdoor_client = outdoor_client
        self.executor = ThreadPoolExecutor(max_workers=workers)
        self.gap_tolerance_minutes = (
            settings.gap_tolerance_minutes
            if gap_tolerance_minutes is None
            else gap_tolerance_minutes
        )
        self.outdoor_tolerance_minutes = (
            settings.outdoor_tolerance_minutes
            if outdoor_tolerance_minutes is None
            else outdoor_tolerance_minutes
        )

    def build_report(
        self,
        text: str,
        intervals: Sequence[TimeInterval] = DEFAULT_INTERVALS,
        gap_tolerance_minutes: Optional[float] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        days: Optional[int] = None,
        include_outdoor: bool = False,
        source: str = "upload",
    ) -> ComplianceReport:
        """Parse an indoor export and produce the full compliance report."""
        start_time = time.perf_counter()
        if not text.strip():
            raise ValueError("Uploaded file is empty.")

        parsed = parse_sensor_csv(text, source=source)
        if not parsed.readings:
            return ComplianceReport(stats=ComplianceStats(), errors=parsed.errors)

        date_range = resolve_date_range(
            parsed.readings[0].timestamp,
            parsed.readings[-1].timestamp,
            start=start,
            end=end,
            days=days,
        )
        selected = filter_by_date_range(parsed.readings, date_range)

        outdoor: List[OutdoorTemperatureReading] = []
        if include_outdoor and selected:
            outdoor = self._load_outdoor(date_range)

        readings = enrich_readings(
            selected, outdoor, tolerance_minutes=self.outdoor_tolerance_minutes
        )
        report = self.analyze(readings, intervals, gap_tolerance_minutes)
        report.date_range = date_range
        report.errors = parsed.errors
        report.outdoor_available = bool(outdoor)

        logger.info(
            "Built compliance report",
            extra={
                "source": source,
                "reading_count": len(readings),
                "period_count": len(report.periods),
                "error_count": len(parsed.errors),
                "start_date": date_range.start.date(),
                "end_date": date_range.end.date(),
                "processing_ms": int((time.perf_counter() - start_time) * 1000),
            },
        )
        return report

    def analyze(
        self,
        readings: Sequence[Reading],
        intervals: Sequence[TimeInterval] = DEFAULT_INTERVALS,
        gap_tolerance_minutes: Optional[float] = None,
    ) -> ComplianceReport:
        """Aggregate and extract violations from already enriched readings.

        Each interval is aggregated on the worker pool alongside period
        extraction; the inputs are shared read-only.
        """
        tolerance = (
            self.gap_tolerance_minutes
            if gap_tolerance_minutes is None
            else gap_tolerance_minutes
        )
        unique_intervals = list(dict.fromkeys(TimeInterval(value) for value in intervals))

        bucket_futures: Dict[TimeInterval, Future[List[AggregatedBucket]]] = {
            interval: self.executor.submit(self.aggregator.aggregate, readings, interval)
            for interval in unique_intervals
        }
        periods_future = self.executor.submit(
            identify_violation_periods, readings, tolerance
        )

        stats = calculate_compliance_stats(readings)
        periods = periods_future.result()
        return ComplianceReport(
            stats=stats,
            buckets={interval: future.result() for interval, future in bucket_futures.items()},
            periods=periods,
            day_groups=group_periods_by_day(periods),
            longest_periods=longest_periods(periods),
        )

    def build_radiator_report(
        self,
        text: str,
        interval: TimeInterval = TimeInterval.one_hour,
        start: Optional[date] = None,
        end: Optional[date] = None,
        days: Optional[int] = None,
        source: str = "upload",
    ) -> RadiatorReport:
        """Parse a radiator export, bucket it and derive heating status zones."""
        if not text.strip():
            raise ValueError("Uploaded file is empty.")

        interval = TimeInterval(interval)
        parsed = parse_sensor_csv(text, source=source)
        if not parsed.readings:
            return RadiatorReport(interval=interval, errors=parsed.errors)

        date_range = resolve_date_range(
            parsed.readings[0].timestamp,
            parsed.readings[-1].timestamp,
            start=start,
            end=end,
            days=days,
        )
        selected = filter_by_date_range(parsed.readings, date_range)
        buckets = self.aggregator.aggregate_radiator(selected, interval)
        return RadiatorReport(
            interval=interval,
            buckets=buckets,
            zones=build_status_zones(buckets),
            date_range=date_range,
            errors=parsed.errors,
        )

    def shutdown(self) -> None:
        """Release worker threads and the weather client."""
        self.executor.shutdown(wait=False, cancel_futures=True)
        if self.outdoor_client is not None:
            self.outdoor_client.close()

    def _load_outdoor(self, date_range: DateRange) -> List[OutdoorTemperatureReading]:
        if self.outdoor_client is None:
            logger.info("No outdoor source configured; using indoor-only rules")
            return []
        try:
            readings = self.outdoor_client.fetch(
                date_range.start.date(), date_range.end.date()
            )
        except OutdoorDataError as exc:
            logger.warning(
                "Outdoor temperature unavailable; using indoor-only rules",
                extra={"reason": str(exc)},
            )
            return []
        if not readings:
            logger.warning(
                "Outdoor temperature source returned no data; using indoor-only rules",
                extra={
                    "start_date": date_range.start.date(),
                    "end_date": date_range.end.date(),
                },
            )
        return readings


def create_report_service(
    include_outdoor: bool = True, workers: Optional[int] = None
) -> ReportService:
    """Build a report service from settings; the caller owns its shutdown."""
    settings = get_settings()
    return ReportService(
        aggregator=Aggregator(),
        outdoor_client=OpenMeteoClient.from_settings(settings) if include_outdoor else None,
        workers=workers or settings.processor_workers,
    )


@lru_cache
def build_default_report_service(workers: Optional[int] = None) -> ReportService:
    """Factory that wires the shared report service from settings."""
    return create_report_service(include_outdoor=True, workers=workers)
