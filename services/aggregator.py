"""Time-bucket aggregation for indoor and radiator readings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from models.records import (
    AggregatedBucket,
    AggregatedRadiatorBucket,
    Reading,
    SensorReading,
    TimeInterval,
)
from services.radiator import classify_radiator_state
from settings import DEFAULT_RADIATOR_POLICY, RadiatorPolicy

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1)
_EPOCH_UTC = datetime(1970, 1, 1, tzinfo=timezone.utc)


def floor_to_interval(timestamp: datetime, minutes: int) -> datetime:
    """Align ``timestamp`` down to a multiple of ``minutes`` since the epoch.

    Naive timestamps are measured from a naive epoch so that their wall
    clock is kept; aware ones are floored on the UTC epoch and returned
    in their own zone.
    """
    width = timedelta(minutes=minutes)
    if timestamp.tzinfo is None:
        return _EPOCH + ((timestamp - _EPOCH) // width) * width
    floored = _EPOCH_UTC + ((timestamp - _EPOCH_UTC) // width) * width
    return floored.astimezone(timestamp.tzinfo)


@dataclass
class _BucketTotals:
    """Running statistics for one bucket."""

    count: int = 0
    temperature_sum: float = 0.0
    humidity_sum: float = 0.0
    min_temperature: float | None = None
    max_temperature: float | None = None
    violation_count: int = 0
    outdoor_sum: float = 0.0
    outdoor_count: int = 0

    def add(self, temperature: float, humidity: float) -> None:
        self.count += 1
        self.temperature_sum += temperature
        self.humidity_sum += humidity
        if self.min_temperature is None or temperature < self.min_temperature:
            self.min_temperature = temperature
        if self.max_temperature is None or temperature > self.max_temperature:
            self.max_temperature = temperature

    @property
    def avg_temperature(self) -> float:
        return self.temperature_sum / self.count

    @property
    def avg_humidity(self) -> float:
        return self.humidity_sum / self.count

    @property
    def avg_outdoor(self) -> Optional[float]:
        if not self.outdoor_count:
            return None
        return self.outdoor_sum / self.outdoor_count


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def aggregate(
        self, readings: Iterable[Reading], interval: TimeInterval
    ) -> List[AggregatedBucket]:
        interval = TimeInterval(interval)
        if interval is TimeInterval.one_minute:
            buckets = [self._passthrough(reading) for reading in readings]
        else:
            groups: Dict[datetime, _BucketTotals] = {}
            for reading in readings:
                key = floor_to_interval(reading.timestamp, interval.minutes)
                totals = groups.get(key)
                if totals is None:
                    totals = groups[key] = _BucketTotals()
                totals.add(reading.temperature, reading.humidity)
                if not reading.is_compliant:
                    totals.violation_count += 1
                if reading.outdoor_temperature is not None:
                    totals.outdoor_sum += reading.outdoor_temperature
                    totals.outdoor_count += 1
            buckets = [self._to_bucket(key, totals) for key, totals in groups.items()]

        buckets.sort(key=lambda bucket: bucket.timestamp)
        logger.debug(
            "Aggregated readings",
            extra={"interval": interval.value, "bucket_count": len(buckets)},
        )
        return buckets

    def aggregate_radiator(
        self,
        readings: Iterable[SensorReading],
        interval: TimeInterval,
        policy: RadiatorPolicy = DEFAULT_RADIATOR_POLICY,
    ) -> List[AggregatedRadiatorBucket]:
        """Bucket radiator readings and classify each bucket by its neighbours."""
        interval = TimeInterval(interval)
        groups: Dict[datetime, _BucketTotals] = {}
        for reading in readings:
            key = floor_to_interval(reading.timestamp, interval.minutes)
            totals = groups.get(key)
            if totals is None:
                totals = groups[key] = _BucketTotals()
            totals.add(reading.temperature, reading.humidity)

        ordered = sorted(groups.items(), key=lambda item: item[0])
        return self._classify_buckets(ordered, policy)

    @staticmethod
    def _passthrough(reading: Reading) -> AggregatedBucket:
        return AggregatedBucket(
            timestamp=reading.timestamp,
            avg_temperature=reading.temperature,
            min_temperature=reading.temperature,
            max_temperature=reading.temperature,
            avg_humidity=reading.humidity,
            is_compliant=reading.is_compliant,
            violation_count=0 if reading.is_compliant else 1,
            total_readings=1,
            avg_outdoor_temperature=reading.outdoor_temperature,
        )

    @staticmethod
    def _to_bucket(key: datetime, totals: _BucketTotals) -> AggregatedBucket:
        return AggregatedBucket(
            timestamp=key,
            avg_temperature=totals.avg_temperature,
            min_temperature=totals.min_temperature,
            max_temperature=totals.max_temperature,
            avg_humidity=totals.avg_humidity,
            is_compliant=totals.violation_count == 0,
            violation_count=totals.violation_count,
            total_readings=totals.count,
            avg_outdoor_temperature=totals.avg_outdoor,
        )

    @staticmethod
    def _classify_buckets(
        ordered: Sequence[tuple[datetime, _BucketTotals]], policy: RadiatorPolicy
    ) -> List[AggregatedRadiatorBucket]:
        averages = [totals.avg_temperature for _, totals in ordered]
        last_index = len(ordered) - 1
        buckets: List[AggregatedRadiatorBucket] = []
        for index, (key, totals) in enumerate(ordered):
            status = classify_radiator_state(
                averages[index],
                averages[index - 1] if index > 0 else None,
                averages[index + 1] if index < last_index else None,
                policy,
            )
            buckets.append(
                AggregatedRadiatorBucket(
                    timestamp=key,
                    avg_temperature=totals.avg_temperature,
                    min_temperature=totals.min_temperature,
                    max_temperature=totals.max_temperature,
                    avg_humidity=totals.avg_humidity,
                    status=status,
                    total_readings=totals.count,
                )
            )
        return buckets
