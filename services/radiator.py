"""Radiator on/cooling/off heuristic."""

from __future__ import annotations

from datetime import timedelta
from typing import List, Optional, Sequence

from models.records import (
    AggregatedRadiatorBucket,
    RadiatorReading,
    RadiatorStatus,
    SensorReading,
    StatusZone,
)
from settings import DEFAULT_RADIATOR_POLICY, STATUS_ZONE_TAIL_MINUTES, RadiatorPolicy


def _trend(delta: float, policy: RadiatorPolicy) -> Optional[RadiatorStatus]:
    if delta > policy.change_threshold:
        return RadiatorStatus.on
    if delta < -policy.change_threshold:
        return RadiatorStatus.cooling
    return None


def classify_radiator_state(
    current: float,
    previous: Optional[float] = None,
    next: Optional[float] = None,
    policy: RadiatorPolicy = DEFAULT_RADIATOR_POLICY,
) -> RadiatorStatus:
    """Classify a radiator temperature from its immediate neighbours.

    A cold radiator is off regardless of trend. Otherwise the change from
    the previous point wins, then the change to the next point, and a
    plateau falls back to the magnitude of the current temperature.
    Each call is independent, so adjacent plateau points may disagree.
    """
    if current < policy.off_threshold:
        return RadiatorStatus.off

    if previous is not None:
        status = _trend(current - previous, policy)
        if status is not None:
            return status

    if next is not None:
        status = _trend(next - current, policy)
        if status is not None:
            return status

    if current >= policy.hot_threshold:
        return RadiatorStatus.on
    return RadiatorStatus.cooling


def classify_radiator_readings(
    readings: Sequence[SensorReading],
    policy: RadiatorPolicy = DEFAULT_RADIATOR_POLICY,
) -> List[RadiatorReading]:
    """Attach a status to each reading of a time-sorted radiator series."""
    classified: List[RadiatorReading] = []
    last_index = len(readings) - 1
    for index, reading in enumerate(readings):
        previous = readings[index - 1].temperature if index > 0 else None
        following = readings[index + 1].temperature if index < last_index else None
        classified.append(
            RadiatorReading(
                timestamp=reading.timestamp,
                temperature=reading.temperature,
                humidity=reading.humidity,
                status=classify_radiator_state(
                    reading.temperature, previous, following, policy
                ),
            )
        )
    return classified


def build_status_zones(
    buckets: Sequence[AggregatedRadiatorBucket],
    tail: timedelta = timedelta(minutes=STATUS_ZONE_TAIL_MINUTES),
) -> List[StatusZone]:
    """Collapse consecutive buckets sharing a status into zones.

    Each bucket spans until the next bucket starts; the last one is
    extended by ``tail``.
    """
    zones: List[StatusZone] = []
    current: Optional[StatusZone] = None
    last_index = len(buckets) - 1

    for index, bucket in enumerate(buckets):
        end = buckets[index + 1].timestamp if index < last_index else bucket.timestamp + tail
        if current is not None and current.status is bucket.status:
            current = StatusZone(start=current.start, end=end, status=current.status)
            continue
        if current is not None:
            zones.append(current)
        current = StatusZone(start=bucket.timestamp, end=end, status=bucket.status)

    if current is not None:
        zones.append(current)
    return zones
