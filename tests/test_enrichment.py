from __future__ import annotations

from datetime import date, datetime, time

from models.records import DateRange, OutdoorTemperatureReading, SensorReading
from services.enrichment import enrich_readings, filter_by_date_range, resolve_date_range


def _raw(timestamp: datetime, temperature: float) -> SensorReading:
    return SensorReading(timestamp=timestamp, temperature=temperature, humidity=40.0)


def test_enrichment_sorts_and_applies_rule() -> None:
    raw = [_raw(datetime(2024, 1, 15, 23, 0), 61.0), _raw(datetime(2024, 1, 15, 10, 0), 67.0)]

    readings = enrich_readings(raw)

    assert [reading.timestamp.hour for reading in readings] == [10, 23]
    assert [reading.required_temperature for reading in readings] == [68, 62]
    assert all(not reading.is_compliant for reading in readings)
    assert all(reading.outdoor_temperature is None for reading in readings)


def test_enrichment_uses_outdoor_waiver() -> None:
    outdoor = [OutdoorTemperatureReading(datetime(2024, 3, 1, 12, 0), 58.0)]
    raw = [_raw(datetime(2024, 3, 1, 12, 20), 65.0), _raw(datetime(2024, 3, 1, 14, 0), 65.0)]

    readings = enrich_readings(raw, outdoor)

    assert readings[0].outdoor_temperature == 58.0
    assert readings[0].is_compliant is True
    assert readings[1].outdoor_temperature is None
    assert readings[1].is_compliant is False


def test_resolve_full_range_by_default() -> None:
    result = resolve_date_range(datetime(2024, 1, 10, 8, 0), datetime(2024, 1, 20, 9, 0))

    assert result == DateRange(
        start=datetime(2024, 1, 10), end=datetime.combine(date(2024, 1, 20), time.max)
    )


def test_resolve_last_days_clamped_to_available_data() -> None:
    available_start = datetime(2024, 1, 18, 8, 0)
    available_end = datetime(2024, 1, 20, 9, 0)

    assert resolve_date_range(available_start, available_end, days=1).start == datetime(2024, 1, 20)
    assert resolve_date_range(available_start, available_end, days=30).start == datetime(2024, 1, 18)


def test_resolve_crossed_bounds_collapse_to_single_day() -> None:
    result = resolve_date_range(
        datetime(2024, 1, 1), datetime(2024, 1, 31), start=date(2024, 1, 20), end=date(2024, 1, 5)
    )

    assert result.start == datetime(2024, 1, 5)
    assert result.end.date() == date(2024, 1, 5)


def test_filter_by_date_range_is_inclusive() -> None:
    raw = [_raw(datetime(2024, 1, day, 12, 0), 70.0) for day in (9, 10, 11, 12)]
    window = DateRange(start=datetime(2024, 1, 10), end=datetime.combine(date(2024, 1, 11), time.max))

    selected = filter_by_date_range(raw, window)

    assert [reading.timestamp.day for reading in selected] == [10, 11]
