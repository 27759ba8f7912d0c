"""CSV parsing for sensor exports."""

from __future__ import annotations

import csv
import io
import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import List

from models.records import SensorReading

logger = logging.getLogger(__name__)

DATE_COLUMN = "Date"
TIME_COLUMN = "Time"
TEMPERATURE_COLUMN = "Temperature_Fahrenheit"
HUMIDITY_COLUMN = "Relative_Humidity(%)"
REQUIRED_COLUMNS = (DATE_COLUMN, TIME_COLUMN, TEMPERATURE_COLUMN, HUMIDITY_COLUMN)

_BOM = "\ufeff"
_TIME_FORMATS = ("%I:%M:%S %p", "%I:%M %p", "%H:%M:%S", "%H:%M")


@dataclass(frozen=True, slots=True)
class RowError:
    row_number: int
    reason: str


@dataclass
class ParsedExport:
    readings: List[SensorReading] = field(default_factory=list)
    errors: List[RowError] = field(default_factory=list)


def _clean(value: str | None) -> str:
    return (value or "").replace(_BOM, "").strip()


def parse_date(value: str) -> date:
    month, day, year = value.split("/")
    return date(int(year), int(month), int(day))


def parse_time(value: str) -> time:
    candidate = value.strip().upper()
    for fmt in _TIME_FORMATS:
        try:
            return datetime.strptime(candidate, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Unrecognised time {value!r}")


def _parse_number(value: str) -> float:
    parsed = float(value)
    if math.isnan(parsed) or math.isinf(parsed):
        raise ValueError(f"Non-finite value {value!r}")
    return parsed


def parse_sensor_csv(text: str, source: str = "upload") -> ParsedExport:
    """Parse a sensor export into readings sorted by timestamp.

    Exports start with a free-text description line before the header;
    it is skipped when present. Timestamps are local wall-clock times.
    Rows that cannot be parsed are reported in ``errors`` and skipped.
    """
    lines = text.lstrip(_BOM).splitlines()
    first_data_line = 1
    if lines and TEMPERATURE_COLUMN not in lines[0]:
        lines = lines[1:]
        first_data_line = 2

    reader = csv.DictReader(io.StringIO("\n".join(lines)))
    if not reader.fieldnames:
        raise ValueError("CSV file is missing a header row.")

    normalized = {_clean(name): name for name in reader.fieldnames}
    missing = [column for column in REQUIRED_COLUMNS if column not in normalized]
    if missing:
        raise ValueError(f"CSV missing required columns: {', '.join(missing)}")

    result = ParsedExport()

    def skip(row_number: int, reason: str) -> None:
        logger.warning(
            "Skipping row: %s",
            reason,
            extra={"source": source, "row_number": row_number, "reason": reason},
        )
        result.errors.append(RowError(row_number=row_number, reason=reason))

    for row_number, row in enumerate(reader, start=first_data_line + 1):
        values = {column: _clean(row.get(normalized[column])) for column in REQUIRED_COLUMNS}
        if not any(values.values()):
            continue

        try:
            timestamp = datetime.combine(
                parse_date(values[DATE_COLUMN]), parse_time(values[TIME_COLUMN])
            )
        except ValueError:
            skip(row_number, "invalid timestamp")
            continue

        try:
            temperature = _parse_number(values[TEMPERATURE_COLUMN])
        except ValueError:
            skip(row_number, "invalid temperature")
            continue

        try:
            humidity = _parse_number(values[HUMIDITY_COLUMN])
        except ValueError:
            skip(row_number, "invalid humidity")
            continue

        result.readings.append(
            SensorReading(timestamp=timestamp, temperature=temperature, humidity=humidity)
        )

    result.readings.sort(key=lambda reading: reading.timestamp)
    logger.info(
        "Parsed sensor export",
        extra={
            "source": source,
            "reading_count": len(result.readings),
            "error_count": len(result.errors),
        },
    )
    return result
