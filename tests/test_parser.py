from __future__ import annotations

import logging
from datetime import datetime, time

import pytest

from services.parser import RowError, parse_sensor_csv, parse_time

HEADER = "Date,Time,Temperature_Fahrenheit,Relative_Humidity(%)\n"
DESCRIPTION = "Timestamp for sample frequency every 1 min min\n"


def test_parse_export_with_description_line_and_bom() -> None:
    body = (
        "\ufeff"
        + DESCRIPTION
        + HEADER
        + "01/15/2024,10:01:00 AM,67.5,41\n"
        + "01/15/2024,10:00:00 AM,69.1,40\n"
    )

    parsed = parse_sensor_csv(body)

    assert parsed.errors == []
    assert [reading.timestamp for reading in parsed.readings] == [
        datetime(2024, 1, 15, 10, 0),
        datetime(2024, 1, 15, 10, 1),
    ]
    assert parsed.readings[0].temperature == 69.1
    assert parsed.readings[1].humidity == 41.0


def test_parse_export_without_description_line() -> None:
    parsed = parse_sensor_csv(HEADER + "1/5/2024,22:15,61.0,35.5\n")

    assert len(parsed.readings) == 1
    assert parsed.readings[0].timestamp == datetime(2024, 1, 5, 22, 15)


def test_invalid_rows_are_reported_and_skipped() -> None:
    body = (
        DESCRIPTION
        + HEADER
        + "01/15/2024,10:00 AM,69,40\n"
        + "2024-01-15,10:01 AM,69,40\n"
        + "01/15/2024,10:02 AM,n/a,40\n"
        + "01/15/2024,10:03 AM,69,\n"
    )

    parsed = parse_sensor_csv(body)

    assert len(parsed.readings) == 1
    assert parsed.errors == [
        RowError(row_number=4, reason="invalid timestamp"),
        RowError(row_number=5, reason="invalid temperature"),
        RowError(row_number=6, reason="invalid humidity"),
    ]


def test_skipped_rows_are_logged(caplog) -> None:
    body = HEADER + "01/15/2024,10:02 AM,warm,40\n"

    with caplog.at_level(logging.WARNING):
        parse_sensor_csv(body, source="apartment.csv")

    records = [record for record in caplog.records if record.name == "services.parser"]
    assert any("Skipping row" in record.getMessage() for record in records)
    assert any(getattr(record, "source", None) == "apartment.csv" for record in records)
    assert any(getattr(record, "row_number", None) == 2 for record in records)


def test_missing_columns_raise() -> None:
    with pytest.raises(ValueError, match="missing required columns"):
        parse_sensor_csv("Date,Time,Temperature_Fahrenheit\n01/15/2024,10:00 AM,70\n")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("1:05 PM", time(13, 5)),
        ("12:00:00 AM", time(0, 0)),
        ("07:30", time(7, 30)),
        ("23:59:30", time(23, 59, 30)),
    ],
)
def test_parse_time_formats(raw: str, expected: time) -> None:
    assert parse_time(raw) == expected
