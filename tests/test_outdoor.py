from __future__ import annotations

from datetime import date, datetime

import httpx
import pytest

from models.records import OutdoorTemperatureReading
from services.outdoor import OpenMeteoClient, OutdoorDataError, find_outdoor_temperature


def _client(handler) -> OpenMeteoClient:
    return OpenMeteoClient(
        base_url="https://weather.test/v1/archive",
        latitude=40.0,
        longitude=-73.0,
        timezone="America/New_York",
        transport=httpx.MockTransport(handler),
    )


def test_fetch_parses_hourly_temperatures() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        return httpx.Response(
            200,
            json={
                "hourly": {
                    "time": ["2024-01-15T01:00", "2024-01-15T00:00", "2024-01-15T02:00"],
                    "temperature_2m": [31.5, 30.0, None],
                }
            },
        )

    client = _client(handler)
    try:
        readings = client.fetch(date(2024, 1, 15), date(2024, 1, 16))
    finally:
        client.close()

    assert readings == [
        OutdoorTemperatureReading(datetime(2024, 1, 15, 0, 0), 30.0),
        OutdoorTemperatureReading(datetime(2024, 1, 15, 1, 0), 31.5),
    ]
    assert seen["start_date"] == "2024-01-15"
    assert seen["end_date"] == "2024-01-16"
    assert seen["temperature_unit"] == "fahrenheit"
    assert seen["hourly"] == "temperature_2m"


def test_fetch_raises_on_http_error() -> None:
    client = _client(lambda request: httpx.Response(503, text="unavailable"))

    with pytest.raises(OutdoorDataError, match="503"):
        client.fetch(date(2024, 1, 15), date(2024, 1, 15))


def test_fetch_raises_on_malformed_payload() -> None:
    client = _client(lambda request: httpx.Response(200, json={"daily": {}}))

    with pytest.raises(OutdoorDataError, match="Invalid response format"):
        client.fetch(date(2024, 1, 15), date(2024, 1, 15))


HOURLY = [
    OutdoorTemperatureReading(datetime(2024, 1, 15, hour, 0), 30.0 + hour) for hour in range(0, 6)
]


def test_lookup_returns_nearest_sample() -> None:
    assert find_outdoor_temperature(datetime(2024, 1, 15, 2, 20), HOURLY) == 32.0
    assert find_outdoor_temperature(datetime(2024, 1, 15, 2, 40), HOURLY) == 33.0
    assert find_outdoor_temperature(datetime(2024, 1, 15, 0, 0), HOURLY) == 30.0


def test_lookup_respects_tolerance_window() -> None:
    assert find_outdoor_temperature(datetime(2024, 1, 15, 6, 0), HOURLY) == 35.0
    assert find_outdoor_temperature(datetime(2024, 1, 15, 6, 1), HOURLY) is None
    assert find_outdoor_temperature(datetime(2024, 1, 14, 22, 59), HOURLY) is None


def test_lookup_without_samples() -> None:
    assert find_outdoor_temperature(datetime(2024, 1, 15, 2, 0), []) is None


def test_fetch_skips_non_numeric_temperatures() -> None:
    payload = {
        "hourly": {
            "time": ["2024-04-10T09:00", "2024-04-10T10:00", "2024-04-10T11:00"],
            "temperature_2m": ["n/a", 55.5, "NaN"],
        }
    }
    client = _client(lambda request: httpx.Response(200, json=payload))
    try:
        readings = client.fetch(date(2024, 4, 10), date(2024, 4, 10))
    finally:
        client.close()

    assert readings == [OutdoorTemperatureReading(datetime(2024, 4, 10, 10, 0), 55.5)]
