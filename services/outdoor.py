"""Outdoor temperature source backed by the Open-Meteo archive API."""

from __future__ import annotations

import logging
import math
from bisect import bisect_left
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

import httpx

from models.records import OutdoorTemperatureReading
from settings import DEFAULT_OUTDOOR_TOLERANCE_MINUTES, Settings, get_settings

logger = logging.getLogger(__name__)


class OutdoorDataError(RuntimeError):
    """Raised when the weather service cannot supply usable data."""


class OpenMeteoClient:
    """Fetches hourly outdoor temperatures in Fahrenheit."""

    def __init__(
        self,
        base_url: str,
        latitude: float,
        longitude: float,
        timezone: str,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.latitude = latitude
        self.longitude = longitude
        self.timezone = timezone
        self._base_url = base_url
        self._client = httpx.Client(timeout=timeout, transport=transport)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "OpenMeteoClient":
        settings = settings or get_settings()
        return cls(
            base_url=settings.weather_api_url,
            latitude=settings.weather_latitude,
            longitude=settings.weather_longitude,
            timezone=settings.weather_timezone,
            timeout=settings.weather_timeout,
        )

    def close(self) -> None:
        self._client.close()

    def fetch(self, start: date, end: date) -> List[OutdoorTemperatureReading]:
        """Return hourly readings covering ``start``..``end`` in local time."""
        params = {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "hourly": "temperature_2m",
            "temperature_unit": "fahrenheit",
            "timezone": self.timezone,
        }
        try:
            response = self._client.get(self._base_url, params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise OutdoorDataError(
                f"Weather API request failed: {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise OutdoorDataError(f"Weather API request failed: {exc}") from exc

        return self._parse_payload(payload)

    @staticmethod
    def _parse_payload(payload: Dict[str, Any]) -> List[OutdoorTemperatureReading]:
        hourly = payload.get("hourly") if isinstance(payload, dict) else None
        times = hourly.get("time") if isinstance(hourly, dict) else None
        temperatures = hourly.get("temperature_2m") if isinstance(hourly, dict) else None
        if not isinstance(times, list) or not isinstance(temperatures, list):
            raise OutdoorDataError("Invalid response format from weather API")

        readings: List[OutdoorTemperatureReading] = []
        for raw_time, temperature in zip(times, temperatures):
            # Open-Meteo reports null for hours it has no data for.
            if temperature is None:
                continue
            try:
                timestamp = datetime.fromisoformat(raw_time)
                value = float(temperature)
            except (TypeError, ValueError):
                continue
            if not math.isfinite(value):
                continue
            readings.append(OutdoorTemperatureReading(timestamp=timestamp, temperature=value))
        readings.sort(key=lambda reading: reading.timestamp)
        return readings


def find_outdoor_temperature(
    timestamp: datetime,
    outdoor_readings: Sequence[OutdoorTemperatureReading],
    tolerance_minutes: float = DEFAULT_OUTDOOR_TOLERANCE_MINUTES,
) -> Optional[float]:
    """Return the temperature of the sample nearest to ``timestamp``.

    ``outdoor_readings`` must be sorted by timestamp. ``None`` is returned
    when the nearest sample is further away than the tolerance.
    """
    if not outdoor_readings:
        return None

    index = bisect_left(outdoor_readings, timestamp, key=lambda reading: reading.timestamp)
    candidates = outdoor_readings[max(index - 1, 0) : index + 1]
    nearest = min(candidates, key=lambda reading: abs(reading.timestamp - timestamp))
    if abs(nearest.timestamp - timestamp) <= timedelta(minutes=tolerance_minutes):
        return nearest.temperature
    return None
