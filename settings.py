from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple


_LOG_LEVEL_ENV = "LOG_LEVEL"
_WORKER_COUNT_ENV = "PROCESSOR_WORKER_COUNT"
_GAP_TOLERANCE_ENV = "VIOLATION_GAP_TOLERANCE_MINUTES"
_OUTDOOR_TOLERANCE_ENV = "OUTDOOR_TOLERANCE_MINUTES"
_WEATHER_URL_ENV = "WEATHER_API_URL"
_WEATHER_LATITUDE_ENV = "WEATHER_LATITUDE"
_WEATHER_LONGITUDE_ENV = "WEATHER_LONGITUDE"
_WEATHER_TIMEZONE_ENV = "WEATHER_TIMEZONE"
_WEATHER_TIMEOUT_ENV = "WEATHER_TIMEOUT_SECONDS"

DEFAULT_WEATHER_URL = "https://archive-api.open-meteo.com/v1/archive"
# Upper East Side, New York City
DEFAULT_LATITUDE = 40.786701
DEFAULT_LONGITUDE = -73.973149
DEFAULT_TIMEZONE = "America/New_York"

DEFAULT_GAP_TOLERANCE_MINUTES = 5.0
DEFAULT_OUTDOOR_TOLERANCE_MINUTES = 60.0
STATUS_ZONE_TAIL_MINUTES = 30


@dataclass(frozen=True)
class CompliancePolicy:
    """NYC heat season rules: 68°F by day, 62°F at night, October through May."""

    season_months: Tuple[int, ...] = (10, 11, 12, 1, 2, 3, 4, 5)
    day_start_hour: int = 6
    day_end_hour: int = 22
    daytime_minimum: float = 68.0
    nighttime_minimum: float = 62.0
    outdoor_waiver_threshold: float = 55.0


@dataclass(frozen=True)
class RadiatorPolicy:
    off_threshold: float = 70.0
    change_threshold: float = 0.3
    hot_threshold: float = 90.0


DEFAULT_COMPLIANCE_POLICY = CompliancePolicy()
DEFAULT_RADIATOR_POLICY = RadiatorPolicy()


@dataclass(frozen=True)
class Settings:
    log_level: str
    processor_workers: int
    gap_tolerance_minutes: float
    outdoor_tolerance_minutes: float
    weather_api_url: str
    weather_latitude: float
    weather_longitude: float
    weather_timezone: str
    weather_timeout: float


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_worker_count(default: int) -> int:
    value = os.getenv(_WORKER_COUNT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_float_env(name: str, default: float, allow_negative: bool = False) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    if not allow_negative and parsed < 0:
        return default
    return parsed


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        log_level=_read_log_level("INFO"),
        processor_workers=_read_worker_count(4),
        gap_tolerance_minutes=_read_float_env(
            _GAP_TOLERANCE_ENV, DEFAULT_GAP_TOLERANCE_MINUTES
        ),
        outdoor_tolerance_minutes=_read_float_env(
            _OUTDOOR_TOLERANCE_ENV, DEFAULT_OUTDOOR_TOLERANCE_MINUTES
        ),
        weather_api_url=_read_str_env(_WEATHER_URL_ENV, DEFAULT_WEATHER_URL),
        weather_latitude=_read_float_env(
            _WEATHER_LATITUDE_ENV, DEFAULT_LATITUDE, allow_negative=True
        ),
        weather_longitude=_read_float_env(
            _WEATHER_LONGITUDE_ENV, DEFAULT_LONGITUDE, allow_negative=True
        ),
        weather_timezone=_read_str_env(_WEATHER_TIMEZONE_ENV, DEFAULT_TIMEZONE),
        weather_timeout=_read_float_env(_WEATHER_TIMEOUT_ENV, 30.0),
    )
