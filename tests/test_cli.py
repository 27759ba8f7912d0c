from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

import pytest
from typer.testing import CliRunner

from cli.app import app
from cli.render import format_duration
from services.aggregator import Aggregator
from services.processor import ReportService

CSV_CONTENT = (
    "Timestamp for sample frequency every 1 min min\n"
    "Date,Time,Temperature_Fahrenheit,Relative_Humidity(%)\n"
    "01/15/2024,10:00,69,40\n"
    "01/15/2024,10:01,67,41\n"
    "01/15/2024,10:02,66,42\n"
    "01/15/2024,10:03,68,43\n"
    "01/15/2024,10:04,70,44\n"
)


class StubClient:
    def __init__(self, config) -> None:
        self.config = config
        self.report_calls: List[Dict[str, Any]] = []
        self.radiator_calls: List[Dict[str, Any]] = []
        self.report_payload: Dict[str, Any] = {
            "stats": {
                "total_readings": 5,
                "compliant_readings": 3,
                "violation_readings": 2,
                "compliance_rate": 60.0,
                "daytime_violations": 2,
                "nighttime_violations": 0,
                "total_violation_hours": 2 / 60,
            },
            "buckets": {},
            "periods": [
                {
                    "start": "2024-01-15T10:01:00",
                    "end": "2024-01-15T10:02:00",
                    "duration": 2,
                    "min_temperature": 66.0,
                    "avg_temperature": 66.5,
                    "max_temperature": 67.0,
                    "type": "daytime",
                }
            ],
            "day_groups": [],
            "longest_periods": [],
            "date_range": None,
            "errors": [],
            "outdoor_available": False,
        }
        self.report_payload["longest_periods"] = list(self.report_payload["periods"])
        self.radiator_payload: Dict[str, Any] = {
            "interval": "1hour",
            "buckets": [],
            "zones": [
                {"start": "2024-01-15T10:00:00", "end": "2024-01-15T11:30:00", "status": "cooling"}
            ],
            "date_range": None,
            "errors": [],
        }
        self.closed = False

    def create_report(self, path: Path, **kwargs: Any) -> Dict[str, Any]:
        self.report_calls.append({"path": path, **kwargs})
        return self.report_payload

    def create_radiator_report(self, path: Path, **kwargs: Any) -> Dict[str, Any]:
        self.radiator_calls.append({"path": path, **kwargs})
        return self.radiator_payload

    def close(self) -> None:
        self.closed = True


class RecordingService(ReportService):
    def __init__(self) -> None:
        super().__init__(aggregator=Aggregator(), workers=1)
        self.shutdown_calls = 0

    def shutdown(self) -> None:
        self.shutdown_calls += 1
        super().shutdown()


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def csv_path(tmp_path) -> Path:
    path = tmp_path / "apartment.csv"
    path.write_text(CSV_CONTENT)
    return path


def _install_stub(monkeypatch, stub: StubClient) -> None:
    def factory(config):
        stub.config = config
        return stub

    monkeypatch.setattr("cli.app.ApiClient", factory)


def _install_local_service(monkeypatch) -> tuple[RecordingService, List[bool]]:
    service = RecordingService()
    requested: List[bool] = []

    def factory(include_outdoor: bool = True) -> RecordingService:
        requested.append(include_outdoor)
        return service

    monkeypatch.setattr("cli.app.create_report_service", factory)
    return service, requested


def test_analyze_renders_local_report(monkeypatch, runner: CliRunner, csv_path: Path) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)
    service, requested = _install_local_service(monkeypatch)

    result = runner.invoke(app, ["analyze", str(csv_path), "-i", "5min"])

    assert result.exit_code == 0, result.output
    assert "Compliance Summary" in result.stdout
    assert "violation_readings: 2" in result.stdout
    assert "compliance_rate: 60.0%" in result.stdout
    assert "[Day] 2m" in result.stdout
    assert "Mon Jan 15, 2024:" in result.stdout
    assert stub.closed is True
    assert requested == [False]
    assert service.shutdown_calls == 1


def test_analyze_requests_weather_client_only_with_outdoor(
    monkeypatch, runner: CliRunner, csv_path: Path
) -> None:
    _install_stub(monkeypatch, StubClient(config=None))
    service, requested = _install_local_service(monkeypatch)

    result = runner.invoke(app, ["analyze", str(csv_path), "--outdoor"])

    assert result.exit_code == 0, result.output
    assert requested == [True]
    assert service.shutdown_calls == 1


def test_analyze_reports_missing_columns(monkeypatch, runner: CliRunner, tmp_path) -> None:
    _install_stub(monkeypatch, StubClient(config=None))
    service, _ = _install_local_service(monkeypatch)
    path = tmp_path / "bad.csv"
    path.write_text("Date,Time\n01/15/2024,10:00\n")

    result = runner.invoke(app, ["analyze", str(path)])

    assert result.exit_code == 1
    assert service.shutdown_calls == 1


def test_upload_sends_options(monkeypatch, runner: CliRunner, csv_path: Path) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(
        app,
        ["--base-url", "http://api.test/", "upload", str(csv_path), "-i", "1hour", "-i", "5min", "--days", "3"],
    )

    assert result.exit_code == 0, result.output
    assert "Top Violation Periods" in result.stdout
    assert stub.config.base_url == "http://api.test"
    [call] = stub.report_calls
    assert call["path"] == csv_path
    assert call["intervals"] == ["1hour", "5min"]
    assert call["days"] == 3
    assert call["start"] is None
    assert call["end"] is None
    assert call["outdoor"] is False
    assert stub.closed is True


def test_upload_sends_date_bounds(monkeypatch, runner: CliRunner, csv_path: Path) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(
        app, ["upload", str(csv_path), "--start", "2024-01-14", "--end", "2024-01-15"]
    )

    assert result.exit_code == 0, result.output
    [call] = stub.report_calls
    assert call["start"] == "2024-01-14"
    assert call["end"] == "2024-01-15"


def test_radiator_command(monkeypatch, runner: CliRunner, csv_path: Path) -> None:
    _install_stub(monkeypatch, StubClient(config=None))
    service, requested = _install_local_service(monkeypatch)

    result = runner.invoke(app, ["radiator", str(csv_path), "-i", "1min"])

    assert result.exit_code == 0, result.output
    assert "Status Zones" in result.stdout
    assert "  - off:" in result.stdout
    assert "  - on:" in result.stdout
    assert requested == [False]
    assert service.shutdown_calls == 1


def test_radiator_command_remote(monkeypatch, runner: CliRunner, csv_path: Path) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)
    _, requested = _install_local_service(monkeypatch)

    result = runner.invoke(
        app, ["radiator", str(csv_path), "--remote", "-i", "30min", "--start", "2024-01-15"]
    )

    assert result.exit_code == 0, result.output
    assert "  - cooling:" in result.stdout
    [call] = stub.radiator_calls
    assert call["path"] == csv_path
    assert call["interval"] == "30min"
    assert call["start"] == "2024-01-15"
    assert call["end"] is None
    assert call["days"] is None
    assert requested == []


@pytest.mark.parametrize(("minutes", "expected"), [(2, "2m"), (60, "1h 0m"), (135, "2h 15m")])
def test_format_duration(minutes: int, expected: str) -> None:
    assert format_duration(minutes) == expected
