"""HTTP route definitions for the service."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status

from app.schemas import (
    ComplianceCheckRequest,
    ComplianceReportResponse,
    ComplianceResultSchema,
    RadiatorReportResponse,
)
from models.records import TimeInterval
from services.compliance import check_compliance
from services.processor import ReportService, build_default_report_service

router = APIRouter()


def get_report_service() -> ReportService:
    return build_default_report_service()


async def _read_upload(file: UploadFile) -> str:
    contents = await file.read()
    await file.close()
    if not contents:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty.",
        )
    try:
        return contents.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is not UTF-8 text.",
        ) from exc


@router.post(
    "/reports",
    response_model=ComplianceReportResponse,
    summary="Analyze an indoor temperature export for heating-law compliance.",
)
async def create_report(
    file: UploadFile = File(..., description="CSV export of indoor readings."),
    interval: List[TimeInterval] = Query(
        default=[TimeInterval.one_hour], description="Bucket widths to aggregate at."
    ),
    gap_tolerance: Optional[float] = Query(
        default=None, ge=0, description="Minutes between violation periods to merge."
    ),
    start: Optional[date] = Query(default=None),
    end: Optional[date] = Query(default=None),
    days: Optional[int] = Query(default=None, ge=1, description="Only the last N days."),
    outdoor: bool = Query(default=False, description="Apply the outdoor temperature waiver."),
    service: ReportService = Depends(get_report_service),
) -> ComplianceReportResponse:
    text = await _read_upload(file)
    try:
        report = service.build_report(
            text,
            intervals=interval,
            gap_tolerance_minutes=gap_tolerance,
            start=start,
            end=end,
            days=days,
            include_outdoor=outdoor,
            source=file.filename or "upload",
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return ComplianceReportResponse.model_validate(report)


@router.post(
    "/radiator",
    response_model=RadiatorReportResponse,
    summary="Classify radiator heating status from a radiator temperature export.",
)
async def create_radiator_report(
    file: UploadFile = File(..., description="CSV export of radiator readings."),
    interval: TimeInterval = Query(default=TimeInterval.one_hour),
    start: Optional[date] = Query(default=None),
    end: Optional[date] = Query(default=None),
    days: Optional[int] = Query(default=None, ge=1),
    service: ReportService = Depends(get_report_service),
) -> RadiatorReportResponse:
    text = await _read_upload(file)
    try:
        report = service.build_radiator_report(
            text,
            interval=interval,
            start=start,
            end=end,
            days=days,
            source=file.filename or "upload",
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return RadiatorReportResponse.model_validate(report)


@router.post(
    "/compliance/check",
    response_model=ComplianceResultSchema,
    summary="Evaluate a single reading against the heating rules.",
)
async def check_reading(payload: ComplianceCheckRequest) -> ComplianceResultSchema:
    result = check_compliance(
        payload.timestamp, payload.temperature, payload.outdoor_temperature
    )
    return ComplianceResultSchema.model_validate(result)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
