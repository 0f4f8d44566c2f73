"""
Report endpoints - API routes for crowd report submission and the public feed.
"""

from typing import List
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.models.report import ReportCreate, ReportRecord, ReportSubmissionResponse
from app.models.verification import DuplicateRejected
from app.services.report_service import ReportService, get_report_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ReportSubmissionResponse)
async def submit_report(
    report: ReportCreate,
    request: Request,
    service: ReportService = Depends(get_report_service),
):
    """
    Submit a new crowd report.

    This endpoint:
    1. Rejects floods/clusters (429) before any scoring
    2. Scores the report and stores it with its admission tier
    3. Publishes events for the tier

    Returns the stored report and its verification result.
    """
    logger.info(f"📝 POST /reports - location={report.location!r}")

    outcome = await service.submit(
        report,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )

    if isinstance(outcome, DuplicateRejected):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=outcome.reason,
        )

    return ReportSubmissionResponse(
        message=f"Report {outcome.verification.status}",
        report=outcome.record,
        verification=outcome.verification,
    )


@router.get("", response_model=List[ReportRecord])
async def get_reports(service: ReportService = Depends(get_report_service)):
    """Public feed: verified reports only, newest first."""
    try:
        return await service.list_published()
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Failed to retrieve reports: {str(e)}",
        )
