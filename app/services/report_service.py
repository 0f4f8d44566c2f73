"""
Report service - submission workflow for crowd-sourced weather reports.

FLOW:
1. Build the evaluation input (hashed identity, user agent)
2. Verification engine: duplicate gate, then scoring
3. Persist the report with its verification attached
4. Publish events for the admission tier

Nothing is stored if evaluation is rejected as a duplicate or the request
is cancelled before a result exists.
"""

from dataclasses import dataclass
from typing import List, Optional, Union
import asyncio
import logging

from app.models.report import ReportCreate, ReportRecord, ReportSubmission
from app.models.verification import DuplicateRejected, VerificationResult
from app.services.notifications import Broadcaster, events_for
from app.services.report_store import ReportStore
from app.services.verification_engine import VerificationEngine
from app.utils.clock import Clock, utc_now
from app.utils.security import hash_ip_address

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AcceptedReport:
    record: ReportRecord
    verification: VerificationResult


SubmissionOutcome = Union[AcceptedReport, DuplicateRejected]


class ReportService:

    def __init__(
        self,
        engine: VerificationEngine,
        store: ReportStore,
        broadcaster: Broadcaster,
        clock: Clock = utc_now,
    ):
        self.engine = engine
        self.store = store
        self.broadcaster = broadcaster
        self.clock = clock

    async def submit(
        self,
        report: ReportCreate,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> SubmissionOutcome:
        """
        Evaluate, store and announce a new report.

        Args:
            report: Validated request body
            ip_address: Raw client address (hashed before use)
            user_agent: Client user-agent header, if any

        Returns:
            AcceptedReport with the stored record, or DuplicateRejected
        """
        submission = ReportSubmission(
            description=report.description,
            location=report.location,
            coordinates=report.coordinates,
            network_identity=hash_ip_address(ip_address),
            client_signature=user_agent or None,
            submitted_at=self.clock(),
        )

        outcome = await self.engine.evaluate(submission)
        if isinstance(outcome, DuplicateRejected):
            logger.warning(f"Report rejected as duplicate: {outcome.reason}")
            return outcome

        record = self.build_record(report, submission, outcome)
        record_id = await asyncio.to_thread(self.store.insert, record)
        record = record.model_copy(update={"id": record_id})

        payload = record.model_dump(mode="json")
        for event in events_for(outcome.admission):
            self.broadcaster.publish(event, payload)

        logger.info(f"✅ Report {record_id} stored as {outcome.admission.value} (score {outcome.score})")
        return AcceptedReport(record=record, verification=outcome)

    def build_record(
        self,
        report: ReportCreate,
        submission: ReportSubmission,
        result: VerificationResult,
    ) -> ReportRecord:
        annotations = result.annotations
        snapshot = annotations.weather_condition_at_time
        return ReportRecord(
            reporter=report.reporter,
            description=submission.description,
            location=submission.location,
            coordinates=submission.coordinates,
            network_identity=submission.network_identity,
            user_agent=annotations.user_agent,
            verified=result.auto_verified,
            auto_verified=result.auto_verified,
            verification_score=result.score,
            status=result.status,
            verification_checks=[check.model_dump(mode="json") for check in result.checks],
            verification_warnings=list(result.warnings),
            weather_condition_at_time=snapshot.model_dump(mode="json") if snapshot else None,
            created_at=submission.submitted_at,
        )

    async def list_published(self, limit: int = 100) -> List[ReportRecord]:
        return await asyncio.to_thread(self.store.list_published, limit)


_report_service: Optional[ReportService] = None


def get_report_service() -> ReportService:
    global _report_service
    if _report_service is None:
        from app.services.notifications import get_broadcaster
        from app.services.report_store import get_report_store
        from app.services.verification_engine import get_verification_engine

        _report_service = ReportService(
            engine=get_verification_engine(),
            store=get_report_store(),
            broadcaster=get_broadcaster(),
        )
    return _report_service
