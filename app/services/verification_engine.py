"""
Verification Engine - decides how an anonymous report is admitted.

DESIGN PRINCIPLES:
- Produces a confidence score and an admission tier, never a certainty
- Every external dependency degrades to a conservative default; evaluate()
  always returns a result for a non-duplicate submission
- The admission tier is a pure function of the final score

FLOW:
1. Duplicate / cluster check (rejects before any scoring)
2. Content plausibility checks (pure)
3. Weather cross-validation (GPS + live conditions, bounded by a timeout)
4. Sum check points
5. Reporter trust adjustment: trust > 70 → +10, trust < 30 → -10
6. Admission: >= 70 auto_verified, 40-69 pending_review, < 40 flagged
"""

from typing import Optional, Union
import asyncio
import logging

from app.core.settings import settings
from app.models.report import ReportSubmission
from app.models.verification import (
    DuplicateRejected,
    ReportAnnotations,
    TrustScore,
    VerificationResult,
)
from app.services.content_checks import ContentPlausibilityChecker
from app.services.duplicate_detection import DuplicateDetectionService
from app.services.trust_estimator import ReporterTrustEstimator
from app.services.weather_validator import WeatherCrossValidator

logger = logging.getLogger(__name__)

EvaluationOutcome = Union[VerificationResult, DuplicateRejected]


class VerificationEngine:
    """
    Orchestrates the verification components for one submission.
    """

    TRUST_BONUS_ABOVE = 70
    TRUST_PENALTY_BELOW = 30
    TRUST_ADJUSTMENT = 10

    def __init__(
        self,
        weather_validator: WeatherCrossValidator,
        duplicate_detector: DuplicateDetectionService,
        trust_estimator: ReporterTrustEstimator,
        content_checker: Optional[ContentPlausibilityChecker] = None,
    ):
        self.weather_validator = weather_validator
        self.duplicate_detector = duplicate_detector
        self.trust_estimator = trust_estimator
        self.content_checker = content_checker if content_checker is not None else ContentPlausibilityChecker()

    async def evaluate(self, submission: ReportSubmission) -> EvaluationOutcome:
        """
        Single entry point per admitted submission.

        Returns:
            DuplicateRejected if the submission floods or clusters,
            otherwise the immutable VerificationResult.
        """
        verdict = await asyncio.to_thread(self.duplicate_detector.check_duplicate, submission)
        if verdict.is_duplicate:
            return DuplicateRejected(reason=verdict.reason or "Duplicate report")

        return await self.score(submission)

    async def score(self, submission: ReportSubmission) -> VerificationResult:
        """Run the scoring pipeline without the duplicate gate."""
        content = self.content_checker.check(submission)
        weather = await self.weather_validator.validate(submission.description, submission.coordinates)

        ledger = weather.ledger.merge(content.ledger)
        trust = await asyncio.to_thread(self.trust_estimator.estimate, submission.network_identity)

        adjustment = self.trust_adjustment(trust)
        if adjustment < 0:
            ledger = ledger.warn("Reporter has a history of unverified reports")

        result = VerificationResult(
            score=ledger.total + adjustment,
            checks=ledger.checks,
            warnings=ledger.warnings,
            trust=trust,
            annotations=ReportAnnotations(
                weather_condition_at_time=weather.snapshot,
                network_identity=content.network_identity,
                user_agent=content.user_agent,
            ),
        )
        logger.info(
            f"Report verified: score={result.score} admission={result.admission.value} "
            f"trust={trust.value} checks={result.passed} passed/{result.failed} failed"
        )
        return result

    def trust_adjustment(self, trust: TrustScore) -> int:
        if trust.value > self.TRUST_BONUS_ABOVE:
            return self.TRUST_ADJUSTMENT
        if trust.value < self.TRUST_PENALTY_BELOW:
            return -self.TRUST_ADJUSTMENT
        return 0


# Global engine instance (singleton pattern)
_engine: Optional[VerificationEngine] = None


def get_verification_engine() -> VerificationEngine:
    """
    Get or create VerificationEngine singleton instance wired to the
    configured report store and weather provider.
    """
    global _engine
    if _engine is None:
        from app.services.duplicate_detection import get_duplicate_detection_service
        from app.services.trust_estimator import get_trust_estimator
        from app.services.weather import get_weather_provider

        _engine = VerificationEngine(
            weather_validator=WeatherCrossValidator(
                get_weather_provider(),
                timeout_seconds=settings.WEATHER_TIMEOUT_SECONDS,
            ),
            duplicate_detector=get_duplicate_detection_service(),
            trust_estimator=get_trust_estimator(),
        )
    return _engine
