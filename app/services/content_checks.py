"""
Content Plausibility Checker.

Pure structural/lexical checks over the submitted text, location label and
request metadata. No I/O.

Checks (points):
- Report Quality: description length 20-1000 → 15, shorter → 0 + warning.
  Longer than 1000 is neither rewarded nor penalised (no entry).
- Content Validity: no deny-listed token in location/description → 15
- Timestamp Valid: flat 10
- Request Authenticity: identity AND client signature present → 10, and
  both are recorded for later duplicate/trust lookups
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

from app.models.report import ReportSubmission
from app.models.verification import CheckStatus
from app.services.check_ledger import CheckLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContentOutcome:
    ledger: CheckLedger = field(default_factory=CheckLedger)
    network_identity: Optional[str] = None
    user_agent: Optional[str] = None


class ContentPlausibilityChecker:

    MIN_DESCRIPTION_LENGTH = 20
    MAX_DESCRIPTION_LENGTH = 1000
    SUSPICIOUS_TOKENS = ("test", "fake", "dummy", "xxx", "123", "asdf")

    QUALITY_POINTS = 15
    VALIDITY_POINTS = 15
    TIMESTAMP_POINTS = 10
    AUTHENTICITY_POINTS = 10

    def check(self, submission: ReportSubmission) -> ContentOutcome:
        ledger = CheckLedger()
        ledger = self._check_quality(ledger, submission.description or "")
        ledger = self._check_validity(ledger, submission.description or "", submission.location or "")
        ledger = ledger.add("Timestamp Valid", CheckStatus.PASSED, self.TIMESTAMP_POINTS)

        if submission.network_identity and submission.client_signature:
            ledger = ledger.add("Request Authenticity", CheckStatus.PASSED, self.AUTHENTICITY_POINTS)
            return ContentOutcome(
                ledger=ledger,
                network_identity=submission.network_identity,
                user_agent=submission.client_signature,
            )

        return ContentOutcome(ledger=ledger)

    def _check_quality(self, ledger: CheckLedger, description: str) -> CheckLedger:
        length = len(description)
        if self.MIN_DESCRIPTION_LENGTH <= length <= self.MAX_DESCRIPTION_LENGTH:
            return ledger.add("Report Quality", CheckStatus.PASSED, self.QUALITY_POINTS)
        if length < self.MIN_DESCRIPTION_LENGTH:
            return ledger.add(
                "Report Quality",
                CheckStatus.FAILED,
                0,
                warning=f"Report description too short (minimum {self.MIN_DESCRIPTION_LENGTH} characters)",
            )
        logger.debug(f"Description length {length} above {self.MAX_DESCRIPTION_LENGTH}, no quality bonus")
        return ledger

    def is_suspicious(self, description: str, location: str) -> bool:
        description_lower = description.lower()
        location_lower = location.lower()
        return any(
            token in location_lower or token in description_lower
            for token in self.SUSPICIOUS_TOKENS
        )

    def _check_validity(self, ledger: CheckLedger, description: str, location: str) -> CheckLedger:
        if self.is_suspicious(description, location):
            return ledger.add("Content Validity", CheckStatus.FAILED, 0, warning="Suspicious content detected")
        return ledger.add("Content Validity", CheckStatus.PASSED, self.VALIDITY_POINTS)
