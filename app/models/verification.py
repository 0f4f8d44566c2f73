"""
Pydantic models for verification outcomes.

Everything here is immutable once built: checks are appended through
CheckLedger (app.services.verification_engine) and folded into a single
VerificationResult at the end of the pipeline.
"""

from pydantic import BaseModel, Field, computed_field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


class CheckStatus(str, Enum):
    PASSED = "passed"
    PARTIAL = "partial"
    FAILED = "failed"
    ERROR = "error"


class Admission(str, Enum):
    """
    Admission tier derived from the final score.

    score >= 70       -> AUTO_VERIFIED
    40 <= score < 70  -> PENDING_REVIEW
    score < 40        -> FLAGGED
    """
    AUTO_VERIFIED = "auto_verified"
    PENDING_REVIEW = "pending_review"
    FLAGGED = "flagged"

    @classmethod
    def from_score(cls, score: int) -> "Admission":
        if score >= 70:
            return cls.AUTO_VERIFIED
        if score >= 40:
            return cls.PENDING_REVIEW
        return cls.FLAGGED

    @property
    def legacy_status(self) -> str:
        """Short status string stored on report records."""
        return {
            Admission.AUTO_VERIFIED: "verified",
            Admission.PENDING_REVIEW: "pending",
            Admission.FLAGGED: "flagged",
        }[self]


class VerificationCheck(BaseModel):
    name: str
    status: CheckStatus
    points: int = Field(0, ge=0)

    class Config:
        frozen = True


class WeatherConditions(BaseModel):
    """Current conditions as returned by a weather provider."""
    condition_text: str
    temperature_celsius: float
    wind_speed: float
    humidity: Optional[float] = None

    class Config:
        frozen = True


class WeatherSnapshot(BaseModel):
    """Conditions fetched during verification, kept on the report for audit."""
    temperature: float
    description: str
    humidity: Optional[float] = None
    wind_speed: float
    observed_at: datetime

    class Config:
        frozen = True


class ReportAnnotations(BaseModel):
    """Values recorded during verification for later duplicate/trust lookups."""
    weather_condition_at_time: Optional[WeatherSnapshot] = None
    network_identity: Optional[str] = None
    user_agent: Optional[str] = None

    class Config:
        frozen = True


class TrustScore(BaseModel):
    value: int = Field(50, ge=0, le=100)
    history_size: int = 0
    degraded: bool = False

    class Config:
        frozen = True


class DuplicateVerdict(BaseModel):
    is_duplicate: bool = False
    reason: Optional[str] = None
    degraded: bool = False

    class Config:
        frozen = True


class DuplicateRejected(BaseModel):
    """Rejection outcome: the submission was not scored."""
    reason: str

    class Config:
        frozen = True


class VerificationResult(BaseModel):
    score: int
    checks: Tuple[VerificationCheck, ...] = ()
    warnings: Tuple[str, ...] = ()
    trust: TrustScore = Field(default_factory=TrustScore)
    annotations: ReportAnnotations = Field(default_factory=ReportAnnotations)

    class Config:
        frozen = True

    @computed_field
    @property
    def admission(self) -> Admission:
        return Admission.from_score(self.score)

    @property
    def auto_verified(self) -> bool:
        return self.admission is Admission.AUTO_VERIFIED

    @property
    def needs_review(self) -> bool:
        return self.admission is Admission.PENDING_REVIEW

    @property
    def likely_fake(self) -> bool:
        return self.admission is Admission.FLAGGED

    @computed_field
    @property
    def status(self) -> str:
        return self.admission.legacy_status

    @property
    def passed(self) -> int:
        return sum(1 for check in self.checks if check.status is CheckStatus.PASSED)

    @property
    def failed(self) -> int:
        return sum(1 for check in self.checks if check.status is CheckStatus.FAILED)


class Admitted(BaseModel):
    remaining: int

    class Config:
        frozen = True


class RateLimited(BaseModel):
    retry_after_seconds: int = Field(..., gt=0)

    class Config:
        frozen = True
