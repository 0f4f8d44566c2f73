"""
Pydantic models for crowd-sourced weather reports.
These models handle validation for report submission, the evaluation input
handed to the verification engine, and the persisted report record.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List, Dict

from app.models.base import BaseResponse
from app.models.verification import VerificationResult
from app.utils.clock import utc_now
from app.utils.security import sanitize_text


class Coordinates(BaseModel):
    """GPS position attached to a report."""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    class Config:
        frozen = True


class ReportCreate(BaseModel):
    """
    Model for creating a new report (incoming POST request).
    These are the fields citizens provide when submitting an observation.
    """
    reporter: str = Field(..., min_length=1, max_length=100, description="Display name of the reporter")
    description: str = Field(..., min_length=1, max_length=5000, description="What the citizen observed")
    location: str = Field(..., min_length=1, max_length=200, description="Free-text location label")
    coordinates: Optional[Coordinates] = Field(None, description="GPS coordinates (optional)")

    @field_validator("reporter", "description", "location")
    @classmethod
    def strip_markup(cls, value: str) -> str:
        return sanitize_text(value)

    class Config:
        json_schema_extra = {
            "example": {
                "reporter": "Ayesha",
                "description": "It is raining heavily here, roads are flooding",
                "location": "Gulberg, Lahore",
                "coordinates": {"latitude": 31.5204, "longitude": 74.3587},
            }
        }
        extra = "ignore"


class ReportSubmission(BaseModel):
    """
    Ephemeral evaluation input.

    Built by the submission workflow from a ReportCreate plus request
    metadata (hashed source address, user agent).
    """
    description: str
    location: str
    coordinates: Optional[Coordinates] = None
    network_identity: Optional[str] = Field(None, description="Hashed source address")
    client_signature: Optional[str] = Field(None, description="Client user-agent string")
    submitted_at: datetime = Field(default_factory=utc_now)

    class Config:
        frozen = True


class ReportRecord(BaseModel):
    """
    A report as stored in the report history store.

    Duplicate detection and trust estimation read `network_identity`,
    `coordinates`, `verified`, `auto_verified` and `created_at`.
    """
    id: Optional[str] = None
    reporter: str = ""
    description: str = ""
    location: str = ""
    coordinates: Optional[Coordinates] = None
    network_identity: Optional[str] = None
    user_agent: Optional[str] = None
    verified: bool = False
    auto_verified: bool = False
    verification_score: int = 0
    status: str = Field(default="pending", description="verified | pending | flagged")
    verification_checks: List[Dict] = Field(default_factory=list)
    verification_warnings: List[str] = Field(default_factory=list)
    weather_condition_at_time: Optional[Dict] = None
    created_at: datetime = Field(default_factory=utc_now)

    def to_document(self) -> Dict:
        """Flatten into a store document (coordinates as a nested map)."""
        document = self.model_dump(exclude={"id"})
        if self.coordinates is not None:
            document["coordinates"] = self.coordinates.model_dump()
        return document

    @classmethod
    def from_document(cls, doc_id: Optional[str], data: Dict) -> "ReportRecord":
        return cls(id=doc_id, **data)


class ReportSubmissionResponse(BaseResponse):
    """Response for POST /reports: the stored report plus its verification."""
    report: ReportRecord
    verification: VerificationResult
