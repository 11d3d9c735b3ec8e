"""Pydantic models for lead qualification data structures."""

import json
import math
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

# Maximum length of a website excerpt, in characters
MAX_EXCERPT_CHARS = 5000

# Score band thresholds
HIGH_SCORE_THRESHOLD = 80
MEDIUM_SCORE_THRESHOLD = 60


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 rounding up."""
    return int(math.floor(value + 0.5))


def coerce_score(value: Any) -> Any:
    """Normalize a raw score into an integer before validation.

    Floats and numeric strings are rounded to the nearest integer. Anything
    that is not a number is rejected.
    """
    if isinstance(value, bool):
        raise ValueError("score must be a number")
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            raise ValueError(f"score is not numeric: {value!r}")
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ValueError("score must be a finite number")
        return round_half_up(value)
    return value


def clamp_score(value: int) -> int:
    """Clamp a score into the 0-100 range."""
    return max(0, min(100, value))


def coerce_text_list(value: Any) -> List[str]:
    """Normalize an insights/recommendations value into a list of strings."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item is not None]
    raise ValueError("expected a list of strings")


class KeyNeedCategory(str, Enum):
    """Fixed, ordered set of business-need categories.

    The first member is the fallback used when no keyword matches.
    """

    GROWTH = "Growth"
    MARKETING = "Marketing"
    FINANCE = "Finance"
    OPERATIONS = "Operations"
    TALENT = "Talent"
    TECHNOLOGY = "Technology"
    COMPETITION = "Competition"
    INNOVATION = "Innovation"
    COMPLIANCE = "Compliance"
    STRATEGY = "Strategy"


class PotentialBand(str, Enum):
    """Qualification potential bands derived from the score."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @classmethod
    def for_score(cls, score: int) -> "PotentialBand":
        """Return the band a score falls into."""
        if score >= HIGH_SCORE_THRESHOLD:
            return cls.HIGH
        if score >= MEDIUM_SCORE_THRESHOLD:
            return cls.MEDIUM
        return cls.LOW

    @property
    def label(self) -> str:
        """Display label, e.g. 'High Potential'."""
        return f"{self.value} Potential"


class QualifyingBusinessProfile(BaseModel):
    """The tool user's own company, used as the reference for qualification."""

    company_name: str = Field(default="", description="Qualifying company name")
    industry: str = Field(default="", description="Qualifying company industry")
    employee_count: str = Field(default="", description="Employee-count bucket")
    annual_revenue: str = Field(default="", description="Revenue bucket")
    business_services: str = Field(
        default="", description="Free-text description of services offered"
    )

    model_config = {"frozen": True}


class LeadSubmission(BaseModel):
    """A prospect being evaluated."""

    company_name: str = Field(..., description="Prospect company name")
    industry: str = Field(default="", description="Prospect industry")
    employee_count: str = Field(default="", description="Employee-count bucket")
    annual_revenue: str = Field(default="", description="Revenue bucket")
    website: Optional[str] = Field(default=None, description="Prospect website URL")
    challenges: str = Field(default="", description="Main challenges, free text")

    model_config = {"frozen": True}

    @field_validator("company_name")
    @classmethod
    def validate_company_name(cls, v: str) -> str:
        """Require a non-blank company name."""
        v = v.strip()
        if not v:
            raise ValueError("company_name must not be blank")
        return v

    @field_validator("website")
    @classmethod
    def normalize_website(cls, v: Optional[str]) -> Optional[str]:
        """Treat a blank website as absent."""
        if v is None:
            return None
        v = v.strip()
        return v or None


class WebsiteExcerpt(BaseModel):
    """Bounded plain-text excerpt of a fetched web page, or a failure marker."""

    url: str = Field(..., description="URL that was fetched")
    content: str = Field(default="", description="Visible text of the page")
    success: bool = Field(default=True, description="Whether the fetch succeeded")
    error: Optional[str] = Field(default=None, description="Reason for a failed fetch")

    @field_validator("content")
    @classmethod
    def truncate_content(cls, v: str) -> str:
        """Cap the excerpt at MAX_EXCERPT_CHARS characters."""
        return v[:MAX_EXCERPT_CHARS]

    @classmethod
    def failure(cls, url: str, error: str) -> "WebsiteExcerpt":
        """Build a failed excerpt carrying a human-readable reason."""
        return cls(url=url, content="", success=False, error=error)

    @property
    def has_content(self) -> bool:
        """True if the fetch succeeded and produced text."""
        return self.success and bool(self.content)


class Verdict(BaseModel):
    """The model's structured judgment of a lead."""

    score: int = Field(..., description="Qualification score, 0-100")
    summary: str = Field(default="", description="Brief qualification summary")
    insights: List[str] = Field(default_factory=list, description="Key insights")
    recommendations: List[str] = Field(
        default_factory=list, description="Recommended next steps"
    )

    @field_validator("score", mode="before")
    @classmethod
    def normalize_score(cls, v: Any) -> Any:
        return coerce_score(v)

    @field_validator("score")
    @classmethod
    def validate_score(cls, v: int) -> int:
        """Ensure score is within valid range."""
        return clamp_score(v)

    @field_validator("summary", mode="before")
    @classmethod
    def normalize_summary(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("insights", "recommendations", mode="before")
    @classmethod
    def normalize_lists(cls, v: Any) -> List[str]:
        return coerce_text_list(v)

    @property
    def band(self) -> PotentialBand:
        """Potential band for this verdict's score."""
        return PotentialBand.for_score(self.score)

    def to_canonical_dict(self) -> Dict[str, Any]:
        """The exact shape the model is asked to produce."""
        return {
            "score": self.score,
            "summary": self.summary,
            "insights": list(self.insights),
            "recommendations": list(self.recommendations),
        }

    def to_canonical_json(self) -> str:
        """Serialize to the canonical {score, summary, insights, recommendations} JSON."""
        return json.dumps(self.to_canonical_dict())


class QualificationRecord(BaseModel):
    """A persisted lead together with its verdict, owned by one user."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    owner_id: str = Field(..., description="ID of the owning user")

    # Lead data
    company_name: str = Field(default="", description="Prospect company name")
    industry: str = Field(default="", description="Prospect industry")
    employee_count: str = Field(default="", description="Employee-count bucket")
    annual_revenue: str = Field(default="", description="Revenue bucket")
    website: Optional[str] = Field(default=None, description="Prospect website URL")
    challenges: str = Field(default="", description="Main challenges, free text")

    # Verdict
    score: int = Field(default=0, description="Qualification score, 0-100")
    summary: str = Field(default="", description="Qualification summary")
    insights: List[str] = Field(default_factory=list, description="Key insights")
    recommendations: List[str] = Field(
        default_factory=list, description="Recommended next steps"
    )

    key_need: Optional[str] = Field(
        default=None, description="Precomputed key-need category"
    )
    created_at: datetime = Field(
        default_factory=utcnow, description="When the record was created"
    )

    @field_validator("score", mode="before")
    @classmethod
    def normalize_score(cls, v: Any) -> Any:
        return coerce_score(v)

    @field_validator("score")
    @classmethod
    def validate_score(cls, v: int) -> int:
        return clamp_score(v)

    @field_validator("insights", "recommendations", mode="before")
    @classmethod
    def normalize_lists(cls, v: Any) -> List[str]:
        return coerce_text_list(v)

    @field_validator("created_at")
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        """Naive timestamps are taken to be UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @classmethod
    def from_analysis(
        cls,
        owner_id: str,
        lead: LeadSubmission,
        verdict: Verdict,
        key_need: Optional[str] = None,
    ) -> "QualificationRecord":
        """Combine a lead and its verdict into a new record."""
        return cls(
            owner_id=owner_id,
            company_name=lead.company_name,
            industry=lead.industry,
            employee_count=lead.employee_count,
            annual_revenue=lead.annual_revenue,
            website=lead.website,
            challenges=lead.challenges,
            score=verdict.score,
            summary=verdict.summary,
            insights=verdict.insights,
            recommendations=verdict.recommendations,
            key_need=key_need,
        )

    @property
    def verdict(self) -> Verdict:
        """The verdict embedded in this record."""
        return Verdict(
            score=self.score,
            summary=self.summary,
            insights=self.insights,
            recommendations=self.recommendations,
        )

    @property
    def lead(self) -> LeadSubmission:
        """The lead submission embedded in this record."""
        return LeadSubmission(
            company_name=self.company_name or "Unknown",
            industry=self.industry,
            employee_count=self.employee_count,
            annual_revenue=self.annual_revenue,
            website=self.website,
            challenges=self.challenges,
        )

    def to_row(self) -> Dict[str, Any]:
        """Convert to the flat persistence shape."""
        return {
            "id": self.id,
            "user_id": self.owner_id,
            "company_name": self.company_name,
            "industry": self.industry,
            "employee_count": self.employee_count,
            "annual_revenue": self.annual_revenue,
            "website": self.website,
            "challenges": self.challenges,
            "qualification_score": self.score,
            "qualification_summary": self.summary,
            "qualification_insights": list(self.insights),
            "qualification_recommendations": list(self.recommendations),
            "key_need": self.key_need,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "QualificationRecord":
        """Build a record from the flat persistence shape."""
        return cls(
            id=row["id"],
            owner_id=row["user_id"],
            company_name=row.get("company_name") or "",
            industry=row.get("industry") or "",
            employee_count=row.get("employee_count") or "",
            annual_revenue=row.get("annual_revenue") or "",
            website=row.get("website") or None,
            challenges=row.get("challenges") or "",
            score=row.get("qualification_score", 0),
            summary=row.get("qualification_summary") or "",
            insights=row.get("qualification_insights"),
            recommendations=row.get("qualification_recommendations"),
            key_need=row.get("key_need") or None,
            created_at=row["created_at"],
        )


class ReportRow(BaseModel):
    """A single record as presented in a summary report."""

    record_id: str = Field(..., description="ID of the source record")
    name: str = Field(default="Unknown", description="Prospect company name")
    industry: str = Field(default="Unknown", description="Prospect industry")
    annual_revenue: str = Field(default="", description="Revenue bucket")
    score: int = Field(..., description="Qualification score")
    band: PotentialBand = Field(..., description="Potential band for the score")
    key_need: str = Field(default=KeyNeedCategory.GROWTH.value, description="Key need")
    date: datetime = Field(..., description="When the record was created")
    is_rescored: bool = Field(
        default=False, description="Whether an older record exists for this company"
    )

    # Detail fields, used by the detailed report mode
    summary: str = Field(default="", description="Qualification summary")
    insights: List[str] = Field(default_factory=list, description="Key insights")
    recommendations: List[str] = Field(
        default_factory=list, description="Recommendations"
    )


class SummaryReport(BaseModel):
    """Aggregated, rendering-ready view of a set of qualification records."""

    rows: List[ReportRow] = Field(default_factory=list, description="Rows by score")
    total_count: int = Field(default=0, description="Number of records")
    average_score: int = Field(default=0, description="Rounded average score")
    high_count: int = Field(default=0, description="Records with score >= 80")
    medium_count: int = Field(default=0, description="Records with 60 <= score < 80")
    low_count: int = Field(default=0, description="Records with score < 60")
    key_need: Optional[str] = Field(
        default=None, description="Resolved key need, single-record reports only"
    )
    generated_at: datetime = Field(
        default_factory=utcnow, description="When the report was generated"
    )

    def is_single(self) -> bool:
        """Check if the report covers exactly one record."""
        return self.total_count == 1


class EmailMessage(BaseModel):
    """A rendered report ready for the mail-dispatch collaborator."""

    to_email: str = Field(..., description="Destination address")
    subject: str = Field(..., description="Subject line")
    html_content: str = Field(default="", description="HTML body")
    text_content: str = Field(default="", description="Plain-text body")
