"""
Pydantic schemas for introduction requests.
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from app.core.config import settings
from app.db.models.introduction import IntroductionRequest
from app.schemas.common import CamelModel, PaginationInfo

CONFIDENTIAL_COMPANY_ID = "confidential"
CONFIDENTIAL_COMPANY_NAME = "Confidential Company"
CONFIDENTIAL_LOCATION = "Confidential"


# --- Request bodies ---

class IntroductionCreate(CamelModel):
    professional_id: UUID = Field(..., description="Recipient professional")
    job_role_id: UUID = Field(..., description="Active job role owned by the caller's company")
    personalized_message: str = Field(..., description="Message shown to the professional")

    @field_validator("personalized_message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Message is required")
        if len(v) > settings.INTRODUCTION_MESSAGE_MAX_LENGTH:
            raise ValueError(f"Message must be at most {settings.INTRODUCTION_MESSAGE_MAX_LENGTH} characters")
        return v


class IntroductionRespond(CamelModel):
    message: Optional[str] = Field(None, description="Optional reply from the professional")


# --- Nested views ---

class JobRoleSummary(CamelModel):
    id: UUID
    role_title: str
    role_description: Optional[str] = None
    seniority_level: Optional[str] = None
    location_city: Optional[str] = None
    location_state: Optional[str] = None
    salary_range_min: Optional[int] = None
    salary_range_max: Optional[int] = None
    remote_option: Optional[str] = None
    employment_type: Optional[str] = None
    is_confidential: bool = False
    confidential_reason: Optional[str] = None


class CompanySummary(CamelModel):
    # "confidential" when redacted
    id: UUID | str
    company_name: str
    company_logo_url: Optional[str] = None
    industry: Optional[str] = None
    company_size: Optional[str] = None
    headquarters_location: Optional[str] = None


class HrPartnerSummary(CamelModel):
    id: UUID
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    job_title: Optional[str] = None
    profile_photo_url: Optional[str] = None


class ProfessionalSummary(CamelModel):
    id: UUID
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_headline: Optional[str] = None
    current_title: Optional[str] = None
    location_city: Optional[str] = None
    location_state: Optional[str] = None
    profile_photo_url: Optional[str] = None
    linkedin_url: Optional[str] = None


# --- Responses ---

class IntroductionCreated(CamelModel):
    id: UUID
    professional_id: UUID
    job_role_id: UUID
    status: str
    expires_at: datetime
    sent_at: datetime


class IntroductionCreatedData(CamelModel):
    introduction_request: IntroductionCreated


class IntroductionOut(CamelModel):
    id: UUID
    job_role_id: UUID
    company_id: UUID
    sent_by_hr_id: UUID
    professional_id: UUID
    status: str = Field(..., description="Effective status; EXPIRED once a pending request passes expiresAt")
    is_expired: bool = False
    personalized_message: str
    professional_response: Optional[str] = None
    sent_at: datetime
    response_date: Optional[datetime] = None
    expires_at: datetime
    viewed_by_professional: bool = False
    viewed_at: Optional[datetime] = None
    job_role: Optional[JobRoleSummary] = None
    company: Optional[CompanySummary] = None
    sent_by: Optional[HrPartnerSummary] = None
    professional: Optional[ProfessionalSummary] = None


class IntroductionListData(CamelModel):
    introductions: List[IntroductionOut]
    pagination: PaginationInfo


class DeclineData(CamelModel):
    introduction: IntroductionOut


class AcceptData(DeclineData):
    contact_details_unlocked: bool


class IntroductionStatsOut(CamelModel):
    total_sent: int
    pending: int
    accepted: int
    declined: int
    expired: int
    acceptance_rate: float = Field(..., description="Accepted share of answered requests, in percent")
    average_response_time: float = Field(..., description="Mean hours to an answer")
    this_month: int
    last_month: int
    trend: str


def redacted_company(company) -> CompanySummary:
    """Company view for a confidential role: only industry and size survive."""
    return CompanySummary(
        id=CONFIDENTIAL_COMPANY_ID,
        company_name=CONFIDENTIAL_COMPANY_NAME,
        company_logo_url=None,
        industry=company.industry if company else None,
        company_size=company.company_size if company else None,
        headquarters_location=CONFIDENTIAL_LOCATION,
    )


def build_introduction_out(
    introduction: IntroductionRequest,
    now: Optional[datetime] = None,
    *,
    for_recipient: bool = False,
    include_professional: bool = False,
) -> IntroductionOut:
    """
    Serialize a request with its loaded relations.

    Args:
        introduction: Request with job_role, company, sent_by and professional loaded
        now: Reference time for the effective status
        for_recipient: Hide the company of confidential roles
        include_professional: Embed the recipient summary (sender views)
    """
    job_role = introduction.job_role
    company = introduction.company

    if for_recipient and job_role is not None and job_role.is_confidential:
        company_out = redacted_company(company)
    else:
        company_out = CompanySummary.model_validate(company) if company is not None else None

    return IntroductionOut(
        id=introduction.id,
        job_role_id=introduction.job_role_id,
        company_id=introduction.company_id,
        sent_by_hr_id=introduction.sent_by_hr_id,
        professional_id=introduction.professional_id,
        status=introduction.effective_status(now),
        is_expired=introduction.is_expired(now),
        personalized_message=introduction.personalized_message,
        professional_response=introduction.professional_response,
        sent_at=introduction.sent_at,
        response_date=introduction.response_date,
        expires_at=introduction.expires_at,
        viewed_by_professional=bool(introduction.viewed_by_professional),
        viewed_at=introduction.viewed_at,
        job_role=JobRoleSummary.model_validate(job_role) if job_role is not None else None,
        company=company_out,
        sent_by=HrPartnerSummary.model_validate(introduction.sent_by) if introduction.sent_by is not None else None,
        professional=(
            ProfessionalSummary.model_validate(introduction.professional)
            if include_professional and introduction.professional is not None
            else None
        ),
    )
