"""
Pydantic schemas for professional profiles.
"""
from datetime import date, datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import ConfigDict, Field, field_validator, model_validator

from app.db.models.professional import VerificationStatus
from app.schemas.common import CamelModel
from app.services.completeness import CompletenessBreakdown


class SkillOut(CamelModel):
    id: UUID
    skill_name: str
    is_primary_skill: bool = False


class WorkHistoryIn(CamelModel):
    job_title: str = Field(..., min_length=1, max_length=255)
    company_name: str = Field(..., min_length=1, max_length=255)
    industry: Optional[str] = None
    location: Optional[str] = None
    employment_type: str = "full_time"
    start_date: date
    end_date: Optional[date] = None
    is_current: bool = False
    description: Optional[str] = None

    @model_validator(mode="after")
    def check_dates(self) -> "WorkHistoryIn":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self


class WorkHistoryOut(WorkHistoryIn):
    id: UUID


class EducationOut(CamelModel):
    id: UUID
    institution_name: str
    degree: Optional[str] = None
    field_of_study: Optional[str] = None
    start_year: Optional[int] = None
    end_year: Optional[int] = None


class CertificationOut(CamelModel):
    id: UUID
    certification_name: str
    issuing_organization: Optional[str] = None
    issue_date: Optional[date] = None
    expiry_date: Optional[date] = None
    credential_url: Optional[str] = None


class ProfessionalBase(CamelModel):
    first_name: Optional[str] = Field(None, max_length=255)
    last_name: Optional[str] = Field(None, max_length=255)
    preferred_name: Optional[str] = Field(None, max_length=255)
    profile_headline: Optional[str] = Field(None, max_length=255)
    location_city: Optional[str] = Field(None, max_length=255)
    location_state: Optional[str] = Field(None, max_length=255)
    current_industry: Optional[str] = Field(None, max_length=255)
    current_title: Optional[str] = Field(None, max_length=255)
    current_company: Optional[str] = Field(None, max_length=255)
    years_of_experience: Optional[int] = Field(None, ge=0, le=70)
    profile_summary: Optional[str] = None
    resume_url: Optional[str] = None
    profile_photo_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    portfolio_url: Optional[str] = None
    salary_expectation_min: Optional[int] = Field(None, ge=0)
    salary_expectation_max: Optional[int] = Field(None, ge=0)
    notice_period_days: Optional[int] = Field(None, ge=0)
    willing_to_relocate: Optional[bool] = None
    open_to_opportunities: Optional[bool] = None
    confidential_search: Optional[bool] = None


# Columns that reject NULL; an explicit null from the client leaves them unchanged
_NON_NULLABLE = (
    "years_of_experience",
    "willing_to_relocate",
    "open_to_opportunities",
    "confidential_search",
)


class ProfessionalUpdate(ProfessionalBase):
    """Partial update of the caller's own profile. Omitted fields are left alone."""
    hide_from_company_ids: Optional[List[UUID]] = None
    skills: Optional[List[str]] = Field(None, description="Skill names; the first is the primary skill")
    work_history: Optional[List[WorkHistoryIn]] = None

    @field_validator("skills")
    @classmethod
    def clean_skills(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        seen = []
        for name in (s.strip() for s in v):
            if name and name.lower() not in (n.lower() for n in seen):
                seen.append(name)
        return seen

    @model_validator(mode="after")
    def check_salary_range(self) -> "ProfessionalUpdate":
        low, high = self.salary_expectation_min, self.salary_expectation_max
        if low is not None and high is not None and low > high:
            raise ValueError("salaryExpectationMin must not exceed salaryExpectationMax")
        return self

    def to_update_data(self) -> Dict:
        """Fields the client actually sent, in model attribute names."""
        data = self.model_dump(exclude_unset=True, exclude={"work_history", "hide_from_company_ids"})
        for field in _NON_NULLABLE:
            if field in data and data[field] is None:
                data.pop(field)
        if self.hide_from_company_ids is not None:
            data["hide_from_company_ids"] = [str(cid) for cid in self.hide_from_company_ids]
        if self.work_history is not None:
            data["work_history"] = [entry.model_dump() for entry in self.work_history]
        return data


class ProfessionalOut(ProfessionalBase):
    id: UUID
    user_id: UUID
    years_of_experience: int = 0
    hide_from_company_ids: List[str] = Field(default_factory=list)
    verification_status: str = VerificationStatus.UNVERIFIED
    profile_completeness: int = 0
    skills: List[SkillOut] = Field(default_factory=list)
    work_history: List[WorkHistoryOut] = Field(default_factory=list)
    education: List[EducationOut] = Field(default_factory=list)
    certifications: List[CertificationOut] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class IntroductionCounts(CamelModel):
    pending: int = 0
    accepted: int = 0
    declined: int = 0
    expired: int = 0
    total: int = 0


class ProfessionalMeOut(CamelModel):
    professional: ProfessionalOut
    completeness: CompletenessBreakdown
    recommendations: List[str]
    introduction_counts: IntroductionCounts


class ProfessionalUpdateOut(CamelModel):
    professional: ProfessionalOut
    profile_completeness: int
    completeness_breakdown: CompletenessBreakdown


# --- Talent search ---

class ExperienceRange(CamelModel):
    min: Optional[int] = Field(None, ge=0)
    max: Optional[int] = Field(None, ge=0)


class SalaryRange(CamelModel):
    min: Optional[int] = Field(None, ge=0)
    max: Optional[int] = Field(None, ge=0)


class LocationFilter(CamelModel):
    city: Optional[str] = None
    state: Optional[str] = None


class TalentSearchFilters(CamelModel):
    """
    Filters an HR partner can apply when searching for talent.

    Every dimension is optional; unknown keys are rejected.
    """
    model_config = ConfigDict(extra="forbid")

    query: Optional[str] = Field(None, max_length=200)
    location: Optional[LocationFilter] = None
    experience_range: Optional[ExperienceRange] = None
    industry: Optional[List[str]] = None
    skills: Optional[List[str]] = None
    salary_range: Optional[SalaryRange] = None
    verification_status: Optional[List[str]] = None
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)

    @field_validator("verification_status")
    @classmethod
    def validate_verification_status(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        normalized = [s.upper() for s in v]
        unknown = [s for s in normalized if s not in VerificationStatus.ALL]
        if unknown:
            raise ValueError(f"Unknown verification status: {', '.join(unknown)}")
        return normalized
