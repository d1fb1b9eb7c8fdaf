"""
Profile completeness scoring.

Six weighted categories summing to 100. Each category score is
weight * passed / total rounded half-up on its own, and the overall score
is the sum of those rounded values. Summing first and rounding once can
differ by a point or two, so the order matters.
"""
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel

from app.db.models.professional import VerificationStatus
from app.schemas.common import CamelModel

MIN_YEARS_OF_EXPERIENCE = 5
MIN_SUMMARY_LENGTH = 50
MIN_SKILLS = 3
MAX_RECOMMENDATIONS = 5

CATEGORY_WEIGHTS = {
    "basicInfo": 20,
    "professionalDetails": 25,
    "verification": 20,
    "documents": 15,
    "networkAndSkills": 10,
    "additional": 10,
}


class CategoryBreakdown(BaseModel):
    score: int
    weight: int
    completed: int
    total: int
    items: Dict[str, bool]


class CompletenessBreakdown(BaseModel):
    overall: int
    categories: Dict[str, CategoryBreakdown]


class CategoryStatus(CamelModel):
    is_complete: bool
    progress: float
    score: int
    weight: int


@dataclass
class ProfileAggregate:
    """
    Everything the scorer looks at, detached from the ORM so scoring
    stays a pure function.
    """
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_headline: Optional[str] = None
    location_city: Optional[str] = None
    location_state: Optional[str] = None
    current_industry: Optional[str] = None
    current_title: Optional[str] = None
    current_company: Optional[str] = None
    years_of_experience: Optional[int] = 0
    profile_summary: Optional[str] = None
    verification_status: Optional[str] = VerificationStatus.UNVERIFIED
    phone_verified: bool = False
    resume_url: Optional[str] = None
    profile_photo_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    portfolio_url: Optional[str] = None
    skills: Sequence[Any] = field(default_factory=list)
    work_history: Sequence[Any] = field(default_factory=list)
    education: Sequence[Any] = field(default_factory=list)
    certifications: Sequence[Any] = field(default_factory=list)

    @classmethod
    def from_professional(cls, professional: Any, phone_verified: Optional[bool] = None) -> "ProfileAggregate":
        """
        Build from a Professional row. Its collections and user must already be loaded.
        """
        if phone_verified is None:
            user = getattr(professional, "user", None)
            phone_verified = bool(user is not None and user.phone_verified)

        return cls(
            first_name=professional.first_name,
            last_name=professional.last_name,
            profile_headline=professional.profile_headline,
            location_city=professional.location_city,
            location_state=professional.location_state,
            current_industry=professional.current_industry,
            current_title=professional.current_title,
            current_company=professional.current_company,
            years_of_experience=professional.years_of_experience,
            profile_summary=professional.profile_summary,
            verification_status=professional.verification_status,
            phone_verified=phone_verified,
            resume_url=professional.resume_url,
            profile_photo_url=professional.profile_photo_url,
            linkedin_url=professional.linkedin_url,
            portfolio_url=professional.portfolio_url,
            skills=list(professional.skills or []),
            work_history=list(professional.work_history or []),
            education=list(professional.education or []),
            certifications=list(professional.certifications or []),
        )


def _filled(value: Optional[str]) -> bool:
    return bool(value and value.strip())


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _category(name: str, items: Dict[str, bool]) -> CategoryBreakdown:
    weight = CATEGORY_WEIGHTS[name]
    completed = sum(1 for passed in items.values() if passed)
    total = len(items)
    score = _round_half_up(Decimal(weight * completed) / Decimal(total))
    return CategoryBreakdown(score=score, weight=weight, completed=completed, total=total, items=items)


def calculate_profile_completeness(profile: ProfileAggregate) -> CompletenessBreakdown:
    """
    Score a profile.

    Args:
        profile: The profile fields and collections to score

    Returns:
        CompletenessBreakdown with the overall score and per-category detail
    """
    summary = profile.profile_summary or ""

    categories = {
        "basicInfo": _category("basicInfo", {
            "firstName": _filled(profile.first_name),
            "lastName": _filled(profile.last_name),
            "profileHeadline": _filled(profile.profile_headline),
            "locationCity": _filled(profile.location_city),
            "locationState": _filled(profile.location_state),
            "currentIndustry": _filled(profile.current_industry),
        }),
        "professionalDetails": _category("professionalDetails", {
            "currentTitle": _filled(profile.current_title),
            "currentCompany": _filled(profile.current_company),
            "yearsOfExperience": (profile.years_of_experience or 0) >= MIN_YEARS_OF_EXPERIENCE,
            "profileSummary": _filled(summary) and len(summary) >= MIN_SUMMARY_LENGTH,
        }),
        "verification": _category("verification", {
            "adminVerified": profile.verification_status in (VerificationStatus.FULL, VerificationStatus.PREMIUM),
            "phoneVerified": bool(profile.phone_verified),
        }),
        "documents": _category("documents", {
            "resumeUrl": _filled(profile.resume_url),
            "profilePhotoUrl": _filled(profile.profile_photo_url),
        }),
        "networkAndSkills": _category("networkAndSkills", {
            "linkedinUrl": _filled(profile.linkedin_url),
            "skillsCount": len(profile.skills or []) >= MIN_SKILLS,
            "workHistoryCount": len(profile.work_history or []) >= 1,
        }),
        "additional": _category("additional", {
            "portfolioUrl": _filled(profile.portfolio_url),
            "educationCount": len(profile.education or []) >= 1,
            "certificationsCount": len(profile.certifications or []) >= 1,
        }),
    }

    overall = sum(category.score for category in categories.values())
    return CompletenessBreakdown(overall=overall, categories=categories)


def get_category_status(breakdown: CompletenessBreakdown, category: str) -> CategoryStatus:
    cat = breakdown.categories[category]
    return CategoryStatus(
        is_complete=cat.completed == cat.total,
        progress=cat.completed / cat.total,
        score=cat.score,
        weight=cat.weight,
    )


# (category, items that must all pass, suggestion), in the order they are offered
_RECOMMENDATIONS = (
    ("basicInfo", ("firstName", "lastName"), "Complete your full name"),
    ("basicInfo", ("profileHeadline",), "Add a compelling professional headline"),
    ("basicInfo", ("locationCity", "locationState"), "Add your location information"),
    ("basicInfo", ("currentIndustry",), "Specify your current industry"),
    ("professionalDetails", ("currentTitle",), "Add your current job title"),
    ("professionalDetails", ("currentCompany",), "Add your current company"),
    ("professionalDetails", ("yearsOfExperience",), "Add your years of experience (minimum 5 years)"),
    ("professionalDetails", ("profileSummary",), "Write a detailed professional summary (at least 50 characters)"),
    ("verification", ("phoneVerified",), "Verify your phone number"),
    ("verification", ("adminVerified",), "Complete admin verification process"),
    ("documents", ("resumeUrl",), "Upload your resume"),
    ("documents", ("profilePhotoUrl",), "Add a professional profile picture"),
    ("networkAndSkills", ("linkedinUrl",), "Add your LinkedIn profile URL"),
    ("networkAndSkills", ("skillsCount",), "Add at least 3 skills"),
    ("networkAndSkills", ("workHistoryCount",), "Add at least one work experience entry"),
    ("additional", ("portfolioUrl",), "Add your portfolio website URL"),
    ("additional", ("educationCount",), "Add your educational background"),
    ("additional", ("certificationsCount",), "Add professional certifications"),
)


def get_completeness_recommendations(breakdown: CompletenessBreakdown) -> List[str]:
    """
    Up to five suggestions for the items still missing, first categories first.
    """
    recommendations: List[str] = []
    for category, item_names, suggestion in _RECOMMENDATIONS:
        items = breakdown.categories[category].items
        if not all(items[name] for name in item_names):
            recommendations.append(suggestion)
            if len(recommendations) == MAX_RECOMMENDATIONS:
                break
    return recommendations
