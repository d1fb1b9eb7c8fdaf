"""
Professional profile model and its related collections.
"""
from sqlalchemy import Column, String, Integer, Text, ForeignKey, Boolean, Date, Uuid
from sqlalchemy.orm import relationship

from ..base import Base, JSONType, UUIDMixin, TimestampMixin


class VerificationStatus:
    UNVERIFIED = "UNVERIFIED"
    BASIC = "BASIC"
    FULL = "FULL"
    PREMIUM = "PREMIUM"

    ALL = (UNVERIFIED, BASIC, FULL, PREMIUM)


class Professional(Base, UUIDMixin, TimestampMixin):
    """
    Professional profile. profile_completeness caches the score computed
    from this row and its collections.
    """
    __tablename__ = "professionals"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), unique=True, nullable=False, index=True)

    # Basic info
    first_name = Column(String(255))
    last_name = Column(String(255))
    preferred_name = Column(String(255))
    profile_headline = Column(String(255))
    location_city = Column(String(255), index=True)
    location_state = Column(String(255), index=True)
    current_industry = Column(String(255), index=True)

    # Professional details
    current_title = Column(String(255))
    current_company = Column(String(255))
    years_of_experience = Column(Integer, default=0, nullable=False)
    profile_summary = Column(Text)

    # Documents and links
    resume_url = Column(String(1024))
    profile_photo_url = Column(String(1024))
    linkedin_url = Column(String(1024))
    portfolio_url = Column(String(1024))

    # Career expectations
    salary_expectation_min = Column(Integer)
    salary_expectation_max = Column(Integer)
    notice_period_days = Column(Integer)
    willing_to_relocate = Column(Boolean, default=False, nullable=False)

    # Privacy
    open_to_opportunities = Column(Boolean, default=True, nullable=False)
    confidential_search = Column(Boolean, default=False, nullable=False)
    hide_from_company_ids = Column(JSONType, default=list, nullable=False)

    verification_status = Column(String(20), default=VerificationStatus.UNVERIFIED, nullable=False, index=True)
    profile_completeness = Column(Integer, default=0, nullable=False)

    # Relationships
    user = relationship("User", back_populates="professional")
    skills = relationship("ProfessionalSkill", back_populates="professional", cascade="all, delete-orphan")
    work_history = relationship(
        "WorkHistory",
        back_populates="professional",
        cascade="all, delete-orphan",
        order_by="WorkHistory.start_date.desc()",
    )
    education = relationship("Education", back_populates="professional", cascade="all, delete-orphan")
    certifications = relationship("Certification", back_populates="professional", cascade="all, delete-orphan")
    introduction_requests = relationship("IntroductionRequest", back_populates="professional")

    def is_hidden_from(self, company_id) -> bool:
        """True when the professional has blocked the given company."""
        return str(company_id) in {str(cid) for cid in (self.hide_from_company_ids or [])}


class ProfessionalSkill(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "professional_skills"

    professional_id = Column(Uuid(as_uuid=True), ForeignKey("professionals.id"), nullable=False, index=True)
    skill_name = Column(String(255), nullable=False)
    is_primary_skill = Column(Boolean, default=False, nullable=False)

    professional = relationship("Professional", back_populates="skills")


class WorkHistory(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "work_history"

    professional_id = Column(Uuid(as_uuid=True), ForeignKey("professionals.id"), nullable=False, index=True)
    job_title = Column(String(255), nullable=False)
    company_name = Column(String(255), nullable=False)
    industry = Column(String(255))
    location = Column(String(255))
    employment_type = Column(String(50), default="full_time", nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date)
    is_current = Column(Boolean, default=False, nullable=False)
    description = Column(Text)

    professional = relationship("Professional", back_populates="work_history")


class Education(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "education"

    professional_id = Column(Uuid(as_uuid=True), ForeignKey("professionals.id"), nullable=False, index=True)
    institution_name = Column(String(255), nullable=False)
    degree = Column(String(255))
    field_of_study = Column(String(255))
    start_year = Column(Integer)
    end_year = Column(Integer)

    professional = relationship("Professional", back_populates="education")


class Certification(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "certifications"

    professional_id = Column(Uuid(as_uuid=True), ForeignKey("professionals.id"), nullable=False, index=True)
    certification_name = Column(String(255), nullable=False)
    issuing_organization = Column(String(255))
    issue_date = Column(Date)
    expiry_date = Column(Date)
    credential_url = Column(String(1024))

    professional = relationship("Professional", back_populates="certifications")
