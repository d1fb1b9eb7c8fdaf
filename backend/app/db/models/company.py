"""
Company, HR partner and job role models.
"""
from sqlalchemy import Column, String, Text, Integer, ForeignKey, Boolean, CheckConstraint, Uuid
from sqlalchemy.orm import relationship

from ..base import Base, UUIDMixin, TimestampMixin


class JobRoleStatus:
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    CLOSED = "CLOSED"


class Company(Base, UUIDMixin, TimestampMixin):
    """
    Hiring company. Holds the introduction credit balance shared by its HR partners.
    """
    __tablename__ = "companies"
    __table_args__ = (
        CheckConstraint("introduction_credits >= 0", name="introduction_credits_non_negative"),
    )

    company_name = Column(String(255), nullable=False, index=True)
    company_logo_url = Column(String)
    industry = Column(String(255), index=True)
    company_size = Column(String(50))
    headquarters_location = Column(String(255))
    company_website = Column(String(1024))
    company_description = Column(Text)

    # Quota consumed by introduction requests
    introduction_credits = Column(Integer, default=0, nullable=False)

    # Relationships
    hr_partners = relationship("HrPartner", back_populates="company")
    job_roles = relationship("JobRole", back_populates="company")
    introduction_requests = relationship("IntroductionRequest", back_populates="company")


class HrPartner(Base, UUIDMixin, TimestampMixin):
    """
    HR partner acting on behalf of a company.
    """
    __tablename__ = "hr_partners"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), unique=True, nullable=False, index=True)
    company_id = Column(Uuid(as_uuid=True), ForeignKey("companies.id"), nullable=False, index=True)
    first_name = Column(String(255))
    last_name = Column(String(255))
    job_title = Column(String(255))
    profile_photo_url = Column(String)
    linkedin_url = Column(String(1024))

    # Relationships
    user = relationship("User", back_populates="hr_partner")
    company = relationship("Company", back_populates="hr_partners")
    sent_introductions = relationship("IntroductionRequest", back_populates="sent_by")


class JobRole(Base, UUIDMixin, TimestampMixin):
    """
    Open role a company recruits for. Confidential roles hide the company
    from professionals.
    """
    __tablename__ = "job_roles"

    company_id = Column(Uuid(as_uuid=True), ForeignKey("companies.id"), nullable=False, index=True)
    role_title = Column(String(255), nullable=False)
    role_description = Column(Text)
    seniority_level = Column(String(50))
    location_city = Column(String(255))
    location_state = Column(String(255))
    salary_range_min = Column(Integer)
    salary_range_max = Column(Integer)
    remote_option = Column(String(50))
    employment_type = Column(String(50))
    status = Column(String(20), default=JobRoleStatus.DRAFT, nullable=False, index=True)
    is_confidential = Column(Boolean, default=False, nullable=False)
    confidential_reason = Column(Text)

    # Relationships
    company = relationship("Company", back_populates="job_roles")
    introduction_requests = relationship("IntroductionRequest", back_populates="job_role")
