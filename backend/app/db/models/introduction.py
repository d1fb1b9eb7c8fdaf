"""
Introduction request model.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, String, Text, ForeignKey, Boolean, DateTime, Index, Uuid, text
from sqlalchemy.orm import relationship

from ..base import Base, UUIDMixin, TimestampMixin, utcnow


class IntroductionStatus:
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    EXPIRED = "EXPIRED"

    ALL = (PENDING, ACCEPTED, DECLINED, EXPIRED)
    TERMINAL = (ACCEPTED, DECLINED, EXPIRED)


class IntroductionRequest(Base, UUIDMixin, TimestampMixin):
    """
    Time-boxed invitation from a company (via an HR partner) to a professional
    for one job role.

    Expiry is never written back: a PENDING row past expires_at is reported
    as EXPIRED when read.
    """
    __tablename__ = "introduction_requests"
    __table_args__ = (
        # At most one pending request per (job role, professional)
        Index(
            "uq_introduction_requests_pending_pair",
            "job_role_id",
            "professional_id",
            unique=True,
            postgresql_where=text("status = 'PENDING'"),
            sqlite_where=text("status = 'PENDING'"),
        ),
    )

    job_role_id = Column(Uuid(as_uuid=True), ForeignKey("job_roles.id"), nullable=False, index=True)
    company_id = Column(Uuid(as_uuid=True), ForeignKey("companies.id"), nullable=False, index=True)
    sent_by_hr_id = Column(Uuid(as_uuid=True), ForeignKey("hr_partners.id"), nullable=False, index=True)
    professional_id = Column(Uuid(as_uuid=True), ForeignKey("professionals.id"), nullable=False, index=True)

    status = Column(String(20), default=IntroductionStatus.PENDING, nullable=False, index=True)
    personalized_message = Column(Text, nullable=False)
    professional_response = Column(Text)

    sent_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    response_date = Column(DateTime)
    expires_at = Column(DateTime, nullable=False, index=True)
    viewed_by_professional = Column(Boolean, default=False, nullable=False)
    viewed_at = Column(DateTime)

    # Relationships
    job_role = relationship("JobRole", back_populates="introduction_requests")
    company = relationship("Company", back_populates="introduction_requests")
    sent_by = relationship("HrPartner", back_populates="sent_introductions")
    professional = relationship("Professional", back_populates="introduction_requests")

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """A request expires only while it is still waiting for an answer; a stored EXPIRED stays expired."""
        now = now or utcnow()
        if self.status == IntroductionStatus.EXPIRED:
            return True
        return self.status == IntroductionStatus.PENDING and now > self.expires_at

    def effective_status(self, now: Optional[datetime] = None) -> str:
        if self.is_expired(now):
            return IntroductionStatus.EXPIRED
        return self.status
