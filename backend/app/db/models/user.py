"""
User model for authentication and user management.
"""
from sqlalchemy import (
    Column, String, DateTime, Boolean, ForeignKey, TEXT, Uuid
)
from sqlalchemy.orm import relationship

from ..base import Base, UUIDMixin, TimestampMixin


class UserRole:
    """Platform roles. Stored as plain strings on User.role."""
    PROFESSIONAL = "professional"
    HR_PARTNER = "hr_partner"
    ADMIN = "admin"


class User(Base, UUIDMixin, TimestampMixin):
    """
    Platform user. Identity is owned by the external auth provider;
    this row mirrors what the provider tells us about the account.
    """
    __tablename__ = "users"

    # Identity provider fields
    external_id = Column(String(255), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, index=True)
    phone = Column(String(32))
    phone_verified = Column(Boolean, default=False, nullable=False)
    email_verified = Column(Boolean, default=False, nullable=False)

    # Status info
    role = Column(String(50), nullable=False, index=True)
    is_active = Column(Boolean, default=True, index=True)
    last_login = Column(DateTime)

    # Relationships
    sessions = relationship("UserSession", back_populates="user", cascade="all, delete-orphan")
    professional = relationship("Professional", back_populates="user", uselist=False)
    hr_partner = relationship("HrPartner", back_populates="user", uselist=False)


class UserSession(Base, UUIDMixin, TimestampMixin):
    """
    Bearer token issued by the identity provider, stored so requests can be
    resolved to a user without calling the provider every time.
    """
    __tablename__ = "user_sessions"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    session_token = Column(TEXT, unique=True, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False, index=True)
    last_activity = Column(DateTime, index=True)
    ip_address = Column(String(45))

    # Relationships
    user = relationship("User", back_populates="sessions")
