"""
Import all models to ensure they are registered with SQLAlchemy.
"""
from ..base import Base
from .user import User, UserSession, UserRole
from .company import Company, HrPartner, JobRole, JobRoleStatus
from .professional import (
    Professional,
    ProfessionalSkill,
    WorkHistory,
    Education,
    Certification,
    VerificationStatus,
)
from .introduction import IntroductionRequest, IntroductionStatus
from .notification import Notification, NotificationType, UserActivityLog
