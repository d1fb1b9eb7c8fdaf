"""
Notification and activity log models.
"""
from sqlalchemy import Column, String, Text, ForeignKey, Boolean, Uuid
from sqlalchemy.orm import relationship

from ..base import Base, JSONType, UUIDMixin, TimestampMixin


class NotificationType:
    INTRO_REQUEST = "INTRO_REQUEST"
    INTRO_ACCEPTED = "INTRO_ACCEPTED"
    INTRO_DECLINED = "INTRO_DECLINED"


class Notification(Base, UUIDMixin, TimestampMixin):
    """
    In-app notification. Delivery to other channels happens elsewhere;
    this row is the record of what was sent.
    """
    __tablename__ = "notifications"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    notification_type = Column(String(50), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    related_entity_type = Column(String(100))
    related_entity_id = Column(String(100), index=True)
    action_url = Column(String(1024))
    channel = Column(String(20), default="IN_APP", nullable=False)
    status = Column(String(20), default="PENDING", nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)

    user = relationship("User")


class UserActivityLog(Base, UUIDMixin, TimestampMixin):
    """
    Audit trail of user actions.
    """
    __tablename__ = "user_activity_logs"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    action_type = Column(String(100), nullable=False, index=True)
    entity_type = Column(String(100))
    entity_id = Column(String(100), index=True)
    description = Column(Text)
    activity_metadata = Column(JSONType, default=dict)

    user = relationship("User")
