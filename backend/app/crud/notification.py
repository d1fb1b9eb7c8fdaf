"""
CRUD operations for notifications and the user activity log.
"""
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.notification import Notification, UserActivityLog


async def create_notification(
    db: AsyncSession,
    *,
    user_id: UUID,
    notification_type: str,
    title: str,
    message: str,
    related_entity_type: Optional[str] = None,
    related_entity_id: Optional[str] = None,
    action_url: Optional[str] = None,
    channel: str = "IN_APP"
) -> Notification:
    """
    Record an in-app notification for a user.

    Args:
        db: Database session
        user_id: Recipient user
        notification_type: One of NotificationType
        title: Short title
        message: Body text
        related_entity_type: Kind of entity the notification is about
        related_entity_id: ID of that entity
        action_url: Where the UI should link to
        channel: Delivery channel

    Returns:
        Notification: The flushed row
    """
    notification = Notification(
        user_id=user_id,
        notification_type=notification_type,
        title=title,
        message=message,
        related_entity_type=related_entity_type,
        related_entity_id=related_entity_id,
        action_url=action_url,
        channel=channel,
        status="PENDING",
    )
    db.add(notification)
    await db.flush()
    return notification


async def log_activity(
    db: AsyncSession,
    *,
    user_id: UUID,
    action_type: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    description: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> UserActivityLog:
    """Append an entry to the user activity log."""
    entry = UserActivityLog(
        user_id=user_id,
        action_type=action_type,
        entity_type=entity_type,
        entity_id=entity_id,
        description=description,
        activity_metadata=metadata or {},
    )
    db.add(entry)
    await db.flush()
    return entry
