"""
CRUD operations for professionals.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.db.models.introduction import IntroductionRequest, IntroductionStatus
from app.db.models.professional import Professional, ProfessionalSkill, WorkHistory

# Relations the completeness scorer needs
_AGGREGATE_OPTIONS = (
    selectinload(Professional.user),
    selectinload(Professional.skills),
    selectinload(Professional.work_history),
    selectinload(Professional.education),
    selectinload(Professional.certifications),
)


async def get_professional(db: AsyncSession, professional_id: UUID) -> Optional[Professional]:
    """
    Get a professional by ID.

    Args:
        db: Database session
        professional_id: Professional UUID

    Returns:
        Optional[Professional]: Professional if found, None otherwise
    """
    result = await db.execute(select(Professional).where(Professional.id == professional_id))
    return result.scalar_one_or_none()


async def get_by_user_id(
    db: AsyncSession,
    user_id: UUID,
    with_relations: bool = False
) -> Optional[Professional]:
    """
    Get the professional profile owned by a user.

    Args:
        db: Database session
        user_id: The user's UUID
        with_relations: Also load user, skills, work history, education and certifications

    Returns:
        Optional[Professional]: Professional if found, None otherwise
    """
    stmt = select(Professional).where(Professional.user_id == user_id)
    if with_relations:
        stmt = stmt.options(*_AGGREGATE_OPTIONS)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def reload_aggregate(db: AsyncSession, professional: Professional) -> Professional:
    """Re-read a professional with every scored relation freshly loaded."""
    result = await db.execute(
        select(Professional)
        .options(*_AGGREGATE_OPTIONS)
        .where(Professional.id == professional.id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def update_professional(
    db: AsyncSession,
    db_obj: Professional,
    obj_in: BaseModel | Dict[str, Any]
) -> Professional:
    """
    Update an existing professional.

    Scalar fields are assigned directly. ``skills`` (list of names) and
    ``work_history`` (list of dicts) replace the existing collections.

    Args:
        db: Database session.
        db_obj: The professional to update. Collections must be loaded.
        obj_in: Schema or dict containing update data.

    Returns:
        The updated professional.
    """
    if isinstance(obj_in, dict):
        update_data = dict(obj_in)
    elif isinstance(obj_in, BaseModel):
        # Only update provided fields
        update_data = obj_in.model_dump(exclude_unset=True)
    else:
        raise ValueError("obj_in must be a schema or a dict")

    skills: Optional[List[str]] = update_data.pop("skills", None)
    work_history: Optional[List[Dict[str, Any]]] = update_data.pop("work_history", None)

    for field, value in update_data.items():
        setattr(db_obj, field, value)

    if skills is not None:
        db_obj.skills = [
            ProfessionalSkill(skill_name=name, is_primary_skill=index == 0)
            for index, name in enumerate(skills)
        ]

    if work_history is not None:
        db_obj.work_history = [WorkHistory(**entry) for entry in work_history]

    db.add(db_obj)
    await db.flush()
    return db_obj


async def count_introductions_by_status(
    db: AsyncSession,
    professional_id: UUID,
    now: datetime
) -> Dict[str, int]:
    """
    Count a professional's received introduction requests per effective status.

    Stored PENDING rows past their deadline are counted as EXPIRED.

    Args:
        db: Database session
        professional_id: Recipient professional
        now: Reference time for expiry

    Returns:
        Dict mapping every status to its count
    """
    result = await db.execute(
        select(IntroductionRequest.status, IntroductionRequest.expires_at)
        .where(IntroductionRequest.professional_id == professional_id)
    )
    counts = {status: 0 for status in IntroductionStatus.ALL}
    for status, expires_at in result.all():
        if status == IntroductionStatus.PENDING and now > expires_at:
            status = IntroductionStatus.EXPIRED
        counts[status] += 1
    return counts
