"""
CRUD operations for companies, HR partners and job roles.
"""
from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.db.models.company import Company, HrPartner, JobRole, JobRoleStatus


async def get_hr_partner_by_user(db: AsyncSession, user_id: UUID) -> Optional[HrPartner]:
    """
    Get the HR partner record of a user, with its company loaded.

    Args:
        db: Database session
        user_id: The user's UUID

    Returns:
        Optional[HrPartner]: HR partner if the user has one, None otherwise
    """
    result = await db.execute(
        select(HrPartner)
        .options(selectinload(HrPartner.company))
        .where(HrPartner.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def get_company(db: AsyncSession, company_id: UUID) -> Optional[Company]:
    result = await db.execute(select(Company).where(Company.id == company_id))
    return result.scalar_one_or_none()


async def get_active_job_role_for_company(
    db: AsyncSession,
    job_role_id: UUID,
    company_id: UUID
) -> Optional[JobRole]:
    """
    Get a job role only if it belongs to the company and is ACTIVE.

    Args:
        db: Database session
        job_role_id: Job role UUID
        company_id: The company that must own the role

    Returns:
        Optional[JobRole]: The role, or None when missing, foreign or not active
    """
    result = await db.execute(
        select(JobRole).where(
            JobRole.id == job_role_id,
            JobRole.company_id == company_id,
            JobRole.status == JobRoleStatus.ACTIVE,
        )
    )
    return result.scalar_one_or_none()


async def consume_introduction_credit(db: AsyncSession, company_id: UUID) -> bool:
    """
    Decrement the company's introduction credits by one.

    The decrement is conditional on a positive balance so concurrent
    requests cannot drive the counter below zero.

    Args:
        db: Database session
        company_id: Company UUID

    Returns:
        bool: True if a credit was consumed, False if none were left
    """
    result = await db.execute(
        update(Company)
        .where(Company.id == company_id, Company.introduction_credits > 0)
        .values(introduction_credits=Company.introduction_credits - 1)
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount == 1
