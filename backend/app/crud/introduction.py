"""
CRUD operations for introduction requests.
"""
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.sql.elements import ColumnElement

from app.db.models.company import HrPartner
from app.db.models.introduction import IntroductionRequest, IntroductionStatus

_DETAIL_OPTIONS = (
    selectinload(IntroductionRequest.job_role),
    selectinload(IntroductionRequest.company),
    selectinload(IntroductionRequest.sent_by).selectinload(HrPartner.user),
    selectinload(IntroductionRequest.professional),
)


def status_condition(status: Optional[str], now: datetime) -> Optional[ColumnElement]:
    """
    WHERE clause for an effective status filter.

    PENDING means still answerable; EXPIRED covers rows stored as EXPIRED
    and PENDING rows past their deadline.

    Args:
        status: Upper-case status, or None for no filter
        now: Reference time for expiry

    Returns:
        The clause, or None when nothing should be filtered
    """
    if status is None:
        return None
    if status == IntroductionStatus.PENDING:
        return and_(
            IntroductionRequest.status == IntroductionStatus.PENDING,
            IntroductionRequest.expires_at >= now,
        )
    if status == IntroductionStatus.EXPIRED:
        return or_(
            IntroductionRequest.status == IntroductionStatus.EXPIRED,
            and_(
                IntroductionRequest.status == IntroductionStatus.PENDING,
                IntroductionRequest.expires_at < now,
            ),
        )
    return IntroductionRequest.status == status


async def get_pending_for_pair(
    db: AsyncSession,
    job_role_id: UUID,
    professional_id: UUID
) -> Optional[IntroductionRequest]:
    """
    Get the stored PENDING request for a job role and professional, if any.
    """
    result = await db.execute(
        select(IntroductionRequest).where(
            IntroductionRequest.job_role_id == job_role_id,
            IntroductionRequest.professional_id == professional_id,
            IntroductionRequest.status == IntroductionStatus.PENDING,
        )
    )
    return result.scalars().first()


async def create_introduction_request(
    db: AsyncSession,
    *,
    job_role_id: UUID,
    company_id: UUID,
    sent_by_hr_id: UUID,
    professional_id: UUID,
    personalized_message: str,
    sent_at: datetime,
    expires_at: datetime
) -> IntroductionRequest:
    """
    Insert a new PENDING introduction request.

    Args:
        db: Database session
        job_role_id: Role the introduction is about
        company_id: Company sending the request
        sent_by_hr_id: HR partner sending the request
        professional_id: Recipient
        personalized_message: Message from the HR partner
        sent_at: Creation time
        expires_at: Deadline for the professional's answer

    Returns:
        IntroductionRequest: The flushed row
    """
    db_request = IntroductionRequest(
        job_role_id=job_role_id,
        company_id=company_id,
        sent_by_hr_id=sent_by_hr_id,
        professional_id=professional_id,
        personalized_message=personalized_message,
        status=IntroductionStatus.PENDING,
        sent_at=sent_at,
        expires_at=expires_at,
        viewed_by_professional=False,
    )
    db.add(db_request)
    await db.flush()
    return db_request


async def get_pending_for_professional(
    db: AsyncSession,
    request_id: UUID,
    professional_id: UUID
) -> Optional[IntroductionRequest]:
    """
    Get a request addressed to the professional that is still stored as PENDING.

    Answered requests are filtered out here, so a second answer looks the
    same as a missing request.
    """
    result = await db.execute(
        select(IntroductionRequest)
        .options(*_DETAIL_OPTIONS)
        .where(
            IntroductionRequest.id == request_id,
            IntroductionRequest.professional_id == professional_id,
            IntroductionRequest.status == IntroductionStatus.PENDING,
        )
    )
    return result.scalar_one_or_none()


async def record_response(
    db: AsyncSession,
    *,
    request_id: UUID,
    status: str,
    response: Optional[str],
    now: datetime
) -> bool:
    """
    Move a PENDING request to a terminal status.

    The update only matches rows still stored as PENDING, so of two
    concurrent answers exactly one wins.

    Args:
        db: Database session
        request_id: Request UUID
        status: ACCEPTED or DECLINED
        response: Optional message from the professional
        now: Response time

    Returns:
        bool: True if the row was updated
    """
    result = await db.execute(
        update(IntroductionRequest)
        .where(
            IntroductionRequest.id == request_id,
            IntroductionRequest.status == IntroductionStatus.PENDING,
        )
        .values(
            status=status,
            professional_response=response,
            response_date=now,
            viewed_by_professional=True,
            viewed_at=func.coalesce(IntroductionRequest.viewed_at, now),
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def mark_expired(db: AsyncSession, request_id: UUID, now: datetime) -> bool:
    """
    Store EXPIRED on a PENDING request whose deadline has passed.

    Returns:
        bool: True if the row was updated
    """
    result = await db.execute(
        update(IntroductionRequest)
        .where(
            IntroductionRequest.id == request_id,
            IntroductionRequest.status == IntroductionStatus.PENDING,
            IntroductionRequest.expires_at < now,
        )
        .values(status=IntroductionStatus.EXPIRED)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def get_with_details(db: AsyncSession, request_id: UUID) -> Optional[IntroductionRequest]:
    result = await db.execute(
        select(IntroductionRequest)
        .options(*_DETAIL_OPTIONS)
        .where(IntroductionRequest.id == request_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def list_introductions(
    db: AsyncSession,
    *,
    now: datetime,
    professional_id: Optional[UUID] = None,
    company_id: Optional[UUID] = None,
    status: Optional[str] = None,
    skip: int = 0,
    limit: int = 10
) -> Tuple[List[IntroductionRequest], int]:
    """
    Page through introduction requests, newest first.

    Args:
        db: Database session
        now: Reference time for the expiry-aware status filter
        professional_id: Restrict to requests received by this professional
        company_id: Restrict to requests sent by this company
        status: Upper-case effective status, or None for all
        skip: Number of rows to skip
        limit: Maximum number of rows to return

    Returns:
        Tuple of (page of requests, total matching count)
    """
    conditions = []
    if professional_id is not None:
        conditions.append(IntroductionRequest.professional_id == professional_id)
    if company_id is not None:
        conditions.append(IntroductionRequest.company_id == company_id)
    status_clause = status_condition(status, now)
    if status_clause is not None:
        conditions.append(status_clause)

    total = await db.scalar(
        select(func.count(IntroductionRequest.id)).where(*conditions)
    )

    result = await db.execute(
        select(IntroductionRequest)
        .options(*_DETAIL_OPTIONS)
        .where(*conditions)
        .order_by(IntroductionRequest.sent_at.desc(), IntroductionRequest.id)
        .offset(skip)
        .limit(limit)
    )
    return list(result.scalars().all()), total or 0


async def list_for_company(db: AsyncSession, company_id: UUID) -> List[IntroductionRequest]:
    """Every request a company has sent, without relations."""
    result = await db.execute(
        select(IntroductionRequest).where(IntroductionRequest.company_id == company_id)
    )
    return list(result.scalars().all())
