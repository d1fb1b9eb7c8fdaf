"""
Introduction request endpoints.
HR partners send requests; professionals accept or decline them.
"""
import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_actor
from app.core.exceptions import ServiceError
from app.core.permissions import AuthenticatedActor
from app.db.session import get_db
from app.schemas.common import Envelope, PaginationInfo
from app.schemas.introduction import (
    IntroductionCreate,
    IntroductionCreated,
    IntroductionCreatedData,
    IntroductionListData,
    IntroductionRespond,
    IntroductionStatsOut,
    AcceptData,
    DeclineData,
    build_introduction_out,
)
from app.services.introductions import IntroductionPage, IntroductionService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/introductions",
    tags=["introductions"],
)


def _list_data(service: IntroductionService, page: IntroductionPage, for_recipient: bool) -> IntroductionListData:
    now = service.clock()
    return IntroductionListData(
        introductions=[
            build_introduction_out(
                intro,
                now,
                for_recipient=for_recipient,
                include_professional=not for_recipient,
            )
            for intro in page.introductions
        ],
        pagination=PaginationInfo.model_validate(page.pagination),
    )


@router.post(
    "/request",
    response_model=Envelope[IntroductionCreatedData],
    status_code=status.HTTP_201_CREATED,
)
async def create_introduction_request(
    request_data: IntroductionCreate,
    actor: AuthenticatedActor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """
    Send an introduction request to a professional for one of the caller's job roles.

    Costs one introduction credit. The request expires after seven days.

    Raises:
        HTTPException 403: Missing permission, professional not open, company blocked or no credits
        HTTPException 404: Unknown HR partner, professional or active job role
        HTTPException 409: A pending request already exists for this professional and role
    """
    try:
        service = IntroductionService(db)
        introduction = await service.create_request(
            actor,
            professional_id=request_data.professional_id,
            job_role_id=request_data.job_role_id,
            personalized_message=request_data.personalized_message,
        )
        return Envelope[IntroductionCreatedData](
            message="Introduction request sent successfully",
            data=IntroductionCreatedData(
                introduction_request=IntroductionCreated.model_validate(introduction)
            ),
        )
    except ServiceError as e:
        raise e.to_http_exception()
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"[INTRODUCTIONS] Error creating introduction request for user {actor.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create introduction request"
        )


@router.post("/{request_id}/accept", response_model=Envelope[AcceptData])
async def accept_introduction_request(
    request_id: UUID,
    request_data: Optional[IntroductionRespond] = None,
    actor: AuthenticatedActor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """
    Accept a pending introduction request. Unlocks the professional's contact details.
    """
    try:
        service = IntroductionService(db)
        result = await service.accept(actor, request_id, request_data.message if request_data else None)
        return Envelope[AcceptData](
            message="Introduction request accepted successfully",
            data=AcceptData(
                introduction=build_introduction_out(result.introduction, service.clock()),
                contact_details_unlocked=result.contact_details_unlocked,
            ),
        )
    except ServiceError as e:
        raise e.to_http_exception()
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"[INTRODUCTIONS] Error accepting request {request_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to accept introduction request"
        )


@router.post("/{request_id}/decline", response_model=Envelope[DeclineData])
async def decline_introduction_request(
    request_id: UUID,
    request_data: Optional[IntroductionRespond] = None,
    actor: AuthenticatedActor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """Decline a pending introduction request. The company behind a confidential role stays hidden."""
    try:
        service = IntroductionService(db)
        result = await service.decline(actor, request_id, request_data.message if request_data else None)
        return Envelope[DeclineData](
            message="Introduction request declined successfully",
            data=DeclineData(
                introduction=build_introduction_out(result.introduction, service.clock(), for_recipient=True)
            ),
        )
    except ServiceError as e:
        raise e.to_http_exception()
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"[INTRODUCTIONS] Error declining request {request_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to decline introduction request"
        )


@router.get("/received", response_model=Envelope[IntroductionListData])
async def list_received_introductions(
    status_filter: Optional[str] = Query(None, alias="status", description="PENDING, ACCEPTED, DECLINED, EXPIRED or all"),
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    actor: AuthenticatedActor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """
    Introduction requests received by the calling professional, newest first.

    Companies behind confidential roles are hidden.
    """
    try:
        service = IntroductionService(db)
        result = await service.list_received(actor, status=status_filter, page=page, limit=limit)
        return Envelope[IntroductionListData](
            message="Introduction requests retrieved successfully",
            data=_list_data(service, result, for_recipient=True),
        )
    except ServiceError as e:
        raise e.to_http_exception()
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"[INTRODUCTIONS] Error listing received requests for user {actor.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch introduction requests"
        )


@router.get("/sent", response_model=Envelope[IntroductionListData])
async def list_sent_introductions(
    status_filter: Optional[str] = Query(None, alias="status", description="PENDING, ACCEPTED, DECLINED, EXPIRED or all"),
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    actor: AuthenticatedActor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """Introduction requests sent by the caller's company, newest first."""
    try:
        service = IntroductionService(db)
        result = await service.list_sent(actor, status=status_filter, page=page, limit=limit)
        return Envelope[IntroductionListData](
            message="Introduction requests retrieved successfully",
            data=_list_data(service, result, for_recipient=False),
        )
    except ServiceError as e:
        raise e.to_http_exception()
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"[INTRODUCTIONS] Error listing sent requests for user {actor.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch sent introduction requests"
        )


@router.get("/stats", response_model=Envelope[IntroductionStatsOut])
async def get_introduction_stats(
    actor: AuthenticatedActor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """Counts, acceptance rate, response time and monthly trend for the caller's company."""
    try:
        service = IntroductionService(db)
        stats = await service.get_stats(actor)
        return Envelope[IntroductionStatsOut](
            message="Introduction statistics retrieved successfully",
            data=IntroductionStatsOut.model_validate(stats),
        )
    except ServiceError as e:
        raise e.to_http_exception()
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"[INTRODUCTIONS] Error computing stats for user {actor.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch introduction statistics"
        )
