"""
Professional profile endpoints for the signed-in professional.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_actor
from app.core.permissions import AuthenticatedActor
from app.crud import professional as crud_professional
from app.db.base import utcnow
from app.db.models.introduction import IntroductionStatus
from app.db.models.professional import Professional
from app.db.session import get_db
from app.schemas.common import Envelope
from app.schemas.professional import (
    IntroductionCounts,
    ProfessionalMeOut,
    ProfessionalOut,
    ProfessionalUpdate,
    ProfessionalUpdateOut,
)
from app.services.completeness import (
    ProfileAggregate,
    calculate_profile_completeness,
    get_completeness_recommendations,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/professionals",
    tags=["professionals"],
)


async def _get_own_profile(actor: AuthenticatedActor, db: AsyncSession) -> Professional:
    if not actor.is_professional:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: Professional access required"
        )
    professional = await crud_professional.get_by_user_id(db, actor.id, with_relations=True)
    if not professional:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Professional profile not found"
        )
    return professional


async def _introduction_counts(db: AsyncSession, professional: Professional) -> IntroductionCounts:
    counts = await crud_professional.count_introductions_by_status(db, professional.id, utcnow())
    return IntroductionCounts(
        pending=counts[IntroductionStatus.PENDING],
        accepted=counts[IntroductionStatus.ACCEPTED],
        declined=counts[IntroductionStatus.DECLINED],
        expired=counts[IntroductionStatus.EXPIRED],
        total=sum(counts.values()),
    )


@router.get("/me", response_model=Envelope[ProfessionalMeOut])
async def get_my_profile(
    actor: AuthenticatedActor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """
    The caller's profile with its completeness breakdown, suggestions and
    introduction request counts.
    """
    try:
        professional = await _get_own_profile(actor, db)
        breakdown = calculate_profile_completeness(ProfileAggregate.from_professional(professional))
        return Envelope[ProfessionalMeOut](
            message="Profile retrieved successfully",
            data=ProfessionalMeOut(
                professional=ProfessionalOut.model_validate(professional),
                completeness=breakdown,
                recommendations=get_completeness_recommendations(breakdown),
                introduction_counts=await _introduction_counts(db, professional),
            ),
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"[PROFESSIONALS] Error loading profile for user {actor.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch profile"
        )


@router.put("/me", response_model=Envelope[ProfessionalUpdateOut])
async def update_my_profile(
    profile_data: ProfessionalUpdate,
    actor: AuthenticatedActor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """
    Update the caller's profile and store the recomputed completeness score.

    Only fields present in the body are changed. ``skills`` and
    ``workHistory`` replace the existing lists when given.
    """
    try:
        professional = await _get_own_profile(actor, db)
        professional = await crud_professional.update_professional(db, professional, profile_data.to_update_data())
        professional = await crud_professional.reload_aggregate(db, professional)

        breakdown = calculate_profile_completeness(ProfileAggregate.from_professional(professional))
        professional.profile_completeness = breakdown.overall
        await db.commit()

        logger.info(
            f"[PROFESSIONALS] Profile {professional.id} updated, completeness {breakdown.overall}"
        )
        return Envelope[ProfessionalUpdateOut](
            message="Profile updated successfully",
            data=ProfessionalUpdateOut(
                professional=ProfessionalOut.model_validate(professional),
                profile_completeness=breakdown.overall,
                completeness_breakdown=breakdown,
            ),
        )
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.exception(f"[PROFESSIONALS] Error updating profile for user {actor.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update profile"
        )
