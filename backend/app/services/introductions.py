"""
Introduction request lifecycle.

PENDING --accept--> ACCEPTED
PENDING --decline--> DECLINED
PENDING --(now > expires_at, at read time)--> EXPIRED

A lapsed request is only stored as EXPIRED when a new request for the same
role and professional replaces it.

Every precondition is checked before anything is written. The state change
(and, on creation, the credit deduction) commits as one transaction;
notifications and activity log entries are written afterwards and never
undo it.
"""
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    ConflictError,
    ExpiredError,
    ForbiddenError,
    NotFoundError,
    QuotaExceededError,
    ValidationFailedError,
)
from app.core.permissions import AuthenticatedActor, Permission
from app.crud import company as company_crud
from app.crud import introduction as introduction_crud
from app.crud import notification as notification_crud
from app.crud import professional as professional_crud
from app.db.base import utcnow
from app.db.models.company import HrPartner
from app.db.models.introduction import IntroductionRequest, IntroductionStatus
from app.db.models.notification import NotificationType

logger = logging.getLogger(__name__)

ENTITY_TYPE = "introduction_request"


@dataclass
class RespondResult:
    introduction: IntroductionRequest
    contact_details_unlocked: bool = False


@dataclass
class Pagination:
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit),
            has_next=page * limit < total,
            has_prev=page > 1,
        )


@dataclass
class IntroductionPage:
    introductions: List[IntroductionRequest]
    pagination: Pagination


@dataclass
class IntroductionStats:
    total_sent: int
    pending: int
    accepted: int
    declined: int
    expired: int
    acceptance_rate: float
    average_response_time: float
    this_month: int
    last_month: int
    trend: str


def parse_status_filter(raw: Optional[str]) -> Optional[str]:
    """
    Normalise a status query value. ``None`` and ``all`` mean no filter.

    Raises:
        ValidationFailedError: If the value is not a known status
    """
    if raw is None or raw.strip().lower() in ("", "all"):
        return None
    value = raw.strip().upper()
    if value not in IntroductionStatus.ALL:
        raise ValidationFailedError(
            "Invalid status value",
            details=[{"field": "status", "message": f"Must be one of {', '.join(IntroductionStatus.ALL)} or all"}],
        )
    return value


def _round_one_decimal(value: float) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _month_start(moment: datetime, months_back: int = 0) -> datetime:
    year, month = moment.year, moment.month - months_back
    while month < 1:
        month += 12
        year -= 1
    return datetime(year, month, 1)


class IntroductionService:
    """
    Enacts introduction request transitions for an authenticated actor.

    One instance per request; the session is the unit of work.
    """

    def __init__(
        self,
        db: AsyncSession,
        clock: Callable[[], datetime] = utcnow,
        expiry_days: Optional[int] = None,
    ):
        self.db = db
        self.clock = clock
        self.expiry = timedelta(days=expiry_days or settings.INTRODUCTION_EXPIRY_DAYS)

    # --- Create ---

    async def create_request(
        self,
        actor: AuthenticatedActor,
        professional_id: UUID,
        job_role_id: UUID,
        personalized_message: str,
    ) -> IntroductionRequest:
        """
        Send an introduction request from the actor's company to a professional.

        Args:
            actor: HR partner sending the request
            professional_id: Recipient
            job_role_id: Active role owned by the actor's company
            personalized_message: Message shown to the professional

        Returns:
            IntroductionRequest: The new PENDING request

        Raises:
            ForbiddenError: Missing permission, professional closed or company blocked
            NotFoundError: Unknown HR partner, professional or usable job role
            ConflictError: A pending request already exists for the pair
            QuotaExceededError: The company has no introduction credits left
            ValidationFailedError: Empty or oversized message
        """
        if not actor.has_permission(Permission.SEND_INTRODUCTION_REQUESTS):
            raise ForbiddenError("Insufficient permissions")

        hr_partner = await company_crud.get_hr_partner_by_user(self.db, actor.id)
        if not hr_partner:
            raise NotFoundError("HR Partner not found")

        message = self._validate_message(personalized_message)

        professional = await professional_crud.get_professional(self.db, professional_id)
        if not professional:
            raise NotFoundError("Professional not found")

        if not professional.open_to_opportunities:
            raise ForbiddenError("Professional is not open to opportunities")

        if professional.is_hidden_from(hr_partner.company_id):
            raise ForbiddenError("Professional has blocked this company")

        job_role = await company_crud.get_active_job_role_for_company(
            self.db, job_role_id, hr_partner.company_id
        )
        if not job_role:
            raise NotFoundError("Job role not found or not active")

        now = self.clock()
        existing = await introduction_crud.get_pending_for_pair(self.db, job_role_id, professional_id)
        if existing and not existing.is_expired(now):
            raise ConflictError("Introduction request already exists for this professional and role")

        if hr_partner.company.introduction_credits <= 0:
            raise QuotaExceededError("Insufficient introduction credits")

        try:
            if existing:
                # A lapsed request still stored as PENDING would trip the pending-pair index
                await introduction_crud.mark_expired(self.db, existing.id, now)
            introduction = await introduction_crud.create_introduction_request(
                self.db,
                job_role_id=job_role_id,
                company_id=hr_partner.company_id,
                sent_by_hr_id=hr_partner.id,
                professional_id=professional_id,
                personalized_message=message,
                sent_at=now,
                expires_at=now + self.expiry,
            )
            # Another request may have spent the last credit since the check above
            if not await company_crud.consume_introduction_credit(self.db, hr_partner.company_id):
                raise QuotaExceededError("Insufficient introduction credits")
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.warning(
                f"[INTRODUCTIONS] Concurrent duplicate for role {job_role_id} and professional {professional_id}"
            )
            raise ConflictError("Introduction request already exists for this professional and role")
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"[INTRODUCTIONS] Request {introduction.id} sent by HR partner {hr_partner.id} "
            f"to professional {professional_id} for role {job_role_id}"
        )

        company_name = hr_partner.company.company_name
        await self._record_side_effects(
            introduction,
            notify_user_id=professional.user_id,
            notification_type=NotificationType.INTRO_REQUEST,
            title="New Introduction Request",
            message=f"You have received an introduction request for {job_role.role_title} from {company_name}",
            actor=actor,
            action_type="INTRODUCTION_REQUEST_SENT",
            description=f"Sent introduction request to professional {professional_id} for job role {job_role_id}",
            metadata={
                "professionalId": str(professional_id),
                "jobRoleId": str(job_role_id),
                "companyId": str(hr_partner.company_id),
            },
        )
        return introduction

    def _validate_message(self, personalized_message: Optional[str]) -> str:
        message = (personalized_message or "").strip()
        max_length = settings.INTRODUCTION_MESSAGE_MAX_LENGTH
        if not message:
            raise ValidationFailedError(
                details=[{"field": "personalizedMessage", "message": "Message is required"}]
            )
        if len(message) > max_length:
            raise ValidationFailedError(
                details=[{"field": "personalizedMessage", "message": f"Message must be at most {max_length} characters"}]
            )
        return message

    # --- Respond ---

    async def accept(
        self,
        actor: AuthenticatedActor,
        request_id: UUID,
        message: Optional[str] = None,
    ) -> RespondResult:
        """Accept a pending request. Unlocks the professional's contact details."""
        introduction = await self._respond(actor, request_id, IntroductionStatus.ACCEPTED, message)
        return RespondResult(introduction=introduction, contact_details_unlocked=True)

    async def decline(
        self,
        actor: AuthenticatedActor,
        request_id: UUID,
        message: Optional[str] = None,
    ) -> RespondResult:
        """Decline a pending request."""
        introduction = await self._respond(actor, request_id, IntroductionStatus.DECLINED, message)
        return RespondResult(introduction=introduction)

    async def _respond(
        self,
        actor: AuthenticatedActor,
        request_id: UUID,
        new_status: str,
        message: Optional[str],
    ) -> IntroductionRequest:
        if not actor.has_permission(Permission.ACCEPT_INTRODUCTIONS):
            raise ForbiddenError("Forbidden: Professional access required")

        professional = await professional_crud.get_by_user_id(self.db, actor.id)
        if not professional:
            raise NotFoundError("Professional profile not found")

        introduction = await introduction_crud.get_pending_for_professional(
            self.db, request_id, professional.id
        )
        if not introduction:
            raise NotFoundError("Introduction request not found or already responded to")

        now = self.clock()
        if now > introduction.expires_at:
            raise ExpiredError("Introduction request has expired")

        try:
            updated = await introduction_crud.record_response(
                self.db,
                request_id=introduction.id,
                status=new_status,
                response=message or None,
                now=now,
            )
            if not updated:
                # Answered by a concurrent request between the read and the write
                raise NotFoundError("Introduction request not found or already responded to")
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        introduction = await introduction_crud.get_with_details(self.db, introduction.id)
        verb = "accepted" if new_status == IntroductionStatus.ACCEPTED else "declined"
        logger.info(f"[INTRODUCTIONS] Request {introduction.id} {verb} by professional {professional.id}")

        sender: HrPartner = introduction.sent_by
        full_name = f"{professional.first_name or ''} {professional.last_name or ''}".strip()
        await self._record_side_effects(
            introduction,
            notify_user_id=sender.user_id,
            notification_type=(
                NotificationType.INTRO_ACCEPTED
                if new_status == IntroductionStatus.ACCEPTED
                else NotificationType.INTRO_DECLINED
            ),
            title=f"Introduction Request {verb.capitalize()}{'!' if verb == 'accepted' else ''}",
            message=f"{full_name} has {verb} your introduction request for {introduction.job_role.role_title}",
            actor=actor,
            action_type=f"INTRODUCTION_REQUEST_{new_status}",
            description=f"{verb.capitalize()} introduction request {introduction.id}",
            metadata={"jobRoleId": str(introduction.job_role_id), "companyId": str(introduction.company_id)},
        )
        return introduction

    # --- Side effects ---

    async def _record_side_effects(
        self,
        introduction: IntroductionRequest,
        *,
        notify_user_id: UUID,
        notification_type: str,
        title: str,
        message: str,
        actor: AuthenticatedActor,
        action_type: str,
        description: str,
        metadata: dict,
    ) -> None:
        """
        Write the notification and activity log entry for a committed transition.

        Runs in a savepoint; a failure is logged and rolled back on its own.
        """
        try:
            async with self.db.begin_nested():
                await notification_crud.create_notification(
                    self.db,
                    user_id=notify_user_id,
                    notification_type=notification_type,
                    title=title,
                    message=message,
                    related_entity_type=ENTITY_TYPE,
                    related_entity_id=str(introduction.id),
                    action_url=f"/dashboard/introductions/{introduction.id}",
                )
                await notification_crud.log_activity(
                    self.db,
                    user_id=actor.id,
                    action_type=action_type,
                    entity_type=ENTITY_TYPE,
                    entity_id=str(introduction.id),
                    description=description,
                    metadata=metadata,
                )
            await self.db.commit()
        except Exception:
            logger.exception(
                f"[INTRODUCTIONS] Failed to record {notification_type} side effects for request {introduction.id}"
            )

    # --- Read ---

    async def list_received(
        self,
        actor: AuthenticatedActor,
        status: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> IntroductionPage:
        """Requests received by the calling professional, newest first."""
        if not actor.has_permission(Permission.VIEW_INTRODUCTION_REQUESTS):
            raise ForbiddenError("Forbidden: Professional access required")

        status_filter, page, limit = self._validate_listing(status, page, limit)

        professional = await professional_crud.get_by_user_id(self.db, actor.id)
        if not professional:
            raise NotFoundError("Professional profile not found")

        items, total = await introduction_crud.list_introductions(
            self.db,
            now=self.clock(),
            professional_id=professional.id,
            status=status_filter,
            skip=(page - 1) * limit,
            limit=limit,
        )
        return IntroductionPage(introductions=items, pagination=Pagination.build(page, limit, total))

    async def list_sent(
        self,
        actor: AuthenticatedActor,
        status: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> IntroductionPage:
        """Requests sent by the caller's company, newest first."""
        hr_partner = await self._require_hr_partner(actor)
        status_filter, page, limit = self._validate_listing(status, page, limit)

        items, total = await introduction_crud.list_introductions(
            self.db,
            now=self.clock(),
            company_id=hr_partner.company_id,
            status=status_filter,
            skip=(page - 1) * limit,
            limit=limit,
        )
        return IntroductionPage(introductions=items, pagination=Pagination.build(page, limit, total))

    async def get_stats(self, actor: AuthenticatedActor) -> IntroductionStats:
        """
        Summary of the caller company's requests, using effective (expiry aware) status.
        """
        hr_partner = await self._require_hr_partner(actor)
        requests = await introduction_crud.list_for_company(self.db, hr_partner.company_id)
        now = self.clock()

        counts = {status: 0 for status in IntroductionStatus.ALL}
        for request in requests:
            counts[request.effective_status(now)] += 1

        accepted = counts[IntroductionStatus.ACCEPTED]
        declined = counts[IntroductionStatus.DECLINED]
        responded = accepted + declined
        acceptance_rate = (accepted / responded) * 100 if responded else 0.0

        response_hours = [
            (r.response_date - r.sent_at).total_seconds() / 3600
            for r in requests
            if r.status in (IntroductionStatus.ACCEPTED, IntroductionStatus.DECLINED) and r.response_date
        ]
        average_response_time = sum(response_hours) / len(response_hours) if response_hours else 0.0

        this_month_start = _month_start(now)
        last_month_start = _month_start(now, months_back=1)
        this_month = sum(1 for r in requests if r.sent_at >= this_month_start)
        last_month = sum(1 for r in requests if last_month_start <= r.sent_at < this_month_start)

        trend = "stable"
        if this_month > last_month:
            trend = "up"
        elif this_month < last_month:
            trend = "down"

        return IntroductionStats(
            total_sent=len(requests),
            pending=counts[IntroductionStatus.PENDING],
            accepted=accepted,
            declined=declined,
            expired=counts[IntroductionStatus.EXPIRED],
            acceptance_rate=_round_one_decimal(acceptance_rate),
            average_response_time=_round_one_decimal(average_response_time),
            this_month=this_month,
            last_month=last_month,
            trend=trend,
        )

    async def _require_hr_partner(self, actor: AuthenticatedActor) -> HrPartner:
        if not actor.is_hr_partner:
            raise ForbiddenError("Forbidden: HR partner access required")
        hr_partner = await company_crud.get_hr_partner_by_user(self.db, actor.id)
        if not hr_partner:
            raise NotFoundError("HR partner profile not found")
        return hr_partner

    def _validate_listing(self, status: Optional[str], page: int, limit: Optional[int]):
        limit = settings.DEFAULT_PAGE_LIMIT if limit is None else limit
        if page < 1:
            raise ValidationFailedError("Page must be at least 1")
        if limit < 1 or limit > settings.MAX_PAGE_LIMIT:
            raise ValidationFailedError(f"Limit must be between 1 and {settings.MAX_PAGE_LIMIT}")
        return parse_status_filter(status), page, limit
