from datetime import datetime, timedelta
import logging

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import (
    ConflictError,
    ExpiredError,
    ForbiddenError,
    NotFoundError,
    QuotaExceededError,
    ValidationFailedError,
)
from app.core.permissions import AuthenticatedActor
from app.crud import company as company_crud
from app.crud import introduction as introduction_crud
from app.crud import notification as notification_crud
from app.db.models.company import JobRoleStatus
from app.db.models.introduction import IntroductionRequest, IntroductionStatus
from app.db.models.notification import Notification, NotificationType, UserActivityLog
from app.db.models.user import UserRole
from app.services.introductions import IntroductionService, parse_status_filter

NOW = datetime(2026, 3, 15, 12, 0, 0)
MESSAGE = "Hi Ada, we think you'd be a great fit for our platform team."


def hr_actor(hr_partner):
    return AuthenticatedActor.for_role(hr_partner.user_id, UserRole.HR_PARTNER)


def pro_actor(professional):
    return AuthenticatedActor.for_role(professional.user_id, UserRole.PROFESSIONAL)


def service_at(db, moment=NOW):
    return IntroductionService(db, clock=lambda: moment)


async def count(db, model, *conditions):
    return await db.scalar(select(func.count()).select_from(model).where(*conditions))


@pytest.fixture
async def world(factory):
    company = await factory.company(credits=3)
    hr_partner = await factory.hr_partner(company)
    job_role = await factory.job_role(company)
    professional = await factory.professional()
    return dict(company=company, hr_partner=hr_partner, job_role=job_role, professional=professional)


async def send(db, world, moment=NOW, **kwargs):
    return await service_at(db, moment).create_request(
        hr_actor(world["hr_partner"]),
        professional_id=kwargs.get("professional_id", world["professional"].id),
        job_role_id=kwargs.get("job_role_id", world["job_role"].id),
        personalized_message=kwargs.get("message", MESSAGE),
    )


# --- Create ---

async def test_create_inserts_pending_request_and_spends_one_credit(db, world):
    introduction = await send(db, world)

    assert introduction.status == IntroductionStatus.PENDING
    assert introduction.sent_at == NOW
    assert introduction.expires_at == NOW + timedelta(days=7)
    assert introduction.professional_response is None
    assert introduction.response_date is None
    assert introduction.viewed_by_professional is False

    await db.refresh(world["company"])
    assert world["company"].introduction_credits == 2
    assert await count(db, IntroductionRequest) == 1


async def test_create_notifies_professional_and_logs_activity(db, world):
    introduction = await send(db, world)

    notifications = (await db.execute(select(Notification))).scalars().all()
    assert len(notifications) == 1
    notification = notifications[0]
    assert notification.user_id == world["professional"].user_id
    assert notification.notification_type == NotificationType.INTRO_REQUEST
    assert notification.title == "New Introduction Request"
    assert notification.message == (
        "You have received an introduction request for Staff Engineer from Acme Corp"
    )
    assert notification.action_url == f"/dashboard/introductions/{introduction.id}"
    assert notification.related_entity_type == "introduction_request"
    assert notification.channel == "IN_APP"

    log = (await db.execute(select(UserActivityLog))).scalar_one()
    assert log.action_type == "INTRODUCTION_REQUEST_SENT"
    assert log.user_id == world["hr_partner"].user_id
    assert log.activity_metadata == {
        "professionalId": str(world["professional"].id),
        "jobRoleId": str(world["job_role"].id),
        "companyId": str(world["company"].id),
    }


async def test_create_with_zero_credits_fails_without_insert(db, factory, world):
    company = await factory.company(credits=0)
    world = dict(
        world,
        company=company,
        hr_partner=await factory.hr_partner(company),
        job_role=await factory.job_role(company),
    )

    with pytest.raises(QuotaExceededError, match="Insufficient introduction credits"):
        await send(db, world)

    await db.refresh(company)
    assert company.introduction_credits == 0
    assert await count(db, IntroductionRequest) == 0


async def test_duplicate_pending_request_conflicts(db, world):
    await send(db, world)

    with pytest.raises(ConflictError):
        await send(db, world)

    await db.refresh(world["company"])
    assert world["company"].introduction_credits == 2
    assert await count(db, IntroductionRequest, IntroductionRequest.status == IntroductionStatus.PENDING) == 1


async def test_new_request_allowed_once_previous_one_is_answered(db, world):
    first = await send(db, world)
    await service_at(db).decline(pro_actor(world["professional"]), first.id)

    second = await send(db, world)

    assert second.id != first.id
    assert await count(db, IntroductionRequest) == 2


async def test_lapsed_request_is_stored_expired_when_replaced(db, world):
    first = await send(db, world)

    with pytest.raises(ConflictError):
        await send(db, world, moment=NOW + timedelta(days=7))

    second = await send(db, world, moment=NOW + timedelta(days=10))

    await db.refresh(first)
    assert first.status == IntroductionStatus.EXPIRED
    assert first.is_expired(NOW) is True
    assert second.status == IntroductionStatus.PENDING
    assert await count(db, IntroductionRequest, IntroductionRequest.status == IntroductionStatus.PENDING) == 1
    await db.refresh(world["company"])
    assert world["company"].introduction_credits == 1

    page = await service_at(db, NOW + timedelta(days=10)).list_received(
        pro_actor(world["professional"]), status="expired"
    )
    assert [i.id for i in page.introductions] == [first.id]


async def test_concurrent_duplicate_is_caught_by_unique_index(db, world, monkeypatch):
    await send(db, world)

    # Simulate a second request that passed the pre-check before the first committed
    async def no_pending(*args, **kwargs):
        return None
    monkeypatch.setattr(introduction_crud, "get_pending_for_pair", no_pending)

    with pytest.raises(ConflictError):
        await send(db, world)

    await db.refresh(world["company"])
    assert world["company"].introduction_credits == 2
    assert await count(db, IntroductionRequest) == 1


async def test_pending_pair_index_rejects_second_pending_row(db, factory, world):
    await factory.introduction(world["hr_partner"], world["job_role"], world["professional"])

    with pytest.raises(IntegrityError):
        await factory.introduction(world["hr_partner"], world["job_role"], world["professional"])
    await db.rollback()
    for obj in (world["hr_partner"], world["job_role"], world["professional"]):
        await db.refresh(obj)

    await factory.introduction(
        world["hr_partner"], world["job_role"], world["professional"], status=IntroductionStatus.ACCEPTED
    )
    assert await count(db, IntroductionRequest) == 2


async def test_credit_spent_concurrently_rolls_back_insert(db, world, monkeypatch):
    async def no_credit(*args, **kwargs):
        return False
    monkeypatch.setattr(company_crud, "consume_introduction_credit", no_credit)

    with pytest.raises(QuotaExceededError):
        await send(db, world)

    assert await count(db, IntroductionRequest) == 0


async def test_preconditions_are_checked_in_order(db, factory, world):
    other_company = await factory.company(company_name="Other Co")
    other_role = await factory.job_role(other_company)
    closed = await factory.professional(open_to_opportunities=False)
    blocking = await factory.professional(hide_from_company_ids=[str(world["company"].id)])
    draft_role = await factory.job_role(world["company"], status=JobRoleStatus.DRAFT)

    with pytest.raises(NotFoundError, match="Professional not found"):
        await send(db, world, professional_id=other_role.id)
    with pytest.raises(ForbiddenError, match="not open to opportunities"):
        await send(db, world, professional_id=closed.id)
    with pytest.raises(ForbiddenError, match="blocked this company"):
        await send(db, world, professional_id=blocking.id)
    with pytest.raises(NotFoundError, match="Job role not found or not active"):
        await send(db, world, job_role_id=other_role.id)
    with pytest.raises(NotFoundError, match="Job role not found or not active"):
        await send(db, world, job_role_id=draft_role.id)

    await db.refresh(world["company"])
    assert world["company"].introduction_credits == 3
    assert await count(db, IntroductionRequest) == 0


async def test_create_requires_send_permission(db, world):
    with pytest.raises(ForbiddenError, match="Insufficient permissions"):
        await service_at(db).create_request(
            pro_actor(world["professional"]),
            professional_id=world["professional"].id,
            job_role_id=world["job_role"].id,
            personalized_message=MESSAGE,
        )


async def test_create_requires_hr_partner_record(db, factory, world):
    user = await factory.user(UserRole.HR_PARTNER)
    actor = AuthenticatedActor.for_role(user.id, UserRole.HR_PARTNER)

    with pytest.raises(NotFoundError, match="HR Partner not found"):
        await service_at(db).create_request(
            actor,
            professional_id=world["professional"].id,
            job_role_id=world["job_role"].id,
            personalized_message=MESSAGE,
        )


@pytest.mark.parametrize("message", ["", "   ", "x" * 1001])
async def test_create_rejects_bad_message(db, world, message):
    with pytest.raises(ValidationFailedError):
        await send(db, world, message=message)

    assert await count(db, IntroductionRequest) == 0


async def test_notification_failure_does_not_undo_create(db, world, monkeypatch, caplog):
    async def broken(*args, **kwargs):
        raise RuntimeError("notification store down")
    monkeypatch.setattr(notification_crud, "create_notification", broken)

    with caplog.at_level(logging.ERROR, logger="app.services.introductions"):
        introduction = await send(db, world)

    assert introduction.status == IntroductionStatus.PENDING
    assert await count(db, IntroductionRequest) == 1
    assert await count(db, Notification) == 0
    assert await count(db, UserActivityLog) == 0
    await db.refresh(world["company"])
    assert world["company"].introduction_credits == 2
    assert "Failed to record INTRO_REQUEST side effects" in caplog.text


# --- Respond ---

async def test_accept_records_response_and_notifies_sender(db, world):
    introduction = await send(db, world)
    later = NOW + timedelta(days=2)

    result = await service_at(db, later).accept(pro_actor(world["professional"]), introduction.id, "Happy to chat!")

    assert result.contact_details_unlocked is True
    accepted = result.introduction
    assert accepted.status == IntroductionStatus.ACCEPTED
    assert accepted.professional_response == "Happy to chat!"
    assert accepted.response_date == later
    assert accepted.viewed_by_professional is True
    assert accepted.viewed_at == later

    notification = (await db.execute(
        select(Notification).where(Notification.notification_type == NotificationType.INTRO_ACCEPTED)
    )).scalar_one()
    assert notification.user_id == world["hr_partner"].user_id
    assert notification.title == "Introduction Request Accepted!"
    assert notification.message == "Ada Lovelace has accepted your introduction request for Staff Engineer"


async def test_accept_keeps_earlier_viewed_at(db, world):
    introduction = await send(db, world)
    seen = NOW + timedelta(hours=3)
    introduction.viewed_by_professional = True
    introduction.viewed_at = seen
    await db.commit()

    result = await service_at(db, NOW + timedelta(days=1)).accept(pro_actor(world["professional"]), introduction.id)

    assert result.introduction.viewed_at == seen
    assert result.introduction.response_date == NOW + timedelta(days=1)


async def test_decline_without_message_stores_null(db, world):
    introduction = await send(db, world)

    result = await service_at(db).decline(pro_actor(world["professional"]), introduction.id)

    assert result.contact_details_unlocked is False
    assert result.introduction.status == IntroductionStatus.DECLINED
    assert result.introduction.professional_response is None

    notification = (await db.execute(
        select(Notification).where(Notification.notification_type == NotificationType.INTRO_DECLINED)
    )).scalar_one()
    assert notification.message == "Ada Lovelace has declined your introduction request for Staff Engineer"


@pytest.mark.parametrize("first,second", [
    ("accept", "accept"),
    ("accept", "decline"),
    ("decline", "accept"),
    ("decline", "decline"),
])
async def test_terminal_requests_cannot_be_answered_again(db, world, first, second):
    introduction = await send(db, world)
    actor = pro_actor(world["professional"])
    service = service_at(db)
    await getattr(service, first)(actor, introduction.id, "first answer")

    with pytest.raises(NotFoundError, match="not found or already responded to"):
        await getattr(service, second)(actor, introduction.id, "second answer")

    await db.refresh(introduction)
    assert introduction.status == (
        IntroductionStatus.ACCEPTED if first == "accept" else IntroductionStatus.DECLINED
    )
    assert introduction.professional_response == "first answer"


async def test_accept_after_expiry_leaves_request_untouched(db, world):
    introduction = await send(db, world)

    with pytest.raises(ExpiredError, match="has expired"):
        await service_at(db, NOW + timedelta(days=7, seconds=1)).accept(
            pro_actor(world["professional"]), introduction.id, "Too late?"
        )

    await db.refresh(introduction)
    assert introduction.status == IntroductionStatus.PENDING
    assert introduction.professional_response is None
    assert introduction.response_date is None
    assert await count(db, Notification, Notification.notification_type == NotificationType.INTRO_ACCEPTED) == 0


async def test_accept_exactly_at_deadline_succeeds(db, world):
    introduction = await send(db, world)

    result = await service_at(db, NOW + timedelta(days=7)).accept(pro_actor(world["professional"]), introduction.id)

    assert result.introduction.status == IntroductionStatus.ACCEPTED


async def test_only_the_recipient_can_answer(db, factory, world):
    introduction = await send(db, world)
    someone_else = await factory.professional(first_name="Charles")

    with pytest.raises(NotFoundError):
        await service_at(db).accept(pro_actor(someone_else), introduction.id)
    with pytest.raises(ForbiddenError, match="Professional access required"):
        await service_at(db).accept(hr_actor(world["hr_partner"]), introduction.id)


async def test_answering_and_listing_need_granted_permissions(db, world):
    introduction = await send(db, world)
    # Professional role without the introduction permissions
    restricted = AuthenticatedActor(id=world["professional"].user_id, role=UserRole.PROFESSIONAL)

    with pytest.raises(ForbiddenError, match="Professional access required"):
        await service_at(db).accept(restricted, introduction.id)
    with pytest.raises(ForbiddenError, match="Professional access required"):
        await service_at(db).list_received(restricted)

    await db.refresh(introduction)
    assert introduction.status == IntroductionStatus.PENDING


async def test_answer_requires_professional_profile(db, factory, world):
    introduction = await send(db, world)
    user = await factory.user(UserRole.PROFESSIONAL)

    with pytest.raises(NotFoundError, match="Professional profile not found"):
        await service_at(db).decline(AuthenticatedActor.for_role(user.id, UserRole.PROFESSIONAL), introduction.id)


async def test_conditional_update_lets_only_one_answer_win(db, factory, world):
    introduction = await factory.introduction(world["hr_partner"], world["job_role"], world["professional"])

    first = await introduction_crud.record_response(
        db, request_id=introduction.id, status=IntroductionStatus.ACCEPTED, response=None, now=NOW
    )
    second = await introduction_crud.record_response(
        db, request_id=introduction.id, status=IntroductionStatus.DECLINED, response=None, now=NOW
    )
    await db.commit()

    assert (first, second) == (True, False)
    await db.refresh(introduction)
    assert introduction.status == IntroductionStatus.ACCEPTED


# --- Read ---

async def test_received_lists_newest_first_with_pagination(db, factory, world):
    roles = [await factory.job_role(world["company"], role_title=f"Role {i}") for i in range(3)]
    for i, role in enumerate(roles):
        await factory.introduction(
            world["hr_partner"], role, world["professional"], sent_at=NOW - timedelta(days=3 - i)
        )

    page = await service_at(db).list_received(pro_actor(world["professional"]), page=1, limit=2)

    assert [i.job_role.role_title for i in page.introductions] == ["Role 2", "Role 1"]
    assert page.pagination.total == 3
    assert page.pagination.total_pages == 2
    assert page.pagination.has_next is True
    assert page.pagination.has_prev is False

    page_two = await service_at(db).list_received(pro_actor(world["professional"]), page=2, limit=2)
    assert [i.job_role.role_title for i in page_two.introductions] == ["Role 0"]
    assert page_two.pagination.has_next is False
    assert page_two.pagination.has_prev is True


async def test_status_filter_uses_effective_status(db, factory, world):
    roles = [await factory.job_role(world["company"], role_title=f"Role {i}") for i in range(3)]
    fresh = await factory.introduction(world["hr_partner"], roles[0], world["professional"], sent_at=NOW - timedelta(days=1))
    stale = await factory.introduction(world["hr_partner"], roles[1], world["professional"], sent_at=NOW - timedelta(days=10))
    await factory.introduction(
        world["hr_partner"], roles[2], world["professional"],
        status=IntroductionStatus.ACCEPTED, sent_at=NOW - timedelta(days=2),
    )
    actor = pro_actor(world["professional"])
    service = service_at(db)

    pending = await service.list_received(actor, status="pending")
    expired = await service.list_received(actor, status="EXPIRED")
    accepted = await service.list_received(actor, status="Accepted")
    everything = await service.list_received(actor, status="all")

    assert [i.id for i in pending.introductions] == [fresh.id]
    assert [i.id for i in expired.introductions] == [stale.id]
    assert expired.introductions[0].effective_status(NOW) == IntroductionStatus.EXPIRED
    assert expired.introductions[0].status == IntroductionStatus.PENDING
    assert len(accepted.introductions) == 1
    assert everything.pagination.total == 3


async def test_sent_is_scoped_to_callers_company(db, factory, world):
    await send(db, world)
    other_company = await factory.company(company_name="Other Co")
    other_hr = await factory.hr_partner(other_company)
    await factory.introduction(other_hr, await factory.job_role(other_company), world["professional"])

    mine = await service_at(db).list_sent(hr_actor(world["hr_partner"]))
    theirs = await service_at(db).list_sent(hr_actor(other_hr))

    assert mine.pagination.total == 1
    assert mine.introductions[0].company_id == world["company"].id
    assert theirs.pagination.total == 1


@pytest.mark.parametrize("kwargs,message", [
    (dict(page=0), "Page must be at least 1"),
    (dict(limit=0), "Limit must be between 1 and 100"),
    (dict(limit=101), "Limit must be between 1 and 100"),
    (dict(status="archived"), "Invalid status value"),
])
async def test_listing_rejects_bad_query(db, world, kwargs, message):
    with pytest.raises(ValidationFailedError, match=message):
        await service_at(db).list_received(pro_actor(world["professional"]), **kwargs)


async def test_listings_check_roles(db, world):
    with pytest.raises(ForbiddenError, match="Professional access required"):
        await service_at(db).list_received(hr_actor(world["hr_partner"]))
    with pytest.raises(ForbiddenError, match="HR partner access required"):
        await service_at(db).list_sent(pro_actor(world["professional"]))


def test_parse_status_filter():
    assert parse_status_filter(None) is None
    assert parse_status_filter("ALL") is None
    assert parse_status_filter(" declined ") == IntroductionStatus.DECLINED


# --- Stats ---

async def test_stats(db, factory, world):
    hr, pro = world["hr_partner"], world["professional"]
    roles = [await factory.job_role(world["company"], role_title=f"Role {i}") for i in range(5)]
    # This month: one accepted after 2h, one declined after 4h, one pending
    await factory.introduction(hr, roles[0], pro, status=IntroductionStatus.ACCEPTED,
                               sent_at=datetime(2026, 3, 2), response_date=datetime(2026, 3, 2, 2))
    await factory.introduction(hr, roles[1], pro, status=IntroductionStatus.DECLINED,
                               sent_at=datetime(2026, 3, 10), response_date=datetime(2026, 3, 10, 4))
    await factory.introduction(hr, roles[2], pro, sent_at=datetime(2026, 3, 14))
    # Last month: one accepted after 3h, one left pending until it expired
    await factory.introduction(hr, roles[3], pro, status=IntroductionStatus.ACCEPTED,
                               sent_at=datetime(2026, 2, 27), response_date=datetime(2026, 2, 27, 3))
    await factory.introduction(hr, roles[4], pro, sent_at=datetime(2026, 2, 1))

    stats = await service_at(db).get_stats(hr_actor(hr))

    assert stats.total_sent == 5
    assert stats.pending == 1
    assert stats.accepted == 2
    assert stats.declined == 1
    assert stats.expired == 1
    assert stats.acceptance_rate == 66.7
    assert stats.average_response_time == 3.0
    assert stats.this_month == 3
    assert stats.last_month == 2
    assert stats.trend == "up"


async def test_stats_with_no_requests(db, world):
    stats = await service_at(db).get_stats(hr_actor(world["hr_partner"]))

    assert stats.total_sent == 0
    assert stats.acceptance_rate == 0.0
    assert stats.average_response_time == 0.0
    assert stats.trend == "stable"


async def test_stats_last_month_wraps_across_new_year(db, factory, world):
    hr, pro = world["hr_partner"], world["professional"]
    await factory.introduction(hr, world["job_role"], pro, status=IntroductionStatus.DECLINED,
                               sent_at=datetime(2025, 12, 31, 23), response_date=datetime(2026, 1, 1))

    stats = await service_at(db, datetime(2026, 1, 5)).get_stats(hr_actor(hr))

    assert stats.this_month == 0
    assert stats.last_month == 1
    assert stats.trend == "down"
