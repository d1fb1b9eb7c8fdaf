"""
Shared fixtures: an in-memory SQLite database, a session, seed factories
and an HTTP client wired to the FastAPI app.
"""
import os

# Must be set before app.core.config is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"

import uuid
from datetime import datetime, timedelta
from typing import Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.db import models  # noqa: F401
from app.db.base import Base, utcnow
from app.db.models.company import Company, HrPartner, JobRole, JobRoleStatus
from app.db.models.introduction import IntroductionRequest, IntroductionStatus
from app.db.models.professional import Professional, ProfessionalSkill
from app.db.models.user import User, UserRole, UserSession
from app.db.session import get_db


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy emit BEGIN
    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


class Factory:
    """Creates committed rows with sensible defaults."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _save(self, obj):
        self.db.add(obj)
        await self.db.commit()
        return obj

    async def user(self, role: str, phone_verified: bool = False, token: Optional[str] = None) -> User:
        user = User(
            external_id=f"ext_{uuid.uuid4().hex}",
            email=f"{uuid.uuid4().hex[:10]}@example.com",
            role=role,
            phone_verified=phone_verified,
            is_active=True,
        )
        self.db.add(user)
        await self.db.flush()
        if token:
            self.db.add(UserSession(
                user_id=user.id,
                session_token=token,
                expires_at=utcnow() + timedelta(days=1),
            ))
        await self.db.commit()
        return user

    async def company(self, credits: int = 5, **fields) -> Company:
        defaults = dict(
            company_name="Acme Corp",
            company_logo_url="https://cdn.example.com/acme.png",
            industry="Technology",
            company_size="51-200",
            headquarters_location="Lagos, Nigeria",
        )
        defaults.update(fields)
        return await self._save(Company(introduction_credits=credits, **defaults))

    async def hr_partner(self, company: Company, token: Optional[str] = None) -> HrPartner:
        user = await self.user(UserRole.HR_PARTNER, token=token)
        return await self._save(HrPartner(
            user_id=user.id,
            company_id=company.id,
            first_name="Grace",
            last_name="Hopper",
            job_title="Talent Lead",
        ))

    async def job_role(
        self,
        company: Company,
        status: str = JobRoleStatus.ACTIVE,
        is_confidential: bool = False,
        role_title: str = "Staff Engineer",
    ) -> JobRole:
        return await self._save(JobRole(
            company_id=company.id,
            role_title=role_title,
            seniority_level="SENIOR",
            status=status,
            is_confidential=is_confidential,
        ))

    async def professional(
        self,
        token: Optional[str] = None,
        phone_verified: bool = False,
        skills=(),
        **fields
    ) -> Professional:
        user = await self.user(UserRole.PROFESSIONAL, phone_verified=phone_verified, token=token)
        defaults = dict(first_name="Ada", last_name="Lovelace", open_to_opportunities=True)
        defaults.update(fields)
        professional = Professional(user_id=user.id, **defaults)
        professional.skills = [ProfessionalSkill(skill_name=name) for name in skills]
        return await self._save(professional)

    async def introduction(
        self,
        hr_partner: HrPartner,
        job_role: JobRole,
        professional: Professional,
        status: str = IntroductionStatus.PENDING,
        sent_at: Optional[datetime] = None,
        response_date: Optional[datetime] = None,
    ) -> IntroductionRequest:
        sent_at = sent_at or utcnow()
        return await self._save(IntroductionRequest(
            job_role_id=job_role.id,
            company_id=hr_partner.company_id,
            sent_by_hr_id=hr_partner.id,
            professional_id=professional.id,
            status=status,
            personalized_message="We would love to talk to you about a role.",
            sent_at=sent_at,
            expires_at=sent_at + timedelta(days=7),
            response_date=response_date,
        ))


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
async def client(session_factory):
    from main import app

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
