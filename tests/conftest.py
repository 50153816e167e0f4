"""Shared test infrastructure for the Smider test suite.

Provides:
- db_session: async SQLite in-memory session with all tables created
- settings: Settings with dispatch defaults and demo mode off
- payment_gateway_mock: mock StripePaymentGateway that authorises everything
- make_contractor / make_job / make_offer: row factories
"""

import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from smider_platform.infra.database import Base

# Import all model modules so their tables are registered with Base.metadata
import smider_platform.domain.models  # noqa: F401

from smider_platform.app.config import Settings
from smider_platform.domain.enums import HoldStatus, JobStatus, OfferStatus
from smider_platform.domain.models import Contractor, Job, Offer
from smider_platform.services.payment_gateway import PaymentHold

OSLO = (59.9139, 10.7522)


# ---------------------------------------------------------------------------
# Database session fixture
# ---------------------------------------------------------------------------

@pytest.fixture
async def db_session():
    """Async SQLite in-memory session with all tables created.

    Creates a fresh engine + tables for each test, yields a session,
    then rolls back and tears down.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


# ---------------------------------------------------------------------------
# Settings and payment gateway
# ---------------------------------------------------------------------------

@pytest.fixture
def settings():
    return Settings(
        demo_mode=False,
        high_value_threshold=100_000,
        offer_window_minutes=15,
        default_lat=OSLO[0],
        default_lng=OSLO[1],
    )


@pytest.fixture
def payment_gateway_mock():
    """Mock gateway: holds are created and reported as authorised."""
    mock = MagicMock()
    mock.authorize = AsyncMock(return_value=PaymentHold(ref="pi_test_123", client_secret="pi_test_123_secret"))
    mock.hold_status = AsyncMock(return_value=HoldStatus.AUTHORIZED)
    mock.cancel = AsyncMock(return_value=None)
    return mock


# ---------------------------------------------------------------------------
# Row factories
# ---------------------------------------------------------------------------

@pytest.fixture
def make_contractor(db_session):
    """Factory that creates a Contractor row.

    Usage:
        contractor = await make_contractor(categories=["plumber"], lat=59.95)
    """
    async def _factory(
        company_name: str = "Test Elektro AS",
        categories: list[str] | None = None,
        lat: float | None = OSLO[0],
        lng: float | None = OSLO[1],
        service_radius_km: float | None = 50,
        is_available: bool | None = True,
        is_demo: bool = False,
    ) -> Contractor:
        contractor = Contractor(
            id=str(uuid.uuid4()),
            company_name=company_name,
            categories=categories if categories is not None else ["electrician"],
            lat=lat,
            lng=lng,
            service_radius_km=service_radius_km,
            is_available=is_available,
            is_demo=is_demo,
        )
        db_session.add(contractor)
        await db_session.flush()
        return contractor

    return _factory


@pytest.fixture
def make_job(db_session):
    """Factory that creates a priced Job row in any status."""
    async def _factory(
        status: JobStatus = JobStatus.SEARCHING,
        customer_id: str = "customer-1",
        category: str = "electrician",
        price_min: int = 4650,
        price_max: int = 5775,
        payment_hold_ref: str | None = "pi_test_123",
        lat: float | None = OSLO[0],
        lng: float | None = OSLO[1],
        created_at: datetime | None = None,
    ) -> Job:
        job = Job(
            id=str(uuid.uuid4()),
            customer_id=customer_id,
            category=category,
            description="Bytte 2 stikkontakter",
            payload={"task_details": "Bytte 2 stikkontakter", "socket_count": 2},
            estimated_hours=2.5,
            price_min=price_min,
            price_max=price_max,
            line_items=[],
            status=status.value,
            payment_hold_ref=payment_hold_ref,
            lat=lat,
            lng=lng,
            created_at=created_at or datetime.now(timezone.utc),
        )
        db_session.add(job)
        await db_session.flush()
        return job

    return _factory


@pytest.fixture
def make_offer(db_session):
    """Factory that creates an Offer for (job, contractor)."""
    async def _factory(
        job: Job,
        contractor: Contractor,
        status: OfferStatus = OfferStatus.PENDING,
        expires_at: datetime | None = None,
    ) -> Offer:
        now = datetime.now(timezone.utc)
        offer = Offer(
            id=str(uuid.uuid4()),
            job_id=job.id,
            contractor_id=contractor.id,
            status=status.value,
            expires_at=expires_at or now + timedelta(minutes=15),
            created_at=now,
        )
        db_session.add(offer)
        await db_session.flush()
        return offer

    return _factory
