"""Store access for jobs and offers.

Status changes go through conditional UPDATEs (compare-and-swap): the row is
only written when it still holds the expected status, and the caller learns
whether it won from ``rowcount``. Reads always refresh from the database so
no job or offer state is trusted across requests.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from smider_platform.domain.enums import JobStatus, OfferStatus
from smider_platform.domain.models import Contractor, Job, Offer


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; everything stored is UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ---------------------------------------------------------------------------
# Fresh reads
# ---------------------------------------------------------------------------


async def get_job(db: AsyncSession, job_id: str) -> Optional[Job]:
    result = await db.execute(
        select(Job).where(Job.id == job_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_offer(db: AsyncSession, offer_id: str) -> Optional[Offer]:
    result = await db.execute(
        select(Offer).where(Offer.id == offer_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_job_with_offers(db: AsyncSession, job_id: str) -> Optional[Job]:
    result = await db.execute(
        select(Job)
        .where(Job.id == job_id)
        .options(selectinload(Job.offers).selectinload(Offer.contractor))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def list_jobs_for_customer(db: AsyncSession, customer_id: str) -> list[Job]:
    result = await db.execute(
        select(Job)
        .where(Job.customer_id == customer_id)
        .options(selectinload(Job.offers).selectinload(Offer.contractor))
        .order_by(Job.created_at.desc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def list_offers_for_contractor(db: AsyncSession, contractor_id: str) -> list[Offer]:
    result = await db.execute(
        select(Offer)
        .where(Offer.contractor_id == contractor_id)
        .options(selectinload(Offer.job))
        .order_by(Offer.created_at.desc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def offered_contractor_ids(db: AsyncSession, job_id: str) -> set[str]:
    result = await db.execute(select(Offer.contractor_id).where(Offer.job_id == job_id))
    return set(result.scalars().all())


async def pending_offer_ids(db: AsyncSession, job_id: str, exclude: Optional[str] = None) -> list[str]:
    stmt = select(Offer.id).where(Offer.job_id == job_id, Offer.status == OfferStatus.PENDING.value)
    if exclude is not None:
        stmt = stmt.where(Offer.id != exclude)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_contractors(db: AsyncSession) -> list[Contractor]:
    result = await db.execute(select(Contractor))
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Compare-and-swap writes
# ---------------------------------------------------------------------------


async def cas_job_status(
    db: AsyncSession,
    job_id: str,
    expected: JobStatus,
    target: JobStatus,
    **values,
) -> bool:
    """Move a job from ``expected`` to ``target``; False if someone got there first."""
    result = await db.execute(
        update(Job)
        .where(Job.id == job_id, Job.status == expected.value)
        .values(status=target.value, **values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def cas_offer_status(
    db: AsyncSession,
    offer_id: str,
    expected: OfferStatus,
    target: OfferStatus,
    now: datetime,
    unexpired_only: bool = False,
) -> bool:
    """Move an offer from ``expected`` to ``target`` and stamp ``responded_at``.

    With ``unexpired_only`` the write also requires ``expires_at > now``.
    """
    stmt = update(Offer).where(Offer.id == offer_id, Offer.status == expected.value)
    if unexpired_only:
        stmt = stmt.where(Offer.expires_at > now)
    result = await db.execute(
        stmt.values(status=target.value, responded_at=now).execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def decline_pending_offers(
    db: AsyncSession,
    job_id: str,
    now: datetime,
    exclude: Optional[str] = None,
) -> list[str]:
    """Decline every still-pending offer of a job. Returns the declined ids."""
    declined = []
    for offer_id in await pending_offer_ids(db, job_id, exclude=exclude):
        if await cas_offer_status(db, offer_id, OfferStatus.PENDING, OfferStatus.DECLINED, now):
            declined.append(offer_id)
    return declined


async def expire_lapsed_offers(db: AsyncSession, now: datetime) -> list[tuple[str, str]]:
    """Mark pending offers past their window as expired.

    Returns ``(offer_id, job_id)`` for every offer this call expired.
    """
    result = await db.execute(
        select(Offer.id, Offer.job_id).where(
            Offer.status == OfferStatus.PENDING.value,
            Offer.expires_at <= now,
        )
    )
    expired = []
    for offer_id, job_id in result.all():
        if await cas_offer_status(db, offer_id, OfferStatus.PENDING, OfferStatus.EXPIRED, now):
            expired.append((offer_id, job_id))
    return expired
