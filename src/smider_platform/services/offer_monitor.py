"""Offer expiry: lazy checks plus a periodic sweep.

Expiry is checked lazily wherever an offer is read or acted on, and the
sweep marks lapsed pending offers ``expired`` so the store catches up.
"""

import asyncio
import logging
from datetime import datetime

from smider_platform.domain.enums import OfferStatus
from smider_platform.infra.repository import as_utc

logger = logging.getLogger(__name__)


def is_lapsed(offer, now: datetime) -> bool:
    """True once a pending offer has reached its expiry time."""
    return offer.status == OfferStatus.PENDING.value and as_utc(offer.expires_at) <= now


def effective_offer_status(offer, now: datetime) -> str:
    """Status as callers should see it: lapsed pending offers read as expired."""
    if is_lapsed(offer, now):
        return OfferStatus.EXPIRED.value
    return offer.status


async def run_offer_sweep(session_factory=None) -> int:
    """Expire lapsed offers once. Returns the number of offers expired."""
    from smider_platform.infra.database import async_session
    from smider_platform.services.dispatch_service import DispatchService

    session_factory = session_factory or async_session
    async with session_factory() as db:
        result = await DispatchService(db).expire_offers()
    count = result.data.get("expired", 0)
    if count:
        logger.info("Offer sweep expired %d offer(s)", count)
    return count


async def offer_sweep_loop(interval_seconds: int, session_factory=None):
    """Run the expiry sweep forever, every ``interval_seconds``."""
    while True:
        try:
            await run_offer_sweep(session_factory)
        except Exception as e:
            logger.error("Offer sweep error: %s", e)
        await asyncio.sleep(interval_seconds)
