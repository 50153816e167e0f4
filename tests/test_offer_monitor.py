"""Tests for lazy offer expiry and the periodic sweep."""

from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from smider_platform.infra import repository as repo
from smider_platform.services.offer_monitor import effective_offer_status, is_lapsed, run_offer_sweep

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


def _offer(status="pending", expires_at=None):
    return SimpleNamespace(status=status, expires_at=expires_at)


class TestLazyExpiry:
    def test_pending_before_deadline(self):
        offer = _offer(expires_at=NOW + timedelta(minutes=1))
        assert is_lapsed(offer, NOW) is False
        assert effective_offer_status(offer, NOW) == "pending"

    def test_deadline_itself_counts_as_lapsed(self):
        assert is_lapsed(_offer(expires_at=NOW), NOW) is True

    def test_naive_timestamps_read_as_utc(self):
        naive = datetime(2026, 3, 2, 11, 59)
        assert effective_offer_status(_offer(expires_at=naive), NOW) == "expired"

    @pytest.mark.parametrize("status", ["accepted", "declined", "expired"])
    def test_settled_offers_keep_their_status(self, status):
        offer = _offer(status=status, expires_at=NOW - timedelta(hours=1))
        assert is_lapsed(offer, NOW) is False
        assert effective_offer_status(offer, NOW) == status


class TestOfferSweep:
    @pytest.mark.asyncio
    async def test_sweep_expires_lapsed_offers(self, db_session, make_job, make_contractor, make_offer):
        job = await make_job()
        past = datetime.now(timezone.utc) - timedelta(minutes=5)
        offer = await make_offer(job, await make_contractor(), expires_at=past)

        @asynccontextmanager
        async def session_factory():
            yield db_session

        assert await run_offer_sweep(session_factory) == 1
        assert (await repo.get_offer(db_session, offer.id)).status == "expired"
        assert await run_offer_sweep(session_factory) == 0
