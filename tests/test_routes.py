"""HTTP tests for the intake, job and offer routes."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from smider_platform.agents.base import AgentResult
from smider_platform.domain.enums import JobStatus
from smider_platform.services.intake_service import IntakeService
from smider_platform.services.payment_gateway import PaymentError

SOCKET_PAYLOAD = {
    "task_details": "Bytte 2 stikkontakter",
    "socket_count": 2,
    "has_product": True,
    "materials_by_customer": True,
}


def _build_app_client(db_session: AsyncSession, payment_gateway, intake_service=None):
    """HTTPX AsyncClient on a test app with only the API routers."""
    from fastapi import FastAPI
    from smider_platform.app.dependencies import get_intake_service, get_payment_gateway
    from smider_platform.app.routes.intake import router as intake_router
    from smider_platform.app.routes.jobs import customers_router, router as jobs_router
    from smider_platform.app.routes.offers import contractors_router, router as offers_router
    from smider_platform.infra.database import get_db

    test_app = FastAPI()
    for router in (intake_router, jobs_router, customers_router, offers_router, contractors_router):
        test_app.include_router(router)

    async def _override_get_db():
        yield db_session

    test_app.dependency_overrides[get_db] = _override_get_db
    test_app.dependency_overrides[get_payment_gateway] = lambda: payment_gateway
    if intake_service is not None:
        test_app.dependency_overrides[get_intake_service] = lambda: intake_service

    return AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://testserver",
    )


# ---------------------------------------------------------------------------
# Intake
# ---------------------------------------------------------------------------


class TestIntakeRoute:
    @pytest.mark.asyncio
    async def test_turn_returns_estimate_when_complete(self, db_session, payment_gateway_mock):
        agent = MagicMock()
        agent.extract = AsyncMock(return_value=AgentResult.success(data={"category": "electrician", **SOCKET_PAYLOAD}))
        intake = IntakeService(extraction_agent=agent)

        async with _build_app_client(db_session, payment_gateway_mock, intake) as client:
            resp = await client.post(
                "/api/intake/turn",
                json={"messages": [{"role": "user", "content": "Bytte 2 stikkontakter, har dem selv"}]},
            )

        assert resp.status_code == 200
        body = resp.json()
        assert body["kind"] == "complete"
        assert body["done"] is True
        assert body["estimate"]["price_min"] == 4650
        assert body["estimate"]["line_items"][1]["label"] == "Servicebil (1 dag)"

    @pytest.mark.asyncio
    async def test_rejects_unknown_role(self, db_session, payment_gateway_mock):
        intake = IntakeService(extraction_agent=MagicMock())
        async with _build_app_client(db_session, payment_gateway_mock, intake) as client:
            resp = await client.post("/api/intake/turn", json={"messages": [{"role": "robot", "content": "hei"}]})
        assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


class TestJobRoutes:
    @pytest.mark.asyncio
    async def test_create_job(self, db_session, payment_gateway_mock):
        async with _build_app_client(db_session, payment_gateway_mock) as client:
            resp = await client.post(
                "/api/jobs",
                json={"customer_id": "customer-1", "category": "electrician", "payload": SOCKET_PAYLOAD},
            )

        assert resp.status_code == 201
        body = resp.json()
        assert body["job"]["status"] == "pending_payment"
        assert body["client_secret"] == "pi_test_123_secret"

    @pytest.mark.asyncio
    async def test_unsupported_category_is_422(self, db_session, payment_gateway_mock):
        async with _build_app_client(db_session, payment_gateway_mock) as client:
            resp = await client.post(
                "/api/jobs",
                json={"customer_id": "customer-1", "category": "taktekker", "payload": {"task_details": "Tak"}},
            )
        assert resp.status_code == 422
        assert resp.json()["detail"]["error"] == "unsupported_category"

    @pytest.mark.asyncio
    async def test_missing_fields_listed(self, db_session, payment_gateway_mock):
        async with _build_app_client(db_session, payment_gateway_mock) as client:
            resp = await client.post(
                "/api/jobs",
                json={"customer_id": "customer-1", "category": "painter", "payload": {"task_details": "Male"}},
            )
        assert resp.status_code == 422
        assert resp.json()["detail"]["missing_fields"] == ["area_sqm"]

    @pytest.mark.asyncio
    async def test_infinite_number_in_body_is_422(self, db_session, payment_gateway_mock):
        body = (
            '{"customer_id": "c", "category": "painter",'
            ' "payload": {"task_details": "Male stua", "area_sqm": Infinity}}'
        )
        async with _build_app_client(db_session, payment_gateway_mock) as client:
            resp = await client.post("/api/jobs", content=body, headers={"content-type": "application/json"})
        assert resp.status_code == 422
        assert resp.json()["detail"]["missing_fields"] == ["area_sqm"]

    @pytest.mark.asyncio
    async def test_out_of_range_coordinates(self, db_session, payment_gateway_mock):
        async with _build_app_client(db_session, payment_gateway_mock) as client:
            resp = await client.post(
                "/api/jobs",
                json={"customer_id": "c", "category": "electrician", "payload": SOCKET_PAYLOAD, "lat": 91},
            )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_payment_failure_is_402(self, db_session, payment_gateway_mock):
        payment_gateway_mock.authorize.side_effect = PaymentError("card_declined")
        async with _build_app_client(db_session, payment_gateway_mock) as client:
            resp = await client.post(
                "/api/jobs",
                json={"customer_id": "customer-1", "category": "electrician", "payload": SOCKET_PAYLOAD},
            )
        assert resp.status_code == 402
        assert resp.json()["detail"]["error"] == "payment_failed"

    @pytest.mark.asyncio
    async def test_unknown_job_is_404(self, db_session, payment_gateway_mock):
        async with _build_app_client(db_session, payment_gateway_mock) as client:
            resp = await client.get("/api/jobs/does-not-exist")
        assert resp.status_code == 404
        assert resp.json()["detail"]["message"] == "Fant ikke oppdraget."

    @pytest.mark.asyncio
    async def test_confirm_payment_dispatches(self, db_session, payment_gateway_mock, make_job, make_contractor):
        await make_contractor()
        job = await make_job(status=JobStatus.PENDING_PAYMENT)
        async with _build_app_client(db_session, payment_gateway_mock) as client:
            resp = await client.post(f"/api/jobs/{job.id}/confirm-payment")
        assert resp.status_code == 200
        assert resp.json()["offers_created"] == 1

    @pytest.mark.asyncio
    async def test_customer_cancel(self, db_session, payment_gateway_mock, make_job):
        job = await make_job()
        async with _build_app_client(db_session, payment_gateway_mock) as client:
            resp = await client.post(f"/api/jobs/{job.id}/cancel", json={"actor_id": "customer-1"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "cancelled"

    @pytest.mark.asyncio
    async def test_cancel_without_customer_is_403(self, db_session, payment_gateway_mock, make_job):
        job = await make_job()
        async with _build_app_client(db_session, payment_gateway_mock) as client:
            resp = await client.post(f"/api/jobs/{job.id}/cancel")
        assert resp.status_code == 403
        assert resp.json()["detail"]["error"] == "not_owned"

    @pytest.mark.asyncio
    async def test_admin_cancel_needs_no_owner(self, db_session, payment_gateway_mock, make_job):
        job = await make_job()
        async with _build_app_client(db_session, payment_gateway_mock) as client:
            resp = await client.post(f"/api/jobs/{job.id}/cancel", json={"actor": "admin"})
        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_complete_searching_job_conflicts(self, db_session, payment_gateway_mock, make_job):
        job = await make_job()
        async with _build_app_client(db_session, payment_gateway_mock) as client:
            resp = await client.post(f"/api/jobs/{job.id}/complete")
        assert resp.status_code == 409
        assert resp.json()["detail"]["error"] == "invalid_transition"

    @pytest.mark.asyncio
    async def test_customer_jobs(self, db_session, payment_gateway_mock, make_job):
        job = await make_job()
        async with _build_app_client(db_session, payment_gateway_mock) as client:
            resp = await client.get("/api/customers/customer-1/jobs")
        assert resp.status_code == 200
        assert [j["id"] for j in resp.json()["jobs"]] == [job.id]


# ---------------------------------------------------------------------------
# Offers
# ---------------------------------------------------------------------------


class TestOfferRoutes:
    @pytest.mark.asyncio
    async def test_first_accept_wins_second_conflicts(
        self, db_session, payment_gateway_mock, make_job, make_contractor, make_offer,
    ):
        job = await make_job()
        a = await make_contractor(company_name="A AS")
        b = await make_contractor(company_name="B AS")
        offer_a = await make_offer(job, a)
        offer_b = await make_offer(job, b)

        async with _build_app_client(db_session, payment_gateway_mock) as client:
            first = await client.post(f"/api/offers/{offer_a.id}/accept", json={"contractor_id": a.id})
            second = await client.post(f"/api/offers/{offer_b.id}/accept", json={"contractor_id": b.id})

        assert first.status_code == 200
        assert first.json()["status"] == "assigned"
        assert second.status_code == 409
        assert second.json()["detail"]["error"] == "offer_unavailable"
        assert second.json()["detail"]["message"] == "Oppdraget er ikke lenger tilgjengelig."

    @pytest.mark.asyncio
    async def test_accept_someone_elses_offer_is_403(
        self, db_session, payment_gateway_mock, make_job, make_contractor, make_offer,
    ):
        offer = await make_offer(await make_job(), await make_contractor())
        async with _build_app_client(db_session, payment_gateway_mock) as client:
            resp = await client.post(f"/api/offers/{offer.id}/accept", json={"contractor_id": "intruder"})
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_decline_and_list(self, db_session, payment_gateway_mock, make_job, make_contractor, make_offer):
        contractor = await make_contractor()
        offer = await make_offer(await make_job(), contractor)

        async with _build_app_client(db_session, payment_gateway_mock) as client:
            declined = await client.post(f"/api/offers/{offer.id}/decline", json={"contractor_id": contractor.id})
            listed = await client.get(f"/api/contractors/{contractor.id}/offers")

        assert declined.status_code == 200
        assert declined.json()["remaining_pending"] == 0
        assert [o["status"] for o in listed.json()["offers"]] == ["declined"]


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self):
        from smider_platform.app.main import app

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "service": "smider-platform"}
