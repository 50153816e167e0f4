"""Job lifecycle API endpoints.

Every mutation goes through the DispatchService, which validates the
transition and writes a JobEvent audit record.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from smider_platform.app.dependencies import get_payment_gateway, unwrap
from smider_platform.domain.enums import JobActor
from smider_platform.domain.schemas import AdminActionRequest, CancelJobRequest, CreateJobRequest
from smider_platform.infra.database import get_db
from smider_platform.services.dispatch_service import DispatchService
from smider_platform.services.payment_gateway import StripePaymentGateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/jobs", tags=["jobs"])
customers_router = APIRouter(prefix="/api/customers", tags=["jobs"])


def get_dispatch_service(
    db: AsyncSession = Depends(get_db),
    payment_gateway: StripePaymentGateway = Depends(get_payment_gateway),
) -> DispatchService:
    return DispatchService(db, payment_gateway=payment_gateway)


@router.post("", status_code=201)
async def create_job(body: CreateJobRequest, service: DispatchService = Depends(get_dispatch_service)):
    """Create a priced job from a completed intake."""
    result = await service.create_job(
        customer_id=body.customer_id,
        category=body.category,
        payload=body.payload,
        lat=body.lat,
        lng=body.lng,
        address=body.address,
        description=body.description,
    )
    return unwrap(result)


@router.get("/{job_id}")
async def get_job(job_id: str, service: DispatchService = Depends(get_dispatch_service)):
    return unwrap(await service.get_job(job_id))


@router.post("/{job_id}/confirm-payment")
async def confirm_payment(job_id: str, service: DispatchService = Depends(get_dispatch_service)):
    """Called after the customer has confirmed the card hold."""
    return unwrap(await service.confirm_payment(job_id))


@router.post("/{job_id}/dispatch")
async def dispatch_job(job_id: str, service: DispatchService = Depends(get_dispatch_service)):
    """Re-run matching for a searching job."""
    return unwrap(await service.dispatch_job(job_id))


@router.post("/{job_id}/cancel")
async def cancel_job(
    job_id: str,
    body: Optional[CancelJobRequest] = None,
    service: DispatchService = Depends(get_dispatch_service),
):
    body = body or CancelJobRequest()
    return unwrap(await service.cancel_job(job_id, actor=JobActor(body.actor), actor_id=body.actor_id))


@router.post("/{job_id}/complete")
async def complete_job(job_id: str, service: DispatchService = Depends(get_dispatch_service)):
    return unwrap(await service.complete_job(job_id))


@router.post("/{job_id}/escalate")
async def escalate_job(
    job_id: str,
    body: Optional[AdminActionRequest] = None,
    service: DispatchService = Depends(get_dispatch_service),
):
    """Admin escalation of a searching job to manual review."""
    actor_id = body.actor_id if body else None
    return unwrap(await service.escalate_job(job_id, actor=JobActor.ADMIN, actor_id=actor_id))


@customers_router.get("/{customer_id}/jobs")
async def list_customer_jobs(customer_id: str, service: DispatchService = Depends(get_dispatch_service)):
    """The customer's jobs, newest first, with offers and their effective status."""
    return unwrap(await service.list_customer_jobs(customer_id))
