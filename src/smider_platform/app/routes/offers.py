"""Contractor-facing offer endpoints."""

import logging

from fastapi import APIRouter, Depends

from smider_platform.app.dependencies import unwrap
from smider_platform.app.routes.jobs import get_dispatch_service
from smider_platform.domain.schemas import OfferActionRequest
from smider_platform.services.dispatch_service import DispatchService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/offers", tags=["offers"])
contractors_router = APIRouter(prefix="/api/contractors", tags=["offers"])


@router.post("/{offer_id}/accept")
async def accept_offer(
    offer_id: str,
    body: OfferActionRequest,
    service: DispatchService = Depends(get_dispatch_service),
):
    """Accept an offer. Only the first acceptance for a job succeeds."""
    return unwrap(await service.accept_offer(offer_id, body.contractor_id))


@router.post("/{offer_id}/decline")
async def decline_offer(
    offer_id: str,
    body: OfferActionRequest,
    service: DispatchService = Depends(get_dispatch_service),
):
    return unwrap(await service.decline_offer(offer_id, body.contractor_id))


@contractors_router.get("/{contractor_id}/offers")
async def list_contractor_offers(contractor_id: str, service: DispatchService = Depends(get_dispatch_service)):
    return unwrap(await service.list_contractor_offers(contractor_id))
