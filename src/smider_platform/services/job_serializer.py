"""API-shaped dicts for jobs and offers."""

from datetime import datetime

from smider_platform.domain.enums import OfferStatus
from smider_platform.domain.models import Job, Offer
from smider_platform.infra.repository import as_utc
from smider_platform.services.offer_monitor import effective_offer_status


def _iso(value: datetime | None) -> str | None:
    value = as_utc(value)
    return value.isoformat() if value else None


def serialize_offer(offer: Offer, now: datetime, job: Job | None = None, contractor=None) -> dict:
    """Offer dict with its effective status. Pass ``job``/``contractor`` only when loaded."""
    data = {
        "id": offer.id,
        "job_id": offer.job_id,
        "contractor_id": offer.contractor_id,
        "status": effective_offer_status(offer, now),
        "expires_at": _iso(offer.expires_at),
        "created_at": _iso(offer.created_at),
        "responded_at": _iso(offer.responded_at),
    }
    if contractor is not None:
        data["company_name"] = contractor.company_name
    if job is not None:
        data["job"] = {
            "id": job.id,
            "category": job.category,
            "description": job.description,
            "status": job.status,
            "price_min": job.price_min,
            "price_max": job.price_max,
            "estimated_hours": job.estimated_hours,
            "location_address": job.location_address,
            "lat": job.lat,
            "lng": job.lng,
        }
    return data


def serialize_job(job: Job, now: datetime, offers: list[Offer] | None = None) -> dict:
    """Job dict; ``offers`` must come with their contractors eager-loaded."""
    data = {
        "id": job.id,
        "customer_id": job.customer_id,
        "category": job.category,
        "description": job.description,
        "payload": job.payload or {},
        "estimated_hours": job.estimated_hours,
        "price_min": job.price_min,
        "price_max": job.price_max,
        "line_items": job.line_items or [],
        "status": job.status,
        "has_payment_hold": bool(job.payment_hold_ref),
        "lat": job.lat,
        "lng": job.lng,
        "location_address": job.location_address,
        "assigned_contractor_id": job.assigned_contractor_id,
        "assigned_company_name": None,
        "created_at": _iso(job.created_at),
        "updated_at": _iso(job.updated_at),
        "offers": [],
    }
    for offer in offers or []:
        data["offers"].append(serialize_offer(offer, now, contractor=offer.contractor))
        if offer.status == OfferStatus.ACCEPTED.value and offer.contractor is not None:
            data["assigned_company_name"] = offer.contractor.company_name
    return data
