"""Dispatch service: job creation, payment gating, offers and assignment.

Every operation re-reads the rows it acts on and returns a DispatchResult
instead of raising for expected failures. Status changes are conditional
UPDATEs, so two contractors accepting at the same time can never both win:
the loser's transaction rolls back and reports ``offer_unavailable``.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from smider_platform.app.config import Settings, get_settings
from smider_platform.domain.enums import (
    Category,
    HoldStatus,
    JobActor,
    JobEventType,
    JobStatus,
    OfferStatus,
)
from smider_platform.domain.models import Job, JobEvent, Offer
from smider_platform.domain.payloads import parse_payload
from smider_platform.infra import repository as repo
from smider_platform.services.job_serializer import serialize_job, serialize_offer
from smider_platform.services.job_state_machine import InvalidTransitionError, JobStateMachine
from smider_platform.services.matching_engine import MatchingEngine
from smider_platform.services.offer_monitor import is_lapsed
from smider_platform.services.payment_gateway import PaymentError, StripePaymentGateway
from smider_platform.services.pricing_engine import PricingEngine
from smider_platform.services.slot_filling import SlotFillingController

logger = logging.getLogger(__name__)


class DispatchError(str, Enum):
    VALIDATION = "validation"
    UNSUPPORTED_CATEGORY = "unsupported_category"
    PAYMENT_FAILED = "payment_failed"
    NOT_FOUND = "not_found"
    NOT_OWNED = "not_owned"
    OFFER_UNAVAILABLE = "offer_unavailable"
    OFFER_EXPIRED = "offer_expired"
    INVALID_TRANSITION = "invalid_transition"


MESSAGES: dict[DispatchError, str] = {
    DispatchError.VALIDATION: "Oppdraget mangler informasjon.",
    DispatchError.UNSUPPORTED_CATEGORY: "Denne typen oppdrag støttes ikke.",
    DispatchError.PAYMENT_FAILED: "Betalingen kunne ikke bekreftes.",
    DispatchError.NOT_FOUND: "Fant ikke oppdraget.",
    DispatchError.NOT_OWNED: "Du har ikke tilgang til dette.",
    DispatchError.OFFER_UNAVAILABLE: "Oppdraget er ikke lenger tilgjengelig.",
    DispatchError.OFFER_EXPIRED: "Tilbudet har utløpt.",
    DispatchError.INVALID_TRANSITION: "Oppdraget kan ikke endres i nåværende status.",
}


@dataclass
class DispatchResult:
    """Outcome of a dispatch operation (Result pattern)."""

    ok: bool
    data: dict = field(default_factory=dict)
    error: Optional[DispatchError] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, data: Optional[dict] = None, message: Optional[str] = None) -> "DispatchResult":
        return cls(ok=True, data=data or {}, message=message)

    @classmethod
    def failure(
        cls,
        error: DispatchError,
        message: Optional[str] = None,
        data: Optional[dict] = None,
    ) -> "DispatchResult":
        return cls(ok=False, error=error, message=message or MESSAGES[error], data=data or {})


def _now() -> datetime:
    return datetime.now(timezone.utc)


class DispatchService:
    """Owns job and offer state once a job has been created."""

    def __init__(
        self,
        db: AsyncSession,
        payment_gateway: Any = None,
        settings: Optional[Settings] = None,
        matching: Optional[MatchingEngine] = None,
        pricing: Optional[PricingEngine] = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.payment_gateway = payment_gateway or StripePaymentGateway()
        self.matching = matching or MatchingEngine()
        self.pricing = pricing or PricingEngine()
        self.controller = SlotFillingController()
        self.state_machine = JobStateMachine()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _record(
        self,
        job_id: str,
        event_type: JobEventType,
        actor: JobActor = JobActor.SYSTEM,
        actor_id: Optional[str] = None,
        from_status: Optional[str] = None,
        to_status: Optional[str] = None,
        offer_id: Optional[str] = None,
        data: Optional[dict] = None,
    ) -> None:
        self.db.add(JobEvent(
            id=str(uuid.uuid4()),
            job_id=job_id,
            offer_id=offer_id,
            event_type=event_type.value,
            actor=actor.value,
            actor_id=actor_id,
            from_status=from_status,
            to_status=to_status,
            data=data or {},
            created_at=_now(),
        ))

    def _check(self, current: str, target: JobStatus, actor: JobActor) -> Optional[DispatchResult]:
        """Validate a transition; returns a failure result when it is not allowed."""
        try:
            self.state_machine.validate_transition(JobStatus(current), target, actor)
        except InvalidTransitionError as exc:
            logger.info("Rejected transition: %s", exc)
            return DispatchResult.failure(DispatchError.INVALID_TRANSITION, data={"status": current})
        return None

    async def _load_actionable_offer(
        self,
        offer_id: str,
        contractor_id: str,
        now: datetime,
    ) -> tuple[Optional[Offer], Optional[DispatchResult]]:
        """Shared accept/decline guards: exists, owned, pending, not lapsed."""
        offer = await repo.get_offer(self.db, offer_id)
        if offer is None:
            return None, DispatchResult.failure(DispatchError.NOT_FOUND, "Fant ikke tilbudet.")
        if offer.contractor_id != contractor_id:
            return None, DispatchResult.failure(DispatchError.NOT_OWNED)
        if offer.status != OfferStatus.PENDING.value:
            return None, DispatchResult.failure(
                DispatchError.OFFER_UNAVAILABLE, data={"offer_status": offer.status},
            )
        if is_lapsed(offer, now):
            job_id = offer.job_id
            if await repo.cas_offer_status(self.db, offer_id, OfferStatus.PENDING, OfferStatus.EXPIRED, now):
                self._record(
                    job_id,
                    JobEventType.OFFER_EXPIRED,
                    offer_id=offer_id,
                    from_status=OfferStatus.PENDING.value,
                    to_status=OfferStatus.EXPIRED.value,
                )
            await self.db.commit()
            logger.info("Offer %s lapsed before response", offer_id)
            return None, DispatchResult.failure(DispatchError.OFFER_EXPIRED)
        return offer, None

    # ------------------------------------------------------------------
    # Job creation and payment
    # ------------------------------------------------------------------

    async def create_job(
        self,
        customer_id: str,
        category: Any,
        payload: Any,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        address: Optional[str] = None,
        description: Optional[str] = None,
    ) -> DispatchResult:
        """Validate, price and persist a job, then route it.

        Above the high-value threshold the job goes to manual review with no
        payment and no offers. Otherwise it waits for a payment hold on the
        maximum price.
        """
        resolved = Category.parse(category)
        if resolved is None:
            return DispatchResult.failure(DispatchError.UNSUPPORTED_CATEGORY)

        job_payload = parse_payload(resolved, payload).model_copy(update={"user_question": None})
        missing = self.controller.missing_fields(resolved, job_payload)
        if missing:
            return DispatchResult.failure(DispatchError.VALIDATION, data={"missing_fields": missing})

        estimate = self.pricing.estimate(resolved, job_payload)
        job = Job(
            id=str(uuid.uuid4()),
            customer_id=customer_id,
            category=resolved.value,
            description=description or job_payload.task_details,
            payload=job_payload.known_fields(),
            estimated_hours=estimate.hours,
            price_min=estimate.price_min,
            price_max=estimate.price_max,
            line_items=[item.to_dict() for item in estimate.line_items],
            status=JobStatus.DRAFT.value,
            lat=lat if lat is not None else self.settings.default_lat,
            lng=lng if lng is not None else self.settings.default_lng,
            location_address=address,
        )
        self.db.add(job)
        self._record(job.id, JobEventType.CREATED, JobActor.CUSTOMER, customer_id, to_status=job.status)

        if estimate.price_max > self.settings.high_value_threshold:
            self.state_machine.validate_transition(JobStatus.DRAFT, JobStatus.MANUAL_REVIEW, JobActor.SYSTEM)
            job.status = JobStatus.MANUAL_REVIEW.value
            self._record(
                job.id,
                JobEventType.ROUTED_MANUAL_REVIEW,
                from_status=JobStatus.DRAFT.value,
                to_status=job.status,
                data={"price_max": estimate.price_max, "threshold": self.settings.high_value_threshold},
            )
            await self.db.commit()
            logger.info("Job %s routed to manual review (price_max=%d)", job.id, estimate.price_max)
            return DispatchResult.success(
                {"job": serialize_job(job, _now()), "client_secret": None},
                message="Oppdraget er sendt til manuell vurdering.",
            )

        self.state_machine.validate_transition(JobStatus.DRAFT, JobStatus.PENDING_PAYMENT, JobActor.SYSTEM)
        job.status = JobStatus.PENDING_PAYMENT.value
        await self.db.commit()

        try:
            hold = await self.payment_gateway.authorize(
                estimate.price_max,
                metadata={"job_id": job.id, "customer_id": customer_id},
            )
        except PaymentError as exc:
            logger.warning("Payment hold failed for job %s: %s", job.id, exc)
            self._record(job.id, JobEventType.PAYMENT_FAILED, data={"reason": str(exc)})
            await self.db.commit()
            return DispatchResult.failure(DispatchError.PAYMENT_FAILED, data={"job_id": job.id})

        job.payment_hold_ref = hold.ref
        self._record(
            job.id,
            JobEventType.PAYMENT_HOLD_CREATED,
            data={"amount": estimate.price_max, "currency": self.settings.currency},
        )
        await self.db.commit()
        logger.info("Job %s created, awaiting payment (hold=%s)", job.id, hold.ref)
        return DispatchResult.success({"job": serialize_job(job, _now()), "client_secret": hold.client_secret})

    async def confirm_payment(self, job_id: str) -> DispatchResult:
        """Confirm the hold is authorised, open the job for offers and dispatch."""
        job = await repo.get_job(self.db, job_id)
        if job is None:
            return DispatchResult.failure(DispatchError.NOT_FOUND)
        rejected = self._check(job.status, JobStatus.SEARCHING, JobActor.SYSTEM)
        if rejected:
            return rejected

        hold_ref = job.payment_hold_ref
        if not hold_ref:
            return DispatchResult.failure(DispatchError.PAYMENT_FAILED, "Betalingen er ikke startet.")

        try:
            hold_status = await self.payment_gateway.hold_status(hold_ref)
        except PaymentError as exc:
            logger.warning("Could not verify hold %s for job %s: %s", hold_ref, job_id, exc)
            hold_status = None

        if hold_status != HoldStatus.AUTHORIZED:
            self._record(
                job_id,
                JobEventType.PAYMENT_FAILED,
                data={"hold_status": hold_status.value if hold_status else "unreachable"},
            )
            await self.db.commit()
            message = "Betalingen er kansellert." if hold_status == HoldStatus.CANCELED else None
            return DispatchResult.failure(DispatchError.PAYMENT_FAILED, message)

        if not await repo.cas_job_status(
            self.db, job_id, JobStatus.PENDING_PAYMENT, JobStatus.SEARCHING, updated_at=_now(),
        ):
            await self.db.rollback()
            return DispatchResult.failure(DispatchError.INVALID_TRANSITION)

        self._record(
            job_id,
            JobEventType.PAYMENT_CONFIRMED,
            from_status=JobStatus.PENDING_PAYMENT.value,
            to_status=JobStatus.SEARCHING.value,
        )
        await self.db.commit()
        logger.info("Payment confirmed for job %s", job_id)
        return await self.dispatch_job(job_id)

    # ------------------------------------------------------------------
    # Offers
    # ------------------------------------------------------------------

    async def dispatch_job(self, job_id: str) -> DispatchResult:
        """Offer the job to every in-range contractor not offered yet.

        Zero candidates is a state, not an error: the job keeps searching.
        """
        job = await repo.get_job(self.db, job_id)
        if job is None:
            return DispatchResult.failure(DispatchError.NOT_FOUND)
        if job.status != JobStatus.SEARCHING.value:
            return DispatchResult.failure(DispatchError.INVALID_TRANSITION, data={"status": job.status})

        category = Category.parse(job.category)
        lat = job.lat if job.lat is not None else self.settings.default_lat
        lng = job.lng if job.lng is not None else self.settings.default_lng
        ranked = await self.matching.find_providers(
            self.db, category, lat, lng, category_fallback=self.settings.demo_mode,
        )
        already_offered = await repo.offered_contractor_ids(self.db, job_id)
        ranked = [r for r in ranked if r.contractor.id not in already_offered]

        if not ranked:
            self._record(job_id, JobEventType.NO_CANDIDATES, data={"already_offered": len(already_offered)})
            await self.db.commit()
            logger.warning("No contractors available for job %s (%s)", job_id, job.category)
            return DispatchResult.success(
                {"job_id": job_id, "status": JobStatus.SEARCHING.value, "offers_created": 0, "offer_ids": []},
                message="Vi leter fortsatt etter en ledig håndverker.",
            )

        now = _now()
        expires_at = now + timedelta(minutes=self.settings.offer_window_minutes)
        offers = []
        for candidate in ranked:
            offer = Offer(
                id=str(uuid.uuid4()),
                job_id=job_id,
                contractor_id=candidate.contractor.id,
                status=OfferStatus.PENDING.value,
                expires_at=expires_at,
                created_at=now,
            )
            self.db.add(offer)
            offers.append((offer, candidate))

        self._record(
            job_id,
            JobEventType.OFFERS_CREATED,
            data={
                "count": len(offers),
                "contractor_ids": [c.contractor.id for _, c in offers],
                "expires_at": expires_at.isoformat(),
            },
        )
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.warning("Concurrent dispatch for job %s, no offers created by this call", job_id)
            return DispatchResult.success(
                {"job_id": job_id, "status": JobStatus.SEARCHING.value, "offers_created": 0, "offer_ids": []},
            )

        offer_ids = [offer.id for offer, _ in offers]
        logger.info("Dispatched job %s to %d contractor(s)", job_id, len(offer_ids))
        data = {
            "job_id": job_id,
            "status": JobStatus.SEARCHING.value,
            "offers_created": len(offer_ids),
            "offer_ids": offer_ids,
        }

        if self.settings.demo_mode:
            demo = next(((o, c) for o, c in offers if c.contractor.is_demo), None)
            if demo is not None:
                offer, candidate = demo
                accepted = await self.accept_offer(offer.id, candidate.contractor.id, actor=JobActor.SYSTEM)
                data["auto_accepted"] = accepted.ok
                if accepted.ok:
                    data["status"] = JobStatus.ASSIGNED.value
                    data["assigned_contractor_id"] = candidate.contractor.id

        return DispatchResult.success(data)

    async def accept_offer(
        self,
        offer_id: str,
        contractor_id: str,
        actor: JobActor = JobActor.CONTRACTOR,
    ) -> DispatchResult:
        """Accept an offer; exactly one acceptance per job can ever succeed."""
        now = _now()
        offer, rejected = await self._load_actionable_offer(offer_id, contractor_id, now)
        if rejected:
            return rejected
        job_id = offer.job_id

        job = await repo.get_job(self.db, job_id)
        if job is None or job.status != JobStatus.SEARCHING.value:
            await self.db.rollback()
            return DispatchResult.failure(DispatchError.OFFER_UNAVAILABLE)
        self.state_machine.validate_transition(JobStatus.SEARCHING, JobStatus.ASSIGNED, actor)

        if not await repo.cas_job_status(
            self.db,
            job_id,
            JobStatus.SEARCHING,
            JobStatus.ASSIGNED,
            assigned_contractor_id=contractor_id,
            updated_at=now,
        ):
            await self.db.rollback()
            logger.info("Accept lost race on job %s (offer %s)", job_id, offer_id)
            return DispatchResult.failure(DispatchError.OFFER_UNAVAILABLE)

        if not await repo.cas_offer_status(
            self.db, offer_id, OfferStatus.PENDING, OfferStatus.ACCEPTED, now, unexpired_only=True,
        ):
            await self.db.rollback()
            logger.info("Offer %s changed before it could be accepted", offer_id)
            return DispatchResult.failure(DispatchError.OFFER_UNAVAILABLE)

        declined = await repo.decline_pending_offers(self.db, job_id, now, exclude=offer_id)

        self._record(
            job_id,
            JobEventType.OFFER_ACCEPTED,
            actor,
            contractor_id,
            from_status=OfferStatus.PENDING.value,
            to_status=OfferStatus.ACCEPTED.value,
            offer_id=offer_id,
        )
        self._record(
            job_id,
            JobEventType.ASSIGNED,
            actor,
            contractor_id,
            from_status=JobStatus.SEARCHING.value,
            to_status=JobStatus.ASSIGNED.value,
            offer_id=offer_id,
        )
        for other_id in declined:
            self._record(
                job_id,
                JobEventType.OFFER_DECLINED,
                from_status=OfferStatus.PENDING.value,
                to_status=OfferStatus.DECLINED.value,
                offer_id=other_id,
                data={"reason": "job_assigned"},
            )
        await self.db.commit()

        logger.info("Job %s assigned to contractor %s via offer %s", job_id, contractor_id, offer_id)
        return DispatchResult.success({
            "job_id": job_id,
            "offer_id": offer_id,
            "contractor_id": contractor_id,
            "status": JobStatus.ASSIGNED.value,
            "declined_offers": len(declined),
        })

    async def decline_offer(self, offer_id: str, contractor_id: str) -> DispatchResult:
        """Decline an offer. The job keeps searching whatever happens."""
        now = _now()
        offer, rejected = await self._load_actionable_offer(offer_id, contractor_id, now)
        if rejected:
            return rejected
        job_id = offer.job_id

        if not await repo.cas_offer_status(self.db, offer_id, OfferStatus.PENDING, OfferStatus.DECLINED, now):
            await self.db.rollback()
            return DispatchResult.failure(DispatchError.OFFER_UNAVAILABLE)

        self._record(
            job_id,
            JobEventType.OFFER_DECLINED,
            JobActor.CONTRACTOR,
            contractor_id,
            from_status=OfferStatus.PENDING.value,
            to_status=OfferStatus.DECLINED.value,
            offer_id=offer_id,
        )
        await self.db.commit()

        remaining = len(await repo.pending_offer_ids(self.db, job_id))
        if remaining == 0:
            logger.warning("Job %s has no pending offers left", job_id)
        return DispatchResult.success({"job_id": job_id, "offer_id": offer_id, "remaining_pending": remaining})

    async def expire_offers(self) -> DispatchResult:
        """Mark every pending offer past its window as expired."""
        now = _now()
        expired = await repo.expire_lapsed_offers(self.db, now)
        for offer_id, job_id in expired:
            self._record(
                job_id,
                JobEventType.OFFER_EXPIRED,
                from_status=OfferStatus.PENDING.value,
                to_status=OfferStatus.EXPIRED.value,
                offer_id=offer_id,
            )
        await self.db.commit()
        return DispatchResult.success({"expired": len(expired)})

    # ------------------------------------------------------------------
    # Job lifecycle
    # ------------------------------------------------------------------

    async def _move_job(
        self,
        job_id: str,
        target: JobStatus,
        actor: JobActor,
        event_type: JobEventType,
        actor_id: Optional[str] = None,
        decline_offers: bool = False,
    ) -> tuple[Optional[Job], DispatchResult]:
        job = await repo.get_job(self.db, job_id)
        if job is None:
            return None, DispatchResult.failure(DispatchError.NOT_FOUND)
        current = job.status
        rejected = self._check(current, target, actor)
        if rejected:
            return None, rejected

        now = _now()
        if not await repo.cas_job_status(self.db, job_id, JobStatus(current), target, updated_at=now):
            await self.db.rollback()
            return None, DispatchResult.failure(DispatchError.INVALID_TRANSITION)

        declined = []
        if decline_offers:
            declined = await repo.decline_pending_offers(self.db, job_id, now)
            for offer_id in declined:
                self._record(
                    job_id,
                    JobEventType.OFFER_DECLINED,
                    from_status=OfferStatus.PENDING.value,
                    to_status=OfferStatus.DECLINED.value,
                    offer_id=offer_id,
                    data={"reason": event_type.value},
                )
        self._record(job_id, event_type, actor, actor_id, from_status=current, to_status=target.value)
        await self.db.commit()

        logger.info("Job %s: %s -> %s by %s", job_id, current, target.value, actor.value)
        return job, DispatchResult.success({
            "job_id": job_id,
            "status": target.value,
            "previous_status": current,
            "declined_offers": len(declined),
        })

    async def cancel_job(
        self,
        job_id: str,
        actor: JobActor = JobActor.CUSTOMER,
        actor_id: Optional[str] = None,
    ) -> DispatchResult:
        """Cancel a non-terminal job, declining its offers and releasing the hold.

        A customer cancel must name the customer; only the job's owner may
        cancel it.
        """
        if actor == JobActor.CUSTOMER:
            job = await repo.get_job(self.db, job_id)
            if job is None:
                return DispatchResult.failure(DispatchError.NOT_FOUND)
            if actor_id is None or job.customer_id != actor_id:
                return DispatchResult.failure(DispatchError.NOT_OWNED)

        job, result = await self._move_job(
            job_id, JobStatus.CANCELLED, actor, JobEventType.CANCELLED, actor_id, decline_offers=True,
        )
        if not result.ok:
            return result

        hold_ref = job.payment_hold_ref
        result.data["hold_released"] = False
        if hold_ref:
            try:
                await self.payment_gateway.cancel(hold_ref)
                result.data["hold_released"] = True
            except PaymentError as exc:
                logger.warning("Could not release hold %s for cancelled job %s: %s", hold_ref, job_id, exc)
        return result

    async def complete_job(self, job_id: str, actor: JobActor = JobActor.SYSTEM) -> DispatchResult:
        _, result = await self._move_job(job_id, JobStatus.COMPLETED, actor, JobEventType.COMPLETED)
        return result

    async def escalate_job(
        self,
        job_id: str,
        actor: JobActor = JobActor.ADMIN,
        actor_id: Optional[str] = None,
    ) -> DispatchResult:
        """Pull a searching job into manual review and withdraw its offers."""
        _, result = await self._move_job(
            job_id, JobStatus.MANUAL_REVIEW, actor, JobEventType.ESCALATED, actor_id, decline_offers=True,
        )
        return result

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_job(self, job_id: str) -> DispatchResult:
        job = await repo.get_job_with_offers(self.db, job_id)
        if job is None:
            return DispatchResult.failure(DispatchError.NOT_FOUND)
        return DispatchResult.success({"job": serialize_job(job, _now(), offers=job.offers)})

    async def list_customer_jobs(self, customer_id: str) -> DispatchResult:
        now = _now()
        jobs = await repo.list_jobs_for_customer(self.db, customer_id)
        return DispatchResult.success({"jobs": [serialize_job(job, now, offers=job.offers) for job in jobs]})

    async def list_contractor_offers(self, contractor_id: str) -> DispatchResult:
        now = _now()
        offers = await repo.list_offers_for_contractor(self.db, contractor_id)
        return DispatchResult.success({"offers": [serialize_offer(offer, now, job=offer.job) for offer in offers]})
