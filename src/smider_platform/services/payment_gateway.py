"""Stripe payment holds for job prices.

A hold is a PaymentIntent with manual capture. The customer confirms it in
the browser with the client secret; the hold is authorised once Stripe
reports ``requires_capture``.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import stripe

from smider_platform.app.config import get_settings
from smider_platform.domain.enums import HoldStatus

logger = logging.getLogger(__name__)


class PaymentError(Exception):
    """Raised when the payment provider rejects or cannot serve a request."""


@dataclass
class PaymentHold:
    ref: str
    client_secret: Optional[str] = None


def to_minor_units(amount: int) -> int:
    """NOK -> øre."""
    return int(amount) * 100


def hold_status_from_stripe(status: Optional[str]) -> HoldStatus:
    if status == "requires_capture":
        return HoldStatus.AUTHORIZED
    if status == "canceled":
        return HoldStatus.CANCELED
    return HoldStatus.PENDING


class StripePaymentGateway:
    """Creates, inspects and releases manual-capture PaymentIntents."""

    def __init__(self, api_key: Optional[str] = None, currency: Optional[str] = None):
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.stripe_secret_key
        self.currency = currency or settings.currency

    def _require_key(self):
        if not self.api_key:
            raise PaymentError("Stripe secret key missing")

    async def authorize(self, amount: int, metadata: Optional[dict] = None) -> PaymentHold:
        """Request a hold for ``amount`` whole currency units."""
        self._require_key()
        try:
            intent = await asyncio.to_thread(
                stripe.PaymentIntent.create,
                amount=to_minor_units(amount),
                currency=self.currency,
                capture_method="manual",
                metadata=metadata or {},
                api_key=self.api_key,
            )
        except stripe.StripeError as exc:
            logger.warning("Stripe hold creation failed: %s", exc)
            raise PaymentError(str(exc)) from exc

        logger.info("Created payment hold %s for %s %s", intent.id, amount, self.currency)
        return PaymentHold(ref=intent.id, client_secret=getattr(intent, "client_secret", None))

    async def hold_status(self, hold_ref: str) -> HoldStatus:
        self._require_key()
        try:
            intent = await asyncio.to_thread(
                stripe.PaymentIntent.retrieve,
                hold_ref,
                api_key=self.api_key,
            )
        except stripe.StripeError as exc:
            logger.warning("Stripe hold lookup failed for %s: %s", hold_ref, exc)
            raise PaymentError(str(exc)) from exc
        return hold_status_from_stripe(intent.status)

    async def cancel(self, hold_ref: str) -> None:
        """Release a hold. Already-canceled holds are left alone."""
        self._require_key()
        try:
            intent = await asyncio.to_thread(
                stripe.PaymentIntent.retrieve,
                hold_ref,
                api_key=self.api_key,
            )
            if intent.status == "canceled":
                return
            await asyncio.to_thread(
                stripe.PaymentIntent.cancel,
                hold_ref,
                api_key=self.api_key,
            )
        except stripe.StripeError as exc:
            logger.warning("Stripe hold cancel failed for %s: %s", hold_ref, exc)
            raise PaymentError(str(exc)) from exc
        logger.info("Canceled payment hold %s", hold_ref)
