"""Tests for StripePaymentGateway with the Stripe SDK patched out."""

from types import SimpleNamespace
from unittest.mock import patch

import pytest
import stripe

from smider_platform.domain.enums import HoldStatus
from smider_platform.services.payment_gateway import (
    PaymentError,
    StripePaymentGateway,
    hold_status_from_stripe,
    to_minor_units,
)


@pytest.fixture
def gateway():
    return StripePaymentGateway(api_key="sk_test_123", currency="nok")


def _intent(status="requires_payment_method", intent_id="pi_123"):
    return SimpleNamespace(id=intent_id, status=status, client_secret=f"{intent_id}_secret_abc")


class TestHelpers:
    def test_minor_units(self):
        assert to_minor_units(5775) == 577500

    @pytest.mark.parametrize("status,expected", [
        ("requires_capture", HoldStatus.AUTHORIZED),
        ("canceled", HoldStatus.CANCELED),
        ("requires_payment_method", HoldStatus.PENDING),
        ("processing", HoldStatus.PENDING),
        (None, HoldStatus.PENDING),
    ])
    def test_status_mapping(self, status, expected):
        assert hold_status_from_stripe(status) == expected


class TestAuthorize:
    @pytest.mark.asyncio
    async def test_creates_manual_capture_intent(self, gateway):
        with patch.object(stripe.PaymentIntent, "create", return_value=_intent()) as create:
            hold = await gateway.authorize(5775, metadata={"job_id": "job-1"})

        assert hold.ref == "pi_123"
        assert hold.client_secret == "pi_123_secret_abc"
        kwargs = create.call_args.kwargs
        assert kwargs["amount"] == 577500
        assert kwargs["currency"] == "nok"
        assert kwargs["capture_method"] == "manual"
        assert kwargs["metadata"] == {"job_id": "job-1"}
        assert kwargs["api_key"] == "sk_test_123"

    @pytest.mark.asyncio
    async def test_stripe_error_becomes_payment_error(self, gateway):
        with patch.object(stripe.PaymentIntent, "create", side_effect=stripe.StripeError("card declined")):
            with pytest.raises(PaymentError, match="card declined"):
                await gateway.authorize(5775)

    @pytest.mark.asyncio
    async def test_missing_key(self):
        gateway = StripePaymentGateway(api_key="")
        with patch.object(stripe.PaymentIntent, "create") as create:
            with pytest.raises(PaymentError, match="key missing"):
                await gateway.authorize(100)
        create.assert_not_called()


class TestHoldStatus:
    @pytest.mark.asyncio
    async def test_authorised_once_capturable(self, gateway):
        with patch.object(stripe.PaymentIntent, "retrieve", return_value=_intent("requires_capture")) as retrieve:
            assert await gateway.hold_status("pi_123") == HoldStatus.AUTHORIZED
        assert retrieve.call_args.args == ("pi_123",)

    @pytest.mark.asyncio
    async def test_lookup_error(self, gateway):
        with patch.object(stripe.PaymentIntent, "retrieve", side_effect=stripe.StripeError("not found")):
            with pytest.raises(PaymentError):
                await gateway.hold_status("pi_404")


class TestCancel:
    @pytest.mark.asyncio
    async def test_cancels_open_hold(self, gateway):
        with patch.object(stripe.PaymentIntent, "retrieve", return_value=_intent("requires_capture")), \
                patch.object(stripe.PaymentIntent, "cancel") as cancel:
            await gateway.cancel("pi_123")
        cancel.assert_called_once_with("pi_123", api_key="sk_test_123")

    @pytest.mark.asyncio
    async def test_already_canceled_is_left_alone(self, gateway):
        with patch.object(stripe.PaymentIntent, "retrieve", return_value=_intent("canceled")), \
                patch.object(stripe.PaymentIntent, "cancel") as cancel:
            await gateway.cancel("pi_123")
        cancel.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancel_error(self, gateway):
        with patch.object(stripe.PaymentIntent, "retrieve", return_value=_intent("requires_capture")), \
                patch.object(stripe.PaymentIntent, "cancel", side_effect=stripe.StripeError("boom")):
            with pytest.raises(PaymentError):
                await gateway.cancel("pi_123")
