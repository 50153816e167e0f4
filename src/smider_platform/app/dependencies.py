"""Shared FastAPI dependencies and result-to-HTTP mapping."""

from fastapi import HTTPException

from smider_platform.services.dispatch_service import DispatchError, DispatchResult
from smider_platform.services.intake_service import IntakeService
from smider_platform.services.payment_gateway import StripePaymentGateway

ERROR_STATUS: dict[DispatchError, int] = {
    DispatchError.VALIDATION: 422,
    DispatchError.UNSUPPORTED_CATEGORY: 422,
    DispatchError.PAYMENT_FAILED: 402,
    DispatchError.NOT_FOUND: 404,
    DispatchError.NOT_OWNED: 403,
    DispatchError.OFFER_UNAVAILABLE: 409,
    DispatchError.OFFER_EXPIRED: 409,
    DispatchError.INVALID_TRANSITION: 409,
}


def get_payment_gateway() -> StripePaymentGateway:
    return StripePaymentGateway()


def get_intake_service() -> IntakeService:
    return IntakeService()


def unwrap(result: DispatchResult) -> dict:
    """Return the response body for a successful result, raise HTTPException otherwise."""
    if not result.ok:
        raise HTTPException(
            status_code=ERROR_STATUS[result.error],
            detail={"error": result.error.value, "message": result.message, **result.data},
        )
    body = dict(result.data)
    if result.message:
        body["message"] = result.message
    return body
