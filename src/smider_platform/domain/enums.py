"""Domain enumerations for the Smider job brokerage.

All enums use the (str, Enum) pattern to ensure JSON serialization compatibility.
"""

from enum import Enum
from typing import Optional


class Category(str, Enum):
    """Supported trade categories."""

    ELECTRICIAN = "electrician"
    PAINTER = "painter"
    CARPENTER = "carpenter"
    PLUMBER = "plumber"
    TILING = "tiling"
    HANDYMAN = "handyman"
    BATHROOM_RENOVATION = "bathroom-renovation"
    KITCHEN_INSTALL = "kitchen-install"

    @classmethod
    def parse(cls, value) -> Optional["Category"]:
        """Resolve a category from its value, enum name or Norwegian trade name.

        Returns None for anything that is not a supported category.
        """
        if isinstance(value, Category):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().lower().replace("_", "-")
        if not key:
            return None
        try:
            return cls(key)
        except ValueError:
            return CATEGORY_ALIASES.get(key)


CATEGORY_ALIASES: dict[str, Category] = {
    "elektriker": Category.ELECTRICIAN,
    "maler": Category.PAINTER,
    "snekker": Category.CARPENTER,
    "tømrer": Category.CARPENTER,
    "rørlegger": Category.PLUMBER,
    "flislegger": Category.TILING,
    "flislegging": Category.TILING,
    "altmuligmann": Category.HANDYMAN,
    "vaktmester": Category.HANDYMAN,
    "baderom": Category.BATHROOM_RENOVATION,
    "baderomsrenovering": Category.BATHROOM_RENOVATION,
    "bathroom": Category.BATHROOM_RENOVATION,
    "kjøkken": Category.KITCHEN_INSTALL,
    "kjøkkenmontering": Category.KITCHEN_INSTALL,
    "kitchen": Category.KITCHEN_INSTALL,
}


class JobStatus(str, Enum):
    """Lifecycle of a job from intake to resolution."""

    DRAFT = "draft"
    PENDING_PAYMENT = "pending_payment"
    SEARCHING = "searching"
    ASSIGNED = "assigned"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    MANUAL_REVIEW = "manual_review"


class OfferStatus(str, Enum):
    """Status of a time-boxed offer sent to a contractor."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"


class JobActor(str, Enum):
    """Who initiated a job or offer transition."""

    CUSTOMER = "customer"
    CONTRACTOR = "contractor"
    SYSTEM = "system"
    ADMIN = "admin"


class JobEventType(str, Enum):
    """Audit event types recorded in job_events."""

    CREATED = "created"
    ROUTED_MANUAL_REVIEW = "routed_manual_review"
    PAYMENT_HOLD_CREATED = "payment_hold_created"
    PAYMENT_FAILED = "payment_failed"
    PAYMENT_CONFIRMED = "payment_confirmed"
    OFFERS_CREATED = "offers_created"
    NO_CANDIDATES = "no_candidates"
    OFFER_ACCEPTED = "offer_accepted"
    OFFER_DECLINED = "offer_declined"
    OFFER_EXPIRED = "offer_expired"
    ASSIGNED = "assigned"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ESCALATED = "escalated"


class HoldStatus(str, Enum):
    """Normalised state of a payment hold at the payment provider."""

    AUTHORIZED = "authorized"
    PENDING = "pending"
    CANCELED = "canceled"


class LineItemKind(str, Enum):
    """Kind of a price estimate line item."""

    LABOR = "labor"
    TRIP_FEE = "trip_fee"
    MATERIAL = "material"
    SURCHARGE = "surcharge"
