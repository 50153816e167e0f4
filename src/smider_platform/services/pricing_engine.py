"""Pricing Engine - deterministic hour and price estimates for a job payload.

Pure module: NO LLM, NO database access. The same payload always yields the
same estimate, and missing optional fields fall back to category defaults
instead of raising.

Labour is billed on hours rounded to two decimals, so the labour line
always equals its label; the displayed estimate rounds to one decimal.

Range construction:
    min = labor + trip fee + materials
    max = labor * 1.3 + trip fee + materials * 1.2
The trip fee is never buffered.
"""

import logging
import math
from dataclasses import asdict, dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from smider_platform.domain.enums import Category, LineItemKind
from smider_platform.domain.payloads import JobPayload, parse_payload
from smider_platform.services.pricing_rules import CATEGORY_PRICING, CategoryPricing

logger = logging.getLogger(__name__)

WORKDAY_HOURS = 7.5
TRIP_FEE_PER_DAY = 900
LABOR_BUFFER = 1.3
MATERIAL_BUFFER = 1.2
MIN_HOURS = 1.0


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like a receipt does (2.5 -> 3), not like banker's rounding."""
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def _money(value: float) -> int:
    return int(round_half_up(value))


def _fmt(value: float) -> str:
    """Format a number without a trailing .0 (2.0 -> '2', 2.5 -> '2.5')."""
    return f"{value:g}"


@dataclass
class LineItem:
    label: str
    amount: int
    kind: LineItemKind

    def to_dict(self) -> dict:
        return {"label": self.label, "amount": self.amount, "kind": self.kind.value}


@dataclass
class PriceEstimate:
    """Hour estimate, price range and itemised breakdown for one job."""

    hours: float
    price_min: int
    price_max: int
    line_items: list[LineItem] = field(default_factory=list)
    days: int = 0
    hourly_rate: int = 0
    labor_cost: int = 0
    trip_fee: int = 0
    material_cost: int = 0

    @classmethod
    def empty(cls) -> "PriceEstimate":
        return cls(hours=0.0, price_min=0, price_max=0)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["line_items"] = [item.to_dict() for item in self.line_items]
        return data


class PricingEngine:
    """Turns a category and a structured payload into a PriceEstimate."""

    def estimate_hours(self, pricing: CategoryPricing, payload: JobPayload) -> float:
        """Evaluate the category's hour rules; first match wins."""
        text = payload.text()
        for rule in pricing.hour_rules:
            if rule.matches(payload, text):
                logger.debug("Hour rule matched: category=%s rule=%s", pricing.category.value, rule.name)
                return float(rule.hours(payload, text))
        return pricing.default_hours

    def estimate(self, category: Any, payload: Any) -> PriceEstimate:
        """Estimate hours and price range for a job.

        Args:
            category: A Category or anything ``Category.parse`` accepts.
            payload: A JobPayload or a raw dict from extraction.

        Returns:
            A PriceEstimate. Unknown categories yield an all-zero estimate.
        """
        resolved = Category.parse(category)
        pricing: Optional[CategoryPricing] = CATEGORY_PRICING.get(resolved) if resolved else None
        if pricing is None:
            logger.warning("Pricing requested for unsupported category %r", category)
            return PriceEstimate.empty()

        job = parse_payload(resolved, payload)

        hours = self.estimate_hours(pricing, job)
        if not math.isfinite(hours):
            logger.warning("Non-finite hour estimate for %s, using default", resolved.value)
            hours = pricing.default_hours
        if hours <= 0:
            hours = MIN_HOURS

        days = math.ceil(hours / WORKDAY_HOURS)
        trip_fee = days * TRIP_FEE_PER_DAY
        billed_hours = round_half_up(hours, 2)
        labor = billed_hours * pricing.hourly_rate
        display_hours = round_half_up(hours, 1)

        line_items = [
            LineItem(
                label=f"Arbeid ({_fmt(billed_hours)}t x {pricing.hourly_rate} kr)",
                amount=_money(labor),
                kind=LineItemKind.LABOR,
            ),
            LineItem(
                label=f"Servicebil ({days} {'dag' if days == 1 else 'dager'})",
                amount=trip_fee,
                kind=LineItemKind.TRIP_FEE,
            ),
        ]

        material_cost = 0.0
        if job.materials_by_customer is False:
            for item in pricing.materials:
                quantity = item.quantity(job)
                if not quantity:
                    continue
                cost = quantity * item.unit_price
                material_cost += cost
                line_items.append(LineItem(
                    label=f"{item.label} ({_fmt(quantity)} {item.unit} x {item.unit_price} kr)",
                    amount=_money(cost),
                    kind=LineItemKind.MATERIAL,
                ))
            for surcharge in pricing.surcharges:
                if surcharge.when(job):
                    material_cost += surcharge.amount
                    line_items.append(LineItem(
                        label=surcharge.label,
                        amount=surcharge.amount,
                        kind=LineItemKind.SURCHARGE,
                    ))

        price_min = labor + trip_fee + material_cost
        price_max = labor * LABOR_BUFFER + trip_fee + material_cost * MATERIAL_BUFFER

        return PriceEstimate(
            hours=display_hours,
            price_min=_money(price_min),
            price_max=_money(price_max),
            line_items=line_items,
            days=days,
            hourly_rate=pricing.hourly_rate,
            labor_cost=_money(labor),
            trip_fee=trip_fee,
            material_cost=_money(material_cost),
        )
