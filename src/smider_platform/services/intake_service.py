"""Intake service: one conversational turn from transcript to next step.

Each turn re-extracts the whole transcript, asks the slot-filling
controller for the next step and, once the intake is complete, attaches a
server-side price estimate.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from smider_platform.agents.extraction_agent import ExtractionAgent
from smider_platform.services.pricing_engine import PriceEstimate, PricingEngine
from smider_platform.services.slot_filling import SlotFillingController, StepKind

logger = logging.getLogger(__name__)

COMPLETE_MESSAGE = "Takk! Jeg har forstått oppdraget og laget et estimat."


@dataclass
class TurnResult:
    """What the chat shows after a customer turn."""

    kind: StepKind
    message: str
    done: bool = False
    missing_fields: list[str] = field(default_factory=list)
    category: Optional[str] = None
    payload: dict = field(default_factory=dict)
    estimate: Optional[PriceEstimate] = None
    extraction_ok: bool = True


class IntakeService:
    """Drives the intake conversation for one turn at a time."""

    def __init__(
        self,
        extraction_agent: Optional[ExtractionAgent] = None,
        controller: Optional[SlotFillingController] = None,
        pricing: Optional[PricingEngine] = None,
    ):
        self.extraction_agent = extraction_agent or ExtractionAgent()
        self.controller = controller or SlotFillingController()
        self.pricing = pricing or PricingEngine()

    async def submit_turn(self, conversation: list[dict]) -> TurnResult:
        extraction = await self.extraction_agent.extract(conversation)
        raw = extraction.data if isinstance(extraction.data, dict) else {}
        category = raw.pop("category", None)

        step = self.controller.next(category, raw)
        payload = step.payload.known_fields() if step.payload is not None else {}
        resolved = step.category.value if step.category else None

        if step.kind != StepKind.COMPLETE:
            logger.debug("Intake step=%s missing=%s", step.kind.value, step.missing_fields)
            return TurnResult(
                kind=step.kind,
                message=step.question or "",
                missing_fields=step.missing_fields,
                category=resolved,
                payload=payload,
                extraction_ok=extraction.ok,
            )

        estimate = self.pricing.estimate(step.category, step.payload)
        logger.info(
            "Intake complete: category=%s hours=%s price=%s-%s",
            resolved,
            estimate.hours,
            estimate.price_min,
            estimate.price_max,
        )
        return TurnResult(
            kind=step.kind,
            message=COMPLETE_MESSAGE,
            done=True,
            category=resolved,
            payload=payload,
            estimate=estimate,
            extraction_ok=extraction.ok,
        )
