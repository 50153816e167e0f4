"""Slot-filling controller: decides the single next intake question.

Pure module. Given the accumulated payload for a category it either reports
the intake as complete or returns the highest-priority missing field with
its question text. One question per round-trip.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from smider_platform.domain.enums import Category
from smider_platform.domain.payloads import JobPayload, is_missing, parse_payload
from smider_platform.services.intake_schema import (
    COMMON_RULES,
    CONDITIONAL_RULES,
    REQUIRED_FIELDS,
    UNSUPPORTED_CATEGORY_MESSAGE,
    answer_for,
    question_for,
)

logger = logging.getLogger(__name__)


class StepKind(str, Enum):
    ASK = "ask"
    ANSWER = "answer"
    COMPLETE = "complete"
    UNSUPPORTED = "unsupported"


@dataclass
class IntakeStep:
    """Outcome of one slot-filling round."""

    kind: StepKind
    done: bool = False
    question: Optional[str] = None
    missing_fields: list[str] = field(default_factory=list)
    category: Optional[Category] = None
    payload: Optional[JobPayload] = None


class SlotFillingController:
    """Tracks required fields per category and picks the next question."""

    def missing_fields(self, category: Category, payload: JobPayload) -> list[str]:
        """Ordered missing fields: base fields first, then triggered conditionals."""
        missing: list[str] = []

        for name in REQUIRED_FIELDS.get(category, ("task_details",)):
            if is_missing(getattr(payload, name, None)):
                missing.append(name)

        text = payload.text()
        rules = CONDITIONAL_RULES.get(category, ()) + COMMON_RULES
        for rule in rules:
            if not rule.trigger(payload, text):
                continue
            for name in rule.fields:
                if name not in missing and is_missing(getattr(payload, name, None)):
                    missing.append(name)

        return missing

    def next(self, category: Any, payload: Any) -> IntakeStep:
        """Decide the next intake step.

        Args:
            category: Category from extraction (enum, string or None).
            payload: Raw extraction dict or a JobPayload.

        Returns:
            An IntakeStep. ``done`` is True only when no field is missing.
        """
        resolved = Category.parse(category)
        if category is not None and not is_missing(category) and resolved is None:
            logger.info("Intake refused unsupported category %r", category)
            return IntakeStep(kind=StepKind.UNSUPPORTED, question=UNSUPPORTED_CATEGORY_MESSAGE)

        job = parse_payload(resolved, payload)

        if not is_missing(job.user_question):
            return IntakeStep(
                kind=StepKind.ANSWER,
                question=answer_for(job.user_question),
                category=resolved,
                payload=job,
            )

        if resolved is None:
            missing = ["category"]
            missing.extend(name for name in ("task_details",) if is_missing(job.task_details))
            return IntakeStep(
                kind=StepKind.ASK,
                question=question_for("category"),
                missing_fields=missing,
                payload=job,
            )

        missing = self.missing_fields(resolved, job)
        if missing:
            return IntakeStep(
                kind=StepKind.ASK,
                question=question_for(missing[0]),
                missing_fields=missing,
                category=resolved,
                payload=job,
            )

        return IntakeStep(kind=StepKind.COMPLETE, done=True, category=resolved, payload=job)
