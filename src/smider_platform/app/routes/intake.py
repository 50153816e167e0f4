"""Conversational intake endpoint."""

import logging

from fastapi import APIRouter, Depends

from smider_platform.app.dependencies import get_intake_service
from smider_platform.domain.schemas import TurnRequest, TurnResponse
from smider_platform.services.intake_service import IntakeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/intake", tags=["intake"])


@router.post("/turn", response_model=TurnResponse)
async def submit_turn(
    body: TurnRequest,
    intake: IntakeService = Depends(get_intake_service),
):
    """Process the transcript and return the next question or the estimate."""
    result = await intake.submit_turn([turn.model_dump() for turn in body.messages])
    return TurnResponse(
        kind=result.kind.value,
        message=result.message,
        done=result.done,
        missing_fields=result.missing_fields,
        category=result.category,
        payload=result.payload,
        estimate=result.estimate.to_dict() if result.estimate else None,
    )
