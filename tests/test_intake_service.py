"""Tests for IntakeService.submit_turn with a mocked extraction agent."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from smider_platform.agents.base import AgentResult
from smider_platform.services.intake_schema import QUESTIONS, UNSUPPORTED_CATEGORY_MESSAGE
from smider_platform.services.intake_service import COMPLETE_MESSAGE, IntakeService
from smider_platform.services.slot_filling import StepKind

TRANSCRIPT = [{"role": "user", "content": "Jeg vil bytte 2 stikkontakter, har dem selv"}]


def _service(extracted: dict, ok: bool = True) -> IntakeService:
    agent = MagicMock()
    result = AgentResult.success(data=dict(extracted)) if ok else AgentResult(ok=False, data={}, error="down")
    agent.extract = AsyncMock(return_value=result)
    return IntakeService(extraction_agent=agent)


class TestSubmitTurn:
    @pytest.mark.asyncio
    async def test_complete_turn_carries_estimate(self):
        service = _service({
            "category": "electrician",
            "task_details": "Bytte 2 stikkontakter",
            "socket_count": 2,
            "has_product": True,
            "materials_by_customer": True,
        })
        result = await service.submit_turn(TRANSCRIPT)

        assert result.kind == StepKind.COMPLETE
        assert result.done is True
        assert result.message == COMPLETE_MESSAGE
        assert result.category == "electrician"
        assert result.estimate.price_min == 4650
        assert result.estimate.price_max == 5775
        assert result.payload["socket_count"] == 2
        assert "category" not in result.payload

    @pytest.mark.asyncio
    async def test_asks_single_next_question(self):
        service = _service({"category": "electrician", "task_details": "Bytte 2 stikkontakter"})
        result = await service.submit_turn(TRANSCRIPT)

        assert result.kind == StepKind.ASK
        assert result.done is False
        assert result.message == QUESTIONS["has_product"]
        assert result.missing_fields == ["has_product"]
        assert result.estimate is None

    @pytest.mark.asyncio
    async def test_non_finite_area_is_asked_again(self):
        service = _service({"category": "painter", "task_details": "Male stua", "area_sqm": float("inf")})
        result = await service.submit_turn(TRANSCRIPT)

        assert result.kind == StepKind.ASK
        assert result.message == QUESTIONS["area_sqm"]
        assert "area_sqm" not in result.payload

    @pytest.mark.asyncio
    async def test_extraction_failure_asks_for_category(self):
        service = _service({}, ok=False)
        result = await service.submit_turn(TRANSCRIPT)

        assert result.kind == StepKind.ASK
        assert result.message == QUESTIONS["category"]
        assert result.extraction_ok is False

    @pytest.mark.asyncio
    async def test_unsupported_category(self):
        service = _service({"category": "taktekker", "task_details": "Legge nytt tak"})
        result = await service.submit_turn(TRANSCRIPT)

        assert result.kind == StepKind.UNSUPPORTED
        assert result.message == UNSUPPORTED_CATEGORY_MESSAGE
        assert result.category is None

    @pytest.mark.asyncio
    async def test_user_question_answered_without_estimate(self):
        service = _service({
            "category": "electrician",
            "task_details": "Elbillader",
            "user_question": "Hva er lastbalansering?",
        })
        result = await service.submit_turn(TRANSCRIPT)

        assert result.kind == StepKind.ANSWER
        assert result.done is False
        assert result.estimate is None
        assert "Lastbalansering" in result.message
