"""Extraction Agent - turns an intake conversation into a raw job payload."""

import logging

from smider_platform.agents.base import AgentResult, BaseAgent
from smider_platform.agents.prompts.extraction import EXTRACTION_SYSTEM_PROMPT
from smider_platform.app.config import get_settings
from smider_platform.infra.gemini_client import transcript_to_contents

logger = logging.getLogger(__name__)


class ExtractionAgent(BaseAgent):
    """Reads the whole transcript each turn and returns every known field.

    Output is best-effort and untrusted: it is validated by the payload
    models downstream. Any failure yields an empty payload.
    """

    def __init__(self, model_name: str | None = None):
        super().__init__(
            agent_name="extraction",
            model_name=model_name or get_settings().extraction_model,
            temperature=0.1,
        )

    async def extract(self, conversation: list[dict]) -> AgentResult:
        """Extract ``category`` plus payload fields from the conversation.

        Args:
            conversation: Ordered ``{role, content}`` turns.

        Returns:
            AgentResult whose ``data`` is a dict without null values. The
            result is a success with ``{}`` when there is nothing to read,
            and a failure with ``data={}`` when Gemini or parsing fails.
        """
        contents = transcript_to_contents(conversation)
        if not contents:
            return AgentResult.success(data={})

        result = await self.generate_json(
            contents=contents,
            system_instruction=EXTRACTION_SYSTEM_PROMPT,
        )
        if not result.ok:
            logger.warning("Extraction failed, continuing with empty payload: %s", result.error)
            return AgentResult(ok=False, data={}, error=result.error, latency_ms=result.latency_ms)

        if not isinstance(result.data, dict):
            logger.warning("Extraction returned %s instead of an object", type(result.data).__name__)
            return AgentResult(
                ok=False,
                data={},
                error="Extraction did not return a JSON object",
                latency_ms=result.latency_ms,
            )

        payload = {key: value for key, value in result.data.items() if value is not None}
        return AgentResult.success(
            data=payload,
            tokens_used=result.tokens_used,
            latency_ms=result.latency_ms,
        )
