"""Gemini model factory for Smider agents."""

import google.generativeai as genai

from smider_platform.app.config import get_settings

# Transcript roles as the customer-facing chat stores them -> Gemini roles
_ROLE_MAP = {
    "user": "user",
    "customer": "user",
    "assistant": "model",
    "model": "model",
}


def get_model(
    model_name: str = "gemini-3-flash-preview",
    temperature: float = 0.7,
    json_mode: bool = False,
    system_instruction: str | None = None,
):
    """Return a configured Gemini GenerativeModel instance.

    Args:
        model_name: Gemini model identifier.
        temperature: Generation temperature (0.0-2.0).
        json_mode: If True, constrain output to valid JSON.
        system_instruction: Optional system-level instruction.

    Returns:
        A ``google.generativeai.GenerativeModel`` ready for generation.
    """
    settings = get_settings()
    genai.configure(api_key=settings.gemini_api_key)

    generation_config = {"temperature": temperature}
    if json_mode:
        generation_config["response_mime_type"] = "application/json"

    return genai.GenerativeModel(
        model_name=model_name,
        generation_config=generation_config,
        system_instruction=system_instruction,
    )


def transcript_to_contents(conversation: list[dict]) -> list[dict]:
    """Convert ``{role, content}`` chat turns into Gemini ``contents``.

    Turns with an unknown role or empty content are skipped.
    """
    contents = []
    for turn in conversation or []:
        if not isinstance(turn, dict):
            continue
        role = _ROLE_MAP.get(str(turn.get("role", "")).lower())
        text = turn.get("content")
        if role is None or not isinstance(text, str) or not text.strip():
            continue
        contents.append({"role": role, "parts": [text]})
    return contents
