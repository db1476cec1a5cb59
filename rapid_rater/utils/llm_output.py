# --------------------------- rapid_rater/utils/llm_output.py ----------------------------
"""
Rapid Rater · LLM Output Helpers

Chat models often wrap answers in markdown code fences even when told not to.
These helpers strip the fences before the content is parsed or embedded.
"""

import json
from typing import Any, Dict


def strip_code_fences(raw: str, language: str = "") -> str:
    """
    Remove a surrounding ``` fence (optionally tagged with a language).

    ARGS:
        raw: Model output
        language: Fence tag to drop, e.g. "json" or "html"

    RETURNS:
        str: Content without fences or surrounding whitespace
    """
    text = raw.strip()
    if "```" not in text:
        return text

    # Keep only what sits between the first pair of fences
    parts = text.split("```")
    text = parts[1] if len(parts) >= 3 else text.replace("```", "")
    text = text.strip()
    if language and text.lower().startswith(language):
        text = text[len(language):]
    return text.strip()


def parse_json_object(raw: str) -> Dict[str, Any]:
    """
    Parse model output that must be a JSON object.

    RAISES:
        ValueError: content is not valid JSON or not an object
    """
    data = json.loads(strip_code_fences(raw, "json"))
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data
