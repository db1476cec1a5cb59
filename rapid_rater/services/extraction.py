# --------------------------- rapid_rater/services/extraction.py ----------------------------
"""
Rapid Rater · Field Extraction Adapter

OVERVIEW:
Turns one free-form chat message (typed or transcribed) plus the fields known
so far into a complete, updated field set using an OpenAI chat model.

WORKFLOW:
1. Build the extraction prompt with the current known data as JSON
2. Send the user's new message to the model (temperature 0)
3. Strip markdown fences and parse the JSON object
4. Normalize every field into a QuoteRequest
5. Report whether the user gave an explicit go-ahead ("yes", "run")

BUSINESS LOGIC:
- Corrections win: the last value spoken for a field is the one kept
- State names become 2-letter codes, "500" means $500,000
- Table ratings never end up in the product field
- Anything the model cannot determine comes back as "MISSING"

DEPENDENCIES:
- Environment variables: OPENAI_API_KEY, LLM_MODEL
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from rapid_rater.config import settings
from rapid_rater.errors import ExtractionError
from rapid_rater.models.quote_request import QuoteRequest
from rapid_rater.utils.llm_output import parse_json_object

logger = logging.getLogger(__name__)


EXTRACTION_PROMPT = """You are an insurance data assistant.
Current known data: {current}

Update the JSON with whatever the user's new message adds or changes.
Fields: state, age, gender, faceAmount, product, mode, recipient, tableRating, flatExtra, userAgreed.

CRITICAL RULES:
1. **Corrections**: If the user contradicts themselves (e.g. "500k... no wait 1 million"), USE THE LAST SPOKEN VALUE.
2. **State**: Convert to the 2-letter code (e.g. "Ohio" -> "OH").
3. **Face Amount**:
   - If the user says "500", use 500000.
   - If the user says "1 million", use 1000000.
   - Minimum value is 100000.
4. **Product**: MUST be 'QoL Flex Term' or 'QoL Guarantee Plus GUL II'.
   - Default to 'QoL Flex Term'.
   - NEVER put "Table" values here.
5. **Table Rating**: Look for "Table" followed by a letter (e.g. "Table C"). Default: 'None'.
6. **Flat Extra**: Look for an extra numeric cost (e.g. "Flat extra 2.50"). Default: 0.
7. **Mode**: 'Annual', 'Semi-Annual', 'Quarterly' or 'Monthly'. Default: 'Annual'.
8. **Gender**: Title Case ('Male' or 'Female').
9. **Confirmation**: If the user says "Yes" or "Run", set 'userAgreed' = true, otherwise false.
10. If a MANDATORY field (age, state, gender, faceAmount, recipient) is unknown, set it to "MISSING".

Return ONLY JSON."""


@dataclass
class ExtractionResult:
    """Normalized outcome of one extraction call."""
    request: QuoteRequest
    user_agreed: bool = False


def _is_affirmative(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return isinstance(value, str) and value.strip().lower() in ("true", "yes")


class FieldExtractor:
    """
    LLM-backed field extraction.

    The chat model is created lazily so importing this module never requires
    an API key; tests pass their own model object with an ``ainvoke`` method.
    """

    def __init__(self, llm: Optional[Any] = None, model: str = settings.LLM_MODEL):
        self._llm = llm
        self.model = model

    @property
    def llm(self) -> Any:
        if self._llm is None:
            self._llm = ChatOpenAI(
                model=self.model,
                temperature=0.0,
                timeout=settings.LLM_TIMEOUT_SECONDS,
            )
        return self._llm

    async def extract(self, text: str, current: QuoteRequest) -> ExtractionResult:
        """
        Merge a new user message into the known fields.

        ARGS:
            text: Raw user message or voice transcript
            current: Fields known before this message

        RETURNS:
            ExtractionResult with the complete, normalized field set

        RAISES:
            ExtractionError: the model call failed or returned malformed JSON
        """
        prompt = EXTRACTION_PROMPT.format(current=json.dumps(current.to_fields()))
        messages = [SystemMessage(content=prompt), HumanMessage(content=text)]

        try:
            response = await self.llm.ainvoke(messages)
        except Exception as e:
            logger.error(f"❌ Extraction call failed: {e}")
            raise ExtractionError(f"Extraction service unavailable: {e}") from e

        try:
            payload = parse_json_object(str(response.content))
        except ValueError as e:
            logger.error(f"❌ Malformed extraction response: {response.content!r}")
            raise ExtractionError(f"Malformed extraction response: {e}") from e

        request = QuoteRequest.from_extraction(payload)
        user_agreed = _is_affirmative(payload.get("userAgreed"))
        logger.info(f"📝 Extracted fields: {request.to_fields()} (agreed={user_agreed})")
        return ExtractionResult(request=request, user_agreed=user_agreed)
