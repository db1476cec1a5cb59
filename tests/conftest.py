"""
Shared fakes for the Rapid Rater test suite.

The fakes stand in for the external services (extraction model, Rapid Rater
automation, delivery, Telegram) so conversation turns can be driven end to
end in memory.
"""

import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from rapid_rater.agents.quote_intake.graph import QuoteConversationEngine
from rapid_rater.agents.quote_intake.state_machine import Channel
from rapid_rater.errors import DeliveryError, QuoteExecutionError
from rapid_rater.models.quote_request import QuoteRequest
from rapid_rater.services.extraction import ExtractionResult
from rapid_rater.services.quoter import QuoteResult
from rapid_rater.services.session_store import InMemorySessionStore

COMPLETE_FIELDS = {
    "age": 45,
    "state": "OH",
    "gender": "Male",
    "faceAmount": 500000,
    "recipient": "agent@example.com",
}


class ScriptedExtractor:
    """
    Mimics the extraction service: starts from the known fields (unknown
    mandatory fields come back as "MISSING") and applies the update scripted
    for each message text. A scripted exception is raised instead.
    """

    def __init__(self, script: Dict[str, Any]):
        self.script = script
        self.calls: List[tuple] = []

    async def extract(self, text: str, current: QuoteRequest) -> ExtractionResult:
        self.calls.append((text, current))
        update = self.script[text]
        if isinstance(update, Exception):
            raise update

        payload = {k: ("MISSING" if v is None else v) for k, v in current.to_fields().items()}
        payload.update(update)
        return ExtractionResult(
            request=QuoteRequest.from_extraction(payload),
            user_agreed=bool(payload.get("userAgreed")),
        )


class FakeQuoter:
    """Records runs; raises the queued errors first, then succeeds."""

    def __init__(self, artifact_dir: Path, errors: Optional[List[Exception]] = None, delay: float = 0):
        self.artifact_dir = artifact_dir
        self.errors = list(errors or [])
        self.delay = delay
        self.calls: List[QuoteRequest] = []
        self.active = 0
        self.max_active = 0

    async def run_quote(self, request: QuoteRequest) -> QuoteResult:
        self.calls.append(request)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.errors:
                raise self.errors.pop(0)
            path = self.artifact_dir / f"quote_{len(self.calls)}.png"
            path.write_bytes(b"png")
            return QuoteResult(quote_text="Annual Premium: $420.00", screenshot_path=path)
        finally:
            self.active -= 1


class FakeDelivery:
    def __init__(self, errors: Optional[List[Exception]] = None):
        self.errors = list(errors or [])
        self.calls: List[tuple] = []

    async def deliver(self, request: QuoteRequest, quote: QuoteResult):
        self.calls.append((request, quote))
        if self.errors:
            raise self.errors.pop(0)
        quote.screenshot_path.unlink(missing_ok=True)
        return None


class RecordingNotifier:
    def __init__(self):
        self.messages: List[tuple] = []

    async def send_message(self, conversation_id, text: str) -> None:
        self.messages.append((conversation_id, text))

    def texts(self, conversation_id=None) -> List[str]:
        return [t for cid, t in self.messages if conversation_id is None or cid == conversation_id]

    def clear(self) -> None:
        self.messages.clear()


class Harness:
    """Engine plus its fakes, built per test."""

    def __init__(self, script: Dict[str, Any], artifact_dir: Path,
                 quote_errors: Optional[List[Exception]] = None,
                 delivery_errors: Optional[List[Exception]] = None,
                 quote_delay: float = 0):
        self.store = InMemorySessionStore()
        self.extractor = ScriptedExtractor(script)
        self.quoter = FakeQuoter(artifact_dir, quote_errors, quote_delay)
        self.delivery = FakeDelivery(delivery_errors)
        self.notifier = RecordingNotifier()
        self.engine = QuoteConversationEngine(
            store=self.store,
            extractor=self.extractor,
            quoter=self.quoter,
            delivery=self.delivery,
            notifier=self.notifier,
        )

    def send(self, conversation_id, text, channel=None):
        return asyncio.run(self.engine.handle_message(conversation_id, text, channel or Channel.TEXT))


@pytest.fixture
def make_harness(tmp_path):
    def _make(script, **kwargs):
        return Harness(script, tmp_path, **kwargs)
    return _make


@pytest.fixture
def quote_error():
    return QuoteExecutionError("Timeout 30000ms exceeded waiting for #QuickView")


@pytest.fixture
def delivery_error():
    return DeliveryError("Email failed: 422 invalid recipient")
