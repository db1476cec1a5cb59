"""
Tests for the LLM field extraction and Whisper transcription adapters.

Both adapters accept an injected model/client, so no API keys are needed.
"""

import asyncio
import json
from types import SimpleNamespace

import pytest

from rapid_rater.errors import ExtractionError, TranscriptionError
from rapid_rater.models.quote_request import MISSING, QuoteRequest
from rapid_rater.services.extraction import FieldExtractor
from rapid_rater.services.transcription import Transcriber
from rapid_rater.utils.llm_output import parse_json_object, strip_code_fences


class FakeChatModel:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.messages = None

    async def ainvoke(self, messages):
        self.messages = messages
        if self.error:
            raise self.error
        return SimpleNamespace(content=self.content)


def extract(llm, text="msg", current=None):
    return asyncio.run(FieldExtractor(llm=llm).extract(text, current or QuoteRequest()))


# ╔══════════ LLM output helpers ═════════════════════════════════════════════

def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```', "json") == '{"a": 1}'
    assert strip_code_fences("```html\n<table></table>\n```", "html") == "<table></table>"
    assert strip_code_fences('{"a": 1}') == '{"a": 1}'


def test_parse_json_object_rejects_non_objects():
    with pytest.raises(ValueError):
        parse_json_object("[1, 2]")
    with pytest.raises(ValueError):
        parse_json_object("not json")


# ╔══════════ Field extraction ═══════════════════════════════════════════════

def test_extracts_fenced_json():
    payload = {
        "age": 45, "state": "Ohio", "gender": "male", "faceAmount": 500,
        "recipient": "agent@example.com", "product": "Table C", "tableRating": "Table C",
        "mode": "Monthly", "flatExtra": 0, "userAgreed": False,
    }
    llm = FakeChatModel(content=f"```json\n{json.dumps(payload)}\n```")

    result = extract(llm)

    assert result.user_agreed is False
    assert result.request.state == "OH"
    assert result.request.face_amount == 500_000
    assert result.request.product == "QoL Flex Term"
    assert result.request.table_rating == "Table C"


def test_current_fields_are_sent_as_context():
    llm = FakeChatModel(content='{"age": "MISSING"}')
    current = QuoteRequest.from_extraction({"state": "OH"})

    extract(llm, text="she is 40", current=current)

    system, human = llm.messages
    assert '"state": "OH"' in system.content
    assert '"faceAmount": "MISSING"' in system.content
    assert human.content == "she is 40"


@pytest.mark.parametrize("flag, agreed", [(True, True), ("true", True), ("yes", True), (False, False), (None, False)])
def test_user_agreed_flag(flag, agreed):
    llm = FakeChatModel(content=json.dumps({"userAgreed": flag}))
    assert extract(llm).user_agreed is agreed


def test_missing_mandatory_fields_are_marked():
    result = extract(FakeChatModel(content='{"age": "MISSING", "state": "TX"}'))
    assert result.request.age is MISSING
    assert result.request.state == "TX"


def test_malformed_response_raises_extraction_error():
    with pytest.raises(ExtractionError):
        extract(FakeChatModel(content="Sorry, I cannot help with that."))


def test_model_failure_raises_extraction_error():
    with pytest.raises(ExtractionError):
        extract(FakeChatModel(error=TimeoutError("timed out")))


# ╔══════════ Transcription ══════════════════════════════════════════════════

class FakeAudioClient:
    def __init__(self, text=None, error=None):
        self.calls = []

        async def create(**kwargs):
            self.calls.append(kwargs)
            if error:
                raise error
            return SimpleNamespace(text=text)

        self.audio = SimpleNamespace(transcriptions=SimpleNamespace(create=create))


def test_transcribes_voice_bytes():
    client = FakeAudioClient(text="  45 year old male in Ohio  ")

    text = asyncio.run(Transcriber(client=client, model="whisper-1").transcribe(b"OggS..."))

    assert text == "45 year old male in Ohio"
    assert client.calls[0]["model"] == "whisper-1"
    assert client.calls[0]["file"] == ("voice.ogg", b"OggS...")


@pytest.mark.parametrize("client", [FakeAudioClient(text=""), FakeAudioClient(error=RuntimeError("503"))])
def test_transcription_failures(client):
    with pytest.raises(TranscriptionError):
        asyncio.run(Transcriber(client=client).transcribe(b"OggS..."))
