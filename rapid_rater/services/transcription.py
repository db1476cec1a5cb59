# --------------------------- rapid_rater/services/transcription.py ----------------------------
"""
Rapid Rater · Voice Transcription Adapter

Transcribes Telegram voice notes with OpenAI Whisper. The audio is passed as
in-memory bytes, so concurrent voice notes never share a temp file.
"""

import logging
from typing import Any, Optional

from openai import AsyncOpenAI

from rapid_rater.config import settings
from rapid_rater.errors import TranscriptionError

logger = logging.getLogger(__name__)


class Transcriber:
    """Speech-to-text via the OpenAI audio transcription endpoint."""

    def __init__(self, client: Optional[Any] = None, model: str = settings.TRANSCRIPTION_MODEL):
        self._client = client
        self.model = model

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY, timeout=settings.LLM_TIMEOUT_SECONDS)
        return self._client

    async def transcribe(self, audio: bytes, filename: str = "voice.ogg") -> str:
        """
        Transcribe one voice note.

        ARGS:
            audio: Raw audio bytes (Telegram voice notes are OGG/Opus)
            filename: Name hint so the API can detect the format

        RETURNS:
            str: Transcript text

        RAISES:
            TranscriptionError: the API call failed or returned no text
        """
        try:
            result = await self.client.audio.transcriptions.create(
                model=self.model,
                file=(filename, audio),
            )
        except Exception as e:
            logger.error(f"❌ Transcription failed: {e}")
            raise TranscriptionError(str(e)) from e

        text = (getattr(result, "text", "") or "").strip()
        if not text:
            raise TranscriptionError("Empty transcript")
        logger.info(f"🗣 Transcribed {len(audio)} bytes: {text!r}")
        return text
