"""External Service Adapters"""
from .session_store import SessionStore, InMemorySessionStore
from .extraction import FieldExtractor, ExtractionResult
from .transcription import Transcriber
from .quoter import RapidRaterQuoter, QuoteResult

__all__ = [
    "SessionStore", "InMemorySessionStore", "FieldExtractor", "ExtractionResult",
    "Transcriber", "RapidRaterQuoter", "QuoteResult",
]
