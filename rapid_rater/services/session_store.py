# --------------------------- rapid_rater/services/session_store.py ----------------------------
"""
Rapid Rater · Session Store

OVERVIEW:
Holds the in-progress QuoteRequest for every conversation identity. The
conversation engine receives a store instance instead of reaching for a
module-level dict, so an in-memory map can later be swapped for a shared
cache without touching the engine.

BUSINESS LOGIC:
- One open quote request per chat
- Records live for the lifetime of the process only
- A completed quote removes the record; a failed one keeps it for retry

TECHNICAL NOTES:
- get() returns a copy so callers cannot mutate the stored record between
  turns; changes are written back with put()
- The store does not serialize writers; the engine holds a per-identity lock
  around each turn
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Hashable, Optional

from rapid_rater.models.quote_request import QuoteRequest

logger = logging.getLogger(__name__)


class SessionStore(ABC):
    """Interface for per-conversation quote request storage."""

    @abstractmethod
    def get(self, conversation_id: Hashable) -> Optional[QuoteRequest]:
        ...

    @abstractmethod
    def put(self, conversation_id: Hashable, request: QuoteRequest) -> None:
        ...

    @abstractmethod
    def delete(self, conversation_id: Hashable) -> None:
        ...


class InMemorySessionStore(SessionStore):
    """Process-local session store backed by a dict."""

    def __init__(self):
        self._sessions: Dict[Hashable, QuoteRequest] = {}

    def get(self, conversation_id: Hashable) -> Optional[QuoteRequest]:
        request = self._sessions.get(conversation_id)
        return request.copy() if request is not None else None

    def put(self, conversation_id: Hashable, request: QuoteRequest) -> None:
        self._sessions[conversation_id] = request.copy()
        logger.debug(f"Stored session {conversation_id}: {request.status.value}")

    def delete(self, conversation_id: Hashable) -> None:
        if self._sessions.pop(conversation_id, None) is not None:
            logger.info(f"🧹 Cleared session {conversation_id}")

    def __contains__(self, conversation_id: Hashable) -> bool:
        return conversation_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
