# --------------------------- rapid_rater/agents/quote_intake/graph.py ----------------------------
"""
Rapid Rater · Quote Intake Agent (LangGraph ≥ 0.5)

OVERVIEW:
The conversation engine. Every inbound chat message (typed or transcribed)
runs one pass of this graph for its conversation identity: merge the message
into the stored quote request, then either ask for more, report problems,
ask for confirmation, or run the quote and deliver it.

WORKFLOW:
1. merge          - extraction + confirmation flag + persist (full replacement)
2. route          - pure transition decides the next node
3. prompt_user    - missing field / validation errors / voice confirmation
4. execute        - Rapid Rater automation, exactly once per turn
5. deliver        - format, email, log, delete screenshot
6. complete/fail  - clear the session, or keep it with confirmation reset

BUSINESS LOGIC:
- One missing field is asked per turn, all validation errors at once
- Voice turns need an explicit "Yes" before a quote runs
- A failed run keeps the collected fields so the user can retry with "Yes"
- Nothing the adapters raise may crash the bot or silently drop a turn

TECHNICAL ARCHITECTURE:
- LangGraph StateGraph with conditional routing, compiled per engine
- Decision logic lives in state_machine.transition (no I/O)
- Turns for the same conversation are serialized with a per-identity
  asyncio.Lock; different conversations run concurrently
- Adapters are injected, so tests drive the graph with in-memory fakes

DEPENDENCIES:
- Extraction, quoting and delivery adapters from rapid_rater.services
- A Notifier (the chat transport) for outbound messages
"""

# ─── Standard-library imports ───────────────────────────────────────────
import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import Any, AsyncIterator, Dict, Hashable, Optional, Protocol

from typing_extensions import TypedDict

# ─── Third-party imports ────────────────────────────────────────────────
from langgraph.graph import END, StateGraph

# ─── Internal imports ──────────────────────────────────────────────────
from rapid_rater.agents.quote_intake.state_machine import (
    GENERIC_ERROR,
    Channel,
    ClearSession,
    ExecutionFailed,
    ExecutionStarted,
    ExecutionSucceeded,
    FieldsMerged,
    Reply,
    ResetConfirmation,
    Transition,
    transition,
)
from rapid_rater.errors import ExtractionError, RapidRaterError
from rapid_rater.models.quote_request import ConversationState, QuoteRequest
from rapid_rater.services.session_store import SessionStore

logger = logging.getLogger(__name__)


# ╔══════════ 1. Collaborator Interfaces & Turn State ═════════════════════════

class Notifier(Protocol):
    """Outbound side of the chat transport."""

    async def send_message(self, conversation_id: Hashable, text: str) -> None:
        ...


class TurnState(TypedDict):
    """
    State flowing through one pass of the graph.

    FIELDS:
    - conversation_id: Chat identity the turn belongs to
    - text: User message (or voice transcript)
    - channel: TEXT or VOICE
    - request: Quote request as of the latest node
    - transition: Decision taken after the merge step
    - quote: QuoteResult from Rapid Rater, once executed
    - error: Failure message from extraction, execution or delivery
    """
    conversation_id: Hashable
    text: str
    channel: Channel
    request: Optional[QuoteRequest]
    transition: Optional[Transition]
    quote: Optional[Any]
    error: Optional[str]


def merge_confirmation(previous: QuoteRequest, merged: QuoteRequest, user_agreed: bool) -> bool:
    """
    Confirmation flag after a merge.

    An explicit affirmative always confirms. A confirmation given earlier
    survives only while the fields stay exactly as they were confirmed.
    """
    if user_agreed:
        return True
    return previous.confirmed and merged.same_fields(previous)


# ╔══════════ 2. Routing ═════════════════════════════════════════════════════

def route_after_merge(state: TurnState) -> str:
    if state.get("error"):
        return "extraction_failed"
    if state["transition"].state is ConversationState.READY:
        return "execute"
    return "prompt_user"


def route_after_execute(state: TurnState) -> str:
    return "fail" if state.get("error") else "deliver"


def route_after_deliver(state: TurnState) -> str:
    return "fail" if state.get("error") else "complete"


# ╔══════════ 3. Conversation Engine ═════════════════════════════════════════

class QuoteConversationEngine:
    """
    Runs quote conversations on top of an injected session store and adapters.

    ARGS:
        store: Session store owning every QuoteRequest
        extractor: Object with ``async extract(text, current) -> ExtractionResult``
        quoter: Object with ``async run_quote(request) -> QuoteResult``
        delivery: Object with ``async deliver(request, quote) -> DeliveryReport``
        notifier: Chat transport used for replies
    """

    def __init__(self, store: SessionStore, extractor: Any, quoter: Any, delivery: Any, notifier: Notifier):
        self.store = store
        self.extractor = extractor
        self.quoter = quoter
        self.delivery = delivery
        self.notifier = notifier
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._lock_users: Dict[Hashable, int] = {}
        self.agent = self.build_agent()

    def build_agent(self):
        """
        Construct and compile the per-turn LangGraph.

        GRAPH STRUCTURE:
        - Entry point: merge
        - merge → prompt_user | extraction_failed | execute
        - execute → deliver | fail
        - deliver → complete | fail
        """
        g = StateGraph(TurnState)

        g.add_node("merge", self.merge)
        g.add_node("prompt_user", self.prompt_user)
        g.add_node("extraction_failed", self.extraction_failed)
        g.add_node("execute", self.execute)
        g.add_node("deliver", self.deliver)
        g.add_node("complete", self.complete)
        g.add_node("fail", self.fail)

        g.set_entry_point("merge")
        g.add_conditional_edges("merge", route_after_merge, ["prompt_user", "extraction_failed", "execute"])
        g.add_conditional_edges("execute", route_after_execute, ["deliver", "fail"])
        g.add_conditional_edges("deliver", route_after_deliver, ["complete", "fail"])

        for terminal in ("prompt_user", "extraction_failed", "complete", "fail"):
            g.add_edge(terminal, END)

        return g.compile()

    # ─── Public API ─────────────────────────────────────────────────────

    async def handle_message(self, conversation_id: Hashable, text: str,
                             channel: Channel = Channel.TEXT) -> ConversationState:
        """
        Process one inbound message for a conversation.

        RETURNS:
            ConversationState the conversation is left in
        """
        async with self._turn_lock(conversation_id):
            ack = "🤔 Analyzing..." if channel is Channel.VOICE else "⚡ Processing..."
            await self.notifier.send_message(conversation_id, ack)

            try:
                final = await self.agent.ainvoke({
                    "conversation_id": conversation_id,
                    "text": text,
                    "channel": channel,
                    "request": None,
                    "transition": None,
                    "quote": None,
                    "error": None,
                })
            except Exception:
                logger.exception(f"❌ Unexpected failure in turn for {conversation_id}")
                return await self._recover(conversation_id)

            request = final.get("request")
            return request.status if request else ConversationState.AWAITING_FIELDS

    async def cancel(self, conversation_id: Hashable) -> bool:
        """Drop the in-progress request for a conversation, if any."""
        async with self._turn_lock(conversation_id):
            if self.store.get(conversation_id) is None:
                return False
            self.store.delete(conversation_id)
            return True

    def state_of(self, conversation_id: Hashable) -> Optional[ConversationState]:
        request = self.store.get(conversation_id)
        return request.status if request else None

    # ─── Graph Nodes ────────────────────────────────────────────────────

    async def merge(self, state: TurnState) -> Dict[str, Any]:
        """Extract, merge and persist the user's message."""
        conversation_id = state["conversation_id"]
        current = self.store.get(conversation_id) or QuoteRequest()

        try:
            result = await self.extractor.extract(state["text"], current)
        except ExtractionError as e:
            return {"request": current, "error": str(e)}

        confirmed = merge_confirmation(current, result.request, result.user_agreed)
        merged = replace(result.request, confirmed=confirmed)
        decision = transition(current.status, FieldsMerged(state["channel"]), merged)

        merged = merged.with_status(decision.state)
        self.store.put(conversation_id, merged)
        logger.info(f"🔄 {conversation_id}: {current.status.value} → {decision.state.value}")
        return {"request": merged, "transition": decision}

    async def prompt_user(self, state: TurnState) -> Dict[str, Any]:
        for text in state["transition"].replies:
            await self.notifier.send_message(state["conversation_id"], text)
        return {}

    async def extraction_failed(self, state: TurnState) -> Dict[str, Any]:
        logger.warning(f"⚠️  Extraction failed for {state['conversation_id']}: {state['error']}")
        await self.notifier.send_message(state["conversation_id"], GENERIC_ERROR)
        return {}

    async def execute(self, state: TurnState) -> Dict[str, Any]:
        """Run the Rapid Rater automation once."""
        request = await self._apply(
            state["conversation_id"],
            state["request"],
            transition(ConversationState.READY, ExecutionStarted(), state["request"]),
        )

        try:
            quote = await self.quoter.run_quote(request)
        except RapidRaterError as e:
            return {"request": request, "error": str(e)}
        except Exception as e:
            logger.exception("❌ Quote automation crashed")
            return {"request": request, "error": str(e) or type(e).__name__}

        return {"request": request, "quote": quote}

    async def deliver(self, state: TurnState) -> Dict[str, Any]:
        """Email and log the quote; the screenshot is removed only on success."""
        try:
            await self.delivery.deliver(state["request"], state["quote"])
        except RapidRaterError as e:
            return {"error": str(e)}
        except Exception as e:
            logger.exception("❌ Quote delivery crashed")
            return {"error": str(e) or type(e).__name__}
        return {}

    async def complete(self, state: TurnState) -> Dict[str, Any]:
        request = await self._apply(
            state["conversation_id"],
            state["request"],
            transition(ConversationState.EXECUTING, ExecutionSucceeded(), state["request"]),
        )
        return {"request": request}

    async def fail(self, state: TurnState) -> Dict[str, Any]:
        logger.error(f"❌ Quote failed for {state['conversation_id']}: {state['error']}")
        request = await self._apply(
            state["conversation_id"],
            state["request"],
            transition(ConversationState.EXECUTING, ExecutionFailed(state["error"]), state["request"]),
        )
        return {"request": request}

    # ─── Helpers ────────────────────────────────────────────────────────

    @asynccontextmanager
    async def _turn_lock(self, conversation_id: Hashable) -> AsyncIterator[None]:
        """
        Serialize turns for one conversation.

        A lock lives in the registry only while a turn holds or waits on it,
        so finished and cancelled chats leave nothing behind.
        """
        lock = self._locks.setdefault(conversation_id, asyncio.Lock())
        self._lock_users[conversation_id] = self._lock_users.get(conversation_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[conversation_id] -= 1
            if not self._lock_users[conversation_id]:
                del self._lock_users[conversation_id]
                del self._locks[conversation_id]

    def active_conversations(self) -> int:
        """Number of conversations with a turn running or queued."""
        return len(self._locks)

    async def _apply(self, conversation_id: Hashable, request: QuoteRequest,
                     decision: Transition) -> QuoteRequest:
        """Carry out a transition's effects and persist the result."""
        request = request.with_status(decision.state)
        cleared = False

        for effect in decision.effects:
            if isinstance(effect, ResetConfirmation):
                request = replace(request, confirmed=False)
            elif isinstance(effect, ClearSession):
                cleared = True

        if cleared:
            self.store.delete(conversation_id)
        else:
            self.store.put(conversation_id, request)

        for effect in decision.effects:
            if isinstance(effect, Reply):
                await self.notifier.send_message(conversation_id, effect.text)
        return request

    async def _recover(self, conversation_id: Hashable) -> ConversationState:
        # A crash mid-run must not leave the conversation stuck in EXECUTING
        request = self.store.get(conversation_id)
        if request and request.status in (ConversationState.READY, ConversationState.EXECUTING):
            request = request.with_status(ConversationState.FAILED, confirmed=False)
            self.store.put(conversation_id, request)

        try:
            await self.notifier.send_message(conversation_id, GENERIC_ERROR)
        except Exception:
            logger.exception(f"❌ Could not notify {conversation_id}")
        return request.status if request else ConversationState.AWAITING_FIELDS
