# --------------------------- rapid_rater/agents/quote_intake/state_machine.py ----------------------------
"""
Rapid Rater · Quote Conversation State Machine

OVERVIEW:
Pure decision logic for one conversation identity. Given the current state,
an event and the quote request, `transition` returns the next state and the
effects the engine must carry out (reply to the user, reset confirmation,
clear the session). Nothing in this module performs I/O.

STATES:
    AWAITING_FIELDS ──► AWAITING_CONFIRMATION (voice only) ──► READY
         ▲                         │                            │
         └─────────────────────────┘                            ▼
                                                           EXECUTING
                                                          │         │
                                                        DONE     FAILED (retryable)

BUSINESS LOGIC:
- Only the FIRST missing field is asked for, in the fixed order
  age → state → gender → face amount → recipient
- ALL validation problems are reported together
- Voice input must be confirmed before a quote runs; typed input is trusted
- A failed run keeps the fields but drops the confirmation
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Tuple, Union

from rapid_rater.models.quote_request import (
    ConversationState,
    QuoteRequest,
    format_amount,
)
from rapid_rater.models.validation import ValidationIssue, validate


class Channel(Enum):
    TEXT = "text"
    VOICE = "voice"


class IllegalTransition(ValueError):
    """An event arrived in a state that cannot accept it."""


# ╔══════════ 1. Events ═══════════════════════════════════════════════════════

@dataclass(frozen=True)
class FieldsMerged:
    """Extraction output for this turn has been merged into the request."""
    channel: Channel


@dataclass(frozen=True)
class ExecutionStarted:
    pass


@dataclass(frozen=True)
class ExecutionSucceeded:
    pass


@dataclass(frozen=True)
class ExecutionFailed:
    message: str


Event = Union[FieldsMerged, ExecutionStarted, ExecutionSucceeded, ExecutionFailed]


# ╔══════════ 2. Effects ══════════════════════════════════════════════════════

@dataclass(frozen=True)
class Reply:
    text: str


@dataclass(frozen=True)
class ResetConfirmation:
    pass


@dataclass(frozen=True)
class ClearSession:
    pass


Effect = Union[Reply, ResetConfirmation, ClearSession]


@dataclass(frozen=True)
class Transition:
    state: ConversationState
    effects: Tuple[Effect, ...] = ()

    @property
    def replies(self) -> List[str]:
        return [effect.text for effect in self.effects if isinstance(effect, Reply)]


# ╔══════════ 3. User-facing messages ═════════════════════════════════════════

FIELD_LABELS = {
    "age": "age",
    "state": "state",
    "gender": "gender",
    "face_amount": "face amount",
    "recipient": "email address",
}

GENERIC_ERROR = "❌ Sorry, I couldn't understand that. Please try again."


def missing_field_prompt(field_name: str) -> str:
    if field_name == "recipient":
        return "⚠️ Please **Type the Email Address**."
    return f"⚠️ I am missing the **{FIELD_LABELS.get(field_name, field_name)}**."


def validation_prompt(issues: Sequence[ValidationIssue]) -> str:
    return "\n".join(issue.message for issue in issues) + "\n\nPlease correct this."


def confirmation_summary(request: QuoteRequest) -> str:
    return (
        "🎙 **Voice Detected. Please Review:**\n"
        f"• **Email:** {request.recipient}\n"
        f"• **Client:** {request.age} / {request.gender} / {request.state}\n"
        f"• **Amount:** {format_amount(request.face_amount)}\n"
        f"• **Product:** {request.product}\n"
        f"• **Mode:** {request.mode}\n"
        f"• **Rating:** {request.table_rating or 'None'}\n"
        f"• **Flat Extra:** {request.flat_extra or 0}\n"
        "\n"
        "Type **'Yes'** to run.\n"
        "Type **'Change X to Y'** to fix."
    )


# ╔══════════ 4. Transition function ══════════════════════════════════════════

def _after_merge(event: FieldsMerged, request: QuoteRequest) -> Transition:
    missing = request.missing_fields()
    if missing:
        return Transition(ConversationState.AWAITING_FIELDS, (Reply(missing_field_prompt(missing[0])),))

    issues = validate(request)
    if issues:
        return Transition(ConversationState.AWAITING_FIELDS, (Reply(validation_prompt(issues)),))

    if event.channel is Channel.VOICE and not request.confirmed:
        return Transition(ConversationState.AWAITING_CONFIRMATION, (Reply(confirmation_summary(request)),))

    return Transition(ConversationState.READY)


def transition(state: ConversationState, event: Event, request: QuoteRequest) -> Transition:
    """
    Decide the next state and effects for one event.

    ARGS:
        state: State stored for the conversation before the event
        event: What just happened
        request: The request as it stands after the event (merged fields)

    RETURNS:
        Transition with the next state and ordered effects

    RAISES:
        IllegalTransition: the event is not accepted in `state`
    """
    if isinstance(event, FieldsMerged):
        if state is ConversationState.EXECUTING:
            raise IllegalTransition("A quote is already running for this conversation")
        return _after_merge(event, request)

    if isinstance(event, ExecutionStarted):
        if state is not ConversationState.READY:
            raise IllegalTransition(f"Cannot start execution from {state.value}")
        return Transition(
            ConversationState.EXECUTING,
            (Reply(f"🚀 Running quote for **{request.recipient}**..."),),
        )

    if isinstance(event, ExecutionSucceeded):
        if state is not ConversationState.EXECUTING:
            raise IllegalTransition(f"No execution in progress ({state.value})")
        return Transition(
            ConversationState.DONE,
            (Reply(f"✅ Done! Email sent to {request.recipient}."), ClearSession()),
        )

    if isinstance(event, ExecutionFailed):
        if state is not ConversationState.EXECUTING:
            raise IllegalTransition(f"No execution in progress ({state.value})")
        return Transition(
            ConversationState.FAILED,
            (Reply(f"❌ Error: {event.message}"), ResetConfirmation()),
        )

    raise IllegalTransition(f"Unknown event {event!r}")
