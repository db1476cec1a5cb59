"""
Tests for the pure conversation state machine.

Tests:
1. Only the first missing field is asked, in fixed order
2. Validation errors are reported together and block execution
3. Voice turns require confirmation; typed turns do not
4. Execution outcomes (success clears, failure resets confirmation)
5. Events the current state cannot accept are rejected
"""

from dataclasses import replace

import pytest

from rapid_rater.agents.quote_intake.state_machine import (
    Channel,
    ClearSession,
    ExecutionFailed,
    ExecutionStarted,
    ExecutionSucceeded,
    FieldsMerged,
    IllegalTransition,
    ResetConfirmation,
    transition,
)
from rapid_rater.models.quote_request import ConversationState, QuoteRequest

S = ConversationState

COMPLETE = {
    "age": 45,
    "state": "OH",
    "gender": "Male",
    "faceAmount": 500_000,
    "recipient": "agent@example.com",
}


def request_with(**overrides):
    fields = dict(COMPLETE)
    fields.update(overrides)
    return QuoteRequest.from_extraction(fields)


@pytest.mark.parametrize("missing, asked", [
    (["age", "state", "gender", "faceAmount", "recipient"], "**age**"),
    (["state", "gender"], "**state**"),
    (["gender", "recipient"], "**gender**"),
    (["faceAmount"], "**face amount**"),
])
def test_asks_only_first_missing_field(missing, asked):
    request = request_with(**{name: "MISSING" for name in missing})
    result = transition(S.AWAITING_FIELDS, FieldsMerged(Channel.TEXT), request)

    assert result.state is S.AWAITING_FIELDS
    assert len(result.replies) == 1
    assert asked in result.replies[0]


def test_missing_recipient_asks_to_type_email():
    result = transition(S.AWAITING_FIELDS, FieldsMerged(Channel.VOICE), request_with(recipient="MISSING"))
    assert result.replies == ["⚠️ Please **Type the Email Address**."]


def test_invalid_fields_block_execution():
    result = transition(S.AWAITING_FIELDS, FieldsMerged(Channel.TEXT), request_with(state="ZZ", age=90))

    assert result.state is S.AWAITING_FIELDS
    assert len(result.replies) == 1
    assert "**ZZ**" in result.replies[0]
    assert "Age **90**" in result.replies[0]
    assert result.replies[0].endswith("Please correct this.")


def test_missing_fields_take_priority_over_validation():
    result = transition(S.AWAITING_FIELDS, FieldsMerged(Channel.TEXT), request_with(state="ZZ", age="MISSING"))
    assert "**age**" in result.replies[0]


def test_text_turn_goes_straight_to_ready():
    result = transition(S.AWAITING_FIELDS, FieldsMerged(Channel.TEXT), request_with())
    assert result.state is S.READY
    assert result.effects == ()


def test_voice_turn_asks_for_confirmation():
    result = transition(S.AWAITING_FIELDS, FieldsMerged(Channel.VOICE), request_with(tableRating="Table C"))

    assert result.state is S.AWAITING_CONFIRMATION
    summary = result.replies[0]
    assert "Voice Detected" in summary
    assert "$500,000" in summary
    assert "Table C" in summary


def test_confirmed_voice_turn_is_ready():
    request = replace(request_with(), confirmed=True)
    result = transition(S.AWAITING_CONFIRMATION, FieldsMerged(Channel.VOICE), request)
    assert result.state is S.READY


def test_failed_state_accepts_new_fields():
    result = transition(S.FAILED, FieldsMerged(Channel.VOICE), request_with())
    assert result.state is S.AWAITING_CONFIRMATION


def test_execution_lifecycle():
    request = request_with()

    started = transition(S.READY, ExecutionStarted(), request)
    assert started.state is S.EXECUTING
    assert "agent@example.com" in started.replies[0]

    done = transition(S.EXECUTING, ExecutionSucceeded(), request)
    assert done.state is S.DONE
    assert done.replies == ["✅ Done! Email sent to agent@example.com."]
    assert ClearSession() in done.effects

    failed = transition(S.EXECUTING, ExecutionFailed("timeout"), request)
    assert failed.state is S.FAILED
    assert failed.replies == ["❌ Error: timeout"]
    assert ResetConfirmation() in failed.effects


@pytest.mark.parametrize("state, event", [
    (S.EXECUTING, FieldsMerged(Channel.TEXT)),
    (S.AWAITING_FIELDS, ExecutionStarted()),
    (S.AWAITING_CONFIRMATION, ExecutionStarted()),
    (S.READY, ExecutionSucceeded()),
    (S.DONE, ExecutionFailed("late")),
])
def test_illegal_transitions(state, event):
    with pytest.raises(IllegalTransition):
        transition(state, event, request_with())
