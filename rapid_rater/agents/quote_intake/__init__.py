"""Quote Intake Agent Module"""
from .state_machine import (
    Channel, FieldsMerged, ExecutionStarted, ExecutionSucceeded, ExecutionFailed,
    Reply, ResetConfirmation, ClearSession, Transition, IllegalTransition, transition,
)
from .graph import QuoteConversationEngine, Notifier, TurnState, merge_confirmation

__all__ = [
    "Channel", "FieldsMerged", "ExecutionStarted", "ExecutionSucceeded", "ExecutionFailed",
    "Reply", "ResetConfirmation", "ClearSession", "Transition", "IllegalTransition", "transition",
    "QuoteConversationEngine", "Notifier", "TurnState", "merge_confirmation",
]
