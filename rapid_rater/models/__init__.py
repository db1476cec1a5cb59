"""Quote Request Models"""
from .quote_request import (
    QuoteRequest,
    FieldMarker,
    ConversationState,
    UNSET,
    MISSING,
    MANDATORY_FIELDS,
    PRODUCTS,
    PAYMENT_MODES,
    is_concrete,
    format_amount,
)
from .validation import IssueCode, ValidationIssue, validate, is_valid, VALID_STATES

__all__ = [
    "QuoteRequest", "FieldMarker", "ConversationState", "UNSET", "MISSING",
    "MANDATORY_FIELDS", "PRODUCTS", "PAYMENT_MODES", "is_concrete", "format_amount",
    "IssueCode", "ValidationIssue", "validate", "is_valid", "VALID_STATES",
]
