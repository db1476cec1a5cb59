# --------------------------- rapid_rater/models/validation.py ----------------------------
"""
Rapid Rater · Business-Rule Validation

Checks a quote request against the carrier's quotable ranges. Every rule is
evaluated on its own so the user sees all problems in one reply. A field that
is not filled in yet is not a validation problem; it is reported by
QuoteRequest.missing_fields() and re-asked instead.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List

from rapid_rater.models.quote_request import QuoteRequest, format_amount, is_concrete

# Business Rules
VALID_STATES = [
    "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "DC", "FL", "GA", "HI", "ID",
    "IL", "IN", "IA", "KS", "KY", "LA", "ME", "MD", "MA", "MI", "MN", "MS", "MO",
    "MT", "NE", "NV", "NH", "NJ", "NM", "NY", "NC", "ND", "OH", "OK", "OR", "PA",
    "RI", "SC", "SD", "TN", "TX", "UT", "VT", "VA", "WA", "WV", "WI", "WY",
]
MIN_AGE = 18
MAX_AGE = 85
MIN_FACE_AMOUNT = 100_000


class IssueCode(Enum):
    STATE_INVALID = "state_invalid"
    AGE_OUT_OF_RANGE = "age_out_of_range"
    FACE_AMOUNT_TOO_LOW = "face_amount_too_low"


@dataclass(frozen=True)
class ValidationIssue:
    code: IssueCode
    message: str


def validate(request: QuoteRequest) -> List[ValidationIssue]:
    """
    Run every business rule against the request.

    RULES:
    - state must be one of the 50 states or DC
    - age must be within 18-85
    - face amount must be at least $100,000

    RETURNS:
        List of issues, empty when the request is quotable
    """
    issues: List[ValidationIssue] = []

    if is_concrete(request.state) and str(request.state).upper() not in VALID_STATES:
        issues.append(ValidationIssue(
            IssueCode.STATE_INVALID,
            f"❌ **{request.state}** is not a valid US State code.",
        ))

    if is_concrete(request.age) and not MIN_AGE <= request.age <= MAX_AGE:
        issues.append(ValidationIssue(
            IssueCode.AGE_OUT_OF_RANGE,
            f"❌ Age **{request.age}** is likely outside the quotable range ({MIN_AGE}-{MAX_AGE}).",
        ))

    if is_concrete(request.face_amount) and request.face_amount < MIN_FACE_AMOUNT:
        issues.append(ValidationIssue(
            IssueCode.FACE_AMOUNT_TOO_LOW,
            f"❌ Face Amount **{format_amount(request.face_amount)}** is too low. "
            f"Minimum is {format_amount(MIN_FACE_AMOUNT)}.",
        ))

    return issues


def is_valid(request: QuoteRequest) -> bool:
    return request.is_complete and not validate(request)
