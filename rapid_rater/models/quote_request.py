# --------------------------- rapid_rater/models/quote_request.py ----------------------------
"""
Rapid Rater · Quote Request Field Schema

OVERVIEW:
Defines the single per-session record of the quote bot: the fields needed to
price a QoL term/GUL policy on the Rapid Rater form, the explicit markers used
for mandatory fields that are not known yet, and the deterministic
normalization applied to every extraction result.

BUSINESS LOGIC:
- Five mandatory fields (age, state, gender, face amount, recipient) must be
  concrete before a quote can run
- Optional fields always carry a usable default (Flex Term, Annual, no table
  rating, no flat extra)
- Spoken shorthand ("500", "1 million") is turned into whole dollar amounts
- Unrecognized product / mode words never reach the web form

TECHNICAL ARCHITECTURE:
- Dataclass record owned by the session store
- FieldMarker enum separates "never extracted" from "extraction gave up"
- Wire conversion (camelCase JSON with the "MISSING" string) lives here so the
  rest of the system never handles the magic string
"""

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Union


# ╔══════════ 1. Markers & Enumerations ═══════════════════════════════════════

class FieldMarker(Enum):
    """Placeholder states for a mandatory field without a concrete value."""
    UNSET = "unset"
    MISSING = "MISSING"


UNSET = FieldMarker.UNSET
MISSING = FieldMarker.MISSING


class ConversationState(Enum):
    """Where a conversation identity currently sits in the quote workflow."""
    AWAITING_FIELDS = "awaiting_fields"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    READY = "ready"
    EXECUTING = "executing"
    DONE = "done"
    FAILED = "failed"


PRODUCTS = ["QoL Flex Term", "QoL Guarantee Plus GUL II"]
DEFAULT_PRODUCT = PRODUCTS[0]

PAYMENT_MODES = ["Annual", "Semi-Annual", "Quarterly", "Monthly"]
DEFAULT_MODE = "Annual"

GENDERS = ["Male", "Female"]
DEFAULT_TABLE_RATING = "None"

# Mandatory fields in the order they are asked for
MANDATORY_FIELDS = ["age", "state", "gender", "face_amount", "recipient"]

# Wire names used by the extraction service
WIRE_NAMES = {
    "recipient": "recipient",
    "state": "state",
    "age": "age",
    "gender": "gender",
    "face_amount": "faceAmount",
    "product": "product",
    "mode": "mode",
    "table_rating": "tableRating",
    "flat_extra": "flatExtra",
}

STATE_NAMES = {
    "alabama": "AL", "alaska": "AK", "arizona": "AZ", "arkansas": "AR",
    "california": "CA", "colorado": "CO", "connecticut": "CT", "delaware": "DE",
    "district of columbia": "DC", "washington dc": "DC", "washington d.c.": "DC",
    "florida": "FL", "georgia": "GA", "hawaii": "HI", "idaho": "ID",
    "illinois": "IL", "indiana": "IN", "iowa": "IA", "kansas": "KS",
    "kentucky": "KY", "louisiana": "LA", "maine": "ME", "maryland": "MD",
    "massachusetts": "MA", "michigan": "MI", "minnesota": "MN",
    "mississippi": "MS", "missouri": "MO", "montana": "MT", "nebraska": "NE",
    "nevada": "NV", "new hampshire": "NH", "new jersey": "NJ",
    "new mexico": "NM", "new york": "NY", "north carolina": "NC",
    "north dakota": "ND", "ohio": "OH", "oklahoma": "OK", "oregon": "OR",
    "pennsylvania": "PA", "rhode island": "RI", "south carolina": "SC",
    "south dakota": "SD", "tennessee": "TN", "texas": "TX", "utah": "UT",
    "vermont": "VT", "virginia": "VA", "washington": "WA",
    "west virginia": "WV", "wisconsin": "WI", "wyoming": "WY",
}

FieldValue = Union[FieldMarker, Any]


def is_concrete(value: FieldValue) -> bool:
    """True when a field holds a real, non-empty value."""
    if isinstance(value, FieldMarker):
        return False
    return bool(value)


# ╔══════════ 2. Normalization ═══════════════════════════════════════════════

_AMOUNT_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(million|mil|mm|m|thousand|k)?\b")
_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")
_TABLE_RE = re.compile(r"\btable\s*([a-p])\b", re.IGNORECASE)
_GUL_RE = re.compile(r"\bgul\b|\bguarantee")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def normalize_state(value: Any) -> Optional[str]:
    """
    Convert a state name or code to its 2-letter form.

    Unknown values are upper-cased and kept so validation can reject them
    instead of the bot silently re-asking.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip().rstrip(".")
    code = STATE_NAMES.get(text.lower())
    if code:
        return code
    return text.upper()


def normalize_age(value: Any) -> Optional[int]:
    if _is_number(value):
        return int(value)
    if isinstance(value, str):
        match = _NUMBER_RE.search(value)
        if match:
            return int(float(match.group()))
    return None


def normalize_face_amount(value: Any) -> Optional[int]:
    """
    Turn a spoken or typed coverage amount into whole dollars.

    RULES:
    - "1 million", "1.5m" → millions
    - "500k", "250 thousand" → thousands
    - a bare number below 1,000 is shorthand for thousands ("500" → 500000)
    - commas, "$" and trailing words ("dollars") are ignored

    RETURNS:
        int amount, or None when no amount can be read
    """
    if _is_number(value):
        amount = float(value)
    elif isinstance(value, str):
        text = value.lower().replace(",", "").replace("$", "").strip()
        match = _AMOUNT_RE.search(text)
        if not match:
            return None
        amount = float(match.group(1))
        unit = match.group(2)
        if unit in ("million", "mil", "mm", "m"):
            return int(round(amount * 1_000_000))
        if unit in ("thousand", "k"):
            return int(round(amount * 1_000))
    else:
        return None

    if 0 < amount < 1000:
        amount *= 1000
    return int(round(amount))


def normalize_gender(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    text = value.strip().lower()
    if text in ("male", "m", "man"):
        return "Male"
    if text in ("female", "f", "woman"):
        return "Female"
    return None


def normalize_recipient(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    text = value.strip().lower()
    return text if "@" in text else None


def normalize_product(value: Any) -> str:
    """Only the two Rapid Rater products are accepted; anything else is Flex Term."""
    if not isinstance(value, str):
        return DEFAULT_PRODUCT
    text = value.strip().lower()
    for product in PRODUCTS:
        if text == product.lower():
            return product
    if "table" in text:
        return DEFAULT_PRODUCT
    if _GUL_RE.search(text):
        return PRODUCTS[1]
    return DEFAULT_PRODUCT


def normalize_mode(value: Any) -> str:
    if not isinstance(value, str):
        return DEFAULT_MODE
    text = value.strip().lower().replace("_", "-").replace(" ", "-")
    if text == "semiannual":
        text = "semi-annual"
    for mode in PAYMENT_MODES:
        if text == mode.lower():
            return mode
    return DEFAULT_MODE


def normalize_table_rating(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        return DEFAULT_TABLE_RATING
    text = value.strip()
    match = _TABLE_RE.search(text)
    if match:
        return f"Table {match.group(1).upper()}"
    if re.fullmatch(r"[A-Pa-p]", text):
        return f"Table {text.upper()}"
    return DEFAULT_TABLE_RATING


def normalize_flat_extra(value: Any) -> float:
    if _is_number(value):
        return float(value) if value > 0 else 0
    if isinstance(value, str):
        match = _NUMBER_RE.search(value.replace(",", ""))
        if match and float(match.group()) > 0:
            return float(match.group())
    return 0


_MANDATORY_NORMALIZERS = {
    "recipient": normalize_recipient,
    "state": normalize_state,
    "age": normalize_age,
    "gender": normalize_gender,
    "face_amount": normalize_face_amount,
}


def _mandatory(value: Any, normalizer) -> FieldValue:
    # The extraction service reports undeterminable fields as "MISSING"
    if value is None or (isinstance(value, str) and value.strip().upper() in ("", "MISSING")):
        return MISSING
    normalized = normalizer(value)
    return MISSING if normalized is None else normalized


# ╔══════════ 3. Quote Request Record ════════════════════════════════════════

@dataclass
class QuoteRequest:
    """
    Per-conversation quote parameters.

    Mandatory fields start as UNSET and become either MISSING or a concrete
    value once the extraction service has seen the conversation.
    """
    recipient: FieldValue = UNSET
    state: FieldValue = UNSET
    age: FieldValue = UNSET
    gender: FieldValue = UNSET
    face_amount: FieldValue = UNSET
    product: str = DEFAULT_PRODUCT
    mode: str = DEFAULT_MODE
    table_rating: str = DEFAULT_TABLE_RATING
    flat_extra: float = 0
    confirmed: bool = False
    status: ConversationState = field(default=ConversationState.AWAITING_FIELDS)

    @classmethod
    def from_extraction(cls, payload: Dict[str, Any]) -> "QuoteRequest":
        """
        Build a normalized record from the extraction service's JSON.

        The payload uses the service's camelCase names; unknown keys are
        ignored. Session bookkeeping (confirmed, status) is left at defaults
        and carried over by the engine.
        """
        values: Dict[str, Any] = {}
        for name, normalizer in _MANDATORY_NORMALIZERS.items():
            values[name] = _mandatory(payload.get(WIRE_NAMES[name]), normalizer)
        values["product"] = normalize_product(payload.get("product"))
        values["mode"] = normalize_mode(payload.get("mode"))
        values["table_rating"] = normalize_table_rating(payload.get("tableRating"))
        values["flat_extra"] = normalize_flat_extra(payload.get("flatExtra"))
        return cls(**values)

    def to_fields(self) -> Dict[str, Any]:
        """Wire representation handed to the extraction service as context."""
        payload: Dict[str, Any] = {}
        for name, wire_name in WIRE_NAMES.items():
            value = getattr(self, name)
            if value is MISSING:
                payload[wire_name] = MISSING.value
            elif value is UNSET:
                payload[wire_name] = None
            else:
                payload[wire_name] = value
        return payload

    def field_values(self) -> Dict[str, Any]:
        """Quote parameters only, without confirmation/status bookkeeping."""
        return {name: getattr(self, name) for name in WIRE_NAMES}

    def same_fields(self, other: "QuoteRequest") -> bool:
        return self.field_values() == other.field_values()

    def missing_fields(self) -> List[str]:
        """Mandatory fields without a concrete value, in asking order."""
        return [name for name in MANDATORY_FIELDS if not is_concrete(getattr(self, name))]

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()

    def with_status(self, status: ConversationState, **changes: Any) -> "QuoteRequest":
        return replace(self, status=status, **changes)

    def copy(self) -> "QuoteRequest":
        return replace(self)


def format_amount(value: FieldValue) -> str:
    """Dollar formatting used in chat replies and emails."""
    if _is_number(value):
        return f"${value:,.0f}"
    return str(value)
