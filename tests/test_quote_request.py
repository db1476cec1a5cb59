"""
Tests for the quote request schema and field normalization.

Tests:
1. Spoken face amounts become whole dollars
2. State names become 2-letter codes
3. Product / table rating / mode defaults
4. MISSING vs UNSET handling on the wire
"""

import pytest

from rapid_rater.models.quote_request import (
    DEFAULT_PRODUCT,
    MISSING,
    UNSET,
    ConversationState,
    QuoteRequest,
    format_amount,
    normalize_face_amount,
    normalize_gender,
    normalize_mode,
    normalize_product,
    normalize_state,
    normalize_table_rating,
)


@pytest.mark.parametrize("spoken, expected", [
    ("500", 500_000),
    (500, 500_000),
    ("1 million", 1_000_000),
    ("1.5m", 1_500_000),
    ("250k", 250_000),
    ("$750,000", 750_000),
    (1_000_000, 1_000_000),
    ("1,000,000 dollars", 1_000_000),
    ("$1 million dollars", 1_000_000),
    ("lots", None),
])
def test_face_amount_normalization(spoken, expected):
    assert normalize_face_amount(spoken) == expected


def test_state_names_and_codes():
    assert normalize_state("Ohio") == "OH"
    assert normalize_state("new york") == "NY"
    assert normalize_state("tx") == "TX"
    # Unknown states are kept for validation to reject
    assert normalize_state("zz") == "ZZ"
    assert normalize_state("") is None


def test_gender_normalization():
    assert normalize_gender("male") == "Male"
    assert normalize_gender("F") == "Female"
    assert normalize_gender("unknown") is None


def test_table_rating_never_becomes_product():
    assert normalize_product("Table C") == DEFAULT_PRODUCT
    assert normalize_product("guaranteed universal life") == "QoL Guarantee Plus GUL II"
    assert normalize_product("GUL") == "QoL Guarantee Plus GUL II"
    assert normalize_product("Regular Term") == DEFAULT_PRODUCT
    assert normalize_product(None) == DEFAULT_PRODUCT
    assert normalize_table_rating("table c") == "Table C"
    assert normalize_table_rating("D") == "Table D"
    assert normalize_table_rating("none") == "None"
    assert normalize_table_rating("Table 4") == "None"


def test_mode_defaults_to_annual():
    assert normalize_mode("monthly") == "Monthly"
    assert normalize_mode("semi annual") == "Semi-Annual"
    assert normalize_mode("weekly") == "Annual"
    assert normalize_mode(None) == "Annual"


def test_from_extraction_normalizes_payload():
    request = QuoteRequest.from_extraction({
        "age": "45",
        "state": "Ohio",
        "gender": "male",
        "faceAmount": "500",
        "recipient": "Agent@Example.com",
        "product": "Table B",
        "tableRating": "Table B",
        "flatExtra": "2.50",
        "mode": "Monthly",
    })

    assert request.age == 45
    assert request.state == "OH"
    assert request.gender == "Male"
    assert request.face_amount == 500_000
    assert request.recipient == "agent@example.com"
    assert request.product == DEFAULT_PRODUCT
    assert request.table_rating == "Table B"
    assert request.flat_extra == 2.5
    assert request.mode == "Monthly"
    assert request.is_complete


def test_missing_markers_and_asking_order():
    request = QuoteRequest.from_extraction({"age": "MISSING", "state": "OH", "recipient": "no-at-sign"})

    assert request.age is MISSING
    assert request.gender is MISSING
    assert request.recipient is MISSING
    assert request.missing_fields() == ["age", "gender", "face_amount", "recipient"]


def test_wire_representation():
    fresh = QuoteRequest()
    assert fresh.age is UNSET
    assert fresh.to_fields()["age"] is None

    request = QuoteRequest.from_extraction({"state": "OH"})
    fields = request.to_fields()
    assert fields["faceAmount"] == "MISSING"
    assert fields["state"] == "OH"
    assert fields["tableRating"] == "None"


def test_same_fields_ignores_bookkeeping():
    a = QuoteRequest.from_extraction({"age": 40, "state": "OH"})
    b = a.with_status(ConversationState.READY, confirmed=True)

    assert a.same_fields(b)
    assert not a.same_fields(b.with_status(ConversationState.READY, age=41))


def test_format_amount():
    assert format_amount(1_000_000) == "$1,000,000"


def test_amount_with_trailing_words_is_not_missing():
    request = QuoteRequest.from_extraction({
        "age": 45, "state": "OH", "gender": "Male",
        "faceAmount": "$1 million dollars", "recipient": "agent@example.com",
    })
    assert request.face_amount == 1_000_000
    assert request.missing_fields() == []
