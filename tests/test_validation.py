"""
Tests for business-rule validation.

Every rule is checked independently, and missing fields are never reported
as validation problems.
"""

import pytest

from rapid_rater.models.quote_request import QuoteRequest
from rapid_rater.models.validation import VALID_STATES, IssueCode, is_valid, validate


def make_request(**overrides):
    fields = {
        "age": 45,
        "state": "OH",
        "gender": "Male",
        "faceAmount": 500_000,
        "recipient": "agent@example.com",
    }
    fields.update(overrides)
    return QuoteRequest.from_extraction(fields)


def test_valid_request_has_no_issues():
    assert validate(make_request()) == []
    assert is_valid(make_request())


def test_invalid_state_yields_single_issue():
    issues = validate(make_request(state="ZZ"))

    assert [i.code for i in issues] == [IssueCode.STATE_INVALID]
    assert "**ZZ**" in issues[0].message


@pytest.mark.parametrize("amount, ok", [(99_999, False), (100_000, True), (1_000_000, True)])
def test_face_amount_minimum(amount, ok):
    issues = validate(make_request(faceAmount=amount))
    assert (issues == []) is ok
    if not ok:
        assert issues[0].message == "❌ Face Amount **$99,999** is too low. Minimum is $100,000."


@pytest.mark.parametrize("age, ok", [(17, False), (18, True), (85, True), (86, False)])
def test_age_bounds(age, ok):
    assert (validate(make_request(age=age)) == []) is ok


def test_all_issues_reported_together():
    issues = validate(make_request(state="ZZ", age=90, faceAmount=50_000))

    assert [i.code for i in issues] == [
        IssueCode.STATE_INVALID,
        IssueCode.AGE_OUT_OF_RANGE,
        IssueCode.FACE_AMOUNT_TOO_LOW,
    ]


def test_missing_fields_are_not_validation_issues():
    request = make_request(age="MISSING", faceAmount="MISSING")

    assert validate(request) == []
    assert not is_valid(request)


def test_state_code_set_includes_dc():
    assert len(VALID_STATES) == 51
    assert validate(make_request(state="DC")) == []
    assert validate(make_request(state="District of Columbia")) == []
