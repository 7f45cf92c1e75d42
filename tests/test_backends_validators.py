"""Tests for declarative response shapes."""

import pytest

from lnbridge.backends.validators import (
    CLN_PAY,
    LND_GETINFO,
    LND_PAY_INVOICE,
    ResponseShape,
    validate_response,
)
from lnbridge.utils.exceptions import UnexpectedResponse


def test_valid_payload_is_returned_unchanged() -> None:
    payload = {"alias": "alice", "identity_pubkey": "02ab", "uris": [], "extra": 1}
    assert validate_response(LND_GETINFO, payload) is payload


def test_first_missing_field_is_reported() -> None:
    with pytest.raises(UnexpectedResponse) as err:
        validate_response(LND_GETINFO, {"uris": []})
    assert err.value.field == "alias"
    assert err.value.operation == "GET /v1/getinfo"


def test_wrong_type_is_reported() -> None:
    with pytest.raises(UnexpectedResponse) as err:
        validate_response(LND_GETINFO, {"alias": "a", "identity_pubkey": "b", "uris": "c"})
    assert err.value.field == "uris"


def test_object_field() -> None:
    payload = {"payment_preimage": "aa", "payment_hash": "bb", "payment_route": []}
    with pytest.raises(UnexpectedResponse) as err:
        validate_response(LND_PAY_INVOICE, payload)
    assert err.value.field == "payment_route"


def test_booleans_are_not_numbers() -> None:
    shape = ResponseShape("op", {"amount": "number", "flag": "boolean"})
    assert validate_response(shape, {"amount": 1.5, "flag": False})
    with pytest.raises(UnexpectedResponse):
        validate_response(shape, {"amount": True, "flag": False})


@pytest.mark.parametrize("payload", [None, [], "ok", 3])
def test_non_object_payload(payload) -> None:
    with pytest.raises(UnexpectedResponse) as err:
        validate_response(CLN_PAY, payload)
    assert err.value.field is None
