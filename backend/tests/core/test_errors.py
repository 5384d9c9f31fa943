"""Error hierarchy tests — codes, HTTP statuses, and envelope shapes."""

from relaypay.core.errors import (
    ErrorCategory, InputValidationError, InsufficientFundsError,
    InternalFaultError, InvalidAmountError, SameAccountError,
    TransportFaultError, UnknownRecipientError,
)


def test_domain_errors_are_400():
    for exc in (
        InputValidationError("bad", "field"),
        InvalidAmountError(50, 100, 5000),
        SameAccountError("a"),
        InsufficientFundsError("a", 10, 100),
    ):
        assert exc.http_status == 400


def test_invalid_amount_messages():
    assert "between 100 and 5000" in InvalidAmountError(50, 100, 5000).message
    assert InvalidAmountError(0).message == "Amount must be positive"


def test_to_response_envelope():
    body = InsufficientFundsError("alice", 10, 100).to_response()
    assert body["success"] is False
    assert body["error"]["code"] == "INSUFFICIENT_FUNDS"
    assert body["error"]["category"] == ErrorCategory.BUSINESS_RULE.value
    assert body["error"]["context"]["user_id"] == "alice"


def test_to_event_envelope():
    event = InputValidationError("Username is required", "username").to_event()
    assert event == {
        "type": "error",
        "payload": {"message": "Username is required", "code": "VALIDATION_ERROR"},
    }


def test_internal_fault_hides_detail():
    exc = InternalFaultError()
    assert exc.http_status == 500
    assert exc.message == "An unexpected error occurred"


def test_transport_and_unknown_recipient_codes():
    assert TransportFaultError("x").code == "TRANSPORT_FAULT"
    assert UnknownRecipientError("bob").context.related_user_id == "bob"
