# tests/test_response.py

from core.operation_gate import OperationBusyError
from core.response import ErrorCode, Response


def test_succeed_defaults():
    response = Response.succeed(detail="done")

    assert response.success
    assert response.status_code == 200
    assert response.error is None
    assert response.data == {}
    assert not response.cancelled


def test_fail_defaults_to_bad_request():
    response = Response.fail(detail="nope", error=ErrorCode.DUPLICATE_ID)

    assert not response.success
    assert response.status_code == 400
    assert str(response) == "Error: DUPLICATE_ID nope"


def test_cancel_is_successful_no_op():
    response = Response.cancel("Save")

    assert response.success
    assert response.cancelled
    assert response.detail == "Save cancelled."


def test_not_found_and_busy_status_codes():
    missing = Response.not_found("No matching student found for S404.")
    busy = Response.busy(OperationBusyError("save", "load"))

    assert (missing.error, missing.status_code) == (ErrorCode.NOT_FOUND, 404)
    assert (busy.error, busy.status_code) == (ErrorCode.BUSY, 409)


def test_invalid_field_wraps_exception_message():
    response = Response.invalid_field(ValueError("Full score must be positive."))

    assert response.error is ErrorCode.INVALID_FIELD_VALUE
    assert response.detail == "Invalid field value: Full score must be positive."
