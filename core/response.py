# core/response.py

"""
Structured result objects returned by every `Gradebook` and `SqliteGradebookStore` mutator,
loader, and lookup.

Expected failures (bad input, missing records, malformed files, a busy store) are reported
through `Response.fail()` with an `ErrorCode` instead of raised exceptions, so the caller
can display the message and keep running. The shortcut constructors below cover the
failure shapes that recur across the engine.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(Enum):
    # === Not Found ===
    # missing student, question, rating bucket, or a vanished search selection
    NOT_FOUND = "NOT_FOUND"

    # === Constraint Violations ===
    # an id is already taken by another record
    DUPLICATE_ID = "DUPLICATE_ID"

    # === Validation Failures ===
    # required argument or attribute is missing
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"

    # field value is out of bounds or incorrectly formatted
    INVALID_FIELD_VALUE = "INVALID_FIELD_VALUE"

    # a bulk import row failed validation; the whole batch is rejected
    VALIDATION_FAILED = "VALIDATION_FAILED"

    # === Persistence ===
    # a snapshot or import file could not be parsed
    PARSE_ERROR = "PARSE_ERROR"

    # a file or database could not be read or written, safe to retry
    IO_ERROR = "IO_ERROR"

    # === State Restrictions ===
    # another save, load, or import is still in flight
    BUSY = "BUSY"

    # === Internal Faults ===
    INTERNAL_ERROR = "INTERNAL_ERROR"


class Response:
    """
    Standard Response object for gradebook manipulator and lookup methods.

    Attributes:
        success (bool): Indicates whether the operation succeeded.
        detail (str | None): Optional human-readable explanation.
        error (ErrorCode | str | None): Optional machine-readable error identifier.
        status_code (int | None): HTTP-style status: 200 on success, 400 by default on failure,
            404 for missing records, 409 when the store is busy.
        data (dict): Optional payload, varies by operation.
    """

    def __init__(
        self,
        success: bool,
        detail: str | None = None,
        error: ErrorCode | str | None = None,
        status_code: int | None = None,
        data: dict | None = None,
    ):
        self._success = success
        self._detail = detail
        self._error = error
        self._status_code = status_code
        self._data = data or {}

    # === properties ===

    @property
    def success(self) -> bool:
        return self._success

    @property
    def detail(self) -> str | None:
        return self._detail

    @property
    def error(self) -> ErrorCode | str | None:
        return self._error

    @property
    def status_code(self) -> int | None:
        return self._status_code

    @property
    def data(self) -> dict:
        return self._data

    @property
    def cancelled(self) -> bool:
        """
        True for the no-op response returned when a file selection was cancelled.
        """
        return self._success and self._data.get("cancelled", False)

    # === public classmethods ===

    @classmethod
    def succeed(
        cls,
        detail: str | None = None,
        status_code: int | None = 200,
        data: dict | None = None,
    ) -> Response:
        return cls(
            success=True,
            detail=detail,
            error=None,
            status_code=status_code,
            data=data,
        )

    @classmethod
    def fail(
        cls,
        detail: str | None = None,
        error: ErrorCode | str | None = None,
        status_code: int | None = 400,
        data: dict | None = None,
    ) -> Response:
        return cls(
            success=False,
            detail=detail,
            error=error,
            status_code=status_code,
            data=data,
        )

    # --- shortcuts ---

    @classmethod
    def cancel(cls, action: str) -> Response:
        return cls.succeed(detail=f"{action} cancelled.", data={"cancelled": True})

    @classmethod
    def not_found(cls, detail: str) -> Response:
        return cls.fail(detail=detail, error=ErrorCode.NOT_FOUND, status_code=404)

    @classmethod
    def busy(cls, e: Exception) -> Response:
        return cls.fail(detail=str(e), error=ErrorCode.BUSY, status_code=409)

    @classmethod
    def invalid_field(cls, e: Exception) -> Response:
        return cls.fail(detail=f"Invalid field value: {e}", error=ErrorCode.INVALID_FIELD_VALUE)

    # === dunder methods ===

    def __str__(self) -> str:
        if self.success:
            return f"Success: {self.detail or ''}"
        else:
            error_str = (
                self.error.value if isinstance(self.error, Enum) else self.error or ""
            )
            return f"Error: {error_str} {self.detail or ''}".rstrip()
