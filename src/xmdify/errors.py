"""Error hierarchy for the xmdify package.

Every public error class inherits from :class:`XmdifyError`.  Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

Rendering itself never raises for bad data: these errors surface from the
X API transport and the tweet lookup, where the referenced-tweet resolver
catches them per item.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error the package can raise."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    PERMISSION_ERROR = "PERMISSION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    RETRY_EXHAUSTED = "RETRY_EXHAUSTED"
    NETWORK_ERROR = "NETWORK_ERROR"
    LOOKUP_ERROR = "LOOKUP_ERROR"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class XmdifyError(Exception):
    """Base exception for all xmdify errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


class _CodedError(XmdifyError):
    """Shared constructor for subclasses bound to a single error code."""

    _code: ErrorCode

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=self._code,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# API / transport errors
# ---------------------------------------------------------------------------

class XmdifyValidationError(_CodedError):
    """X API returned 400 or another non-retryable 4xx.

    Context keys: ``status_code``, ``body``.
    """

    _code = ErrorCode.VALIDATION_ERROR


class XmdifyAuthError(_CodedError):
    """X API returned 401 -- the session cookies are missing or expired."""

    _code = ErrorCode.AUTH_ERROR


class XmdifyPermissionError(_CodedError):
    """X API returned 403 -- the session may not read the resource.

    Context keys: ``operation``.
    """

    _code = ErrorCode.PERMISSION_ERROR


class XmdifyNotFoundError(_CodedError):
    """The requested tweet does not exist or is unavailable.

    Context keys: ``resource_type``, ``resource_id``.
    """

    _code = ErrorCode.NOT_FOUND


class XmdifyRetryExhaustedError(_CodedError):
    """All retry attempts have been exhausted for a retryable request.

    Context keys: ``attempts``, ``last_status_code``.
    """

    _code = ErrorCode.RETRY_EXHAUSTED


class XmdifyNetworkError(_CodedError):
    """A transport-level failure occurred (timeout, DNS, connection reset).

    Context keys: ``url``, ``attempt``.
    """

    _code = ErrorCode.NETWORK_ERROR


class XmdifyLookupError(_CodedError):
    """A lookup response was received but could not be interpreted.

    Context keys: ``tweet_id``, ``typename``.
    """

    _code = ErrorCode.LOOKUP_ERROR
