r"""Exceptions raised while executing an API action.

Every error raised by the pipeline derives from ``ApiActionError`` and
exposes a ``kind`` attribute that identifies its category. Errors that
wrap a lower level exception keep it in ``cause`` and chain it with
``raise ... from``.
"""

from __future__ import annotations

__all__ = [
    "ApiActionError",
    "HookError",
    "MaterializationError",
    "RequestCancelledError",
    "ResultTypeError",
    "TransportError",
    "ValidationError",
]

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import httpx


class ApiActionError(Exception):
    r"""Base class of all the errors raised by ``apiaction``."""

    kind: str = "ApiAction"


class ValidationError(ApiActionError):
    r"""Raised when a parameter value violates one of its constraints.

    Args:
        parameter: The name of the offending parameter. For property
            level checks, the dotted path to the property
            (e.g. ``"user.email"``).
        message: A description of the violated constraint.

    Example:
        ```pycon
        >>> from apiaction.exceptions import ValidationError
        >>> error = ValidationError("page", "must be >= 1, got 0")
        >>> error.parameter
        'page'
        >>> str(error)
        "invalid value for parameter 'page': must be >= 1, got 0"

        ```
    """

    kind = "Validation"

    def __init__(self, parameter: str, message: str) -> None:
        super().__init__(f"invalid value for parameter '{parameter}': {message}")
        self.parameter = parameter
        self.message = message


class HookError(ApiActionError):
    r"""Raised by a hook that cannot perform its step.

    Args:
        message: A descriptive error message.
        hook: The hook that failed, if known.
        cause: The underlying exception, if any.
    """

    kind = "Hook"

    def __init__(self, message: str, hook: Any = None, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hook = hook
        self.cause = cause


class TransportError(ApiActionError):
    r"""Raised when the transport cannot produce a response.

    Args:
        method: The HTTP method of the failed request.
        url: The URL of the failed request.
        message: A descriptive error message.
        cause: The underlying exception (typically an ``httpx.RequestError``).

    Example:
        ```pycon
        >>> from apiaction.exceptions import TransportError
        >>> error = TransportError(
        ...     method="GET",
        ...     url="https://api.example.com/items",
        ...     message="GET request to https://api.example.com/items failed: boom",
        ... )
        >>> error.method
        'GET'
        >>> error.kind
        'Transport'

        ```
    """

    kind = "Transport"

    def __init__(
        self,
        method: str,
        url: str,
        message: str,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.method = method
        self.url = url
        self.message = message
        self.cause = cause


class RequestCancelledError(ApiActionError):
    r"""Raised when the merged cancellation source fires before or during
    the transport call.

    Args:
        message: A descriptive error message.
        method: The HTTP method of the cancelled request, if known.
        url: The URL of the cancelled request, if known.
    """

    kind = "Cancelled"

    def __init__(
        self,
        message: str = "request was cancelled",
        method: str | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.method = method
        self.url = url


class MaterializationError(ApiActionError):
    r"""Raised when a return hook cannot turn a response into a value.

    Args:
        message: A descriptive error message.
        response: The response that could not be materialized.
        cause: The underlying exception, if any.
    """

    kind = "Materialization"

    def __init__(
        self,
        message: str,
        response: httpx.Response | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.response = response
        self.cause = cause

    @property
    def status_code(self) -> int | None:
        r"""The status code of the response, if any."""
        return None if self.response is None else self.response.status_code


class ResultTypeError(ApiActionError, TypeError):
    r"""Raised when the result does not match the type requested by the
    caller.

    Args:
        expected: The type requested by the caller.
        actual: The declared return type, or the type of the result.
    """

    kind = "ResultType"

    def __init__(self, expected: Any, actual: Any) -> None:
        super().__init__(f"expected a result of type {_type_name(expected)}, got {_type_name(actual)}")
        self.expected = expected
        self.actual = actual


def _type_name(tp: Any) -> str:
    return getattr(tp, "__qualname__", None) or repr(tp)
