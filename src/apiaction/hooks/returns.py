r"""Built-in return hooks.

Return hooks produce the result of an action from its response. With
``ensure_success=True`` (the default for ``JsonReturn`` and
``TextReturn``), a response whose status is not 2xx is reported as a
``MaterializationError`` carrying the response.
"""

from __future__ import annotations

__all__ = ["JsonReturn", "ResponseReturn", "TextReturn", "coerce"]

import dataclasses
import json
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, get_origin

from apiaction.exceptions import MaterializationError
from apiaction.hooks.base import ReturnHook

if TYPE_CHECKING:
    import httpx

    from apiaction.context import ApiActionContext

logger: logging.Logger = logging.getLogger(__name__)

_SCALARS = (int, float, str)


def coerce(value: Any, target: Any) -> Any:
    r"""Convert a decoded value to a target type.

    Supported conversions: ``int``, ``float``, ``str`` and ``bool``
    from scalars, and dataclasses from mappings. Values that are
    already instances of the target, and targets that are not classes,
    are returned unchanged.

    Args:
        value: The decoded value.
        target: The target type, or ``None``.

    Returns:
        The converted value.

    Raises:
        TypeError: If the value cannot be converted to the target type.
        ValueError: If a string cannot be parsed as the target type.

    Example:
        ```pycon
        >>> from apiaction.hooks.returns import coerce
        >>> coerce("42", int)
        42
        >>> coerce({"a": 1}, dict)
        {'a': 1}

        ```
    """
    if target is None or target is Any or value is None:
        return value
    origin = get_origin(target) or target
    if not isinstance(origin, type) or isinstance(value, origin):
        return value
    if dataclasses.is_dataclass(origin) and isinstance(value, Mapping):
        return origin(**value)
    if origin is bool and isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "1"}:
            return True
        if lowered in {"false", "0"}:
            return False
        msg = f"cannot convert {value!r} to bool"
        raise ValueError(msg)
    if origin is int and isinstance(value, float) and not value.is_integer():
        msg = f"cannot convert {value!r} to int without losing precision"
        raise ValueError(msg)
    if origin in _SCALARS and isinstance(value, (*_SCALARS, bool)):
        return origin(value.strip() if isinstance(value, str) and origin is not str else value)
    msg = f"cannot convert {type(value).__name__} to {origin.__qualname__}"
    raise TypeError(msg)


class _BodyReturn(ReturnHook):
    def __init__(self, ensure_success: bool = True) -> None:
        self.ensure_success = ensure_success

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(ensure_success={self.ensure_success})"

    def _checked_response(self, context: ApiActionContext) -> httpx.Response:
        response = context.response
        if self.ensure_success and not response.is_success:
            request = context.request
            logger.debug(
                f"{request.method} request to {request.url} failed with status {response.status_code}"
            )
            raise MaterializationError(
                f"{request.method} request to {request.url} failed with status {response.status_code}",
                response=response,
            )
        return response

    def _coerce(self, context: ApiActionContext, value: Any) -> Any:
        target = context.descriptor.returns.return_type
        try:
            return coerce(value, target)
        except (TypeError, ValueError) as exc:
            msg = f"cannot convert the response of action '{context.descriptor.name}': {exc}"
            raise MaterializationError(msg, response=context.response, cause=exc) from exc


class JsonReturn(_BodyReturn):
    r"""Decode the response body as JSON.

    Sets ``Accept: application/json`` unless the request already has an
    ``Accept`` header. The decoded value is converted to the declared
    return type with ``coerce``.

    Args:
        ensure_success: If ``True``, non-2xx responses are errors.
    """

    async def before_request(self, context: ApiActionContext) -> None:
        if "accept" not in context.request.headers:
            context.request.set_header("Accept", "application/json")

    async def materialize(self, context: ApiActionContext) -> Any:
        response = self._checked_response(context)
        try:
            value = response.json()
        except json.JSONDecodeError as exc:
            msg = f"the response of action '{context.descriptor.name}' is not valid JSON: {exc}"
            raise MaterializationError(msg, response=response, cause=exc) from exc
        return self._coerce(context, value)


class TextReturn(_BodyReturn):
    r"""Return the response body as text.

    The text is converted to the declared return type with ``coerce``,
    so a declared ``int`` parses the body as an integer.

    Args:
        ensure_success: If ``True``, non-2xx responses are errors.
    """

    async def materialize(self, context: ApiActionContext) -> Any:
        return self._coerce(context, self._checked_response(context).text)


class ResponseReturn(_BodyReturn):
    r"""Return the raw ``httpx.Response``.

    Args:
        ensure_success: If ``True``, non-2xx responses are errors.
    """

    def __init__(self, ensure_success: bool = False) -> None:
        super().__init__(ensure_success=ensure_success)

    async def materialize(self, context: ApiActionContext) -> httpx.Response:
        return self._checked_response(context)
