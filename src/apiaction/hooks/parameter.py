r"""Built-in parameter hooks.

Each hook writes the value bound to its parameter into one part of the
request. The name used in the request defaults to the parameter name.
``None`` values are skipped.
"""

from __future__ import annotations

__all__ = [
    "CancellationParam",
    "FormField",
    "HeaderParam",
    "JsonBody",
    "PathParam",
    "QueryParam",
]

import dataclasses
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from apiaction.cancellation import CancellationSource, CancellationToken
from apiaction.exceptions import HookError
from apiaction.hooks.base import ParameterHook

if TYPE_CHECKING:
    from apiaction.context import ApiActionContext
    from apiaction.descriptors import ParameterDescriptor


class _NamedParameterHook(ParameterHook):
    def __init__(self, name: str | None = None) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(name={self.name!r})"

    def _name(self, parameter: ParameterDescriptor) -> str:
        return self.name or parameter.name


class HeaderParam(_NamedParameterHook):
    r"""Add the value as a header.

    Args:
        name: The header name. Defaults to the parameter name.
    """

    async def before_request(
        self, context: ApiActionContext, parameter: ParameterDescriptor
    ) -> None:
        if parameter.value is None:
            return
        context.request.add_header(self._name(parameter), str(parameter.value))


class QueryParam(_NamedParameterHook):
    r"""Add the value to the query string.

    Lists, tuples and sets add one pair per item. Mappings and dataclass
    instances add one pair per key, ignoring the hook name.

    Args:
        name: The query parameter name. Defaults to the parameter name.
    """

    async def before_request(
        self, context: ApiActionContext, parameter: ParameterDescriptor
    ) -> None:
        value = parameter.value
        if value is None:
            return
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            value = dataclasses.asdict(value)
        if isinstance(value, Mapping):
            for key, item in value.items():
                if item is not None:
                    context.request.add_query(str(key), item)
        elif isinstance(value, (list, tuple, set, frozenset)):
            context.request.extend_query(self._name(parameter), value)
        else:
            context.request.add_query(self._name(parameter), value)


class PathParam(_NamedParameterHook):
    r"""Fill the ``{name}`` placeholder of the URL.

    Args:
        name: The placeholder name. Defaults to the parameter name.

    Raises:
        HookError: If the value is ``None``.
    """

    async def before_request(
        self, context: ApiActionContext, parameter: ParameterDescriptor
    ) -> None:
        if parameter.value is None:
            msg = f"path parameter '{self._name(parameter)}' must not be None"
            raise HookError(msg, hook=self)
        context.request.set_path_param(self._name(parameter), parameter.value)


class JsonBody(ParameterHook):
    r"""Send the value as a JSON body.

    Dataclass instances are converted with ``dataclasses.asdict``.
    """

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}()"

    async def before_request(
        self, context: ApiActionContext, parameter: ParameterDescriptor
    ) -> None:
        value = parameter.value
        if value is None:
            return
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            value = dataclasses.asdict(value)
        context.request.set_json(value)


class FormField(_NamedParameterHook):
    r"""Add the value as a form field.

    Mappings add one field per key, ignoring the hook name.

    Args:
        name: The field name. Defaults to the parameter name.
    """

    async def before_request(
        self, context: ApiActionContext, parameter: ParameterDescriptor
    ) -> None:
        value = parameter.value
        if value is None:
            return
        if isinstance(value, Mapping):
            for key, item in value.items():
                context.request.add_form_field(str(key), item)
        else:
            context.request.add_form_field(self._name(parameter), value)


class CancellationParam(ParameterHook):
    r"""Add the value to the cancellation signals of the call.

    The value may be a ``CancellationToken`` or a ``CancellationSource``.

    Raises:
        HookError: If the value is of another type.
    """

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}()"

    async def before_request(
        self, context: ApiActionContext, parameter: ParameterDescriptor
    ) -> None:
        value: Any = parameter.value
        if value is None:
            return
        if isinstance(value, CancellationSource):
            value = value.token
        if not isinstance(value, CancellationToken):
            msg = (
                f"parameter '{parameter.name}' must be a CancellationToken, "
                f"got {type(value).__name__}"
            )
            raise HookError(msg, hook=self)
        context.cancellation_signals.append(value)
