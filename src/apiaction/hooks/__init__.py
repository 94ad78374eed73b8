r"""Hook interfaces and built-in hooks."""

from __future__ import annotations

__all__ = [
    "ActionHook",
    "CancellationParam",
    "FormField",
    "Header",
    "HeaderParam",
    "HttpMethod",
    "JsonBody",
    "JsonReturn",
    "LoggingHook",
    "ParameterHook",
    "PathParam",
    "QueryParam",
    "ResponseReturn",
    "ReturnHook",
    "TextReturn",
    "Timeout",
]

from apiaction.hooks.action import Header, HttpMethod, LoggingHook, Timeout
from apiaction.hooks.base import ActionHook, ParameterHook, ReturnHook
from apiaction.hooks.parameter import (
    CancellationParam,
    FormField,
    HeaderParam,
    JsonBody,
    PathParam,
    QueryParam,
)
from apiaction.hooks.returns import JsonReturn, ResponseReturn, TextReturn
