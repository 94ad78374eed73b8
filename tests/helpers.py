r"""Shared test doubles for hook ordering tests."""

from __future__ import annotations

__all__ = ["FailingHook", "RecordingHook", "RecordingParameterHook", "make_descriptor"]

from typing import TYPE_CHECKING, Any

from apiaction.descriptors import ActionDescriptorBuilder
from apiaction.hooks import ActionHook, ParameterHook, TextReturn

if TYPE_CHECKING:
    from apiaction.context import ApiActionContext
    from apiaction.descriptors import ActionDescriptor, ParameterDescriptor


class RecordingHook(ActionHook):
    """Action hook that appends ``(label, step)`` to a shared list."""

    def __init__(self, label: str, calls: list[Any]) -> None:
        self.label = label
        self.calls = calls

    async def before_request(self, context: ApiActionContext) -> None:
        self.calls.append((self.label, "before_request"))

    async def on_begin_request(self, context: ApiActionContext) -> None:
        self.calls.append((self.label, "on_begin_request"))

    async def on_end_request(self, context: ApiActionContext) -> None:
        self.calls.append((self.label, "on_end_request"))


class RecordingParameterHook(ParameterHook):
    """Parameter hook that appends ``(label, parameter name)`` to a shared
    list."""

    def __init__(self, label: str, calls: list[Any]) -> None:
        self.label = label
        self.calls = calls

    async def before_request(
        self, context: ApiActionContext, parameter: ParameterDescriptor
    ) -> None:
        self.calls.append((self.label, parameter.name))


class FailingHook(ActionHook):
    """Action hook that raises ``error`` from ``step``."""

    def __init__(self, step: str, error: Exception) -> None:
        self.step = step
        self.error = error

    async def before_request(self, context: ApiActionContext) -> None:
        if self.step == "before_request":
            raise self.error

    async def on_begin_request(self, context: ApiActionContext) -> None:
        if self.step == "on_begin_request":
            raise self.error

    async def on_end_request(self, context: ApiActionContext) -> None:
        if self.step == "on_end_request":
            raise self.error


def make_descriptor(*hooks: ActionHook, return_type: Any = int) -> ActionDescriptor:
    """Create a bound descriptor without parameters returning the body
    as ``return_type``."""
    return (
        ActionDescriptorBuilder("action")
        .hook(*hooks)
        .returns(TextReturn(), return_type)
        .build()
        .bind()
    )
