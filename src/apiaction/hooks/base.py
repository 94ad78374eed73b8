r"""Base classes of the hooks invoked by the execution pipeline.

The pipeline knows three kinds of hooks:

- ``ActionHook``: attached to a method descriptor or registered
  globally on the configuration. Method-level hooks take part in the
  prepare phase (``before_request``) and in the interception layer
  around the dispatch (``on_begin_request``/``on_end_request``). Global
  hooks only take part in the interception layer.
- ``ParameterHook``: attached to a parameter descriptor. Runs during the
  prepare phase with the parameter it is attached to.
- ``ReturnHook``: exactly one per method descriptor. Prepares the request
  for the expected response and turns the response into the result.

Every step is a coroutine and defaults to a no-op, so a hook overrides
only the steps it needs.
"""

from __future__ import annotations

__all__ = ["ActionHook", "ParameterHook", "ReturnHook"]

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from apiaction.context import ApiActionContext
    from apiaction.descriptors import ParameterDescriptor


class ActionHook:
    r"""Hook attached to a method or registered globally.

    Example:
        ```pycon
        >>> from apiaction.hooks import ActionHook
        >>> class Recorder(ActionHook):
        ...     async def on_end_request(self, context):
        ...         context.tags["seen_failure"] = context.failure is not None
        ...

        ```
    """

    async def before_request(self, context: ApiActionContext) -> None:
        r"""Edit the request during the prepare phase.

        Only called for method-level hooks.

        Args:
            context: The execution context.
        """

    async def on_begin_request(self, context: ApiActionContext) -> None:
        r"""Observe or edit the fully prepared request before it is
        dispatched.

        Args:
            context: The execution context.
        """

    async def on_end_request(self, context: ApiActionContext) -> None:
        r"""Observe or replace the outcome after the dispatch.

        Called whether the dispatch succeeded or captured a failure.

        Args:
            context: The execution context.
        """


class ParameterHook:
    r"""Hook attached to a parameter."""

    async def before_request(
        self, context: ApiActionContext, parameter: ParameterDescriptor
    ) -> None:
        r"""Edit the request from the value of ``parameter``.

        Args:
            context: The execution context.
            parameter: The parameter the hook is attached to, bound to
                the call's argument value.
        """


class ReturnHook(ABC):
    r"""Hook that turns the response into the result of the action."""

    async def before_request(self, context: ApiActionContext) -> None:
        r"""Edit the request for the expected response (e.g. ``Accept``).

        Args:
            context: The execution context.
        """

    @abstractmethod
    async def materialize(self, context: ApiActionContext) -> Any:
        r"""Produce the result from ``context.response``.

        Only called after the transport returned a response.

        Args:
            context: The execution context.

        Returns:
            The result of the action.
        """
