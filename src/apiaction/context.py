r"""Execution context and pipeline driver of an API action.

An ``ApiActionContext`` is created for every call of an API method. It
carries the state of the call and runs the four phases of the pipeline:

1. prepare: validate the parameters, then run the ``before_request``
   step of the method hooks, of the parameter hooks (in parameter order)
   and of the return hook;
2. begin: run the ``on_begin_request`` step of the global hooks, then of
   the method hooks;
3. dispatch: send the request under the merged cancellation signals and
   materialize the result. Errors raised here are captured in
   ``failure`` instead of being raised;
4. end: run the ``on_end_request`` step of the global hooks, then of the
   method hooks, whatever the outcome of the dispatch.

Errors raised by phases 1 and 2 propagate immediately: the dispatch and
phase 4 do not run.
"""

from __future__ import annotations

__all__ = ["ApiActionContext", "Failure", "Success"]

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar, get_origin

from apiaction.cancellation import CancellationSource
from apiaction.exceptions import (
    ApiActionError,
    MaterializationError,
    RequestCancelledError,
    ResultTypeError,
)
from apiaction.request import ApiRequest
from apiaction.validation import validate_parameter

if TYPE_CHECKING:
    import httpx

    from apiaction.cancellation import CancellationToken
    from apiaction.config import ApiConfig
    from apiaction.descriptors import ActionDescriptor

logger: logging.Logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Success:
    r"""Outcome of a dispatch that produced a result.

    Attributes:
        value: The result.
    """

    value: Any = None


@dataclass(frozen=True)
class Failure:
    r"""Outcome of a dispatch that captured an error.

    Attributes:
        error: The captured error.
    """

    error: Exception


class ApiActionContext:
    r"""State of one API call and driver of its execution.

    A context is used for a single call: ``execute_action`` can only be
    awaited once.

    Args:
        config: The configuration of the client. It is borrowed, not
            copied.
        descriptor: The method descriptor, bound to the call's argument
            values.

    Example:
        ```pycon
        >>> import asyncio
        >>> from unittest.mock import AsyncMock, Mock
        >>> import httpx
        >>> from apiaction import ApiActionContext, ApiConfig, ActionDescriptorBuilder
        >>> from apiaction.hooks import HttpMethod, TextReturn
        >>> transport = Mock(send=AsyncMock(return_value=httpx.Response(200, text="pong")))
        >>> descriptor = (
        ...     ActionDescriptorBuilder("ping")
        ...     .hook(HttpMethod("GET", "/ping"))
        ...     .returns(TextReturn(), str)
        ...     .build()
        ... )
        >>> context = ApiActionContext(ApiConfig(transport=transport), descriptor.bind())
        >>> asyncio.run(context.execute_action(str))
        'pong'

        ```
    """

    def __init__(self, config: ApiConfig, descriptor: ActionDescriptor) -> None:
        self.config = config
        self.descriptor = descriptor
        self.request: ApiRequest | None = None
        self.response: httpx.Response | None = None
        self.outcome: Success | Failure | None = None
        self._tags: dict[Any, Any] | None = None
        self._cancellation_signals: list[CancellationToken] | None = None
        self._owned_sources: list[CancellationSource] = []
        self._executed = False

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(action={self.descriptor.name!r}, outcome={self.outcome!r})"

    @property
    def tags(self) -> dict[Any, Any]:
        r"""Free-form storage shared by the hooks of this call."""
        if self._tags is None:
            self._tags = {}
        return self._tags

    @property
    def cancellation_signals(self) -> list[CancellationToken]:
        r"""Tokens merged into the cancellation of the dispatch.

        Tokens appended once the dispatch has started are ignored.
        """
        if self._cancellation_signals is None:
            self._cancellation_signals = []
        return self._cancellation_signals

    def add_cancellation_source(self, source: CancellationSource) -> None:
        r"""Add the token of a source created for this call to the
        cancellation signals.

        The context closes the source when ``execute_action`` exits,
        whichever phase it exits from, which releases its timer.

        Args:
            source: The source owned by the call.
        """
        self._owned_sources.append(source)
        self.cancellation_signals.append(source.token)

    @property
    def result(self) -> Any:
        r"""The result of the call, or ``None`` if there is none yet or
        if the dispatch failed."""
        if isinstance(self.outcome, Success):
            return self.outcome.value
        return None

    @result.setter
    def result(self, value: Any) -> None:
        self.outcome = Success(value)

    @property
    def failure(self) -> Exception | None:
        r"""The captured error, or ``None``.

        Setting it to ``None`` clears a captured error and leaves a
        ``None`` result that can be replaced through ``result``.
        """
        if isinstance(self.outcome, Failure):
            return self.outcome.error
        return None

    @failure.setter
    def failure(self, error: Exception | None) -> None:
        if error is not None:
            self.outcome = Failure(error)
        elif isinstance(self.outcome, Failure):
            self.outcome = Success(None)

    async def execute_action(self, expected_type: type[T] | Any = None) -> T:
        r"""Run the pipeline and return the result of the call.

        Args:
            expected_type: The type of result expected by the caller, or
                ``None`` to skip the type check.

        Returns:
            The result of the call.

        Raises:
            ValidationError: If a parameter value violates a constraint.
            ResultTypeError: If ``expected_type`` disagrees with the
                declared return type or with the result.
            RuntimeError: If the context was already executed.
            Exception: The error raised by a hook in phases 1, 2 or 4,
                or the error captured during the dispatch.
        """
        if self._executed:
            msg = f"the context of action '{self.descriptor.name}' was already executed"
            raise RuntimeError(msg)
        self._executed = True

        try:
            await self._prepare_request()
            await self._run_hooks("on_begin_request")
            await self._dispatch()
            await self._run_hooks("on_end_request")
        finally:
            for source in self._owned_sources:
                source.close()
        return self._get_result(expected_type)

    async def _prepare_request(self) -> None:
        descriptor = self.descriptor
        if self.config.validate_parameters:
            for parameter in descriptor.parameters:
                validate_parameter(parameter, self.config.validate_properties)

        if self.request is None:
            self.request = ApiRequest()
        logger.debug(f"Preparing the request of action '{descriptor.name}'")
        for hook in descriptor.hooks:
            await hook.before_request(self)
        for parameter in descriptor.parameters:
            for parameter_hook in parameter.hooks:
                await parameter_hook.before_request(self, parameter)
        await descriptor.returns.hook.before_request(self)
        # raises HookError for a placeholder without a value
        self.request.resolved_url()

    async def _run_hooks(self, step: str) -> None:
        for hook in (*self.config.global_hooks, *self.descriptor.hooks):
            await getattr(hook, step)(self)

    async def _dispatch(self) -> None:
        signals = tuple(self._cancellation_signals or ())
        with CancellationSource.linked(signals) as cancellation:
            try:
                if cancellation.is_cancelled:
                    raise RequestCancelledError(
                        message=f"action '{self.descriptor.name}' was cancelled before dispatch",
                        method=self.request.method,
                        url=self.request.url,
                    )
                self.response = await self.config.transport.send(self.request, cancellation.token)
                self.result = await self._materialize()
            except Exception as exc:
                logger.debug(
                    f"Action '{self.descriptor.name}' captured a failure "
                    f"({getattr(exc, 'kind', type(exc).__name__)}): {exc}"
                )
                self.failure = exc

    async def _materialize(self) -> Any:
        try:
            return await self.descriptor.returns.hook.materialize(self)
        except ApiActionError:
            raise
        except Exception as exc:
            msg = f"cannot materialize the result of action '{self.descriptor.name}': {exc}"
            raise MaterializationError(msg, response=self.response, cause=exc) from exc

    def _get_result(self, expected_type: Any) -> Any:
        if isinstance(self.outcome, Failure):
            raise self.outcome.error
        value = self.result
        if expected_type is None:
            return value
        declared = self.descriptor.returns.return_type
        if declared is not None and not _is_compatible(declared, expected_type):
            raise ResultTypeError(expected_type, declared)
        if value is not None and not _is_instance(value, expected_type):
            raise ResultTypeError(expected_type, type(value))
        return value


def _is_compatible(declared: Any, expected: Any) -> bool:
    if declared is Any or expected is Any:
        return True
    declared_origin = get_origin(declared) or declared
    expected_origin = get_origin(expected) or expected
    if isinstance(declared_origin, type) and isinstance(expected_origin, type):
        return issubclass(declared_origin, expected_origin)
    return declared == expected


def _is_instance(value: Any, expected: Any) -> bool:
    if expected is Any:
        return True
    origin = get_origin(expected) or expected
    if isinstance(origin, type):
        return isinstance(value, origin)
    return True
