r"""Built-in method-level and global hooks."""

from __future__ import annotations

__all__ = ["Header", "HttpMethod", "LoggingHook", "Timeout"]

import logging
import time
from typing import TYPE_CHECKING

from apiaction.cancellation import CancellationSource
from apiaction.hooks.base import ActionHook
from apiaction.utils.structured_logging import log_structured

if TYPE_CHECKING:
    from apiaction.context import ApiActionContext

logger: logging.Logger = logging.getLogger("apiaction.hooks")


class HttpMethod(ActionHook):
    r"""Set the HTTP method and the URL template of the request.

    Args:
        method: The HTTP method (e.g. ``"GET"``).
        path: The URL template, absolute or relative to the client base
            URL. ``{name}`` placeholders are filled by ``PathParam``
            hooks. If ``None``, the URL is left unchanged.
    """

    def __init__(self, method: str, path: str | None = None) -> None:
        self.method = method.upper()
        self.path = path

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(method={self.method!r}, path={self.path!r})"

    async def before_request(self, context: ApiActionContext) -> None:
        context.request.method = self.method
        if self.path is not None:
            context.request.url = self.path


class Header(ActionHook):
    r"""Add a static header to the request.

    Args:
        name: The header name.
        value: The header value.
    """

    def __init__(self, name: str, value: str) -> None:
        self.name = name
        self.value = value

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(name={self.name!r}, value={self.value!r})"

    async def before_request(self, context: ApiActionContext) -> None:
        context.request.add_header(self.name, self.value)


class Timeout(ActionHook):
    r"""Cancel the dispatch if it takes longer than a delay.

    The timer starts when the hook's ``on_begin_request`` step runs. The
    context owns the timer and releases it when the call exits, even if
    a later hook aborts the call before the dispatch. An expired timer
    is reported as a ``RequestCancelledError``.

    Args:
        seconds: The delay in seconds. Must be > 0.

    Raises:
        ValueError: If ``seconds`` is not positive.
    """

    def __init__(self, seconds: float) -> None:
        if seconds <= 0:
            msg = f"seconds must be > 0, got {seconds}"
            raise ValueError(msg)
        self.seconds = seconds

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(seconds={self.seconds})"

    async def on_begin_request(self, context: ApiActionContext) -> None:
        source = CancellationSource()
        source.cancel_after(self.seconds)
        context.add_cancellation_source(source)


class LoggingHook(ActionHook):
    r"""Log the prepared request and the outcome of every action.

    The records carry structured fields (``action``, ``method``, ``url``,
    ``status_code``, ``error_kind``, ``duration_ms``) that
    ``StructuredFormatter`` renders as JSON.

    Args:
        level: The log level of the records. Failures are logged at
            ``WARNING`` or above.
    """

    def __init__(self, level: int = logging.DEBUG) -> None:
        self.level = level

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(level={self.level})"

    async def on_begin_request(self, context: ApiActionContext) -> None:
        context.tags[self] = time.perf_counter()
        request = context.request
        log_structured(
            logger,
            self.level,
            f"Action '{context.descriptor.name}' sending {request.method} {request.url}",
            action=context.descriptor.name,
            method=request.method,
            url=request.url,
        )

    async def on_end_request(self, context: ApiActionContext) -> None:
        started = context.tags.pop(self, None)
        duration_ms = None if started is None else (time.perf_counter() - started) * 1000
        status_code = None if context.response is None else context.response.status_code
        failure = context.failure
        if failure is None:
            log_structured(
                logger,
                self.level,
                f"Action '{context.descriptor.name}' succeeded",
                action=context.descriptor.name,
                status_code=status_code,
                duration_ms=duration_ms,
            )
            return
        kind = getattr(failure, "kind", type(failure).__name__)
        log_structured(
            logger,
            max(self.level, logging.WARNING),
            f"Action '{context.descriptor.name}' failed ({kind}): {failure}",
            action=context.descriptor.name,
            status_code=status_code,
            error_kind=kind,
            duration_ms=duration_ms,
        )
