r"""Asynchronous context manager client that executes API actions.

``AsyncApiClient`` owns the ``httpx.AsyncClient`` used as transport and
creates one ``ApiActionContext`` per call.
"""

from __future__ import annotations

__all__ = ["AsyncApiClient"]

import logging
from typing import TYPE_CHECKING, Any, TypeVar

import httpx

from apiaction.config import DEFAULT_TIMEOUT, ApiConfig
from apiaction.context import ApiActionContext
from apiaction.transport import HttpxTransport

if TYPE_CHECKING:
    from collections.abc import Iterable
    from types import TracebackType
    from typing import Self

    from apiaction.descriptors import ActionDescriptor
    from apiaction.hooks.base import ActionHook

logger: logging.Logger = logging.getLogger(__name__)

T = TypeVar("T")


class AsyncApiClient:
    r"""Asynchronous context manager that executes API actions.

    Args:
        base_url: The base URL of the relative action URLs.
        config: Optional ApiConfig whose validation flags and global
            hooks are used. Its transport is replaced by one backed by
            the client's own ``httpx.AsyncClient``.
        timeout: Maximum seconds to wait for server responses. Must be > 0.
        global_hooks: Hooks appended to the global hooks of ``config``.
        **client_kwargs: Additional keyword arguments passed to
            ``httpx.AsyncClient`` (e.g. ``headers``, ``transport``).

    Raises:
        ValueError: If ``timeout`` is a number <= 0.

    Example:
        ```pycon
        >>> import asyncio
        >>> from apiaction import ActionDescriptorBuilder, AsyncApiClient
        >>> from apiaction.hooks import HttpMethod, JsonReturn, PathParam
        >>> get_user = (
        ...     ActionDescriptorBuilder("get_user")
        ...     .hook(HttpMethod("GET", "/users/{user_id}"))
        ...     .parameter("user_id", PathParam(), annotation=int)
        ...     .returns(JsonReturn(), dict)
        ...     .build()
        ... )
        >>> async def main():  # doctest: +SKIP
        ...     async with AsyncApiClient("https://api.example.com") as client:
        ...         return await client.invoke(get_user, 42, expected_type=dict)
        ...
        >>> asyncio.run(main())  # doctest: +SKIP

        ```
    """

    def __init__(
        self,
        base_url: str | httpx.URL = "",
        *,
        config: ApiConfig | None = None,
        timeout: float | httpx.Timeout = DEFAULT_TIMEOUT,
        global_hooks: Iterable[ActionHook] = (),
        **client_kwargs: Any,
    ) -> None:
        if isinstance(timeout, (int, float)) and timeout <= 0:
            msg = f"timeout must be > 0, got {timeout}"
            raise ValueError(msg)
        self._base_url = base_url
        self._timeout = timeout
        self._client_kwargs = client_kwargs
        self._template = config
        self._global_hooks = tuple(global_hooks)

        self._client: httpx.AsyncClient | None = None
        self._config: ApiConfig | None = None

    async def __aenter__(self) -> Self:
        r"""Create the underlying httpx client and the configuration.

        Returns:
            The client.
        """
        self._client = httpx.AsyncClient(
            base_url=self._base_url, timeout=self._timeout, **self._client_kwargs
        )
        transport = HttpxTransport(self._client)
        if self._template is None:
            config = ApiConfig(transport=transport)
        else:
            config = self._template.merge(transport=transport)
        self._config = config.with_hooks(*self._global_hooks)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        r"""Close the underlying httpx client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        self._config = None

    @property
    def config(self) -> ApiConfig:
        r"""The configuration shared by the actions of this client.

        Raises:
            RuntimeError: If used outside of the context manager.
        """
        if self._config is None:
            msg = "AsyncApiClient must be used within an async context manager (async with statement)"
            raise RuntimeError(msg)
        return self._config

    def create_context(
        self, descriptor: ActionDescriptor, *args: Any, **kwargs: Any
    ) -> ApiActionContext:
        r"""Create the context of one call.

        Callers that need to add cancellation signals or tags before
        the execution use this method and then await
        ``context.execute_action()`` themselves.

        Args:
            descriptor: The unbound method descriptor.
            *args: The positional arguments of the call.
            **kwargs: The keyword arguments of the call.

        Returns:
            A fresh context.

        Raises:
            RuntimeError: If used outside of the context manager.
            TypeError: If the arguments do not match the descriptor.
        """
        return ApiActionContext(self.config, descriptor.bind(*args, **kwargs))

    async def invoke(
        self,
        descriptor: ActionDescriptor,
        *args: Any,
        expected_type: type[T] | Any = None,
        **kwargs: Any,
    ) -> T:
        r"""Execute an action.

        Args:
            descriptor: The unbound method descriptor.
            *args: The positional arguments of the call.
            expected_type: The type of result expected by the caller.
            **kwargs: The keyword arguments of the call.

        Returns:
            The result of the action.

        Raises:
            RuntimeError: If used outside of the context manager.
        """
        context = self.create_context(descriptor, *args, **kwargs)
        logger.debug(f"Invoking action '{descriptor.name}'")
        return await context.execute_action(expected_type)
