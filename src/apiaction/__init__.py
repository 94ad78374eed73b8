r"""apiaction - Request-execution pipeline for declarative HTTP API clients.

An API method is described once by an ``ActionDescriptor``: its
parameters, the hooks attached to the method and to each parameter, and
the hook that turns the response into a result. Each call runs through an
``ApiActionContext`` which prepares the request, runs the interception
hooks, dispatches the request with cooperative cancellation and returns a
typed result or raises the captured failure.

Key Features:
    - Deterministic hook ordering: method, parameter and return hooks
      during preparation, then global and method hooks around the dispatch
    - Parameter validation with optional checks of dataclass fields
    - Cancellation signals merged into one source at dispatch time
    - Dispatch failures observed by every end hook before being raised
    - Built on top of httpx

Example:
    ```pycon
    >>> import asyncio
    >>> from apiaction import ActionDescriptorBuilder, AsyncApiClient
    >>> from apiaction.hooks import HttpMethod, JsonReturn, LoggingHook, QueryParam
    >>> search = (
    ...     ActionDescriptorBuilder("search")
    ...     .hook(HttpMethod("GET", "/search"))
    ...     .parameter("q", QueryParam())
    ...     .returns(JsonReturn(), dict)
    ...     .build()
    ... )
    >>> async def main():  # doctest: +SKIP
    ...     async with AsyncApiClient(
    ...         "https://api.example.com", global_hooks=[LoggingHook()]
    ...     ) as client:
    ...         return await client.invoke(search, "httpx", expected_type=dict)
    ...
    >>> asyncio.run(main())  # doctest: +SKIP

    ```
"""

from __future__ import annotations

__all__ = [
    "ActionDescriptor",
    "ActionDescriptorBuilder",
    "ApiActionContext",
    "ApiActionError",
    "ApiConfig",
    "ApiRequest",
    "AsyncApiClient",
    "CancellationSource",
    "CancellationToken",
    "HookError",
    "HttpxTransport",
    "MaterializationError",
    "ParameterDescriptor",
    "RequestCancelledError",
    "ResultTypeError",
    "ReturnDescriptor",
    "TransportError",
    "ValidationError",
    "__version__",
]

from importlib.metadata import PackageNotFoundError, version

from apiaction.cancellation import CancellationSource, CancellationToken
from apiaction.client import AsyncApiClient
from apiaction.config import ApiConfig
from apiaction.context import ApiActionContext
from apiaction.descriptors import (
    ActionDescriptor,
    ActionDescriptorBuilder,
    ParameterDescriptor,
    ReturnDescriptor,
)
from apiaction.exceptions import (
    ApiActionError,
    HookError,
    MaterializationError,
    RequestCancelledError,
    ResultTypeError,
    TransportError,
    ValidationError,
)
from apiaction.request import ApiRequest
from apiaction.transport import HttpxTransport

try:
    __version__ = version(__name__)
except PackageNotFoundError:  # pragma: no cover
    # Package is not installed, fallback if needed
    __version__ = "0.0.0"
