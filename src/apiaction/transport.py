r"""Transports that send the prepared request.

The pipeline only depends on the ``Transport`` protocol.
``HttpxTransport`` implements it on top of an ``httpx.AsyncClient`` and
honors the merged cancellation token while the request is in flight.
"""

from __future__ import annotations

__all__ = ["HttpxTransport", "Transport"]

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Protocol

import httpx

from apiaction.exceptions import RequestCancelledError, TransportError

if TYPE_CHECKING:
    from apiaction.cancellation import CancellationToken
    from apiaction.request import ApiRequest

logger: logging.Logger = logging.getLogger(__name__)


class Transport(Protocol):
    r"""Sends a prepared request."""

    async def send(
        self, request: ApiRequest, cancellation: CancellationToken
    ) -> httpx.Response:
        r"""Send the request.

        Args:
            request: The prepared request.
            cancellation: The token that aborts the call when cancelled.

        Returns:
            The response.

        Raises:
            RequestCancelledError: If ``cancellation`` is cancelled before
                the response is received.
            TransportError: If no response could be received.
        """


class HttpxTransport:
    r"""Transport backed by an ``httpx.AsyncClient``.

    The client is borrowed: the transport never closes it.

    Args:
        client: The client that sends the requests.

    Example:
        ```pycon
        >>> import asyncio
        >>> import httpx
        >>> from apiaction.cancellation import CancellationToken
        >>> from apiaction.request import ApiRequest
        >>> from apiaction.transport import HttpxTransport
        >>> async def main():
        ...     mock = httpx.MockTransport(lambda request: httpx.Response(200, text="ok"))
        ...     async with httpx.AsyncClient(transport=mock, base_url="https://api.example.com") as client:
        ...         transport = HttpxTransport(client)
        ...         response = await transport.send(ApiRequest(url="/ping"), CancellationToken.none())
        ...     return response.text
        ...
        >>> asyncio.run(main())
        'ok'

        ```
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        r"""The underlying httpx client."""
        return self._client

    async def send(
        self, request: ApiRequest, cancellation: CancellationToken
    ) -> httpx.Response:
        http_request = request.build(self._client)
        method, url = http_request.method, str(http_request.url)
        if cancellation.is_cancelled:
            raise _cancelled(method, url)

        logger.debug(f"Sending {method} request to {url}")
        send_task = asyncio.ensure_future(self._client.send(http_request))
        cancel_task = asyncio.ensure_future(cancellation.wait())
        try:
            await asyncio.wait({send_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            send_task.cancel()
            raise
        finally:
            cancel_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await cancel_task

        if not send_task.done():
            send_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await send_task
            logger.debug(f"{method} request to {url} was cancelled")
            raise _cancelled(method, url)

        try:
            response = send_task.result()
        except httpx.TimeoutException as exc:
            logger.debug(f"{method} request to {url} timed out: {exc}")
            raise TransportError(
                method=method,
                url=url,
                message=f"{method} request to {url} timed out",
                cause=exc,
            ) from exc
        except httpx.RequestError as exc:
            error_type = type(exc).__name__
            logger.debug(f"{method} request to {url} encountered {error_type}: {exc}")
            raise TransportError(
                method=method,
                url=url,
                message=f"{method} request to {url} failed: {exc}",
                cause=exc,
            ) from exc

        logger.debug(f"{method} request to {url} returned status {response.status_code}")
        return response


def _cancelled(method: str, url: str) -> RequestCancelledError:
    return RequestCancelledError(
        message=f"{method} request to {url} was cancelled",
        method=method,
        url=url,
    )
