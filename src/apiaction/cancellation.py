r"""Cooperative cancellation handles for API actions.

A ``CancellationSource`` is the write side of a cancellation signal and a
``CancellationToken`` its read side. Callers hand tokens to an action
through ``ApiActionContext.cancellation_signals``; right before the
transport call the context merges them into a single linked source.

Example:
    ```pycon
    >>> from apiaction.cancellation import CancellationSource
    >>> first, second = CancellationSource(), CancellationSource()
    >>> with CancellationSource.linked([first.token, second.token]) as merged:
    ...     second.cancel()
    ...     merged.token.is_cancelled
    ...
    True

    ```
"""

from __future__ import annotations

__all__ = ["CancellationSource", "CancellationToken"]

import asyncio
import logging
from typing import TYPE_CHECKING

from apiaction.exceptions import RequestCancelledError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from types import TracebackType
    from typing import Self

logger: logging.Logger = logging.getLogger(__name__)


def _noop() -> None:
    return None


class CancellationToken:
    r"""Read side of a cancellation signal.

    Tokens are created by a ``CancellationSource``. ``CancellationToken.none()``
    returns a token that is never cancelled.

    Args:
        source: The source that controls this token, or ``None`` for a
            token that can never be cancelled.
    """

    def __init__(self, source: CancellationSource | None = None) -> None:
        self._source = source

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(is_cancelled={self.is_cancelled})"

    @classmethod
    def none(cls) -> CancellationToken:
        r"""Return a token that is never cancelled."""
        return cls()

    @property
    def can_be_cancelled(self) -> bool:
        r"""``True`` if a source controls this token."""
        return self._source is not None

    @property
    def is_cancelled(self) -> bool:
        r"""``True`` once the controlling source has been cancelled."""
        return self._source is not None and self._source.is_cancelled

    def raise_if_cancelled(self) -> None:
        r"""Raise ``RequestCancelledError`` if the token is cancelled.

        Raises:
            RequestCancelledError: If the token is cancelled.
        """
        if self.is_cancelled:
            raise RequestCancelledError()

    def register(self, callback: Callable[[], None]) -> Callable[[], None]:
        r"""Register a callback invoked once when the token is cancelled.

        If the token is already cancelled, the callback is invoked
        immediately.

        Args:
            callback: The function to call on cancellation.

        Returns:
            A function that removes the registration.
        """
        if self._source is None:
            return _noop
        return self._source._register(callback)

    async def wait(self) -> None:
        r"""Wait until the token is cancelled.

        For a token that cannot be cancelled, this waits until the
        awaiting task is itself cancelled.
        """
        if self.is_cancelled:
            return
        waiter = asyncio.get_running_loop().create_future()

        def _wake() -> None:
            if not waiter.done():
                waiter.set_result(None)

        unregister = self.register(_wake)
        try:
            await waiter
        finally:
            unregister()


class CancellationSource:
    r"""Write side of a cancellation signal.

    The source must be released with ``close()`` (or by using it as a
    context manager) to drop its timer and its registrations on linked
    tokens.

    Example:
        ```pycon
        >>> from apiaction.cancellation import CancellationSource
        >>> source = CancellationSource()
        >>> source.token.is_cancelled
        False
        >>> source.cancel()
        >>> source.token.is_cancelled
        True

        ```
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._closed = False
        self._callbacks: dict[int, Callable[[], None]] = {}
        self._next_key = 0
        self._timer: asyncio.TimerHandle | None = None
        self._links: list[Callable[[], None]] = []
        self.token = CancellationToken(self)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(is_cancelled={self._cancelled}, "
            f"closed={self._closed})"
        )

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    @classmethod
    def linked(cls, tokens: Iterable[CancellationToken]) -> CancellationSource:
        r"""Create a source that is cancelled when any of ``tokens`` is.

        Args:
            tokens: The tokens to merge. With no tokens, the returned
                source is only cancelled by calling ``cancel()`` on it.

        Returns:
            The merged source. If one of the tokens is already
            cancelled, the source is returned already cancelled.
        """
        source = cls()
        for token in tokens:
            if token.is_cancelled:
                source.cancel()
                break
            source._links.append(token.register(source.cancel))
        return source

    @property
    def is_cancelled(self) -> bool:
        r"""``True`` once ``cancel()`` has been called."""
        return self._cancelled

    @property
    def closed(self) -> bool:
        r"""``True`` once ``close()`` has been called."""
        return self._closed

    def cancel(self) -> None:
        r"""Cancel the source and run the registered callbacks in
        registration order.

        Calling this method more than once has no further effect.
        """
        if self._cancelled:
            return
        self._cancelled = True
        callbacks = list(self._callbacks.values())
        self._callbacks.clear()
        logger.debug(f"Cancellation requested ({len(callbacks)} callback(s) registered)")
        for callback in callbacks:
            callback()

    def cancel_after(self, delay: float) -> None:
        r"""Schedule the cancellation of the source on the running loop.

        A previous schedule is replaced.

        Args:
            delay: The delay in seconds. Must be >= 0.

        Raises:
            ValueError: If ``delay`` is negative.
            RuntimeError: If there is no running event loop.
        """
        if delay < 0:
            msg = f"delay must be >= 0, got {delay}"
            raise ValueError(msg)
        if self._timer is not None:
            self._timer.cancel()
        self._timer = asyncio.get_running_loop().call_later(delay, self.cancel)

    def close(self) -> None:
        r"""Release the timer and the registrations on linked tokens."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        for unlink in self._links:
            unlink()
        self._links.clear()
        self._closed = True

    def _register(self, callback: Callable[[], None]) -> Callable[[], None]:
        if self._cancelled:
            callback()
            return _noop
        key = self._next_key
        self._next_key += 1
        self._callbacks[key] = callback

        def unregister() -> None:
            self._callbacks.pop(key, None)

        return unregister
