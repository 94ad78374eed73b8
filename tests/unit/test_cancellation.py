r"""Unit tests for cancellation sources and tokens."""

from __future__ import annotations

import asyncio
from unittest.mock import Mock

import pytest

from apiaction.cancellation import CancellationSource, CancellationToken
from apiaction.exceptions import RequestCancelledError

########################################
#     Tests for CancellationToken      #
########################################


def test_none_token_is_never_cancelled() -> None:
    """Test that the none token cannot be cancelled."""
    token = CancellationToken.none()
    assert not token.can_be_cancelled
    assert not token.is_cancelled
    token.raise_if_cancelled()


def test_none_token_register_returns_noop() -> None:
    """Test that registering on the none token never calls back."""
    callback = Mock()
    unregister = CancellationToken.none().register(callback)
    unregister()
    callback.assert_not_called()


def test_token_raise_if_cancelled() -> None:
    """Test that a cancelled token raises RequestCancelledError."""
    source = CancellationSource()
    source.cancel()
    with pytest.raises(RequestCancelledError):
        source.token.raise_if_cancelled()


def test_token_repr() -> None:
    """Test the token representation."""
    assert repr(CancellationSource().token) == "CancellationToken(is_cancelled=False)"


@pytest.mark.asyncio
async def test_token_wait_returns_when_cancelled() -> None:
    """Test that wait returns once the source is cancelled."""
    source = CancellationSource()
    waiter = asyncio.ensure_future(source.token.wait())
    await asyncio.sleep(0)
    assert not waiter.done()
    source.cancel()
    await asyncio.wait_for(waiter, timeout=1.0)
    assert waiter.done()


@pytest.mark.asyncio
async def test_token_wait_already_cancelled() -> None:
    """Test that wait returns immediately for a cancelled token."""
    source = CancellationSource()
    source.cancel()
    await asyncio.wait_for(source.token.wait(), timeout=1.0)


@pytest.mark.asyncio
async def test_none_token_wait_blocks() -> None:
    """Test that waiting on the none token only ends by cancellation."""
    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(CancellationToken.none().wait(), timeout=0.01)


@pytest.mark.asyncio
async def test_token_wait_unregisters_on_exit() -> None:
    """Test that an abandoned wait leaves no callback behind."""
    source = CancellationSource()
    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(source.token.wait(), timeout=0.01)
    assert source._callbacks == {}


########################################
#     Tests for CancellationSource     #
########################################


def test_source_cancel_runs_callbacks_in_order() -> None:
    """Test that cancel runs the callbacks once, in registration order."""
    source = CancellationSource()
    calls = []
    source.token.register(lambda: calls.append(1))
    source.token.register(lambda: calls.append(2))
    source.cancel()
    source.cancel()
    assert calls == [1, 2]
    assert source.is_cancelled


def test_source_unregister() -> None:
    """Test that an unregistered callback is not called."""
    source = CancellationSource()
    callback = Mock()
    unregister = source.token.register(callback)
    unregister()
    source.cancel()
    callback.assert_not_called()


def test_source_register_after_cancel_calls_immediately() -> None:
    """Test that registering on a cancelled token calls back at once."""
    source = CancellationSource()
    source.cancel()
    callback = Mock()
    source.token.register(callback)
    callback.assert_called_once_with()


def test_source_context_manager_closes() -> None:
    """Test that the context manager closes the source."""
    with CancellationSource() as source:
        assert not source.closed
    assert source.closed


@pytest.mark.asyncio
async def test_source_cancel_after() -> None:
    """Test that cancel_after cancels the source once the delay
    elapsed."""
    source = CancellationSource()
    source.cancel_after(0.01)
    await asyncio.wait_for(source.token.wait(), timeout=1.0)
    assert source.is_cancelled


@pytest.mark.asyncio
async def test_source_close_releases_timer() -> None:
    """Test that closing the source drops its pending timer."""
    source = CancellationSource()
    source.cancel_after(0.01)
    source.close()
    await asyncio.sleep(0.05)
    assert not source.is_cancelled


def test_source_cancel_after_negative_delay() -> None:
    """Test that a negative delay is rejected."""
    with pytest.raises(ValueError, match=r"delay must be >= 0, got -1"):
        CancellationSource().cancel_after(-1)


####################################
#     Tests for linked sources     #
####################################


def test_linked_without_tokens() -> None:
    """Test that merging no token gives a source only cancelled
    directly."""
    with CancellationSource.linked([]) as merged:
        assert not merged.is_cancelled
        merged.cancel()
        assert merged.token.is_cancelled


def test_linked_follows_any_token() -> None:
    """Test that the merged source is cancelled by any input token."""
    first, second = CancellationSource(), CancellationSource()
    with CancellationSource.linked([first.token, second.token]) as merged:
        assert not merged.is_cancelled
        second.cancel()
        assert merged.is_cancelled


def test_linked_with_already_cancelled_token() -> None:
    """Test that the merged source starts cancelled if an input token is
    already cancelled."""
    first, second = CancellationSource(), CancellationSource()
    first.cancel()
    second.cancel()
    with CancellationSource.linked([CancellationToken.none(), first.token, second.token]) as merged:
        assert merged.is_cancelled


def test_linked_does_not_cancel_inputs() -> None:
    """Test that cancelling the merged source leaves the inputs alone."""
    first = CancellationSource()
    with CancellationSource.linked([first.token]) as merged:
        merged.cancel()
    assert not first.is_cancelled


def test_linked_close_unregisters_from_inputs() -> None:
    """Test that closing the merged source releases its registrations."""
    first = CancellationSource()
    merged = CancellationSource.linked([first.token])
    assert len(first._callbacks) == 1
    merged.close()
    assert first._callbacks == {}
    first.cancel()
    assert not merged.is_cancelled
