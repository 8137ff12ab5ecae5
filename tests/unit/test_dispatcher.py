"""Unit tests for the notification dispatcher."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from codecrafter.errors import NotificationFailedError
from codecrafter.notifications.dispatcher import NotificationDispatcher


@pytest.mark.asyncio
async def test_dispatch_delivers_and_runs_callback() -> None:
    notifier = AsyncMock()
    on_sent = AsyncMock()
    dispatcher = NotificationDispatcher(notifier)

    task = dispatcher.dispatch("dana@devs.test", "Hello", "<p>Hi</p>", on_sent=on_sent)
    assert await task is True

    notifier.notify.assert_awaited_once_with(
        "dana@devs.test", "Hello", "<p>Hi</p>", reply_to=None
    )
    on_sent.assert_awaited_once()
    assert dispatcher.pending_count == 0


@pytest.mark.asyncio
async def test_dispatch_passes_reply_to() -> None:
    notifier = AsyncMock()
    dispatcher = NotificationDispatcher(notifier)

    await dispatcher.dispatch(
        "ops@codecrafter.test", "New request", "<p>...</p>", reply_to="grace@clients.test"
    )

    notifier.notify.assert_awaited_once_with(
        "ops@codecrafter.test", "New request", "<p>...</p>", reply_to="grace@clients.test"
    )


@pytest.mark.asyncio
async def test_confirmed_failure_is_contained() -> None:
    notifier = AsyncMock()
    notifier.notify.side_effect = NotificationFailedError("dana@devs.test", "rejected")
    on_sent = AsyncMock()
    dispatcher = NotificationDispatcher(notifier)

    result = await dispatcher.dispatch("dana@devs.test", "Hello", "<p>Hi</p>", on_sent=on_sent)

    assert result is False
    on_sent.assert_not_awaited()


@pytest.mark.asyncio
async def test_unexpected_error_is_contained() -> None:
    notifier = AsyncMock()
    notifier.notify.side_effect = RuntimeError("socket closed")
    dispatcher = NotificationDispatcher(notifier)

    assert await dispatcher.dispatch("dana@devs.test", "Hello", "<p>Hi</p>") is False


@pytest.mark.asyncio
async def test_callback_failure_does_not_fail_delivery() -> None:
    notifier = AsyncMock()
    on_sent = AsyncMock(side_effect=RuntimeError("store down"))
    dispatcher = NotificationDispatcher(notifier)

    assert await dispatcher.dispatch("dana@devs.test", "Hello", "<p>Hi</p>", on_sent=on_sent) is True


@pytest.mark.asyncio
async def test_dispatch_returns_before_delivery() -> None:
    release = asyncio.Event()
    delivered: list[str] = []

    class SlowNotifier:
        async def notify(
            self, to_address: str, subject: str, body_html: str, reply_to: str | None = None
        ) -> None:
            await release.wait()
            delivered.append(to_address)

    dispatcher = NotificationDispatcher(SlowNotifier())
    dispatcher.dispatch("a@devs.test", "One", "<p>1</p>")
    dispatcher.dispatch("b@devs.test", "Two", "<p>2</p>")

    await asyncio.sleep(0)
    assert dispatcher.pending_count == 2
    assert delivered == []

    release.set()
    await dispatcher.drain()

    assert sorted(delivered) == ["a@devs.test", "b@devs.test"]
    assert dispatcher.pending_count == 0


@pytest.mark.asyncio
async def test_drain_timeout_leaves_slow_deliveries_running() -> None:
    release = asyncio.Event()

    class StuckNotifier:
        async def notify(
            self, to_address: str, subject: str, body_html: str, reply_to: str | None = None
        ) -> None:
            await release.wait()

    dispatcher = NotificationDispatcher(StuckNotifier())
    task = dispatcher.dispatch("a@devs.test", "One", "<p>1</p>")

    await dispatcher.drain(timeout=0.01)
    assert not task.done()

    release.set()
    assert await task is True


@pytest.mark.asyncio
async def test_drain_with_nothing_pending() -> None:
    await NotificationDispatcher(AsyncMock()).drain()
