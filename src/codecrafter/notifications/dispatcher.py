"""Best-effort, detached notification delivery.

The workflow never waits on email. NotificationDispatcher schedules each
delivery as its own asyncio task after the authoritative state change has
committed. A failed delivery is logged for that recipient and dropped;
nothing is retried and nothing is raised back into workflow code.

An optional ``on_sent`` callback runs only after a confirmed delivery. The
workflow uses it to record bookkeeping flags such as
``client_notified_of_new_application``.

Example:
    >>> dispatcher = NotificationDispatcher(EmailJSClient(config.email))
    >>> dispatcher.dispatch("dev@example.com", "You're hired", "<p>...</p>")
    >>> await dispatcher.drain()  # at shutdown
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Protocol

import structlog

from codecrafter.errors import NotificationFailedError

logger = structlog.get_logger(__name__)

SentCallback = Callable[[], Awaitable[None]]


class Notifier(Protocol):
    """Anything that can deliver a transactional message."""

    async def notify(
        self, to_address: str, subject: str, body_html: str, reply_to: str | None = None
    ) -> None:
        """Deliver a message, raising NotificationFailedError on confirmed failure."""
        ...


class NotificationDispatcher:
    """Runs notifier calls as detached tasks and contains their failures.

    Attributes:
        notifier: Transport used for delivery.
    """

    def __init__(self, notifier: Notifier) -> None:
        self.notifier = notifier
        self.logger = logger.bind(component="NotificationDispatcher")
        self._pending: set[asyncio.Task[bool]] = set()

    @property
    def pending_count(self) -> int:
        """Number of deliveries still in flight."""
        return len(self._pending)

    def dispatch(
        self,
        to_address: str,
        subject: str,
        body_html: str,
        on_sent: SentCallback | None = None,
        reply_to: str | None = None,
    ) -> asyncio.Task[bool]:
        """Schedule a delivery and return immediately.

        Must be called from within a running event loop.

        Args:
            to_address: Recipient email address.
            subject: Message subject line.
            body_html: Rendered HTML body.
            on_sent: Coroutine function awaited after confirmed delivery.
            reply_to: Address replies should go to; defaults to the recipient.

        Returns:
            The delivery task; it resolves to True on confirmed delivery.
        """
        task = asyncio.create_task(
            self._deliver(to_address, subject, body_html, on_sent, reply_to),
            name=f"notify:{to_address}",
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _deliver(
        self,
        to_address: str,
        subject: str,
        body_html: str,
        on_sent: SentCallback | None,
        reply_to: str | None,
    ) -> bool:
        try:
            await self.notifier.notify(to_address, subject, body_html, reply_to=reply_to)
        except NotificationFailedError as exc:
            self.logger.warning(
                "notification_failed",
                to=to_address,
                subject=subject,
                reason=exc.reason,
            )
            return False
        except Exception as exc:
            self.logger.error(
                "notification_failed",
                to=to_address,
                subject=subject,
                reason=str(exc),
                error_type=type(exc).__name__,
            )
            return False

        self.logger.info("notification_sent", to=to_address, subject=subject)

        if on_sent is not None:
            try:
                await on_sent()
            except Exception as exc:
                # Delivery succeeded; only the bookkeeping is lost
                self.logger.warning(
                    "notification_bookkeeping_failed",
                    to=to_address,
                    subject=subject,
                    error=str(exc),
                )
        return True

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for in-flight deliveries to finish.

        Args:
            timeout: Maximum seconds to wait; deliveries still running after
                     that are left to finish on their own.
        """
        if not self._pending:
            return

        pending = list(self._pending)
        done, still_running = await asyncio.wait(pending, timeout=timeout)
        if still_running:
            self.logger.warning(
                "notification_drain_timeout",
                completed=len(done),
                still_running=len(still_running),
            )
