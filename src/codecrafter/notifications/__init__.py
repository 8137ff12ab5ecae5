"""Notification rendering and best-effort delivery."""

from __future__ import annotations

from codecrafter.notifications.dispatcher import NotificationDispatcher, Notifier
from codecrafter.notifications.templates import EmailRenderer, RenderedEmail

__all__ = [
    "EmailRenderer",
    "NotificationDispatcher",
    "Notifier",
    "RenderedEmail",
]
