"""Integration modules for external systems."""

from __future__ import annotations

from codecrafter.integrations.emailjs import EmailJSClient, EmailMessage

__all__ = [
    "EmailJSClient",
    "EmailMessage",
]
