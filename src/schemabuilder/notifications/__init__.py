"""Outbound user notifications."""

from schemabuilder.notifications.dispatcher import (
    ConsoleEmailBackend,
    EmailBackend,
    NotificationDispatcher,
    SmtpEmailBackend,
    build_email_backend,
)
from schemabuilder.notifications.templates import EmailMessage

__all__ = [
    "ConsoleEmailBackend",
    "EmailBackend",
    "EmailMessage",
    "NotificationDispatcher",
    "SmtpEmailBackend",
    "build_email_backend",
]
