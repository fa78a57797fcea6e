"""Best-effort email dispatch.

Notifications are scheduled as background tasks once the calling flow has
committed its writes. Delivery failures are logged and never reach the
caller.
"""

import asyncio
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage as MimeMessage
from email.utils import formataddr
from typing import Set

from schemabuilder.core.config import EmailConfig
from schemabuilder.core.logging import get_logger
from schemabuilder.notifications import templates
from schemabuilder.notifications.templates import EmailMessage


class EmailBackend(ABC):
    """Delivers a rendered email."""

    @abstractmethod
    async def send(self, message: EmailMessage) -> None:
        pass


class ConsoleEmailBackend(EmailBackend):
    """Writes emails to the log instead of sending them."""

    def __init__(self, logger=None):
        self.logger = logger or get_logger(__name__)

    async def send(self, message: EmailMessage) -> None:
        self.logger.info("Email (console backend)", to=message.to, subject=message.subject)


class SmtpEmailBackend(EmailBackend):
    """Sends over SMTP from a worker thread."""

    def __init__(self, config: EmailConfig):
        self.config = config

    def build_mime(self, message: EmailMessage) -> MimeMessage:
        mime = MimeMessage()
        mime["From"] = formataddr((self.config.from_name, self.config.from_address))
        mime["To"] = message.to
        mime["Subject"] = message.subject
        mime.set_content("This message requires an HTML capable mail client.")
        mime.add_alternative(message.html, subtype="html")
        return mime

    def send_sync(self, message: EmailMessage) -> None:
        mime = self.build_mime(message)
        with smtplib.SMTP(self.config.host, self.config.port, timeout=self.config.timeout_seconds) as smtp:
            if self.config.use_tls:
                smtp.starttls()
            if self.config.username and self.config.password:
                smtp.login(self.config.username, self.config.password)
            smtp.send_message(mime)

    async def send(self, message: EmailMessage) -> None:
        await asyncio.to_thread(self.send_sync, message)


class CeleryEmailBackend(EmailBackend):
    """Hands emails to the background worker queue."""

    def __init__(self, task):
        self.task = task

    async def send(self, message: EmailMessage) -> None:
        await asyncio.to_thread(self.task.delay, message.to_dict())


def build_email_backend(config: EmailConfig, logger=None) -> EmailBackend:
    if config.backend == "smtp":
        return SmtpEmailBackend(config)
    if config.backend == "celery":
        from schemabuilder.tasks.email_tasks import send_email

        return CeleryEmailBackend(send_email)
    return ConsoleEmailBackend(logger)


class NotificationDispatcher:
    """Renders account emails and delivers them fire-and-forget."""

    def __init__(self, backend: EmailBackend, config: EmailConfig, code_ttl_minutes: int = 15, logger=None):
        self.backend = backend
        self.config = config
        self.code_ttl_minutes = code_ttl_minutes
        self.logger = logger or get_logger(__name__)
        self._pending: Set[asyncio.Task] = set()

    def send_verification_code(self, email: str, code: str) -> None:
        self.dispatch(templates.verification_email(email, code, self.code_ttl_minutes))

    def send_password_reset(self, email: str, code: str) -> None:
        self.dispatch(templates.password_reset_email(email, code, self.code_ttl_minutes))

    def send_welcome(self, email: str, first_name: str) -> None:
        self.dispatch(templates.welcome_email(email, first_name, self.config.frontend_url))

    def send_account_linked(self, email: str, first_name: str) -> None:
        self.dispatch(templates.account_linked_email(email, first_name))

    def dispatch(self, message: EmailMessage) -> None:
        """Schedule delivery on the running loop and return immediately."""
        task = asyncio.get_running_loop().create_task(self._deliver(message))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, message: EmailMessage) -> None:
        try:
            await self.backend.send(message)
            self.logger.info("Email sent", to=message.to, subject=message.subject)
        except Exception as e:
            self.logger.error(
                "Failed to send email", to=message.to, subject=message.subject, error=str(e), exc_info=True
            )

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for all scheduled deliveries to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))
