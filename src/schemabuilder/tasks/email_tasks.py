"""Background email delivery."""

import smtplib
from typing import Any, Dict

from schemabuilder.core.config import get_settings
from schemabuilder.core.logging import get_logger
from schemabuilder.notifications.dispatcher import SmtpEmailBackend
from schemabuilder.notifications.templates import EmailMessage
from schemabuilder.tasks.celery_app import celery_app

logger = get_logger(__name__)


@celery_app.task(
    bind=True,
    autoretry_for=(smtplib.SMTPException, OSError),
    retry_backoff=True,
    max_retries=3,
)
def send_email(self, message: Dict[str, Any]) -> None:
    """
    Deliver a rendered email over SMTP.

    Args:
        message: Serialized ``EmailMessage`` (to, subject, html)
    """
    email = EmailMessage.from_dict(message)
    logger.info("Delivering queued email", to=email.to, subject=email.subject, attempt=self.request.retries)
    SmtpEmailBackend(get_settings().email).send_sync(email)
