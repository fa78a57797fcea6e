"""Tests for email templates and dispatch."""

from unittest.mock import MagicMock, patch

import pytest

from schemabuilder.core.config import EmailConfig
from schemabuilder.notifications import templates
from schemabuilder.notifications.dispatcher import (
    CeleryEmailBackend,
    ConsoleEmailBackend,
    NotificationDispatcher,
    SmtpEmailBackend,
    build_email_backend,
)
from schemabuilder.notifications.templates import EmailMessage


class TestTemplates:
    """Test rendered account emails."""

    def test_verification_email(self):
        message = templates.verification_email("a@x.com", "042042", 15)

        assert message.to == "a@x.com"
        assert message.subject == "Verify Your Email - Schema Builder"
        assert "042042" in message.html
        assert "15 minutes" in message.html

    def test_password_reset_email(self):
        message = templates.password_reset_email("a@x.com", "123456", 30)

        assert message.subject == "Password Reset - Schema Builder"
        assert "123456" in message.html
        assert "30 minutes" in message.html

    def test_welcome_email(self):
        message = templates.welcome_email("a@x.com", "Ada", "https://app.example.com")

        assert message.subject == "Welcome to Schema Builder!"
        assert "Hi Ada," in message.html
        assert 'href="https://app.example.com"' in message.html

    def test_account_linked_email_without_name(self):
        message = templates.account_linked_email("a@x.com", "")

        assert message.subject == "Account Linked - Schema Builder"
        assert "Hi," in message.html

    def test_message_dict_round_trip(self):
        message = templates.welcome_email("a@x.com", "Ada", "http://localhost")
        assert EmailMessage.from_dict(message.to_dict()) == message


class TestNotificationDispatcher:
    """Test fire-and-forget delivery."""

    async def test_dispatch_delivers(self, notifications, email_backend):
        notifications.send_verification_code("a@x.com", "123456")
        notifications.send_password_reset("a@x.com", "654321")
        await notifications.drain()

        assert [m.subject for m in email_backend.messages] == [
            "Verify Your Email - Schema Builder",
            "Password Reset - Schema Builder",
        ]
        assert notifications.pending == 0

    async def test_dispatch_returns_before_delivery(self, notifications, email_backend):
        notifications.send_welcome("a@x.com", "Ada")

        assert notifications.pending == 1
        assert email_backend.messages == []
        await notifications.drain()
        assert len(email_backend.messages) == 1

    async def test_failures_are_swallowed(self, notifications, email_backend):
        email_backend.fail = True

        notifications.send_account_linked("a@x.com", "Ada")
        await notifications.drain()

        assert email_backend.messages == []
        assert notifications.pending == 0

    async def test_uses_configured_ttl(self, email_backend):
        dispatcher = NotificationDispatcher(email_backend, EmailConfig(), code_ttl_minutes=5)

        dispatcher.send_verification_code("a@x.com", "123456")
        await dispatcher.drain()

        assert "5 minutes" in email_backend.messages[0].html

    def test_dispatch_requires_running_loop(self, notifications):
        with pytest.raises(RuntimeError):
            notifications.send_welcome("a@x.com", "Ada")


class TestSmtpEmailBackend:
    """Test SMTP delivery."""

    @pytest.fixture
    def config(self):
        return EmailConfig(
            backend="smtp",
            host="smtp.example.com",
            port=2525,
            username="mailer",
            password="secret",
            from_address="no-reply@example.com",
        )

    def test_build_mime(self, config):
        message = templates.verification_email("a@x.com", "123456", 15)
        mime = SmtpEmailBackend(config).build_mime(message)

        assert mime["To"] == "a@x.com"
        assert mime["Subject"] == "Verify Your Email - Schema Builder"
        assert "no-reply@example.com" in mime["From"]
        assert mime.is_multipart()

    @patch("schemabuilder.notifications.dispatcher.smtplib.SMTP")
    async def test_send(self, mock_smtp, config):
        smtp = mock_smtp.return_value.__enter__.return_value
        message = templates.welcome_email("a@x.com", "Ada", "http://localhost")

        await SmtpEmailBackend(config).send(message)

        mock_smtp.assert_called_once_with("smtp.example.com", 2525, timeout=10.0)
        smtp.starttls.assert_called_once()
        smtp.login.assert_called_once_with("mailer", "secret")
        smtp.send_message.assert_called_once()

    @patch("schemabuilder.notifications.dispatcher.smtplib.SMTP")
    def test_no_login_without_credentials(self, mock_smtp):
        smtp = mock_smtp.return_value.__enter__.return_value
        backend = SmtpEmailBackend(EmailConfig(backend="smtp", use_tls=False))

        backend.send_sync(templates.welcome_email("a@x.com", "Ada", "http://localhost"))

        smtp.starttls.assert_not_called()
        smtp.login.assert_not_called()
        smtp.send_message.assert_called_once()


class TestBackends:
    """Test backend selection and queue hand-off."""

    async def test_celery_backend_enqueues(self):
        task = MagicMock()
        message = templates.welcome_email("a@x.com", "Ada", "http://localhost")

        await CeleryEmailBackend(task).send(message)

        task.delay.assert_called_once_with(message.to_dict())

    async def test_console_backend(self):
        logger = MagicMock()
        await ConsoleEmailBackend(logger).send(templates.welcome_email("a@x.com", "Ada", "http://x"))

        logger.info.assert_called_once()

    def test_build_console(self):
        assert isinstance(build_email_backend(EmailConfig(backend="console")), ConsoleEmailBackend)

    def test_build_smtp(self):
        assert isinstance(build_email_backend(EmailConfig(backend="smtp")), SmtpEmailBackend)

    def test_build_celery(self):
        backend = build_email_backend(EmailConfig(backend="celery"))

        assert isinstance(backend, CeleryEmailBackend)
        assert backend.task.name == "schemabuilder.tasks.email_tasks.send_email"
