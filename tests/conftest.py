"""Pytest configuration and fixtures."""

import asyncio
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Generator, List
from unittest.mock import AsyncMock, MagicMock

import jwt
import pytest
from fastapi.testclient import TestClient

# Set test environment
os.environ["SCHEMABUILDER_ENVIRONMENT"] = "test"

from schemabuilder.ai.factory import MockChatProvider
from schemabuilder.api.container import ServiceContainer, build_container
from schemabuilder.api.main import create_app
from schemabuilder.auth.credentials import PasswordHasher, SessionTokenService
from schemabuilder.auth.federated import FederatedTokenValidator
from schemabuilder.auth.service import IdentityService
from schemabuilder.core.config import (
    AIConfig,
    AppConfig,
    AuthConfig,
    DatabaseConfig,
    EmailConfig,
    SecurityConfig,
    Settings,
)
from schemabuilder.core.database import Database
from schemabuilder.models.auth import RegisterRequest
from schemabuilder.notifications.dispatcher import EmailBackend, NotificationDispatcher
from schemabuilder.notifications.templates import EmailMessage
from schemabuilder.repository.memory import InMemorySchemaRepository, InMemoryUserRepository

TEST_SECRET = "test-secret-key"
TEST_PROJECT = "schema-builder-test"
ISSUER_PREFIX = "https://securetoken.google.com/"


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)

    def set(self, value: datetime) -> None:
        self.now = value


class TickingClock:
    """Clock that moves one second forward on every read."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        self.now = self.now + timedelta(seconds=1)
        return self.now


class RecordingEmailBackend(EmailBackend):
    """Keeps sent messages in memory; can be told to fail."""

    def __init__(self):
        self.messages: List[EmailMessage] = []
        self.fail = False

    async def send(self, message: EmailMessage) -> None:
        if self.fail:
            raise ConnectionError("SMTP server unavailable")
        self.messages.append(message)

    def subjects_for(self, email: str) -> List[str]:
        return [m.subject for m in self.messages if m.to == email]


def run(coro):
    """Run a coroutine from synchronous test code."""
    return asyncio.run(coro)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime.now(timezone.utc).replace(microsecond=0))


@pytest.fixture
def settings() -> Settings:
    return Settings(
        app=AppConfig(environment="test"),
        database=DatabaseConfig(url="memory://"),
        security=SecurityConfig(secret_key=TEST_SECRET, bcrypt_rounds=4, request_timeout_seconds=10),
        auth=AuthConfig(mode="local", federated_project_id=TEST_PROJECT),
        ai=AIConfig(default_model="mock"),
        email=EmailConfig(backend="console"),
    )


@pytest.fixture
def email_backend() -> RecordingEmailBackend:
    return RecordingEmailBackend()


@pytest.fixture
def user_repo() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def schema_repo() -> InMemorySchemaRepository:
    return InMemorySchemaRepository(clock=TickingClock(datetime(2024, 1, 1, tzinfo=timezone.utc)))


@pytest.fixture
def notifications(email_backend, settings) -> NotificationDispatcher:
    return NotificationDispatcher(email_backend, settings.email, code_ttl_minutes=15)


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def tokens() -> SessionTokenService:
    return SessionTokenService(secret_key=TEST_SECRET)


@pytest.fixture
def fallback_verifier() -> MagicMock:
    """Fallback verifier that rejects everything unless reconfigured."""
    verifier = MagicMock()
    verifier.verify = AsyncMock(side_effect=jwt.InvalidTokenError("signature verification failed"))
    return verifier


@pytest.fixture
def federated_validator(settings, fallback_verifier, clock) -> FederatedTokenValidator:
    return FederatedTokenValidator(settings.auth, fallback=fallback_verifier, clock=clock)


@pytest.fixture
def identity_service(user_repo, hasher, tokens, notifications, federated_validator, clock) -> IdentityService:
    return IdentityService(
        users=user_repo,
        hasher=hasher,
        tokens=tokens,
        notifications=notifications,
        federated_validator=federated_validator,
        code_ttl=timedelta(minutes=15),
        clock=clock,
    )


@pytest.fixture
def make_id_token(clock) -> Callable[..., str]:
    """Build federated identity tokens; keyword arguments override claims."""

    def _make(**overrides: Any) -> str:
        now = int(clock().timestamp())
        claims: Dict[str, Any] = {
            "iss": f"{ISSUER_PREFIX}{TEST_PROJECT}",
            "aud": TEST_PROJECT,
            "iat": now,
            "exp": now + 3600,
            "auth_time": now - 10,
            "sub": "federated-subject-1",
            "email": "jane@example.com",
            "email_verified": True,
            "given_name": "Jane",
            "family_name": "Doe",
            "picture": "https://example.com/jane.png",
        }
        claims.update(overrides)
        claims = {key: value for key, value in claims.items() if value is not None}
        return jwt.encode(claims, "unused-signing-key", algorithm="HS256")

    return _make


@pytest.fixture
def register_request() -> RegisterRequest:
    return RegisterRequest(
        email="a@x.com",
        password="P@ss1234",
        first_name="Ada",
        last_name="Lovelace",
        username="ada",
    )


@pytest.fixture
def container(settings, email_backend, federated_validator, clock) -> ServiceContainer:
    return build_container(
        settings,
        database=Database(settings.database),
        email_backend=email_backend,
        federated_validator=federated_validator,
        ai_provider=MockChatProvider({"model": "mock"}),
        clock=clock,
    )


@pytest.fixture
def app(settings, container):
    return create_app(settings, container, configure_logging=False)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client
