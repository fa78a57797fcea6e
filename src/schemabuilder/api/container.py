"""Construction of the application's service graph."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from schemabuilder.ai.base import AIProvider
from schemabuilder.ai.factory import AIProviderFactory
from schemabuilder.ai.service import ChatService
from schemabuilder.auth.credentials import PasswordHasher, SessionTokenService
from schemabuilder.auth.federated import FederatedTokenValidator
from schemabuilder.auth.providers import IdentityProvider, build_identity_provider
from schemabuilder.auth.service import IdentityService
from schemabuilder.core.config import Settings
from schemabuilder.core.database import Database
from schemabuilder.core.logging import get_logger
from schemabuilder.notifications.dispatcher import EmailBackend, NotificationDispatcher, build_email_backend
from schemabuilder.services.schemas import SchemaService
from schemabuilder.services.users import UserService

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ServiceContainer:
    """Everything a request handler may depend on."""

    settings: Settings
    database: Database
    tokens: SessionTokenService
    notifications: NotificationDispatcher
    identities: IdentityService
    identity_provider: IdentityProvider
    schemas: SchemaService
    users: UserService
    chat: ChatService


def _build_ai_provider(settings: Settings) -> Optional[AIProvider]:
    try:
        return AIProviderFactory.from_config(settings.ai)
    except ValueError as e:
        logger.warning("AI provider unavailable", model=settings.ai.default_model, error=str(e))
        return None


def build_container(
    settings: Settings,
    database: Optional[Database] = None,
    email_backend: Optional[EmailBackend] = None,
    federated_validator: Optional[FederatedTokenValidator] = None,
    ai_provider: Optional[AIProvider] = None,
    clock: Callable[[], datetime] = _utcnow,
) -> ServiceContainer:
    """Wire the services for ``settings``; collaborators can be overridden."""
    database = database or Database(settings.database)
    hasher = PasswordHasher(settings.security.bcrypt_rounds)
    tokens = SessionTokenService.from_config(settings.security, clock=clock)
    notifications = NotificationDispatcher(
        email_backend or build_email_backend(settings.email),
        settings.email,
        code_ttl_minutes=settings.security.code_ttl_minutes,
    )
    validator = federated_validator or FederatedTokenValidator(settings.auth)
    identities = IdentityService(
        users=database.users,
        hasher=hasher,
        tokens=tokens,
        notifications=notifications,
        federated_validator=validator,
        code_ttl=timedelta(minutes=settings.security.code_ttl_minutes),
        clock=clock,
    )
    provider = build_identity_provider(settings.auth, tokens, database.users, identities, validator)
    logger.info("Identity provider selected", mode=provider.name)

    return ServiceContainer(
        settings=settings,
        database=database,
        tokens=tokens,
        notifications=notifications,
        identities=identities,
        identity_provider=provider,
        schemas=SchemaService(database.schemas),
        users=UserService(database.users, database.schemas),
        chat=ChatService(
            ai_provider if ai_provider is not None else _build_ai_provider(settings),
            max_message_length=settings.ai.max_message_length,
        ),
    )
