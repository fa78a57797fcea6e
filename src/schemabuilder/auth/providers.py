"""Resolution of bearer credentials to stored users.

A deployment runs exactly one identity provider, selected by
``SCHEMABUILDER_AUTH_MODE``.
"""

from abc import ABC, abstractmethod

from schemabuilder.auth.credentials import SessionTokenService
from schemabuilder.auth.federated import FederatedTokenValidator
from schemabuilder.auth.service import IdentityService
from schemabuilder.core.config import AuthConfig
from schemabuilder.core.exceptions import Unauthenticated
from schemabuilder.core.logging import get_logger
from schemabuilder.models.user import User
from schemabuilder.repository.base import UserRepository


class IdentityProvider(ABC):
    """Turns a bearer credential into the user it belongs to."""

    name: str = "base"

    @abstractmethod
    async def resolve(self, token: str) -> User:
        """Return the user for ``token`` or raise an ``Unauthenticated`` error."""


class SessionTokenIdentityProvider(IdentityProvider):
    """Accepts session tokens issued by this service."""

    name = "local"

    def __init__(self, tokens: SessionTokenService, users: UserRepository, logger=None):
        self.tokens = tokens
        self.users = users
        self.logger = logger or get_logger(__name__)

    async def resolve(self, token: str) -> User:
        claims = self.tokens.validate(token)
        user = await self.users.get_by_id(claims.user_id)
        if user is None:
            self.logger.warning("Session token for unknown user", user_id=claims.user_id)
            raise Unauthenticated("User not found")
        return user


class FederatedIdentityProvider(IdentityProvider):
    """Accepts federated identity tokens directly.

    The first request carrying a valid identity provisions or links the
    user on the spot.
    """

    name = "federated"

    def __init__(self, validator: FederatedTokenValidator, identities: IdentityService, logger=None):
        self.validator = validator
        self.identities = identities
        self.logger = logger or get_logger(__name__)

    async def resolve(self, token: str) -> User:
        claims = await self.validator.validate(token)
        return await self.identities.reconcile_federated(claims)


def build_identity_provider(
    config: AuthConfig,
    tokens: SessionTokenService,
    users: UserRepository,
    identities: IdentityService,
    validator: FederatedTokenValidator,
) -> IdentityProvider:
    if config.mode == "federated":
        return FederatedIdentityProvider(validator, identities)
    return SessionTokenIdentityProvider(tokens, users)
