"""Authentication and identity reconciliation."""

from schemabuilder.auth.credentials import (
    PasswordHasher,
    SessionClaims,
    SessionTokenService,
    generate_one_time_code,
    generate_opaque_token,
)
from schemabuilder.auth.federated import FederatedClaims, FederatedTokenValidator, JWKSTokenVerifier
from schemabuilder.auth.providers import (
    FederatedIdentityProvider,
    IdentityProvider,
    SessionTokenIdentityProvider,
    build_identity_provider,
)
from schemabuilder.auth.service import IdentityService

__all__ = [
    "FederatedClaims",
    "FederatedIdentityProvider",
    "FederatedTokenValidator",
    "IdentityProvider",
    "IdentityService",
    "JWKSTokenVerifier",
    "PasswordHasher",
    "SessionClaims",
    "SessionTokenIdentityProvider",
    "SessionTokenService",
    "build_identity_provider",
    "generate_one_time_code",
    "generate_opaque_token",
]
