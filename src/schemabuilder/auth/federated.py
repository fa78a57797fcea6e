"""Validation of identity tokens issued by the federated identity provider."""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import jwt
from jwt import PyJWKClient

from schemabuilder.core.config import AuthConfig
from schemabuilder.core.exceptions import InvalidIdentityToken
from schemabuilder.core.logging import get_logger


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _str_claim(payload: Dict[str, Any], name: str) -> str:
    value = payload.get(name)
    return value if isinstance(value, str) else ""


def _number_claim(payload: Dict[str, Any], name: str) -> Optional[float]:
    value = payload.get(name)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


@dataclass(frozen=True)
class FederatedClaims:
    """Identity attributes extracted from a federated token.

    Missing or wrongly typed claims decode as empty values instead of failing.
    """

    subject: str = ""
    email: str = ""
    email_verified: bool = False
    given_name: str = ""
    family_name: str = ""
    picture: str = ""
    issuer: str = ""
    audience: str = ""

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "FederatedClaims":
        return cls(
            subject=_str_claim(payload, "sub"),
            email=_str_claim(payload, "email"),
            email_verified=payload.get("email_verified") is True,
            given_name=_str_claim(payload, "given_name"),
            family_name=_str_claim(payload, "family_name"),
            picture=_str_claim(payload, "picture"),
            issuer=_str_claim(payload, "iss"),
            audience=_str_claim(payload, "aud"),
        )


class ClaimsRejected(Exception):
    """A token failed one check of the local claims checklist."""


class JWKSTokenVerifier:
    """Standard identity token verification against a published key set.

    Accepts any audience; only signature, expiry and issuer are enforced.
    """

    def __init__(self, certs_url: str, issuers: List[str], leeway: int = 60):
        self.certs_url = certs_url
        self.issuers = issuers
        self.leeway = leeway
        self._client: Optional[PyJWKClient] = None

    def jwk_client(self) -> PyJWKClient:
        if self._client is None:
            self._client = PyJWKClient(self.certs_url)
        return self._client

    def verify_sync(self, token: str) -> Dict[str, Any]:
        signing_key = self.jwk_client().get_signing_key_from_jwt(token).key
        return jwt.decode(
            token,
            signing_key,
            algorithms=["RS256"],
            issuer=self.issuers,
            leeway=self.leeway,
            options={"verify_aud": False},
        )

    async def verify(self, token: str) -> Dict[str, Any]:
        return await asyncio.to_thread(self.verify_sync, token)


class FederatedTokenValidator:
    """Two-path validator for federated identity tokens.

    The local path checks the claims of the token's payload against the
    configured issuer and project. Signatures are only checked there when
    ``verify_local_signatures`` is enabled. If the local path rejects the
    token, the fallback verifier is tried before giving up.
    """

    def __init__(
        self,
        config: AuthConfig,
        fallback: Optional[JWKSTokenVerifier] = None,
        local_verifier: Optional[JWKSTokenVerifier] = None,
        clock: Callable[[], datetime] = _utcnow,
        logger=None,
    ):
        self.config = config
        self.fallback = fallback if fallback is not None else JWKSTokenVerifier(
            config.fallback_certs_url, config.fallback_issuers
        )
        self.local_verifier = local_verifier
        if self.local_verifier is None and config.verify_local_signatures:
            self.local_verifier = JWKSTokenVerifier(config.federated_certs_url, [])
        self._clock = clock
        self.logger = logger or get_logger(__name__)
        if not config.verify_local_signatures:
            self.logger.warning(
                "Federated token signatures are not verified on the local claims path",
                issuer_prefix=config.federated_issuer_prefix,
            )

    async def validate(self, token: str) -> FederatedClaims:
        """Validate ``token`` and return its identity claims.

        Raises ``InvalidIdentityToken`` when both paths reject the token or
        required identity claims are missing.
        """
        try:
            payload = await self._validate_local(token)
            self.logger.info("Validated federated token on local claims path")
        except (ClaimsRejected, jwt.PyJWTError) as local_error:
            self.logger.warning(
                "Local claims validation failed, attempting standard validation",
                reason=str(local_error),
            )
            try:
                payload = await self.fallback.verify(token)
            except (jwt.PyJWTError, OSError) as fallback_error:
                self.logger.warning("Standard identity token validation failed", reason=str(fallback_error))
                raise InvalidIdentityToken() from fallback_error
            self.logger.info("Validated federated token on standard path")

        claims = FederatedClaims.from_payload(payload)
        if not claims.subject or not claims.email:
            raise InvalidIdentityToken("Token is missing required user information")
        return claims

    async def _validate_local(self, token: str) -> Dict[str, Any]:
        if self.local_verifier is not None:
            payload = await self._verify_local_signature(token)
        else:
            payload = jwt.decode(token, options={"verify_signature": False})
        self.check_claims(payload)
        return payload

    async def _verify_local_signature(self, token: str) -> Dict[str, Any]:
        verifier = self.local_verifier

        def _verify() -> Dict[str, Any]:
            signing_key = verifier.jwk_client().get_signing_key_from_jwt(token).key
            return jwt.decode(
                token,
                signing_key,
                algorithms=["RS256"],
                options={"verify_aud": False, "verify_exp": False, "verify_iat": False},
            )

        return await asyncio.to_thread(_verify)

    def check_claims(self, payload: Dict[str, Any]) -> None:
        """Run the claims checklist, raising ``ClaimsRejected`` on the first failure."""
        issuer = payload.get("iss")
        if not isinstance(issuer, str):
            raise ClaimsRejected("missing issuer")
        prefix = self.config.federated_issuer_prefix
        if not issuer.startswith(prefix):
            raise ClaimsRejected(f"unexpected issuer {issuer}")

        project_id = issuer[len(prefix):]
        if not project_id:
            raise ClaimsRejected("issuer carries no project")
        expected_project = self.config.federated_project_id
        if expected_project and project_id != expected_project:
            raise ClaimsRejected(f"issuer bound to unexpected project {project_id}")

        audience = payload.get("aud")
        if not isinstance(audience, str):
            raise ClaimsRejected("missing audience")
        if audience != project_id:
            raise ClaimsRejected(f"invalid audience: expected {project_id}, got {audience}")

        now = self._clock().timestamp()

        expires = _number_claim(payload, "exp")
        if expires is None:
            raise ClaimsRejected("missing expiration")
        if now >= expires:
            raise ClaimsRejected("token has expired")

        issued_at = _number_claim(payload, "iat")
        if issued_at is None:
            raise ClaimsRejected("missing issued at")
        if issued_at > now + self.config.clock_skew_seconds:
            raise ClaimsRejected("token issued in the future")

        auth_time = _number_claim(payload, "auth_time")
        if auth_time is None:
            raise ClaimsRejected("missing auth time")
        if auth_time > now:
            raise ClaimsRejected("auth time is in the future")

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise ClaimsRejected("missing subject")
        if len(subject) > self.config.max_subject_length:
            raise ClaimsRejected("subject too long")

        if "email" in payload:
            email = payload["email"]
            if not isinstance(email, str) or "@" not in email or "." not in email:
                raise ClaimsRejected("invalid email")
