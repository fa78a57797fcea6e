"""Credential primitives: password hashing, session tokens and one-time codes."""

import asyncio
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import bcrypt
import jwt

from schemabuilder.core.config import SecurityConfig
from schemabuilder.core.exceptions import ExpiredToken, HashingError, InvalidToken


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# bcrypt only reads this many bytes of a password
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """bcrypt with a configurable cost factor.

    Hashing and checking run in a worker thread so they never block the
    event loop.
    """

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def hash_sync(self, plaintext: str) -> str:
        try:
            digest = bcrypt.hashpw(plaintext.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds))
        except (ValueError, TypeError) as e:
            raise HashingError() from e
        return digest.decode("utf-8")

    def verify_sync(self, password_hash: str, plaintext: str) -> bool:
        """Return whether ``plaintext`` matches; malformed hashes raise ``HashingError``."""
        secret = plaintext.encode("utf-8")
        if len(secret) > MAX_PASSWORD_BYTES:
            # Stored hashes never cover more than 72 bytes, so this cannot match
            return False
        try:
            return bcrypt.checkpw(secret, password_hash.encode("utf-8"))
        except (ValueError, TypeError) as e:
            raise HashingError("Stored password hash is malformed") from e

    async def hash(self, plaintext: str) -> str:
        return await asyncio.to_thread(self.hash_sync, plaintext)

    async def verify(self, password_hash: str, plaintext: str) -> bool:
        return await asyncio.to_thread(self.verify_sync, password_hash, plaintext)


@dataclass(frozen=True)
class SessionClaims:
    user_id: str
    email: str
    issued_at: datetime
    expires_at: datetime


class SessionTokenService:
    """Issues and validates self-signed session tokens."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expires_in: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expires_in = expires_in
        self._clock = clock

    @classmethod
    def from_config(cls, config: SecurityConfig, clock: Callable[[], datetime] = _utcnow) -> "SessionTokenService":
        return cls(
            secret_key=config.secret_key,
            algorithm=config.algorithm,
            expires_in=timedelta(minutes=config.access_token_expire_minutes),
            clock=clock,
        )

    def issue(self, user_id: str, email: str) -> str:
        now = self._clock()
        payload = {
            "user_id": user_id,
            "email": email,
            "iat": now,
            "nbf": now,
            "exp": now + self.expires_in,
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def validate(self, token: str) -> SessionClaims:
        """Check signature and time bounds and return the bound identity.

        Time bounds are checked against the service clock, the same one
        that stamps issued tokens.
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={
                    "require": ["exp", "iat", "nbf"],
                    "verify_exp": False,
                    "verify_nbf": False,
                    "verify_iat": False,
                },
            )
        except jwt.PyJWTError as e:
            raise InvalidToken() from e

        if not all(isinstance(payload[claim], (int, float)) for claim in ("exp", "iat", "nbf")):
            raise InvalidToken()
        now = self._clock().timestamp()
        if payload["nbf"] > now:
            raise InvalidToken("Token is not yet valid")
        if payload["exp"] <= now:
            raise ExpiredToken()

        user_id = payload.get("user_id")
        email = payload.get("email")
        if not isinstance(user_id, str) or not user_id or not isinstance(email, str):
            raise InvalidToken()
        return SessionClaims(
            user_id=user_id,
            email=email,
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )

    def refresh(self, token: str) -> str:
        claims = self.validate(token)
        return self.issue(claims.user_id, claims.email)


def generate_one_time_code() -> str:
    """Six digit numeric code, uniform over 000000-999999."""
    return f"{secrets.randbelow(1_000_000):06d}"


def generate_opaque_token(nbytes: int = 32) -> str:
    return secrets.token_urlsafe(nbytes)


def codes_match(expected: Optional[str], provided: str) -> bool:
    if not expected:
        return False
    return secrets.compare_digest(expected.encode("utf-8"), provided.encode("utf-8"))
