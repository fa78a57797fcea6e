"""Identity reconciliation: local accounts, one-time codes and federated sign-in."""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Tuple

from schemabuilder.auth.credentials import (
    PasswordHasher,
    SessionTokenService,
    codes_match,
    generate_one_time_code,
)
from schemabuilder.auth.federated import FederatedClaims, FederatedTokenValidator
from schemabuilder.core.exceptions import (
    AlreadyLinkedToDifferentAccount,
    AlreadyVerified,
    CodeExpired,
    EmailInUse,
    EmailNotVerified,
    InvalidCode,
    InvalidCredentials,
    Unauthenticated,
    UseFederatedLogin,
    UserNotFound,
    UsernameExhausted,
    UsernameTaken,
)
from schemabuilder.core.logging import get_logger
from schemabuilder.models.auth import RegisterRequest
from schemabuilder.models.user import AuthResult, Provider, User, UserCheck, UserPublic
from schemabuilder.notifications.dispatcher import NotificationDispatcher
from schemabuilder.repository.base import DuplicateKeyError, UserRepository

MAX_USERNAME_ATTEMPTS = 1000
CREATE_RETRIES = 3


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


class IdentityService:
    """Resolves every authentication attempt to one canonical user record.

    Uniqueness of email, username and federated subject is left to the
    repository; losing a race against a concurrent request shows up as a
    ``DuplicateKeyError`` and is translated to the matching domain error here.
    Emails are dispatched only after the relevant write succeeded and never
    affect the outcome.
    """

    def __init__(
        self,
        users: UserRepository,
        hasher: PasswordHasher,
        tokens: SessionTokenService,
        notifications: NotificationDispatcher,
        federated_validator: Optional[FederatedTokenValidator] = None,
        code_ttl: timedelta = timedelta(minutes=15),
        clock: Callable[[], datetime] = _utcnow,
        logger=None,
    ):
        self.users = users
        self.hasher = hasher
        self.tokens = tokens
        self.notifications = notifications
        self.federated_validator = federated_validator
        self.code_ttl = code_ttl
        self._clock = clock
        self.logger = logger or get_logger(__name__)

    def _issue(self, user: User) -> AuthResult:
        token = self.tokens.issue(user.id, user.email)
        return AuthResult(token=token, user=UserPublic.from_user(user))

    def _new_code(self) -> Tuple[str, datetime]:
        return generate_one_time_code(), self._clock() + self.code_ttl

    def _check_code(self, stored: Optional[str], expiry: Optional[datetime], provided: str) -> None:
        if not codes_match(stored, provided):
            raise InvalidCode()
        if expiry is None or self._clock() > _as_aware(expiry):
            raise CodeExpired()

    # Local accounts

    async def register(self, request: RegisterRequest) -> User:
        if await self.users.get_by_email(request.email) is not None:
            raise EmailInUse()

        password_hash = await self.hasher.hash(request.password)
        code, expiry = self._new_code()
        candidate = User(
            email=request.email,
            username=request.username,
            first_name=request.first_name,
            last_name=request.last_name,
            password_hash=password_hash,
            provider=Provider.LOCAL,
            is_verified=False,
            verification_code=code,
            verification_expiry=expiry,
        )
        try:
            user = await self.users.create(candidate)
        except DuplicateKeyError as e:
            if e.field == "username":
                raise UsernameTaken() from e
            raise EmailInUse() from e

        self.logger.info("User registered", email=user.email, user_id=user.id)
        self.notifications.send_verification_code(user.email, code)
        return user

    async def login(self, email: str, password: str) -> AuthResult:
        user = await self.users.get_by_email(email)
        if user is None:
            self.logger.warning("Login attempt for unknown email", email=email)
            raise InvalidCredentials()

        if not user.has_password:
            if user.federated_id:
                raise UseFederatedLogin()
            raise InvalidCredentials()

        if not await self.hasher.verify(user.password_hash, password):
            self.logger.warning("Invalid password attempt", email=email)
            raise InvalidCredentials()

        if not user.is_verified:
            raise EmailNotVerified()

        self.logger.info("User logged in", email=user.email, provider=user.provider.value)
        return self._issue(user)

    async def verify(self, email: str, code: str) -> User:
        user = await self.users.get_by_email(email)
        if user is None:
            raise UserNotFound()
        if user.is_verified:
            raise AlreadyVerified()
        self._check_code(user.verification_code, user.verification_expiry, code)

        updated = await self.users.update(user.id, {
            "is_verified": True,
            "verification_code": None,
            "verification_expiry": None,
        })
        if updated is None:
            raise UserNotFound()

        self.logger.info("User verified", email=email)
        self.notifications.send_welcome(updated.email, updated.first_name)
        return updated

    async def resend_code(self, email: str) -> None:
        user = await self.users.get_by_email(email)
        if user is None:
            raise UserNotFound()
        if user.is_verified:
            raise AlreadyVerified()

        code, expiry = self._new_code()
        await self.users.update(user.id, {"verification_code": code, "verification_expiry": expiry})
        self.logger.info("Verification code reissued", email=email)
        self.notifications.send_verification_code(email, code)

    async def forgot_password(self, email: str) -> None:
        """Start a password reset. Never reveals whether the account exists."""
        user = await self.users.get_by_email(email)
        if user is None:
            self.logger.warning("Password reset requested for unknown email", email=email)
            return
        if not user.has_password and user.federated_id:
            self.logger.info("Password reset requested for federated-only account", email=email)
            return

        code, expiry = self._new_code()
        await self.users.update(user.id, {"reset_code": code, "reset_expiry": expiry})
        self.logger.info("Password reset initiated", email=email)
        self.notifications.send_password_reset(email, code)

    async def reset_password(self, email: str, code: str, new_password: str) -> None:
        user = await self.users.get_by_email(email)
        if user is None:
            raise UserNotFound()
        self._check_code(user.reset_code, user.reset_expiry, code)

        password_hash = await self.hasher.hash(new_password)
        await self.users.update(user.id, {
            "password_hash": password_hash,
            "reset_code": None,
            "reset_expiry": None,
        })
        self.logger.info("Password reset", email=email)

    async def check_user(self, email: str) -> UserCheck:
        user = await self.users.get_by_email(email)
        if user is None:
            return UserCheck(exists=False)
        return UserCheck(
            exists=True,
            provider=user.provider,
            has_password=user.has_password,
            is_verified=user.is_verified,
        )

    async def refresh(self, token: str) -> AuthResult:
        claims = self.tokens.validate(token)
        user = await self.users.get_by_id(claims.user_id)
        if user is None:
            raise Unauthenticated()
        return self._issue(user)

    # Federated sign-in

    async def federated_login(self, id_token: str) -> AuthResult:
        if self.federated_validator is None:
            raise Unauthenticated("Federated sign-in is not configured")
        claims = await self.federated_validator.validate(id_token)
        user = await self.reconcile_federated(claims)
        return self._issue(user)

    async def reconcile_federated(self, claims: FederatedClaims) -> User:
        """Find, link or create the user behind validated federated claims."""
        if not claims.email_verified:
            self.logger.warning("Federated email not verified", email=claims.email)
            raise EmailNotVerified("Your identity provider has not verified this email address")

        user = await self.users.get_by_federated_id(claims.subject)
        if user is not None:
            self.logger.info("Existing federated user signed in", email=user.email)
            return user

        existing = await self.users.get_by_email(claims.email)
        if existing is not None:
            return await self._link(existing, claims)

        try:
            return await self._create_federated_user(claims)
        except DuplicateKeyError as e:
            self.logger.info("Concurrent federated sign-up detected", email=claims.email, field=e.field)
            return await self._resolve_after_conflict(claims, e)

    async def _link(self, existing: User, claims: FederatedClaims) -> User:
        if existing.federated_id and existing.federated_id != claims.subject:
            self.logger.warning("Account linking conflict", email=existing.email)
            raise AlreadyLinkedToDifferentAccount()

        fields: Dict[str, Any] = {"is_verified": True}
        if existing.verification_code is not None:
            fields["verification_code"] = None
            fields["verification_expiry"] = None
        if not existing.first_name and claims.given_name:
            fields["first_name"] = claims.given_name
        if not existing.last_name and claims.family_name:
            fields["last_name"] = claims.family_name
        if not existing.avatar and claims.picture:
            fields["avatar"] = claims.picture
        if existing.provider == Provider.LOCAL:
            fields["provider"] = Provider.LINKED

        try:
            linked = await self.users.link_federated_identity(existing.id, claims.subject, fields)
        except DuplicateKeyError as e:
            raise AlreadyLinkedToDifferentAccount() from e
        if linked is None:
            raise AlreadyLinkedToDifferentAccount()

        self.logger.info("Linked federated identity to existing account", email=linked.email)
        if linked.federated_id == claims.subject and existing.federated_id != claims.subject:
            self.notifications.send_account_linked(linked.email, linked.first_name)
        return linked

    async def _create_federated_user(self, claims: FederatedClaims) -> User:
        base = claims.email.split("@", 1)[0] or "user"
        attempt = 0
        while True:
            attempt += 1
            username = await self.unique_username(base)
            candidate = User(
                email=claims.email,
                username=username,
                first_name=claims.given_name,
                last_name=claims.family_name,
                avatar=claims.picture,
                federated_id=claims.subject,
                provider=Provider.FEDERATED,
                is_verified=True,
            )
            try:
                user = await self.users.create(candidate)
                break
            except DuplicateKeyError as e:
                if e.field != "username" or attempt >= CREATE_RETRIES:
                    raise

        self.logger.info("Created user from federated identity", email=user.email, username=user.username)
        self.notifications.send_welcome(user.email, user.first_name)
        return user

    async def unique_username(self, base: str) -> str:
        """Return ``base`` or the first free ``base<N>``; gives up after 1000 candidates."""
        for n in range(MAX_USERNAME_ATTEMPTS):
            candidate = base if n == 0 else f"{base}{n}"
            if not await self.users.username_exists(candidate):
                return candidate
        self.logger.error("Unable to generate unique username", base=base)
        raise UsernameExhausted()

    async def _resolve_after_conflict(self, claims: FederatedClaims, error: DuplicateKeyError) -> User:
        user = await self.users.get_by_federated_id(claims.subject)
        if user is not None:
            return user
        existing = await self.users.get_by_email(claims.email)
        if existing is not None:
            return await self._link(existing, claims)
        if error.field == "email":
            raise EmailInUse() from error
        if error.field == "username":
            self.logger.error("Username kept colliding during federated sign-up", email=claims.email)
            raise UsernameExhausted() from error
        raise AlreadyLinkedToDifferentAccount() from error
