"""Domain error taxonomy.

Every error raised by the service layers derives from ``SchemaBuilderError``.
Each class carries a machine readable ``kind`` and the HTTP status the API
boundary translates it to, so no domain code ever deals with status codes.
Messages are safe to show to callers; internal causes are only logged.
"""

from typing import Any, Dict, Optional


class SchemaBuilderError(Exception):
    """Base class for all domain errors."""

    kind = "internal_error"
    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Render the shared error response body."""
        body: Dict[str, Any] = {"error": self.kind, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class InternalError(SchemaBuilderError):
    kind = "internal_error"


class HashingError(InternalError):
    kind = "hashing_error"
    default_message = "Failed to process credentials"


class UpstreamDependencyError(SchemaBuilderError):
    """A store or external service could not be reached."""

    kind = "upstream_error"
    default_message = "A required service is unavailable, please try again later"


class ValidationError(SchemaBuilderError):
    kind = "validation_error"
    status_code = 400
    default_message = "Validation failed"


# Authentication

class Unauthenticated(SchemaBuilderError):
    kind = "unauthorized"
    status_code = 401
    default_message = "Authentication required"


class InvalidCredentials(Unauthenticated):
    kind = "invalid_credentials"
    default_message = "Invalid email or password"


class UseFederatedLogin(Unauthenticated):
    kind = "use_federated_login"
    default_message = "This account uses federated sign-in. Please sign in with your identity provider"


class EmailNotVerified(Unauthenticated):
    kind = "email_not_verified"
    default_message = "Please verify your email before logging in"


class InvalidToken(Unauthenticated):
    kind = "invalid_token"
    default_message = "Invalid token"


class ExpiredToken(Unauthenticated):
    kind = "expired_token"
    default_message = "Token has expired"


class InvalidIdentityToken(Unauthenticated):
    kind = "invalid_identity_token"
    default_message = "Invalid identity token"


class AccessDenied(SchemaBuilderError):
    kind = "access_denied"
    status_code = 403
    default_message = "Access denied"


# Lookups

class NotFound(SchemaBuilderError):
    kind = "not_found"
    status_code = 404
    default_message = "Resource not found"


class UserNotFound(NotFound):
    kind = "user_not_found"
    default_message = "User not found"


class SchemaNotFound(NotFound):
    kind = "schema_not_found"
    default_message = "Schema not found"


# Conflicts

class Conflict(SchemaBuilderError):
    kind = "conflict"
    status_code = 409
    default_message = "Resource already exists"


class EmailInUse(Conflict):
    kind = "email_in_use"
    status_code = 400
    default_message = "User with this email already exists"


class UsernameTaken(Conflict):
    kind = "username_taken"
    status_code = 400
    default_message = "Username is already taken"


class AlreadyLinkedToDifferentAccount(Conflict):
    kind = "already_linked"
    default_message = "This email is already linked to a different federated account"


class UsernameExhausted(Conflict):
    kind = "username_exhausted"
    default_message = "Unable to generate a unique username"


# One-time codes

class ExpiredOrInvalidCode(SchemaBuilderError):
    kind = "invalid_or_expired_code"
    status_code = 400
    default_message = "Invalid or expired code"


class InvalidCode(ExpiredOrInvalidCode):
    kind = "invalid_code"
    default_message = "Invalid code"


class CodeExpired(ExpiredOrInvalidCode):
    kind = "code_expired"
    default_message = "Code has expired"


class AlreadyVerified(ExpiredOrInvalidCode):
    kind = "already_verified"
    default_message = "User already verified"
