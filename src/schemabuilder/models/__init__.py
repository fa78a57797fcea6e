"""Domain documents."""

from schemabuilder.models.auth import (
    EmailRequest,
    FederatedLoginRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SuccessResponse,
    VerifyRequest,
)
from schemabuilder.models.schema import (
    Constraint,
    Field,
    Index,
    Page,
    Position,
    Reference,
    Schema,
    SchemaCreate,
    SchemaDuplicate,
    SchemaUpdate,
    Table,
)
from schemabuilder.models.user import (
    AuthResult,
    ProfileUpdate,
    Provider,
    User,
    UserCheck,
    UserPublic,
)

__all__ = [
    "AuthResult",
    "Constraint",
    "EmailRequest",
    "FederatedLoginRequest",
    "Field",
    "Index",
    "LoginRequest",
    "Page",
    "Position",
    "ProfileUpdate",
    "Provider",
    "Reference",
    "RegisterRequest",
    "ResetPasswordRequest",
    "Schema",
    "SchemaCreate",
    "SchemaDuplicate",
    "SchemaUpdate",
    "SuccessResponse",
    "Table",
    "User",
    "UserCheck",
    "UserPublic",
    "VerifyRequest",
]
