"""User identity documents."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Provider(str, Enum):
    """How a user's identity was established."""

    LOCAL = "local"
    FEDERATED = "federated"
    LINKED = "linked"


class User(BaseModel):
    """Stored user record."""

    model_config = ConfigDict(use_enum_values=False)

    id: Optional[str] = None
    email: str
    username: str
    first_name: str = ""
    last_name: str = ""
    avatar: str = ""
    password_hash: Optional[str] = None
    federated_id: Optional[str] = None
    provider: Provider = Provider.LOCAL
    is_verified: bool = False
    verification_code: Optional[str] = None
    verification_expiry: Optional[datetime] = None
    reset_code: Optional[str] = None
    reset_expiry: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    def __repr__(self) -> str:
        return f"<User(email={self.email}, provider={self.provider.value})>"


class UserPublic(BaseModel):
    """User representation returned to API callers."""

    id: str
    email: str
    username: str
    first_name: str = ""
    last_name: str = ""
    avatar: str = ""
    provider: Provider
    is_verified: bool
    has_password: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_user(cls, user: User) -> "UserPublic":
        return cls(
            id=user.id or "",
            email=user.email,
            username=user.username,
            first_name=user.first_name,
            last_name=user.last_name,
            avatar=user.avatar,
            provider=user.provider,
            is_verified=user.is_verified,
            has_password=user.has_password,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class AuthResult(BaseModel):
    """Issued session credential together with the canonical user."""

    token: str
    user: UserPublic


class UserCheck(BaseModel):
    """Read-only account probe result."""

    exists: bool
    provider: Optional[Provider] = None
    has_password: bool = False
    is_verified: bool = False


class ProfileUpdate(BaseModel):
    """Mutable profile fields; unset fields are left untouched."""

    first_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    username: Optional[str] = Field(default=None, min_length=3, max_length=30, pattern=r"^[A-Za-z0-9_.-]+$")
    avatar: Optional[str] = Field(default=None, max_length=2048, pattern=r"^https?://")
