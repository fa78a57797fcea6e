"""Persistence contracts for users and schemas."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from schemabuilder.models.schema import Schema
from schemabuilder.models.user import User


class DuplicateKeyError(Exception):
    """A write violated one of the store's unique keys."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"duplicate value for unique field '{field}'")


class UserRepository(ABC):
    """Store of user records.

    Implementations must enforce uniqueness of ``email``, ``username`` and
    (when present) ``federated_id`` and report violations as
    ``DuplicateKeyError``. Lookups return ``None`` when nothing matches.
    """

    @abstractmethod
    async def create(self, user: User) -> User:
        """Insert a new user and return it with id and timestamps set."""

    @abstractmethod
    async def get_by_id(self, user_id: str) -> Optional[User]:
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        pass

    @abstractmethod
    async def get_by_username(self, username: str) -> Optional[User]:
        pass

    @abstractmethod
    async def get_by_federated_id(self, federated_id: str) -> Optional[User]:
        pass

    @abstractmethod
    async def update(self, user_id: str, fields: Dict[str, Any]) -> Optional[User]:
        """Apply field updates and return the updated record.

        A value of ``None`` clears the field.
        """

    @abstractmethod
    async def link_federated_identity(
        self, user_id: str, federated_id: str, fields: Dict[str, Any]
    ) -> Optional[User]:
        """Attach a federated subject to a user.

        The write only applies if the user has no federated subject yet or
        already carries this one. Returns ``None`` when the condition failed.
        """

    @abstractmethod
    async def delete(self, user_id: str) -> bool:
        pass

    @abstractmethod
    async def list(self, page: int, limit: int) -> Tuple[List[User], int]:
        pass

    async def username_exists(self, username: str) -> bool:
        return await self.get_by_username(username) is not None


class SchemaRepository(ABC):
    """Store of schema documents."""

    @abstractmethod
    async def create(self, schema: Schema) -> Schema:
        """Insert a schema with version 1."""

    @abstractmethod
    async def get_by_id(self, schema_id: str) -> Optional[Schema]:
        pass

    @abstractmethod
    async def list_by_user(self, user_id: str, page: int, limit: int) -> Tuple[List[Schema], int]:
        pass

    @abstractmethod
    async def list_public(self, page: int, limit: int) -> Tuple[List[Schema], int]:
        pass

    @abstractmethod
    async def list_others(self, exclude_user_id: str, page: int, limit: int) -> Tuple[List[Schema], int]:
        """Public schemas owned by anyone except ``exclude_user_id``."""

    @abstractmethod
    async def update(self, schema_id: str, fields: Dict[str, Any], bump_version: bool) -> Optional[Schema]:
        """Apply field updates, incrementing ``version`` once if requested."""

    @abstractmethod
    async def delete(self, schema_id: str) -> bool:
        pass

    @abstractmethod
    async def delete_by_user(self, user_id: str) -> int:
        pass
