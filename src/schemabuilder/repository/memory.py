"""In-process repositories for tests and local development."""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from bson import ObjectId

from schemabuilder.models.schema import Schema
from schemabuilder.models.user import User
from schemabuilder.repository.base import DuplicateKeyError, SchemaRepository, UserRepository


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _paginate(items: List[Any], page: int, limit: int) -> List[Any]:
    start = (page - 1) * limit
    return items[start:start + limit]


class InMemoryUserRepository(UserRepository):
    """User store backed by a dict, enforcing the same unique keys as MongoDB."""

    _unique_fields = ("email", "username", "federated_id")

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._users: Dict[str, User] = {}
        self._clock = clock

    def _check_unique(self, candidate: User, exclude_id: Optional[str] = None) -> None:
        for field in self._unique_fields:
            value = getattr(candidate, field)
            if value is None:
                continue
            for user_id, existing in self._users.items():
                if user_id != exclude_id and getattr(existing, field) == value:
                    raise DuplicateKeyError(field)

    async def create(self, user: User) -> User:
        now = self._clock()
        stored = user.model_copy(deep=True, update={
            "id": str(ObjectId()),
            "created_at": now,
            "updated_at": now,
        })
        self._check_unique(stored)
        self._users[stored.id] = stored
        return stored.model_copy(deep=True)

    async def get_by_id(self, user_id: str) -> Optional[User]:
        user = self._users.get(user_id)
        return user.model_copy(deep=True) if user else None

    def _find(self, field: str, value: Any) -> Optional[User]:
        for user in self._users.values():
            if getattr(user, field) == value:
                return user.model_copy(deep=True)
        return None

    async def get_by_email(self, email: str) -> Optional[User]:
        return self._find("email", email)

    async def get_by_username(self, username: str) -> Optional[User]:
        return self._find("username", username)

    async def get_by_federated_id(self, federated_id: str) -> Optional[User]:
        return self._find("federated_id", federated_id)

    async def update(self, user_id: str, fields: Dict[str, Any]) -> Optional[User]:
        existing = self._users.get(user_id)
        if existing is None:
            return None
        updated = existing.model_copy(deep=True, update={**fields, "updated_at": self._clock()})
        self._check_unique(updated, exclude_id=user_id)
        self._users[user_id] = updated
        return updated.model_copy(deep=True)

    async def link_federated_identity(
        self, user_id: str, federated_id: str, fields: Dict[str, Any]
    ) -> Optional[User]:
        existing = self._users.get(user_id)
        if existing is None or existing.federated_id not in (None, federated_id):
            return None
        return await self.update(user_id, {**fields, "federated_id": federated_id})

    async def delete(self, user_id: str) -> bool:
        return self._users.pop(user_id, None) is not None

    async def list(self, page: int, limit: int) -> Tuple[List[User], int]:
        users = sorted(self._users.values(), key=lambda u: u.created_at, reverse=True)
        return [u.model_copy(deep=True) for u in _paginate(users, page, limit)], len(users)


class InMemorySchemaRepository(SchemaRepository):
    """Schema store backed by a dict."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._schemas: Dict[str, Schema] = {}
        self._clock = clock

    async def create(self, schema: Schema) -> Schema:
        now = self._clock()
        stored = schema.model_copy(deep=True, update={
            "id": str(ObjectId()),
            "version": 1,
            "created_at": now,
            "updated_at": now,
        })
        self._schemas[stored.id] = stored
        return stored.model_copy(deep=True)

    async def get_by_id(self, schema_id: str) -> Optional[Schema]:
        schema = self._schemas.get(schema_id)
        return schema.model_copy(deep=True) if schema else None

    def _page(self, predicate: Callable[[Schema], bool], page: int, limit: int) -> Tuple[List[Schema], int]:
        matches = sorted(
            (s for s in self._schemas.values() if predicate(s)),
            key=lambda s: s.updated_at,
            reverse=True,
        )
        return [s.model_copy(deep=True) for s in _paginate(matches, page, limit)], len(matches)

    async def list_by_user(self, user_id: str, page: int, limit: int) -> Tuple[List[Schema], int]:
        return self._page(lambda s: s.user_id == user_id, page, limit)

    async def list_public(self, page: int, limit: int) -> Tuple[List[Schema], int]:
        return self._page(lambda s: s.is_public, page, limit)

    async def list_others(self, exclude_user_id: str, page: int, limit: int) -> Tuple[List[Schema], int]:
        return self._page(lambda s: s.is_public and s.user_id != exclude_user_id, page, limit)

    async def update(self, schema_id: str, fields: Dict[str, Any], bump_version: bool) -> Optional[Schema]:
        existing = self._schemas.get(schema_id)
        if existing is None:
            return None
        changes = {**fields, "updated_at": self._clock()}
        if bump_version:
            changes["version"] = existing.version + 1
        updated = existing.model_copy(deep=True, update=changes)
        self._schemas[schema_id] = updated
        return updated.model_copy(deep=True)

    async def delete(self, schema_id: str) -> bool:
        return self._schemas.pop(schema_id, None) is not None

    async def delete_by_user(self, user_id: str) -> int:
        doomed = [sid for sid, s in self._schemas.items() if s.user_id == user_id]
        for sid in doomed:
            del self._schemas[sid]
        return len(doomed)
