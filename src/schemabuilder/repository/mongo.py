"""MongoDB repositories built on motor."""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Tuple

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError
from pymongo.errors import PyMongoError

from schemabuilder.core.exceptions import UpstreamDependencyError
from schemabuilder.core.logging import get_logger
from schemabuilder.models.schema import Schema
from schemabuilder.models.user import User
from schemabuilder.repository.base import DuplicateKeyError, SchemaRepository, UserRepository

logger = get_logger(__name__)

USERS_COLLECTION = "users"
SCHEMAS_COLLECTION = "schemas"


def _duplicate_field(exc: MongoDuplicateKeyError) -> str:
    """Work out which unique key a duplicate-key error refers to."""
    details = exc.details or {}
    key_pattern = details.get("keyPattern") or details.get("keyValue") or {}
    if key_pattern:
        return next(iter(key_pattern))
    message = str(exc)
    for field in ("federated_id", "username", "email"):
        if field in message:
            return field
    return "unknown"


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Translate driver errors into repository and domain errors."""
    try:
        yield
    except MongoDuplicateKeyError as exc:
        raise DuplicateKeyError(_duplicate_field(exc)) from exc
    except PyMongoError as exc:
        logger.error("Document store operation failed", operation=operation, error=str(exc))
        raise UpstreamDependencyError() from exc


def _object_id(value: str) -> Optional[ObjectId]:
    return ObjectId(value) if ObjectId.is_valid(value) else None


def _serialize(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="python")
    if isinstance(value, list):
        return [_serialize(item) for item in value]
    if hasattr(value, "value") and not isinstance(value, (str, int, float, bool)):
        return value.value
    return value


def _split_update(fields: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Build ``$set``/``$unset`` operators; ``None`` removes the field."""
    to_set = {key: _serialize(value) for key, value in fields.items() if value is not None}
    to_unset = {key: "" for key, value in fields.items() if value is None}
    update: Dict[str, Dict[str, Any]] = {"$set": to_set}
    if to_unset:
        update["$unset"] = to_unset
    return update


def _user_from_document(doc: Optional[Dict[str, Any]]) -> Optional[User]:
    if doc is None:
        return None
    data = dict(doc)
    data["id"] = str(data.pop("_id"))
    return User.model_validate(data)


def _user_to_document(user: User) -> Dict[str, Any]:
    doc = user.model_dump(mode="python", exclude={"id"}, exclude_none=True)
    doc["provider"] = user.provider.value
    return doc


def _schema_from_document(doc: Optional[Dict[str, Any]]) -> Optional[Schema]:
    if doc is None:
        return None
    data = dict(doc)
    data["id"] = str(data.pop("_id"))
    data["user_id"] = str(data["user_id"])
    return Schema.model_validate(data)


async def ensure_indexes(database: AsyncIOMotorDatabase) -> None:
    """Declare the unique keys identity reconciliation relies on."""
    users = database[USERS_COLLECTION]
    schemas = database[SCHEMAS_COLLECTION]
    with _store_errors("ensure_indexes"):
        await users.create_index([("email", ASCENDING)], unique=True, name="uniq_email")
        await users.create_index([("username", ASCENDING)], unique=True, name="uniq_username")
        await users.create_index(
            [("federated_id", ASCENDING)],
            unique=True,
            name="uniq_federated_id",
            partialFilterExpression={"federated_id": {"$type": "string"}},
        )
        await schemas.create_index([("user_id", ASCENDING), ("updated_at", DESCENDING)], name="owner_recent")
        await schemas.create_index([("is_public", ASCENDING), ("updated_at", DESCENDING)], name="public_recent")
    logger.info("Database indexes ensured")


class MongoUserRepository(UserRepository):
    """User store on a MongoDB collection."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def create(self, user: User) -> User:
        now = datetime.now(timezone.utc)
        doc = _user_to_document(user.model_copy(update={"created_at": now, "updated_at": now}))
        with _store_errors("users.insert"):
            result = await self.collection.insert_one(doc)
        return user.model_copy(update={"id": str(result.inserted_id), "created_at": now, "updated_at": now})

    async def _find_one(self, query: Dict[str, Any]) -> Optional[User]:
        with _store_errors("users.find"):
            doc = await self.collection.find_one(query)
        return _user_from_document(doc)

    async def get_by_id(self, user_id: str) -> Optional[User]:
        oid = _object_id(user_id)
        if oid is None:
            return None
        return await self._find_one({"_id": oid})

    async def get_by_email(self, email: str) -> Optional[User]:
        return await self._find_one({"email": email})

    async def get_by_username(self, username: str) -> Optional[User]:
        return await self._find_one({"username": username})

    async def get_by_federated_id(self, federated_id: str) -> Optional[User]:
        return await self._find_one({"federated_id": federated_id})

    async def _update_one(self, query: Dict[str, Any], fields: Dict[str, Any]) -> Optional[User]:
        update = _split_update({**fields, "updated_at": datetime.now(timezone.utc)})
        with _store_errors("users.update"):
            doc = await self.collection.find_one_and_update(
                query, update, return_document=ReturnDocument.AFTER
            )
        return _user_from_document(doc)

    async def update(self, user_id: str, fields: Dict[str, Any]) -> Optional[User]:
        oid = _object_id(user_id)
        if oid is None:
            return None
        return await self._update_one({"_id": oid}, fields)

    async def link_federated_identity(
        self, user_id: str, federated_id: str, fields: Dict[str, Any]
    ) -> Optional[User]:
        oid = _object_id(user_id)
        if oid is None:
            return None
        query = {
            "_id": oid,
            "$or": [
                {"federated_id": {"$exists": False}},
                {"federated_id": None},
                {"federated_id": federated_id},
            ],
        }
        return await self._update_one(query, {**fields, "federated_id": federated_id})

    async def delete(self, user_id: str) -> bool:
        oid = _object_id(user_id)
        if oid is None:
            return False
        with _store_errors("users.delete"):
            result = await self.collection.delete_one({"_id": oid})
        return result.deleted_count > 0

    async def list(self, page: int, limit: int) -> Tuple[List[User], int]:
        with _store_errors("users.list"):
            cursor = (
                self.collection.find({})
                .sort("created_at", DESCENDING)
                .skip((page - 1) * limit)
                .limit(limit)
            )
            docs = await cursor.to_list(length=limit)
            total = await self.collection.count_documents({})
        return [_user_from_document(doc) for doc in docs], total


class MongoSchemaRepository(SchemaRepository):
    """Schema store on a MongoDB collection."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def create(self, schema: Schema) -> Schema:
        now = datetime.now(timezone.utc)
        doc = schema.model_dump(mode="python", exclude={"id"})
        doc.update({"user_id": ObjectId(schema.user_id), "version": 1, "created_at": now, "updated_at": now})
        with _store_errors("schemas.insert"):
            result = await self.collection.insert_one(doc)
        return schema.model_copy(update={
            "id": str(result.inserted_id),
            "version": 1,
            "created_at": now,
            "updated_at": now,
        })

    async def get_by_id(self, schema_id: str) -> Optional[Schema]:
        oid = _object_id(schema_id)
        if oid is None:
            return None
        with _store_errors("schemas.find"):
            doc = await self.collection.find_one({"_id": oid})
        return _schema_from_document(doc)

    async def _page(self, query: Dict[str, Any], page: int, limit: int) -> Tuple[List[Schema], int]:
        with _store_errors("schemas.list"):
            cursor = (
                self.collection.find(query)
                .sort("updated_at", DESCENDING)
                .skip((page - 1) * limit)
                .limit(limit)
            )
            docs = await cursor.to_list(length=limit)
            total = await self.collection.count_documents(query)
        return [_schema_from_document(doc) for doc in docs], total

    async def list_by_user(self, user_id: str, page: int, limit: int) -> Tuple[List[Schema], int]:
        oid = _object_id(user_id)
        if oid is None:
            return [], 0
        return await self._page({"user_id": oid}, page, limit)

    async def list_public(self, page: int, limit: int) -> Tuple[List[Schema], int]:
        return await self._page({"is_public": True}, page, limit)

    async def list_others(self, exclude_user_id: str, page: int, limit: int) -> Tuple[List[Schema], int]:
        query: Dict[str, Any] = {"is_public": True}
        oid = _object_id(exclude_user_id)
        if oid is not None:
            query["user_id"] = {"$ne": oid}
        return await self._page(query, page, limit)

    async def update(self, schema_id: str, fields: Dict[str, Any], bump_version: bool) -> Optional[Schema]:
        oid = _object_id(schema_id)
        if oid is None:
            return None
        update = _split_update({**fields, "updated_at": datetime.now(timezone.utc)})
        if bump_version:
            update["$inc"] = {"version": 1}
        with _store_errors("schemas.update"):
            doc = await self.collection.find_one_and_update(
                {"_id": oid}, update, return_document=ReturnDocument.AFTER
            )
        return _schema_from_document(doc)

    async def delete(self, schema_id: str) -> bool:
        oid = _object_id(schema_id)
        if oid is None:
            return False
        with _store_errors("schemas.delete"):
            result = await self.collection.delete_one({"_id": oid})
        return result.deleted_count > 0

    async def delete_by_user(self, user_id: str) -> int:
        oid = _object_id(user_id)
        if oid is None:
            return 0
        with _store_errors("schemas.delete_many"):
            result = await self.collection.delete_many({"user_id": oid})
        return result.deleted_count
