"""Tests for the MongoDB repositories against mocked collections."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError
from pymongo.errors import ServerSelectionTimeoutError

from schemabuilder.core.exceptions import UpstreamDependencyError
from schemabuilder.models.schema import Schema, Table
from schemabuilder.models.user import Provider, User
from schemabuilder.repository.base import DuplicateKeyError
from schemabuilder.repository.mongo import MongoSchemaRepository, MongoUserRepository, ensure_indexes


def _cursor(docs):
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=docs)
    return cursor


@pytest.fixture
def collection():
    mock = MagicMock()
    mock.insert_one = AsyncMock(return_value=MagicMock(inserted_id=ObjectId()))
    mock.find_one = AsyncMock(return_value=None)
    mock.find_one_and_update = AsyncMock(return_value=None)
    mock.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))
    mock.delete_many = AsyncMock(return_value=MagicMock(deleted_count=3))
    mock.count_documents = AsyncMock(return_value=0)
    mock.create_index = AsyncMock()
    return mock


@pytest.fixture
def user_doc():
    now = datetime(2024, 5, 1, tzinfo=timezone.utc)
    return {
        "_id": ObjectId(),
        "email": "a@x.com",
        "username": "ada",
        "first_name": "Ada",
        "provider": "linked",
        "federated_id": "sub-1",
        "is_verified": True,
        "created_at": now,
        "updated_at": now,
    }


class TestMongoUserRepository:
    """Test user documents and error translation."""

    async def test_create(self, collection):
        repo = MongoUserRepository(collection)

        user = await repo.create(User(email="a@x.com", username="ada", provider=Provider.FEDERATED))

        doc = collection.insert_one.await_args.args[0]
        assert doc["provider"] == "federated"
        assert "id" not in doc
        assert "password_hash" not in doc
        assert user.id == str(collection.insert_one.return_value.inserted_id)
        assert user.created_at is not None

    @pytest.mark.parametrize("field", ["email", "username", "federated_id"])
    async def test_duplicate_key_translated(self, collection, field):
        collection.insert_one.side_effect = MongoDuplicateKeyError(
            "E11000 duplicate key error", code=11000, details={"keyPattern": {field: 1}}
        )
        repo = MongoUserRepository(collection)

        with pytest.raises(DuplicateKeyError) as exc_info:
            await repo.create(User(email="a@x.com", username="ada"))
        assert exc_info.value.field == field

    async def test_duplicate_key_from_message(self, collection):
        collection.insert_one.side_effect = MongoDuplicateKeyError(
            "E11000 duplicate key error collection: users index: uniq_username dup key"
        )
        repo = MongoUserRepository(collection)

        with pytest.raises(DuplicateKeyError) as exc_info:
            await repo.create(User(email="a@x.com", username="ada"))
        assert exc_info.value.field == "username"

    async def test_store_failure_is_upstream_error(self, collection):
        collection.find_one.side_effect = ServerSelectionTimeoutError("no servers")
        repo = MongoUserRepository(collection)

        with pytest.raises(UpstreamDependencyError):
            await repo.get_by_email("a@x.com")

    async def test_document_to_user(self, collection, user_doc):
        collection.find_one.return_value = user_doc
        repo = MongoUserRepository(collection)

        user = await repo.get_by_email("a@x.com")

        collection.find_one.assert_awaited_once_with({"email": "a@x.com"})
        assert user.id == str(user_doc["_id"])
        assert user.provider == Provider.LINKED

    async def test_invalid_id_does_not_query(self, collection):
        repo = MongoUserRepository(collection)

        assert await repo.get_by_id("not-an-id") is None
        assert await repo.delete("not-an-id") is False
        collection.find_one.assert_not_awaited()
        collection.delete_one.assert_not_awaited()

    async def test_update_sets_and_unsets(self, collection, user_doc):
        collection.find_one_and_update.return_value = user_doc
        repo = MongoUserRepository(collection)

        await repo.update(str(user_doc["_id"]), {"is_verified": True, "verification_code": None})

        query, update = collection.find_one_and_update.await_args.args
        assert query == {"_id": user_doc["_id"]}
        assert update["$set"]["is_verified"] is True
        assert "updated_at" in update["$set"]
        assert update["$unset"] == {"verification_code": ""}
        assert collection.find_one_and_update.await_args.kwargs["return_document"] == ReturnDocument.AFTER

    async def test_link_is_conditional(self, collection, user_doc):
        collection.find_one_and_update.return_value = user_doc
        repo = MongoUserRepository(collection)

        await repo.link_federated_identity(str(user_doc["_id"]), "sub-1", {"provider": Provider.LINKED})

        query, update = collection.find_one_and_update.await_args.args
        assert {"federated_id": {"$exists": False}} in query["$or"]
        assert {"federated_id": "sub-1"} in query["$or"]
        assert update["$set"]["federated_id"] == "sub-1"
        assert update["$set"]["provider"] == "linked"

    async def test_link_condition_failed(self, collection, user_doc):
        repo = MongoUserRepository(collection)

        assert await repo.link_federated_identity(str(user_doc["_id"]), "sub-2", {}) is None

    async def test_list(self, collection, user_doc):
        cursor = _cursor([user_doc])
        collection.find.return_value = cursor
        collection.count_documents.return_value = 11
        repo = MongoUserRepository(collection)

        users, total = await repo.list(page=2, limit=10)

        cursor.skip.assert_called_once_with(10)
        cursor.limit.assert_called_once_with(10)
        assert total == 11
        assert users[0].email == "a@x.com"


class TestMongoSchemaRepository:
    """Test schema documents."""

    async def test_create_stores_owner_as_object_id(self, collection):
        owner = str(ObjectId())
        repo = MongoSchemaRepository(collection)

        schema = await repo.create(Schema(user_id=owner, name="Shop", tables=[Table(name="users")]))

        doc = collection.insert_one.await_args.args[0]
        assert doc["user_id"] == ObjectId(owner)
        assert doc["version"] == 1
        assert doc["tables"][0]["name"] == "users"
        assert schema.user_id == owner

    async def test_update_increments_version(self, collection):
        schema_id = ObjectId()
        collection.find_one_and_update.return_value = {
            "_id": schema_id,
            "user_id": ObjectId(),
            "name": "Shop",
            "version": 2,
        }
        repo = MongoSchemaRepository(collection)

        updated = await repo.update(str(schema_id), {"tables": [Table(name="orders")]}, bump_version=True)

        _, update = collection.find_one_and_update.await_args.args
        assert update["$inc"] == {"version": 1}
        assert update["$set"]["tables"] == [Table(name="orders").model_dump()]
        assert updated.version == 2

    async def test_update_without_bump(self, collection):
        repo = MongoSchemaRepository(collection)

        await repo.update(str(ObjectId()), {"is_public": True}, bump_version=False)

        _, update = collection.find_one_and_update.await_args.args
        assert "$inc" not in update

    async def test_list_others_excludes_owner(self, collection):
        collection.find.return_value = _cursor([])
        owner = ObjectId()
        repo = MongoSchemaRepository(collection)

        await repo.list_others(str(owner), 1, 10)

        assert collection.find.call_args.args[0] == {"is_public": True, "user_id": {"$ne": owner}}

    async def test_delete_by_user(self, collection):
        owner = ObjectId()
        repo = MongoSchemaRepository(collection)

        assert await repo.delete_by_user(str(owner)) == 3
        collection.delete_many.assert_awaited_once_with({"user_id": owner})


async def test_ensure_indexes(collection):
    database = MagicMock()
    database.__getitem__.return_value = collection

    await ensure_indexes(database)

    names = [call.kwargs["name"] for call in collection.create_index.await_args_list]
    assert names == ["uniq_email", "uniq_username", "uniq_federated_id", "owner_recent", "public_recent"]
    federated = collection.create_index.await_args_list[2]
    assert federated.kwargs["unique"] is True
    assert federated.kwargs["partialFilterExpression"] == {"federated_id": {"$type": "string"}}
