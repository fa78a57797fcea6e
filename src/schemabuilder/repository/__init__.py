"""User and schema persistence."""

from schemabuilder.repository.base import DuplicateKeyError, SchemaRepository, UserRepository
from schemabuilder.repository.memory import InMemorySchemaRepository, InMemoryUserRepository
from schemabuilder.repository.mongo import MongoSchemaRepository, MongoUserRepository, ensure_indexes

__all__ = [
    "DuplicateKeyError",
    "InMemorySchemaRepository",
    "InMemoryUserRepository",
    "MongoSchemaRepository",
    "MongoUserRepository",
    "SchemaRepository",
    "UserRepository",
    "ensure_indexes",
]
