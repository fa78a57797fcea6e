"""Schema documents with owner-only mutation."""

from typing import Any, Dict, Optional, Tuple

from bson import ObjectId

from schemabuilder.core.exceptions import AccessDenied, SchemaNotFound, ValidationError
from schemabuilder.core.logging import get_logger
from schemabuilder.models.schema import Page, Schema, SchemaCreate, SchemaUpdate
from schemabuilder.models.user import User
from schemabuilder.repository.base import SchemaRepository

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def clamp_pagination(page: Optional[int], limit: Optional[int]) -> Tuple[int, int]:
    """Normalize paging input: page >= 1, limit within [1, 100], default 10."""
    page = page if page is not None and page >= 1 else 1
    if limit is None:
        limit = DEFAULT_PAGE_SIZE
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    return page, limit


class SchemaService:
    """CRUD over schemas. Every mutation checks that the actor owns the schema."""

    def __init__(self, schemas: SchemaRepository, logger=None):
        self.schemas = schemas
        self.logger = logger or get_logger(__name__)

    async def _load(self, schema_id: str) -> Schema:
        if not ObjectId.is_valid(schema_id):
            raise ValidationError("Invalid schema ID", details={"id": schema_id})
        schema = await self.schemas.get_by_id(schema_id)
        if schema is None:
            raise SchemaNotFound()
        return schema

    async def _load_owned(self, actor: User, schema_id: str) -> Schema:
        schema = await self._load(schema_id)
        if schema.user_id != actor.id:
            self.logger.warning("Schema access denied", schema_id=schema_id, user_id=actor.id)
            raise AccessDenied("You can only modify your own schemas")
        return schema

    async def create(self, actor: User, data: SchemaCreate) -> Schema:
        schema = await self.schemas.create(Schema(
            user_id=actor.id,
            name=data.name,
            description=data.description,
            tables=data.tables,
            is_public=data.is_public,
        ))
        self.logger.info("Schema created", schema_id=schema.id, user_id=actor.id)
        return schema

    async def get(self, actor: Optional[User], schema_id: str) -> Schema:
        """Load a schema the actor may read: their own or any public one."""
        schema = await self._load(schema_id)
        if schema.is_public or (actor is not None and schema.user_id == actor.id):
            return schema
        raise AccessDenied("Schema is private")

    async def list_for_user(self, actor: User, page: Optional[int] = None, limit: Optional[int] = None) -> Page[Schema]:
        page, limit = clamp_pagination(page, limit)
        items, total = await self.schemas.list_by_user(actor.id, page, limit)
        return Page[Schema](items=items, total=total, page=page, limit=limit)

    async def list_public(self, page: Optional[int] = None, limit: Optional[int] = None) -> Page[Schema]:
        page, limit = clamp_pagination(page, limit)
        items, total = await self.schemas.list_public(page, limit)
        return Page[Schema](items=items, total=total, page=page, limit=limit)

    async def list_others(self, actor: User, page: Optional[int] = None, limit: Optional[int] = None) -> Page[Schema]:
        page, limit = clamp_pagination(page, limit)
        items, total = await self.schemas.list_others(actor.id, page, limit)
        return Page[Schema](items=items, total=total, page=page, limit=limit)

    async def update(self, actor: User, schema_id: str, data: SchemaUpdate) -> Schema:
        schema = await self._load_owned(actor, schema_id)

        fields: Dict[str, Any] = data.model_dump(exclude_none=True, exclude={"tables"})
        bump_version = False
        if data.tables is not None:
            fields["tables"] = data.tables
            bump_version = data.tables != schema.tables

        updated = await self.schemas.update(schema_id, fields, bump_version=bump_version)
        if updated is None:
            raise SchemaNotFound()
        self.logger.info("Schema updated", schema_id=schema_id, version=updated.version)
        return updated

    async def delete(self, actor: User, schema_id: str) -> None:
        await self._load_owned(actor, schema_id)
        if not await self.schemas.delete(schema_id):
            raise SchemaNotFound()
        self.logger.info("Schema deleted", schema_id=schema_id)

    async def duplicate(self, actor: User, schema_id: str, name: str) -> Schema:
        original = await self.get(actor, schema_id)
        copy = SchemaCreate(
            name=name,
            description=f"Copy of {original.name}",
            tables=original.tables,
            is_public=False,
        )
        return await self.create(actor, copy)

    async def toggle_visibility(self, actor: User, schema_id: str) -> Schema:
        schema = await self._load_owned(actor, schema_id)
        updated = await self.schemas.update(schema_id, {"is_public": not schema.is_public}, bump_version=False)
        if updated is None:
            raise SchemaNotFound()
        self.logger.info("Schema visibility changed", schema_id=schema_id, is_public=updated.is_public)
        return updated
