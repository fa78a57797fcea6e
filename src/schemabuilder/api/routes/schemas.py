"""Schema CRUD endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from schemabuilder.api.container import ServiceContainer
from schemabuilder.api.dependencies import get_container, require_user
from schemabuilder.models.auth import SuccessResponse
from schemabuilder.models.schema import Page, Schema, SchemaCreate, SchemaDuplicate, SchemaUpdate
from schemabuilder.models.user import User

router = APIRouter()


def _listing(message: str, page: Page[Schema]) -> SuccessResponse:
    return SuccessResponse(message=message, data={"schemas": page.items, "pagination": page.pagination()})


@router.post("", response_model=SuccessResponse, status_code=status.HTTP_201_CREATED)
async def create_schema(
    body: SchemaCreate,
    user: User = Depends(require_user),
    container: ServiceContainer = Depends(get_container),
):
    schema = await container.schemas.create(user, body)
    return SuccessResponse(message="Schema created successfully", data=schema)


@router.get("", response_model=SuccessResponse)
async def list_schemas(
    page: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    user: User = Depends(require_user),
    container: ServiceContainer = Depends(get_container),
):
    result = await container.schemas.list_for_user(user, page, limit)
    return _listing("Schemas retrieved successfully", result)


@router.get("/public", response_model=SuccessResponse)
async def list_public_schemas(
    page: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    container: ServiceContainer = Depends(get_container),
):
    result = await container.schemas.list_public(page, limit)
    return _listing("Public schemas retrieved successfully", result)


@router.get("/others", response_model=SuccessResponse)
async def list_other_users_schemas(
    page: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    user: User = Depends(require_user),
    container: ServiceContainer = Depends(get_container),
):
    result = await container.schemas.list_others(user, page, limit)
    return _listing("Other users' schemas retrieved successfully", result)


@router.get("/{schema_id}", response_model=SuccessResponse)
async def get_schema(
    schema_id: str,
    user: User = Depends(require_user),
    container: ServiceContainer = Depends(get_container),
):
    schema = await container.schemas.get(user, schema_id)
    return SuccessResponse(message="Schema retrieved successfully", data=schema)


@router.put("/{schema_id}", response_model=SuccessResponse)
async def update_schema(
    schema_id: str,
    body: SchemaUpdate,
    user: User = Depends(require_user),
    container: ServiceContainer = Depends(get_container),
):
    schema = await container.schemas.update(user, schema_id, body)
    return SuccessResponse(message="Schema updated successfully", data=schema)


@router.delete("/{schema_id}", response_model=SuccessResponse)
async def delete_schema(
    schema_id: str,
    user: User = Depends(require_user),
    container: ServiceContainer = Depends(get_container),
):
    await container.schemas.delete(user, schema_id)
    return SuccessResponse(message="Schema deleted successfully")


@router.post("/{schema_id}/duplicate", response_model=SuccessResponse, status_code=status.HTTP_201_CREATED)
async def duplicate_schema(
    schema_id: str,
    body: SchemaDuplicate,
    user: User = Depends(require_user),
    container: ServiceContainer = Depends(get_container),
):
    schema = await container.schemas.duplicate(user, schema_id, body.name)
    return SuccessResponse(message="Schema duplicated successfully", data=schema)


@router.patch("/{schema_id}/visibility", response_model=SuccessResponse)
async def toggle_visibility(
    schema_id: str,
    user: User = Depends(require_user),
    container: ServiceContainer = Depends(get_container),
):
    schema = await container.schemas.toggle_visibility(user, schema_id)
    return SuccessResponse(message="Schema visibility updated successfully", data=schema)
