"""Schema design documents."""

import math
from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field as PydanticField

T = TypeVar("T")


class Position(BaseModel):
    x: float = 0.0
    y: float = 0.0


class Reference(BaseModel):
    table_id: str = ""
    field_id: str = ""


class Field(BaseModel):
    """A column of a designed table."""

    id: str = ""
    name: str = ""
    type: str = ""
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    is_nullable: bool = True
    is_primary_key: bool = False
    is_unique: bool = False
    is_foreign_key: bool = False
    default_value: Optional[str] = None
    comment: Optional[str] = None
    references: Optional[Reference] = None


class Index(BaseModel):
    name: str
    type: str = "btree"
    fields: List[str] = PydanticField(default_factory=list)
    is_unique: bool = False


class Constraint(BaseModel):
    name: str
    type: str
    field: str
    reference_table: Optional[str] = None
    reference_field: Optional[str] = None
    on_update: Optional[str] = None
    on_delete: Optional[str] = None
    check_condition: Optional[str] = None


class Table(BaseModel):
    id: str = ""
    name: str = ""
    position: Position = PydanticField(default_factory=Position)
    fields: List[Field] = PydanticField(default_factory=list)
    indexes: List[Index] = PydanticField(default_factory=list)
    constraints: List[Constraint] = PydanticField(default_factory=list)


class Schema(BaseModel):
    """Stored schema document."""

    id: Optional[str] = None
    user_id: str
    name: str
    description: str = ""
    tables: List[Table] = PydanticField(default_factory=list)
    version: int = 1
    is_public: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SchemaCreate(BaseModel):
    name: str = PydanticField(min_length=1, max_length=100)
    description: str = PydanticField(default="", max_length=500)
    tables: List[Table] = PydanticField(default_factory=list)
    is_public: bool = False


class SchemaUpdate(BaseModel):
    """Partial update; fields left as None are not touched."""

    name: Optional[str] = PydanticField(default=None, min_length=1, max_length=100)
    description: Optional[str] = PydanticField(default=None, max_length=500)
    tables: Optional[List[Table]] = None
    is_public: Optional[bool] = None


class SchemaDuplicate(BaseModel):
    name: str = PydanticField(min_length=1, max_length=100)


class Page(BaseModel, Generic[T]):
    """One page of a paginated listing."""

    items: List[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def pagination(self) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
        }
