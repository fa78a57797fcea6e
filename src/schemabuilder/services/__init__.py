"""Application services for schemas and user profiles."""

from schemabuilder.services.schemas import SchemaService, clamp_pagination
from schemabuilder.services.users import UserService

__all__ = ["SchemaService", "UserService", "clamp_pagination"]
