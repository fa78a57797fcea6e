"""User profile management."""

from typing import Optional

from schemabuilder.core.exceptions import UserNotFound, UsernameTaken
from schemabuilder.core.logging import get_logger
from schemabuilder.models.schema import Page
from schemabuilder.models.user import ProfileUpdate, User, UserPublic
from schemabuilder.repository.base import DuplicateKeyError, SchemaRepository, UserRepository
from schemabuilder.services.schemas import clamp_pagination


class UserService:
    def __init__(self, users: UserRepository, schemas: SchemaRepository, logger=None):
        self.users = users
        self.schemas = schemas
        self.logger = logger or get_logger(__name__)

    async def get_profile(self, user_id: str) -> User:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise UserNotFound()
        return user

    async def update_profile(self, actor: User, data: ProfileUpdate) -> User:
        fields = data.model_dump(exclude_none=True)
        if not fields:
            return await self.get_profile(actor.id)

        username = fields.get("username")
        if username and username != actor.username:
            if await self.users.username_exists(username):
                raise UsernameTaken()
        try:
            updated = await self.users.update(actor.id, fields)
        except DuplicateKeyError as e:
            raise UsernameTaken() from e
        if updated is None:
            raise UserNotFound()
        self.logger.info("Profile updated", user_id=actor.id, fields=sorted(fields))
        return updated

    async def delete_account(self, actor: User) -> None:
        """Delete a user together with every schema they own."""
        removed = await self.schemas.delete_by_user(actor.id)
        if not await self.users.delete(actor.id):
            raise UserNotFound()
        self.logger.info("User deleted", user_id=actor.id, schemas_removed=removed)

    async def list_users(self, page: Optional[int] = None, limit: Optional[int] = None) -> Page[UserPublic]:
        page, limit = clamp_pagination(page, limit)
        users, total = await self.users.list(page, limit)
        return Page[UserPublic](
            items=[UserPublic.from_user(u) for u in users], total=total, page=page, limit=limit
        )
