"""Profile endpoints of the signed-in user."""

from fastapi import APIRouter, Depends

from schemabuilder.api.container import ServiceContainer
from schemabuilder.api.dependencies import get_container, require_user
from schemabuilder.models.auth import SuccessResponse
from schemabuilder.models.user import ProfileUpdate, User, UserPublic

router = APIRouter()


@router.get("/profile", response_model=SuccessResponse)
async def get_profile(user: User = Depends(require_user)):
    return SuccessResponse(message="Profile retrieved successfully", data=UserPublic.from_user(user))


@router.put("/profile", response_model=SuccessResponse)
async def update_profile(
    body: ProfileUpdate,
    user: User = Depends(require_user),
    container: ServiceContainer = Depends(get_container),
):
    updated = await container.users.update_profile(user, body)
    return SuccessResponse(message="Profile updated successfully", data=UserPublic.from_user(updated))


@router.delete("/profile", response_model=SuccessResponse)
async def delete_profile(user: User = Depends(require_user), container: ServiceContainer = Depends(get_container)):
    await container.users.delete_account(user)
    return SuccessResponse(message="Account deleted successfully")
