"""Schema assistant chat endpoint."""

from fastapi import APIRouter, Depends

from schemabuilder.ai.base import ChatRequest
from schemabuilder.api.container import ServiceContainer
from schemabuilder.api.dependencies import get_container, require_user
from schemabuilder.models.auth import SuccessResponse
from schemabuilder.models.user import User

router = APIRouter()


@router.post("/chat", response_model=SuccessResponse)
async def chat(
    body: ChatRequest,
    user: User = Depends(require_user),
    container: ServiceContainer = Depends(get_container),
):
    response = await container.chat.chat(user, body)
    return SuccessResponse(message="Chat response generated", data=response)
