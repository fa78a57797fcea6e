"""Schema design assistant."""

from schemabuilder.ai.base import AIProvider, ChatRequest, ChatResponse, Relationship, SchemaAction
from schemabuilder.ai.factory import AIProviderFactory, MockChatProvider
from schemabuilder.ai.service import ChatService

__all__ = [
    "AIProvider",
    "AIProviderFactory",
    "ChatRequest",
    "ChatResponse",
    "ChatService",
    "MockChatProvider",
    "Relationship",
    "SchemaAction",
]
