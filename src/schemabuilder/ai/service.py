"""Chat proxy between users and the configured model."""

import uuid
from typing import Optional

from schemabuilder.ai.base import AIProvider, ChatRequest, ChatResponse
from schemabuilder.ai.parsing import extract_schema_action
from schemabuilder.ai.prompts import ERROR_REPLY, SCHEMA_ASSISTANT_PROMPT
from schemabuilder.core.exceptions import ValidationError
from schemabuilder.core.logging import get_logger
from schemabuilder.models.user import User


class ChatService:
    """Forwards chat messages and pulls proposed schema edits out of replies.

    Provider failures never surface as errors: the caller receives an
    apology message instead.
    """

    def __init__(self, provider: Optional[AIProvider], max_message_length: int = 2000, logger=None):
        self.provider = provider
        self.max_message_length = max_message_length
        self.logger = logger or get_logger(__name__)

    async def chat(self, actor: User, request: ChatRequest) -> ChatResponse:
        if len(request.message) > self.max_message_length:
            raise ValidationError(
                "Message is too long", details={"max_length": self.max_message_length}
            )
        session_id = request.session_id or str(uuid.uuid4())
        self.logger.info("Processing chat request", user_id=actor.id, session_id=session_id)

        if self.provider is None:
            self.logger.error("No AI provider configured")
            return ChatResponse(message=ERROR_REPLY, session_id=session_id)

        try:
            reply = await self.provider.complete(SCHEMA_ASSISTANT_PROMPT, request.message)
        except Exception as e:
            self.logger.error("AI provider call failed", session_id=session_id, error=str(e), exc_info=True)
            return ChatResponse(message=ERROR_REPLY, session_id=session_id)

        action, text = extract_schema_action(reply)
        if action is not None:
            self.logger.info("Extracted schema action", tables=len(action.tables),
                             relationships=len(action.relationships))
        return ChatResponse(message=text, session_id=session_id, schema_action=action)
