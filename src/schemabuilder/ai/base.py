"""Base classes for the schema design assistant."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from schemabuilder.core.logging import get_logger
from schemabuilder.models.schema import Table


class ChatRequest(BaseModel):
    message: str = Field(min_length=1, max_length=2000)
    session_id: Optional[str] = Field(default=None, max_length=128)


class Relationship(BaseModel):
    """A suggested link between two tables of the diagram."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    from_: str = Field(default="", alias="from")
    to: str = ""
    type: str = ""
    from_port: str = ""
    to_port: str = ""


class SchemaAction(BaseModel):
    """Structured edit proposed by the assistant."""

    type: str = "create_schema"
    data: Dict[str, Any] = Field(default_factory=dict)
    tables: List[Table] = Field(default_factory=list)
    relationships: List[Relationship] = Field(default_factory=list)


class ChatResponse(BaseModel):
    message: str
    session_id: str
    schema_action: Optional[SchemaAction] = None


class AIProvider(ABC):
    """Abstract base class for chat model providers."""

    def __init__(self, config: Dict[str, Any]):
        """Initialize AI provider with configuration."""
        self.config = config
        self.model_name = config.get("model", "")
        self.temperature = config.get("temperature", 0.4)
        self.max_tokens = config.get("max_tokens", 4000)
        self.logger = get_logger(f"{self.__class__.__name__}")

    @abstractmethod
    async def complete(self, system_prompt: str, message: str) -> str:
        """Send one user message and return the assistant's text."""
        pass
