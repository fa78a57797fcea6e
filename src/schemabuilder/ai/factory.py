"""Factory for creating AI providers."""

import json
from typing import Any, Dict, List

from schemabuilder.ai.anthropic_provider import AnthropicProvider
from schemabuilder.ai.base import AIProvider
from schemabuilder.ai.gemini_provider import GeminiProvider
from schemabuilder.ai.openai_provider import OpenAIProvider
from schemabuilder.core.config import AIConfig
from schemabuilder.core.logging import get_logger

logger = get_logger(__name__)


class MockChatProvider(AIProvider):
    """Canned assistant for tests and offline development."""

    async def complete(self, system_prompt: str, message: str) -> str:
        block = {
            "action": "create_schema",
            "tables": [
                {
                    "id": "table_1",
                    "name": "items",
                    "position": {"x": 100, "y": 100},
                    "fields": [
                        {"id": "field_1", "name": "id", "type": "INTEGER",
                         "is_primary_key": True, "is_not_null": True},
                        {"id": "field_2", "name": "name", "type": "VARCHAR(255)", "is_not_null": True},
                    ],
                }
            ],
            "relationships": [],
        }
        return (
            f"Here is a simple table for: {message}\n\n"
            f"<SCHEMA_JSON>\n{json.dumps(block, indent=2)}\n</SCHEMA_JSON>"
        )


class AIProviderFactory:
    """Factory for creating AI providers."""

    # Matched by substring in order; "test" would also match "...-latest"
    _providers = {
        "openai": OpenAIProvider,
        "gpt-4": OpenAIProvider,
        "gpt-4o": OpenAIProvider,
        "gpt-3.5-turbo": OpenAIProvider,
        "anthropic": AnthropicProvider,
        "claude": AnthropicProvider,
        "gemini": GeminiProvider,
        "mock": MockChatProvider,
        "test": MockChatProvider,
    }

    @classmethod
    def create_provider(cls, model_name: str, config: Dict[str, Any]) -> AIProvider:
        """Create an AI provider based on model name."""
        model_name = model_name.lower()

        provider_type = None
        for key, provider_class in cls._providers.items():
            if key in model_name:
                provider_type = provider_class
                break

        if not provider_type:
            logger.warning("Unknown model, defaulting to Gemini", model=model_name)
            provider_type = GeminiProvider

        config = config.copy()
        config["model"] = model_name

        logger.info("Creating AI provider", model=model_name, provider=provider_type.__name__)
        return provider_type(config)

    @classmethod
    def from_config(cls, config: AIConfig) -> AIProvider:
        return cls.create_provider(config.default_model, config.model_dump())

    @classmethod
    def get_supported_models(cls) -> List[str]:
        """Get list of supported AI models."""
        return list(cls._providers.keys())

    @classmethod
    def register_provider(cls, model_names: List[str], provider_class: type) -> None:
        """Register a new AI provider for specific models."""
        for model_name in model_names:
            cls._providers[model_name.lower()] = provider_class
