"""Anthropic Claude chat provider."""

from typing import Any, Dict

import anthropic

from schemabuilder.ai.base import AIProvider


class AnthropicProvider(AIProvider):
    """Anthropic Claude provider for the schema assistant."""

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)

        api_key = config.get("anthropic_api_key")
        if not api_key:
            raise ValueError("Anthropic API key is required")

        self.client = anthropic.AsyncAnthropic(api_key=api_key)
        self.model_name = self.model_name or "claude-3-5-sonnet-latest"

    async def complete(self, system_prompt: str, message: str) -> str:
        response = await self.client.messages.create(
            model=self.model_name,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            system=system_prompt,
            messages=[{"role": "user", "content": message}],
        )
        content = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        if not content:
            raise ValueError("Empty response from Anthropic API")
        return content
