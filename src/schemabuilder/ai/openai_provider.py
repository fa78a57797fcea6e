"""OpenAI chat provider."""

from typing import Any, Dict

from openai import AsyncOpenAI

from schemabuilder.ai.base import AIProvider


class OpenAIProvider(AIProvider):
    """OpenAI GPT provider for the schema assistant."""

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)

        api_key = config.get("openai_api_key")
        if not api_key:
            raise ValueError("OpenAI API key is required")

        self.client = AsyncOpenAI(api_key=api_key)
        self.model_name = self.model_name or "gpt-4o-mini"

    async def complete(self, system_prompt: str, message: str) -> str:
        response = await self.client.chat.completions.create(
            model=self.model_name,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": message},
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ValueError("Empty response from OpenAI API")
        return content
