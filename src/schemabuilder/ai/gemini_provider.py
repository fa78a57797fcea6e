"""Google Gemini chat provider."""

from typing import Any, Dict

import google.generativeai as genai

from schemabuilder.ai.base import AIProvider


class GeminiProvider(AIProvider):
    """Google Gemini provider for the schema assistant."""

    def __init__(self, config: Dict[str, Any]):
        """Initialize Gemini provider."""
        super().__init__(config)

        api_key = config.get("gemini_api_key")
        if not api_key:
            raise ValueError("Gemini API key is required")

        genai.configure(api_key=api_key)
        self.model_name = self.model_name or "gemini-2.0-flash"
        self.generation_config = genai.types.GenerationConfig(
            temperature=self.temperature,
            max_output_tokens=self.max_tokens,
            candidate_count=1,
        )

    async def complete(self, system_prompt: str, message: str) -> str:
        model = genai.GenerativeModel(
            model_name=self.model_name,
            generation_config=self.generation_config,
            system_instruction=system_prompt,
        )
        response = await model.generate_content_async(message)

        parts = []
        for candidate in response.candidates:
            if candidate.content is None:
                continue
            for part in candidate.content.parts:
                if getattr(part, "text", None):
                    parts.append(part.text)
        content = "".join(parts)
        if not content:
            raise ValueError("Empty response from Gemini API")
        return content
