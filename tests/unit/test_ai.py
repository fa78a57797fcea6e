"""Tests for the schema design assistant."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from schemabuilder.ai.anthropic_provider import AnthropicProvider
from schemabuilder.ai.base import ChatRequest, Relationship
from schemabuilder.ai.factory import AIProviderFactory, MockChatProvider
from schemabuilder.ai.gemini_provider import GeminiProvider
from schemabuilder.ai.openai_provider import OpenAIProvider
from schemabuilder.ai.parsing import convert_field, extract_schema_action
from schemabuilder.ai.prompts import ERROR_REPLY, SCHEMA_ASSISTANT_PROMPT
from schemabuilder.ai.service import ChatService
from schemabuilder.core.config import AIConfig
from schemabuilder.core.exceptions import ValidationError
from schemabuilder.models.user import User


@pytest.fixture
def actor():
    return User(id="64b000000000000000000001", email="a@x.com", username="ada")


@pytest.fixture
def schema_reply():
    block = {
        "action": "create_schema",
        "tables": [
            {
                "id": "table_1",
                "name": "users",
                "position": {"x": 120, "y": 80.5},
                "fields": [
                    {"id": "f1", "name": "id", "type": "SERIAL", "is_primary_key": True, "is_not_null": True},
                    {"id": "f2", "name": "email", "type": "VARCHAR(255)", "is_unique": True},
                ],
            },
            {
                "id": "table_2",
                "name": "posts",
                "fields": [
                    {"id": "f3", "name": "user_id", "type": "INTEGER", "is_foreign_key": True,
                     "references": {"table_id": "table_1", "field_id": "f1"}},
                ],
            },
        ],
        "relationships": [
            {"id": "rel_1", "from": "table_2", "to": "table_1", "type": "many-to-one",
             "from_port": "f3", "to_port": "f1"},
        ],
    }
    return f"I created a users table and a posts table.\n\n<SCHEMA_JSON>\n{json.dumps(block)}\n</SCHEMA_JSON>"


class TestExtractSchemaAction:
    """Test parsing of the structured block."""

    def test_extracts_tables_and_relationships(self, schema_reply):
        action, text = extract_schema_action(schema_reply)

        assert text == "I created a users table and a posts table."
        assert action.type == "create_schema"
        assert [t.name for t in action.tables] == ["users", "posts"]
        assert action.tables[0].position.y == 80.5
        assert action.tables[1].fields[0].references.table_id == "table_1"
        assert action.relationships[0].from_ == "table_2"
        assert action.data["relationships"][0]["from"] == "table_2"

    def test_not_null_maps_to_nullable(self):
        assert convert_field({"is_not_null": True}).is_nullable is False
        assert convert_field({"is_not_null": False}).is_nullable is True
        assert convert_field({}).is_nullable is True
        assert convert_field({"is_nullable": False}).is_nullable is False

    def test_block_inside_code_fence(self):
        reply = 'Here you go:\n```json\n<SCHEMA_JSON>{"tables": []}</SCHEMA_JSON>\n```'

        action, text = extract_schema_action(reply)

        assert action is not None
        assert action.tables == []
        assert text == "Here you go:"

    def test_no_block(self):
        action, text = extract_schema_action("Just some advice about indexes.")

        assert action is None
        assert text == "Just some advice about indexes."

    def test_invalid_json(self):
        action, text = extract_schema_action("Oops <SCHEMA_JSON>{not json</SCHEMA_JSON>")

        assert action is None
        assert text == "Oops"

    def test_non_object_json(self):
        action, _ = extract_schema_action("<SCHEMA_JSON>[1, 2, 3]</SCHEMA_JSON>")
        assert action is None

    def test_wrong_types_are_tolerated(self):
        block = {
            "tables": [
                {"id": 5, "name": "t", "position": "left", "fields": [{"name": ["x"], "is_unique": "yes"}, "junk"]},
                "not-a-table",
            ],
            "relationships": "none",
        }

        action, _ = extract_schema_action(f"<SCHEMA_JSON>{json.dumps(block)}</SCHEMA_JSON>")

        assert len(action.tables) == 1
        table = action.tables[0]
        assert table.id == ""
        assert table.position.x == 0.0
        assert len(table.fields) == 1
        assert table.fields[0].name == ""
        assert table.fields[0].is_unique is False
        assert action.relationships == []


class TestRelationship:
    def test_populate_by_alias_or_name(self):
        assert Relationship(**{"from": "a"}).from_ == "a"
        assert Relationship(from_="b").from_ == "b"
        assert Relationship(from_="c").model_dump(by_alias=True)["from"] == "c"


class TestAIProviderFactory:
    """Test provider selection."""

    def test_mock_provider(self):
        provider = AIProviderFactory.create_provider("mock", {})
        assert isinstance(provider, MockChatProvider)

    def test_openai_provider(self):
        provider = AIProviderFactory.create_provider("gpt-4o-mini", {"openai_api_key": "sk-test"})

        assert isinstance(provider, OpenAIProvider)
        assert provider.model_name == "gpt-4o-mini"

    def test_anthropic_latest_alias(self):
        provider = AIProviderFactory.create_provider(
            "claude-3-5-sonnet-latest", {"anthropic_api_key": "sk-ant-test"}
        )
        assert isinstance(provider, AnthropicProvider)

    def test_missing_key(self):
        with pytest.raises(ValueError, match="OpenAI API key is required"):
            AIProviderFactory.create_provider("gpt-4", {})

    @patch("schemabuilder.ai.gemini_provider.genai")
    def test_unknown_model_defaults_to_gemini(self, mock_genai):
        provider = AIProviderFactory.create_provider("some-new-model", {"gemini_api_key": "g-key"})

        assert isinstance(provider, GeminiProvider)
        mock_genai.configure.assert_called_once_with(api_key="g-key")

    def test_from_config(self):
        config = AIConfig(default_model="mock", temperature=0.1, max_tokens=100)
        provider = AIProviderFactory.from_config(config)

        assert isinstance(provider, MockChatProvider)
        assert provider.temperature == 0.1
        assert provider.max_tokens == 100

    def test_supported_models(self):
        models = AIProviderFactory.get_supported_models()
        assert "gemini" in models and "claude" in models and "mock" in models


class TestProviders:
    """Test provider calls with mocked SDK clients."""

    async def test_openai_complete(self):
        provider = OpenAIProvider({"openai_api_key": "sk-test", "model": "gpt-4o-mini"})
        response = MagicMock()
        response.choices = [MagicMock(message=MagicMock(content="hello"))]
        provider.client = MagicMock()
        provider.client.chat.completions.create = AsyncMock(return_value=response)

        assert await provider.complete("system", "hi") == "hello"
        kwargs = provider.client.chat.completions.create.await_args.kwargs
        assert kwargs["messages"][0] == {"role": "system", "content": "system"}

    async def test_anthropic_empty_response(self):
        provider = AnthropicProvider({"anthropic_api_key": "sk-ant-test", "model": "claude"})
        provider.client = MagicMock()
        provider.client.messages.create = AsyncMock(return_value=MagicMock(content=[]))

        with pytest.raises(ValueError, match="Empty response"):
            await provider.complete("system", "hi")

    @patch("schemabuilder.ai.gemini_provider.genai")
    async def test_gemini_complete(self, mock_genai):
        part = MagicMock(text="from gemini")
        candidate = MagicMock()
        candidate.content.parts = [part]
        model = mock_genai.GenerativeModel.return_value
        model.generate_content_async = AsyncMock(return_value=MagicMock(candidates=[candidate]))
        provider = GeminiProvider({"gemini_api_key": "g-key", "model": "gemini-2.0-flash"})

        assert await provider.complete("system", "hi") == "from gemini"
        assert mock_genai.GenerativeModel.call_args.kwargs["system_instruction"] == "system"


class TestChatService:
    """Test the chat proxy."""

    async def test_reply_with_schema_action(self, actor):
        service = ChatService(MockChatProvider({"model": "mock"}))

        response = await service.chat(actor, ChatRequest(message="an inventory table", session_id="s-1"))

        assert response.session_id == "s-1"
        assert "an inventory table" in response.message
        assert "<SCHEMA_JSON>" not in response.message
        assert response.schema_action.tables[0].name == "items"
        assert response.schema_action.tables[0].fields[0].is_nullable is False

    async def test_generates_session_id(self, actor):
        response = await ChatService(MockChatProvider({})).chat(actor, ChatRequest(message="hi"))
        assert response.session_id

    async def test_provider_failure_returns_apology(self, actor):
        provider = MagicMock()
        provider.complete = AsyncMock(side_effect=RuntimeError("quota exceeded"))

        response = await ChatService(provider).chat(actor, ChatRequest(message="hi", session_id="s-2"))

        assert response.message == ERROR_REPLY
        assert response.session_id == "s-2"
        assert response.schema_action is None

    async def test_no_provider(self, actor):
        response = await ChatService(None).chat(actor, ChatRequest(message="hi"))
        assert response.message == ERROR_REPLY

    async def test_system_prompt_forwarded(self, actor):
        provider = MagicMock()
        provider.complete = AsyncMock(return_value="plain answer")

        response = await ChatService(provider).chat(actor, ChatRequest(message="hi"))

        provider.complete.assert_awaited_once_with(SCHEMA_ASSISTANT_PROMPT, "hi")
        assert response.message == "plain answer"
        assert response.schema_action is None

    async def test_message_too_long(self, actor):
        service = ChatService(MockChatProvider({}), max_message_length=10)

        with pytest.raises(ValidationError):
            await service.chat(actor, ChatRequest(message="x" * 11))
