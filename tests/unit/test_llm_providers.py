"""Unit tests for LLM provider adapters — OpenAI, Anthropic, Ollama."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx
import openai
import pytest

from src.config.settings import Settings
from src.utils.errors import LLMError, ProviderUnavailableError, RateLimitError

_REQUEST = httpx.Request("POST", "https://api.example.com/v1/chat/completions")


# ======================================================================
# Shared helpers
# ======================================================================

def _settings(**overrides) -> Settings:
    defaults = {
        "openai_api_key": "sk-test",
        "openai_base_url": "",
        "openai_text_model": "",
        "anthropic_api_key": "test-anthropic",
        "ollama_base_url": "http://localhost:11434",
    }
    defaults.update(overrides)
    return Settings(**defaults)


def _response(status: int) -> httpx.Response:
    return httpx.Response(status, request=_REQUEST)


def _chat_completion(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(total_tokens=42),
    )


def _openai_client(create: AsyncMock) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = create
    client.models.list = AsyncMock(return_value=[])
    return client


# ======================================================================
# OpenAI LLM Provider
# ======================================================================


class TestOpenAILLMProvider:
    def test_client_built_without_sdk_retries(self) -> None:
        with patch("src.providers.llm.openai_provider.openai.AsyncOpenAI") as mock_cls:
            from src.providers.llm.openai_provider import OpenAILLMProvider

            OpenAILLMProvider(_settings())

        kwargs = mock_cls.call_args.kwargs
        assert kwargs["api_key"] == "sk-test"
        assert kwargs["max_retries"] == 0
        assert "base_url" not in kwargs

    def test_provider_name(self) -> None:
        from src.providers.llm.openai_provider import OpenAILLMProvider

        assert OpenAILLMProvider(_settings()).get_provider_name() == "openai"
        custom = OpenAILLMProvider(_settings(openai_base_url="https://api.together.xyz/v1"))
        assert custom.get_provider_name() == "openai-compatible"

    def test_is_available_without_key(self) -> None:
        from src.providers.llm.openai_provider import OpenAILLMProvider

        assert OpenAILLMProvider(_settings(openai_api_key="")).is_available() is False

    @pytest.mark.asyncio
    async def test_complete_returns_content(self) -> None:
        create = AsyncMock(return_value=_chat_completion('{"summary": []}'))
        with patch(
            "src.providers.llm.openai_provider.openai.AsyncOpenAI",
            return_value=_openai_client(create),
        ):
            from src.providers.llm.openai_provider import OpenAILLMProvider

            provider = OpenAILLMProvider(_settings())
            result = await provider.complete(
                system_prompt="sys", user_prompt="user", temperature=0.1, max_tokens=99
            )

        assert result == '{"summary": []}'
        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["messages"][0] == {"role": "system", "content": "sys"}
        assert kwargs["temperature"] == 0.1
        assert kwargs["max_tokens"] == 99

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("sdk_error", "expected"),
        [
            (openai.RateLimitError("slow down", response=_response(429), body=None), RateLimitError),
            (
                openai.InternalServerError("boom", response=_response(500), body=None),
                ProviderUnavailableError,
            ),
            (openai.APIConnectionError(request=_REQUEST), ProviderUnavailableError),
            (openai.APITimeoutError(request=_REQUEST), ProviderUnavailableError),
            (openai.BadRequestError("bad", response=_response(400), body=None), LLMError),
        ],
    )
    async def test_error_mapping(self, sdk_error: Exception, expected: type) -> None:
        create = AsyncMock(side_effect=sdk_error)
        with patch(
            "src.providers.llm.openai_provider.openai.AsyncOpenAI",
            return_value=_openai_client(create),
        ):
            from src.providers.llm.openai_provider import OpenAILLMProvider

            provider = OpenAILLMProvider(_settings())
            with pytest.raises(expected) as exc_info:
                await provider.complete(system_prompt="s", user_prompt="u")

        assert type(exc_info.value) is expected
        assert exc_info.value.provider_name == "openai"

    @pytest.mark.asyncio
    async def test_empty_content_raises(self) -> None:
        create = AsyncMock(return_value=_chat_completion(None))
        with patch(
            "src.providers.llm.openai_provider.openai.AsyncOpenAI",
            return_value=_openai_client(create),
        ):
            from src.providers.llm.openai_provider import OpenAILLMProvider

            provider = OpenAILLMProvider(_settings())
            with pytest.raises(LLMError):
                await provider.complete(system_prompt="s", user_prompt="u")

    @pytest.mark.asyncio
    async def test_validate_credentials(self) -> None:
        client = _openai_client(AsyncMock())
        with patch("src.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=client):
            from src.providers.llm.openai_provider import OpenAILLMProvider

            assert await OpenAILLMProvider(_settings()).validate_credentials() is True
            assert await OpenAILLMProvider(_settings(openai_api_key="")).validate_credentials() is False


# ======================================================================
# Anthropic LLM Provider
# ======================================================================


def _anthropic_message(*texts: str) -> SimpleNamespace:
    return SimpleNamespace(
        content=[SimpleNamespace(type="text", text=t) for t in texts],
        usage=SimpleNamespace(input_tokens=10, output_tokens=20),
    )


def _anthropic_client(create: AsyncMock) -> MagicMock:
    client = MagicMock()
    client.messages.create = create
    return client


class TestAnthropicLLMProvider:
    def test_provider_name(self) -> None:
        from src.providers.llm.anthropic_provider import AnthropicLLMProvider

        assert AnthropicLLMProvider(_settings()).get_provider_name() == "anthropic"

    def test_is_available_without_key(self) -> None:
        from src.providers.llm.anthropic_provider import AnthropicLLMProvider

        assert AnthropicLLMProvider(_settings(anthropic_api_key="")).is_available() is False

    @pytest.mark.asyncio
    async def test_complete_joins_text_blocks(self) -> None:
        create = AsyncMock(return_value=_anthropic_message("{", "}"))
        with patch(
            "src.providers.llm.anthropic_provider.anthropic.AsyncAnthropic",
            return_value=_anthropic_client(create),
        ):
            from src.providers.llm.anthropic_provider import AnthropicLLMProvider

            provider = AnthropicLLMProvider(_settings())
            result = await provider.complete(system_prompt="sys", user_prompt="user")

        assert result == "{\n}"
        kwargs = create.call_args.kwargs
        assert kwargs["system"] == "sys"
        assert kwargs["messages"] == [{"role": "user", "content": "user"}]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("sdk_error", "expected"),
        [
            (
                anthropic.RateLimitError("slow down", response=_response(429), body=None),
                RateLimitError,
            ),
            (
                anthropic.InternalServerError("boom", response=_response(529), body=None),
                ProviderUnavailableError,
            ),
            (anthropic.APIConnectionError(request=_REQUEST), ProviderUnavailableError),
            (
                anthropic.AuthenticationError("nope", response=_response(401), body=None),
                LLMError,
            ),
        ],
    )
    async def test_error_mapping(self, sdk_error: Exception, expected: type) -> None:
        create = AsyncMock(side_effect=sdk_error)
        with patch(
            "src.providers.llm.anthropic_provider.anthropic.AsyncAnthropic",
            return_value=_anthropic_client(create),
        ):
            from src.providers.llm.anthropic_provider import AnthropicLLMProvider

            provider = AnthropicLLMProvider(_settings())
            with pytest.raises(expected) as exc_info:
                await provider.complete(system_prompt="s", user_prompt="u")

        assert type(exc_info.value) is expected

    @pytest.mark.asyncio
    async def test_no_text_blocks_raises(self) -> None:
        message = SimpleNamespace(content=[], usage=SimpleNamespace(input_tokens=1, output_tokens=0))
        with patch(
            "src.providers.llm.anthropic_provider.anthropic.AsyncAnthropic",
            return_value=_anthropic_client(AsyncMock(return_value=message)),
        ):
            from src.providers.llm.anthropic_provider import AnthropicLLMProvider

            provider = AnthropicLLMProvider(_settings())
            with pytest.raises(LLMError):
                await provider.complete(system_prompt="s", user_prompt="u")


# ======================================================================
# Ollama LLM Provider
# ======================================================================


class TestOllamaLLMProvider:
    def test_client_points_at_v1_endpoint(self) -> None:
        with patch("src.providers.llm.ollama_provider.openai.AsyncOpenAI") as mock_cls:
            from src.providers.llm.ollama_provider import OllamaLLMProvider

            provider = OllamaLLMProvider(_settings(ollama_base_url="http://gpu-box:11434/"))

        assert mock_cls.call_args.kwargs["base_url"] == "http://gpu-box:11434/v1"
        assert provider.get_provider_name() == "ollama"

    @pytest.mark.asyncio
    async def test_complete_uses_default_model(self) -> None:
        create = AsyncMock(return_value=_chat_completion("{}"))
        with patch(
            "src.providers.llm.ollama_provider.openai.AsyncOpenAI",
            return_value=_openai_client(create),
        ):
            from src.providers.llm.ollama_provider import OllamaLLMProvider

            provider = OllamaLLMProvider(_settings())
            assert await provider.complete(system_prompt="s", user_prompt="u") == "{}"

        assert create.call_args.kwargs["model"] == "llama3.1"

    @pytest.mark.asyncio
    async def test_unreachable_server(self) -> None:
        create = AsyncMock(side_effect=openai.APIConnectionError(request=_REQUEST))
        with patch(
            "src.providers.llm.ollama_provider.openai.AsyncOpenAI",
            return_value=_openai_client(create),
        ):
            from src.providers.llm.ollama_provider import OllamaLLMProvider

            provider = OllamaLLMProvider(_settings())
            with pytest.raises(ProviderUnavailableError):
                await provider.complete(system_prompt="s", user_prompt="u")
