"""Tests for the OpenAI-compatible chat backends (mocked SDK)."""

import asyncio
from types import ModuleType, SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from rpgtranslator.backends.openai_compat import (
    ChatGPTBackend,
    DeepSeekBackend,
    OllamaBackend,
    clean_completion,
)
from rpgtranslator.config import ChatGPTConfig, DeepSeekConfig, OllamaConfig
from rpgtranslator.errors import ApiError, ConfigError, LanguageError
from rpgtranslator.models import ContentClass, TranslationRequest
from rpgtranslator.translation.retry import RetryPolicy
from tests.conftest import RecordingSleep, make_unit


def _completion(text, prompt=20, completion=5):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=text))],
        usage=SimpleNamespace(prompt_tokens=prompt, completion_tokens=completion, total_tokens=prompt + completion),
    )


def _make_mock_openai(create):
    """Create a mock openai module whose client answers with ``create``."""
    mock_mod = ModuleType("openai")
    client = MagicMock()
    client.chat.completions.create = create
    mock_mod.AsyncOpenAI = MagicMock(return_value=client)  # type: ignore[attr-defined]
    return mock_mod


class TestChatGPTBackend:
    def test_translate(self):
        create = AsyncMock(return_value=_completion(' "Harold" '))
        mock_openai = _make_mock_openai(create)

        with patch.dict("sys.modules", {"openai": mock_openai}):
            backend = ChatGPTBackend(ChatGPTConfig(api_key="sk-test-123456", model="gpt-4"))
            request = TranslationRequest("ハロルド", "ja", "en", context="Actor Name", content_class=ContentClass.name)
            response = asyncio.run(backend.translate(request))

        assert response.translated_text == "Harold"
        assert response.tokens.total == 25
        assert response.cost == pytest.approx(25 * 0.00003)

        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "gpt-4"
        assert kwargs["temperature"] == 0.3
        system, user = kwargs["messages"]
        assert system["role"] == "system"
        assert "from Japanese to English" in user["content"]
        assert "Actor Name" in user["content"]

        client_kwargs = mock_openai.AsyncOpenAI.call_args.kwargs
        assert client_kwargs["api_key"] == "sk-test-123456"
        assert client_kwargs["base_url"] == "https://api.openai.com/v1"

    def test_requires_api_key(self):
        with patch.dict("sys.modules", {"openai": _make_mock_openai(AsyncMock())}):
            with pytest.raises(ConfigError):
                ChatGPTBackend(ChatGPTConfig())

    def test_rate_limit_is_retried_then_reported(self):
        create = AsyncMock(side_effect=Exception("Error code: 429 - Rate limit reached"))
        sleep = RecordingSleep()

        with patch.dict("sys.modules", {"openai": _make_mock_openai(create)}):
            backend = ChatGPTBackend(
                ChatGPTConfig(api_key="sk-test"),
                retry_policy=RetryPolicy(max_attempts=3, initial_delay=1.0),
                sleep=sleep,
            )
            with pytest.raises(ApiError, match="quota or rate limit"):
                asyncio.run(backend.translate(TranslationRequest("Hi", "en", "ja")))

        assert create.await_count == 3
        assert sleep.delays == [1.0, 2.0]

    def test_batch_usage_accumulates(self):
        create = AsyncMock(side_effect=[_completion("A", 10, 2), _completion("B", 10, 3)])
        with patch.dict("sys.modules", {"openai": _make_mock_openai(create)}):
            backend = ChatGPTBackend(ChatGPTConfig(api_key="sk-test"))
            units = [make_unit("1", source="ア"), make_unit("2", source="イ")]
            result = asyncio.run(backend.translate_batch(units, "ja", "en"))

        assert result.stats.total_tokens == 25
        assert result.stats.total_cost == pytest.approx(25 * 0.000002)


class TestDeepSeekBackend:
    def test_limited_languages(self):
        with patch.dict("sys.modules", {"openai": _make_mock_openai(AsyncMock())}):
            backend = DeepSeekBackend(DeepSeekConfig(api_key="sk-ds"))
            with pytest.raises(LanguageError):
                asyncio.run(backend.translate(TranslationRequest("Hi", "en", "fr")))
        assert backend.metadata.supported_languages == frozenset({"en", "zh", "ja"})


class TestOllamaBackend:
    def test_local_endpoint_without_key(self):
        mock_openai = _make_mock_openai(AsyncMock(return_value=_completion("Harold")))
        with patch.dict("sys.modules", {"openai": mock_openai}):
            backend = OllamaBackend(OllamaConfig(model="mistral"))

        client_kwargs = mock_openai.AsyncOpenAI.call_args.kwargs
        assert client_kwargs["base_url"] == "http://localhost:11434/v1"
        assert client_kwargs["api_key"] == "ollama"
        assert backend.metadata.cost_per_token == 0.0
        assert backend.metadata.supports_adult_content
        assert "ru" not in backend.metadata.supported_languages

    def test_custom_base_url_keeps_v1(self):
        mock_openai = _make_mock_openai(AsyncMock())
        with patch.dict("sys.modules", {"openai": mock_openai}):
            OllamaBackend(OllamaConfig(base_url="http://gpu-box:11434/v1/"))
        assert mock_openai.AsyncOpenAI.call_args.kwargs["base_url"] == "http://gpu-box:11434/v1"


class TestCleanCompletion:
    @pytest.mark.parametrize("raw, expected", [
        ("  Harold\n", "Harold"),
        ('"Harold"', "Harold"),
        ("'Hero'", "Hero"),
        ('"quoted" text', '"quoted" text'),
        ('"', '"'),
    ])
    def test_clean(self, raw, expected):
        assert clean_completion(raw) == expected

    def test_quoted_source_keeps_quotes(self):
        assert clean_completion('"Hello"', source="「こんにちは」") == "Hello"
        assert clean_completion('"Hello"', source='"こんにちは"') == '"Hello"'

    def test_source_padding_restored(self):
        assert clean_completion("Hero\n", source="  勇者\n") == "  Hero\n"
        assert clean_completion(" 'Hero' ", source=" '勇者'") == " 'Hero'"

    def test_backend_keeps_quoted_source(self):
        create = AsyncMock(return_value=_completion('"Run!"'))
        with patch.dict("sys.modules", {"openai": _make_mock_openai(create)}):
            backend = ChatGPTBackend(ChatGPTConfig(api_key="sk-test"))
            response = asyncio.run(backend.translate(TranslationRequest('"逃げろ!"', "ja", "en")))
        assert response.translated_text == '"Run!"'
