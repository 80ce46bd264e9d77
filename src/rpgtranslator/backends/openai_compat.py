"""Chat-completion backends speaking the OpenAI wire protocol.

ChatGPT and DeepSeek are hosted; Ollama serves the same protocol locally
under ``/v1``.
"""

from __future__ import annotations

import time
from typing import Any

from rpgtranslator.backends.base import BaseBackend
from rpgtranslator.backends.catalog import LANGUAGE_NAMES, BackendType
from rpgtranslator.config import BackendConfig
from rpgtranslator.errors import ConfigError
from rpgtranslator.models import ResponseMeta, TokenUsage, TranslationRequest, TranslationResponse
from rpgtranslator.translation.prompts import format_prompt, get_prompt


def _is_quoted(text: str) -> bool:
    return len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'"


def clean_completion(text: str, source: str = "") -> str:
    """Undo the wrapping quotes and padding a chat model adds.

    Quotes are only removed when the source was not itself quoted, and the
    source's own leading and trailing whitespace is put back.
    """
    text = text.strip()
    if _is_quoted(text) and not _is_quoted(source.strip()):
        text = text[1:-1]
    core = source.strip()
    if not core:
        return text
    start = source.index(core)
    return source[:start] + text + source[start + len(core):]


class OpenAICompatibleBackend(BaseBackend):
    """Backend calling ``chat.completions.create`` through the openai SDK."""

    def __init__(self, config: BackendConfig, **kwargs: Any) -> None:
        super().__init__(config, **kwargs)
        if self.spec.requires_api_key and not self.config.api_key:
            raise ConfigError(self.spec.error_messages.auth_failed, self.name)
        try:
            from openai import AsyncOpenAI
        except ImportError:
            raise ImportError(
                f"{self.name} backend requires the 'openai' package. "
                "Install it with: pip install rpgtranslator"
            ) from None
        self._client = AsyncOpenAI(
            api_key=self.client_api_key(),
            base_url=self.client_base_url(),
            timeout=self.config.timeout,
        )

    def client_api_key(self) -> str | None:
        return self.config.api_key

    def client_base_url(self) -> str | None:
        return self.config.base_url

    def build_messages(self, request: TranslationRequest) -> list[dict[str, str]]:
        named = TranslationRequest(
            text=request.text,
            source_language=LANGUAGE_NAMES.get(request.source_language.lower(), request.source_language),
            target_language=LANGUAGE_NAMES.get(request.target_language.lower(), request.target_language),
            context=request.context,
            content_class=request.content_class,
        )
        prompt = format_prompt(get_prompt(request.content_class or self.config.content_class), named)
        return [
            {"role": "system", "content": prompt.system},
            {"role": "user", "content": prompt.user},
        ]

    async def perform_translation(self, request: TranslationRequest) -> TranslationResponse:
        started = time.monotonic()
        completion = await self._client.chat.completions.create(
            model=self.model,
            messages=self.build_messages(request),
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
        )
        text = clean_completion(completion.choices[0].message.content or "", request.text)

        tokens = None
        cost = None
        usage = getattr(completion, "usage", None)
        if usage is not None:
            tokens = TokenUsage(
                prompt=usage.prompt_tokens or 0,
                completion=usage.completion_tokens or 0,
                total=usage.total_tokens or 0,
            )
            cost = tokens.total * self.metadata.cost_per_token

        return TranslationResponse(
            translated_text=text,
            tokens=tokens,
            cost=cost,
            meta=ResponseMeta(
                processing_time=time.monotonic() - started,
                quality_score=self.metadata.quality_score,
            ),
        )


class ChatGPTBackend(OpenAICompatibleBackend):
    backend_type = BackendType.chatgpt


class DeepSeekBackend(OpenAICompatibleBackend):
    backend_type = BackendType.deepseek


class OllamaBackend(OpenAICompatibleBackend):
    """Local Ollama server through its OpenAI-compatible endpoint."""

    backend_type = BackendType.ollama

    def client_api_key(self) -> str | None:
        # Ollama ignores the key but the SDK refuses an empty one
        return self.config.api_key or "ollama"

    def client_base_url(self) -> str | None:
        base = (self.config.base_url or "").rstrip("/")
        return base if base.endswith("/v1") else f"{base}/v1"
