"""DeepL API translation backend."""

from __future__ import annotations

import asyncio
from typing import Any

from rpgtranslator.backends.base import CHARS_PER_TOKEN, BaseBackend
from rpgtranslator.backends.catalog import BackendType
from rpgtranslator.config import BackendConfig
from rpgtranslator.errors import ConfigError
from rpgtranslator.models import ResponseMeta, TranslationRequest, TranslationResponse

# DeepL wants a regional variant for these target languages
_TARGET_VARIANTS = {"en": "EN-US", "pt": "PT-BR"}


def deepl_source_lang(language: str) -> str:
    return language.split("-")[0].upper()


def deepl_target_lang(language: str) -> str:
    return _TARGET_VARIANTS.get(language.lower(), language.upper())


class DeepLBackend(BaseBackend):
    """Translation backend using the DeepL API.

    The deepl SDK is synchronous; each call runs in a worker thread so a
    batch can keep several requests in flight.
    """

    backend_type = BackendType.deepl

    def __init__(self, config: BackendConfig, **kwargs: Any) -> None:
        super().__init__(config, **kwargs)
        if not self.config.api_key:
            raise ConfigError(self.spec.error_messages.auth_failed, self.name)
        try:
            import deepl
        except ImportError:
            raise ImportError(
                "DeepL backend requires the 'deepl' package. "
                "Install it with: pip install rpgtranslator[deepl]"
            ) from None
        self._deepl = deepl
        self._translator = deepl.Translator(self.config.api_key)

    def _translate_sync(self, request: TranslationRequest) -> str:
        try:
            result = self._translator.translate_text(
                request.text,
                source_lang=deepl_source_lang(request.source_language),
                target_lang=deepl_target_lang(request.target_language),
                context=request.context,
                model_type=self.model,
            )
        except self._deepl.QuotaExceededException as e:
            # Retrying cannot help until the billing period resets
            raise ConfigError(f"{self.spec.error_messages.rate_limit} ({e})", self.name) from e
        if isinstance(result, list):
            return result[0].text
        return result.text

    async def perform_translation(self, request: TranslationRequest) -> TranslationResponse:
        text = await asyncio.to_thread(self._translate_sync, request)
        return TranslationResponse(
            translated_text=text,
            cost=len(request.text) / CHARS_PER_TOKEN * self.metadata.cost_per_token,
            meta=ResponseMeta(quality_score=self.metadata.quality_score),
        )
