"""Offline backends for dry runs and tests.

``DummyBackend`` prefixes each string with the target language tag
("Iron Sword" → "[ES] Iron Sword"); ``IdentityBackend`` returns the source
unchanged.
"""

from __future__ import annotations

from rpgtranslator.backends.base import BaseBackend
from rpgtranslator.backends.catalog import BackendType
from rpgtranslator.models import ResponseMeta, TranslationRequest, TranslationResponse


class DummyBackend(BaseBackend):
    """Test backend that prefixes each string with the target language tag."""

    backend_type = BackendType.dummy

    async def perform_translation(self, request: TranslationRequest) -> TranslationResponse:
        tag = f"[{request.target_language.upper()}]"
        return TranslationResponse(
            translated_text=f"{tag} {request.text}",
            confidence=1.0,
            cost=0.0,
            meta=ResponseMeta(quality_score=self.metadata.quality_score),
        )


class IdentityBackend(BaseBackend):
    backend_type = BackendType.identity

    async def perform_translation(self, request: TranslationRequest) -> TranslationResponse:
        return TranslationResponse(
            translated_text=request.text,
            confidence=1.0,
            cost=0.0,
            meta=ResponseMeta(quality_score=self.metadata.quality_score),
        )
