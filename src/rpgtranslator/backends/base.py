"""Translation backend interface and the default behavior composed around it.

A concrete backend only implements ``perform_translation``: one remote call
for one request. Caching, rate limiting, retries, capability checks and
batching are provided by the free functions in this module, which
:class:`BaseBackend` wires together.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import math
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import ClassVar, Protocol

from rpgtranslator.backends.catalog import BackendSpec, BackendType, get_spec
from rpgtranslator.config import BackendConfig, resolve_config
from rpgtranslator.errors import (
    DEFAULT_ERROR_MESSAGES,
    CapabilityError,
    ConfigError,
    ErrorKind,
    ErrorMessages,
    LanguageError,
    TranslationError,
    ValidationError,
    classify_error,
    is_retryable,
)
from rpgtranslator.models import (
    BackendMetadata,
    BatchAccumulator,
    BatchError,
    BatchResult,
    ContentClass,
    TranslationRequest,
    TranslationResponse,
    TranslationUnit,
)
from rpgtranslator.translation.cache import CacheKey, TTLCache
from rpgtranslator.translation.prompts import Prompt, get_prompt, validate_prompt
from rpgtranslator.translation.ratelimit import RateLimiter
from rpgtranslator.translation.retry import RetryPolicy, RetryTracker, with_retry

logger = logging.getLogger(__name__)

CoreTranslate = Callable[[TranslationRequest], Awaitable[TranslationResponse]]

# Rough token estimate used for cost previews: 1 token ≈ 4 characters
CHARS_PER_TOKEN = 4


@dataclass(frozen=True)
class BatchOptions:
    batch_size: int | None = None
    content_class: ContentClass | None = None  # Overrides each unit's class
    adult: bool = False


@dataclass(frozen=True)
class CostEstimate:
    tokens: int
    cost: float


class TranslationBackend(Protocol):
    """Capability interface every backend satisfies."""

    @property
    def metadata(self) -> BackendMetadata: ...

    @property
    def config(self) -> BackendConfig: ...

    async def translate(
        self, request: TranslationRequest, *, tracker: RetryTracker | None = None,
    ) -> TranslationResponse: ...

    async def translate_batch(
        self,
        units: Sequence[TranslationUnit],
        source_lang: str,
        target_lang: str,
        options: BatchOptions | None = None,
    ) -> BatchResult: ...

    async def validate_config(self, config: BackendConfig) -> bool: ...

    def estimate_cost(self, text: str) -> CostEstimate: ...

    def get_default_prompt(self, content_class: ContentClass | None = None) -> Prompt: ...


# ── Capability checks ──


def check_languages(metadata: BackendMetadata, *languages: str) -> None:
    for language in languages:
        if not language:
            raise ValidationError("Missing language information", metadata.name)
        if not metadata.supports_language(language):
            raise LanguageError(language, metadata.name)


def check_content_classes(metadata: BackendMetadata, classes: Iterable[ContentClass]) -> None:
    for content_class in classes:
        if content_class is ContentClass.adult and not metadata.supports_adult_content:
            raise CapabilityError("Adult content is not supported", metadata.name)
        if not metadata.supports_content_class(content_class):
            raise CapabilityError(f"Content class '{content_class.value}' is not supported", metadata.name)


def effective_class(unit: TranslationUnit, options: BatchOptions) -> ContentClass:
    if options.adult:
        return ContentClass.adult
    return options.content_class or unit.content_class


def check_units(
    metadata: BackendMetadata,
    units: Iterable[TranslationUnit],
    source_lang: str,
    target_lang: str,
    options: BatchOptions,
) -> None:
    """Fail before any remote call if a unit asks for something unsupported."""
    check_languages(metadata, source_lang, target_lang)
    check_content_classes(metadata, {effective_class(u, options) for u in units})


def validate_request(metadata: BackendMetadata, request: TranslationRequest) -> None:
    if not request.text:
        raise ValidationError("Empty translation text", metadata.name)
    check_languages(metadata, request.source_language, request.target_language)
    if request.content_class is not None:
        check_content_classes(metadata, [request.content_class])


# ── Default single-text translation: cache → rate limit → retry → cache ──


def cache_key_for(request: TranslationRequest) -> CacheKey:
    return CacheKey(
        source_language=request.source_language,
        target_language=request.target_language,
        text=request.text,
        context=request.context,
        content_class=request.content_class,
    )


async def resilient_translate(
    core: CoreTranslate,
    request: TranslationRequest,
    *,
    cache: TTLCache,
    limiter: RateLimiter,
    policy: RetryPolicy,
    backend_name: str = "",
    messages: ErrorMessages = DEFAULT_ERROR_MESSAGES,
    tracker: RetryTracker | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> TranslationResponse:
    """Translate one request through the resilience stack.

    The cache is consulted before the rate limiter, so repeated identical
    requests never consume rate-limit budget.
    """
    key = cache_key_for(request)
    cached = cache.get(key)
    if cached is not None:
        logger.debug("Cache hit for %r", request.text[:40])
        return cached

    await limiter.acquire()

    async def attempt() -> TranslationResponse:
        started = time.monotonic()
        try:
            response = await core(request)
        except TranslationError:
            raise
        except Exception as e:
            raise classify_error(e, backend_name, messages) from e
        if response.meta.processing_time == 0.0:
            meta = dataclasses.replace(response.meta, processing_time=time.monotonic() - started)
            response = dataclasses.replace(response, meta=meta)
        return response

    response = await with_retry(
        attempt,
        policy,
        retryable=is_retryable,
        on_retry=tracker.on_retry if tracker else None,
        on_success=tracker.on_success if tracker else None,
        on_failure=tracker.on_failure if tracker else None,
        sleep=sleep,
    )
    cache.set(key, response)
    return response


# ── Default batch translation ──


def _response_cost(metadata: BackendMetadata, response: TranslationResponse) -> float:
    if response.cost is not None:
        return response.cost
    if response.tokens is not None:
        return response.tokens.total * metadata.cost_per_token
    return 0.0


async def translate_units(
    backend: TranslationBackend,
    units: Sequence[TranslationUnit],
    source_lang: str,
    target_lang: str,
    options: BatchOptions | None = None,
) -> BatchResult:
    """Translate units in backend-sized chunks, keeping per-unit outcomes.

    Capability problems fail the whole call before any remote request.
    Within a chunk every unit is in flight at once; a failing unit is
    recorded in ``errors`` and never cancels its siblings. Successful units
    come back as copies with ``target`` filled, in input order.
    """
    metadata = backend.metadata
    options = options or BatchOptions()

    if not units:
        raise ValidationError("No translation units provided", metadata.name)

    check_units(metadata, units, source_lang, target_lang, options)

    requested = options.batch_size or backend.config.batch_size or metadata.max_batch_size
    chunk_size = max(1, min(requested, metadata.max_batch_size))

    async def run_one(
        unit: TranslationUnit,
    ) -> tuple[TranslationUnit, TranslationResponse] | BatchError:
        tracker = RetryTracker()
        request = TranslationRequest(
            text=unit.source,
            source_language=source_lang,
            target_language=target_lang,
            context=unit.context,
            content_class=effective_class(unit, options),
        )
        try:
            response = await backend.translate(request, tracker=tracker)
        except Exception as e:
            kind = e.kind.value if isinstance(e, TranslationError) else ErrorKind.unknown.value
            logger.warning("Failed to translate %s.%s: %s", unit.resource_id, unit.field, e)
            return BatchError(unit=unit, message=str(e), retry_count=tracker.retries, kind=kind)
        return dataclasses.replace(unit, target=response.translated_text), response

    acc = BatchAccumulator()
    started = time.monotonic()

    for start in range(0, len(units), chunk_size):
        chunk = units[start : start + chunk_size]
        # gather keeps chunk order whatever the completion order
        outcomes = await asyncio.gather(*(run_one(u) for u in chunk))
        for outcome in outcomes:
            if isinstance(outcome, BatchError):
                acc.add_failure(outcome)
            else:
                unit, response = outcome
                acc.add_success(unit, response, _response_cost(metadata, response))

    return acc.build(time.monotonic() - started)


# ── Base class wiring the defaults together ──


class BaseBackend(ABC):
    """Backend bound to one model and one set of credentials.

    Subclasses set ``backend_type`` and implement ``perform_translation``.
    """

    backend_type: ClassVar[BackendType]

    def __init__(
        self,
        config: BackendConfig,
        *,
        cache: TTLCache | None = None,
        limiter: RateLimiter | None = None,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if config.backend_type is not self.backend_type:
            raise ConfigError(
                f"{type(config).__name__} cannot configure a {self.backend_type.value} backend",
                self.spec.metadata.name,
            )
        self._config = resolve_config(config)
        model = self._config.model or self.spec.default_model
        self._metadata = dataclasses.replace(
            self.spec.metadata,
            supported_languages=self.spec.languages_for(model),
            cost_per_token=self.spec.cost_per_token(model),
        )
        rate = self.spec.rate_limit
        self._cache = cache if cache is not None else TTLCache()
        self._limiter = limiter or RateLimiter(
            rate.max_tokens, rate.refill_rate, rate.refill_interval, sleep=sleep,
        )
        self._retry_policy = retry_policy or RetryPolicy(
            max_attempts=self._config.retry_count or self.spec.retry_count,
        )
        self._sleep = sleep

    @property
    def spec(self) -> BackendSpec:
        return get_spec(self.backend_type)

    @property
    def metadata(self) -> BackendMetadata:
        return self._metadata

    @property
    def config(self) -> BackendConfig:
        return self._config

    @property
    def name(self) -> str:
        return self._metadata.name

    @property
    def model(self) -> str:
        return self._config.model or self.spec.default_model

    @property
    def cache(self) -> TTLCache:
        return self._cache

    @abstractmethod
    async def perform_translation(self, request: TranslationRequest) -> TranslationResponse:
        """One remote call for one request, without caching or retries."""
        ...

    async def translate(
        self, request: TranslationRequest, *, tracker: RetryTracker | None = None,
    ) -> TranslationResponse:
        validate_request(self.metadata, request)
        return await resilient_translate(
            self.perform_translation,
            request,
            cache=self._cache,
            limiter=self._limiter,
            policy=self._retry_policy,
            backend_name=self.name,
            messages=self.spec.error_messages,
            tracker=tracker,
            sleep=self._sleep,
        )

    async def translate_batch(
        self,
        units: Sequence[TranslationUnit],
        source_lang: str,
        target_lang: str,
        options: BatchOptions | None = None,
    ) -> BatchResult:
        return await translate_units(self, units, source_lang, target_lang, options)

    async def validate_config(self, config: BackendConfig) -> bool:
        """Check a configuration against this backend's declared limits.

        Returns True when valid; raises ConfigError or CapabilityError otherwise.
        """
        if config.backend_type is not self.backend_type:
            raise ConfigError(f"Expected a {self.backend_type.value} config", self.name)
        if self.spec.requires_api_key and not config.api_key:
            raise ConfigError("API key is required", self.name)
        if config.model and not self.spec.is_model_supported(config.model):
            raise ConfigError(self.spec.model_error(config.model), self.name)
        if config.temperature is not None and not 0 <= config.temperature <= 2:
            raise ConfigError("temperature must be between 0 and 2", self.name)
        for attr in ("max_tokens", "batch_size", "retry_count", "timeout"):
            value = getattr(config, attr)
            if value is not None and value <= 0:
                raise ConfigError(f"{attr} must be positive", self.name)
        if config.content_class is not None:
            check_content_classes(self.metadata, [config.content_class])
        return True

    def estimate_cost(self, text: str) -> CostEstimate:
        tokens = math.ceil(len(text) / CHARS_PER_TOKEN)
        return CostEstimate(tokens=tokens, cost=tokens * self.metadata.cost_per_token)

    def get_default_prompt(self, content_class: ContentClass | None = None) -> Prompt:
        return get_prompt(content_class)

    def validate_prompt(self, prompt: Prompt) -> bool:
        return validate_prompt(prompt)
