"""Registry of live backend instances, keyed by type, model and credentials.

The registry is an ordinary value: create one per process (or per test) and
pass it to whoever needs to resolve backends.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from rpgtranslator.backends.base import BaseBackend
from rpgtranslator.backends.catalog import BackendType, get_spec
from rpgtranslator.backends.deepl import DeepLBackend
from rpgtranslator.backends.dummy import DummyBackend, IdentityBackend
from rpgtranslator.backends.openai_compat import ChatGPTBackend, DeepSeekBackend, OllamaBackend
from rpgtranslator.config import BackendConfig
from rpgtranslator.errors import ConfigError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_TTL = 3600.0  # seconds; lifetime of an idle backend instance

BackendConstructor = Callable[[BackendConfig], BaseBackend]

DEFAULT_CONSTRUCTORS: dict[BackendType, BackendConstructor] = {
    BackendType.ollama: OllamaBackend,
    BackendType.chatgpt: ChatGPTBackend,
    BackendType.deepseek: DeepSeekBackend,
    BackendType.deepl: DeepLBackend,
    BackendType.dummy: DummyBackend,
    BackendType.identity: IdentityBackend,
}


@dataclass(frozen=True)
class BackendKey:
    backend_type: BackendType
    model: str
    credential_fingerprint: str


@dataclass
class _Entry:
    backend: BaseBackend
    last_access: float


class BackendRegistry:
    """Caches validated backends and drops the ones idle longer than ``ttl``."""

    def __init__(
        self,
        ttl: float = DEFAULT_REGISTRY_TTL,
        *,
        clock: Callable[[], float] = time.monotonic,
        constructors: dict[BackendType, BackendConstructor] | None = None,
    ) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self._ttl = ttl
        self._clock = clock
        self._constructors = dict(constructors or DEFAULT_CONSTRUCTORS)
        self._entries: dict[BackendKey, _Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    @staticmethod
    def key_for(backend_type: BackendType, config: BackendConfig) -> BackendKey:
        model = config.model or get_spec(backend_type).default_model
        return BackendKey(backend_type, model, config.credential_fingerprint)

    async def create_or_get(self, backend_type: BackendType | str, config: BackendConfig) -> BaseBackend:
        """Return a cached backend for this configuration, or build and validate one.

        Raises:
            ValidationError: The model is not offered by this backend type.
            ConfigError: The config variant does not match the type, or
                validation of the new instance failed.
        """
        try:
            backend_type = BackendType(backend_type)
        except ValueError:
            raise ConfigError(f"Unknown backend type: {backend_type}") from None
        spec = get_spec(backend_type)

        model = config.model or spec.default_model
        if not spec.is_model_supported(model):
            raise ValidationError(spec.model_error(model), spec.metadata.name)
        if config.backend_type is not backend_type:
            raise ConfigError(
                f"{type(config).__name__} cannot configure a {backend_type.value} backend",
                spec.metadata.name,
            )

        key = self.key_for(backend_type, config)
        now = self._clock()
        entry = self._entries.get(key)
        if entry is not None:
            if now - entry.last_access < self._ttl:
                entry.last_access = now
                logger.debug("Reusing %s backend for model %s", backend_type.value, key.model)
                return entry.backend
            del self._entries[key]

        constructor = self._constructors.get(backend_type)
        if constructor is None:
            raise ConfigError(f"No constructor registered for {backend_type.value}", spec.metadata.name)

        backend = constructor(config)
        await backend.validate_config(backend.config)

        self._entries[key] = _Entry(backend, now)
        logger.debug("Created %s backend for model %s", backend_type.value, key.model)
        return backend

    def get(self, key: BackendKey) -> BaseBackend | None:
        entry = self._entries.get(key)
        if entry is None or self._clock() - entry.last_access >= self._ttl:
            return None
        return entry.backend

    def remove(self, key: BackendKey) -> bool:
        return self._entries.pop(key, None) is not None

    def cleanup(self) -> int:
        """Drop every entry idle for the TTL or longer. Returns how many were dropped."""
        now = self._clock()
        expired = [k for k, e in self._entries.items() if now - e.last_access >= self._ttl]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Evicted %d idle backend(s)", len(expired))
        return len(expired)
