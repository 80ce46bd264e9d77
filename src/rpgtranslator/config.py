"""Backend configuration: one frozen variant per backend type.

Every field is optional; anything left unset falls back to the backend's
catalog default in :func:`resolve_config`.
"""

from __future__ import annotations

import dataclasses
import hashlib
from dataclasses import dataclass
from typing import Any, ClassVar

from rpgtranslator.backends.catalog import BackendType, get_spec
from rpgtranslator.errors import ConfigError
from rpgtranslator.models import ContentClass


@dataclass(frozen=True)
class BackendConfig:
    backend_type: ClassVar[BackendType]

    model: str | None = None
    api_key: str | None = None
    base_url: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    content_class: ContentClass | None = None
    batch_size: int | None = None
    retry_count: int | None = None
    timeout: float | None = None  # seconds

    @property
    def credential_fingerprint(self) -> str:
        """Digest of the whole key: distinct keys never share a registry slot."""
        if not self.api_key:
            return "local"
        return hashlib.sha256(self.api_key.encode("utf-8")).hexdigest()[:16]


@dataclass(frozen=True)
class OllamaConfig(BackendConfig):
    backend_type: ClassVar[BackendType] = BackendType.ollama


@dataclass(frozen=True)
class ChatGPTConfig(BackendConfig):
    backend_type: ClassVar[BackendType] = BackendType.chatgpt


@dataclass(frozen=True)
class DeepSeekConfig(BackendConfig):
    backend_type: ClassVar[BackendType] = BackendType.deepseek


@dataclass(frozen=True)
class DeepLConfig(BackendConfig):
    backend_type: ClassVar[BackendType] = BackendType.deepl


@dataclass(frozen=True)
class DummyConfig(BackendConfig):
    backend_type: ClassVar[BackendType] = BackendType.dummy


@dataclass(frozen=True)
class IdentityConfig(BackendConfig):
    backend_type: ClassVar[BackendType] = BackendType.identity


CONFIG_TYPES: dict[BackendType, type[BackendConfig]] = {
    cls.backend_type: cls
    for cls in (OllamaConfig, ChatGPTConfig, DeepSeekConfig, DeepLConfig, DummyConfig, IdentityConfig)
}


def make_config(backend_type: BackendType | str, **fields: Any) -> BackendConfig:
    """Build the config variant for ``backend_type``. None values are dropped."""
    try:
        cls = CONFIG_TYPES[BackendType(backend_type)]
    except ValueError:
        raise ConfigError(f"Unknown backend type: {backend_type}") from None
    known = {f.name for f in dataclasses.fields(cls)}
    unknown = set(fields) - known
    if unknown:
        raise ConfigError(f"Unknown config fields: {', '.join(sorted(unknown))}", str(backend_type))
    return cls(**{k: v for k, v in fields.items() if v is not None})


def resolve_config(config: BackendConfig) -> BackendConfig:
    """Fill every unset field with the backend's documented default."""
    spec = get_spec(config.backend_type)
    return dataclasses.replace(
        config,
        model=config.model or spec.default_model,
        base_url=config.base_url or spec.base_url,
        temperature=config.temperature if config.temperature is not None else spec.default_temperature,
        max_tokens=config.max_tokens or spec.default_max_tokens,
        content_class=config.content_class or ContentClass.general,
        batch_size=config.batch_size or spec.batch_size,
        retry_count=config.retry_count or spec.retry_count,
        timeout=config.timeout or spec.timeout,
    )
