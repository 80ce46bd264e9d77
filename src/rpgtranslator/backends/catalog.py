"""Static facts about each backend type: models, languages, defaults, messages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from rpgtranslator.errors import ErrorMessages
from rpgtranslator.models import ALL_CONTENT_CLASSES, SAFE_CONTENT_CLASSES, BackendMetadata


class BackendType(str, Enum):
    """User-facing backend selection."""
    ollama = "ollama"
    chatgpt = "chatgpt"
    deepseek = "deepseek"
    deepl = "deepl"
    dummy = "dummy"
    identity = "identity"


SUPPORTED_LANGUAGES: frozenset[str] = frozenset(
    {"en", "ja", "zh", "ko", "fr", "de", "es", "it", "pt", "ru"}
)

LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "ja": "Japanese",
    "zh": "Chinese",
    "ko": "Korean",
    "fr": "French",
    "de": "German",
    "es": "Spanish",
    "it": "Italian",
    "pt": "Portuguese",
    "ru": "Russian",
}


def _langs(*codes: str) -> frozenset[str]:
    return SUPPORTED_LANGUAGES & frozenset(codes)


@dataclass(frozen=True)
class RateLimit:
    max_tokens: int = 10
    refill_rate: int = 1
    refill_interval: float = 1.0  # seconds


@dataclass(frozen=True)
class BackendSpec:
    """Everything the factory and the backends need to know about one type."""

    metadata: BackendMetadata
    default_model: str
    supported_models: tuple[str, ...]
    base_url: str | None = None
    requires_api_key: bool = False
    default_temperature: float = 0.3
    default_max_tokens: int = 1000
    batch_size: int = 5
    retry_count: int = 3
    timeout: float = 30.0  # seconds
    rate_limit: RateLimit = field(default_factory=RateLimit)
    model_languages: dict[str, frozenset[str]] = field(default_factory=dict)
    model_costs: dict[str, float] = field(default_factory=dict)
    model_errors: dict[str, str] = field(default_factory=dict)
    error_messages: ErrorMessages = field(default_factory=ErrorMessages)

    def is_model_supported(self, model: str) -> bool:
        return model in self.supported_models

    def model_error(self, model: str) -> str:
        return self.model_errors.get(model) or self.model_errors.get(
            "default", f"Model '{model}' is not supported by {self.metadata.name}."
        )

    def languages_for(self, model: str) -> frozenset[str]:
        return self.model_languages.get(model, self.metadata.supported_languages)

    def cost_per_token(self, model: str) -> float:
        return self.model_costs.get(model, self.metadata.cost_per_token)


OLLAMA = BackendSpec(
    metadata=BackendMetadata(
        name="Ollama",
        cost_per_token=0.0,  # Runs locally
        max_batch_size=5,
        quality_score=0.85,
        supported_content_classes=ALL_CONTENT_CLASSES,
        supported_languages=SUPPORTED_LANGUAGES,
        supports_adult_content=True,
    ),
    default_model="llama3",
    supported_models=("llama3", "llama2", "mistral", "mixtral", "phi", "qwen"),
    base_url="http://localhost:11434",
    rate_limit=RateLimit(max_tokens=10, refill_rate=10, refill_interval=1.0),
    model_languages={
        "mistral": _langs("en", "fr", "de", "es", "it", "ja", "ko", "zh"),
        "llama2": _langs("en", "fr", "de", "es", "it", "ja", "zh"),
        "llama3": _langs("en", "fr", "de", "es", "it", "ja", "ko", "zh", "ru"),
    },
    model_errors={
        "llama3": 'Error loading Llama 3 model. Check you have pulled it with "ollama pull llama3".',
        "llama2": 'Error loading Llama 2 model. Check you have pulled it with "ollama pull llama2".',
        "mistral": 'Error loading Mistral model. Check you have pulled it with "ollama pull mistral".',
        "mixtral": "Error loading Mixtral model. Check you have pulled it and have more than 16GB of RAM.",
        "phi": 'Error loading Phi model. Check you have pulled it with "ollama pull phi".',
        "qwen": 'Error loading Qwen model. Check you have pulled it with "ollama pull qwen".',
        "default": 'The requested model is unavailable. Run "ollama list" to see available models.',
    },
    error_messages=ErrorMessages(
        connection_failed="Cannot connect to Ollama. Make sure Ollama is running locally.",
        api_not_found="Ollama API endpoint not found. Check if Ollama is installed correctly.",
        auth_failed="Authentication error. This is unusual for Ollama, which needs no auth.",
        rate_limit="Ollama is processing too many requests. Wait a moment and try again.",
        default="An error occurred connecting to Ollama.",
    ),
)

CHATGPT = BackendSpec(
    metadata=BackendMetadata(
        name="ChatGPT",
        cost_per_token=0.000002,
        max_batch_size=10,
        quality_score=0.95,
        supported_content_classes=SAFE_CONTENT_CLASSES,
        supported_languages=_langs("en", "fr", "de", "es", "it", "ja", "ko", "zh", "ru", "pt"),
        supports_adult_content=False,
    ),
    default_model="gpt-3.5-turbo",
    supported_models=("gpt-3.5-turbo", "gpt-3.5-turbo-16k", "gpt-4", "gpt-4-turbo", "gpt-4-32k"),
    base_url="https://api.openai.com/v1",
    requires_api_key=True,
    model_costs={
        "gpt-3.5-turbo": 0.000002,
        "gpt-3.5-turbo-16k": 0.000004,
        "gpt-4": 0.00003,
        "gpt-4-turbo": 0.00001,
        "gpt-4-32k": 0.00006,
    },
    model_errors={
        "gpt-4": "Error accessing GPT-4. Your account may not have access to this model.",
        "gpt-4-32k": "Error accessing GPT-4 32K. This model requires special account access.",
        "default": "The requested model is unavailable. Try another model or check your OpenAI account.",
    },
    error_messages=ErrorMessages(
        connection_failed="Cannot connect to OpenAI API. Check your internet connection.",
        api_not_found="OpenAI API endpoint not found. The API may be temporarily unavailable.",
        auth_failed="Invalid ChatGPT API key. Check your credentials.",
        rate_limit="You have exceeded your OpenAI API quota or rate limit.",
        default="An error occurred connecting to OpenAI API.",
    ),
)

DEEPSEEK = BackendSpec(
    metadata=BackendMetadata(
        name="DeepSeek",
        cost_per_token=0.000001,
        max_batch_size=8,
        quality_score=0.90,
        supported_content_classes=SAFE_CONTENT_CLASSES,
        supported_languages=_langs("en", "zh", "ja"),
        supports_adult_content=False,
    ),
    default_model="deepseek-chat",
    supported_models=("deepseek-chat", "deepseek-coder"),
    base_url="https://api.deepseek.com/v1",
    requires_api_key=True,
    model_errors={
        "deepseek-coder": "Error accessing DeepSeek Coder. This model is tuned for code, not prose.",
        "default": "The requested model is unavailable. Check your DeepSeek account access.",
    },
    error_messages=ErrorMessages(
        connection_failed="Cannot connect to DeepSeek API. Check your internet connection.",
        api_not_found="DeepSeek API endpoint not found. Verify the base URL.",
        auth_failed="Invalid DeepSeek API key. Check your credentials.",
        rate_limit="DeepSeek rate limit exceeded. Wait a moment and try again.",
        default="An error occurred connecting to DeepSeek API.",
    ),
)

# DeepL bills per character; 4 characters per token.
DEEPL = BackendSpec(
    metadata=BackendMetadata(
        name="DeepL",
        cost_per_token=0.0001,
        max_batch_size=50,
        quality_score=0.9,
        supported_content_classes=ALL_CONTENT_CLASSES,
        supported_languages=SUPPORTED_LANGUAGES,
        supports_adult_content=True,
    ),
    default_model="prefer_quality_optimized",
    supported_models=("prefer_quality_optimized", "quality_optimized", "latency_optimized"),
    requires_api_key=True,
    batch_size=50,
    error_messages=ErrorMessages(
        connection_failed="Cannot connect to DeepL. Check your internet connection.",
        api_not_found="DeepL API endpoint not found.",
        auth_failed="Invalid DeepL API key. Use --api-key or set DEEPL_API_KEY.",
        rate_limit="DeepL quota or rate limit exceeded.",
        default="An error occurred connecting to DeepL.",
    ),
)

_OFFLINE_RATE_LIMIT = RateLimit(max_tokens=1000, refill_rate=1000, refill_interval=1.0)

DUMMY = BackendSpec(
    metadata=BackendMetadata(
        name="Dummy",
        max_batch_size=50,
        quality_score=0.0,
        supported_content_classes=ALL_CONTENT_CLASSES,
        supported_languages=SUPPORTED_LANGUAGES,
        supports_adult_content=True,
    ),
    default_model="dummy",
    supported_models=("dummy",),
    batch_size=50,
    rate_limit=_OFFLINE_RATE_LIMIT,
)

IDENTITY = BackendSpec(
    metadata=BackendMetadata(
        name="Identity",
        max_batch_size=50,
        quality_score=1.0,
        supported_content_classes=ALL_CONTENT_CLASSES,
        supported_languages=SUPPORTED_LANGUAGES,
        supports_adult_content=True,
    ),
    default_model="identity",
    supported_models=("identity",),
    batch_size=50,
    rate_limit=_OFFLINE_RATE_LIMIT,
)

CATALOG: dict[BackendType, BackendSpec] = {
    BackendType.ollama: OLLAMA,
    BackendType.chatgpt: CHATGPT,
    BackendType.deepseek: DEEPSEEK,
    BackendType.deepl: DEEPL,
    BackendType.dummy: DUMMY,
    BackendType.identity: IDENTITY,
}


def get_spec(backend_type: BackendType | str) -> BackendSpec:
    return CATALOG[BackendType(backend_type)]
