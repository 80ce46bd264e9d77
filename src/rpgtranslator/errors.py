"""Error taxonomy for translation backends.

Validation, capability, language and config errors are raised before any
remote call and are never retried. Api, network and unknown errors come from
the remote service and go through the retry policy.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    validation = "validation"
    capability = "capability"
    language = "language"
    config = "config"
    api = "api"
    network = "network"
    unknown = "unknown"


class TranslationError(Exception):
    """Base class for every failure raised by a backend."""

    kind: ErrorKind = ErrorKind.unknown

    def __init__(self, message: str, backend: str = "") -> None:
        self.message = message
        self.backend = backend
        prefix = f"[{self.kind.value}]"
        if backend:
            prefix = f"{prefix} {backend}:"
        super().__init__(f"{prefix} {message}")

    @property
    def retryable(self) -> bool:
        return self.kind in _RETRYABLE_KINDS


class ValidationError(TranslationError):
    kind = ErrorKind.validation


class CapabilityError(TranslationError):
    kind = ErrorKind.capability


class LanguageError(TranslationError):
    kind = ErrorKind.language

    def __init__(self, language: str, backend: str = "") -> None:
        self.language = language
        super().__init__(f"Language '{language}' is not supported", backend)


class ConfigError(TranslationError):
    kind = ErrorKind.config


class ApiError(TranslationError):
    kind = ErrorKind.api


class NetworkError(TranslationError):
    kind = ErrorKind.network


class UnknownError(TranslationError):
    kind = ErrorKind.unknown


_RETRYABLE_KINDS = frozenset({ErrorKind.api, ErrorKind.network, ErrorKind.unknown})


@dataclass(frozen=True)
class ErrorMessages:
    """User-facing messages a backend shows for each class of remote failure."""

    connection_failed: str = "Cannot connect to the translation service."
    api_not_found: str = "Translation API endpoint not found."
    auth_failed: str = "Authentication failed. Check your API key."
    rate_limit: str = "Rate limit exceeded. Wait a moment and try again."
    default: str = "An error occurred contacting the translation service."


DEFAULT_ERROR_MESSAGES = ErrorMessages()

_RE_CONNECTION = re.compile(
    r"connection|connect|econnrefused|unreachable|timed? ?out|timeout|network",
    re.IGNORECASE,
)
_RE_NOT_FOUND = re.compile(r"\b404\b|not found", re.IGNORECASE)
_RE_AUTH = re.compile(
    r"\b401\b|\b403\b|unauthori[sz]ed|forbidden|invalid api key|incorrect api key|authentication",
    re.IGNORECASE,
)
_RE_RATE_LIMIT = re.compile(r"\b429\b|rate.?limit|too many requests|quota", re.IGNORECASE)


def classify_error(
    exc: BaseException,
    backend: str = "",
    messages: ErrorMessages = DEFAULT_ERROR_MESSAGES,
) -> TranslationError:
    """Map an arbitrary remote failure onto the taxonomy by its message text.

    Errors that are already classified pass through unchanged.
    """
    if isinstance(exc, TranslationError):
        return exc

    text = f"{type(exc).__name__}: {exc}"

    # Auth and rate-limit first: their messages often also mention "connection"
    if _RE_AUTH.search(text):
        return ConfigError(f"{messages.auth_failed} ({exc})", backend)
    if _RE_RATE_LIMIT.search(text):
        return ApiError(f"{messages.rate_limit} ({exc})", backend)
    if _RE_NOT_FOUND.search(text):
        return ApiError(f"{messages.api_not_found} ({exc})", backend)
    if isinstance(exc, (ConnectionError, TimeoutError)) or _RE_CONNECTION.search(text):
        return NetworkError(f"{messages.connection_failed} ({exc})", backend)
    return UnknownError(f"{messages.default} ({exc})", backend)


def is_retryable(exc: BaseException) -> bool:
    """Retry predicate: only remote-side failures are worth another attempt."""
    if isinstance(exc, TranslationError):
        return exc.retryable
    return isinstance(exc, Exception)
