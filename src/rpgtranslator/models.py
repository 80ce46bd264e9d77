"""Value objects shared by the extractor, the backends and the orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ContentClass(str, Enum):
    """Kind of text being translated. Selects the prompt and gates capabilities."""
    general = "general"
    dialogue = "dialogue"
    menu = "menu"
    items = "items"
    skills = "skills"
    name = "name"
    adult = "adult"


ALL_CONTENT_CLASSES: frozenset[ContentClass] = frozenset(ContentClass)
SAFE_CONTENT_CLASSES: frozenset[ContentClass] = ALL_CONTENT_CLASSES - {ContentClass.adult}


@dataclass(frozen=True)
class UnitKey:
    """Merge identity of a translation unit."""

    resource_id: str
    field: str
    file: str


@dataclass
class TranslationUnit:
    """One extracted piece of source text plus where it came from.

    ``target`` starts empty and is filled in by a backend.
    """

    resource_id: str  # Numeric id of the entry, as a string
    field: str  # e.g. "name", "profile"
    source: str
    content_class: ContentClass = ContentClass.general
    target: str = ""
    context: str | None = None  # Semantic label, e.g. "Actor Profile"
    file: str = ""  # Path of the document the unit was extracted from
    section: str | None = None

    @property
    def key(self) -> UnitKey:
        return UnitKey(self.resource_id, self.field, self.file)

    @property
    def is_translated(self) -> bool:
        return bool(self.target)


@dataclass(frozen=True)
class TranslationRequest:
    text: str
    source_language: str
    target_language: str
    context: str | None = None
    content_class: ContentClass | None = None


@dataclass(frozen=True)
class TokenUsage:
    prompt: int = 0
    completion: int = 0
    total: int = 0


@dataclass(frozen=True)
class ResponseMeta:
    processing_time: float = 0.0  # seconds
    quality_score: float | None = None


@dataclass(frozen=True)
class TranslationResponse:
    translated_text: str
    confidence: float | None = None
    tokens: TokenUsage | None = None
    cost: float | None = None
    meta: ResponseMeta = field(default_factory=ResponseMeta)


@dataclass(frozen=True)
class BackendMetadata:
    """Static facts about a backend.

    A backend never accepts a content class or language outside the
    declared sets; asking for one is a configuration error.
    """

    name: str
    version: str = "1.0.0"
    cost_per_token: float = 0.0
    max_batch_size: int = 10
    quality_score: float = 0.5
    supported_content_classes: frozenset[ContentClass] = SAFE_CONTENT_CLASSES
    supported_languages: frozenset[str] = frozenset()
    supports_adult_content: bool = False

    def supports_language(self, language: str) -> bool:
        return language.lower() in self.supported_languages

    def supports_content_class(self, content_class: ContentClass) -> bool:
        if content_class is ContentClass.adult and not self.supports_adult_content:
            return False
        return content_class in self.supported_content_classes


@dataclass(frozen=True)
class BatchStats:
    total_tokens: int = 0
    total_cost: float = 0.0
    success_count: int = 0
    failed_count: int = 0
    total_processing_time: float = 0.0  # seconds


@dataclass(frozen=True)
class BatchError:
    """A unit that could not be translated, with the reason."""

    unit: TranslationUnit
    message: str
    retry_count: int = 0
    kind: str = "unknown"

    @property
    def text(self) -> str:
        return self.unit.source


@dataclass(frozen=True)
class BatchResult:
    """Outcome of translating a list of units. Immutable once returned."""

    units: tuple[TranslationUnit, ...] = ()
    stats: BatchStats = field(default_factory=BatchStats)
    errors: tuple[BatchError, ...] = ()

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


@dataclass
class BatchAccumulator:
    """Mutable builder used while sub-batches are still running."""

    units: list[TranslationUnit] = field(default_factory=list)
    errors: list[BatchError] = field(default_factory=list)
    total_tokens: int = 0
    total_cost: float = 0.0
    success_count: int = 0
    failed_count: int = 0

    def add_success(self, unit: TranslationUnit, response: TranslationResponse, cost: float) -> None:
        self.units.append(unit)
        self.success_count += 1
        if response.tokens is not None:
            self.total_tokens += response.tokens.total
        self.total_cost += cost

    def add_failure(self, error: BatchError) -> None:
        self.errors.append(error)
        self.failed_count += 1

    def add_result(self, result: BatchResult) -> None:
        self.units.extend(result.units)
        self.errors.extend(result.errors)
        self.total_tokens += result.stats.total_tokens
        self.total_cost += result.stats.total_cost
        self.success_count += result.stats.success_count
        self.failed_count += result.stats.failed_count

    def build(self, processing_time: float) -> BatchResult:
        return BatchResult(
            units=tuple(self.units),
            stats=BatchStats(
                total_tokens=self.total_tokens,
                total_cost=self.total_cost,
                success_count=self.success_count,
                failed_count=self.failed_count,
                total_processing_time=processing_time,
            ),
            errors=tuple(self.errors),
        )
