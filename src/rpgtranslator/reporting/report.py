"""Translation report data model."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from rpgtranslator.models import BatchStats
from rpgtranslator.translation.orchestrator import RunResult


@dataclass
class TranslationReport:
    """Collects statistics about a translation run."""

    source_file: str = ""
    output_file: str = ""
    source_lang: str = ""
    target_lang: str = ""
    backend: str = ""
    model: str = ""

    units_found: int = 0
    units_translated: int = 0
    units_failed: int = 0
    units_pending: int = 0
    fields_patched: int = 0
    total_tokens: int = 0
    total_cost: float = 0.0

    dry_run: bool = False
    cancelled: bool = False
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: datetime | None = None

    errors: list[str] = field(default_factory=list)

    @property
    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()

    def finish(self) -> None:
        self.finished_at = datetime.now()

    def record_run(self, result: RunResult) -> None:
        stats: BatchStats = result.batch.stats
        self.units_translated = stats.success_count
        self.units_failed = stats.failed_count
        self.units_pending = len(result.pending)
        self.total_tokens = stats.total_tokens
        self.total_cost = stats.total_cost
        self.cancelled = result.cancelled
        for err in result.errors:
            label = f"{err.unit.resource_id}.{err.unit.field}"
            self.errors.append(f"{label} [{err.kind}, {err.retry_count} retries]: {err.message}")

    def to_dict(self) -> dict:
        return {
            "source_file": self.source_file,
            "output_file": self.output_file,
            "source_lang": self.source_lang,
            "target_lang": self.target_lang,
            "backend": self.backend,
            "model": self.model,
            "units_found": self.units_found,
            "units_translated": self.units_translated,
            "units_failed": self.units_failed,
            "units_pending": self.units_pending,
            "fields_patched": self.fields_patched,
            "total_tokens": self.total_tokens,
            "total_cost": self.total_cost,
            "dry_run": self.dry_run,
            "cancelled": self.cancelled,
            "duration_seconds": self.duration_seconds,
            "errors": self.errors,
        }
