"""Translation runs over arbitrarily many units.

A run splits its units into administrative batches and hands each one to
the backend's ``translate_batch``, one batch at a time. Cancellation is
checked between batches only: the batch in flight always completes, and
units of batches never started are reported as pending rather than failed.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from rpgtranslator.backends.base import BatchOptions, TranslationBackend, check_units
from rpgtranslator.models import BatchAccumulator, BatchError, BatchResult, TranslationUnit

logger = logging.getLogger(__name__)

DEFAULT_RUN_BATCH_SIZE = 10

# Type alias for progress callback: (phase, current, total, message)
ProgressCallback = Callable[[str, int, int, str], None]


class CancelFlag(Protocol):
    """Anything with ``is_set()``: asyncio.Event and threading.Event both fit."""

    def is_set(self) -> bool: ...


@dataclass(frozen=True)
class RunResult:
    batch: BatchResult
    pending: tuple[TranslationUnit, ...] = ()
    cancelled: bool = False

    @property
    def units(self) -> tuple[TranslationUnit, ...]:
        return self.batch.units

    @property
    def errors(self) -> tuple[BatchError, ...]:
        return self.batch.errors


@dataclass
class TranslationRun:
    """One translation run bound to a backend and a language pair."""

    backend: TranslationBackend
    source_language: str
    target_language: str
    batch_size: int = DEFAULT_RUN_BATCH_SIZE
    options: BatchOptions = field(default_factory=BatchOptions)
    on_progress: ProgressCallback | None = None

    def __post_init__(self) -> None:
        if self.batch_size <= 0:
            raise ValueError("batch_size must be positive")

    def _notify(self, phase: str, current: int, total: int, message: str = "") -> None:
        if self.on_progress is not None:
            self.on_progress(phase, current, total, message)

    async def execute(
        self,
        units: Sequence[TranslationUnit],
        cancel_event: CancelFlag | None = None,
    ) -> RunResult:
        """Translate ``units`` batch by batch.

        Language and content-class problems anywhere in ``units`` abort the
        run before the first batch is sent; per-unit failures are collected
        in the result.
        """
        total = len(units)
        acc = BatchAccumulator()
        started = time.monotonic()
        done = 0

        if not units:
            return RunResult(batch=acc.build(0.0))

        check_units(self.backend.metadata, units, self.source_language, self.target_language, self.options)

        logger.info(
            "Translating %d unit(s) %s→%s with %s",
            total, self.source_language, self.target_language, self.backend.metadata.name,
        )
        self._notify("translate", 0, total, "Starting")

        for start in range(0, total, self.batch_size):
            if cancel_event is not None and cancel_event.is_set():
                pending = tuple(units[start:])
                logger.info("Run cancelled, %d unit(s) left pending", len(pending))
                self._notify("cancelled", done, total, f"{len(pending)} pending")
                return RunResult(
                    batch=acc.build(time.monotonic() - started),
                    pending=pending,
                    cancelled=True,
                )

            chunk = units[start : start + self.batch_size]
            result = await self.backend.translate_batch(
                chunk, self.source_language, self.target_language, self.options,
            )
            acc.add_result(result)
            done += len(chunk)
            if result.has_errors:
                logger.warning("%d of %d unit(s) failed in this batch", len(result.errors), len(chunk))
            self._notify("translate", done, total, f"{acc.success_count} translated")

        self._notify("done", done, total, f"{acc.failed_count} failed")
        return RunResult(batch=acc.build(time.monotonic() - started))
