"""Tests for the default behavior every backend inherits."""

import asyncio
import dataclasses

import pytest

from rpgtranslator.backends.base import BatchOptions, CostEstimate, translate_units
from rpgtranslator.backends.dummy import DummyBackend
from rpgtranslator.config import DummyConfig, IdentityConfig
from rpgtranslator.errors import (
    CapabilityError,
    ConfigError,
    LanguageError,
    NetworkError,
    ValidationError,
)
from rpgtranslator.models import ContentClass, TranslationRequest
from rpgtranslator.translation.ratelimit import RateLimiter
from rpgtranslator.translation.retry import RetryTracker
from tests.conftest import FakeClock, RecordingSleep, ScriptedBackend, make_unit


def _units(n):
    return [make_unit(str(i), "profile", f"text {i}", ContentClass.dialogue) for i in range(1, n + 1)]


class SafeOnly(ScriptedBackend):
    @property
    def metadata(self):
        return dataclasses.replace(super().metadata, supports_adult_content=False)


class TestTranslate:
    def test_cache_hit_skips_core_and_limiter(self):
        clock = FakeClock()
        sleep = RecordingSleep(clock)
        limiter = RateLimiter(max_tokens=1, refill_rate=1, refill_interval=60.0, clock=clock, sleep=sleep)
        backend = ScriptedBackend(limiter=limiter, sleep=sleep)
        request = TranslationRequest("Hello", "en", "ja", context="Actor Name")

        async def run():
            first = await backend.translate(request)
            second = await backend.translate(request)
            return first, second

        first, second = asyncio.run(run())
        assert first == second
        assert backend.calls == ["Hello"]
        assert limiter.tokens == 0
        assert sleep.delays == []

    def test_different_context_is_not_cached(self):
        backend = ScriptedBackend()

        async def run():
            await backend.translate(TranslationRequest("Hello", "en", "ja", context="Actor Name"))
            await backend.translate(TranslationRequest("Hello", "en", "ja", context="Actor Title"))

        asyncio.run(run())
        assert backend.calls == ["Hello", "Hello"]

    def test_failure_propagates_after_retries(self):
        backend = ScriptedBackend(fail_on={"Hello"})
        tracker = RetryTracker()
        with pytest.raises(NetworkError):
            asyncio.run(backend.translate(TranslationRequest("Hello", "en", "ja"), tracker=tracker))
        assert backend.calls == ["Hello", "Hello"]
        assert tracker.retries == 1
        assert len(backend.cache) == 0

    def test_auth_failure_is_not_retried(self):
        backend = ScriptedBackend(fail_on={"Hello"}, error=Exception("Error code: 401 - invalid api key"))
        with pytest.raises(ConfigError):
            asyncio.run(backend.translate(TranslationRequest("Hello", "en", "ja")))
        assert backend.calls == ["Hello"]

    def test_processing_time_filled(self):
        response = asyncio.run(ScriptedBackend().translate(TranslationRequest("Hi", "en", "ja")))
        assert response.meta.processing_time >= 0.0
        assert response.translated_text == "[JA] Hi"

    def test_rejects_unsupported_language(self):
        with pytest.raises(LanguageError):
            asyncio.run(ScriptedBackend().translate(TranslationRequest("Hi", "en", "xx")))

    def test_rejects_empty_text(self):
        with pytest.raises(ValidationError):
            asyncio.run(ScriptedBackend().translate(TranslationRequest("", "en", "ja")))

    def test_language_check_is_case_insensitive(self):
        response = asyncio.run(ScriptedBackend().translate(TranslationRequest("Hi", "EN", "JA")))
        assert response.translated_text == "[JA] Hi"


class TestTranslateBatch:
    def test_partial_failure_keeps_successes(self):
        backend = ScriptedBackend(fail_on={"text 3"})
        result = asyncio.run(backend.translate_batch(_units(5), "ja", "en"))

        assert [u.resource_id for u in result.units] == ["1", "2", "4", "5"]
        assert all(u.target == f"[EN] {u.source}" for u in result.units)
        assert result.stats.success_count == 4
        assert result.stats.failed_count == 1
        assert len(result.errors) == 1
        error = result.errors[0]
        assert error.text == "text 3"
        assert error.kind == "network"
        assert error.retry_count == 1

    def test_inputs_are_not_mutated(self):
        units = _units(2)
        asyncio.run(ScriptedBackend().translate_batch(units, "ja", "en"))
        assert all(u.target == "" for u in units)

    def test_order_preserved_regardless_of_completion(self):
        class Staggered(ScriptedBackend):
            async def perform_translation(self, request):
                index = int(request.text.split()[-1])
                await asyncio.sleep(0.01 * (6 - index))
                return await super().perform_translation(request)

        result = asyncio.run(Staggered().translate_batch(_units(5), "ja", "en"))
        assert [u.resource_id for u in result.units] == ["1", "2", "3", "4", "5"]

    def test_chunks_capped_by_backend_limit(self):
        class Tracking(ScriptedBackend):
            in_flight = 0
            peak = 0

            async def perform_translation(self, request):
                Tracking.in_flight += 1
                Tracking.peak = max(Tracking.peak, Tracking.in_flight)
                await asyncio.sleep(0)
                Tracking.in_flight -= 1
                return await super().perform_translation(request)

        backend = Tracking()
        result = asyncio.run(backend.translate_batch(_units(7), "ja", "en", BatchOptions(batch_size=3)))
        assert result.stats.success_count == 7
        assert Tracking.peak == 3

    def test_empty_batch_is_validation_error(self):
        with pytest.raises(ValidationError):
            asyncio.run(ScriptedBackend().translate_batch([], "ja", "en"))

    def test_unsupported_language_fails_before_any_call(self):
        backend = ScriptedBackend()
        with pytest.raises(LanguageError):
            asyncio.run(backend.translate_batch(_units(2), "ja", "tlh"))
        assert backend.calls == []

    def test_adult_content_fails_fast(self):
        backend = SafeOnly()
        with pytest.raises(CapabilityError):
            asyncio.run(translate_units(backend, _units(2), "ja", "en", BatchOptions(adult=True)))
        assert backend.calls == []

    def test_adult_unit_class_fails_fast(self):
        backend = SafeOnly()
        units = [make_unit("1", "note", "x", ContentClass.adult)]
        with pytest.raises(CapabilityError):
            asyncio.run(backend.translate_batch(units, "ja", "en"))

    def test_content_class_override(self):
        backend = ScriptedBackend()
        result = asyncio.run(backend.translate_batch(
            _units(1), "ja", "en", BatchOptions(content_class=ContentClass.menu),
        ))
        assert result.stats.success_count == 1


class TestConfigAndEstimates:
    def test_validate_config_accepts_defaults(self):
        backend = DummyBackend(DummyConfig())
        assert asyncio.run(backend.validate_config(backend.config))

    @pytest.mark.parametrize("config", [
        DummyConfig(temperature=2.5),
        DummyConfig(model="gpt-4"),
        DummyConfig(batch_size=-1),
        DummyConfig(timeout=0.0),
        IdentityConfig(),
    ])
    def test_validate_config_rejects(self, config):
        backend = DummyBackend(DummyConfig())
        with pytest.raises(ConfigError):
            asyncio.run(backend.validate_config(config))

    def test_validate_config_rejects_adult_without_support(self):
        backend = SafeOnly()
        with pytest.raises(CapabilityError):
            asyncio.run(backend.validate_config(DummyConfig(content_class=ContentClass.adult)))

    def test_wrong_config_variant(self):
        with pytest.raises(ConfigError):
            DummyBackend(IdentityConfig())

    def test_resolved_defaults(self):
        backend = DummyBackend(DummyConfig())
        assert backend.config.model == "dummy"
        assert backend.config.batch_size == 50
        assert backend.config.content_class is ContentClass.general

    def test_estimate_cost(self):
        backend = DummyBackend(DummyConfig())
        assert backend.estimate_cost("abcdefghi") == CostEstimate(tokens=3, cost=0.0)

    def test_default_prompt(self):
        backend = DummyBackend(DummyConfig())
        prompt = backend.get_default_prompt(ContentClass.dialogue)
        assert backend.validate_prompt(prompt)
        assert "dialogue" in prompt.system
