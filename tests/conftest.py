"""Shared test fixtures for rpgtranslator tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from rpgtranslator.backends.dummy import DummyBackend
from rpgtranslator.config import DummyConfig
from rpgtranslator.core.document import ResourceDocument
from rpgtranslator.models import ContentClass, TranslationRequest, TranslationResponse, TranslationUnit
from rpgtranslator.translation.retry import RetryPolicy


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Async sleep replacement that records delays and optionally moves a clock."""

    def __init__(self, clock: FakeClock | None = None) -> None:
        self.clock = clock
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self.clock is not None:
            self.clock.advance(delay)


class ScriptedBackend(DummyBackend):
    """Dummy backend whose core call fails for chosen source texts."""

    def __init__(
        self,
        fail_on: set[str] | None = None,
        error: Exception | None = None,
        config: DummyConfig | None = None,
        **kwargs,
    ) -> None:
        kwargs.setdefault("sleep", RecordingSleep())
        kwargs.setdefault("retry_policy", RetryPolicy(max_attempts=2, initial_delay=0.01, max_delay=0.01))
        super().__init__(config or DummyConfig(), **kwargs)
        self.fail_on = fail_on or set()
        self.error = error or ConnectionError("connection refused")
        self.calls: list[str] = []

    async def perform_translation(self, request: TranslationRequest) -> TranslationResponse:
        self.calls.append(request.text)
        if request.text in self.fail_on:
            raise self.error
        return await super().perform_translation(request)


def make_unit(
    resource_id: str = "1",
    field: str = "name",
    source: str = "Harold",
    content_class: ContentClass = ContentClass.name,
    **kwargs,
) -> TranslationUnit:
    return TranslationUnit(
        resource_id=resource_id, field=field, source=source, content_class=content_class, **kwargs,
    )


def make_actor(actor_id: int, name: str = "", nickname: str = "", profile: str = "", note: str = "") -> dict:
    """An Actors.json entry with the non-text fields the editor writes."""
    return {
        "id": actor_id,
        "battlerName": f"Actor{actor_id}_1",
        "characterIndex": 0,
        "characterName": "Actor1",
        "classId": 1,
        "equips": [1, 1, 2, 3, 0],
        "faceIndex": 0,
        "faceName": "Actor1",
        "traits": [],
        "initialLevel": 1,
        "maxLevel": 99,
        "name": name,
        "nickname": nickname,
        "note": note,
        "profile": profile,
    }


ACTORS_CONTENT = [
    None,
    make_actor(1, name="ハロルド", nickname="勇者", profile="正義感の強い青年。\n剣の腕は一流。"),
    make_actor(2, name="テレーゼ", profile="明るい魔法使い。", note="<hp:120>"),
    None,
    make_actor(4, name="マーシャ"),
]


@pytest.fixture
def actors_content() -> list:
    return json.loads(json.dumps(ACTORS_CONTENT))


@pytest.fixture
def actors_document(actors_content) -> ResourceDocument:
    return ResourceDocument(path="data/Actors.json", content=actors_content)


@pytest.fixture
def actors_file(tmp_path: Path, actors_content) -> Path:
    path = tmp_path / "Actors.json"
    path.write_text(json.dumps(actors_content, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_sleep(clock: FakeClock) -> RecordingSleep:
    return RecordingSleep(clock)
