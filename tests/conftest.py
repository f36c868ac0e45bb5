import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from storyshelf.models import Character, CharacterType, Story, StoryType

T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeSource:
    """Scriptable fetch/mutate pair with call counters and optional gates."""

    def __init__(self, items=None):
        self.items = list(items or [])
        self.calls = 0
        self.error = None
        self.gate = None

        self.mutations = []
        self.mutate_error = None
        self.mutate_result = None
        self.mutate_gate = None

    async def fetch(self, scope):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return list(self.items)

    async def mutate(self, scope, delta):
        self.mutations.append((scope, delta))
        if self.mutate_gate is not None:
            await self.mutate_gate.wait()
        if self.mutate_error is not None:
            raise self.mutate_error
        return self.mutate_result


async def settle(rounds: int = 5):
    """Let scheduled tasks run up to their next suspension point."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def make_story(story_id: str, minutes_ago: int = 0, **overrides) -> Story:
    created = T0 - timedelta(minutes=minutes_ago)
    fields = dict(
        id=story_id,
        type=StoryType.USER,
        title=f"Story {story_id}",
        created_at=created,
        updated_at=created,
    )
    fields.update(overrides)
    return Story(**fields)


def make_character(character_id: str, name: str = "Luna", **overrides) -> Character:
    fields = dict(id=character_id, name=name, type=CharacterType.CHILD)
    fields.update(overrides)
    return Character(**fields)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def source():
    return FakeSource()
