"""Pytest fixtures for Aethereal Drift tests."""

import pytest
from aethereal_drift import DriftEngine, DriftConfig, Anchor, Position
from aethereal_drift.generation import EchoGenerator
from aethereal_drift.store import DriftStore


class FakeClock:
    """Manually advanced epoch-millis clock."""

    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FailingGenerator:
    """Text generator that always raises."""

    def __init__(self, exc: Exception | None = None):
        self.exc = exc or RuntimeError("model not loaded")
        self.calls = 0

    async def generate(self, prompt, params):
        self.calls += 1
        raise self.exc


class CannedGenerator:
    """Text generator returning a fixed reply and recording prompts."""

    def __init__(self, reply: str = "The lamps count backwards here."):
        self.reply = reply
        self.prompts = []
        self.params = []

    async def generate(self, prompt, params):
        self.prompts.append(prompt)
        self.params.append(params)
        return self.reply


@pytest.fixture
def config():
    """In-memory configuration with offline backends."""
    return DriftConfig(
        db_path=":memory:",
        text_backend="echo",
        embedding_backend="hash",
        seed=7,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(config):
    store = DriftStore(config)
    yield store
    store.close()


@pytest.fixture
def engine(config, clock):
    """Engine with a fake clock and the echo generator."""
    engine = DriftEngine(config, generator=EchoGenerator(), clock=clock)
    yield engine
    engine.close()


@pytest.fixture
def observer():
    return Position(latitude=51.5074, longitude=-0.1278, accuracy=5.0)


@pytest.fixture
def london_anchors():
    """Two anchors around Trafalgar Square, nearest first."""
    return [
        Anchor(id=1, title="A", latitude=51.5080, longitude=-0.1270, distance=85.0),
        Anchor(id=2, title="B", latitude=51.5068, longitude=-0.1285, distance=86.0),
    ]


def make_anchors(ids, base_distance=100.0):
    """Anchors with the given ids, nearest first."""
    return [
        Anchor(
            id=i,
            title=f"Place {i}",
            latitude=51.5 + n * 0.001,
            longitude=-0.12 - n * 0.001,
            distance=base_distance + n * 50,
        )
        for n, i in enumerate(ids)
    ]
