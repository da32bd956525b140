"""Shared pytest fixtures and markers for all tests."""

import random

import pytest


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "llm_integration: marks tests requiring LLM API calls"
    )
    config.addinivalue_line(
        "markers", "webapp: marks webapp-specific tests"
    )


class FixedClock:
    """Manually advanced clock for deadline tests."""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedRandom(random.Random):
    """Random source whose ``random()`` draws come from a script.

    Once the script runs out it falls back to the seeded generator, so
    tests only pin the rolls they care about.
    """

    def __init__(self, rolls=(), seed: int = 7):
        super().__init__(seed)
        self.rolls = list(rolls)

    def random(self) -> float:
        if self.rolls:
            return self.rolls.pop(0)
        return super().random()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def store(clock):
    """A fresh seeded world whose delayed jobs are collected in ``store.deferred``."""
    from blissnexus.engine.store import WorldStore

    return WorldStore(rng=random.Random(42), clock=clock)


@pytest.fixture
def make_store(clock):
    """Factory for stores with scripted random rolls."""
    from blissnexus.engine.store import WorldStore

    def _make(rolls=(), seed: int = 7):
        return WorldStore(rng=ScriptedRandom(rolls, seed), clock=clock)

    return _make


def run_deferred(store) -> list[float]:
    """Run every deferred job (including ones they schedule), returning the delays seen."""
    delays = []
    while store.deferred:
        pending, store.deferred = store.deferred, []
        for delay, job in pending:
            delays.append(delay)
            job()
    return delays


@pytest.fixture
def drain():
    return run_deferred
