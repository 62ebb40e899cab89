"""Pytest configuration and fixtures."""

import pytest

from pool_ledger import Pool, PoolEvent
from tests.helpers.constants import ALICE, ALICE_BASE, ALICE_OTHER, BOB


class EventRecorder:
    """Listener that keeps every event a pool emits.

    Usage:
        recorder = EventRecorder()
        pool.subscribe(recorder)
        pool.deposit(...)
        assert recorder.last.minted_shares > 0
    """

    def __init__(self) -> None:
        self.events: list[PoolEvent] = []

    def __call__(self, event: PoolEvent) -> None:
        self.events.append(event)

    @property
    def last(self) -> PoolEvent:
        return self.events[-1]


@pytest.fixture
def empty_pool() -> Pool:
    """A freshly initialized pool."""
    return Pool()


@pytest.fixture
def seeded_pool() -> Pool:
    """A pool seeded by Alice with 5,000 base / 10,000 other (price 0.5)."""
    pool = Pool()
    pool.deposit(ALICE_BASE, ALICE_OTHER, ALICE)
    return pool


@pytest.fixture
def two_provider_pool(seeded_pool: Pool) -> Pool:
    """The seeded pool after Bob matches Alice's deposit."""
    seeded_pool.deposit(ALICE_BASE, ALICE_OTHER, BOB)
    return seeded_pool


@pytest.fixture
def recorder() -> EventRecorder:
    """An empty event recorder."""
    return EventRecorder()
