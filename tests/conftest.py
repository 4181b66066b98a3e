# tests/conftest.py
"""Shared test fixtures and helpers.

EventLog records setup/teardown events from fixture factories so tests can
assert on ordering. make_factory builds async generator factories that log
to an EventLog and compute their value from their dependencies.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from typing import Any

import pytest

from fixtura.engine.pool import FixturePool
from fixtura.engine.session import FixtureSession


class EventLog:
    """Ordered list of ``(event, fixture_name)`` tuples."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str]] = []

    def record(self, event: str, name: str) -> None:
        self.events.append((event, name))

    def names(self, event: str) -> list[str]:
        return [name for ev, name in self.events if ev == event]

    def index(self, event: str, name: str) -> int:
        return self.events.index((event, name))

    def count(self, event: str, name: str) -> int:
        return self.events.count((event, name))


def make_factory(
    log: EventLog,
    name: str,
    compute: Callable[..., Any] | None = None,
) -> Callable[..., AsyncIterator[Any]]:
    """Async generator factory that logs setup/teardown around its value.

    Args:
        log: Where to record "setup" and "teardown" events
        name: Fixture name used in the events
        compute: Builds the value from the dependency kwargs; defaults to
            returning the fixture name
    """

    async def factory(**deps: Any) -> AsyncIterator[Any]:
        log.record("setup", name)
        yield compute(**deps) if compute is not None else name
        log.record("teardown", name)

    factory.__name__ = name
    return factory


@pytest.fixture
def event_log() -> EventLog:
    return EventLog()


@pytest.fixture
def pool() -> FixturePool:
    return FixturePool()


@pytest.fixture
def session() -> FixtureSession:
    return FixtureSession()
