"""Lifetime classes for fixtures."""

from enum import StrEnum


class Scope(StrEnum):
    """Lifetime class of a fixture.

    WORKER fixtures live across every test run by one worker process and
    are torn down once at process end. TEST fixtures live for a single test
    and are torn down after it, whether it passed or failed.
    """

    WORKER = "worker"
    TEST = "test"
