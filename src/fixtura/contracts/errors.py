"""Error taxonomy for the fixture engine.

Setup failures are NOT wrapped: a factory's own exception propagates
unchanged to every requester of that fixture. Only conditions detected by
the engine itself get a dedicated type here.
"""

import difflib
from collections.abc import Iterable, Sequence


class FixtureError(Exception):
    """Base class for errors raised by the engine."""


class UnknownFixtureError(FixtureError, LookupError):
    """Raised when a requested fixture name was never registered.

    Raised before any instance is created, so a failed lookup leaves the
    pool's live-instance map untouched.

    Attributes:
        name: The unregistered fixture name
        requested_by: Name of the fixture whose setup asked for it, or None
            when a test function asked for it directly
        suggestions: Registered names that look like near misses
    """

    def __init__(
        self,
        name: str,
        *,
        requested_by: str | None = None,
        known: Iterable[str] = (),
    ) -> None:
        self.name = name
        self.requested_by = requested_by
        self.suggestions = difflib.get_close_matches(name, list(known), n=3, cutoff=0.6)
        msg = f"Unknown fixture: {name!r}"
        if requested_by is not None:
            msg += f" (required by {requested_by!r})"
        if self.suggestions:
            msg += f". Did you mean: {', '.join(repr(s) for s in self.suggestions)}?"
        super().__init__(msg)


class CyclicDependencyError(FixtureError):
    """Raised when fixture registrations depend on each other in a loop.

    Without this check a cycle deadlocks: each fixture's setup waits on the
    next one's, forever.

    Attributes:
        cycle: Fixture names along the cycle; the first name repeats at the end
    """

    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = tuple(cycle)
        super().__init__(f"Fixture dependency cycle: {' -> '.join(self.cycle)}")


class FixtureNotReadyError(FixtureError):
    """Raised when reading the value of a fixture whose setup has not completed."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Fixture {name!r} has no value: setup has not completed")


class FixtureClosedError(FixtureError):
    """Raised when a fixture is torn down before its factory ever ran.

    The pool catches this and starts a fresh instance, so consumers only
    see it when driving a Fixture directly.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Fixture {name!r} was torn down while resolving its dependencies")


class InvalidDeclarationError(FixtureError, TypeError):
    """Raised for malformed dependency declarations or unsupported factories."""


class TeardownError(ExceptionGroup):  # noqa: N818 - mirrors ExceptionGroup naming
    """Several fixture cleanups failed during one teardown.

    A single failure is re-raised as-is; this group only appears when more
    than one cleanup raised. Subclasses ExceptionGroup so callers can use
    ``except*`` to pick out individual failure types.
    """
