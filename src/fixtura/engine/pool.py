# src/fixtura/engine/pool.py
"""FixturePool: registry of factories and map of live fixture instances.

The pool is the single writer of the live-instance map. All mutations happen
without a suspension point between the check and the write, which is what
makes setup single-flight: a new Fixture is installed before its setup is
awaited, so concurrent requesters find it and wait on the same attempt.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterable
from types import MappingProxyType
from typing import Any

import structlog

from fixtura.contracts import FixtureClosedError, InvalidDeclarationError, Scope, UnknownFixtureError
from fixtura.core.config import EngineSettings
from fixtura.core.graph import DependencyGraph
from fixtura.engine.fixture import Fixture, Registration, raise_collected
from fixtura.engine.introspect import fixture_dependencies, validate_names

slog = structlog.get_logger(__name__)


class FixturePool:
    """Resolves fixture names into set-up Fixtures and drives scope teardown.

    Usage:
        pool = FixturePool()
        pool.register_fixture("server", Scope.WORKER, start_server)
        pool.register_fixture("client", Scope.TEST, make_client, deps=["server"])

        await pool.resolve_parameters_and_run(test_body)
        await pool.teardown_scope(Scope.TEST)
        ...
        await pool.teardown_scope(Scope.WORKER)
    """

    def __init__(self, settings: EngineSettings | None = None) -> None:
        self.settings = settings if settings is not None else EngineSettings()
        self._registrations: dict[str, Registration] = {}
        self._instances: dict[str, Fixture] = {}
        self._graph: DependencyGraph | None = None

    @property
    def registrations(self) -> MappingProxyType[str, Registration]:
        return MappingProxyType(self._registrations)

    @property
    def instances(self) -> MappingProxyType[str, Fixture]:
        """Read-only live view of the instance map."""
        return MappingProxyType(self._instances)

    def register_fixture(
        self,
        name: str,
        scope: Scope | str,
        factory: Callable[..., Any],
        *,
        deps: Iterable[str] | None = None,
    ) -> Registration:
        """Register (or silently replace) a factory under ``name``.

        Live instances are not affected; a replacement takes effect the next
        time the name is instantiated.

        Args:
            name: Fixture name; must be a valid identifier since it is passed
                as a keyword argument to dependents
            scope: Scope.WORKER or Scope.TEST (or their string values)
            factory: Async generator function, coroutine function, or a
                callable returning an async context manager
            deps: Dependency names. None means "read the @uses declaration".

        Raises:
            InvalidDeclarationError: On an invalid name, dependency list or factory
            ValueError: On an unknown scope string
        """
        if not isinstance(name, str) or not name.isidentifier():
            raise InvalidDeclarationError(f"Fixture name {name!r} is not a valid identifier")
        if not callable(factory):
            raise InvalidDeclarationError(f"Fixture {name!r}: factory {factory!r} is not callable")
        if deps is None:
            dep_names = fixture_dependencies(factory)
        else:
            dep_names = validate_names(tuple(deps), owner=f"fixture {name!r}")

        registration = Registration(name=name, scope=Scope(scope), factory=factory, deps=dep_names)
        replaced = name in self._registrations
        self._registrations[name] = registration
        self._graph = None
        slog.debug(
            "fixture_registered",
            fixture=name,
            scope=str(registration.scope),
            deps=list(dep_names),
            replaced=replaced,
        )
        return registration

    def dependency_graph(self) -> DependencyGraph:
        """Graph of the current registrations (cached until the next registration)."""
        if self._graph is None:
            self._graph = DependencyGraph.from_registrations((r.name, r.scope, r.deps) for r in self._registrations.values())
        return self._graph

    async def setup_fixture(self, name: str, *, requested_by: str | None = None) -> Fixture:
        """Return the set-up Fixture for ``name``, creating it if needed.

        Args:
            name: Fixture name
            requested_by: Dependent fixture asking for it (error reporting only)

        Raises:
            UnknownFixtureError: If ``name`` was never registered
            CyclicDependencyError: If cycle detection is on and a cycle is
                reachable from ``name``
            Exception: Whatever the factory (or a dependency's factory) raised
        """
        while True:
            fixture = self._instances.get(name)
            if fixture is None:
                registration = self._registrations.get(name)
                if registration is None:
                    raise UnknownFixtureError(name, requested_by=requested_by, known=self._registrations)
                if self.settings.detect_cycles:
                    self.dependency_graph().check_acyclic(name)
                fixture = Fixture(self, registration)
                self._instances[name] = fixture

            if not fixture.tearing_down:
                try:
                    await fixture.setup()
                except FixtureClosedError:
                    slog.debug("fixture_setup_restarted", fixture=name, requested_by=requested_by)
                except BaseException:
                    self.discard(fixture)
                    raise
                if not fixture.tearing_down:
                    return fixture

            # The instance is on its way out, before or during its setup;
            # wait for it to leave and start fresh
            await fixture.wait_closed()

    def discard(self, fixture: Fixture) -> None:
        """Drop ``fixture`` from the live map if it is still the current instance."""
        if self._instances.get(fixture.name) is fixture:
            del self._instances[fixture.name]

    async def teardown_scope(self, scope: Scope | str) -> None:
        """Tear down every live fixture of ``scope``.

        Each fixture's teardown releases its dependents first, so the sweep
        needs no pre-sort. Fixtures removed as a side effect of an earlier
        teardown in the sweep are skipped. Every fixture is attempted even if
        some cleanups fail.

        Raises:
            Exception: The cleanup failure, if exactly one cleanup failed
            TeardownError: If several cleanups failed
        """
        scope = Scope(scope)
        targets = [fixture for fixture in self._instances.values() if fixture.scope == scope]
        slog.debug("scope_teardown_started", scope=str(scope), fixtures=[f.name for f in targets])

        errors: list[Exception] = []
        for fixture in targets:
            if self._instances.get(fixture.name) is not fixture:
                continue
            errors.extend(await fixture.teardown_collecting())

        slog.debug("scope_teardown_completed", scope=str(scope), failures=len(errors))
        raise_collected(errors, f"{len(errors)} fixture teardowns failed in {scope} scope")

    async def resolve_parameters_and_run(
        self,
        fn: Callable[..., Any],
        *,
        deps: Iterable[str] | None = None,
    ) -> Any:
        """Set up the fixtures ``fn`` needs and call it with their values.

        Args:
            fn: Test body or hook; sync or async
            deps: Fixture names to inject. None means "read the @uses declaration".

        Returns:
            Whatever ``fn`` returns (awaited if it is awaitable)
        """
        if deps is None:
            names = fixture_dependencies(fn)
        else:
            names = validate_names(tuple(deps), owner=getattr(fn, "__qualname__", repr(fn)))

        params: dict[str, Any] = {}
        for name in names:
            fixture = await self.setup_fixture(name)
            params[name] = fixture.value

        result = fn(**params)
        if inspect.isawaitable(result):
            result = await result
        return result
