# src/fixtura/engine/fixture.py
"""Fixture: one live instantiation of a registered factory.

Lifecycle of a Fixture:

    created -> setup() -> live -> teardown() -> removed from the pool

Setup first sets up every dependency through the pool and records this
fixture in each dependency's ``usages``. It then acquires the factory as a
two-phase resource: an async generator is entered on an AsyncExitStack
(code before ``yield`` is setup, code after is cleanup), a coroutine
function is simply awaited. Teardown walks ``usages`` first, so dependents
are always released before the things they depend on, then closes the
exit stack.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager, AsyncExitStack, asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from fixtura.contracts import FixtureClosedError, FixtureNotReadyError, InvalidDeclarationError, Scope, TeardownError

if TYPE_CHECKING:
    from fixtura.engine.pool import FixturePool

slog = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Registration:
    """A registered factory. Immutable; re-registering a name replaces it."""

    name: str
    scope: Scope
    factory: Callable[..., Any]
    deps: tuple[str, ...]


def raise_collected(errors: list[Exception], message: str) -> None:
    """Raise the failures gathered during a teardown, if any.

    A single failure is re-raised unchanged; several become a TeardownError.
    """
    if not errors:
        return
    if len(errors) == 1:
        raise errors[0]
    raise TeardownError(message, errors)


class Fixture:
    """A fixture instance tracked by a FixturePool.

    Attributes:
        name: Fixture name
        scope: Lifetime class copied from the registration
        deps: Dependency names, in the order they are set up
        usages: Names of fixtures that depended on this one during their setup
    """

    def __init__(self, pool: FixturePool, registration: Registration) -> None:
        self._pool = pool
        self.name = registration.name
        self.scope = registration.scope
        self.deps = registration.deps
        self._factory = registration.factory
        self.usages: set[str] = set()
        self._dependencies: list[Fixture] = []

        self._value: Any = None
        self._ready = False
        self._setup_started = False
        self._factory_started = False
        self._setup_error: BaseException | None = None
        self._settled = asyncio.Event()
        self._exit_stack: AsyncExitStack | None = None

        self._teardown_started = False
        self._closed = asyncio.Event()

    def __repr__(self) -> str:
        if self._teardown_started:
            state = "closing"
        elif self._ready:
            state = "live"
        else:
            state = "pending"
        return f"<Fixture {self.name!r} scope={self.scope} {state}>"

    @property
    def value(self) -> Any:
        """The value produced by the factory.

        Raises:
            FixtureNotReadyError: If setup has not completed
        """
        if not self._ready:
            raise FixtureNotReadyError(self.name)
        return self._value

    @property
    def is_set_up(self) -> bool:
        return self._ready

    @property
    def is_live(self) -> bool:
        return self._ready and not self._teardown_started

    @property
    def tearing_down(self) -> bool:
        return self._teardown_started

    def depends_on(self, fixture: Fixture) -> bool:
        """True if this instance was set up on top of that exact ``fixture`` instance."""
        return any(dependency is fixture for dependency in self._dependencies)

    async def wait_closed(self) -> None:
        """Wait until a started teardown has finished."""
        await self._closed.wait()

    async def setup(self) -> None:
        """Set up dependencies and acquire the factory's value.

        Only the first call runs the setup. Later and concurrent calls wait
        for that attempt to settle and see the same outcome: they return
        once the value is available, or raise the same error.
        """
        if self._setup_started:
            await self._settled.wait()
            if self._setup_error is not None:
                raise self._setup_error
            return

        self._setup_started = True
        try:
            await self._acquire()
        except FixtureClosedError as e:
            self._setup_error = e
            slog.debug("fixture_setup_abandoned", fixture=self.name, scope=str(self.scope))
            raise
        except BaseException as e:
            self._setup_error = e
            slog.warning(
                "fixture_setup_failed",
                fixture=self.name,
                scope=str(self.scope),
                error_type=type(e).__name__,
                error=str(e),
            )
            raise
        finally:
            self._settled.set()

    async def _acquire(self) -> None:
        params: dict[str, Any] = {}
        for dep_name in self.deps:
            dependency = await self._pool.setup_fixture(dep_name, requested_by=self.name)
            if self._teardown_started:
                raise FixtureClosedError(self.name)
            dependency.usages.add(self.name)
            self._dependencies.append(dependency)
            if self.scope == Scope.WORKER and dependency.scope == Scope.TEST and self._pool.settings.warn_scope_mismatch:
                slog.warning(
                    "scope_mismatch",
                    fixture=self.name,
                    dependency=dep_name,
                    detail="worker fixture will be torn down with its test-scoped dependency after every test",
                )
            params[dep_name] = dependency.value

        slog.debug("fixture_setup_started", fixture=self.name, scope=str(self.scope), deps=list(self.deps))
        self._factory_started = True

        if inspect.isasyncgenfunction(self._factory):
            self._value = await self._enter(asynccontextmanager(self._factory)(**params))
        else:
            result = self._factory(**params)
            if isinstance(result, AbstractAsyncContextManager):
                self._value = await self._enter(result)
            elif inspect.isawaitable(result):
                self._value = await result
            else:
                raise InvalidDeclarationError(
                    f"Fixture {self.name!r}: factory must be an async generator function, "
                    f"a coroutine function, or return an async context manager; got {type(result).__name__}"
                )

        self._ready = True
        slog.debug("fixture_setup_completed", fixture=self.name, scope=str(self.scope))

    async def _enter(self, manager: AbstractAsyncContextManager[Any]) -> Any:
        stack = AsyncExitStack()
        value = await stack.enter_async_context(manager)
        self._exit_stack = stack
        return value

    async def teardown(self) -> None:
        """Tear down dependents, then release this fixture.

        Idempotent: a second call waits for the first to finish and does not
        run cleanup again.

        Raises:
            Exception: The cleanup failure, if exactly one cleanup failed
            TeardownError: If several cleanups failed
        """
        errors = await self.teardown_collecting()
        raise_collected(errors, f"Teardown of fixture {self.name!r} failed")

    async def teardown_collecting(self) -> list[Exception]:
        """Tear down like teardown(), returning cleanup failures instead of raising.

        Every dependent is torn down even if an earlier one fails. The
        fixture always leaves the pool's live instances.

        A setup still resolving dependencies is not waited for: it may be
        blocked on a fixture this very teardown is closing. It raises
        FixtureClosedError before its factory runs. A setup whose factory
        is already running is waited for, then released.
        """
        if self._teardown_started:
            await self._closed.wait()
            return []
        self._teardown_started = True
        errors: list[Exception] = []
        try:
            slog.debug("fixture_teardown_started", fixture=self.name, scope=str(self.scope))
            for dependent_name in sorted(self.usages):
                dependent = self._pool.instances.get(dependent_name)
                if dependent is None or not dependent.depends_on(self):
                    continue
                errors.extend(await dependent.teardown_collecting())

            if self._factory_started and not self._settled.is_set():
                await self._settled.wait()

            if self._ready and self._exit_stack is not None:
                try:
                    await self._exit_stack.aclose()
                except Exception as e:
                    slog.error(
                        "fixture_teardown_failed",
                        fixture=self.name,
                        scope=str(self.scope),
                        error_type=type(e).__name__,
                        error=str(e),
                    )
                    errors.append(e)
            slog.debug("fixture_teardown_completed", fixture=self.name, scope=str(self.scope))
        finally:
            self._ready = False
            self._value = None
            self._exit_stack = None
            for dependency in self._dependencies:
                dependency.usages.discard(self.name)
            self._pool.discard(self)
            self._closed.set()
        return errors
