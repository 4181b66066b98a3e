"""FixtureSession: the surface a host test runner drives.

One session per worker process. The runner registers fixtures (directly or
through plugins), calls run_test() for every test, and close() once at the
end:

    async with FixtureSession() as session:
        session.load_plugins(manager)
        for test in tests:
            await session.run_test(test)
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any, TypeVar, overload

import structlog

from fixtura.contracts import Scope, TeardownError
from fixtura.core.config import EngineSettings, FixturaSettings
from fixtura.engine.fixture import raise_collected
from fixtura.engine.pool import FixturePool

if TYPE_CHECKING:
    from fixtura.plugins.manager import FixturePluginManager

F = TypeVar("F", bound=Callable[..., Any])

slog = structlog.get_logger(__name__)


class FixtureSession:
    """Explicitly constructed owner of a FixturePool for one worker."""

    def __init__(
        self,
        pool: FixturePool | None = None,
        *,
        settings: FixturaSettings | EngineSettings | None = None,
    ) -> None:
        if pool is not None and settings is not None:
            raise ValueError("Pass either a pool or settings, not both")
        if pool is None:
            engine_settings = settings.engine if isinstance(settings, FixturaSettings) else settings
            pool = FixturePool(engine_settings)
        self.pool = pool
        self._closed = False

    async def __aenter__(self) -> FixtureSession:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def register_fixture(self, name: str, factory: Callable[..., Any], *, deps: Iterable[str] | None = None) -> None:
        """Register a fixture that lives for one test."""
        self.pool.register_fixture(name, Scope.TEST, factory, deps=deps)

    def register_worker_fixture(self, name: str, factory: Callable[..., Any], *, deps: Iterable[str] | None = None) -> None:
        """Register a fixture that lives for the whole worker."""
        self.pool.register_fixture(name, Scope.WORKER, factory, deps=deps)

    @overload
    def fixture(self, fn: F) -> F: ...

    @overload
    def fixture(self, fn: None = None, *, name: str | None = None, deps: Iterable[str] | None = None) -> Callable[[F], F]: ...

    def fixture(self, fn: F | None = None, *, name: str | None = None, deps: Iterable[str] | None = None) -> F | Callable[[F], F]:
        """Decorator form of register_fixture; the name defaults to the function name."""
        return self._decorate(Scope.TEST, fn, name=name, deps=deps)

    @overload
    def worker_fixture(self, fn: F) -> F: ...

    @overload
    def worker_fixture(self, fn: None = None, *, name: str | None = None, deps: Iterable[str] | None = None) -> Callable[[F], F]: ...

    def worker_fixture(self, fn: F | None = None, *, name: str | None = None, deps: Iterable[str] | None = None) -> F | Callable[[F], F]:
        """Decorator form of register_worker_fixture."""
        return self._decorate(Scope.WORKER, fn, name=name, deps=deps)

    def _decorate(
        self,
        scope: Scope,
        fn: F | None,
        *,
        name: str | None,
        deps: Iterable[str] | None,
    ) -> F | Callable[[F], F]:
        def decorator(factory: F) -> F:
            self.pool.register_fixture(name or factory.__name__, scope, factory, deps=deps)
            return factory

        if fn is not None:
            return decorator(fn)
        return decorator

    def load_plugins(self, manager: FixturePluginManager) -> None:
        """Let every plugin known to ``manager`` register its fixtures here."""
        manager.apply(self)

    async def run_before_each(self, fn: Callable[..., Any], *, deps: Iterable[str] | None = None) -> Any:
        """Run a per-test hook with its fixtures; test-scoped ones stay up for the test."""
        return await self.pool.resolve_parameters_and_run(fn, deps=deps)

    async def run_test(self, fn: Callable[..., Any], *, deps: Iterable[str] | None = None) -> Any:
        """Run a test body, then tear down the test scope whatever the outcome.

        When the test and the teardown both fail, the test's exception is
        the one raised; the teardown failure is attached to it as a note.
        """
        try:
            result = await self.pool.resolve_parameters_and_run(fn, deps=deps)
        except BaseException as test_error:
            try:
                await self.pool.teardown_scope(Scope.TEST)
            except Exception as teardown_error:
                slog.error(
                    "test_scope_teardown_failed",
                    test=getattr(fn, "__qualname__", repr(fn)),
                    error_type=type(teardown_error).__name__,
                    error=str(teardown_error),
                )
                test_error.add_note(f"Test fixture teardown also failed: {teardown_error!r}")
            raise
        await self.pool.teardown_scope(Scope.TEST)
        return result

    async def close(self) -> None:
        """Tear down everything still live. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        errors: list[Exception] = []
        for scope in (Scope.TEST, Scope.WORKER):
            try:
                await self.pool.teardown_scope(scope)
            except Exception as e:
                errors.extend(_flatten(e))
        raise_collected(errors, f"{len(errors)} fixture teardowns failed while closing the session")


def _flatten(error: Exception) -> list[Exception]:
    if isinstance(error, TeardownError):
        return list(error.exceptions)
    return [error]
