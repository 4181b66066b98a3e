"""Dependency declarations for fixture factories and test functions.

Dependencies are declared explicitly rather than read from parameter names,
so renaming a parameter can never silently change what gets injected:

    @uses("browser", "server")
    async def page(browser, server):
        ...

The declared names are passed to the function as keyword arguments.
"""

from collections.abc import Callable
from typing import Any, TypeVar

from fixtura.contracts import InvalidDeclarationError

F = TypeVar("F", bound=Callable[..., Any])

DEPS_ATTRIBUTE = "__fixtura_deps__"


def validate_names(names: tuple[str, ...], *, owner: str) -> tuple[str, ...]:
    """Check a dependency list is usable as keyword arguments.

    Raises:
        InvalidDeclarationError: On non-identifier or duplicate names
    """
    seen: set[str] = set()
    for name in names:
        if not isinstance(name, str) or not name.isidentifier():
            raise InvalidDeclarationError(f"{owner}: dependency {name!r} is not a valid identifier")
        if name in seen:
            raise InvalidDeclarationError(f"{owner}: dependency {name!r} declared more than once")
        seen.add(name)
    return names


def uses(*names: str) -> Callable[[F], F]:
    """Declare the fixtures a factory or test function needs, in order."""
    declared = validate_names(names, owner="@uses")

    def decorator(fn: F) -> F:
        setattr(fn, DEPS_ATTRIBUTE, declared)
        return fn

    return decorator


def fixture_dependencies(fn: Callable[..., Any]) -> tuple[str, ...]:
    """Return the fixture names ``fn`` declared with @uses, or () if none."""
    deps: tuple[str, ...] = getattr(fn, DEPS_ATTRIBUTE, ())
    return deps
