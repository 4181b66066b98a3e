"""Shared contracts: scopes and the engine's error taxonomy.

Leaf package - no imports from the engine (prevents import cycles).
"""

from fixtura.contracts.enums import Scope
from fixtura.contracts.errors import (
    CyclicDependencyError,
    FixtureClosedError,
    FixtureError,
    FixtureNotReadyError,
    InvalidDeclarationError,
    TeardownError,
    UnknownFixtureError,
)

__all__ = [
    "CyclicDependencyError",
    "FixtureClosedError",
    "FixtureError",
    "FixtureNotReadyError",
    "InvalidDeclarationError",
    "Scope",
    "TeardownError",
    "UnknownFixtureError",
]
