# src/fixtura/core/graph.py
"""DependencyGraph: networkx view over fixture registrations.

Edges point from a fixture to each fixture it depends on. The pool uses it
for fail-fast cycle detection before instantiating anything; the CLI uses
it for whole-registry validation and for printing setup order.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import networkx as nx
from networkx import DiGraph

from fixtura.contracts import CyclicDependencyError, Scope, UnknownFixtureError


class DependencyGraph:
    """Directed graph of fixture name -> dependency name.

    Wraps NetworkX DiGraph with fixture-specific queries. Nodes for names
    that are referenced but never registered are kept with ``registered``
    set to False so validation can report them.
    """

    def __init__(self) -> None:
        self._graph: DiGraph[str] = nx.DiGraph()

    @classmethod
    def from_registrations(cls, registrations: Iterable[tuple[str, Scope, Sequence[str]]]) -> DependencyGraph:
        """Build a graph from ``(name, scope, deps)`` triples."""
        graph = cls()
        for name, scope, deps in registrations:
            graph.add_fixture(name, scope=scope, deps=deps)
        return graph

    @property
    def node_count(self) -> int:
        return self._graph.number_of_nodes()

    def add_fixture(self, name: str, *, scope: Scope, deps: Sequence[str]) -> None:
        """Add a registered fixture and its dependency edges."""
        self._graph.add_node(name, scope=scope, registered=True, deps=tuple(deps))
        for dep in deps:
            if not self._graph.has_node(dep):
                self._graph.add_node(dep, registered=False)
            self._graph.add_edge(name, dep)

    def has_fixture(self, name: str) -> bool:
        return self._graph.has_node(name) and bool(self._graph.nodes[name]["registered"])

    def scope_of(self, name: str) -> Scope:
        return Scope(self._graph.nodes[name]["scope"])

    def dependencies(self, name: str) -> tuple[str, ...]:
        """Declared dependencies of a registered fixture, in declaration order."""
        deps: tuple[str, ...] = self._graph.nodes[name]["deps"]
        return deps

    def find_cycle(self, source: str | None = None) -> list[str] | None:
        """Return a dependency cycle, or None if there is none.

        Args:
            source: Restrict the search to fixtures reachable from this name.

        Returns:
            Names along the cycle with the first name repeated at the end.
        """
        if source is not None and not self._graph.has_node(source):
            return None
        try:
            edges = nx.find_cycle(self._graph, source=source)
        except nx.NetworkXNoCycle:
            return None
        cycle = [edge[0] for edge in edges]
        cycle.append(cycle[0])
        return cycle

    def check_acyclic(self, source: str | None = None) -> None:
        """Raise CyclicDependencyError if a cycle is reachable from ``source``."""
        cycle = self.find_cycle(source)
        if cycle is not None:
            raise CyclicDependencyError(cycle)

    def missing_dependencies(self) -> list[tuple[str, str]]:
        """Return ``(fixture, missing_dep)`` pairs for unregistered names."""
        missing = []
        for name, dep in self._graph.edges():
            if not self._graph.nodes[dep]["registered"]:
                missing.append((name, dep))
        return sorted(missing)

    def validate(self) -> None:
        """Validate the whole registry.

        Raises:
            UnknownFixtureError: If any fixture depends on an unregistered name
            CyclicDependencyError: If any dependency cycle exists
        """
        missing = self.missing_dependencies()
        if missing:
            name, dep = missing[0]
            registered = [n for n, registered in self._graph.nodes(data="registered") if registered]
            raise UnknownFixtureError(dep, requested_by=name, known=registered)
        self.check_acyclic()

    def setup_order(self) -> list[str]:
        """Registered fixtures ordered so each follows all its dependencies.

        Ties are broken alphabetically so the order is stable across runs.

        Raises:
            CyclicDependencyError: If the graph has a cycle
        """
        self.check_acyclic()
        # Edges point at dependencies; reverse so dependencies come first
        order = nx.lexicographical_topological_sort(self._graph.reverse(copy=False))
        return [name for name in order if self._graph.nodes[name]["registered"]]
