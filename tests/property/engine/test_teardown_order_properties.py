# tests/property/engine/test_teardown_order_properties.py
"""Property tests: lifecycle ordering over random fixture DAGs.

Each generated registry is acyclic by construction (fixture i may only
depend on fixtures 0..i-1) with random scopes, and a test requests a random
subset of fixtures in random order. Whatever the shape, dependencies must be
set up before dependents and torn down after them.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from typing import Any

import networkx as nx
from hypothesis import given, settings
from hypothesis import strategies as st

from fixtura.contracts import Scope
from fixtura.engine.pool import FixturePool


@dataclass(frozen=True)
class Registry:
    scopes: tuple[Scope, ...]
    deps: tuple[tuple[int, ...], ...]
    requested: tuple[int, ...]

    def name(self, index: int) -> str:
        return f"f{index}"


@st.composite
def registries(draw: st.DrawFn) -> Registry:
    size = draw(st.integers(min_value=1, max_value=8))
    scopes = tuple(draw(st.sampled_from([Scope.WORKER, Scope.TEST])) for _ in range(size))
    deps = tuple(tuple(sorted(draw(st.sets(st.integers(min_value=0, max_value=i - 1))))) if i else () for i in range(size))
    requested = tuple(draw(st.permutations(range(size)))[: draw(st.integers(min_value=1, max_value=size))])
    return Registry(scopes=scopes, deps=deps, requested=requested)


def _factory(events: list[tuple[str, str]], name: str) -> Callable[..., AsyncIterator[str]]:
    async def factory(**deps: Any) -> AsyncIterator[str]:
        events.append(("setup", name))
        await asyncio.sleep(0)
        yield name
        await asyncio.sleep(0)
        events.append(("teardown", name))

    return factory


async def _run(registry: Registry) -> tuple[list[tuple[str, str]], FixturePool, set[str]]:
    events: list[tuple[str, str]] = []
    pool = FixturePool()
    for index, scope in enumerate(registry.scopes):
        name = registry.name(index)
        pool.register_fixture(name, scope, _factory(events, name), deps=[registry.name(d) for d in registry.deps[index]])

    requested = [registry.name(i) for i in registry.requested]
    await pool.resolve_parameters_and_run(lambda **values: None, deps=requested)
    await pool.teardown_scope(Scope.TEST)
    survivors = set(pool.instances)
    await pool.teardown_scope(Scope.WORKER)
    return events, pool, survivors


def _graph(registry: Registry) -> nx.DiGraph:
    graph = nx.DiGraph()
    for index, deps in enumerate(registry.deps):
        graph.add_node(registry.name(index))
        for dep in deps:
            graph.add_edge(registry.name(index), registry.name(dep))
    return graph


class TestLifecycleOrderProperties:
    @given(registry=registries())
    @settings(max_examples=100, deadline=None)
    def test_dependencies_outlive_dependents(self, registry: Registry) -> None:
        events, pool, _ = asyncio.run(_run(registry))
        graph = _graph(registry)

        assert dict(pool.instances) == {}
        set_up = [name for event, name in events if event == "setup"]
        torn_down = [name for event, name in events if event == "teardown"]
        assert len(set_up) == len(set(set_up))
        assert sorted(set_up) == sorted(torn_down)

        for dependent, dependency in graph.edges():
            if dependent not in set_up:
                continue
            assert set_up.index(dependency) < set_up.index(dependent)
            assert torn_down.index(dependent) < torn_down.index(dependency)

    @given(registry=registries())
    @settings(max_examples=100, deadline=None)
    def test_test_scope_teardown_spares_independent_worker_fixtures(self, registry: Registry) -> None:
        events, _, survivors = asyncio.run(_run(registry))
        graph = _graph(registry)
        set_up = {name for event, name in events if event == "setup"}

        expected = {
            name
            for name in set_up
            if registry.scopes[int(name[1:])] is Scope.WORKER
            and all(registry.scopes[int(dep[1:])] is Scope.WORKER for dep in nx.descendants(graph, name))
        }
        assert survivors == expected

    @given(registry=registries())
    @settings(max_examples=100, deadline=None)
    def test_only_requested_closure_is_instantiated(self, registry: Registry) -> None:
        events, _, _ = asyncio.run(_run(registry))
        graph = _graph(registry)

        closure: set[str] = set()
        for index in registry.requested:
            name = registry.name(index)
            closure |= {name} | nx.descendants(graph, name)
        assert {name for event, name in events if event == "setup"} == closure
