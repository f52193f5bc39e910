"""Ordering graph builder.

Turns before/after constraints into a directed graph (edge A -> B means A
runs before B) and produces a total order over every catalog module:

  - every constraint is respected;
  - among ready modules the lowest `priority` wins, then the earliest
    declared (stable, no dependence on set iteration order);
  - constraints naming modules absent from the catalog are ignored;
  - a cycle is fatal and reported with the identities on it.

Runs before any condition is evaluated.
"""
from __future__ import annotations

import heapq
import logging
from typing import Dict, Iterable, List, Sequence, Set

from activation import metrics
from activation.errors import OrderingCycleError
from activation.model import Module, index_modules

logger = logging.getLogger("activation.ordering")


def build_ordering_graph(modules: Iterable[Module]) -> Dict[str, Set[str]]:
    index = index_modules(modules)
    graph: Dict[str, Set[str]] = {name: set() for name in index}
    ignored = 0
    for module in index.values():
        for target in module.before:
            if target in index:
                graph[module.name].add(target)
            else:
                ignored += 1
                logger.debug(
                    "ignoring %s before %s: not in catalog",
                    module.name,
                    target,
                )
        for source in module.after:
            if source in index:
                graph[source].add(module.name)
            else:
                ignored += 1
                logger.debug(
                    "ignoring %s after %s: not in catalog",
                    module.name,
                    source,
                )
    metrics.inc_ignored_constraint(ignored)
    return graph


def detect_cycles(
    graph: Dict[str, Set[str]], order: Sequence[str] | None = None
) -> List[List[str]]:
    """Return cycles found by depth-first search.

    `order` fixes the visiting order of roots and successors so the result
    is deterministic; defaults to sorted node names.
    """
    nodes = list(order) if order is not None else sorted(graph)
    rank = {name: i for i, name in enumerate(nodes)}

    def successors(node: str) -> List[str]:
        return sorted(
            (n for n in graph.get(node, ()) if n in rank), key=rank.__getitem__
        )

    visited: Set[str] = set()
    on_path: Set[str] = set()
    cycles: List[List[str]] = []
    for root in nodes:
        if root in visited:
            continue
        path: List[str] = [root]
        stack = [iter(successors(root))]
        visited.add(root)
        on_path.add(root)
        while stack:
            nxt = next(stack[-1], None)
            if nxt is None:
                stack.pop()
                on_path.discard(path.pop())
                continue
            if nxt in on_path:
                cycles.append(path[path.index(nxt):])
                continue
            if nxt in visited:
                continue
            visited.add(nxt)
            on_path.add(nxt)
            path.append(nxt)
            stack.append(iter(successors(nxt)))
    return cycles


def resolve_order(modules: Iterable[Module]) -> List[Module]:
    index = index_modules(modules)
    position = {name: i for i, name in enumerate(index)}
    graph = build_ordering_graph(index.values())
    indegree = {name: 0 for name in index}
    for targets in graph.values():
        for target in targets:
            indegree[target] += 1
    ready = [
        (index[name].priority, position[name], name)
        for name, deg in indegree.items()
        if deg == 0
    ]
    heapq.heapify(ready)
    ordered: List[Module] = []
    while ready:
        _, _, name = heapq.heappop(ready)
        ordered.append(index[name])
        for target in graph[name]:
            indegree[target] -= 1
            if indegree[target] == 0:
                heapq.heappush(
                    ready, (index[target].priority, position[target], target)
                )
    if len(ordered) < len(index):
        remaining = [name for name in index if indegree[name] > 0]
        stuck = set(remaining)
        sub = {name: graph[name] & stuck for name in remaining}
        cycles = detect_cycles(sub, remaining)
        cycle = cycles[0] if cycles else remaining
        logger.error("ordering cycle among modules: %s", ", ".join(cycle))
        raise OrderingCycleError(cycle)
    return ordered


__all__ = ["build_ordering_graph", "detect_cycles", "resolve_order"]
