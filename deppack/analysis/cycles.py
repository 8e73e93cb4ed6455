"""Circular dependency detection over a merged dependency map."""

from __future__ import annotations

import logging
from typing import Iterator

from deppack.models import DependencyMap

logger = logging.getLogger(__name__)


def find_cycles(graph: DependencyMap) -> list[list[str]]:
    """Detect import cycles using DFS from every node of the graph.

    A cycle is the path suffix from the first occurrence of the node that
    closed the loop, e.g. ``[a, b, c]`` for ``a -> b -> c -> a``. Cycles
    are deduplicated by exact ordered sequence only, so the same loop
    entered at a different node is reported again.
    """
    cycles: list[list[str]] = []
    visited: set[str] = set()
    rec_stack: set[str] = set()
    path: list[str] = []

    def enter(node: str) -> Iterator[str]:
        visited.add(node)
        rec_stack.add(node)
        path.append(node)
        return iter(graph.get(node, []))

    for root in graph:
        if root in visited:
            continue
        # explicit (node, remaining deps) frames; import chains can exceed the recursion limit
        stack = [(root, enter(root))]
        while stack:
            node, deps = stack[-1]
            dep = next(deps, None)
            if dep is None:
                stack.pop()
                path.pop()
                rec_stack.discard(node)
            elif dep not in visited:
                stack.append((dep, enter(dep)))
            elif dep in rec_stack:
                cycle = path[path.index(dep):]
                if cycle not in cycles:
                    cycles.append(cycle)
                    logger.warning("Found circular dependency: %s", " -> ".join(cycle + [dep]))

    return cycles
