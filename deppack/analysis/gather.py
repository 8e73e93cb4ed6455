"""Depth-bounded reachability gathering."""

from __future__ import annotations

from collections import deque
from typing import Callable

from deppack.models import DependencyMap, ProgressEvent, ProgressPhase

ProgressCallback = Callable[[ProgressEvent], None]


def gather(
    graph: DependencyMap,
    entry_files: list[str],
    max_depth: int | None = None,
    is_ignored: Callable[[str], bool] | None = None,
    progress: ProgressCallback | None = None,
) -> list[str]:
    """BFS from the entry files; returns visited files in discovery order.

    Entry files sit at depth 0. A node at ``depth >= max_depth`` stays in
    the result but its imports are not expanded, so ``max_depth=0`` yields
    just the non-ignored entries and ``None`` the full closure.
    """
    ignored = is_ignored or (lambda _path: False)
    total = len(graph)
    visited: dict[str, None] = {}
    queue: deque[tuple[str, int]] = deque()

    for file in entry_files:
        if not ignored(file) and file not in visited:
            visited[file] = None
            queue.append((file, 0))

    if progress:
        progress(ProgressEvent(ProgressPhase.GATHERING, 0, total))

    processed = 0
    while queue:
        file, depth = queue.popleft()
        processed += 1
        if progress:
            progress(ProgressEvent(ProgressPhase.GATHERING, min(processed, total), total, file))
        if max_depth is not None and depth >= max_depth:
            continue

        for child in graph.get(file, []):
            if child not in visited and not ignored(child):
                visited[child] = None
                queue.append((child, depth + 1))

    return list(visited)
