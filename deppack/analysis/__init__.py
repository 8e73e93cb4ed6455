"""Dependency analysis: graph building, cycles, gathering and caching."""

from __future__ import annotations

from deppack.analysis.cache import DEFAULT_TIMEOUT, DependencyCache, compute_hash
from deppack.analysis.cycles import find_cycles
from deppack.analysis.dependency_graph import DependencyAnalyzer, working_directory
from deppack.analysis.gather import gather

__all__ = [
    "DEFAULT_TIMEOUT",
    "DependencyAnalyzer",
    "DependencyCache",
    "compute_hash",
    "find_cycles",
    "gather",
    "working_directory",
]
