"""deppack: gather the files reachable from a project's entry points."""

from __future__ import annotations

from deppack.analysis import DependencyAnalyzer, DependencyCache, find_cycles, gather
from deppack.errors import (
    CacheError,
    DependencyAnalysisError,
    DepPackError,
    ErrorKind,
    FileSystemError,
    IgnorePatternError,
    ValidationError,
)
from deppack.ignore import IgnoreHandler
from deppack.models import AnalysisResult, AnalyzeOptions, AnalyzerConfig

__version__ = "0.1.0"

__all__ = [
    "AnalysisResult",
    "AnalyzeOptions",
    "AnalyzerConfig",
    "CacheError",
    "DependencyAnalysisError",
    "DependencyAnalyzer",
    "DependencyCache",
    "DepPackError",
    "ErrorKind",
    "FileSystemError",
    "IgnoreHandler",
    "IgnorePatternError",
    "ValidationError",
    "find_cycles",
    "gather",
]
