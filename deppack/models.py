"""Data models for the deppack analysis core."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Callable

# file -> files it directly imports (absolute paths once merged)
DependencyMap = dict[str, list[str]]

# exclude predicate handed to extractors; receives an absolute path
ExcludeFilter = Callable[[str], bool]


class PatternSource(enum.Enum):
    DEFAULT = "default"
    TOOL_IGNORE = "deppackignore"
    VCS_IGNORE = "gitignore"
    AD_HOC = "ad-hoc"


class ProgressPhase(enum.Enum):
    VALIDATION = "validation"
    ANALYSIS = "analysis"
    GATHERING = "gathering"


@dataclass(frozen=True)
class IgnoreRule:
    """A normalized ignore pattern and where it came from."""
    pattern: str
    source: PatternSource = PatternSource.AD_HOC

    @property
    def negated(self) -> bool:
        return self.pattern.startswith("!")


@dataclass
class PatternValidationResult:
    is_valid: bool
    normalized_pattern: str | None = None
    error: str | None = None


@dataclass
class PatternMatch:
    pattern: str
    is_match: bool
    source: PatternSource


@dataclass
class IgnoreExplanation:
    """Per-pattern report for a single path."""
    path: str
    relative_path: str
    vendor: bool
    matches: list[PatternMatch] = field(default_factory=list)
    decided_by: str | None = None
    ignored: bool = False


@dataclass
class ExtractionConfig:
    """Configuration passed to an import extractor for one entry file."""
    base_dir: str
    file_extensions: list[str] = field(default_factory=lambda: [".py"])
    project_config_path: str | None = None
    exclude: ExcludeFilter | None = None
    lenient: bool = True
    follow_symlinks: bool = False


@dataclass
class AnalyzerConfig:
    """Configuration for the dependency analyzer."""
    file_extensions: list[str] = field(default_factory=lambda: [".py"])
    project_config_path: str | None = None
    extra_config_paths: list[str] = field(default_factory=list)
    max_concurrency: int = 4
    lenient_imports: bool = True
    debug: bool = False


@dataclass
class AnalyzeOptions:
    """Per-call options for ``DependencyAnalyzer.analyze``."""
    skip_cache: bool = False
    force: bool = False
    include_ignored: bool = False
    use_working_dir: bool = False
    follow_symlinks: bool = False
    cache_timeout: float | None = None


@dataclass
class AnalysisResult:
    entry_files: list[str]
    dependencies: DependencyMap
    circular_dependencies: list[list[str]] = field(default_factory=list)
    total_files: int = 0
    analysis_time: float = 0.0
    from_cache: bool = False
    warnings: list[str] | None = None


@dataclass
class ProgressEvent:
    phase: ProgressPhase
    completed: int
    total: int
    current_file: str | None = None


@dataclass
class AnalyzerEvent:
    """Notification delivered to analyzer listeners."""
    name: str  # analysis:start | progress | warning | analysis:complete | analysis:error
    payload: dict[str, Any] = field(default_factory=dict)
    progress: ProgressEvent | None = None


@dataclass
class CacheEntry:
    dependencies: DependencyMap
    timestamp: float
    hash: str
    timeout: float


@dataclass
class CacheStats:
    size: int = 0
    hits: int = 0
    misses: int = 0
    oldest_entry: float | None = None
    average_age: float = 0.0
    invalidations: int = 0
    errors: int = 0
