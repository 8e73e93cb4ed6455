"""Dependency analyzer: validates entries, fans out import extraction,
merges and filters the per-entry maps, detects cycles, caches results."""

from __future__ import annotations

import asyncio
import contextlib
import hashlib
import json
import logging
import os
import time
from pathlib import Path
from typing import Callable, Iterator

from deppack.analysis.cache import DependencyCache
from deppack.analysis.cycles import find_cycles
from deppack.analysis.gather import gather
from deppack.errors import DepPackError, DependencyAnalysisError, ValidationError
from deppack.extractor import BaseImportExtractor, get_extractor
from deppack.ignore import IgnoreHandler
from deppack.models import (
    AnalysisResult,
    AnalyzeOptions,
    AnalyzerConfig,
    AnalyzerEvent,
    DependencyMap,
    ExtractionConfig,
    ProgressEvent,
    ProgressPhase,
)

logger = logging.getLogger(__name__)

Listener = Callable[[AnalyzerEvent], None]

_active_working_dir: list[str] = []


@contextlib.contextmanager
def working_directory(path: str | Path) -> Iterator[None]:
    """chdir into ``path`` for the duration of the block, restoring on exit.

    Not reentrant: the working directory is process-wide, so a second
    concurrent or nested use raises ValidationError.
    """
    if _active_working_dir:
        raise ValidationError(
            "Working directory is already held by another analysis",
            {"held": _active_working_dir[0], "requested": str(path)},
        )
    original = os.getcwd()
    _active_working_dir.append(str(path))
    try:
        os.chdir(path)
        logger.debug("Changed working directory to: %s", path)
        yield
    finally:
        os.chdir(original)
        _active_working_dir.clear()
        logger.debug("Restored working directory to: %s", original)


class DependencyAnalyzer:
    """Build project-wide dependency maps from one or more entry files.

    Args:
        ignore_handler: Ignore rules for the project root.
        cache: Optional result cache; must be initialized by its owner.
        extractor: Import extractor; picked from ``config.file_extensions``
            when omitted.
        config: Analyzer configuration.
    """

    def __init__(
        self,
        ignore_handler: IgnoreHandler,
        cache: DependencyCache | None = None,
        extractor: BaseImportExtractor | None = None,
        config: AnalyzerConfig | None = None,
    ):
        self.ignore_handler = ignore_handler
        self.cache = cache
        self.config = config or AnalyzerConfig()
        self.file_extensions = [
            ext if ext.startswith(".") else f".{ext}" for ext in self.config.file_extensions
        ]
        self.extractor = extractor or get_extractor(self.file_extensions)
        self.is_initialized = False
        self._listeners: list[Listener] = []

    # ── Lifecycle ────────────────────────────────────────────

    def initialize(self) -> None:
        if self.is_initialized:
            self._debug("DependencyAnalyzer already initialized")
            return
        for config_path in self._config_paths():
            if not (self.ignore_handler.project_root / config_path).exists():
                logger.warning("Project config not found at: %s", config_path)
        self.is_initialized = True
        self._debug("DependencyAnalyzer initialization complete")

    def cleanup(self) -> None:
        self._listeners.clear()
        self.is_initialized = False

    def _require_initialized(self) -> None:
        if not self.is_initialized:
            raise ValidationError("DependencyAnalyzer not initialized")

    def _config_paths(self) -> list[str]:
        paths = [self.config.project_config_path] if self.config.project_config_path else []
        return paths + list(self.config.extra_config_paths)

    # ── Events ───────────────────────────────────────────────

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, name: str, progress: ProgressEvent | None = None, **payload) -> None:
        event = AnalyzerEvent(name=name, payload=payload, progress=progress)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Error in analyzer listener for %s", name)

    def _progress(self, event: ProgressEvent) -> None:
        self._emit("progress", progress=event)

    def _debug(self, message: str, *args) -> None:
        if self.config.debug:
            logger.debug(message, *args)

    # ── Validation ───────────────────────────────────────────

    async def validate_entry_files(
        self,
        entry_files: list[str],
        root_dir: str | Path,
        options: AnalyzeOptions | None = None,
    ) -> list[str]:
        """Resolve entry files; raises one ValidationError listing every failure."""
        self._require_initialized()
        options = options or AnalyzeOptions()
        root = Path(root_dir).resolve()
        if not entry_files:
            raise ValidationError("No entry files provided", {"root": str(root)})

        valid: list[str] = []
        errors: list[dict[str, str]] = []
        total = len(entry_files)
        self._progress(ProgressEvent(ProgressPhase.VALIDATION, 0, total))

        for file in entry_files:
            resolved = os.path.normpath(os.path.join(root, file.strip()))
            error = None
            if os.path.relpath(resolved, root).startswith(".."):
                error = "Entry file is outside the project root"
            elif not os.path.isfile(resolved):
                error = "Entry file not found"
            elif not options.include_ignored and self.ignore_handler.should_ignore(resolved):
                error = "Entry file is ignored"

            if error is not None:
                errors.append({"file": file, "error": error})
                self._emit("warning", message=f"Failed to validate file: {file}", file=file)
                continue

            valid.append(resolved)
            self._debug("Validated entry file: %s", resolved)
            self._progress(ProgressEvent(ProgressPhase.VALIDATION, len(valid), total, file))

        if errors:
            err = ValidationError("Entry file validation failed", {
                "errors": errors,
                "invalid_files": [e["file"] for e in errors],
                "ignore_patterns": self.ignore_handler.get_patterns(),
            })
            logger.error("%s: %s", err.message, ", ".join(e["file"] for e in errors))
            self._emit("analysis:error", error=err, phase="validate")
            raise err
        return valid

    # ── Analysis ─────────────────────────────────────────────

    async def analyze(
        self,
        entry_files: str | list[str],
        project_root: str | Path,
        options: AnalyzeOptions | None = None,
    ) -> AnalysisResult:
        self._require_initialized()
        options = options or AnalyzeOptions()
        files = [entry_files] if isinstance(entry_files, str) else list(entry_files)
        root = Path(project_root).resolve()

        scope = working_directory(root) if options.use_working_dir else contextlib.nullcontext()
        with scope:
            return await self._analyze(files, root, options)

    async def _analyze(self, files: list[str], root: Path, options: AnalyzeOptions) -> AnalysisResult:
        start = time.perf_counter()
        self._emit("analysis:start", entry_files=files)

        valid = await self.validate_entry_files(files, root, options)
        relative_files = [os.path.relpath(f, root).replace(os.sep, "/") for f in valid]
        self._debug("Analyzing dependencies for: %s", ", ".join(relative_files))

        use_cache = self.cache is not None and not options.skip_cache
        key = self.cache_key(relative_files, root, options.include_ignored) if use_cache else None
        if use_cache:
            cached = self.cache.get(key, timeout=options.cache_timeout)
            if cached is not None:
                self._debug("Returned cached dependency analysis")
                return self._finish(valid, cached, start, from_cache=True)

        config = ExtractionConfig(
            base_dir=str(root),
            file_extensions=list(self.file_extensions),
            project_config_path=self.config.project_config_path,
            exclude=None if options.include_ignored else self.ignore_handler.compile_exclude(),
            lenient=self.config.lenient_imports,
            follow_symlinks=options.follow_symlinks,
        )
        maps = await self._extract_all(relative_files, config, files)
        dependencies = self._merge(maps, root, options)

        if use_cache:
            self.cache.set(key, dependencies, force=options.force, timeout=options.cache_timeout)

        return self._finish(valid, dependencies, start)

    async def _extract_all(
        self,
        relative_files: list[str],
        config: ExtractionConfig,
        attempted: list[str],
    ) -> list[DependencyMap]:
        total = len(relative_files)
        completed = 0
        semaphore = asyncio.Semaphore(max(1, self.config.max_concurrency))
        self._progress(ProgressEvent(ProgressPhase.ANALYSIS, 0, total))

        async def extract_one(entry: str) -> DependencyMap:
            nonlocal completed
            self._debug("Processing dependencies for: %s", entry)
            async with semaphore:
                try:
                    result = await self.extractor.extract(entry, config)
                except Exception as e:
                    raise DependencyAnalysisError(
                        f"Dependency analysis failed for {entry}: {e}",
                        entry_point=entry,
                        attempted_entries=attempted,
                    ) from e
            completed += 1
            self._progress(ProgressEvent(ProgressPhase.ANALYSIS, completed, total, entry))
            return result

        results = await asyncio.gather(
            *(extract_one(entry) for entry in relative_files),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                self._fail(result)
        return results

    def _fail(self, error: BaseException) -> None:
        if not isinstance(error, DepPackError):
            raise error
        logger.error(error.message)
        self._emit("analysis:error", error=error, phase="analyze")
        raise error

    def _merge(self, maps: list[DependencyMap], root: Path, options: AnalyzeOptions) -> DependencyMap:
        """Union the per-entry maps into absolute paths, dropping ignored files."""
        def keep(path: str) -> bool:
            return options.include_ignored or not self.ignore_handler.should_ignore(path)

        merged: DependencyMap = {}
        for deps in maps:
            for file, file_deps in deps.items():
                abs_file = os.path.normpath(os.path.join(root, file))
                if not keep(abs_file):
                    continue
                targets = merged.setdefault(abs_file, [])
                for dep in file_deps:
                    abs_dep = os.path.normpath(os.path.join(root, dep))
                    if abs_dep not in targets and keep(abs_dep):
                        targets.append(abs_dep)
        return merged

    def _finish(
        self,
        entry_files: list[str],
        dependencies: DependencyMap,
        start: float,
        from_cache: bool = False,
    ) -> AnalysisResult:
        cycles = self.find_cycles(dependencies)
        files = set(dependencies)
        for deps in dependencies.values():
            files.update(deps)

        result = AnalysisResult(
            entry_files=entry_files,
            dependencies=dependencies,
            circular_dependencies=cycles,
            total_files=len(files),
            analysis_time=time.perf_counter() - start,
            from_cache=from_cache,
            warnings=[f"Found {len(cycles)} circular dependencies"] if cycles else None,
        )
        self._emit("analysis:complete", result=result)
        logger.info(
            "Analysis complete: %d files, %d circular dependencies, %.3fs%s",
            result.total_files, len(cycles), result.analysis_time,
            " (cached)" if from_cache else "",
        )
        return result

    # ── Cycles / gathering ───────────────────────────────────

    def find_cycles(self, dependencies: DependencyMap) -> list[list[str]]:
        cycles = find_cycles(dependencies)
        for cycle in cycles:
            self._emit(
                "warning",
                message=f"Found circular dependency: {' -> '.join(cycle + cycle[:1])}",
                cycle=cycle,
            )
        return cycles

    def gather_dependencies(
        self,
        dependencies: DependencyMap,
        entry_files: list[str],
        max_depth: int | None = None,
    ) -> list[str]:
        """Files reachable from ``entry_files`` within ``max_depth`` hops."""
        self._require_initialized()
        self._debug(
            "Gathering dependencies with max depth: %s",
            max_depth if max_depth is not None else "unlimited",
        )
        entries = [self.ignore_handler.resolve(f) for f in entry_files]
        result = gather(
            dependencies,
            entries,
            max_depth=max_depth,
            is_ignored=self.ignore_handler.should_ignore,
            progress=self._progress,
        )
        self._debug("Gathered %d total dependencies", len(result))
        return result

    # ── Cache key ────────────────────────────────────────────

    def cache_key(
        self,
        relative_files: list[str],
        project_root: str | Path,
        include_ignored: bool = False,
    ) -> str:
        """Fingerprint of the inputs that shape a merged map, ignore rules included."""
        content = json.dumps({
            "files": sorted(relative_files),
            "root": str(project_root),
            "extensions": self.file_extensions,
            "config": self._config_paths(),
            "include_ignored": include_ignored,
            "patterns": [] if include_ignored else self.ignore_handler.get_patterns(),
        }, sort_keys=True)
        return hashlib.md5(content.encode()).hexdigest()
