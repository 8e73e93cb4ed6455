"""Abstract base import extractor.

An extractor turns one entry file into the local adjacency map of the
files it reaches: ``{relative_path: [relative_path, ...]}``, every path
relative to ``ExtractionConfig.base_dir``.
"""

from __future__ import annotations

import abc
import asyncio
import os
from collections import deque
from pathlib import Path

from deppack.models import DependencyMap, ExtractionConfig


class BaseImportExtractor(abc.ABC):
    """Base class for language-specific import extractors."""

    extensions: tuple[str, ...] = ()

    @abc.abstractmethod
    def direct_imports(self, file_path: Path, config: ExtractionConfig) -> list[Path]:
        """Return the local files ``file_path`` imports directly.

        Called synchronously from ``extract``: reading and parsing block the
        event loop, which only switches tasks between files.
        """

    async def extract(self, entry: str, config: ExtractionConfig) -> DependencyMap:
        """Walk the import graph reachable from ``entry``."""
        base = Path(config.base_dir).resolve()
        start = (base / entry).resolve() if not Path(entry).is_absolute() else Path(entry)
        if not start.is_file():
            raise FileNotFoundError(f"Entry file not found: {start}")

        graph: DependencyMap = {}
        queue = deque([start])
        seen = {start}
        while queue:
            current = queue.popleft()
            deps: list[str] = []
            for dep in self.direct_imports(current, config):
                if not self._accept(dep, config):
                    continue
                rel = self._relative(dep, base)
                if rel not in deps:
                    deps.append(rel)
                if dep not in seen:
                    seen.add(dep)
                    queue.append(dep)
            graph[self._relative(current, base)] = deps
            # yield between files so sibling extractions interleave
            await asyncio.sleep(0)
        return graph

    def _accept(self, path: Path, config: ExtractionConfig) -> bool:
        if not path.is_file():
            return False
        if config.file_extensions and path.suffix not in config.file_extensions:
            return False
        if not config.follow_symlinks and path.is_symlink():
            return False
        if config.exclude is not None and config.exclude(str(path)):
            return False
        return True

    @staticmethod
    def _relative(path: Path, base: Path) -> str:
        return os.path.relpath(path, base).replace(os.sep, "/")

    def _read_source(self, path: Path) -> str:
        return path.read_text(encoding="utf-8", errors="replace")
