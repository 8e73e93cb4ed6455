"""Python import extractor using AST."""

from __future__ import annotations

import ast
import logging
from pathlib import Path

from deppack.extractor.base import BaseImportExtractor
from deppack.models import ExtractionConfig

logger = logging.getLogger(__name__)


class PythonImportExtractor(BaseImportExtractor):
    extensions = (".py", ".pyi")

    def direct_imports(self, file_path: Path, config: ExtractionConfig) -> list[Path]:
        source = self._read_source(file_path)
        try:
            tree = ast.parse(source, filename=str(file_path))
        except SyntaxError:
            if not config.lenient:
                raise
            logger.debug("Skipping unparsable file: %s", file_path)
            return []

        roots = self._search_roots(Path(config.base_dir).resolve())
        found: list[Path] = []
        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    found.extend(self._resolve_absolute(alias.name, roots))
            elif isinstance(node, ast.ImportFrom):
                found.extend(self._resolve_from(node, file_path, roots))

        unique: list[Path] = []
        for path in found:
            if path != file_path and path not in unique:
                unique.append(path)
        return unique

    @staticmethod
    def _search_roots(base: Path) -> list[Path]:
        roots = [base]
        if (base / "src").is_dir():
            roots.append(base / "src")
        return roots

    def _resolve_absolute(self, module: str, roots: list[Path]) -> list[Path]:
        parts = module.split(".")
        for root in roots:
            path = self._module_file(root.joinpath(*parts))
            if path is not None:
                return [path]
        return []

    def _resolve_from(self, node: ast.ImportFrom, file_path: Path, roots: list[Path]) -> list[Path]:
        if node.level:
            # from . import x / from ..pkg import y
            package_dir = file_path.parent
            for _ in range(node.level - 1):
                package_dir = package_dir.parent
            bases = [package_dir]
        else:
            bases = list(roots)

        module_parts = node.module.split(".") if node.module else []
        for base in bases:
            target = base.joinpath(*module_parts)
            results: list[Path] = []
            attributes = False
            # `from pkg import sub` may name submodules rather than attributes
            for alias in node.names:
                sub = None if alias.name == "*" else self._module_file(target / alias.name)
                if sub is not None:
                    results.append(sub)
                else:
                    attributes = True
            if attributes:
                if module_parts:
                    module_file = self._module_file(target)
                else:
                    init = target / "__init__.py"
                    module_file = init if init.is_file() else None
                if module_file is not None:
                    results.insert(0, module_file)
            if results:
                return results
        return []

    @staticmethod
    def _module_file(target: Path) -> Path | None:
        for candidate in (
            target.with_name(target.name + ".py"),
            target.with_name(target.name + ".pyi"),
            target / "__init__.py",
        ):
            if candidate.is_file():
                return candidate
        return None
