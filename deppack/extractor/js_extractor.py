"""JavaScript/TypeScript import extractor using regex patterns."""

from __future__ import annotations

import os
import re
from pathlib import Path

from deppack.extractor.base import BaseImportExtractor
from deppack.models import ExtractionConfig

_STATIC_RE = re.compile(
    r"""^\s*(?:import|export)\s+(?:type\s+)?(?:[\w*{}\s,$]+?\s+from\s+)?['"]([^'"]+)['"]""",
    re.MULTILINE,
)
_REQUIRE_RE = re.compile(r"""\brequire\s*\(\s*['"]([^'"]+)['"]\s*\)""")
_DYNAMIC_RE = re.compile(r"""\bimport\s*\(\s*['"]([^'"]+)['"]\s*\)""")
_COMMENT_RE = re.compile(r"/\*.*?\*/|^\s*//.*?$", re.DOTALL | re.MULTILINE)


class EcmaImportExtractor(BaseImportExtractor):
    extensions = (".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs")

    def direct_imports(self, file_path: Path, config: ExtractionConfig) -> list[Path]:
        source = _COMMENT_RE.sub("", self._read_source(file_path))
        specifiers: list[str] = []
        for regex in (_STATIC_RE, _REQUIRE_RE, _DYNAMIC_RE):
            specifiers.extend(m.group(1) for m in regex.finditer(source))

        # mixed ES/CommonJS syntax is only honoured in lenient mode
        if not config.lenient and _STATIC_RE.search(source):
            specifiers = [m.group(1) for m in _STATIC_RE.finditer(source)]

        found: list[Path] = []
        for spec in specifiers:
            # bare specifiers point into installed packages
            if not spec.startswith("."):
                continue
            path = self._resolve(file_path.parent / spec, config)
            if path is not None and path not in found:
                found.append(path)
        return found

    def _resolve(self, target: Path, config: ExtractionConfig) -> Path | None:
        target = Path(os.path.normpath(target))
        extensions = config.file_extensions or list(self.extensions)
        if target.is_file():
            return target
        for ext in extensions:
            candidate = target.with_name(target.name + ext)
            if candidate.is_file():
                return candidate
        for ext in extensions:
            candidate = target / f"index{ext}"
            if candidate.is_file():
                return candidate
        return None
