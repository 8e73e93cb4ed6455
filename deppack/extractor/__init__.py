"""Extractor registry."""

from __future__ import annotations

from deppack.errors import ValidationError
from deppack.extractor.base import BaseImportExtractor
from deppack.extractor.js_extractor import EcmaImportExtractor
from deppack.extractor.python_extractor import PythonImportExtractor

_EXTRACTORS: list[BaseImportExtractor] = [
    PythonImportExtractor(),
    EcmaImportExtractor(),
]


def get_extractor(file_extensions: list[str]) -> BaseImportExtractor:
    """Pick the extractor covering the configured file extensions."""
    wanted = {ext if ext.startswith(".") else f".{ext}" for ext in file_extensions}
    for extractor in _EXTRACTORS:
        if wanted & set(extractor.extensions):
            return extractor
    raise ValidationError(
        "No import extractor supports the configured extensions",
        {"file_extensions": sorted(wanted)},
    )


__all__ = [
    "BaseImportExtractor",
    "EcmaImportExtractor",
    "PythonImportExtractor",
    "get_extractor",
]
