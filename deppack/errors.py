"""Error types raised by deppack.

Every error carries an :class:`ErrorKind` tag and a structured ``details``
payload so callers can dispatch on ``err.kind`` instead of walking an
exception hierarchy.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any


class ErrorKind(enum.Enum):
    VALIDATION = "validation"
    DEPENDENCY_ANALYSIS = "dependency_analysis"
    CACHE = "cache"
    FILE_SYSTEM = "file_system"


class DepPackError(Exception):
    """Base class for all deppack errors."""

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = dict(details or {})
        self.timestamp = datetime.now().isoformat()

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp,
        }


class ValidationError(DepPackError):
    """Bad input: missing or ignored entry file, bad path, uninitialized service."""
    kind = ErrorKind.VALIDATION


class IgnorePatternError(ValidationError):
    """A malformed ignore pattern, raised when the pattern is registered."""

    def __init__(self, message: str, pattern: str, details: dict[str, Any] | None = None):
        super().__init__(message, {"pattern": pattern, **(details or {})})
        self.pattern = pattern


class DependencyAnalysisError(DepPackError):
    kind = ErrorKind.DEPENDENCY_ANALYSIS

    def __init__(
        self,
        message: str,
        entry_point: str | None = None,
        attempted_entries: list[str] | None = None,
        phase: str = "analyze",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, {
            "entry_point": entry_point,
            "attempted_entries": list(attempted_entries or []),
            "phase": phase,
            **(details or {}),
        })

    @property
    def entry_point(self) -> str | None:
        return self.details.get("entry_point")

    @property
    def attempted_entries(self) -> list[str]:
        return self.details.get("attempted_entries", [])

    @property
    def phase(self) -> str:
        return self.details.get("phase", "analyze")


class CacheError(DepPackError):
    kind = ErrorKind.CACHE

    def __init__(self, message: str, operation: str, key: str | None = None):
        super().__init__(message, {"operation": operation, "key": key})

    @property
    def operation(self) -> str:
        return self.details["operation"]

    @property
    def key(self) -> str | None:
        return self.details.get("key")


class FileSystemError(DepPackError):
    kind = ErrorKind.FILE_SYSTEM

    def __init__(self, message: str, file_path: str, operation: str):
        super().__init__(message, {"file_path": file_path, "operation": operation})

    @property
    def file_path(self) -> str:
        return self.details["file_path"]
