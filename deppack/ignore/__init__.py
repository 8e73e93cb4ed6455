"""Ignore pattern loading and evaluation."""

from __future__ import annotations

from deppack.ignore.handler import (
    DEFAULT_PATTERNS,
    VENDOR_DIRS,
    IgnoreHandler,
    normalize_pattern,
)
from deppack.ignore.loader import TOOL_IGNORE_FILE, VCS_IGNORE_FILE, load_ignore_file

__all__ = [
    "DEFAULT_PATTERNS",
    "VENDOR_DIRS",
    "IgnoreHandler",
    "normalize_pattern",
    "TOOL_IGNORE_FILE",
    "VCS_IGNORE_FILE",
    "load_ignore_file",
]
