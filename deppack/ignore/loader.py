"""Read newline-delimited ignore files."""

from __future__ import annotations

from pathlib import Path

from deppack.errors import FileSystemError

TOOL_IGNORE_FILE = ".deppackignore"
VCS_IGNORE_FILE = ".gitignore"


def load_ignore_file(path: Path) -> list[str]:
    """Return the pattern lines of an ignore file, or [] when it is absent.

    Blank lines and ``#`` comments are skipped; surrounding whitespace is
    stripped.
    """
    if not path.is_file():
        return []
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise FileSystemError(
            f"Failed to read ignore file: {e}", str(path), "read",
        ) from e

    patterns: list[str] = []
    for line in content.splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            patterns.append(line)
    return patterns
