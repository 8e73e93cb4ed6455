"""Ignore pattern engine.

Patterns are collected from ``.deppackignore``, ``.gitignore`` and a set of
built-in defaults, normalized, and evaluated **first match wins**: the
first pattern in list order that matches a path decides the outcome. A
negated pattern (``!foo``) that matches first keeps the path; any other
matching pattern ignores it. This is not gitignore's "last rule wins", so
a negation has to be listed before the broader pattern it refines.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pathspec import PathSpec

from deppack.errors import IgnorePatternError, ValidationError
from deppack.ignore.loader import TOOL_IGNORE_FILE, VCS_IGNORE_FILE, load_ignore_file
from deppack.models import (
    ExcludeFilter,
    IgnoreExplanation,
    IgnoreRule,
    PatternMatch,
    PatternSource,
    PatternValidationResult,
)

logger = logging.getLogger(__name__)

DEFAULT_PATTERNS = ["node_modules/", ".git/", "__pycache__/", ".venv/"]

# Paths crossing one of these directories are always ignored.
VENDOR_DIRS = frozenset({"node_modules", "site-packages"})

_GLOB_CHARS = ("*", "?", "[")

_CompiledRule = tuple[IgnoreRule, PathSpec]


def _compile(pattern: str) -> PathSpec:
    body = pattern[1:] if pattern.startswith("!") else pattern
    if not body.strip():
        raise IgnorePatternError(f"Invalid ignore pattern: {pattern!r} is empty", pattern)
    try:
        spec = PathSpec.from_lines("gitwildmatch", [body])
    except ValueError as e:
        raise IgnorePatternError(f"Invalid ignore pattern syntax: {e}", pattern) from e
    if not spec.patterns or spec.patterns[0].include is None:
        raise IgnorePatternError(
            f"Invalid ignore pattern: {pattern!r} never matches anything", pattern,
        )
    return spec


def _first_match(relative_path: str, compiled: tuple[_CompiledRule, ...]) -> IgnoreRule | None:
    for rule, spec in compiled:
        if spec.match_file(relative_path):
            return rule
    return None


def _crosses_vendor_dir(relative_path: str) -> bool:
    return any(part in VENDOR_DIRS for part in relative_path.split("/"))


def normalize_pattern(pattern: str) -> list[str]:
    """Expand one raw pattern into the pattern(s) actually evaluated.

    ``dir/`` becomes ``dir/`` and ``dir/**``; a bare name becomes ``name``
    and ``**/name``; globs, paths and negations pass through.
    """
    if pattern.startswith("./"):
        pattern = pattern[2:]

    if pattern.startswith("!"):
        return [pattern]
    if pattern.endswith("/"):
        return [pattern, f"{pattern}**"]
    if "/" in pattern or any(ch in pattern for ch in _GLOB_CHARS):
        return [pattern]
    return [pattern, f"**/{pattern}"]


class IgnoreHandler:
    """Loads, normalizes and evaluates exclusion patterns for one project root."""

    def __init__(
        self,
        project_root: str | Path,
        extra_patterns: list[str] | None = None,
        debug: bool = False,
    ):
        if not project_root:
            raise ValidationError("Invalid project root", {"project_root": project_root})
        root = Path(project_root).resolve()
        if not root.is_dir():
            raise ValidationError("Project root does not exist", {"project_root": str(root)})

        self.project_root = root
        self.debug = debug
        self._compiled: list[_CompiledRule] = []

        self._load_ignore_patterns()
        for pattern in extra_patterns or []:
            self.add_pattern(pattern)

    # ── Loading ──────────────────────────────────────────────

    def _load_ignore_patterns(self) -> None:
        tool_lines = load_ignore_file(self.project_root / TOOL_IGNORE_FILE)
        vcs_lines = load_ignore_file(self.project_root / VCS_IGNORE_FILE)

        rules: list[IgnoreRule] = []
        rules.extend(self._process_patterns(tool_lines, PatternSource.TOOL_IGNORE))
        rules.extend(self._process_patterns(vcs_lines, PatternSource.VCS_IGNORE))
        rules.extend(self._process_patterns(DEFAULT_PATTERNS, PatternSource.DEFAULT))

        self._compiled = []
        self._extend(rules)

        if tool_lines:
            logger.info("Loaded %d pattern(s) from %s", len(tool_lines), TOOL_IGNORE_FILE)
        if vcs_lines:
            logger.info("Loaded %d pattern(s) from %s", len(vcs_lines), VCS_IGNORE_FILE)

    def _process_patterns(self, patterns: list[str], source: PatternSource) -> list[IgnoreRule]:
        rules: list[IgnoreRule] = []
        errors: list[str] = []
        for raw in patterns:
            try:
                for pattern in normalize_pattern(self.validate_pattern(raw)):
                    rules.append(IgnoreRule(pattern, source))
            except IgnorePatternError as e:
                errors.append(f"Invalid pattern {raw!r}: {e}")
        if errors:
            raise ValidationError(
                f"Failed to process patterns from {source.value}",
                {"source": source.value, "errors": errors},
            )
        return rules

    def _extend(self, rules: list[IgnoreRule]) -> list[IgnoreRule]:
        """Append rules not already present; returns those actually added."""
        known = {rule.pattern for rule, _ in self._compiled}
        added: list[IgnoreRule] = []
        for rule in rules:
            if rule.pattern in known:
                continue
            known.add(rule.pattern)
            self._compiled.append((rule, _compile(rule.pattern)))
            added.append(rule)
        return added

    # ── Validation ───────────────────────────────────────────

    def validate_pattern(self, pattern: str) -> str:
        """Strip a leading ``./`` and check the syntax; raises IgnorePatternError."""
        if not isinstance(pattern, str):
            raise IgnorePatternError("Invalid ignore pattern", repr(pattern))
        pattern = pattern.strip()
        if pattern.startswith("./"):
            pattern = pattern[2:]
        _compile(pattern)
        return pattern

    def parse_pattern(self, pattern: str) -> PatternValidationResult:
        try:
            return PatternValidationResult(True, normalized_pattern=self.validate_pattern(pattern))
        except IgnorePatternError as e:
            return PatternValidationResult(False, error=str(e))

    def validate_patterns(self, patterns: list[str]) -> list[str]:
        """Validate every pattern, raising once with all failures."""
        valid: list[str] = []
        errors: list[str] = []
        for pattern in patterns:
            result = self.parse_pattern(pattern)
            if result.is_valid and result.normalized_pattern is not None:
                valid.append(result.normalized_pattern)
            else:
                errors.append(f"Invalid pattern {pattern!r}: {result.error}")
        if errors:
            raise ValidationError("Invalid patterns found", {"errors": errors})
        return valid

    # ── Pattern management ───────────────────────────────────

    def get_patterns(self) -> list[str]:
        return [rule.pattern for rule, _ in self._compiled]

    def get_rules(self) -> list[IgnoreRule]:
        return [rule for rule, _ in self._compiled]

    def add_pattern(self, pattern: str, source: PatternSource = PatternSource.AD_HOC) -> None:
        """Append a pattern (and its expansions) after the existing ones."""
        validated = self.validate_pattern(pattern)
        added = self._extend([IgnoreRule(p, source) for p in normalize_pattern(validated)])
        if self.debug:
            for rule in added:
                logger.debug("Added ignore pattern: %s", rule.pattern)

    def remove_pattern(self, pattern: str) -> bool:
        if pattern.startswith("./"):
            pattern = pattern[2:]
        targets = {pattern, *normalize_pattern(pattern)}
        before = len(self._compiled)
        self._compiled = [(r, s) for r, s in self._compiled if r.pattern not in targets]
        removed = len(self._compiled) != before
        if removed and self.debug:
            logger.debug("Removed ignore pattern: %s", pattern)
        return removed

    def reset_patterns(self) -> None:
        self._compiled = []
        self._extend(self._process_patterns(DEFAULT_PATTERNS, PatternSource.DEFAULT))
        if self.debug:
            logger.debug("Reset ignore patterns to defaults")

    # ── Evaluation ───────────────────────────────────────────

    def resolve(self, file_path: str | Path) -> str:
        """Absolute, normalized form of a path given relative to the root."""
        path = Path(file_path)
        if not path.is_absolute():
            path = self.project_root / path
        return os.path.normpath(str(path))

    def relative(self, file_path: str | Path) -> str:
        rel = os.path.relpath(self.resolve(file_path), self.project_root)
        return rel.replace(os.sep, "/")

    def should_ignore(self, file_path: str | Path) -> bool:
        if not file_path:
            raise ValidationError("Empty file path provided")
        return self._evaluate(self.relative(file_path), tuple(self._compiled))

    def _evaluate(self, relative_path: str, compiled: tuple[_CompiledRule, ...]) -> bool:
        if _crosses_vendor_dir(relative_path):
            return True
        rule = _first_match(relative_path, compiled)
        if rule is None:
            return False
        if self.debug:
            verdict = "included by negation" if rule.negated else "ignored"
            logger.debug("%s %s due to pattern %r", relative_path, verdict, rule.pattern)
        return not rule.negated

    def compile_exclude(self) -> ExcludeFilter:
        """Snapshot the current rules into a standalone predicate."""
        compiled = tuple(self._compiled)

        def exclude(file_path: str) -> bool:
            return self._evaluate(self.relative(file_path), compiled)

        return exclude

    def explain(self, file_path: str | Path) -> IgnoreExplanation:
        """Report which patterns match a path and what the final decision is."""
        relative_path = self.relative(file_path)
        report = IgnoreExplanation(
            path=self.resolve(file_path),
            relative_path=relative_path,
            vendor=_crosses_vendor_dir(relative_path),
        )
        for rule, spec in self._compiled:
            report.matches.append(
                PatternMatch(rule.pattern, bool(spec.match_file(relative_path)), rule.source)
            )

        if report.vendor:
            report.ignored = True
        else:
            first = next((m for m in report.matches if m.is_match), None)
            if first is not None:
                report.decided_by = first.pattern
                report.ignored = not first.pattern.startswith("!")

        logger.debug("File: %s (root %s)", relative_path, self.project_root)
        for m in report.matches:
            logger.debug("  %s %s", "+" if m.is_match else "-", m.pattern)
        logger.debug("Final result: %s", "IGNORED" if report.ignored else "INCLUDED")
        return report
