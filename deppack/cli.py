"""Click CLI with analyze, check-ignore, and patterns subcommands."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

import click

from deppack import __version__
from deppack.analysis import DependencyAnalyzer, DependencyCache
from deppack.errors import DepPackError, ErrorKind
from deppack.ignore import IgnoreHandler
from deppack.models import AnalyzeOptions, AnalyzerConfig, AnalyzerEvent, ProgressPhase

_ROOT_OPTION = click.option(
    "--root", "-r", "root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".", help="Project root directory",
)


def _setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _describe(error: DepPackError) -> str:
    details = error.details
    if error.kind is ErrorKind.VALIDATION:
        lines = [f"Validation failed: {error.message}"]
        for item in details.get("errors", []):
            if isinstance(item, dict):
                lines.append(f"  {item['file']}: {item['error']}")
            else:
                lines.append(f"  {item}")
        if "pattern" in details:
            lines.append(f"  pattern: {details['pattern']!r}")
        return "\n".join(lines)
    if error.kind is ErrorKind.DEPENDENCY_ANALYSIS:
        return (
            f"Dependency analysis failed at {details.get('entry_point')}: {error.message}\n"
            f"  attempted entries: {', '.join(details.get('attempted_entries', []))}"
        )
    if error.kind is ErrorKind.CACHE:
        return f"Cache {details.get('operation')} failed: {error.message}"
    if error.kind is ErrorKind.FILE_SYSTEM:
        return f"Could not {details.get('operation')} {details.get('file_path')}: {error.message}"
    return error.message


def _progress_printer(event: AnalyzerEvent) -> None:
    if event.name != "progress" or event.progress is None:
        return
    p = event.progress
    if p.phase is ProgressPhase.GATHERING:
        return
    if p.total > 0:
        click.echo(f"  {p.phase.value}: {p.completed}/{p.total}", err=True)


@click.group()
@click.version_option(version=__version__)
def cli():
    """deppack: gather the files reachable from your entry points."""


@cli.command()
@click.argument("entries", nargs=-1, required=True)
@_ROOT_OPTION
@click.option("--depth", "-d", type=click.IntRange(min=0), default=None, help="Maximum import depth")
@click.option("--ext", "extensions", multiple=True, help="File extension to follow (repeatable)")
@click.option("--ignore", "-i", "ignore_patterns", multiple=True, help="Extra ignore pattern (repeatable)")
@click.option("--config", "project_config", default=None, help="Project build config path, relative to root")
@click.option("--no-cache", is_flag=True, help="Bypass the result cache")
@click.option("--include-ignored", is_flag=True, help="Keep ignored and vendor files in the graph")
@click.option("--json", "as_json", is_flag=True, help="Emit JSON")
@click.option("--debug", is_flag=True, help="Verbose logging")
def analyze(
    entries: tuple[str, ...],
    root: Path,
    depth: int | None,
    extensions: tuple[str, ...],
    ignore_patterns: tuple[str, ...],
    project_config: str | None,
    no_cache: bool,
    include_ignored: bool,
    as_json: bool,
    debug: bool,
):
    """Analyze ENTRIES and list every file they reach."""
    _setup_logging(debug)
    config = AnalyzerConfig(
        file_extensions=list(extensions) or [".py"],
        project_config_path=project_config,
        debug=debug,
    )
    options = AnalyzeOptions(skip_cache=no_cache, include_ignored=include_ignored)

    cache = DependencyCache(debug=debug)
    cache.initialize()
    analyzer = None
    try:
        ignore_handler = IgnoreHandler(root, extra_patterns=list(ignore_patterns), debug=debug)
        analyzer = DependencyAnalyzer(ignore_handler, cache=cache, config=config)
        analyzer.initialize()
        if not as_json:
            analyzer.add_listener(_progress_printer)

        result = asyncio.run(analyzer.analyze(list(entries), root, options))
        files = analyzer.gather_dependencies(result.dependencies, result.entry_files, depth)
    except DepPackError as e:
        raise click.ClickException(_describe(e))
    finally:
        if analyzer is not None:
            analyzer.cleanup()
        cache.cleanup()

    base = root.resolve()

    def rel(path: str) -> str:
        return Path(path).relative_to(base).as_posix() if Path(path).is_relative_to(base) else path

    if as_json:
        click.echo(json.dumps({
            "entry_files": [rel(f) for f in result.entry_files],
            "files": [rel(f) for f in files],
            "circular_dependencies": [[rel(f) for f in c] for c in result.circular_dependencies],
            "total_files": result.total_files,
            "analysis_time": round(result.analysis_time, 4),
            "warnings": result.warnings or [],
        }, indent=2))
        return

    click.echo(f"\nGathered {len(files)} file(s):\n")
    for f in files:
        click.echo(f"  {rel(f)}")

    if result.circular_dependencies:
        click.echo(click.style(f"\n{len(result.circular_dependencies)} circular dependencies:", fg="yellow"))
        for cycle in result.circular_dependencies:
            click.echo("  " + " -> ".join(rel(f) for f in cycle + cycle[:1]))

    click.echo(
        f"\nSummary: {result.total_files} file(s) in graph, "
        f"{len(files)} gathered, {result.analysis_time:.3f}s"
    )


@cli.command("check-ignore")
@click.argument("paths", nargs=-1, required=True)
@_ROOT_OPTION
@click.option("--verbose", "-v", is_flag=True, help="Show every pattern tested")
def check_ignore(paths: tuple[str, ...], root: Path, verbose: bool):
    """Report whether each of PATHS is ignored."""
    try:
        handler = IgnoreHandler(root)
    except DepPackError as e:
        raise click.ClickException(_describe(e))

    for path in paths:
        report = handler.explain(path)
        verdict = click.style("IGNORED", fg="red") if report.ignored else click.style("INCLUDED", fg="green")
        reason = ""
        if report.vendor:
            reason = " (vendor directory)"
        elif report.decided_by:
            reason = f" (pattern {report.decided_by!r})"
        click.echo(f"{report.relative_path}: {verdict}{reason}")
        if verbose:
            for m in report.matches:
                mark = "+" if m.is_match else "-"
                click.echo(f"    {mark} {m.pattern}  [{m.source.value}]")


@cli.command()
@_ROOT_OPTION
def patterns(root: Path):
    """List the effective ignore patterns in evaluation order."""
    try:
        handler = IgnoreHandler(root)
    except DepPackError as e:
        raise click.ClickException(_describe(e))

    for i, rule in enumerate(handler.get_rules(), 1):
        click.echo(f"{i:>4}  {rule.pattern:<40} {click.style(rule.source.value, dim=True)}")


if __name__ == "__main__":
    cli()
