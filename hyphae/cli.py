"""Hyphae CLI - inspect how runtime calls in a project are classified."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from hyphae.cache import ProjectCacheState
from hyphae.config import DetectorConfig
from hyphae.detector import AsyncDetector
from hyphae.output import build_result, write_output
from hyphae.phases.structure import find_project_root


@click.group()
def cli() -> None:
    """Hyphae - Static sync/async classification of runtime API calls."""
    pass


def _configure_logging(verbose: bool, quiet: bool) -> None:
    from rich.logging import RichHandler

    level = logging.DEBUG if verbose else logging.ERROR if quiet else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(show_time=False, show_path=False)],
        force=True,
    )


def _make_config(roots: tuple[str, ...], wrapper: str, **kwargs) -> DetectorConfig:
    config = DetectorConfig(**kwargs)
    if roots:
        config.runtime_roots = tuple(roots)
    if wrapper:
        config.async_wrapper = wrapper
    return config


def _resolve_root(path: str, config: DetectorConfig) -> str:
    root = find_project_root(path, config.manifest_name)
    if root is None:
        raise click.ClickException(f"No {config.manifest_name} found at or above {path}")
    return root


def _scan_with_progress(state: ProjectCacheState, root: str) -> None:
    """Run the scan with Rich progress display and print a summary."""
    from rich.console import Console
    from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
    from rich.table import Table

    console = Console()

    with Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Initialising...", total=None)

        def on_phase(name, label):
            progress.update(task, description=label)

        state.initialize(root, progress_callback=on_phase)

    report = state.report
    table = Table(title=f"Hyphae Scan: {Path(root).name}", show_edge=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Declaration files", str(report.declaration_files))
    table.add_row("Dependency declarations", str(report.dependency_files))
    table.add_row("Source files", str(report.source_files))
    table.add_row("Methods", str(report.methods))
    table.add_row("Async methods", str(sum(1 for _, d in state.registry.methods() if d.is_async)))
    table.add_row("Named types", str(report.named_types))
    table.add_row("Aliases", str(report.aliases))
    table.add_row("Unresolved bindings", str(report.unresolved_bindings))
    table.add_row("Duration", f"{report.duration_ms:.1f}ms")

    console.print(table)

    if state.config.verbose and report.phase_timings:
        timing_table = Table(title="Phase Timings", show_edge=False)
        timing_table.add_column("Phase", style="bold")
        timing_table.add_column("Time (ms)", justify="right")
        for phase, seconds in report.phase_timings.items():
            timing_table.add_row(phase, f"{seconds * 1000:.1f}")
        console.print(timing_table)


@cli.command("scan")
@click.argument("path", type=click.Path(exists=True))
@click.option("-o", "--output", "output_path", default=None, help="Output JSON file path")
@click.option("--root", "roots", multiple=True, help="Runtime root symbol (repeatable)")
@click.option("--wrapper", default="", help="Asynchronous result wrapper type name")
@click.option("--max-depth", default=10, type=int, help="Maximum directory depth")
@click.option("--exclude", multiple=True, help="Additional directory names to skip")
@click.option("--no-dependencies", is_flag=True, help="Do not read node_modules declarations")
@click.option("--manifest", "manifest_name", default="package.json", help="Project manifest file name")
@click.option("--verbose", is_flag=True, help="Debug logging and per-phase timings")
@click.option("--quiet", is_flag=True, help="Suppress all output except errors")
def scan_cmd(
    path: str,
    output_path: str | None,
    roots: tuple[str, ...],
    wrapper: str,
    max_depth: int,
    exclude: tuple[str, ...],
    no_dependencies: bool,
    manifest_name: str,
    verbose: bool,
    quiet: bool,
) -> None:
    """Scan a project and dump its registry and aliases as JSON."""
    _configure_logging(verbose, quiet)
    config = _make_config(
        roots, wrapper,
        max_depth=max_depth,
        exclude_patterns=list(exclude),
        include_dependencies=not no_dependencies,
        manifest_name=manifest_name,
        verbose=verbose,
        quiet=quiet,
    )
    root = _resolve_root(path, config)

    if output_path is None:
        output_path = f"{Path(root).name}.hyphae.json"

    state = ProjectCacheState(config)
    if quiet:
        state.initialize(root)
    else:
        _scan_with_progress(state, root)

    write_output(build_result(state), output_path)

    if not quiet:
        from rich.console import Console
        Console().print(f"[green]Output written to:[/green] {output_path}")


@cli.command("classify")
@click.argument("names", nargs=-1, required=True)
@click.option("-p", "--project", default=".", type=click.Path(exists=True), help="Any path inside the project")
@click.option("--root", "roots", multiple=True, help="Runtime root symbol (repeatable)")
@click.option("--wrapper", default="", help="Asynchronous result wrapper type name")
def classify_cmd(names: tuple[str, ...], project: str, roots: tuple[str, ...], wrapper: str) -> None:
    """Classify runtime call paths or aliases as sync or async."""
    from rich.console import Console
    from rich.markup import escape
    from rich.table import Table

    _configure_logging(False, False)
    detector = AsyncDetector(_make_config(roots, wrapper))

    table = Table(show_edge=False)
    table.add_column("Name", style="bold")
    table.add_column("Resolved")
    table.add_column("Async")
    table.add_column("Source")
    table.add_column("Return type")

    for name in names:
        resolution = detector.resolve(name, project)
        result = detector.classify(name, project)
        table.add_row(
            name,
            resolution.resolved_path,
            "yes" if result.is_async else "no",
            result.source.value,
            escape(result.return_type or ""),
        )
    Console().print(table)


@cli.command("aliases")
@click.argument("path", type=click.Path(exists=True))
@click.option("--root", "roots", multiple=True, help="Runtime root symbol (repeatable)")
def aliases_cmd(path: str, roots: tuple[str, ...]) -> None:
    """List every alias found in a project."""
    from rich.console import Console
    from rich.table import Table

    _configure_logging(False, False)
    config = _make_config(roots, "")
    state = ProjectCacheState(config)
    state.initialize(_resolve_root(path, config))

    table = Table(title=f"Aliases ({len(state.aliases)})", show_edge=False)
    table.add_column("Alias", style="bold")
    table.add_column("Original path")
    table.add_column("Kind")
    table.add_column("Module")
    for name, alias in state.aliases.items():
        table.add_row(name, alias.original_path, alias.kind.value, "yes" if alias.is_module else "")
    Console().print(table)


if __name__ == "__main__":
    cli()
