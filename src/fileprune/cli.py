"""FilePrune CLI - Unused file detection for TypeScript and JavaScript projects."""

import dataclasses
import logging
import time
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from fileprune import __version__
from fileprune.analysis.engine import Analyzer
from fileprune.config import build_analysis_config, default_config, load_used_files, save_config
from fileprune.errors import AnalysisAbortedError, FilePruneError
from fileprune.models.config import InclusionPolicy
from fileprune.output.json_writer import load_results, write_results
from fileprune.output.tree import build_references_tree, build_results_tree, display_tree
from fileprune.paths import ensure_fileprune_dir, get_config_path, get_results_path

app = typer.Typer(
    name="fileprune",
    help="Find source files that nothing reachable from your entry points uses",
    no_args_is_help=False,
    rich_markup_mode="rich",
)
console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger("fileprune")


def version_callback(value: bool) -> None:
    if value:
        console.print(f"fileprune version {__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Find source files that nothing reachable from your entry points uses."""
    if ctx.invoked_subcommand is None:
        # Default to run command
        run_analysis(Path("."))


@app.command()
def run(
    path: Path = typer.Argument(
        Path("."),
        help="Root of the project to analyze",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to fileprune.toml or config.json",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Path for results JSON output (default: .fileprune/results.json)",
    ),
    entry: Optional[list[Path]] = typer.Option(
        None,
        "--entry",
        "-e",
        help="Entry point file, relative to the project root (repeatable)",
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Only runtime references keep a file alive",
    ),
    follow_type_only: Optional[bool] = typer.Option(
        None,
        "--follow-type-only/--no-follow-type-only",
        help="Traverse through type-only references",
    ),
    type_only_as_reference: Optional[bool] = typer.Option(
        None,
        "--type-only-as-reference/--no-type-only-as-reference",
        help="Count files touched only by type-only references as used",
    ),
    used_files: Optional[Path] = typer.Option(
        None,
        "--used-files",
        help="JSON list of used files (e.g. from a bundler) replacing graph reachability",
    ),
    workers: Optional[int] = typer.Option(
        None,
        "--workers",
        "-j",
        min=1,
        help="Number of threads used to build the reference graph",
    ),
    include_ignored: bool = typer.Option(
        False,
        "--include-ignored",
        help="Include files normally excluded by .gitignore",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show progress logs and all warnings",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Show debug logs",
    ),
    fail_on_unused: bool = typer.Option(
        False,
        "--fail-on-unused",
        help="Exit with status 2 when unused files are found",
    ),
) -> None:
    """Run the analysis and write the results (default command)."""
    run_analysis(
        path,
        config_path=config,
        output_path=output,
        entries=entry,
        strict=strict,
        follow_type_only=follow_type_only,
        type_only_as_reference=type_only_as_reference,
        used_files_path=used_files,
        workers=workers,
        include_ignored=include_ignored,
        verbose=verbose,
        debug=debug,
        fail_on_unused=fail_on_unused,
    )


@app.command()
def show(
    results_path: Optional[Path] = typer.Argument(
        None,
        help="Path to results file (default: .fileprune/results.json)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Also list warnings recorded during the analysis",
    ),
) -> None:
    """Display results from a previous analysis run."""
    data = _load_results_or_exit(results_path)

    _display_summary(data)

    unused = [item.get("relative_path", item.get("file", "")) for item in data.get("unused_files", [])]
    type_only = data.get("type_only_files", [])
    if unused or type_only:
        project = data.get("metadata", {}).get("project", ".")
        display_tree(build_results_tree(unused, project, type_only))

    if verbose:
        _display_warnings(data.get("warnings", []))


@app.command()
def graph(
    file: Optional[Path] = typer.Argument(
        None,
        help="Show references of this file (default: all files)",
    ),
    results_path: Optional[Path] = typer.Option(
        None,
        "--results",
        "-r",
        help="Path to results file (default: .fileprune/results.json)",
    ),
) -> None:
    """Inspect the reference graph of a previous analysis run."""
    data = _load_results_or_exit(results_path)
    reference_graph: dict = data.get("reference_graph", {})
    root_str = data.get("metadata", {}).get("root")
    root = Path(root_str) if root_str else None

    if file is not None:
        key = str(file.resolve())
        if key not in reference_graph and root is not None:
            key = str((root / file).resolve())
        if key not in reference_graph:
            console.print(f"[red]File not in reference graph:[/] {file}")
            raise typer.Exit(1)
        label = str(file)
        display_tree(build_references_tree(label, reference_graph[key], root))
        return

    table = Table(title="Reference Graph", show_lines=False)
    table.add_column("File", style="cyan")
    table.add_column("References", justify="right")
    table.add_column("Referenced by", justify="right")

    for path_str, entry in sorted(reference_graph.items()):
        display = path_str
        if root is not None:
            try:
                display = str(Path(path_str).relative_to(root))
            except ValueError:
                pass
        inbound = len(entry.get("referenced_by", []))
        table.add_row(
            display,
            str(len(entry.get("references", []))),
            str(inbound) if inbound else "[red]0[/]",
        )

    console.print(table)


@app.command()
def init(
    path: Path = typer.Argument(
        Path("."),
        help="Root of the project to configure",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite an existing configuration",
    ),
) -> None:
    """Write a default .fileprune/config.json."""
    path = path.resolve()
    config_path = get_config_path(path)
    if config_path.exists() and not force:
        console.print(f"[yellow]Configuration already exists:[/] {config_path}")
        console.print("[dim]Use --force to overwrite it.[/]")
        raise typer.Exit(1)

    ensure_fileprune_dir(path)
    save_config(default_config(), config_path)
    console.print(f"[green]Configuration saved to:[/] {config_path}")


def run_analysis(
    path: Path,
    config_path: Optional[Path] = None,
    output_path: Optional[Path] = None,
    entries: Optional[list[Path]] = None,
    strict: bool = False,
    follow_type_only: Optional[bool] = None,
    type_only_as_reference: Optional[bool] = None,
    used_files_path: Optional[Path] = None,
    workers: Optional[int] = None,
    include_ignored: bool = False,
    verbose: bool = False,
    debug: bool = False,
    fail_on_unused: bool = False,
) -> None:
    """Run one analysis, write the report and display it."""
    _configure_logging(verbose, debug)
    path = path.resolve()

    overrides = {
        "entries": [str(e) for e in entries] if entries else None,
        "workers": workers,
        "include_ignored": include_ignored or None,
    }
    try:
        analysis_config = build_analysis_config(path, config_path, overrides)
    except FilePruneError as e:
        console.print(f"[red]Configuration error:[/] {e}")
        raise typer.Exit(1)

    policy = _resolve_policy(
        analysis_config.policy, strict, follow_type_only, type_only_as_reference
    )

    used = None
    if used_files_path is not None:
        try:
            used = load_used_files(used_files_path, path)
        except (OSError, ValueError) as e:
            console.print(f"[red]Cannot read used files list:[/] {e}")
            raise typer.Exit(1)

    console.print(Panel.fit("[bold blue]FilePrune - Unused File Detection[/]"))
    console.print(f"\n[dim]Scanning:[/] {path}\n")

    analyzer = Analyzer(analysis_config)
    started = time.monotonic()
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Discovering files...", total=None)
            analyzer.rebuild(on_progress=lambda msg: progress.update(task, description=msg))
            progress.update(task, description="Computing reachability...")
            result = analyzer.analyze(policy, used_files=used)
            progress.update(task, completed=True)
    except AnalysisAbortedError as e:
        console.print(f"[red]Analysis aborted:[/] {e.reason}")
        raise typer.Exit(1)

    report = analyzer.report(result, started)

    ensure_fileprune_dir(path)
    output_path = output_path or get_results_path(path)
    write_results(report, output_path)
    console.print(f"[green]Results saved to:[/] {output_path}")

    data = report.to_dict()
    _display_summary(data)

    if report.unused_files or report.type_only_files:
        tree = build_results_tree(
            [uf.relative_path for uf in report.unused_files],
            path.name,
            report.type_only_files,
        )
        display_tree(tree)
    else:
        console.print("\n[bold green]✓[/] No unused files found")

    if verbose:
        _display_warnings(report.warnings)
    elif report.warnings:
        console.print(f"[dim]{len(report.warnings)} warnings (use --verbose to list them)[/]")

    if fail_on_unused and report.unused_files:
        raise typer.Exit(2)


def _configure_logging(verbose: bool, debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=debug)],
        force=True,
    )
    logger.setLevel(level)


def _resolve_policy(
    base: InclusionPolicy,
    strict: bool,
    follow_type_only: Optional[bool],
    type_only_as_reference: Optional[bool],
) -> InclusionPolicy:
    """Apply CLI policy flags on top of the configured policy."""
    policy = InclusionPolicy.strict() if strict else base
    if follow_type_only is not None:
        policy = dataclasses.replace(policy, follow_type_only_edges=follow_type_only)
    if type_only_as_reference is not None:
        policy = dataclasses.replace(policy, treat_type_only_as_reference=type_only_as_reference)
    return policy


def _load_results_or_exit(results_path: Optional[Path]) -> dict:
    # Default to .fileprune/results.json in current directory
    if results_path is None:
        results_path = get_results_path(Path.cwd())

    if not results_path.exists():
        console.print(f"[red]Results file not found:[/] {results_path}")
        raise typer.Exit(1)

    return load_results(results_path)


def _display_summary(data: dict) -> None:
    """Display analysis summary."""
    summary = data.get("summary")
    if not summary:
        return

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    table.add_row("Files scanned", str(summary.get("files_scanned", 0)))
    table.add_row("Entry points", str(summary.get("entrypoints", 0)))
    table.add_row("Reachable", str(summary.get("reachable", 0)))
    table.add_row("[yellow]Type-only[/]", str(summary.get("type_only", 0)))
    table.add_row("[red]Unused[/]", str(summary.get("unused", 0)))

    unresolved = summary.get("unresolved_specifiers", 0)
    if unresolved:
        table.add_row("", "")
        table.add_row("[dim]Unresolved specifiers[/]", str(unresolved))

    policy = data.get("policy", {})
    if policy:
        table.add_row("", "")
        table.add_row("Policy:", "")
        for key, value in policy.items():
            table.add_row(f"  {key.replace('_', ' ')}", "yes" if value else "no")

    console.print(Panel(table, title="[bold]Unused File Summary[/]", border_style="blue"))


def _display_warnings(warnings: list[str]) -> None:
    if not warnings:
        return
    console.print("\n[yellow]![/] Warnings:")
    for warning in warnings:
        console.print(f"  • {warning}")


if __name__ == "__main__":
    app()
