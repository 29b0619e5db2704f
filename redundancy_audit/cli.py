"""Typer-based CLI for service redundancy audits."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, Progress, TextColumn
from rich.table import Table

from . import __version__
from .config import WORKSPACE_CONFIG_NAME, AuditConfig
from .config_manager import load_audit_config, save_audit_config
from .errors import ConfigError, ReportWriteError
from .extractor import PatternServiceExtractor
from .graph import DependencyGraphBuilder
from .models import RedundancyAnalysisResult
from .orchestrator import STAGES, AuditOrchestrator, compare_files
from .report_export import export_dot, write_reports
from .scanner import SourceScanner

app = typer.Typer(
    help="Redundancy audit: duplicate services, copied code and dependency cycles in TypeScript services.",
    rich_markup_mode="rich",
)

console = Console()


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"redundancy-audit v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_config(root: Path, **overrides) -> AuditConfig:
    try:
        return load_audit_config(root, overrides=overrides)
    except ConfigError as exc:
        console.print(f"[red]✗[/red] {escape(str(exc))}")
        raise typer.Exit(2)


def _run_with_progress(config: AuditConfig) -> RedundancyAnalysisResult:
    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("[cyan]Auditing...", total=len(STAGES))

        def on_stage(name: str) -> None:
            progress.update(task, description=f"[cyan]{name}...")
            progress.advance(task)

        return AuditOrchestrator(config, on_stage=on_stage).run()


def _print_summary(result: RedundancyAnalysisResult, top: int) -> None:
    summary = result.summary
    if not result.ok:
        console.print(f"[yellow]⚠[/yellow] Audit incomplete: {escape(result.metadata.error)}")

    table = Table(title="Redundancy Audit", show_header=True, show_lines=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Files analyzed", str(summary.total_files_analyzed))
    table.add_row("Services analyzed", str(summary.total_services_analyzed))
    table.add_row("Skipped files", str(summary.skipped_files))
    table.add_row("Duplicate services", str(summary.duplicate_services_found))
    table.add_row("Code duplication instances", str(summary.code_duplication_instances))
    table.add_row("Functionality overlaps", str(summary.overlapping_functionality_count))
    table.add_row("Circular dependencies", str(summary.circular_dependency_count))
    table.add_row("Unused services", str(summary.unused_services_count))
    table.add_row("Unused interfaces", str(summary.unused_interfaces_count))
    table.add_row("Estimated code reduction", f"{summary.estimated_code_reduction} lines")
    console.print(table)

    recommendations = result.top_recommendations(top)
    if recommendations:
        body = "\n".join(f"• [bold]{r['priority']}[/bold] {r['description']}" for r in recommendations)
        console.print(Panel(body, title="[bold]Top Recommendations[/bold]", border_style="green"))


def _audit(
    root: Path,
    output_dir: Optional[Path] = None,
    min_block_chars: Optional[int] = None,
    timeout: Optional[float] = None,
    write: bool = True,
    verbose: bool = False,
    top: int = 5,
) -> RedundancyAnalysisResult:
    _configure_logging(verbose)
    config = _load_config(
        root,
        reports_dir=str(output_dir.resolve()) if output_dir is not None else None,
        min_block_chars=min_block_chars,
        timeout_seconds=timeout,
    )
    result = _run_with_progress(config)
    _print_summary(result, top)

    if write:
        try:
            json_path, md_path = write_reports(result, config.reports_path)
        except ReportWriteError as exc:
            console.print(f"[red]✗[/red] {escape(str(exc))}")
            raise typer.Exit(1)
        console.print(f"[green]✓[/green] Reports written: {json_path} and {md_path.name}")
    return result


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
):
    """Run the full audit on the current directory when no command is given."""
    if ctx.invoked_subcommand is None:
        _audit(Path.cwd())


@app.command("audit")
def audit(
    root: Path = typer.Option(Path("."), "--root", "-r", exists=True, file_okay=False, help="Workspace root."),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o", help="Directory for the JSON and Markdown reports (relative to the current directory)."),
    min_block_chars: Optional[int] = typer.Option(None, "--min-block-chars", min=0, help="Minimum method body size for duplication checks."),
    timeout: Optional[float] = typer.Option(None, "--timeout", "-t", min=0.001, help="Abort the analysis after this many seconds."),
    no_write: bool = typer.Option(False, "--no-write", help="Print the summary without writing reports."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging."),
    top: int = typer.Option(5, "--top", "-n", min=0, help="Number of recommendations to show."),
):
    """Scan service roots and report duplicates, cycles and consolidation candidates."""
    _audit(root, output_dir, min_block_chars, timeout, not no_write, verbose, top)


@app.command("compare")
def compare(
    first: Path = typer.Argument(..., exists=True, dir_okay=False, help="First service file."),
    second: Path = typer.Argument(..., exists=True, dir_okay=False, help="Second service file."),
    service_suffix: str = typer.Option("Service", "--suffix", help="Required class name suffix."),
):
    """Show the similarity breakdown between two service files."""
    compared = compare_files(first, second, service_suffix)
    if compared is None:
        console.print(f"[red]✗[/red] Both files must declare an exported *{service_suffix} class.")
        raise typer.Exit(1)
    a, b, result = compared

    table = Table(title=f"{a.name} vs {b.name}", show_header=True)
    table.add_column("Factor", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Shared")
    table.add_row("Methods", f"{result.method_similarity:.2f}", ", ".join(result.common_methods))
    table.add_row("Structure", f"{result.structural_similarity:.2f}", "")
    table.add_row("Imports", f"{result.import_similarity:.2f}", ", ".join(result.common_imports))
    table.add_row("Interfaces", f"{result.interface_similarity:.2f}", ", ".join(result.common_interfaces))
    table.add_row("[bold]Overall[/bold]", f"[bold]{result.score:.2f}[/bold]", "")
    console.print(table)


@app.command("graph")
def graph(
    root: Path = typer.Option(Path("."), "--root", "-r", exists=True, file_okay=False, help="Workspace root."),
    output: Path = typer.Option(Path("service-dependencies.dot"), "--output", "-o", help="DOT file to write."),
    focus: str = typer.Option("", "--focus", "-f", help="Only services matching this name and their neighbours."),
):
    """Export the service dependency graph as Graphviz DOT."""
    config = _load_config(root)
    files = SourceScanner(config).scan()
    outcome = PatternServiceExtractor(config.service_suffix).extract_all(files)
    dependency_graph = DependencyGraphBuilder(entry_point_files=config.entry_point_files).build(
        outcome.services
    )
    try:
        export_dot(dependency_graph, output, focus=focus)
    except ReportWriteError as exc:
        console.print(f"[red]✗[/red] {escape(str(exc))}")
        raise typer.Exit(1)
    typer.echo(
        f"Exported {len(dependency_graph.nodes)} services and "
        f"{len(dependency_graph.edges)} dependencies to {output}"
    )


@app.command("init")
def init(
    root: Path = typer.Option(Path("."), "--root", "-r", exists=True, file_okay=False, help="Workspace root."),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing [audit] table."),
):
    """Write a workspace configuration file with the default settings."""
    target = root / WORKSPACE_CONFIG_NAME
    if target.exists() and not force:
        console.print(f"[yellow]⚠[/yellow] {target} already exists (use --force to overwrite).")
        raise typer.Exit(1)
    defaults = AuditConfig(workspace_root=root)
    save_audit_config(
        {
            "service_roots": defaults.service_roots,
            "include_patterns": defaults.include_patterns,
            "exclude_dirs": defaults.exclude_dirs,
            "interface_roots": defaults.interface_roots,
            "min_block_chars": defaults.min_block_chars,
            "entry_point_files": defaults.entry_point_files,
            "reports_dir": defaults.reports_dir,
        },
        target,
    )
    console.print(f"[green]✓[/green] Wrote {target}")


if __name__ == "__main__":
    app()
