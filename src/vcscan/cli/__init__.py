"""
CLI for vcscan.

Scans directory trees for version-control working copies and reports the
ones with pending changes.
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from vcscan import __version__
from vcscan.core.config import SCAN_STRATEGIES, VcscanConfig, load_config
from vcscan.core.errors import ConfigError, VcscanError
from vcscan.core.logging_setup import configure_logging
from vcscan.services import run_scan

# Errors and diagnostics go to stderr; stdout carries only scan results
err_console = Console(stderr=True)

app = typer.Typer(
    name="vcscan",
    help="Report pending changes across nested git, mercurial and subversion working copies",
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"vcscan {__version__}")
        raise typer.Exit()


def _print_error(message: str) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {escape(message)}")


def _apply_cli_overrides(
    config: VcscanConfig,
    count: bool,
    workers: Optional[int],
    follow_symlinks: Optional[bool],
    strategy: Optional[str],
    timeout: Optional[float],
) -> VcscanConfig:
    """CLI flags take precedence over file and environment settings."""
    if count:
        config.output.count = True
    if workers is not None:
        config.scan.max_workers = workers
    if follow_symlinks is not None:
        config.scan.follow_symlinks = follow_symlinks
    if strategy is not None:
        config.scan.strategy = strategy
    if timeout is not None:
        config.scan.status_timeout = timeout
    return config.validate()


@app.command()
def scan(
    paths: Optional[list[Path]] = typer.Argument(
        None, help="Directories to scan (default: current directory)"
    ),
    count: bool = typer.Option(
        False, "--count", "-n", help="Display number of modified repositories"
    ),
    workers: Optional[int] = typer.Option(
        None, "--workers", "-w", help="Number of parallel traversal workers"
    ),
    follow_symlinks: Optional[bool] = typer.Option(
        None,
        "--follow-symlinks/--no-follow-symlinks",
        help="Descend into symlinked directories (cycles are skipped)",
    ),
    strategy: Optional[str] = typer.Option(
        None, "--strategy", help=f"Traversal strategy: {' or '.join(SCAN_STRATEGIES)}"
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Seconds before a status command is killed and the run fails"
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Configuration file (.yaml, .yml or .json)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
):
    """Run the status command of every working copy found under PATHS."""
    try:
        config = _apply_cli_overrides(
            load_config(config_path), count, workers, follow_symlinks, strategy, timeout
        )
    except ConfigError as e:
        _print_error(str(e))
        raise typer.Exit(1)

    configure_logging(config.logging, verbose=verbose)

    try:
        run_scan(paths or [], config.scan, count=config.output.count)
    except VcscanError as e:
        _print_error(str(e))
        raise typer.Exit(1)
    except KeyboardInterrupt:
        _print_error("Interrupted")
        raise typer.Exit(130)


def main() -> None:
    """Console script entry point."""
    app()
