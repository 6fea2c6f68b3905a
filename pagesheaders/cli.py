"""Command-line interface for PagesHeaders.

This module provides the main entry point for the PagesHeaders CLI tool, which
generates a Cloudflare Pages ``_headers`` file from a headers configuration
and can patch Content-Security-Policy headers with hashes of inline content
found in the build output.

The CLI is built using Typer and provides rich text output formatting.
"""

from importlib.metadata import PackageNotFoundError, version

import typer
from rich.console import Console

from .commands import build, init, scan
from .core.config import DEFAULT_CONFIG_PATH, load_config
from .core.logging_config import get_logger

app = typer.Typer(
    name="pagesheaders",
    help="Generate a Cloudflare Pages _headers file with CSP auto-hashes.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)

console = Console()
logger = get_logger(__name__)

app.add_typer(build.app, name="build")
app.add_typer(scan.app, name="scan")
app.add_typer(init.app, name="init")


def _version_callback(value: bool):
    """Handle the --version flag in the CLI.

    Raises:
        typer.Exit: Always exits after displaying version information.
    """
    if value:
        try:
            current_version = version("pagesheaders")
            logger.info(
                "Version information requested",
                version=current_version,
                operation="version_check",
            )
            console.print(f"[cyan bold]pagesheaders v{current_version}[/cyan bold]")
        except PackageNotFoundError:
            logger.error("Version information not available", operation="version_check")
            console.print("[red]Version info not available[/red]")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show the pagesheaders version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    config: str = typer.Option(
        None,
        "--config",
        "-c",
        help=f"Path to the headers configuration file (default: {DEFAULT_CONFIG_PATH}).",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Preview output without writing to disk.",
    ),
):
    """PagesHeaders - Generate _headers files with strict, hash-based CSPs.

    Args:
        ctx (typer.Context): The Typer context object for managing CLI state.
        version (bool, optional): Flag to show version information. Defaults to None.
        config (str, optional): Path to config file. Defaults to None.
        dry_run (bool, optional): Flag for preview mode. Defaults to False.
    """
    ctx.obj = {"config": load_config(config), "dry_run": dry_run}
    logger.info(
        "CLI context initialized",
        config_path=config,
        dry_run=dry_run,
        operation="cli_init",
    )


if __name__ == "__main__":
    app()
