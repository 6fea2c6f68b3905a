"""Scan command for PagesHeaders.

Scans a build output directory for inline styles, style attributes and
inline scripts and prints the CSP hash sources that ``build`` would merge,
without touching any header file.
"""

import os
from typing import Optional

import typer
from rich.console import Console

from ..core.build_scanner import BuildScanner
from ..core.config import CspOptions
from ..core.logging_config import ErrorCodes, get_logger
from ..core.printer import Printer

app = typer.Typer(
    name="scan",
    help="Scan a build output directory and report the CSP hashes of its inline content.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
logger = get_logger(__name__)


@app.callback(invoke_without_command=True)
def scan(
    ctx: typer.Context,
    build_dir: str = typer.Option(
        None,
        "--dir",
        "-d",
        help="Build output directory (e.g., ./dist)",
    ),
    mode: str = typer.Option(
        None,
        "--mode",
        "-m",
        help="Aggregation mode: global or route (defaults to the configured mode).",
    ),
    scripts: Optional[bool] = typer.Option(
        None,
        "--scripts/--no-scripts",
        help="Also hash inline scripts (defaults to the configured value).",
    ),
):
    """Report the CSP hash sources of a build output directory.

    Args:
        ctx (typer.Context): The Typer context object containing CLI state.
        build_dir (str, optional): Build output directory. Will prompt if not provided.
        mode (str, optional): ``global`` or ``route``.
        scripts (bool, optional): Hash inline scripts.

    Raises:
        typer.Exit: Exits with code 1 on error, 0 on success.
    """
    if ctx.invoked_subcommand is not None:
        return

    config = (ctx.obj or {}).get("config")
    overrides = {}
    if mode is not None:
        overrides["mode"] = mode
    if scripts is not None:
        overrides["hash_inline_scripts"] = scripts
    base_options = config.csp if config else CspOptions()
    csp_options = CspOptions.model_validate(
        {**base_options.model_dump(), **overrides}
    )

    if not build_dir:
        build_dir = typer.prompt("Enter the build output directory")
    if not os.path.isdir(build_dir):
        console.print(
            f"[red]Error: Directory {build_dir} does not exist or is not a directory :no_entry_sign:[/red]"
        )
        raise typer.Exit(code=1)

    scanner = BuildScanner(csp_options)
    try:
        if csp_options.mode == "route":
            Printer.print_route_hashes(scanner.collect_by_route(build_dir))
        else:
            Printer.print_global_hashes(scanner.collect_global(build_dir))
    except OSError as e:
        logger.error(
            "Failed to scan build directory",
            directory=build_dir,
            error=str(e),
            error_code=ErrorCodes.FILE_PROCESSING_ERROR,
            operation="scan",
            exc_info=True,
        )
        console.print(f"[red]Error scanning {build_dir}: {e} :sweat:[/red]")
        raise typer.Exit(code=1)

    console.print(
        f"[green]Scanned {scanner.stats['files_processed']} HTML files :sparkles:[/green]"
    )
