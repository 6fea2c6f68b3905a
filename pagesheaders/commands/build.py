"""Build command for PagesHeaders.

Generates the ``_headers`` file of a finished static build from the loaded
configuration. When CSP auto-hashes are enabled, the Content-Security-Policy
headers are patched with hashes of the inline styles and scripts found in
the build output before the file is written.
"""

import os

import typer
from rich.console import Console

from ..core.header_limits import HeaderOverflowError
from ..core.integration import PagesHeadersIntegration
from ..core.logging_config import get_logger
from ..core.printer import Printer

app = typer.Typer(
    name="build",
    help="Generate the _headers file for a build output directory, patching CSP headers with inline hashes.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
logger = get_logger(__name__)


@app.callback(invoke_without_command=True)
def build(
    ctx: typer.Context,
    build_dir: str = typer.Option(
        None,
        "--dir",
        "-d",
        help="Build output directory (e.g., ./dist)",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Print the _headers content instead of writing it.",
    ),
):
    """Generate the _headers file for a build output directory.

    Args:
        ctx (typer.Context): The Typer context object containing CLI state.
        build_dir (str, optional): Build output directory. Will prompt if not provided.
        dry_run (bool, optional): Flag for preview mode. Defaults to False.

    Raises:
        typer.Exit: Exits with code 1 on error, 0 on success.
    """
    if ctx.invoked_subcommand is not None:
        return

    obj = ctx.obj or {}
    config = obj.get("config")
    dry_run = dry_run or obj.get("dry_run", False)

    if config is None:
        console.print(
            "[red]Error: No configuration loaded. Create pagesheaders.json or pass --config :no_entry_sign:[/red]"
        )
        raise typer.Exit(code=1)

    if not build_dir:
        build_dir = typer.prompt("Enter the build output directory")
    if not os.path.isdir(build_dir):
        console.print(
            f"[red]Error: Directory {build_dir} does not exist or is not a directory :no_entry_sign:[/red]"
        )
        raise typer.Exit(code=1)

    integration = PagesHeadersIntegration(config)
    integration.setup(config.headers)

    try:
        result = integration.build_done(build_dir, dry_run=dry_run)
    except HeaderOverflowError as e:
        console.print(f"[red]Error: {e} :no_entry_sign:[/red]")
        raise typer.Exit(code=1)

    if result is None:
        console.print("[yellow]No headers configured, _headers was not generated :warning:[/yellow]")
        return

    if result.report is not None:
        Printer(result.report).print_summary_report()

    if dry_run:
        console.print(f"[cyan]Dry-run: {result.headers_path} content:[/cyan]")
        console.print(result.content, markup=False, highlight=False)
    elif result.written:
        console.print(
            f"[green]:small_red_triangle_down: _headers written to {result.headers_path} :memo:[/green]"
        )
    else:
        console.print(f"[red]Error writing {result.headers_path} :sweat:[/red]")
