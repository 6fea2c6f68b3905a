"""Init command for PagesHeaders.

Writes a starter ``pagesheaders.json`` with a catch-all route carrying common
security headers and a strict Content-Security-Policy.
"""

import os

import typer
from rich.console import Console

from ..core.config import DEFAULT_CONFIG_PATH, CspOptions, PagesHeadersConfig, save_config
from ..core.logging_config import get_logger

app = typer.Typer(
    name="init",
    help="Create a starter pagesheaders.json configuration.",
    rich_markup_mode="rich",
)

console = Console()
logger = get_logger(__name__)

STARTER_HEADERS = {
    "/*": {
        "X-Frame-Options": "DENY",
        "X-Content-Type-Options": "nosniff",
        "Referrer-Policy": "strict-origin-when-cross-origin",
        "Content-Security-Policy": "default-src 'self'; object-src 'none'; base-uri 'self';",
    }
}


def starter_config(auto_hashes: bool = True, mode: str = "global") -> PagesHeadersConfig:
    return PagesHeadersConfig(
        headers=STARTER_HEADERS,
        csp=CspOptions(auto_hashes=auto_hashes, mode=mode),
    )


@app.callback(invoke_without_command=True)
def init(
    ctx: typer.Context,
    output: str = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--output",
        "-o",
        help="Where to write the configuration file.",
    ),
    auto_hashes: bool = typer.Option(
        True,
        "--auto-hashes/--no-auto-hashes",
        help="Enable CSP auto-hashes in the generated config.",
    ),
    mode: str = typer.Option(
        "global",
        "--mode",
        "-m",
        help="CSP hash aggregation mode: global or route.",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite an existing configuration file.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Print the configuration instead of writing it.",
    ),
):
    """Create a starter configuration file.

    Raises:
        typer.Exit: Exits with code 1 when the file exists without --force or cannot be written.
    """
    if ctx.invoked_subcommand is not None:
        return

    dry_run = dry_run or (ctx.obj or {}).get("dry_run", False)

    if os.path.exists(output) and not force and not dry_run:
        console.print(
            f"[red]Error: {output} already exists. Use --force to overwrite :no_entry_sign:[/red]"
        )
        raise typer.Exit(code=1)

    logger.info(
        "Creating starter config",
        file_path=output,
        auto_hashes=auto_hashes,
        mode=mode,
        operation="init_config",
    )
    if not save_config(starter_config(auto_hashes, mode), output, dry_run=dry_run):
        raise typer.Exit(code=1)
