"""Output formatting module for PagesHeaders.

This module prints CSP patch reports and scan results using rich tables.
Setting ``CSP_PLAIN_OUTPUT=1`` switches to plain text output.
"""

import os

from rich import box
from rich.align import Align
from rich.console import Console
from rich.table import Table

from .build_scanner import RouteHashes
from .csp_patcher import CspHashReport
from .html_hasher import CspHashSources
from .logging_config import get_logger

logger = get_logger(__name__)
console = Console()


def _plain_output() -> bool:
    return os.environ.get("CSP_PLAIN_OUTPUT") == "1"


class Printer:
    """Handles formatted output of CSP patch reports and scan results.

    Attributes:
        report (CspHashReport): Totals of the last patch pass.
    """

    def __init__(self, report: CspHashReport):
        self.report = report

    def _report_rows(self):
        return [
            ("Files Scanned :page_facing_up:", self.report.files_processed),
            ("Inline Style Hashes :art:", self.report.inline_style_hashes),
            ("Style Attribute Hashes :art:", self.report.style_attribute_hashes),
            (
                "Inline Script Hashes :hammer_and_wrench:",
                self.report.inline_script_hashes,
            ),
            ("Updated CSP Headers :memo:", self.report.updated_csp_headers),
        ]

    def print_summary_report(self) -> None:
        """Print a summary table of the CSP auto-hash patch."""
        logger.info(
            "Generating summary report",
            files_processed=self.report.files_processed,
            updated_csp_headers=self.report.updated_csp_headers,
            operation="print_summary_report",
        )

        if _plain_output():
            print("CSP Auto-Hash Report :dart:")
            for metric, value in self._report_rows():
                print(f"{metric} : {value}")
            print(":sparkles: _headers Generated Successfully!")
            return

        table = Table(
            title="CSP Auto-Hash Report :dart:",
            box=box.MINIMAL_DOUBLE_HEAD,
            title_justify="center",
            title_style="bold bright_cyan",
            show_header=True,
            header_style="bold magenta",
            pad_edge=False,
            row_styles=("none", "yellow"),
            expand=True,
        )
        table.add_column("Metric", justify="center", style="cyan", no_wrap=True, ratio=2)
        table.add_column("Value", justify="center", style="green", overflow="fold")
        for metric, value in self._report_rows():
            style = "bold red" if value == 0 else ""
            table.add_row(Align.left(metric), Align.center(str(value)), style=style)
        console.print(Align.center(table))
        console.print("[bold green]:sparkles: _headers Generated Successfully! [/bold green]")

    @staticmethod
    def print_route_hashes(route_hashes: RouteHashes) -> None:
        """Print per-route hash counts of a build scan."""
        rows = sorted(route_hashes.sources_by_route.items())
        Printer._print_sources_table("Hashes by Route :world_map:", rows, route_hashes.totals)

    @staticmethod
    def print_global_hashes(sources: CspHashSources) -> None:
        """Print the hash sources of a global build scan."""
        if _plain_output():
            for label, values in (
                ("style-src", sources.style_element_sources),
                ("style-src-attr", sources.style_attribute_sources),
                ("script-src", sources.script_element_sources),
            ):
                print(f"{label}: {' '.join(values) if values else '-'}")
            return
        Printer._print_sources_table("Hashes :mag:", [("/*", sources)], sources)

    @staticmethod
    def _print_sources_table(title: str, rows, totals: CspHashSources) -> None:
        if _plain_output():
            print(title)
            for route, sources in rows:
                print(
                    f"{route}: {sources.inline_style_hashes} style, "
                    f"{sources.style_attribute_hashes} attribute, "
                    f"{sources.inline_script_hashes} script"
                )
            print(
                f"Total: {totals.inline_style_hashes} style, "
                f"{totals.style_attribute_hashes} attribute, "
                f"{totals.inline_script_hashes} script"
            )
            return

        table = Table(
            title=title,
            box=box.MINIMAL_DOUBLE_HEAD,
            title_justify="center",
            title_style="bold bright_cyan",
            show_header=True,
            header_style="bold magenta",
            pad_edge=False,
            expand=True,
        )
        table.add_column("Route", justify="left", style="cyan", no_wrap=True)
        table.add_column("Style Elements", justify="center", style="green")
        table.add_column("Style Attributes", justify="center", style="green")
        table.add_column("Inline Scripts", justify="center", style="green")
        for route, sources in rows:
            table.add_row(
                route,
                str(sources.inline_style_hashes),
                str(sources.style_attribute_hashes),
                str(sources.inline_script_hashes),
            )
        table.add_row(
            "Total",
            str(totals.inline_style_hashes),
            str(totals.style_attribute_hashes),
            str(totals.inline_script_hashes),
            style="bold",
        )
        console.print(Align.center(table))
