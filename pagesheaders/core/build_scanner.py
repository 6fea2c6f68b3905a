"""Build output scanning module for PagesHeaders.

This module walks a static build directory, extracts CSP hashes from every
HTML file and aggregates them either globally or per built route.
"""

import dataclasses
from typing import Dict

from . import routes as route_files
from .config import CspOptions
from .html_hasher import CspHashSets, CspHashSources, collect_csp_hashes_from_html
from .logging_config import get_logger

logger = get_logger(__name__)


@dataclasses.dataclass
class RouteHashes:
    """Hash sources bucketed by built route.

    Attributes:
        sources_by_route (Dict[str, CspHashSources]): Canonical route to its sources.
        totals (CspHashSources): Union of every bucket.
    """

    sources_by_route: Dict[str, CspHashSources]
    totals: CspHashSources


class BuildScanner:
    """Scanner that aggregates CSP hashes across a build output directory.

    Attributes:
        csp_options (CspOptions): Selects which hash categories are extracted.
        stats (Dict[str, int]): Statistics about scanned files.
    """

    def __init__(self, csp_options: CspOptions):
        self.csp_options = csp_options
        self.stats: Dict[str, int] = {
            "files_processed": 0,
            "files_with_no_inline_content": 0,
        }

    def scan_html_file(self, file_path: str) -> CspHashSets:
        """Read one HTML file and extract its hashes.

        Invalid UTF-8 bytes are replaced with U+FFFD. Read errors propagate;
        a file that cannot be read aborts the scan.

        Args:
            file_path (str): Path to the HTML file.

        Returns:
            CspHashSets: Hashes found in the file.
        """
        with open(file_path, "r", encoding="utf-8", errors="replace") as f:
            html = f.read()

        hash_sets = collect_csp_hashes_from_html(html, self.csp_options)
        self.stats["files_processed"] += 1
        if hash_sets.is_empty():
            self.stats["files_with_no_inline_content"] += 1

        logger.debug(
            "Scanned HTML file",
            file_path=file_path,
            style_elements=len(hash_sets.style_element_hashes),
            style_attributes=len(hash_sets.style_attribute_hashes),
            script_elements=len(hash_sets.script_element_hashes),
            operation="scan_html_file",
        )
        return hash_sets

    def collect_global(self, build_dir: str) -> CspHashSources:
        """Union the hashes of every HTML file under ``build_dir``.

        Args:
            build_dir (str): The build output directory.

        Returns:
            CspHashSources: Sorted sources with per-category counts.
        """
        logger.info(
            "Starting global hash collection",
            directory=build_dir,
            operation="collect_global",
        )
        merged = CspHashSets()
        for html_file in route_files.collect_html_files(build_dir):
            merged.update(self.scan_html_file(html_file))

        sources = CspHashSources.from_hash_sets(merged)
        logger.info(
            "Global hash collection completed",
            directory=build_dir,
            files_processed=self.stats["files_processed"],
            inline_style_hashes=sources.inline_style_hashes,
            style_attribute_hashes=sources.style_attribute_hashes,
            inline_script_hashes=sources.inline_script_hashes,
            operation="collect_global",
        )
        return sources

    def collect_by_route(self, build_dir: str) -> RouteHashes:
        """Bucket the hashes of every HTML file by the route it is served under.

        Files attributed to the same route are unioned. Totals across all
        routes are accumulated alongside.

        Args:
            build_dir (str): The build output directory.

        Returns:
            RouteHashes: Per-route sources and totals.
        """
        logger.info(
            "Starting per-route hash collection",
            directory=build_dir,
            operation="collect_by_route",
        )
        hash_sets_by_route: Dict[str, CspHashSets] = {}
        totals = CspHashSets()

        for html_file in route_files.collect_html_files(build_dir):
            route = route_files.map_html_file_to_route(build_dir, html_file)
            file_hash_sets = self.scan_html_file(html_file)
            hash_sets_by_route.setdefault(route, CspHashSets()).update(file_hash_sets)
            totals.update(file_hash_sets)

        route_hashes = RouteHashes(
            sources_by_route={
                route: CspHashSources.from_hash_sets(hash_sets)
                for route, hash_sets in hash_sets_by_route.items()
            },
            totals=CspHashSources.from_hash_sets(totals),
        )
        logger.info(
            "Per-route hash collection completed",
            directory=build_dir,
            files_processed=self.stats["files_processed"],
            route_count=len(route_hashes.sources_by_route),
            operation="collect_by_route",
        )
        return route_hashes
