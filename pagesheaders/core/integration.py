"""Build integration for PagesHeaders.

``PagesHeadersIntegration`` follows the two steps of a static-site build:
headers are captured at setup time, and once the build output exists the
``_headers`` file is generated, with CSP headers patched when auto-hashes
are enabled.
"""

import dataclasses
import os
from typing import Optional, Union

from . import headers_file
from .config import HeadersMapping, IntegrationOptions
from .csp_patcher import CspHashReport, Routes, patch_routes_csp
from .header_limits import enforce_header_line_length_limit
from .logging_config import ErrorCodes, get_logger

logger = get_logger(__name__)


@dataclasses.dataclass
class BuildResult:
    """Outcome of a build pass.

    Attributes:
        routes (Routes): Final route to headers mapping.
        content (str): Rendered ``_headers`` file content.
        headers_path (str): Where the file is (or would be) written.
        report (Optional[CspHashReport]): CSP patch totals, None when not patched.
        written (bool): Whether the file was written to disk.
    """

    routes: Routes
    content: str
    headers_path: str
    report: Optional[CspHashReport] = None
    written: bool = False


class PagesHeadersIntegration:
    """Generates the ``_headers`` file of a static build.

    Attributes:
        options (IntegrationOptions): Resolved workers and CSP options.
        headers (Optional[HeadersMapping]): Headers captured at setup time.
    """

    def __init__(self, options: Optional[IntegrationOptions] = None):
        self.options = options or IntegrationOptions()
        self.headers: Optional[HeadersMapping] = None

    def setup(self, headers: Optional[HeadersMapping]) -> None:
        """Capture the headers configuration of the site."""
        logger.info("Setting up integration", operation="setup")
        if headers:
            self.headers = headers

    def _patch_csp(self, routes: Routes, build_dir: str) -> Optional[CspHashReport]:
        csp_options = self.options.csp
        if not csp_options.has_enabled_hash_category:
            logger.warning(
                "CSP auto-hashes are enabled, but no hash categories are enabled. "
                "Skipping CSP patch.",
                operation="build_done",
            )
            return None

        try:
            report = patch_routes_csp(routes, build_dir, csp_options)
        except Exception as e:
            logger.error(
                "Failed to patch CSP hashes",
                directory=build_dir,
                error=str(e),
                error_code=ErrorCodes.CSP_PATCH_ERROR,
                operation="build_done",
                exc_info=True,
            )
            return None

        logger.info(
            f"CSP auto-hash patch completed: {report.inline_style_hashes} inline style hashes, "
            f"{report.style_attribute_hashes} style attribute hashes, "
            f"{report.inline_script_hashes} inline script hashes, "
            f"{report.updated_csp_headers} updated CSP headers.",
            inline_style_hashes=report.inline_style_hashes,
            style_attribute_hashes=report.style_attribute_hashes,
            inline_script_hashes=report.inline_script_hashes,
            updated_csp_headers=report.updated_csp_headers,
            operation="build_done",
        )
        return report

    def build_done(
        self, build_dir: Union[str, "os.PathLike[str]"], dry_run: bool = False
    ) -> Optional[BuildResult]:
        """Generate the ``_headers`` file for a finished build.

        CSP patch failures and file write failures are logged and do not
        raise. A header line overflow with the ``error`` policy raises before
        anything is written.

        Args:
            build_dir: The build output directory, as a path or ``file://`` URL.
            dry_run (bool, optional): Render without writing. Defaults to False.

        Returns:
            Optional[BuildResult]: None when no headers are configured.

        Raises:
            HeaderOverflowError: If a header line is too long and overflow is ``error``.
        """
        logger.info("Running build hook", operation="build_done")

        if not self.headers:
            logger.warning(
                "No headers configuration found. Skipping _headers generation.",
                error_code=ErrorCodes.NO_HEADERS_CONFIG,
                operation="build_done",
            )
            return None

        routes = headers_file.parse_headers(self.headers)
        headers_file.normalize_workers_wildcard_route(routes, self.options.workers)
        resolved_dir = headers_file.resolve_build_dir(build_dir)
        headers_path = os.path.join(resolved_dir, headers_file.HEADERS_FILE_NAME)

        report = None
        if self.options.csp.auto_hashes:
            report = self._patch_csp(routes, resolved_dir)

        enforce_header_line_length_limit(routes, self.options.csp)
        result = BuildResult(
            routes=routes,
            content=headers_file.generate_headers_content(routes),
            headers_path=headers_path,
            report=report,
        )

        if dry_run:
            logger.info(
                "Dry-run: _headers previewed",
                file_path=headers_path,
                operation="build_done",
            )
            return result

        try:
            headers_file.write_headers_file(headers_path, result.content)
            result.written = True
            logger.info(
                f"Successfully created _headers at {headers_path}",
                file_path=headers_path,
                route_count=len(routes),
                operation="build_done",
            )
        except Exception as e:
            logger.error(
                "Failed to write _headers file",
                file_path=headers_path,
                error=str(e),
                error_code=ErrorCodes.FILE_WRITE_ERROR,
                operation="build_done",
                exc_info=True,
            )
        return result
