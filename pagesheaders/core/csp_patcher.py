"""CSP auto-hash patching of configured header routes.

Hashes discovered in the build output are merged into the ``style-src``,
``style-src-attr`` and ``script-src`` directives of every configured
``Content-Security-Policy`` header, either globally or per built route.
"""

import dataclasses
import re
from typing import Dict, List, Optional

from .build_scanner import BuildScanner
from .config import CspOptions
from .csp_directives import (
    merge_csp_sources,
    parse_csp_directives,
    serialize_csp_directives,
    split_csp_sources,
)
from .html_hasher import CspHashSources
from .logging_config import get_logger
from .wildcards import (
    CspRoute,
    find_exact_route,
    find_route_sources,
    find_wildcard_template,
    sort_wildcard_routes,
)

logger = get_logger(__name__)

CONTENT_SECURITY_POLICY_HEADER = "content-security-policy"
TRAILING_SEMICOLONS_REGEX = re.compile(r";+\s*$")

Routes = Dict[str, Dict[str, str]]


@dataclasses.dataclass
class CspHashReport:
    """Totals reported after a patch pass."""

    inline_style_hashes: int = 0
    style_attribute_hashes: int = 0
    inline_script_hashes: int = 0
    updated_csp_headers: int = 0
    files_processed: int = 0

    @classmethod
    def from_sources(
        cls, sources: CspHashSources, updated_csp_headers: int, files_processed: int
    ) -> "CspHashReport":
        return cls(
            inline_style_hashes=sources.inline_style_hashes,
            style_attribute_hashes=sources.style_attribute_hashes,
            inline_script_hashes=sources.inline_script_hashes,
            updated_csp_headers=updated_csp_headers,
            files_processed=files_processed,
        )


def find_header_name(headers: Dict[str, str], header_name: str) -> Optional[str]:
    """Return the configured spelling of ``header_name``, matched case-insensitively."""
    normalized = header_name.lower()
    for name in headers:
        if name.lower() == normalized:
            return name
    return None


def _merge_directive(
    parsed, directive: str, default: str, additions: List[str], strip_unsafe_inline: bool
) -> bool:
    current = parsed.get(directive)
    merged = merge_csp_sources(
        split_csp_sources(current if current is not None else default),
        additions,
        strip_unsafe_inline=strip_unsafe_inline,
    )
    if current == merged:
        return False
    parsed.set(directive, merged)
    return True


def patch_csp_value(
    raw_csp_value: str, sources: CspHashSources, csp_options: CspOptions
) -> str:
    """Merge hash sources into a CSP header value.

    ``style-src`` and ``script-src`` default to ``'self'`` when absent.
    Attribute hashes go to ``style-src-attr`` preceded by ``'unsafe-hashes'``.
    When nothing changes the raw value is returned untouched, so patching is
    idempotent.

    Args:
        raw_csp_value (str): The configured header value.
        sources (CspHashSources): Hashes to merge.
        csp_options (CspOptions): Enabled categories and unsafe-inline policy.

    Returns:
        str: The patched value with a single trailing ``;``, or ``raw_csp_value``.
    """
    parsed = parse_csp_directives(TRAILING_SEMICOLONS_REGEX.sub("", raw_csp_value.strip()))
    strip_unsafe_inline = csp_options.strip_unsafe_inline
    changed = False

    if csp_options.hash_style_elements and sources.style_element_sources:
        changed |= _merge_directive(
            parsed,
            "style-src",
            "'self'",
            sources.style_element_sources,
            strip_unsafe_inline,
        )

    if csp_options.hash_style_attributes and sources.style_attribute_sources:
        changed |= _merge_directive(
            parsed,
            "style-src-attr",
            "",
            ["'unsafe-hashes'", *sources.style_attribute_sources],
            strip_unsafe_inline,
        )

    if csp_options.hash_inline_scripts and sources.script_element_sources:
        changed |= _merge_directive(
            parsed,
            "script-src",
            "'self'",
            sources.script_element_sources,
            strip_unsafe_inline,
        )

    if not changed:
        return raw_csp_value

    return f"{serialize_csp_directives(parsed)};"


def find_csp_routes(routes: Routes) -> List[CspRoute]:
    csp_routes = []
    for route, headers in routes.items():
        header_name = find_header_name(headers, CONTENT_SECURITY_POLICY_HEADER)
        if header_name:
            csp_routes.append(CspRoute(route=route, headers=headers, header_name=header_name))
    return csp_routes


def _patch_route(csp_route: CspRoute, sources: CspHashSources, csp_options: CspOptions) -> bool:
    current_value = csp_route.headers[csp_route.header_name]
    next_value = patch_csp_value(current_value, sources, csp_options)
    if next_value == current_value:
        return False
    csp_route.headers[csp_route.header_name] = next_value
    logger.debug("Patched CSP header", route=csp_route.route, operation="patch_route")
    return True


def _patch_routes_global(
    csp_routes: List[CspRoute],
    build_dir: str,
    scanner: BuildScanner,
    csp_options: CspOptions,
) -> CspHashReport:
    sources = scanner.collect_global(build_dir)
    updated_csp_headers = sum(
        _patch_route(csp_route, sources, csp_options) for csp_route in csp_routes
    )
    return CspHashReport.from_sources(
        sources, updated_csp_headers, scanner.stats["files_processed"]
    )


def _patch_routes_by_route(
    routes: Routes,
    csp_routes: List[CspRoute],
    build_dir: str,
    scanner: BuildScanner,
    csp_options: CspOptions,
) -> CspHashReport:
    route_hashes = scanner.collect_by_route(build_dir)
    wildcard_routes = sort_wildcard_routes(csp_routes)
    updated_csp_headers = 0

    for csp_route in csp_routes:
        if csp_route.is_wildcard:
            continue
        sources = find_route_sources(route_hashes.sources_by_route, csp_route.route)
        if sources is None or not sources.has_any_sources():
            continue
        if _patch_route(csp_route, sources, csp_options):
            updated_csp_headers += 1

    for built_route, sources in route_hashes.sources_by_route.items():
        if not sources.has_any_sources():
            continue

        existing_route = find_exact_route(routes, built_route)
        existing_headers = routes[existing_route] if existing_route is not None else None
        if existing_headers is not None and find_header_name(
            existing_headers, CONTENT_SECURITY_POLICY_HEADER
        ):
            continue

        template = find_wildcard_template(wildcard_routes, built_route)
        if template is None:
            continue

        template_value = template.headers[template.header_name]
        next_value = patch_csp_value(template_value, sources, csp_options)
        if next_value == template_value:
            continue

        target_route = existing_route if existing_route is not None else built_route
        target_headers = existing_headers if existing_headers is not None else {}
        target_headers[template.header_name] = next_value
        routes[target_route] = target_headers
        updated_csp_headers += 1
        logger.debug(
            "Synthesized CSP route from wildcard template",
            route=target_route,
            template=template.route,
            operation="patch_routes_csp",
        )

    return CspHashReport.from_sources(
        route_hashes.totals, updated_csp_headers, scanner.stats["files_processed"]
    )


def patch_routes_csp(
    routes: Routes,
    build_dir: str,
    csp_options: CspOptions,
    scanner: Optional[BuildScanner] = None,
) -> CspHashReport:
    """Patch every CSP header in ``routes`` in place with hashes from ``build_dir``.

    When no route carries a CSP header the build directory is not scanned.
    In ``route`` mode exact routes are patched with their own bucket, and
    built routes without an explicit CSP that match a wildcard route get a
    new entry seeded from that wildcard's CSP. Wildcard entries themselves
    are never rewritten in ``route`` mode.

    Args:
        routes (Routes): Route to headers mapping, mutated in place.
        build_dir (str): The build output directory.
        csp_options (CspOptions): Resolved CSP options.
        scanner (Optional[BuildScanner], optional): Scanner to use. Defaults to a new one.

    Returns:
        CspHashReport: Hash counts and number of updated headers.
    """
    csp_routes = find_csp_routes(routes)
    if not csp_routes:
        logger.info(
            "No Content-Security-Policy headers configured",
            operation="patch_routes_csp",
        )
        return CspHashReport()

    scanner = scanner or BuildScanner(csp_options)
    if csp_options.mode == "route":
        report = _patch_routes_by_route(
            routes, csp_routes, build_dir, scanner, csp_options
        )
    else:
        report = _patch_routes_global(csp_routes, build_dir, scanner, csp_options)

    logger.info(
        "CSP routes patched",
        mode=csp_options.mode,
        csp_routes=len(csp_routes),
        updated_csp_headers=report.updated_csp_headers,
        operation="patch_routes_csp",
    )
    return report
