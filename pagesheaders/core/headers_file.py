"""Reading the headers configuration and rendering the ``_headers`` file."""

import os
from typing import Dict, Union
from urllib.parse import unquote, urlparse

from .config import HeadersMapping
from .logging_config import get_logger

logger = get_logger(__name__)

HEADERS_FILE_NAME = "_headers"
CATCH_ALL_ROUTE = "/*"
WORKERS_CATCH_ALL_ROUTE = "*"

Routes = Dict[str, Dict[str, str]]


def parse_headers(headers: HeadersMapping) -> Routes:
    """Turn a headers configuration into a route to headers mapping.

    A flat mapping (header name to value) applies to the catch-all ``/*``
    route. Whether the mapping is flat is decided by its first value.

    Args:
        headers (HeadersMapping): Flat or nested headers configuration.

    Returns:
        Routes: A fresh mapping that can be mutated without touching the config.
    """
    sample_value = next(iter(headers.values()), None)
    if isinstance(sample_value, str):
        return {CATCH_ALL_ROUTE: dict(headers)}
    return {route: dict(route_headers) for route, route_headers in headers.items()}


def normalize_workers_wildcard_route(routes: Routes, workers_enabled: bool) -> None:
    """Move a ``*`` route to ``/*`` when deploying with Workers.

    When both exist they are merged into ``/*`` and explicit ``/*`` values
    win on conflicting header names.
    """
    if not workers_enabled or WORKERS_CATCH_ALL_ROUTE not in routes:
        return

    if CATCH_ALL_ROUTE in routes:
        routes[CATCH_ALL_ROUTE] = {
            **routes[WORKERS_CATCH_ALL_ROUTE],
            **routes[CATCH_ALL_ROUTE],
        }
        logger.warning(
            'Both "*" and "/*" routes were found with workers mode enabled. '
            'Merged both into "/*" and kept explicit "/*" header values on conflicts.',
            operation="normalize_workers_wildcard_route",
        )
    else:
        routes[CATCH_ALL_ROUTE] = routes[WORKERS_CATCH_ALL_ROUTE]

    del routes[WORKERS_CATCH_ALL_ROUTE]


def resolve_build_dir(build_dir: Union[str, "os.PathLike[str]"]) -> str:
    """Resolve a build directory given as a path or a ``file://`` URL."""
    build_dir = os.fspath(build_dir)
    if build_dir.startswith("file://"):
        build_dir = unquote(urlparse(build_dir).path)
    return os.path.abspath(build_dir)


def generate_headers_content(routes: Routes) -> str:
    """Render routes in the ``_headers`` file format.

    Each route is followed by its indented ``Name: value`` lines and a blank
    line.
    """
    lines = []
    for route, headers in routes.items():
        lines.append(route)
        for header_name, header_value in headers.items():
            lines.append(f"  {header_name}: {header_value}")
        lines.append("")
    return "\n".join(lines)


def write_headers_file(path: str, content: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
