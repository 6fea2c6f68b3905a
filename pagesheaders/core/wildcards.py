"""Matching of built routes against configured exact and wildcard routes."""

import dataclasses
import re
from typing import Dict, List, Optional

from .html_hasher import CspHashSources


@dataclasses.dataclass
class CspRoute:
    """A configured route carrying a CSP header.

    Attributes:
        route (str): The route pattern as configured.
        headers (Dict[str, str]): The route's headers, shared with the route map.
        header_name (str): The configured spelling of the CSP header name.
    """

    route: str
    headers: Dict[str, str]
    header_name: str

    @property
    def is_wildcard(self) -> bool:
        return "*" in self.route


@dataclasses.dataclass
class WildcardCspRoute(CspRoute):
    pattern: Optional[re.Pattern] = None
    original_order: int = 0

    @property
    def specificity(self) -> int:
        return len(self.route.replace("*", ""))

    def matches(self, built_route: str) -> bool:
        return self.pattern.fullmatch(built_route) is not None


def compile_wildcard_pattern(route: str) -> re.Pattern:
    """Compile a route containing ``*`` into a regex where each ``*`` matches anything.

    The pattern is meant for ``fullmatch`` against a whole built route.
    """
    return re.compile(".*".join(re.escape(segment) for segment in route.split("*")))


def sort_wildcard_routes(csp_routes: List[CspRoute]) -> List[WildcardCspRoute]:
    """Compile wildcard routes, most specific first.

    Specificity is the route length without ``*``; ties keep declaration order.
    """
    wildcard_routes = [
        WildcardCspRoute(
            route=csp_route.route,
            headers=csp_route.headers,
            header_name=csp_route.header_name,
            pattern=compile_wildcard_pattern(csp_route.route),
            original_order=original_order,
        )
        for original_order, csp_route in enumerate(
            r for r in csp_routes if r.is_wildcard
        )
    ]
    return sorted(
        wildcard_routes, key=lambda r: (-r.specificity, r.original_order)
    )


def find_wildcard_template(
    wildcard_routes: List[WildcardCspRoute], built_route: str
) -> Optional[WildcardCspRoute]:
    for wildcard_route in wildcard_routes:
        if wildcard_route.matches(built_route):
            return wildcard_route
    return None


def normalize_route(route: str) -> str:
    """Strip trailing slashes, except from the bare root ``/``."""
    return "/" if route == "/" else route.rstrip("/")


def find_route_sources(
    sources_by_route: Dict[str, CspHashSources], route: str
) -> Optional[CspHashSources]:
    """Look up a route's hash bucket, falling back to a trailing-slash-insensitive match."""
    sources = sources_by_route.get(route)
    if sources is not None:
        return sources

    normalized = normalize_route(route)
    for built_route, built_sources in sources_by_route.items():
        if normalize_route(built_route) == normalized:
            return built_sources
    return None


def find_exact_route(routes: Dict[str, Dict[str, str]], built_route: str) -> Optional[str]:
    """Return the configured non-wildcard route key matching ``built_route``, if any."""
    normalized = normalize_route(built_route)
    for route in routes:
        if "*" in route:
            continue
        if normalize_route(route) == normalized:
            return route
    return None
