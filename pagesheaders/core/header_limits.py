"""Enforcement of the maximum rendered header line length."""

import dataclasses
from typing import Dict, List

from .config import CspOptions
from .logging_config import ErrorCodes, get_logger

logger = get_logger(__name__)


@dataclasses.dataclass(frozen=True)
class HeaderLineOverflow:
    route: str
    header_name: str
    length: int


class HeaderOverflowError(Exception):
    """Raised when a rendered header line exceeds the limit and overflow is ``error``."""

    def __init__(self, message: str, overflows: List[HeaderLineOverflow], limit: int):
        super().__init__(message)
        self.overflows = overflows
        self.limit = limit


def render_header_line(header_name: str, header_value: str) -> str:
    return f"  {header_name}: {header_value}"


def find_overflowing_lines(
    routes: Dict[str, Dict[str, str]], max_length: int
) -> List[HeaderLineOverflow]:
    overflows = []
    for route, headers in routes.items():
        for header_name, header_value in headers.items():
            length = len(render_header_line(header_name, header_value))
            if length > max_length:
                overflows.append(HeaderLineOverflow(route, header_name, length))
    return overflows


def enforce_header_line_length_limit(
    routes: Dict[str, Dict[str, str]], csp_options: CspOptions
) -> None:
    """Check every rendered header line against ``max_header_line_length``.

    Args:
        routes (Dict[str, Dict[str, str]]): The final route to headers mapping.
        csp_options (CspOptions): Holds the limit and the overflow policy.

    Raises:
        HeaderOverflowError: If a line is too long and the policy is ``error``.
    """
    limit = csp_options.max_header_line_length
    overflows = find_overflowing_lines(routes, limit)
    if not overflows:
        return

    first = overflows[0]
    message = (
        f"Header line length overflow: {first.length} characters for "
        f'"{first.route}" -> "{first.header_name}". Max allowed is {limit}. '
        f"Found {len(overflows)} overflowing line(s)."
    )

    if csp_options.overflow == "warn":
        logger.warning(
            message,
            route=first.route,
            header_name=first.header_name,
            length=first.length,
            limit=limit,
            overflow_count=len(overflows),
            error_code=ErrorCodes.HEADER_OVERFLOW,
            operation="enforce_header_line_length_limit",
        )
        return

    logger.error(
        message,
        route=first.route,
        header_name=first.header_name,
        length=first.length,
        limit=limit,
        overflow_count=len(overflows),
        error_code=ErrorCodes.HEADER_OVERFLOW,
        operation="enforce_header_line_length_limit",
    )
    raise HeaderOverflowError(message, overflows, limit)
