"""Parsing, serialization and source-list merging of CSP header values."""

import dataclasses
from typing import Dict, Iterable, List, Sequence

from .logging_config import get_logger

logger = get_logger(__name__)


@dataclasses.dataclass
class ParsedCsp:
    """A CSP header value split into directives.

    Attributes:
        directives (Dict[str, str]): Directive name to its raw source-list string.
        order (List[str]): Directive names in first-seen order.
    """

    directives: Dict[str, str] = dataclasses.field(default_factory=dict)
    order: List[str] = dataclasses.field(default_factory=list)

    def get(self, name: str, default=None):
        return self.directives.get(name, default)

    def set(self, name: str, sources: str) -> None:
        if name not in self.directives:
            self.order.append(name)
        self.directives[name] = sources


def parse_csp_directives(csp: str) -> ParsedCsp:
    """Parse a CSP header value into an ordered directive map.

    Segments are split on ``;`` and the directive name is everything before
    the first space. Names are kept verbatim. A repeated directive overwrites
    the earlier value but keeps its original position.

    Args:
        csp (str): The CSP header value.

    Returns:
        ParsedCsp: The parsed directives.
    """
    parsed = ParsedCsp()

    for chunk in (part.strip() for part in csp.split(";")):
        if not chunk:
            continue
        name, _, sources = chunk.partition(" ")
        parsed.set(name, sources.strip())

    logger.debug(
        "Parsed CSP directives",
        directive_count=len(parsed.order),
        operation="parse_csp_directives",
    )
    return parsed


def _render_directive(name: str, sources: str) -> str:
    return f"{name} {sources}" if sources else name


def serialize_csp_directives(parsed: ParsedCsp) -> str:
    """Render parsed directives back into a header value.

    Directives are emitted in ``order``; any directive missing from the order
    list is appended afterwards. No trailing ``;`` is added.
    """
    rendered: List[str] = []
    seen = set()

    for name in parsed.order:
        if name not in parsed.directives or name in seen:
            continue
        seen.add(name)
        rendered.append(_render_directive(name, parsed.directives[name]))

    for name, sources in parsed.directives.items():
        if name in seen:
            continue
        rendered.append(_render_directive(name, sources))

    return "; ".join(rendered)


def split_csp_sources(value: str) -> List[str]:
    """Split a source-list string on whitespace."""
    return value.split()


def merge_csp_sources(
    existing_sources: Iterable[str],
    additional_sources: Sequence[str],
    strip_unsafe_inline: bool = False,
) -> str:
    """Merge additional sources into an existing source list.

    Order is first-seen across existing then additional sources and
    duplicates collapse, so merging the same additions twice is a no-op.
    ``'none'`` is dropped as soon as a real source is added, and
    ``'unsafe-inline'`` is dropped when ``strip_unsafe_inline`` is set.

    Args:
        existing_sources (Iterable[str]): Tokens currently in the directive.
        additional_sources (Sequence[str]): Tokens to add.
        strip_unsafe_inline (bool, optional): Remove ``'unsafe-inline'``. Defaults to False.

    Returns:
        str: The merged, space-joined source list.
    """
    merged: List[str] = []
    seen = set()
    has_additional_sources = any(additional_sources)

    for source in existing_sources:
        if not source:
            continue
        if has_additional_sources and source == "'none'":
            continue
        if strip_unsafe_inline and source == "'unsafe-inline'":
            continue
        if source not in seen:
            seen.add(source)
            merged.append(source)

    for source in additional_sources:
        if not source or source in seen:
            continue
        seen.add(source)
        merged.append(source)

    return " ".join(merged).strip()
