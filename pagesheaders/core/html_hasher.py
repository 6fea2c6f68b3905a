"""Extraction of CSP hashes from inline content of built HTML.

Markup is scanned with regular expressions rather than parsed into a DOM.
Only inline ``<style>`` elements, ``style`` attributes and inline
``<script>`` elements without ``src`` are hashed.
"""

import base64
import dataclasses
import hashlib
import re
from typing import List, Set

from .config import CspOptions
from .logging_config import get_logger

logger = get_logger(__name__)

STYLE_TAG_REGEX = re.compile(r"<style([^>]*)>([\s\S]*?)</style>", re.IGNORECASE)
SCRIPT_TAG_REGEX = re.compile(r"<script([^>]*)>([\s\S]*?)</script>", re.IGNORECASE)
STYLE_ATTR_REGEX = re.compile(
    r"""style\s*=\s*(?:"([^"]*)"|'([^']*)'|([^>\s]+))""", re.IGNORECASE
)
INTEGRITY_HASH_REGEX = re.compile(
    r"""integrity\s*=\s*["'](sha256-[A-Za-z0-9+/]{43}=)["']""", re.IGNORECASE
)
HAS_SCRIPT_SRC_REGEX = re.compile(r"\ssrc\s*=", re.IGNORECASE)

# Applied in order; &amp; last so "&amp;quot;" decodes to "&quot;"
HTML_ENTITY_REPLACEMENTS = [
    (re.compile(r"&quot;|&#34;|&#x22;", re.IGNORECASE), '"'),
    (re.compile(r"&apos;|&#39;|&#x27;", re.IGNORECASE), "'"),
    (re.compile(r"&lt;", re.IGNORECASE), "<"),
    (re.compile(r"&gt;", re.IGNORECASE), ">"),
    (re.compile(r"&amp;", re.IGNORECASE), "&"),
]


def hash_sha256(value: str) -> str:
    """Compute a CSP hash of ``value`` in the form ``sha256-<base64>``."""
    digest = hashlib.sha256(value.encode("utf-8")).digest()
    return f"sha256-{base64.b64encode(digest).decode('ascii')}"


def decode_html_entities(value: str) -> str:
    for pattern, replacement in HTML_ENTITY_REPLACEMENTS:
        value = pattern.sub(replacement, value)
    return value


def quote_and_sort_hashes(hashes: Set[str]) -> List[str]:
    return [f"'{value}'" for value in sorted(hashes)]


@dataclasses.dataclass
class CspHashSets:
    """Unquoted hashes discovered in one or more HTML documents."""

    style_element_hashes: Set[str] = dataclasses.field(default_factory=set)
    style_attribute_hashes: Set[str] = dataclasses.field(default_factory=set)
    script_element_hashes: Set[str] = dataclasses.field(default_factory=set)

    def update(self, other: "CspHashSets") -> None:
        self.style_element_hashes |= other.style_element_hashes
        self.style_attribute_hashes |= other.style_attribute_hashes
        self.script_element_hashes |= other.script_element_hashes

    def is_empty(self) -> bool:
        return not (
            self.style_element_hashes
            or self.style_attribute_hashes
            or self.script_element_hashes
        )


@dataclasses.dataclass(frozen=True)
class CspHashSources:
    """Quoted, sorted hash sources ready to merge into CSP directives.

    Attributes:
        style_element_sources (List[str]): Hashes for ``style-src``.
        style_attribute_sources (List[str]): Hashes for ``style-src-attr``.
        script_element_sources (List[str]): Hashes for ``script-src``.
    """

    style_element_sources: List[str] = dataclasses.field(default_factory=list)
    style_attribute_sources: List[str] = dataclasses.field(default_factory=list)
    script_element_sources: List[str] = dataclasses.field(default_factory=list)

    @classmethod
    def from_hash_sets(cls, hash_sets: CspHashSets) -> "CspHashSources":
        return cls(
            style_element_sources=quote_and_sort_hashes(hash_sets.style_element_hashes),
            style_attribute_sources=quote_and_sort_hashes(
                hash_sets.style_attribute_hashes
            ),
            script_element_sources=quote_and_sort_hashes(
                hash_sets.script_element_hashes
            ),
        )

    @property
    def inline_style_hashes(self) -> int:
        return len(self.style_element_sources)

    @property
    def style_attribute_hashes(self) -> int:
        return len(self.style_attribute_sources)

    @property
    def inline_script_hashes(self) -> int:
        return len(self.script_element_sources)

    def has_any_sources(self) -> bool:
        return bool(
            self.style_element_sources
            or self.style_attribute_sources
            or self.script_element_sources
        )


def collect_csp_hashes_from_html(html: str, csp_options: CspOptions) -> CspHashSets:
    """Collect hashes of inline styles, style attributes and inline scripts.

    A ``sha256`` ``integrity`` attribute on a ``<style>`` or ``<script>``
    opening tag is taken as the element hash instead of hashing the body.
    Style attribute values are hashed as written and, when it differs, once
    more after HTML entity decoding.

    Args:
        html (str): Raw markup of one document.
        csp_options (CspOptions): Selects which categories are hashed.

    Returns:
        CspHashSets: Hashes found in the document.
    """
    hash_sets = CspHashSets()

    if csp_options.hash_style_elements:
        for match in STYLE_TAG_REGEX.finditer(html):
            attrs, content = match.group(1), match.group(2)
            integrity = INTEGRITY_HASH_REGEX.search(attrs)
            if integrity:
                hash_sets.style_element_hashes.add(integrity.group(1))
            elif content:
                hash_sets.style_element_hashes.add(hash_sha256(content))

    if csp_options.hash_inline_scripts:
        for match in SCRIPT_TAG_REGEX.finditer(html):
            attrs, content = match.group(1), match.group(2)
            if HAS_SCRIPT_SRC_REGEX.search(attrs):
                continue
            integrity = INTEGRITY_HASH_REGEX.search(attrs)
            if integrity:
                hash_sets.script_element_hashes.add(integrity.group(1))
            elif content.strip():
                hash_sets.script_element_hashes.add(hash_sha256(content))

    if csp_options.hash_style_attributes:
        for match in STYLE_ATTR_REGEX.finditer(html):
            raw_value = match.group(1) or match.group(2) or match.group(3) or ""
            if not raw_value:
                continue
            hash_sets.style_attribute_hashes.add(hash_sha256(raw_value))
            decoded_value = decode_html_entities(raw_value)
            if decoded_value != raw_value:
                hash_sets.style_attribute_hashes.add(hash_sha256(decoded_value))

    return hash_sets
