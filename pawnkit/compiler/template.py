"""
Version templates for download locators and archive paths.

A template is literal text with zero or more ``{version}`` placeholders.
``{{`` and ``}}`` stand for literal braces. Nothing else may appear inside
braces, which keeps resolution total: a parsed template always resolves.

Example:
    >>> Template("pawnc-{version}-linux/bin/pawncc").resolve("3.10.10")
    'pawnc-3.10.10-linux/bin/pawncc'
"""

import re
from typing import Tuple, Union

from pawnkit.core.exceptions import InvalidVersionError, TemplateError

PLACEHOLDER = "{version}"

_TOKEN_RE = re.compile(r"\{\{|\}\}|\{version\}|\{|\}")
_FORBIDDEN_VERSION_CHARS = set("{}/\\")


class _Placeholder:
    """Marker for the version substitution point."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "<version>"


VERSION = _Placeholder()

Segment = Union[str, _Placeholder]


class Template:
    """
    Parsed template: an immutable sequence of literal and placeholder segments.

    Raises:
        TemplateError: On unknown or unbalanced brace syntax
    """

    __slots__ = ("source", "segments")

    def __init__(self, source: str):
        if not isinstance(source, str):
            raise TemplateError(repr(source), "template must be a string")
        self.source = source
        self.segments: Tuple[Segment, ...] = _parse(source)

    @property
    def has_placeholder(self) -> bool:
        return any(seg is VERSION for seg in self.segments)

    def resolve(self, version: str) -> str:
        """Substitute ``version`` at every placeholder."""
        validate_version(version)
        return "".join(version if seg is VERSION else seg for seg in self.segments)

    def __eq__(self, other) -> bool:
        return isinstance(other, Template) and other.source == self.source

    def __hash__(self) -> int:
        return hash(self.source)

    def __repr__(self) -> str:
        return f"Template({self.source!r})"


def _parse(source: str) -> Tuple[Segment, ...]:
    segments = []
    literal = []
    pos = 0

    for match in _TOKEN_RE.finditer(source):
        literal.append(source[pos : match.start()])
        token = match.group()
        pos = match.end()

        if token == "{{":
            literal.append("{")
        elif token == "}}":
            literal.append("}")
        elif token == PLACEHOLDER:
            if literal:
                segments.append("".join(literal))
                literal = []
            segments.append(VERSION)
        else:
            raise TemplateError(
                source,
                f"unexpected {token!r} at offset {match.start()} "
                f"(only {PLACEHOLDER} is supported)",
            )

    literal.append(source[pos:])
    tail = "".join(literal)
    if tail:
        segments.append(tail)

    return tuple(segments)


def validate_version(version: str) -> str:
    """
    Check that a version string is safe to substitute into paths and URLs.

    Raises:
        InvalidVersionError: If the version is empty or contains braces,
            path separators or whitespace
    """
    if not isinstance(version, str) or not version:
        raise InvalidVersionError(str(version), "version cannot be empty")
    if version in (".", ".."):
        raise InvalidVersionError(version, "version cannot be a relative path")
    bad = _FORBIDDEN_VERSION_CHARS.intersection(version)
    if bad:
        raise InvalidVersionError(
            version, f"contains forbidden characters: {''.join(sorted(bad))}"
        )
    if any(ch.isspace() for ch in version):
        raise InvalidVersionError(version, "contains whitespace")
    return version


def resolve(template: Union[str, Template], version: str) -> str:
    """
    Resolve a template string for one version.

    Args:
        template: Template source or parsed Template
        version: Concrete compiler version (e.g. "3.10.10")

    Returns:
        The template with every placeholder replaced

    Raises:
        TemplateError: If the template is malformed
        InvalidVersionError: If the version is unusable
    """
    if not isinstance(template, Template):
        template = Template(template)
    return template.resolve(version)
