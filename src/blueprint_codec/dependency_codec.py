"""
Codec for blueprint dependency lines.

A dependency line is one of two shapes, chosen by its first character:

    - [CATEGORY] NAME [VERSION]
    | [CATEGORY] NAME [VERSION] {EXTRA1} {EXTRA2}

Whitespace runs between tokens are tolerated on input; output is always the
canonical single-space form. Brace groups missing from an extended line
decode as empty strings and are written back as ``{}``.
"""

import re

from .dependency import Category, DependencyEntry, RowShape
from .error_handling import (
    MalformedDependencyError,
    UnknownCategoryError,
    UnknownPrefixError,
)

_PREFIXES = {shape.prefix: shape for shape in RowShape}

_BASIC_PATTERN = re.compile(
    r"\s*\[\s*(?P<category>[^\[\]\s]+)\s*\]"
    r"\s*(?P<name>[^\s\[\]{}]+)"
    r"\s*\[(?P<version>[^\]]*)\]\s*",
    re.DOTALL,
)

_EXTENDED_PATTERN = re.compile(
    _BASIC_PATTERN.pattern
    + r"(?:\{(?P<extra1>[^}]*)\}\s*(?:\{(?P<extra2>[^}]*)\}\s*)?)?",
    re.DOTALL,
)


def parse_dependency_line(line: str, case_sensitive: bool = False) -> DependencyEntry:
    """
    Decode one dependency line.

    Args:
        line: Raw line text
        case_sensitive: Require the canonical spelling of the category tag

    Returns:
        DependencyEntry: The decoded entry

    Raises:
        UnknownPrefixError: Line does not start with '-' or '|'
        MalformedDependencyError: Remainder does not match the grammar
        UnknownCategoryError: Category tag is not a known category
    """
    stripped = line.strip()
    shape = _PREFIXES.get(stripped[:1])
    if shape is None:
        raise UnknownPrefixError(
            f"Dependency line must start with '-' or '|': {line!r}",
            line=line,
            value=stripped[:1],
        )

    pattern = _BASIC_PATTERN if shape is RowShape.BASIC else _EXTENDED_PATTERN
    match = pattern.fullmatch(stripped[1:])
    if match is None:
        raise MalformedDependencyError(
            f"Malformed {shape.name.lower()} dependency line: {line!r}", line=line
        )

    token = match.group("category")
    category = Category.from_token(token, case_sensitive=case_sensitive)
    if category is None:
        raise UnknownCategoryError(
            f"Unknown dependency category: {token!r}", line=line, value=token
        )

    name = match.group("name")
    version = match.group("version").strip()
    if shape is RowShape.BASIC:
        return DependencyEntry.basic(category, name, version)

    return DependencyEntry.extended(
        category,
        name,
        version,
        (match.group("extra1") or "").strip(),
        (match.group("extra2") or "").strip(),
    )


def render_dependency_line(entry: DependencyEntry) -> str:
    """Encode a dependency entry as its canonical line."""
    line = (
        f"{entry.shape.prefix} [{entry.category.value}] "
        f"{entry.name} [{entry.version_or_path}]"
    )
    if entry.shape is RowShape.EXTENDED:
        line += f" {{{entry.extra1}}} {{{entry.extra2}}}"
    return line


class DependencyCodec:
    """Line codec bound to a category-matching policy."""

    def __init__(self, case_sensitive: bool = False):
        self.case_sensitive = case_sensitive

    def parse(self, line: str) -> DependencyEntry:
        return parse_dependency_line(line, case_sensitive=self.case_sensitive)

    def render(self, entry: DependencyEntry) -> str:
        return render_dependency_line(entry)
