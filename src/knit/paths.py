"""
Path shape helpers for submodule operations

Two pieces of structure are discovered from strings rather than from git
itself:

- whether a submodule path names a submodule nested inside another one
  (``src/outer/src/inner``), which decides where a bump is committed;
- which nested submodule a staging failure refers to, read from git's
  ``... is in submodule '<path>'`` diagnostic.
"""

import re
from dataclasses import dataclass
from typing import Optional, Union

# Two consecutive submodule-style segments: <outer>/<inner>
NESTED_SUBMODULE_PATTERN = re.compile(r"(src/.*)/(src/.*)")

SUBMODULE_DIAGNOSTIC_PATTERN = re.compile(
    r"^.*is in submodule '(.*)'", re.MULTILINE
)


@dataclass(frozen=True)
class FlatPath:
    """A submodule path owned directly by the root repository"""

    path: str


@dataclass(frozen=True)
class NestedPath:
    """A submodule path owned by another submodule

    Attributes:
        outer: Path of the owning submodule, relative to the root
        inner: Path of the submodule, relative to ``outer``
    """

    outer: str
    inner: str


SubmodulePath = Union[FlatPath, NestedPath]


def split_nested_path(path: str) -> SubmodulePath:
    """Decompose a submodule path into its owning level

    Returns NestedPath when the path contains two submodule-style segments,
    FlatPath otherwise.
    """
    match = NESTED_SUBMODULE_PATTERN.search(path)
    if match is None:
        return FlatPath(path)
    return NestedPath(outer=match.group(1), inner=match.group(2))


@dataclass(frozen=True)
class SubmoduleDiagnostic:
    """Result of scanning staging output for a nested submodule"""

    submodule: Optional[str]

    @property
    def found(self) -> bool:
        return self.submodule is not None


def parse_submodule_diagnostic(output: Union[bytes, str]) -> SubmoduleDiagnostic:
    """Extract the submodule named by an ``is in submodule '<X>'`` message"""
    if isinstance(output, bytes):
        output = output.decode("utf-8", errors="replace")

    match = SUBMODULE_DIAGNOSTIC_PATTERN.search(output)
    if match is None or not match.group(1):
        return SubmoduleDiagnostic(submodule=None)
    return SubmoduleDiagnostic(submodule=match.group(1))
