"""
Identities used as cache keys by the parser.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..loader.package import Package

# Prefix of schema references to other types
DEFINITIONS_PREFIX = "#/definitions/"

# Separator between package path and type name in a reference
REF_SEPARATOR = "~0"


@dataclass(frozen=True)
class TypeIdent:
    """Some type in a Package."""

    package: Package
    name: str

    def __str__(self) -> str:
        return f'"{self.package.pkg_path}".{self.name}'


@dataclass(frozen=True, order=True)
class GroupVersion:
    group: str
    version: str

    def __str__(self) -> str:
        return f"{self.group}/{self.version}"


@dataclass(frozen=True, order=True)
class GroupKind:
    group: str
    kind: str

    def __str__(self) -> str:
        return f"{self.kind}.{self.group}"


def type_ref_link(pkg_path: str, name: str) -> str:
    """Return the ``$ref`` value pointing at a type's schema."""
    return f"{DEFINITIONS_PREFIX}{pkg_path}{REF_SEPARATOR}{name}"


def parse_ref_link(link: str) -> tuple[str, str] | None:
    """Split a ``$ref`` value back into ``(package path, type name)``, or None if it is not a type link."""
    if not link.startswith(DEFINITIONS_PREFIX):
        return None
    pkg_path, sep, name = link[len(DEFINITIONS_PREFIX) :].rpartition(REF_SEPARATOR)
    if not sep or not name:
        return None
    return pkg_path, name
