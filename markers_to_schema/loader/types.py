"""
Resolved type expressions.

The type checker turns field annotations into these values, which is all the
schema translator needs to know about a field's shape.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .package import Package


@dataclass(frozen=True)
class Basic:
    """A builtin scalar: str, int, float, bool, bytes, Any or None."""

    name: str = ""


@dataclass(frozen=True)
class Named:
    """A reference to a type declared in some package."""

    package: Package
    name: str = ""


@dataclass(frozen=True)
class ListOf:
    """A homogeneous list (list[T], Sequence[T])."""

    elem: TypeExpr


@dataclass(frozen=True)
class MapOf:
    """A mapping (dict[K, V], Mapping[K, V])."""

    key: TypeExpr
    value: TypeExpr


@dataclass(frozen=True)
class OptionalOf:
    """A value that may be None (Optional[T], T | None)."""

    elem: TypeExpr


TypeExpr = Basic | Named | ListOf | MapOf | OptionalOf

ANY = Basic("Any")
NONE = Basic("None")
STRING = Basic("str")
