"""
Markers module.

Contains marker definitions, the comment collector and the per-type
information built from a package's declarations.
"""

from __future__ import annotations

from .collector import Collector, MarkerValues
from .registry import Definition, Registry, TargetType
from .type_info import FieldInfo, TypeInfo, TypeKind, each_type, package_markers

__all__ = [
    "Collector",
    "MarkerValues",
    "Definition",
    "Registry",
    "TargetType",
    "FieldInfo",
    "TypeInfo",
    "TypeKind",
    "each_type",
    "package_markers",
]
