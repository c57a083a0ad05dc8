"""
Loader module.

Contains the package loader, the annotation type checker and the syntax
helpers shared with the marker collector.
"""

from __future__ import annotations

from .checker import TypeChecker
from .loader import PackageLoader
from .package import Package, SourceFile
from .paths import non_vendor_path
from .syntax import JSONTag, Tag, parse_ast_tag, parse_json_tag
from .types import Basic, ListOf, MapOf, Named, OptionalOf, TypeExpr

__all__ = [
    "PackageLoader",
    "Package",
    "SourceFile",
    "TypeChecker",
    "non_vendor_path",
    "Tag",
    "JSONTag",
    "parse_ast_tag",
    "parse_json_tag",
    "Basic",
    "Named",
    "ListOf",
    "MapOf",
    "OptionalOf",
    "TypeExpr",
]
