"""
CRD module.

Contains the parser (type index, package loading with overrides,
group-version detection and memoized schema generation), the schema
translator, the flattener and CRD assembly.
"""

from __future__ import annotations

from .cache import SchemaCache, SchemaState
from .flatten import Flattener
from .gen import generate_crds, new_parser
from .ident import GroupKind, GroupVersion, TypeIdent, parse_ref_link, type_ref_link
from .known_types import KNOWN_PACKAGES, add_known_types
from .parser import PackageOverride, Parser, filter_types_for_crds
from .schema import SchemaContext, info_to_schema
from .spec import find_kube_kinds, truncate_description

__all__ = [
    "Parser",
    "PackageOverride",
    "filter_types_for_crds",
    "TypeIdent",
    "GroupKind",
    "GroupVersion",
    "type_ref_link",
    "parse_ref_link",
    "SchemaCache",
    "SchemaState",
    "SchemaContext",
    "info_to_schema",
    "Flattener",
    "KNOWN_PACKAGES",
    "add_known_types",
    "find_kube_kinds",
    "truncate_description",
    "generate_crds",
    "new_parser",
]
