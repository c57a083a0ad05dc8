"""Markers to Schema

A Python package for generating structural JSON schemata and
CustomResourceDefinitions from API types annotated with comment markers.
Types are indexed per package, references between types and packages are
resolved on demand, and every schema is memoized so that recursive types
terminate.
"""

__version__ = "0.1.0"

from .config import GeneratorConfig
from .crd import (
    GroupKind,
    GroupVersion,
    PackageOverride,
    Parser,
    SchemaState,
    TypeIdent,
    add_known_types,
    find_kube_kinds,
    generate_crds,
    new_parser,
)
from .errors import (
    ErrorList,
    LoadError,
    MarkerError,
    MarkersToSchemaError,
    RecursiveTypeError,
    SchemaError,
    TypeCheckError,
    UnknownTypeError,
)
from .loader import Package, PackageLoader, TypeChecker
from .report import ErrorReport, collect_errors, render_error_report

__all__ = [
    "Parser",
    "PackageOverride",
    "TypeIdent",
    "GroupKind",
    "GroupVersion",
    "SchemaState",
    "GeneratorConfig",
    "Package",
    "PackageLoader",
    "TypeChecker",
    "add_known_types",
    "find_kube_kinds",
    "generate_crds",
    "new_parser",
    "ErrorReport",
    "collect_errors",
    "render_error_report",
    "MarkersToSchemaError",
    "LoadError",
    "TypeCheckError",
    "MarkerError",
    "UnknownTypeError",
    "SchemaError",
    "RecursiveTypeError",
    "ErrorList",
]
