"""
Type information extracted from a package's declarations.

``each_type`` visits every type-like declaration of a package (classes and
NewType aliases) and hands a TypeInfo describing its shape and markers to a
callback.
"""

from __future__ import annotations

import ast
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..errors import ErrorList, NodeError, SchemaError
from ..loader.package import Package, SourceFile
from ..loader.syntax import Tag, is_enum_class, is_interface_class, new_type_call, parse_ast_tag
from .collector import Collector, MarkerValues
from .registry import TargetType


class TypeKind(str, Enum):
    STRUCT = "struct"
    INTERFACE = "interface"
    ENUM = "enum"
    ALIAS = "alias"


@dataclass(frozen=True, eq=False)
class FieldInfo:
    """A field of a struct-kind type."""

    name: str
    tag: Tag
    doc: str = ""
    markers: MarkerValues = field(default_factory=MarkerValues)
    raw_field: ast.AnnAssign | None = None


@dataclass(frozen=True, eq=False)
class TypeInfo:
    """A type-like declaration: its name, shape and markers."""

    name: str
    kind: TypeKind
    doc: str = ""
    markers: MarkerValues = field(default_factory=MarkerValues)
    fields: tuple[FieldInfo, ...] = ()
    enum_values: tuple[Any, ...] = ()
    underlying: ast.expr | None = None  # NewType target of alias-kind types
    raw_spec: ast.stmt | None = None
    source: SourceFile | None = None


def package_markers(collector: Collector, pkg: Package) -> MarkerValues:
    """
    Return the package-level markers of ``pkg``.

    Raises:
        ErrorList: One or more markers could not be decoded
    """
    values, errors = collector.package_markers(pkg)
    if errors:
        raise ErrorList(errors)
    return values


def each_type(collector: Collector, pkg: Package, callback: Callable[[TypeInfo], None]) -> None:
    """
    Call ``callback`` with the TypeInfo of every type declared in ``pkg``.

    Every type is visited; a marker that fails to decode is left out of its
    type's markers, as is an enum member without a literal value, and both
    are reported once all types have been visited.

    Raises:
        ErrorList: Markers or enum members of one or more types could not be read
    """
    errors: list[Exception] = []
    for source in pkg.files:
        if source.module is None:
            continue
        for stmt in source.module.body:
            if isinstance(stmt, ast.ClassDef):
                info, info_errors = _class_info(collector, source, stmt)
            elif new_type_call(stmt) is not None:
                info, info_errors = _alias_info(collector, source, stmt)
            else:
                continue
            errors.extend(info_errors)
            callback(info)
    if errors:
        raise ErrorList(errors)


def _class_info(collector: Collector, source: SourceFile, node: ast.ClassDef) -> tuple[TypeInfo, list[Exception]]:
    markers, doc_lines, errors = collector.markers_for(source, node, TargetType.TYPE)
    doc = ast.get_docstring(node) or "\n".join(doc_lines)

    if is_interface_class(node):
        kind = TypeKind.INTERFACE
    elif is_enum_class(node):
        kind = TypeKind.ENUM
    else:
        kind = TypeKind.STRUCT

    fields = []
    enum_values = []
    for stmt in node.body:
        if kind == TypeKind.STRUCT and isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
            field_markers, field_doc, field_errors = collector.markers_for(source, stmt, TargetType.FIELD)
            errors.extend(field_errors)
            fields.append(
                FieldInfo(
                    name=stmt.target.id,
                    tag=parse_ast_tag(stmt),
                    doc="\n".join(field_doc),
                    markers=field_markers,
                    raw_field=stmt,
                )
            )
        elif kind == TypeKind.ENUM and isinstance(stmt, ast.Assign):
            if isinstance(stmt.value, ast.Constant):
                enum_values.append(stmt.value.value)
            else:
                member = ast.unparse(stmt.targets[0])
                err = SchemaError(f"enum member {node.name}.{member} needs a literal value, found {ast.unparse(stmt.value)}")
                errors.append(NodeError(err, str(source.path), stmt.lineno, stmt.col_offset))

    info = TypeInfo(
        name=node.name,
        kind=kind,
        doc=doc,
        markers=markers,
        fields=tuple(fields),
        enum_values=tuple(enum_values),
        raw_spec=node,
        source=source,
    )
    return info, errors


def _alias_info(collector: Collector, source: SourceFile, node: ast.Assign) -> tuple[TypeInfo, list[Exception]]:
    name, underlying = new_type_call(node)
    markers, doc_lines, errors = collector.markers_for(source, node, TargetType.TYPE)
    info = TypeInfo(
        name=name,
        kind=TypeKind.ALIAS,
        doc="\n".join(doc_lines),
        markers=markers,
        underlying=underlying,
        raw_spec=node,
        source=source,
    )
    return info, errors
