"""
Translation of TypeInfo into JSON schemata.

References to other named types are emitted as ``$ref`` links and the
referenced types are requested from the parser, which builds and caches
their schemata. Inlining those links is the flattener's job.
"""

from __future__ import annotations

import ast
from typing import TYPE_CHECKING, Any

from ..config import GeneratorConfig
from ..errors import NodeError, SchemaError, TypeCheckError
from ..loader.package import Package
from ..loader.syntax import JSONTag, parse_json_tag
from ..loader.types import Basic, ListOf, MapOf, Named, OptionalOf, TypeExpr
from ..logging import get_logger
from ..markers.collector import MarkerValues
from ..markers.type_info import FieldInfo, TypeInfo, TypeKind
from .ident import TypeIdent, type_ref_link

if TYPE_CHECKING:
    from .parser import Parser

logger = get_logger("schema")

JSON_TAG = "json"

OPTIONAL_MARKERS = ("optional", "kubebuilder:validation:Optional")
REQUIRED_MARKER = "kubebuilder:validation:Required"

BASIC_SCHEMATA: dict[str, dict[str, Any]] = {
    "str": {"type": "string"},
    "int": {"type": "integer"},
    "bool": {"type": "boolean"},
    "bytes": {"type": "string", "format": "byte"},
    "Any": {"x-kubernetes-preserve-unknown-fields": True},
}

DANGEROUS_FLOAT_MESSAGE = (
    "found float, the usage of which is highly discouraged, as support for them varies across "
    "languages. Please consider serializing your float as string instead. If you are really sure "
    "you want to use them, set allow_dangerous_types"
)


class SchemaContext:
    """The package and type whose schema is being built."""

    def __init__(self, pkg: Package, parser: Parser, info: TypeInfo | None = None):
        self.pkg = pkg
        self.parser = parser
        self.info = info

    def for_info(self, info: TypeInfo) -> SchemaContext:
        """Return a context for building the schema of ``info``."""
        return SchemaContext(self.pkg, self.parser, info)

    @property
    def config(self) -> GeneratorConfig:
        return self.parser.config

    def need_schema_for(self, ident: TypeIdent) -> None:
        self.parser.need_schema_for(ident)

    def add_error(self, err: Exception, node: ast.AST | None = None) -> None:
        """Record an error against the package, positioned at ``node`` when given."""
        if node is not None and self.info is not None and self.info.source is not None:
            err = NodeError(err, str(self.info.source.path), node.lineno, node.col_offset)
        self.pkg.add_error(err)


def info_to_schema(ctx: SchemaContext) -> dict:
    """
    Build the schema of the type in ``ctx``.

    Args:
        ctx: A context returned by ``SchemaContext.for_info``

    Returns:
        The schema, with references to other types left as ``$ref`` links
    """
    info = ctx.info
    if info.kind == TypeKind.STRUCT:
        schema = struct_to_schema(ctx)
    elif info.kind == TypeKind.ENUM:
        schema = enum_to_schema(info)
    elif info.kind == TypeKind.ALIAS:
        texpr = ctx.pkg.type_of(info.underlying)
        if texpr is None:
            ctx.add_error(TypeCheckError(f"unable to resolve the underlying type of {info.name}"), info.raw_spec)
            schema = {}
        else:
            schema = type_to_schema(ctx, texpr, info.raw_spec)
    else:
        ctx.add_error(SchemaError(f"cannot generate a schema for {info.kind.value} type {info.name}"), info.raw_spec)
        schema = {}

    apply_markers(ctx, info.markers, schema, info.raw_spec)
    if info.doc:
        schema["description"] = info.doc
    return schema


def struct_to_schema(ctx: SchemaContext) -> dict:
    """Build an object schema from the tagged fields of a struct-kind type."""
    info = ctx.info
    properties: dict[str, dict] = {}
    required: list[str] = []
    all_of: list[dict] = []

    for field in info.fields:
        raw_tag = field.tag.lookup(JSON_TAG)
        if raw_tag is None:
            # fields without a json tag use custom serialization
            logger.debug("skipping field %s.%s without a %s tag", info.name, field.name, JSON_TAG)
            continue
        tag = parse_json_tag(raw_tag)
        if tag.name == "-":
            continue

        texpr = ctx.pkg.type_of(field.raw_field.annotation)
        if texpr is None:
            ctx.add_error(TypeCheckError(f"unable to resolve the type of field {info.name}.{field.name}"), field.raw_field)
            continue

        if tag.inline:
            embedded = texpr.elem if isinstance(texpr, OptionalOf) else texpr
            if not isinstance(embedded, Named):
                ctx.add_error(SchemaError(f"inline field {field.name} must be a named type"), field.raw_field)
                continue
            all_of.append(type_to_schema(ctx, embedded, field.raw_field))
            continue

        prop = type_to_schema(ctx, texpr, field.raw_field)
        apply_markers(ctx, field.markers, prop, field.raw_field)
        if field.doc:
            prop["description"] = field.doc

        properties[tag.name or field.name] = prop
        if is_required(field, tag, texpr):
            required.append(tag.name or field.name)

    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    if all_of:
        schema["allOf"] = all_of
    return schema


def is_required(field: FieldInfo, tag: JSONTag, texpr: TypeExpr) -> bool:
    if REQUIRED_MARKER in field.markers:
        return True
    if tag.omitempty or isinstance(texpr, OptionalOf):
        return False
    return not any(name in field.markers for name in OPTIONAL_MARKERS)


def enum_to_schema(info: TypeInfo) -> dict:
    values = list(info.enum_values)
    if values and all(isinstance(v, int) and not isinstance(v, bool) for v in values):
        return {"type": "integer", "enum": values}
    return {"type": "string", "enum": [str(v) for v in values]}


def type_to_schema(ctx: SchemaContext, texpr: TypeExpr, node: ast.AST | None = None) -> dict:
    """Build the schema of a resolved type expression."""
    if isinstance(texpr, OptionalOf):
        return type_to_schema(ctx, texpr.elem, node)

    if isinstance(texpr, Basic):
        if texpr.name == "float":
            if not ctx.config.allow_dangerous_types:
                ctx.add_error(SchemaError(DANGEROUS_FLOAT_MESSAGE), node)
                return {}
            return {"type": "number"}
        if texpr.name not in BASIC_SCHEMATA:
            ctx.add_error(SchemaError(f"unsupported type {texpr.name}"), node)
            return {}
        return dict(BASIC_SCHEMATA[texpr.name])

    if isinstance(texpr, ListOf):
        return {"type": "array", "items": type_to_schema(ctx, texpr.elem, node)}

    if isinstance(texpr, MapOf):
        key = texpr.key.elem if isinstance(texpr.key, OptionalOf) else texpr.key
        if key != Basic("str") and not _is_string_alias(ctx, key):
            ctx.add_error(SchemaError("map keys must be strings"), node)
            return {}
        return {"type": "object", "additionalProperties": type_to_schema(ctx, texpr.value, node)}

    if isinstance(texpr, Named):
        ident = TypeIdent(package=texpr.package, name=texpr.name)
        ctx.need_schema_for(ident)
        return {"$ref": type_ref_link(texpr.package.pkg_path, texpr.name)}

    ctx.add_error(SchemaError(f"unsupported type {texpr!r}"), node)
    return {}


def apply_markers(ctx: SchemaContext, markers: MarkerValues, schema: dict, node: ast.AST | None = None) -> None:
    """Apply every schema-altering marker value to ``schema``."""
    for name, values in markers.items():
        for value in values:
            apply = getattr(value, "apply_to_schema", None)
            if apply is None:
                continue
            try:
                apply(schema)
            except SchemaError as err:
                ctx.add_error(SchemaError(f"{name}: {err}"), node)


def _is_string_alias(ctx: SchemaContext, texpr: TypeExpr) -> bool:
    if not isinstance(texpr, Named):
        return False
    ctx.parser.need_package(texpr.package)
    info = ctx.parser.lookup_type(texpr.package, texpr.name)
    if info is None:
        return False
    if info.kind == TypeKind.ENUM:
        return enum_to_schema(info)["type"] == "string"
    return info.kind == TypeKind.ALIAS and texpr.package.type_of(info.underlying) == Basic("str")
