"""
Markers understood by CRD generation.

Validation markers can be written on types and on fields and are applied
to the generated schema; CRD markers are written on the root type of a
resource and are applied to the assembled CustomResourceDefinition.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import SchemaError
from ..markers.registry import Registry, TargetType

NUMERIC_TYPES = ("integer", "number")


def _require_type(schema: dict, marker: str, allowed: tuple[str, ...]) -> None:
    found = schema.get("type", "reference" if "$ref" in schema else "unknown")
    if found not in allowed:
        raise SchemaError(f"must apply {marker} to a {' or '.join(allowed)} value, found {found}")


class Minimum(int):
    def apply_to_schema(self, schema: dict) -> None:
        _require_type(schema, "minimum", NUMERIC_TYPES)
        schema["minimum"] = int(self)


class Maximum(int):
    def apply_to_schema(self, schema: dict) -> None:
        _require_type(schema, "maximum", NUMERIC_TYPES)
        schema["maximum"] = int(self)


@dataclass(frozen=True)
class ExclusiveMinimum:
    value: bool = True

    def apply_to_schema(self, schema: dict) -> None:
        _require_type(schema, "exclusiveMinimum", NUMERIC_TYPES)
        schema["exclusiveMinimum"] = self.value


@dataclass(frozen=True)
class ExclusiveMaximum:
    value: bool = True

    def apply_to_schema(self, schema: dict) -> None:
        _require_type(schema, "exclusiveMaximum", NUMERIC_TYPES)
        schema["exclusiveMaximum"] = self.value


class MinLength(int):
    def apply_to_schema(self, schema: dict) -> None:
        _require_type(schema, "minLength", ("string",))
        schema["minLength"] = int(self)


class MaxLength(int):
    def apply_to_schema(self, schema: dict) -> None:
        _require_type(schema, "maxLength", ("string",))
        schema["maxLength"] = int(self)


class Pattern(str):
    def apply_to_schema(self, schema: dict) -> None:
        _require_type(schema, "pattern", ("string",))
        schema["pattern"] = str(self)


class MinItems(int):
    def apply_to_schema(self, schema: dict) -> None:
        _require_type(schema, "minItems", ("array",))
        schema["minItems"] = int(self)


class MaxItems(int):
    def apply_to_schema(self, schema: dict) -> None:
        _require_type(schema, "maxItems", ("array",))
        schema["maxItems"] = int(self)


@dataclass(frozen=True)
class UniqueItems:
    value: bool = True

    def apply_to_schema(self, schema: dict) -> None:
        _require_type(schema, "uniqueItems", ("array",))
        schema["uniqueItems"] = self.value


class Enum(list):
    def apply_to_schema(self, schema: dict) -> None:
        schema["enum"] = list(self)


class Format(str):
    def apply_to_schema(self, schema: dict) -> None:
        schema["format"] = str(self)


class Type(str):
    def apply_to_schema(self, schema: dict) -> None:
        schema["type"] = str(self)


@dataclass(frozen=True)
class Nullable:
    def apply_to_schema(self, schema: dict) -> None:
        schema["nullable"] = True


@dataclass(frozen=True)
class Optional:
    pass


@dataclass(frozen=True)
class Required:
    pass


@dataclass(frozen=True)
class Resource:
    """Configures naming and scope of the CRD of a root type."""

    path: str = ""
    short_name: list[str] | None = None
    categories: list[str] | None = None
    singular: str = ""
    scope: str = ""

    def apply_to_crd(self, crd: dict, version: str) -> None:
        spec = crd["spec"]
        names = spec["names"]
        if self.path:
            names["plural"] = self.path
        if self.singular:
            names["singular"] = self.singular
        if self.short_name:
            names["shortNames"] = [str(name) for name in self.short_name]
        if self.categories:
            names["categories"] = [str(category) for category in self.categories]
        if self.scope:
            if self.scope not in ("Cluster", "Namespaced"):
                raise SchemaError(f"invalid resource scope {self.scope!r}, expected Cluster or Namespaced")
            spec["scope"] = self.scope


@dataclass(frozen=True)
class StorageVersion:
    """Marks the version a root type belongs to as the storage version."""

    def apply_to_crd(self, crd: dict, version: str) -> None:
        for ver in crd["spec"]["versions"]:
            if ver["name"] == version:
                ver["storage"] = True


@dataclass(frozen=True)
class UnservedVersion:
    """Marks the version a root type belongs to as not served."""

    def apply_to_crd(self, crd: dict, version: str) -> None:
        for ver in crd["spec"]["versions"]:
            if ver["name"] == version:
                ver["served"] = False


@dataclass(frozen=True)
class StatusSubresource:
    """Enables the status subresource for the version a root type belongs to."""

    def apply_to_crd(self, crd: dict, version: str) -> None:
        for ver in crd["spec"]["versions"]:
            if ver["name"] == version:
                ver.setdefault("subresources", {})["status"] = {}


VALIDATION_MARKERS: dict[str, type] = {
    "kubebuilder:validation:Minimum": Minimum,
    "kubebuilder:validation:Maximum": Maximum,
    "kubebuilder:validation:ExclusiveMinimum": ExclusiveMinimum,
    "kubebuilder:validation:ExclusiveMaximum": ExclusiveMaximum,
    "kubebuilder:validation:MinLength": MinLength,
    "kubebuilder:validation:MaxLength": MaxLength,
    "kubebuilder:validation:Pattern": Pattern,
    "kubebuilder:validation:MinItems": MinItems,
    "kubebuilder:validation:MaxItems": MaxItems,
    "kubebuilder:validation:UniqueItems": UniqueItems,
    "kubebuilder:validation:Enum": Enum,
    "kubebuilder:validation:Format": Format,
    "kubebuilder:validation:Type": Type,
    "nullable": Nullable,
}

FIELD_ONLY_MARKERS: dict[str, type] = {
    "optional": Optional,
    "kubebuilder:validation:Optional": Optional,
    "kubebuilder:validation:Required": Required,
}

CRD_MARKERS: dict[str, type] = {
    "kubebuilder:resource": Resource,
    "kubebuilder:storageversion": StorageVersion,
    "kubebuilder:unservedversion": UnservedVersion,
    "kubebuilder:subresource:status": StatusSubresource,
}

ROOT_MARKER = "kubebuilder:object:root"
GROUP_NAME_MARKER = "groupName"
VERSION_NAME_MARKER = "versionName"


def register(registry: Registry) -> None:
    """Register every marker used by CRD generation."""
    registry.define(GROUP_NAME_MARKER, TargetType.PACKAGE, str, "the API group of the types in this package")
    registry.define(VERSION_NAME_MARKER, TargetType.PACKAGE, str, "the API version (defaults to the package name)")

    for name, output in VALIDATION_MARKERS.items():
        registry.define(name, TargetType.FIELD, output)
        registry.define(name, TargetType.TYPE, output)
    for name, output in FIELD_ONLY_MARKERS.items():
        registry.define(name, TargetType.FIELD, output)
    for name, output in CRD_MARKERS.items():
        registry.define(name, TargetType.TYPE, output)
    registry.define(ROOT_MARKER, TargetType.TYPE, bool, "marks a type as the root object of a resource")
