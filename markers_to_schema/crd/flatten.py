"""
Flattening of schemata.

Structural schemata cannot contain references, so before a schema is put
into a CustomResourceDefinition every ``$ref`` link is replaced by the
(flattened) schema it points at and every ``allOf`` is merged into its
parent.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

from ..errors import RecursiveTypeError, UnknownTypeError
from ..loader.package import Package
from .ident import TypeIdent, parse_ref_link

if TYPE_CHECKING:
    from .parser import Parser


class Flattener:
    """Inlines references using the parser's schemata."""

    def __init__(self, parser: Parser):
        self.parser = parser
        # Types currently being flattened, innermost last
        self._stack: list[TypeIdent] = []
        # Stack positions targeted by recursive references, in the order they were found
        self._hits: list[int] = []

    def flatten(self, ident: TypeIdent) -> dict | None:
        """
        Return the schema of ``ident`` with all references inlined, or None if it has no schema.

        A reference back to a type that is still being flattened cannot be
        inlined; it is kept as is and a RecursiveTypeError is recorded.

        The result is cached in ``parser.flattened_schemata`` unless it kept a
        reference to a type flattened *around* ``ident``: such a result only
        holds while those types are on the stack.
        """
        cached = self.parser.flattened_schemata.get(ident)
        if cached is not None:
            return cached

        self.parser.need_schema_for(ident)
        schema = self.parser.schemata.get(ident)
        if schema is None:
            return None

        depth = len(self._stack)
        first_hit = len(self._hits)
        self._stack.append(ident)
        try:
            flattened = self._flatten(schema, ident.package)
        finally:
            self._stack.pop()

        if all(index >= depth for index in self._hits[first_hit:]):
            self.parser.flattened_schemata[ident] = flattened
        if not self._stack:
            self._hits.clear()
        return flattened

    def _flatten(self, node: Any, pkg: Package) -> Any:
        if isinstance(node, list):
            return [self._flatten(item, pkg) for item in node]
        if not isinstance(node, dict):
            return node

        if "$ref" in node:
            out = self._resolve_ref(node["$ref"], pkg)
            if out is None:
                return copy.deepcopy(node)
            for key, value in node.items():
                if key != "$ref":
                    out[key] = self._flatten(value, pkg)
            return out

        out = {key: self._flatten(value, pkg) for key, value in node.items() if key != "allOf"}
        for member in self._flatten(node.get("allOf", []), pkg):
            merge_schema(out, member)
        return out

    def _resolve_ref(self, link: str, pkg: Package) -> dict | None:
        parsed = parse_ref_link(link)
        target_pkg = self.parser.package_for_path(parsed[0]) if parsed else None
        if target_pkg is None:
            pkg.add_error(UnknownTypeError(f"unable to resolve reference {link}"))
            return None

        ident = TypeIdent(package=target_pkg, name=parsed[1])
        if ident in self._stack:
            self._hits.append(self._stack.index(ident))
            pkg.add_error(RecursiveTypeError(f"recursive reference to {ident} cannot be flattened"))
            return None

        flattened = self.flatten(ident)
        if flattened is None:
            return None
        return copy.deepcopy(flattened)


def merge_schema(dst: dict, src: dict) -> None:
    """Merge the object schema ``src`` into ``dst``; keys already in ``dst`` win."""
    props = src.get("properties", {})
    if props:
        merged = dst.setdefault("properties", {})
        for name, prop in props.items():
            merged.setdefault(name, prop)

    required = src.get("required", [])
    if required:
        merged_required = dst.setdefault("required", [])
        merged_required.extend(name for name in required if name not in merged_required)

    for key, value in src.items():
        if key not in ("properties", "required", "description"):
            dst.setdefault(key, value)
