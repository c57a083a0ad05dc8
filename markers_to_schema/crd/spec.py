"""
Assembly of CustomResourceDefinitions.

A CRD gathers the flattened schema of one kind from every package of its
API group: each such package contributes one version. Markers on the kind's
root type then adjust names, scope and per-version settings.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING

from ..errors import SchemaError
from ..loader.package import Package
from ..logging import get_logger
from ..utils import pluralize
from .ident import GroupKind, TypeIdent
from .markers import ROOT_MARKER

if TYPE_CHECKING:
    from .parser import Parser

logger = get_logger("spec")

LIST_SUFFIX = "List"


def build_crd(parser: Parser, group_kind: GroupKind, max_desc_len: int | None = None) -> dict | None:
    """
    Build the CustomResourceDefinition of ``group_kind``.

    Args:
        parser: The parser holding group-versions, types and schemata
        group_kind: The kind to build a CRD for
        max_desc_len: Truncate descriptions to this length (0 removes them)

    Returns:
        The CRD, or None when no package of the group declares the kind
    """
    packages = [pkg for pkg, gv in parser.group_versions.items() if gv.group == group_kind.group]

    default_plural = pluralize(group_kind.kind.lower())
    crd = {
        "apiVersion": parser.config.crd_api_version,
        "kind": "CustomResourceDefinition",
        "metadata": {"name": f"{default_plural}.{group_kind.group}"},
        "spec": {
            "group": group_kind.group,
            "names": {
                "kind": group_kind.kind,
                "listKind": group_kind.kind + LIST_SUFFIX,
                "plural": default_plural,
                "singular": group_kind.kind.lower(),
            },
            "scope": "Namespaced",
            "versions": [],
        },
    }

    contributing: list[Package] = []
    for pkg in packages:
        ident = TypeIdent(package=pkg, name=group_kind.kind)
        if parser.lookup_type(pkg, group_kind.kind) is None:
            continue
        parser.need_flattened_schema_for(ident)
        flattened = parser.flattened_schemata.get(ident)
        if flattened is None:
            continue

        # don't mutate the cache
        full_schema = copy.deepcopy(flattened)
        if max_desc_len is not None:
            truncate_description(full_schema, max_desc_len)
        crd["spec"]["versions"].append(
            {
                "name": parser.group_versions[pkg].version,
                "served": True,
                "storage": False,
                "schema": {"openAPIV3Schema": full_schema},
            }
        )
        contributing.append(pkg)

    # nothing to actually generate
    if not contributing:
        return None

    # markers are applied *after* initial generation of objects
    for pkg in contributing:
        info = parser.lookup_type(pkg, group_kind.kind)
        version = parser.group_versions[pkg].version
        for name, values in info.markers.items():
            for value in values:
                apply = getattr(value, "apply_to_crd", None)
                if apply is None:
                    continue
                try:
                    apply(crd, version)
                except SchemaError as err:
                    pkg.add_error(SchemaError(f"{name}: {err}"))

    # the name has to take this form, so fix it if the plural was changed
    crd["metadata"]["name"] = f"{crd['spec']['names']['plural']}.{group_kind.group}"

    versions = crd["spec"]["versions"]
    versions.sort(key=lambda ver: ver["name"])

    # make sure we have *a* storage version (default it if we only have one)
    if len(versions) == 1:
        versions[0]["storage"] = True
    if not any(ver["storage"] for ver in versions):
        # there's no specific place for this error, so put it on the first package of the CRD
        contributing[0].add_error(SchemaError(f"CRD for {group_kind} has no storage version"))
    if not any(ver["served"] for ver in versions):
        names = [ver["name"] for ver in versions]
        contributing[0].add_error(SchemaError(f"CRD for {group_kind} with version(s) {names} does not serve any version"))

    logger.debug("generated CRD %s with %d version(s)", crd["metadata"]["name"], len(versions))
    return crd


def find_kube_kinds(parser: Parser) -> set[GroupKind]:
    """Return the kinds of every root type in a package that declares a group."""
    kinds = set()
    for ident, info in parser.types.items():
        gv = parser.group_versions.get(ident.package)
        if gv is None or not info.markers.get(ROOT_MARKER):
            continue
        if ident.name.endswith(LIST_SUFFIX):
            continue
        kinds.add(GroupKind(group=gv.group, kind=ident.name))
    return kinds


def truncate_description(schema: dict, max_len: int) -> None:
    """
    Truncate every description in ``schema`` to at most ``max_len`` characters.

    A truncated description is cut back to its last complete sentence when it
    has one. A ``max_len`` of 0 removes descriptions entirely.
    """
    desc = schema.get("description")
    if isinstance(desc, str):
        if max_len == 0:
            del schema["description"]
        elif len(desc) > max_len:
            cut = desc[:max_len]
            end = cut.rfind(".")
            schema["description"] = cut[: end + 1] if end > 0 else cut

    for value in schema.values():
        if isinstance(value, dict):
            truncate_description(value, max_len)
        elif isinstance(value, list):
            for item in value:
                if isinstance(item, dict):
                    truncate_description(item, max_len)
