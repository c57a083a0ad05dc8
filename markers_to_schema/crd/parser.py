"""
The CRD parser.

Indexes the types of packages, derives the group-version of each package
from its markers and generates JSON schemata for types on demand. Every
``need_*`` method caches its result, so any of them may be called any
number of times; errors are recorded against packages instead of raised.
"""

from __future__ import annotations

import ast
from collections.abc import Callable

from ..config import GeneratorConfig
from ..errors import ErrorList, UnknownTypeError
from ..loader.checker import TypeChecker
from ..loader.package import Package
from ..loader.paths import non_vendor_path
from ..loader.syntax import is_interface_class, parse_ast_tag
from ..logging import get_logger
from ..markers.collector import Collector
from ..markers.type_info import TypeInfo, each_type, package_markers
from .cache import SchemaCache, SchemaState
from .flatten import Flattener
from .ident import GroupKind, GroupVersion, TypeIdent
from .markers import GROUP_NAME_MARKER, VERSION_NAME_MARKER
from .schema import JSON_TAG, SchemaContext, info_to_schema
from .spec import build_crd

logger = get_logger("parser")

# Overrides the loading of some package (potentially setting custom
# schemata, etc). It must call ``parser.add_package(pkg)`` if it wants to
# continue with the default loading behavior.
PackageOverride = Callable[["Parser", Package], None]


class Parser:
    """Parses CRD information and generates OpenAPI schemata from packages of types and markers."""

    def __init__(
        self,
        collector: Collector,
        checker: TypeChecker,
        config: GeneratorConfig | None = None,
        package_overrides: dict[str, PackageOverride] | None = None,
    ):
        """
        Initialize the parser.

        Args:
            collector: Marker collector whose registry knows the CRD markers
            checker: Type checker shared by every package of the session
            config: Generation options
            package_overrides: Overrides by (non-vendored) package path
        """
        self.collector = collector
        self.checker = checker
        self.config = config or GeneratorConfig()

        # Known TypeInfo of every indexed type
        self.types: dict[TypeIdent, TypeInfo] = {}
        # Known schemata, with $ref links between types
        self.schemata = SchemaCache()
        # Schemata with every reference inlined
        self.flattened_schemata: dict[TypeIdent, dict] = {}
        # Group-version of each package that declares a group
        self.group_versions: dict[Package, GroupVersion] = {}
        # Generated CustomResourceDefinitions
        self.custom_resource_definitions: dict[GroupKind, dict] = {}

        # Packages whose loading is handled by an override instead
        self.package_overrides: dict[str, PackageOverride] = dict(package_overrides or {})

        # Packages that are loaded; never shrinks
        self._packages: set[Package] = set()
        self._packages_by_path: dict[str, Package] = {}

        self.flattener = Flattener(self)

    def index_types(self, pkg: Package) -> None:
        """Load all types in the package into ``types``, and its group-version into ``group_versions``."""
        try:
            pkg_markers = package_markers(self.collector, pkg)
        except ErrorList as err:
            pkg.add_error(err)
        else:
            group = pkg_markers.get(GROUP_NAME_MARKER)
            if group is not None:
                # the package name is a reasonable guess for the version
                version = pkg_markers.get(VERSION_NAME_MARKER) or pkg.name
                self.group_versions[pkg] = GroupVersion(group=group, version=version)

        def index(info: TypeInfo) -> None:
            if info.raw_spec is not None and not filter_types_for_crds(info.raw_spec):
                return
            self.types[TypeIdent(package=pkg, name=info.name)] = info

        try:
            each_type(self.collector, pkg, index)
        except ErrorList as err:
            pkg.add_error(err)

    def lookup_type(self, pkg: Package, name: str) -> TypeInfo | None:
        """Return the TypeInfo of ``name`` in ``pkg``, or None if no such type is indexed."""
        return self.types.get(TypeIdent(package=pkg, name=name))

    def need_schema_for(self, ident: TypeIdent) -> None:
        """
        Indicate that a schema should be generated for the given type.

        The result is stored in ``schemata``. A type that refers back to
        itself (directly or through other types) finds its own entry in
        progress and stops recursing.
        """
        self.need_package(ident.package)
        if ident in self.schemata:
            return

        info = self.types.get(ident)
        if info is None:
            ident.package.add_error(UnknownTypeError(f"unknown type {ident}"))
            return

        # avoid tripping over recursive schemata by storing an empty placeholder first
        self.schemata.begin(ident)

        ctx = SchemaContext(ident.package, self).for_info(info)
        self.schemata.resolve(ident, info_to_schema(ctx))

    def need_flattened_schema_for(self, ident: TypeIdent) -> None:
        """Indicate that a schema with all references inlined is needed for the given type."""
        if ident in self.flattened_schemata:
            return
        self.flattener.flatten(ident)

    def need_crd_for(self, group_kind: GroupKind, max_desc_len: int | None = None) -> None:
        """Indicate that a CustomResourceDefinition should be generated for the given kind."""
        if group_kind in self.custom_resource_definitions:
            return
        crd = build_crd(self, group_kind, max_desc_len)
        if crd is not None:
            self.custom_resource_definitions[group_kind] = crd

    def add_package(self, pkg: Package) -> None:
        """
        Indicate that types and type-checking information is needed for the
        given package, *ignoring* overrides.

        Generally, consumers should call need_package, while package
        overrides should call add_package to continue with the normal
        loading procedure.
        """
        if pkg in self._packages:
            return
        self._packages_by_path.setdefault(pkg.pkg_path, pkg)
        self.index_types(pkg)
        self.checker.check(pkg, filter_types_for_crds)
        self._packages.add(pkg)
        logger.debug("loaded package %s (%d errors)", pkg.pkg_path, len(pkg.errors))

    def need_package(self, pkg: Package) -> None:
        """Indicate that types and type-checking information is needed for the given package."""
        if pkg in self._packages:
            return
        self._packages_by_path.setdefault(pkg.pkg_path, pkg)

        # overrides are written without vendor prefixes; packages themselves are keyed by object
        override = self.package_overrides.get(non_vendor_path(pkg.pkg_path))
        if override is not None:
            logger.debug("loading package %s through its override", pkg.pkg_path)
            override(self, pkg)
            self._packages.add(pkg)
            return
        self.add_package(pkg)

    def is_loaded(self, pkg: Package) -> bool:
        return pkg in self._packages

    def package_for_path(self, pkg_path: str) -> Package | None:
        """Return the package with the given path, if the parser has seen it."""
        return self._packages_by_path.get(pkg_path)

    def schema_state(self, ident: TypeIdent) -> SchemaState:
        return self.schemata.state(ident)


def filter_types_for_crds(node: ast.AST) -> bool:
    """
    Filter out all nodes that aren't used in CRD generation, like
    interfaces and fields without a json tag.
    """
    if isinstance(node, ast.ClassDef):
        # skip interfaces, we never care about references in them
        return not is_interface_class(node)
    if isinstance(node, ast.AnnAssign):
        # fields without json tags have custom serialization, so only visit tagged fields
        return parse_ast_tag(node).lookup(JSON_TAG) is not None
    return True
