"""
Type checker for field annotations.

Resolves the annotation of every field (and the target of every NewType
alias) that the node filter lets through, recording the result on the
package so that schema generation can ask ``pkg.type_of(annotation)``.
"""

from __future__ import annotations

import ast
from collections.abc import Callable

from ..errors import LoadError, NodeError, TypeCheckError
from ..logging import get_logger
from .package import Package, SourceFile, resolve_relative
from .syntax import new_type_call
from .types import ANY, NONE, STRING, Basic, ListOf, MapOf, Named, OptionalOf, TypeExpr

logger = get_logger("checker")

NodeFilter = Callable[[ast.AST], bool]

# Modules whose names are type constructors rather than declarations
TYPING_MODULES = frozenset({"typing", "typing_extensions", "collections.abc", "builtins"})

BASIC_NAMES = frozenset({"str", "int", "float", "bool", "bytes", "Any", "object"})
LIST_NAMES = frozenset({"list", "List", "Sequence", "MutableSequence"})
MAP_NAMES = frozenset({"dict", "Dict", "Mapping", "MutableMapping"})
OPTIONAL_NAME = "Optional"
UNION_NAME = "Union"
ANNOTATED_NAME = "Annotated"


def declared_type_names(pkg: Package) -> set[str]:
    """Names of all classes and NewType aliases declared at module level in ``pkg``."""
    names = set()
    for module in pkg.syntax:
        for stmt in module.body:
            if isinstance(stmt, ast.ClassDef):
                names.add(stmt.name)
            elif (alias := new_type_call(stmt)) is not None:
                names.add(alias[0])
    return names


class TypeChecker:
    """Checks each package at most once."""

    def __init__(self):
        self._checked: set[Package] = set()

    def check(self, pkg: Package, node_filter: NodeFilter) -> None:
        """
        Resolve the type annotations of ``pkg``.

        Args:
            pkg: The package to check
            node_filter: Decides which nodes are visited; a rejected node is
                skipped together with everything below it
        """
        if pkg in self._checked:
            return
        self._checked.add(pkg)

        if pkg.is_external:
            pkg.add_error(LoadError(f"no Python source found for package {pkg.pkg_path}"))
            return

        declared = declared_type_names(pkg)
        for source in pkg.files:
            if source.module is None:
                continue
            scope = FileScope(pkg, source, declared)
            for stmt in source.module.body:
                self._visit(stmt, scope, node_filter, in_class=False)
        logger.debug("checked package %s (%d annotations)", pkg.pkg_path, len(pkg.types_info))

    def _visit(self, node: ast.AST, scope: FileScope, node_filter: NodeFilter, in_class: bool) -> None:
        if not node_filter(node):
            return

        if isinstance(node, ast.ClassDef):
            for stmt in node.body:
                self._visit(stmt, scope, node_filter, in_class=True)
        elif isinstance(node, ast.AnnAssign) and in_class:
            scope.record(node.annotation)
        elif not in_class and (alias := new_type_call(node)) is not None:
            scope.record(alias[1])


class FileScope:
    """The names visible to annotations in one source file."""

    def __init__(self, pkg: Package, source: SourceFile, declared: set[str]):
        self.pkg = pkg
        self.source = source
        self.declared = declared

        self.names: dict[str, Package | Named] = {}  # local name -> imported module or type
        self.modules: dict[str, Package] = {}  # dotted name bound by "import a.b"
        self.typing_names: dict[str, str] = {}  # local name -> typing construct
        self.typing_modules: set[str] = set()  # local names bound to typing modules

        if source.module is not None:
            self._collect_imports(source.module)

    def record(self, annotation: ast.expr) -> None:
        """Resolve ``annotation`` and store the result on the package."""
        try:
            self.pkg.types_info[annotation] = self.resolve(annotation)
        except TypeCheckError as err:
            self.pkg.add_error(NodeError(err, str(self.source.path), annotation.lineno, annotation.col_offset))

    def resolve(self, expr: ast.expr) -> TypeExpr:
        if isinstance(expr, ast.Constant):
            if expr.value is None:
                return NONE
            if isinstance(expr.value, str):
                try:
                    forward = ast.parse(expr.value, mode="eval").body
                except SyntaxError as err:
                    raise TypeCheckError(f"invalid forward reference {expr.value!r}") from err
                return self.resolve(forward)
        elif isinstance(expr, ast.Name):
            return self._resolve_name(expr.id)
        elif isinstance(expr, ast.Attribute):
            return self._resolve_attribute(expr)
        elif isinstance(expr, ast.Subscript):
            return self._resolve_generic(expr)
        elif isinstance(expr, ast.BinOp) and isinstance(expr.op, ast.BitOr):
            return self._resolve_union(_union_members(expr))
        raise TypeCheckError(f"unsupported type expression {ast.unparse(expr)}")

    def _collect_imports(self, module: ast.Module) -> None:
        loader = self.pkg.loader
        for node in ast.walk(module):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    if alias.name in TYPING_MODULES:
                        self.typing_modules.add(alias.asname or alias.name)
                    elif loader is None:
                        continue
                    elif alias.asname:
                        self.names[alias.asname] = loader.package_for_module(alias.name)
                    else:
                        self.modules[alias.name] = loader.package_for_module(alias.name)
            elif isinstance(node, ast.ImportFrom):
                base = resolve_relative(self.pkg.pkg_path, node.module, node.level)
                if base == "__future__":
                    continue
                for alias in node.names:
                    local = alias.asname or alias.name
                    if base in TYPING_MODULES:
                        self.typing_names[local] = alias.name
                    elif loader is None:
                        continue
                    elif loader.resolves_to_module(f"{base}.{alias.name}"):
                        self.names[local] = loader.package_for_module(f"{base}.{alias.name}")
                    else:
                        self.names[local] = Named(loader.package_for_module(base), alias.name)

    def _construct(self, expr: ast.expr) -> str | None:
        """Return the typing construct named by ``expr`` (``list``, ``Optional``...), if any."""
        if isinstance(expr, ast.Name):
            return self._construct_name(expr.id)
        if isinstance(expr, ast.Attribute) and ast.unparse(expr.value) in self.typing_modules:
            return expr.attr
        return None

    def _construct_name(self, name: str) -> str | None:
        if name in self.typing_names:
            return self.typing_names[name]
        if name in self.names or name in self.declared:
            return None
        if name in BASIC_NAMES or name in LIST_NAMES or name in MAP_NAMES:
            return name
        return None

    def _resolve_name(self, name: str) -> TypeExpr:
        construct = self._construct_name(name)
        if construct is not None:
            return _bare_construct(construct)

        target = self.names.get(name)
        if isinstance(target, Named):
            return target
        if isinstance(target, Package):
            raise TypeCheckError(f"module {name} used as a type")
        if name in self.declared:
            return Named(self.pkg, name)
        raise TypeCheckError(f"undefined type {name}")

    def _resolve_attribute(self, expr: ast.Attribute) -> TypeExpr:
        construct = self._construct(expr)
        if construct is not None:
            return _bare_construct(construct)

        owner = ast.unparse(expr.value)
        module = self.names.get(owner) or self.modules.get(owner)
        if isinstance(module, Package):
            return Named(module, expr.attr)
        raise TypeCheckError(f"undefined type {ast.unparse(expr)}")

    def _resolve_generic(self, expr: ast.Subscript) -> TypeExpr:
        construct = self._construct(expr.value)
        args = list(expr.slice.elts) if isinstance(expr.slice, ast.Tuple) else [expr.slice]

        if construct in LIST_NAMES and len(args) == 1:
            return ListOf(self.resolve(args[0]))
        if construct in MAP_NAMES and len(args) == 2:
            return MapOf(self.resolve(args[0]), self.resolve(args[1]))
        if construct == OPTIONAL_NAME and len(args) == 1:
            return self._resolve_union([args[0], ast.Constant(value=None)])
        if construct == UNION_NAME:
            return self._resolve_union(args)
        if construct == ANNOTATED_NAME:
            return self.resolve(args[0])
        raise TypeCheckError(f"unsupported generic type {ast.unparse(expr)}")

    def _resolve_union(self, members: list[ast.expr]) -> TypeExpr:
        resolved = [self.resolve(member) for member in members]
        non_none = [typ for typ in resolved if typ != NONE]
        if len(non_none) != 1:
            raise TypeCheckError("only unions of a single type with None are supported")
        if len(non_none) == len(resolved):
            return non_none[0]
        return OptionalOf(non_none[0])


def _bare_construct(construct: str) -> TypeExpr:
    if construct in BASIC_NAMES:
        return ANY if construct == "object" else Basic(construct)
    if construct in LIST_NAMES:
        return ListOf(ANY)
    if construct in MAP_NAMES:
        return MapOf(STRING, ANY)
    raise TypeCheckError(f"{construct} needs type arguments")


def _union_members(expr: ast.expr) -> list[ast.expr]:
    if isinstance(expr, ast.BinOp) and isinstance(expr.op, ast.BitOr):
        return _union_members(expr.left) + _union_members(expr.right)
    return [expr]
