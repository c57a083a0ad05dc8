"""
Package handles produced by the loader.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from .types import TypeExpr

if TYPE_CHECKING:
    from .loader import PackageLoader


@dataclass
class SourceFile:
    """One parsed source file of a package."""

    path: Path
    text: str
    module: ast.Module | None = None  # None when the file failed to parse


class Package:
    """A directory of Python source files analyzed as one unit.

    Packages compare and hash by identity: the loader hands out exactly one
    Package per path for the lifetime of a session, so a Package can key
    every cache in the parser.

    Errors found while loading, checking or generating schemata for the
    package are accumulated in ``errors`` rather than raised.
    """

    def __init__(self, pkg_path: str, directory: Path | None, loader: PackageLoader | None = None):
        self.pkg_path = pkg_path
        self.name = pkg_path.rsplit(".", 1)[-1]
        self.directory = directory
        self.files: list[SourceFile] = []
        self.errors: list[Exception] = []

        # Resolved type of each checked annotation node
        self.types_info: dict[ast.AST, TypeExpr] = {}

        self.loader = loader
        self._imports: dict[str, Package] | None = None

    def __repr__(self) -> str:
        return f"Package({self.pkg_path!r})"

    @property
    def is_external(self) -> bool:
        """Whether no source could be found for this package."""
        return self.directory is None

    @property
    def syntax(self) -> list[ast.Module]:
        """The parsed modules of this package (files that failed to parse are left out)."""
        return [source.module for source in self.files if source.module is not None]

    def add_error(self, err: Exception) -> None:
        """Record an error against this package."""
        self.errors.append(err)

    def type_of(self, node: ast.AST) -> TypeExpr | None:
        """Return the checked type of an annotation node, or None if it was never checked."""
        return self.types_info.get(node)

    def imports(self) -> dict[str, Package]:
        """Return the packages imported by this package, keyed by path."""
        if self._imports is None:
            self._imports = {}
            if self.loader is not None:
                for module in self.syntax:
                    for target in _imported_modules(module, self.pkg_path):
                        imported = self.loader.package_for_module(target)
                        if imported is not self:
                            self._imports[imported.pkg_path] = imported
        return self._imports


def resolve_relative(pkg_path: str, module: str | None, level: int) -> str:
    """Resolve a relative import (``from ..core import X``) against a package path."""
    if level == 0:
        return module or ""
    parts = pkg_path.split(".")
    base = parts[: len(parts) - (level - 1)]
    if module:
        base.append(module)
    return ".".join(base)


def _imported_modules(module: ast.Module, pkg_path: str) -> list[str]:
    targets = []
    for node in ast.walk(module):
        if isinstance(node, ast.Import):
            targets.extend(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom):
            base = resolve_relative(pkg_path, node.module, node.level)
            if base and base != "__future__":
                targets.append(base)
    return targets
