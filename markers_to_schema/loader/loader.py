"""
Package loader.

Maps dotted package paths onto directories below a set of search roots and
parses every source file of a package once.
"""

from __future__ import annotations

import ast
from collections.abc import Iterable
from pathlib import Path

from ..errors import LoadError, NodeError
from ..logging import get_logger
from .package import Package, SourceFile

logger = get_logger("loader")

# Suffix of a root pattern that loads every package below a path
RECURSIVE_SUFFIX = "..."


class PackageLoader:
    """Loads packages from source directories.

    Every path maps to exactly one Package object for the lifetime of the
    loader. Paths that cannot be found on disk (stdlib or third-party modules)
    produce external packages without source files.
    """

    def __init__(self, search_paths: Iterable[str | Path]):
        """
        Initialize the loader.

        Args:
            search_paths: Directories that dotted package paths are relative to
        """
        self.search_paths = [Path(p) for p in search_paths]
        self._packages: dict[str, Package] = {}

    def load(self, pkg_path: str) -> Package:
        """Return the package at ``pkg_path``, parsing its files on first use."""
        if pkg_path in self._packages:
            return self._packages[pkg_path]

        directory = self._find_directory(pkg_path)
        pkg = Package(pkg_path, directory, self)
        self._packages[pkg_path] = pkg
        if directory is None:
            logger.debug("no source for package %s, treating it as external", pkg_path)
            return pkg

        for path in sorted(directory.glob("*.py")):
            pkg.files.append(self._parse_file(pkg, path))
        logger.debug("loaded package %s (%d files) from %s", pkg_path, len(pkg.files), directory)
        return pkg

    def load_roots(self, *patterns: str) -> list[Package]:
        """
        Load the root packages named by ``patterns``.

        A pattern ending in ``...`` (``example.api...``) loads every package
        found below that path, the path itself included.

        Returns:
            The root packages, in pattern order
        """
        roots: list[Package] = []
        for pattern in patterns:
            if not pattern.endswith(RECURSIVE_SUFFIX):
                roots.append(self.load(pattern))
                continue

            base = pattern[: -len(RECURSIVE_SUFFIX)].rstrip(".")
            for pkg_path in self._walk(base):
                pkg = self.load(pkg_path)
                if pkg not in roots:
                    roots.append(pkg)
        return roots

    def is_package(self, dotted: str) -> bool:
        """Whether ``dotted`` names a package directory on the search path."""
        return self._find_directory(dotted) is not None

    def package_for_module(self, dotted: str) -> Package:
        """
        Return the package that holds the module ``dotted``.

        A dotted path may name a package directory (``example.api.v1``) or a
        module file inside one (``example.api.v1.types``).
        """
        if self.is_package(dotted):
            return self.load(dotted)
        parent, _, leaf = dotted.rpartition(".")
        if parent and self._is_module_file(parent, leaf):
            return self.load(parent)
        return self.load(dotted)

    def resolves_to_module(self, dotted: str) -> bool:
        """Whether ``dotted`` names a package directory or a module file."""
        if self.is_package(dotted):
            return True
        parent, _, leaf = dotted.rpartition(".")
        return bool(parent) and self._is_module_file(parent, leaf)

    def _find_directory(self, pkg_path: str) -> Path | None:
        if not pkg_path:
            return None
        for root in self.search_paths:
            candidate = root.joinpath(*pkg_path.split("."))
            if candidate.is_dir() and any(candidate.glob("*.py")):
                return candidate
        return None

    def _is_module_file(self, parent: str, leaf: str) -> bool:
        directory = self._find_directory(parent)
        return directory is not None and (directory / f"{leaf}.py").is_file()

    def _walk(self, base: str) -> list[str]:
        found = []
        for root in self.search_paths:
            start = root.joinpath(*base.split(".")) if base else root
            if not start.is_dir():
                continue
            for directory in sorted([start, *start.rglob("*")]):
                if directory.is_dir() and any(directory.glob("*.py")):
                    pkg_path = ".".join(directory.relative_to(root).parts)
                    if pkg_path and pkg_path not in found:
                        found.append(pkg_path)
        return found

    def _parse_file(self, pkg: Package, path: Path) -> SourceFile:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as err:
            pkg.add_error(LoadError(f"unable to read {path}: {err}"))
            return SourceFile(path=path, text="")

        source = SourceFile(path=path, text=text)
        try:
            source.module = ast.parse(text, filename=str(path))
        except SyntaxError as err:
            pkg.add_error(NodeError(LoadError(err.msg), str(path), err.lineno or 0, max((err.offset or 1) - 1, 0)))
        return source
