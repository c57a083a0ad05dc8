"""
Marker collector.

Reads comment lines with ``tokenize`` (the syntax tree drops comments) and
attaches each contiguous comment block to the declaration directly below it.
"""

from __future__ import annotations

import ast
import io
import tokenize
from typing import Any

from ..errors import MarkerError, NodeError
from ..loader.package import Package, SourceFile
from ..loader.syntax import first_line
from ..logging import get_logger
from .registry import MARKER_PREFIX, Registry, TargetType

logger = get_logger("markers")


class MarkerValues:
    """Decoded markers of one declaration, by marker name."""

    def __init__(self, values: dict[str, list[Any]] | None = None):
        self._values: dict[str, list[Any]] = values or {}

    def get(self, name: str) -> Any | None:
        """Return the first value of marker ``name``, or None if it is absent."""
        values = self._values.get(name)
        return values[0] if values else None

    def get_all(self, name: str) -> list[Any]:
        return list(self._values.get(name, []))

    def add(self, name: str, value: Any) -> None:
        self._values.setdefault(name, []).append(value)

    def update(self, other: MarkerValues) -> None:
        for name, values in other.items():
            for value in values:
                self.add(name, value)

    def items(self):
        return self._values.items()

    def __contains__(self, name: str) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"MarkerValues({self._values!r})"


class Collector:
    """Collects and decodes the markers of a package's declarations."""

    def __init__(self, registry: Registry):
        self.registry = registry
        self._comments: dict[int, dict[int, str]] = {}  # id(source) -> comments

    def comments(self, source: SourceFile) -> dict[int, str]:
        """Return the own-line comments of a file, by line number, without the ``#``."""
        key = id(source)
        if key not in self._comments:
            self._comments[key] = _read_comments(source.text)
        return self._comments[key]

    def block_above(self, source: SourceFile, line: int) -> list[tuple[int, str]]:
        """Return the comment block that ends on the line directly above ``line``."""
        comments = self.comments(source)
        block = []
        current = line - 1
        while current in comments:
            block.append((current, comments[current]))
            current -= 1
        block.reverse()
        return block

    def header_block(self, source: SourceFile) -> list[tuple[int, str]]:
        """
        Return the comment lines of a file's header.

        These are the comments before the first statement, minus the block
        attached directly to that statement when it is a declaration (which
        the block belongs to). A module docstring or an import never owns a
        comment block.
        """
        comments = self.comments(source)
        body = source.module.body if source.module is not None else []
        if not body:
            return sorted(comments.items())

        first = first_line(body[0])
        attached: set[int] = set()
        if not _is_preamble(body[0]):
            block = self.block_above(source, first)
            attached = {line for line, _ in block}
            if any(text.startswith(MARKER_PREFIX) for _, text in block):
                logger.debug(
                    "%s:%d: markers directly above the first declaration belong to it, not to the package",
                    source.path,
                    first,
                )
        return [(line, text) for line, text in sorted(comments.items()) if line < first and line not in attached]

    def decode(
        self, source: SourceFile, block: list[tuple[int, str]], target: TargetType
    ) -> tuple[MarkerValues, list[str], list[Exception]]:
        """
        Decode a comment block.

        Args:
            source: The file the block comes from (for error positions)
            block: ``(line, text)`` comment lines
            target: Which marker definitions apply

        Returns:
            The markers, the remaining documentation lines and any decoding errors
        """
        values = MarkerValues()
        doc: list[str] = []
        errors: list[Exception] = []
        for line, text in block:
            if not text.startswith(MARKER_PREFIX):
                doc.append(text)
                continue

            raw = text[len(MARKER_PREFIX) :].strip()
            definition = self.registry.lookup(raw, target)
            if definition is None:
                logger.debug("%s:%d: ignoring unknown %s marker +%s", source.path, line, target.value, raw)
                continue
            try:
                values.add(definition.name, definition.parse(raw))
            except MarkerError as err:
                errors.append(NodeError(err, str(source.path), line))
        return values, doc, errors

    def markers_for(
        self, source: SourceFile, node: ast.stmt, target: TargetType
    ) -> tuple[MarkerValues, list[str], list[Exception]]:
        """Decode the comment block attached to a declaration."""
        return self.decode(source, self.block_above(source, first_line(node)), target)

    def package_markers(self, pkg: Package) -> tuple[MarkerValues, list[Exception]]:
        """Decode the header markers of every file of a package."""
        values = MarkerValues()
        errors: list[Exception] = []
        for source in pkg.files:
            if source.module is None:
                continue
            file_values, _, file_errors = self.decode(source, self.header_block(source), TargetType.PACKAGE)
            values.update(file_values)
            errors.extend(file_errors)
        return values, errors


def _is_preamble(stmt: ast.stmt) -> bool:
    if isinstance(stmt, (ast.Import, ast.ImportFrom)):
        return True
    return isinstance(stmt, ast.Expr) and isinstance(stmt.value, ast.Constant) and isinstance(stmt.value.value, str)


def _read_comments(text: str) -> dict[int, str]:
    comments: dict[int, str] = {}
    for tok in tokenize.generate_tokens(io.StringIO(text).readline):
        if tok.type == tokenize.COMMENT and tok.line.lstrip().startswith("#"):
            comments[tok.start[0]] = tok.string[1:].strip()
    return comments
