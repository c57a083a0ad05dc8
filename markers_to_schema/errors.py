"""
Error types for markers_to_schema.

Errors are rarely raised out of the parser: they are recorded against the
package they concern (see ``Package.add_error``) so that a whole batch of
packages can be analyzed in one pass and reported at the end.
"""

from __future__ import annotations

from collections.abc import Iterable


class MarkersToSchemaError(Exception):
    """Base class for all errors produced by markers_to_schema."""

    pass


class LoadError(MarkersToSchemaError):
    """Raised when a package cannot be located or one of its files cannot be parsed."""

    pass


class TypeCheckError(MarkersToSchemaError):
    """Raised when a type expression cannot be resolved to a declaration."""

    pass


class MarkerError(MarkersToSchemaError):
    """Raised when a marker comment cannot be decoded.

    This can happen when:
    - The marker value does not match the definition's type
    - A keyword argument is unknown to the marker definition
    - A list or string literal is not terminated
    """

    pass


class UnknownTypeError(MarkersToSchemaError):
    """Raised when a schema is requested for a type that was never indexed."""

    pass


class SchemaError(MarkersToSchemaError):
    """Raised when a type's shape cannot be expressed as a schema."""

    pass


class RecursiveTypeError(SchemaError):
    """Raised when flattening reaches a type that is already being flattened."""

    pass


class NodeError(MarkersToSchemaError):
    """An error attached to a position in a source file."""

    def __init__(self, error: Exception, filename: str, lineno: int, col_offset: int = 0):
        self.error = error
        self.filename = filename
        self.lineno = lineno
        self.col_offset = col_offset
        super().__init__(f"{filename}:{lineno}:{col_offset + 1}: {error}")


class ErrorList(MarkersToSchemaError):
    """Several errors gathered while visiting a package."""

    def __init__(self, errors: Iterable[Exception]):
        self.errors = list(errors)
        super().__init__("; ".join(str(err) for err in self.errors))

    def __iter__(self):
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)
