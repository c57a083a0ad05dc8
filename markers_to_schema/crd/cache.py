"""
Schema cache with explicit entry states.

An entry is absent until its schema is requested, in progress while the
schema is being built (holding an empty placeholder so that recursive
requests stop), and resolved once the final schema is stored. Resolved
entries are never replaced.
"""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum

from ..errors import SchemaError
from ..logging import get_logger
from .ident import TypeIdent

logger = get_logger("cache")


class SchemaState(str, Enum):
    ABSENT = "absent"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"


class SchemaCache:
    """Schemata by TypeIdent."""

    def __init__(self):
        self._schemata: dict[TypeIdent, dict] = {}
        self._resolved: set[TypeIdent] = set()

    def state(self, ident: TypeIdent) -> SchemaState:
        if ident in self._resolved:
            return SchemaState.RESOLVED
        if ident in self._schemata:
            return SchemaState.IN_PROGRESS
        return SchemaState.ABSENT

    def begin(self, ident: TypeIdent) -> None:
        """Store an empty placeholder for ``ident``, marking it in progress."""
        if ident in self._schemata:
            raise SchemaError(f"schema for {ident} is already {self.state(ident).value}")
        self._schemata[ident] = {}
        logger.debug("building schema for %s", ident)

    def resolve(self, ident: TypeIdent, schema: dict) -> None:
        """Store the final schema for ``ident``."""
        if ident in self._resolved:
            raise SchemaError(f"schema for {ident} is already resolved")
        self._schemata[ident] = schema
        self._resolved.add(ident)
        logger.debug("resolved schema for %s", ident)

    def get(self, ident: TypeIdent) -> dict | None:
        """Return the resolved schema for ``ident``, or None if it is absent or still in progress."""
        if ident not in self._resolved:
            return None
        return self._schemata[ident]

    def __contains__(self, ident: TypeIdent) -> bool:
        return ident in self._schemata

    def __getitem__(self, ident: TypeIdent) -> dict:
        return self._schemata[ident]

    def __iter__(self) -> Iterator[TypeIdent]:
        return iter(self._schemata)

    def __len__(self) -> int:
        return len(self._schemata)

    def items(self):
        return self._schemata.items()
