"""Object and type metadata embedded in every resource."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field


@dataclass
class TypeMeta:
    """TypeMeta describes an individual object in an API response or request."""

    # Kind is a string value representing the REST resource this object represents.
    # +optional
    kind: str = field(default="", metadata={"json": "kind,omitempty"})

    # APIVersion defines the versioned schema of this representation of an object.
    # +optional
    api_version: str = field(default="", metadata={"json": "apiVersion,omitempty"})


@dataclass
class ObjectMeta:
    """ObjectMeta is metadata that all persisted resources must have."""

    # +optional
    name: str = field(default="", metadata={"json": "name,omitempty"})

    # +optional
    namespace: str = field(default="", metadata={"json": "namespace,omitempty"})

    # +optional
    labels: dict[str, str] = field(default_factory=dict, metadata={"json": "labels,omitempty"})

    # +optional
    creation_timestamp: datetime.datetime | None = field(default=None, metadata={"json": "creationTimestamp,omitempty"})
