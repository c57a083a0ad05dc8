"""
Marker definitions and the registry that holds them.

A marker is a comment line starting with ``+``:

    # +groupName=batch.example.com
    # +kubebuilder:validation:Minimum=0
    # +kubebuilder:resource:scope=Cluster,shortName={cj,cjs}
    # +optional

The registry knows, for each place a marker can appear, which names exist
and what type their value decodes to.
"""

from __future__ import annotations

import dataclasses
import json
import types
import typing
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..errors import MarkerError
from ..utils import snake_to_camel_case

MARKER_PREFIX = "+"

# Scalar kinds a marker value can decode to
SCALAR_KINDS = (bool, int, float, str, list)


class TargetType(str, Enum):
    """Where a marker may be written."""

    PACKAGE = "package"
    TYPE = "type"
    FIELD = "field"


@dataclass(frozen=True)
class Definition:
    """
    A marker definition.

    ``output`` is either a scalar type (or a subclass of one, such as
    ``class Minimum(int)``) decoded from ``+name=value``, or a dataclass whose
    fields are filled from ``+name:key=value,...``. A dataclass with a single
    field also accepts the anonymous form ``+name=value``, and a dataclass
    whose fields all have defaults can be written as a bare flag ``+name``.
    """

    name: str
    target: TargetType
    output: type
    help: str = ""

    def parse(self, raw: str) -> Any:
        """
        Decode the marker text ``raw`` (without the leading ``+``).

        Raises:
            MarkerError: The value does not match the definition
        """
        rest = raw[len(self.name) :]
        if dataclasses.is_dataclass(self.output):
            return self._parse_struct(rest)

        kind = scalar_kind(self.output)
        if rest == "":
            if kind is bool:
                return True
            raise MarkerError(f"marker {self.name} needs a value")
        if not rest.startswith("="):
            raise MarkerError(f"marker {self.name} takes a single value, got {rest!r}")
        value = parse_value(rest[1:], kind)
        return value if self.output is kind or kind is bool else self.output(value)

    def _parse_struct(self, rest: str) -> Any:
        fields = {snake_to_camel_case(f.name): f for f in dataclasses.fields(self.output)}
        hints = typing.get_type_hints(self.output)
        args: dict[str, Any] = {}

        if rest.startswith("="):
            if len(fields) != 1:
                raise MarkerError(f"marker {self.name} takes named arguments")
            (only,) = fields.values()
            args[only.name] = parse_value(rest[1:], scalar_kind(hints[only.name]))
        elif rest.startswith(":"):
            for arg in split_top_level(rest[1:], ","):
                key, sep, text = arg.partition("=")
                key = key.strip()
                if key not in fields:
                    raise MarkerError(f"unknown argument {key!r} for marker {self.name}")
                kind = scalar_kind(hints[fields[key].name])
                if not sep and kind is not bool:
                    raise MarkerError(f"argument {key!r} of marker {self.name} needs a value")
                args[fields[key].name] = parse_value(text, kind)
        elif rest:
            raise MarkerError(f"malformed marker {self.name}{rest}")

        try:
            return self.output(**args)
        except TypeError as err:
            raise MarkerError(f"marker {self.name}: {err}") from err


class Registry:
    """Marker definitions, by target and name."""

    def __init__(self):
        self._definitions: dict[TargetType, dict[str, Definition]] = {target: {} for target in TargetType}

    def register(self, definition: Definition) -> None:
        self._definitions[definition.target][definition.name] = definition

    def define(self, name: str, target: TargetType, output: type, help: str = "") -> Definition:
        """Create and register a definition."""
        definition = Definition(name=name, target=target, output=output, help=help)
        self.register(definition)
        return definition

    def lookup(self, raw: str, target: TargetType) -> Definition | None:
        """
        Find the definition that marker text ``raw`` refers to.

        The longest registered name that ``raw`` starts with wins, so that
        ``kubebuilder:validation:MinItems`` is not mistaken for a shorter name.
        """
        best = None
        for name, definition in self._definitions[target].items():
            if not raw.startswith(name):
                continue
            if len(raw) > len(name) and raw[len(name)] not in "=:":
                continue
            if best is None or len(name) > len(best.name):
                best = definition
        return best

    def definitions(self, target: TargetType | None = None) -> list[Definition]:
        targets = [target] if target else list(TargetType)
        return [d for t in targets for d in self._definitions[t].values()]


def scalar_kind(output: Any) -> type:
    """Return the scalar kind a marker output type decodes from."""
    origin = typing.get_origin(output)
    if origin in (typing.Union, types.UnionType):
        output = next(arg for arg in typing.get_args(output) if arg is not type(None))
        origin = typing.get_origin(output)
    if origin is list:
        return list
    for cls in getattr(output, "__mro__", ()):
        if cls in SCALAR_KINDS:
            return cls
    raise MarkerError(f"unsupported marker value type {output!r}")


def parse_value(text: str, kind: type) -> Any:
    """
    Decode a marker value.

    Args:
        text: The raw value text
        kind: One of bool, int, float, str or list

    Returns:
        The decoded value
    """
    text = text.strip()
    try:
        if kind is bool:
            if text in ("", "true"):
                return True
            if text == "false":
                return False
            raise MarkerError(f"expected true or false, got {text!r}")
        if kind is int:
            return int(text)
        if kind is float:
            return float(text)
    except ValueError as err:
        raise MarkerError(f"expected {kind.__name__}, got {text!r}") from err

    if kind is str:
        return unquote(text)
    if kind is list:
        if text.startswith("{"):
            if not text.endswith("}"):
                raise MarkerError(f"unterminated list {text!r}")
            items = split_top_level(text[1:-1], ",")
        else:
            items = text.split(";")
        return [guess_scalar(item.strip()) for item in items if item.strip()]
    raise MarkerError(f"unsupported marker value type {kind!r}")


def unquote(text: str) -> str:
    """Strip double quotes (with escapes) or backticks (raw) from a string value."""
    if text.startswith('"'):
        if len(text) < 2 or not text.endswith('"'):
            raise MarkerError(f"unterminated string {text!r}")
        try:
            return json.loads(text)
        except ValueError as err:
            raise MarkerError(f"invalid string {text!r}") from err
    if text.startswith("`"):
        if len(text) < 2 or not text.endswith("`"):
            raise MarkerError(f"unterminated raw string {text!r}")
        return text[1:-1]
    return text


def guess_scalar(text: str) -> Any:
    """Decode a list item whose type is not declared."""
    if text.startswith(('"', "`")):
        return unquote(text)
    if text in ("true", "false"):
        return text == "true"
    for kind in (int, float):
        try:
            return kind(text)
        except ValueError:
            pass
    return text


def split_top_level(text: str, sep: str) -> list[str]:
    """Split on ``sep`` outside of braces and quoted strings."""
    parts = []
    depth = 0
    quote = ""
    current = []
    for char in text:
        if quote:
            if char == quote:
                quote = ""
        elif char in "\"`":
            quote = char
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        elif char == sep and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    if quote or depth:
        raise MarkerError(f"unbalanced value {text!r}")
    parts.append("".join(current))
    return [part for part in parts if part.strip()]
