"""
Helpers for reading declarations out of Python syntax trees.

Field tags follow the struct tag conventions used by API types: the
serialized name of a field lives in its dataclass metadata, e.g.

    spec: CronJobSpec = field(metadata={"json": "spec,omitempty"})
"""

from __future__ import annotations

import ast
from dataclasses import dataclass, field

# Base classes that make a class an interface rather than a data type
INTERFACE_BASES = frozenset({"Protocol", "ABC"})

# Base classes that make a class an enumeration
ENUM_BASES = frozenset({"Enum", "StrEnum", "IntEnum"})


@dataclass(frozen=True)
class Tag:
    """The string entries of a field's metadata mapping."""

    entries: dict[str, str] = field(default_factory=dict)

    def lookup(self, key: str) -> str | None:
        """Return the tag value for ``key``, or None when the field has no such tag."""
        return self.entries.get(key)

    def __bool__(self) -> bool:
        return bool(self.entries)


@dataclass(frozen=True)
class JSONTag:
    """A parsed ``json`` tag value."""

    name: str = ""
    omitempty: bool = False
    inline: bool = False


def parse_json_tag(value: str) -> JSONTag:
    """Split a ``json`` tag value into its name and options."""
    name, _, options = value.partition(",")
    opts = {opt.strip() for opt in options.split(",") if opt.strip()}
    return JSONTag(name=name.strip(), omitempty="omitempty" in opts, inline="inline" in opts)


def _is_field_call(node: ast.expr) -> bool:
    if not isinstance(node, ast.Call):
        return False
    func = node.func
    if isinstance(func, ast.Name):
        return func.id == "field"
    return isinstance(func, ast.Attribute) and func.attr == "field"


def parse_ast_tag(node: ast.AST) -> Tag:
    """Read the tag of an annotated field.

    Args:
        node: An ``ast.AnnAssign`` class attribute

    Returns:
        The field's Tag (empty when the field declares no metadata)
    """
    if not isinstance(node, ast.AnnAssign) or node.value is None or not _is_field_call(node.value):
        return Tag()

    for keyword in node.value.keywords:
        if keyword.arg != "metadata":
            continue
        try:
            metadata = ast.literal_eval(keyword.value)
        except (ValueError, TypeError, SyntaxError, MemoryError, RecursionError):
            # not a literal mapping (or an unhashable key), so no tag we can read
            return Tag()
        if not isinstance(metadata, dict):
            return Tag()
        return Tag({k: v for k, v in metadata.items() if isinstance(k, str) and isinstance(v, str)})
    return Tag()


def base_names(node: ast.ClassDef) -> list[str]:
    """Return the last component of each base class name (``typing.Protocol`` -> ``Protocol``)."""
    names = []
    for base in node.bases:
        if isinstance(base, ast.Subscript):
            base = base.value
        if isinstance(base, ast.Name):
            names.append(base.id)
        elif isinstance(base, ast.Attribute):
            names.append(base.attr)
    return names


def is_interface_class(node: ast.ClassDef) -> bool:
    return any(name in INTERFACE_BASES for name in base_names(node))


def is_enum_class(node: ast.ClassDef) -> bool:
    return any(name in ENUM_BASES for name in base_names(node))


def new_type_call(node: ast.AST) -> tuple[str, ast.expr] | None:
    """Recognize ``Name = NewType("Name", T)`` and return ``(name, T)``."""
    if not isinstance(node, ast.Assign) or len(node.targets) != 1:
        return None
    target = node.targets[0]
    call = node.value
    if not isinstance(target, ast.Name) or not isinstance(call, ast.Call) or len(call.args) != 2:
        return None
    func = call.func
    func_name = func.id if isinstance(func, ast.Name) else func.attr if isinstance(func, ast.Attribute) else ""
    if func_name != "NewType":
        return None
    return target.id, call.args[1]


def first_line(node: ast.AST) -> int:
    """Return the first source line of a statement, decorators included."""
    decorators = getattr(node, "decorator_list", None) or []
    return min([node.lineno] + [d.lineno for d in decorators])
