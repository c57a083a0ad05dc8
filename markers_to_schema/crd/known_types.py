"""
Overrides for packages whose types have a fixed serialized form.

These packages are stdlib modules without source on the search path, so
instead of loading them the overrides store the schemata of their types
directly and never fall back to default loading.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..loader.package import Package
from .ident import TypeIdent

if TYPE_CHECKING:
    from .parser import PackageOverride, Parser


def _schemata_override(schemata: dict[str, dict]) -> PackageOverride:
    def override(parser: Parser, pkg: Package) -> None:
        for name, schema in schemata.items():
            parser.schemata.resolve(TypeIdent(package=pkg, name=name), dict(schema))

    return override


KNOWN_PACKAGES: dict[str, PackageOverride] = {
    "datetime": _schemata_override(
        {
            "datetime": {"type": "string", "format": "date-time"},
            "date": {"type": "string", "format": "date"},
            "time": {"type": "string", "format": "time"},
            # serialized as a duration string such as "1h30m"
            "timedelta": {"type": "string"},
        }
    ),
    "decimal": _schemata_override(
        {
            "Decimal": {
                "anyOf": [{"type": "integer"}, {"type": "string"}],
                "x-kubernetes-int-or-string": True,
                "pattern": r"^(\+|-)?(([0-9]+(\.[0-9]*)?)|(\.[0-9]+))$",
            },
        }
    ),
    "uuid": _schemata_override(
        {
            "UUID": {"type": "string", "format": "uuid"},
        }
    ),
}


def add_known_types(parser: Parser) -> None:
    """Register the overrides of KNOWN_PACKAGES with ``parser``."""
    for pkg_path, override in KNOWN_PACKAGES.items():
        parser.package_overrides[pkg_path] = override
