"""
Package path helpers.
"""

from __future__ import annotations

# Path components that mark the start of a vendored copy of another package
VENDOR_COMPONENTS = ("vendor", "_vendor")


def non_vendor_path(pkg_path: str) -> str:
    """Strip any vendoring prefix from a dotted package path.

    Examples:
        "myproject._vendor.example.api.v1" -> "example.api.v1"
        "vendor.datetime" -> "datetime"
        "example.api.v1" -> "example.api.v1"

    Args:
        pkg_path: Dotted package path, possibly vendored

    Returns:
        The path of the package as it would be imported without vendoring
    """
    parts = pkg_path.split(".")
    for i in range(len(parts) - 1, -1, -1):
        if parts[i] in VENDOR_COMPONENTS:
            return ".".join(parts[i + 1 :])
    return pkg_path
