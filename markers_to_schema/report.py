"""
Reporting of the errors accumulated on packages.

Generation never stops at the first problem; instead each package collects
its errors, and once a run is over they are gathered here and rendered
with a jinja2 template.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import jinja2

from .loader.package import Package

TEMPLATE_DIR = Path(__file__).parent / "templates"
ERRORS_TEMPLATE = "errors.txt.jinja2"


def collect_errors(roots: Iterable[Package]) -> list[Package]:
    """
    Return every package with errors among ``roots`` and the packages they import.

    Packages are visited depth-first from each root, in order, each one once.
    """
    seen: set[Package] = set()
    with_errors: list[Package] = []

    def visit(pkg: Package) -> None:
        if pkg in seen:
            return
        seen.add(pkg)
        if pkg.errors:
            with_errors.append(pkg)
        for imported in pkg.imports().values():
            visit(imported)

    for root in roots:
        visit(root)
    return with_errors


class ErrorReport:
    """Renders package errors as plain text."""

    def __init__(self, template_dir: Path | None = None):
        self.jinja_env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir or TEMPLATE_DIR)),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self.template = self.jinja_env.get_template(ERRORS_TEMPLATE)

    def render(self, packages: Iterable[Package]) -> str:
        packages = [pkg for pkg in packages if pkg.errors]
        total = sum(len(pkg.errors) for pkg in packages)
        return self.template.render(packages=packages, total=total)


def render_error_report(roots: Iterable[Package]) -> str:
    """Render the errors of ``roots`` and everything they import."""
    return ErrorReport().render(collect_errors(roots))
