"""Helper utilities for writing throwaway source trees in tests."""

from __future__ import annotations

import tempfile
import textwrap
from collections.abc import Mapping
from pathlib import Path

from markers_to_schema.loader import PackageLoader

TEST_DATA_SRC = Path(__file__).parent / "test_data" / "src"


class SourceTreeBuilder:
    """Writes source files into a temporary directory and loads them as packages."""

    def __init__(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def cleanup(self) -> None:
        self._tmp.cleanup()

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the tree."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def loader(self) -> PackageLoader:
        """Return a fresh loader rooted at the tree."""
        return PackageLoader([self.root])


__all__ = ["SourceTreeBuilder", "TEST_DATA_SRC"]
