"""
Configuration for schema generation.

Follows the same plain-dataclass structure as the rest of the package so
that a configuration can be built from a JSON document.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path


@dataclass
class GeneratorConfig:
    """Configuration options for schema and CRD generation."""

    # Allow float fields (support for them varies across languages)
    allow_dangerous_types: bool = False

    # Truncate descriptions longer than this in generated CRDs (None = keep all)
    max_description_len: int | None = None

    # Register overrides for well-known stdlib packages (datetime, decimal, uuid)
    use_known_types: bool = True

    # apiVersion written on generated CustomResourceDefinitions
    crd_api_version: str = "apiextensions.k8s.io/v1"

    @staticmethod
    def from_dict(d: dict) -> GeneratorConfig:
        """Create a config from a dictionary."""
        config = GeneratorConfig()
        for k, v in d.items():
            if hasattr(config, k):
                setattr(config, k, v)
        return config

    @staticmethod
    def from_file(path: str | Path) -> GeneratorConfig:
        """Create a config from a JSON file."""
        with open(path) as f:
            return GeneratorConfig.from_dict(json.load(f))

    def to_dict(self) -> dict:
        """Convert config to a dictionary."""
        return {
            "allow_dangerous_types": self.allow_dangerous_types,
            "max_description_len": self.max_description_len,
            "use_known_types": self.use_known_types,
            "crd_api_version": self.crd_api_version,
        }
