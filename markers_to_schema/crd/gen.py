"""
Generation of CustomResourceDefinitions for a set of root packages.
"""

from __future__ import annotations

from ..config import GeneratorConfig
from ..loader.checker import TypeChecker
from ..loader.loader import PackageLoader
from ..logging import get_logger
from ..markers.collector import Collector
from ..markers.registry import Registry
from .known_types import add_known_types
from .markers import register
from .parser import Parser
from .spec import find_kube_kinds

logger = get_logger("gen")


def new_parser(config: GeneratorConfig | None = None) -> Parser:
    """Return a parser with the CRD markers registered and, if configured, the known types."""
    config = config or GeneratorConfig()
    registry = Registry()
    register(registry)
    parser = Parser(Collector(registry), TypeChecker(), config)
    if config.use_known_types:
        add_known_types(parser)
    return parser


def generate_crds(loader: PackageLoader, roots: list[str], config: GeneratorConfig | None = None) -> Parser:
    """
    Generate a CRD for every root type found in the given packages.

    Args:
        loader: Loader for the packages and their dependencies
        roots: Root package patterns (see ``PackageLoader.load_roots``)
        config: Generation options

    Returns:
        The parser; the CRDs are in ``custom_resource_definitions`` and any
        problems are recorded on the packages
    """
    parser = new_parser(config)
    packages = loader.load_roots(*roots)
    for pkg in packages:
        parser.need_package(pkg)

    kinds = sorted(find_kube_kinds(parser))
    for group_kind in kinds:
        parser.need_crd_for(group_kind, parser.config.max_description_len)

    logger.info(
        "generated %d CRD(s) from %d package(s)", len(parser.custom_resource_definitions), len(packages)
    )
    return parser
