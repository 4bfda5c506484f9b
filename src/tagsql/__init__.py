"""
This __init__.py file makes the tagsql directory a Python package
and exposes the `FilterEngine`, the compilers and schema classes for easy access.
"""

from .engine import CompiledWhere, FilterEngine, TagColumn
from .querydsl import Q, OperatorRegistry, Resolution, Resolver, Template, Verbatim, build_default_registry
from .querydsl.compilers import ConditionWhereCompiler, RankingCompiler, TagWhereCompiler
from .schema import Composite, Leaf, ParseResult, PlaceholderCache, RankRule, TagCriteria
from .tags import TagQueryParser
from .utils import convert_to_qmark, validate_placeholders

__version__ = "0.1.0"

__all__ = [
    "FilterEngine",
    "CompiledWhere",
    "TagColumn",
    "Q",
    "OperatorRegistry",
    "Resolution",
    "Resolver",
    "Template",
    "Verbatim",
    "build_default_registry",
    "ConditionWhereCompiler",
    "TagWhereCompiler",
    "RankingCompiler",
    "TagQueryParser",
    "PlaceholderCache",
    "Leaf",
    "Composite",
    "TagCriteria",
    "ParseResult",
    "RankRule",
    "convert_to_qmark",
    "validate_placeholders",
]
