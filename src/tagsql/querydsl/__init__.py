"""Query DSL module.

Exports the `Q` class for composing condition trees and the operator registry
handler variants. Compilers live in the `compilers` subpackage.
"""

from .operators import OperatorRegistry, Resolution, Resolver, Template, Verbatim, build_default_registry
from .q import Q

__all__ = (
    "Q",
    "OperatorRegistry",
    "Resolution",
    "Resolver",
    "Template",
    "Verbatim",
    "build_default_registry",
)
