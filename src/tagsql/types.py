"""Type aliases for tagsql package.

This module provides reusable type definitions to ensure consistency
across the codebase and improve code readability.
"""

from typing import Any, Callable, Dict, List, Union

from .schema import Composite, Leaf, TagCriteria

# One tokenizer output unit: a bare term or an OR-group of terms
Chunk = Union[str, List[str]]
Chunks = List[Chunk]

# Condition input accepted by the condition compiler
Condition = Union[Composite, Leaf, Dict[str, Any]]

# Tag input accepted by the tag compiler
Criteria = Union[TagCriteria, Dict[str, Any]]

# Wraps a placeholder such as "$1" into SQL, e.g. "LOWER($1)"
ValueTransform = Callable[[str], str]

# Parses the raw text after "title:" in a special query
SpecialParser = Callable[[str], Any]

