"""Pytest configuration and fixtures for tagsql tests."""

import pytest
from dotenv import load_dotenv

from tagsql.engine import FilterEngine
from tagsql.querydsl.compilers.condition import ConditionWhereCompiler
from tagsql.querydsl.compilers.ranking import RankingCompiler
from tagsql.querydsl.compilers.tags import TagWhereCompiler
from tagsql.querydsl.operators import build_default_registry
from tagsql.schema import PlaceholderCache
from tagsql.tags.parser import TagQueryParser
from tagsql.tags.registry import SpecialQueryRegistry

# Load environment variables
load_dotenv()


@pytest.fixture
def cache():
    """Fresh placeholder cache starting at $1."""
    return PlaceholderCache(index=1)


@pytest.fixture
def registry():
    return build_default_registry()


@pytest.fixture
def condition_compiler(registry):
    return ConditionWhereCompiler(registry)


@pytest.fixture
def tag_compiler():
    """Nested-mode tag compiler over a JSON array column."""
    return TagWhereCompiler(
        column="tags",
        unnest_function="json_array_elements_text",
        use_unnest=True,
        wildcard_many="*",
        wildcard_one="?",
        negation_marker="!",
    )


@pytest.fixture
def flat_tag_compiler():
    """Flat-mode tag compiler over a child table."""
    return TagWhereCompiler(column="post_tags", value_alias="name", use_unnest=False, negation_marker="!")


@pytest.fixture
def specials():
    registry = SpecialQueryRegistry()
    registry.add("source")
    registry.add("score", int)
    return registry


@pytest.fixture
def parser(specials):
    return TagQueryParser(column="tags", can_repeat=True, parse_limit=-1, negation_marker="!", specials=specials)


@pytest.fixture
def ranking_compiler():
    return RankingCompiler(default_operator="LIKE")


@pytest.fixture
def engine():
    return FilterEngine(tag_column="tags")


@pytest.fixture(scope="session")
def sample_queries():
    """Sample tag search inputs."""
    return [
        "applejack AND rarity",
        "(rainbow dash OR fluttershy) AND !sad",
        '"pinkie pie"^2 AND source:ponybooru',
        "rain*dash AND twilight~0.8",
    ]
