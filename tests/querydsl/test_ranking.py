"""Tests for the ranking CASE compiler and select lists."""

import pytest

from tagsql.exceptions import InvalidFieldError
from tagsql.querydsl.compilers.ranking import RankingCompiler
from tagsql.schema import RankRule


class TestToCase:
    """Tests for CASE expression generation."""

    def test_like_rules(self, ranking_compiler):
        rules = [
            {"columns": "tags", "value": "deep", "weight": 3},
            {"columns": ["title", "body"], "value": "cute", "weight": 2},
        ]
        assert ranking_compiler.to_case(rules, "rank") == (
            "CASE WHEN tags LIKE '%deep%' THEN 3"
            " WHEN title LIKE '%cute%' OR body LIKE '%cute%' THEN 2"
            " ELSE 0 END AS rank"
        )

    def test_in_rule(self, ranking_compiler):
        rules = [RankRule(columns="kind", operator="IN", value=["a", "b'c"])]
        assert ranking_compiler.to_case(rules, "rank") == "CASE WHEN kind IN ('a', 'b''c') THEN 1 ELSE 0 END AS rank"

    def test_raw_condition(self, ranking_compiler):
        rules = [{"value": "score > 10", "weight": 1.5}]
        assert ranking_compiler.to_case(rules, "rank") == "CASE WHEN score > 10 THEN 1.5 ELSE 0 END AS rank"

    def test_backslash_uses_escape_string(self, ranking_compiler):
        rules = [{"columns": "path", "operator": "=", "value": "a\\b"}]
        assert ranking_compiler.to_case(rules, "rank") == "CASE WHEN path = E'a\\\\b' THEN 1 ELSE 0 END AS rank"

    def test_ilike_wraps_value(self, ranking_compiler):
        sql = ranking_compiler.to_case([{"columns": "name", "operator": "ilike", "value": "x"}], "r")
        assert sql == "CASE WHEN name ILIKE '%x%' THEN 1 ELSE 0 END AS r"

    def test_whole_float_weight(self, ranking_compiler):
        sql = ranking_compiler.to_case([{"columns": "name", "value": "x", "weight": 2.0}], "r")
        assert "THEN 2 ELSE" in sql

    def test_default_operator_from_constructor(self):
        sql = RankingCompiler(default_operator="=").to_case([{"columns": "name", "value": "x"}], "r")
        assert sql == "CASE WHEN name = 'x' THEN 1 ELSE 0 END AS r"

    def test_empty_rules(self, ranking_compiler):
        assert ranking_compiler.to_case([], "rank") == "0 AS rank"


class TestToCaseErrors:
    """Tests for rule validation."""

    @pytest.mark.parametrize("alias", ["", None, 3])
    def test_invalid_alias(self, ranking_compiler, alias):
        with pytest.raises(InvalidFieldError):
            ranking_compiler.to_case([], alias)

    def test_rules_not_a_list(self, ranking_compiler):
        with pytest.raises(InvalidFieldError):
            ranking_compiler.to_case("tags", "rank")

    @pytest.mark.parametrize("weight", ["3", float("nan"), None])
    def test_invalid_weight(self, ranking_compiler, weight):
        with pytest.raises(InvalidFieldError):
            ranking_compiler.to_case([{"columns": "tags", "value": "x", "weight": weight}], "rank")

    def test_in_requires_list(self, ranking_compiler):
        with pytest.raises(InvalidFieldError):
            ranking_compiler.to_case([{"columns": "kind", "operator": "IN", "value": "a"}], "rank")

    def test_like_requires_string(self, ranking_compiler):
        with pytest.raises(InvalidFieldError):
            ranking_compiler.to_case([{"columns": "kind", "value": ["a"]}], "rank")

    def test_raw_condition_requires_string(self, ranking_compiler):
        with pytest.raises(InvalidFieldError):
            ranking_compiler.to_case([{"value": ["a"]}], "rank")

    def test_rule_not_a_mapping(self, ranking_compiler):
        with pytest.raises(InvalidFieldError):
            ranking_compiler.to_case(["tags LIKE 'x'"], "rank")


class TestToSelect:
    """Tests for select list generation."""

    def test_full_select(self, ranking_compiler):
        sql = ranking_compiler.to_select(
            values=["id", "title"],
            aliases={"t.name": "name"},
            rank={"alias": "rank", "rules": [{"columns": "tags", "value": "deep", "weight": 3}]},
        )
        assert sql == "t.name AS name, id, title, CASE WHEN tags LIKE '%deep%' THEN 3 ELSE 0 END AS rank"

    def test_empty_select(self, ranking_compiler):
        assert ranking_compiler.to_select() == "*"

    def test_rank_without_alias(self, ranking_compiler):
        with pytest.raises(InvalidFieldError):
            ranking_compiler.to_select(rank={"rules": []})
