"""Tests for compiler helpers: input normalization and literal escaping."""

import pytest

from tagsql.exceptions import InvalidFieldError, MissingFieldError
from tagsql.querydsl.compilers.utils import escape_literal, format_number, normalize_where_input
from tagsql.querydsl.q import Q
from tagsql.schema import Composite, Leaf


class TestNormalizeWhereInput:
    def test_q_becomes_node(self):
        assert isinstance(normalize_where_input(Q(a=1)), Leaf)
        assert isinstance(normalize_where_input(Q(a=1) | Q(b=2)), Composite)

    def test_nodes_pass_through(self):
        leaf = Leaf(column="a")
        assert normalize_where_input(leaf) is leaf

    @pytest.mark.parametrize("key", ["group", "logic"])
    def test_conditions_dict(self, key):
        node = normalize_where_input({key: "or", "conditions": []})
        assert isinstance(node, Composite)
        assert node.connector == "OR"

    def test_conditions_must_be_list(self):
        with pytest.raises(InvalidFieldError):
            normalize_where_input({"conditions": {"a": 1}})

    def test_column_dict(self):
        node = normalize_where_input({"column": "a", "value": 1, "unknown": True})
        assert isinstance(node, Leaf)
        assert node.value == 1

    def test_column_dict_without_column_value(self):
        with pytest.raises(MissingFieldError):
            normalize_where_input({"column": None})

    def test_flat_map_passes_through(self):
        where = {"a": {"value": 1}}
        assert normalize_where_input(where) is where

    @pytest.mark.parametrize("where", [None, 3, "a = 1", ["a"]])
    def test_invalid_input(self, where):
        with pytest.raises(InvalidFieldError):
            normalize_where_input(where)


class TestLiterals:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("deep", "'deep'"),
            ("it's", "'it''s'"),
            ("a\\b", "E'a\\\\b'"),
            ("it's\\", "E'it''s\\\\'"),
            (5, "'5'"),
        ],
    )
    def test_escape_literal(self, value, expected):
        assert escape_literal(value) == expected

    @pytest.mark.parametrize("value,expected", [(2, "2"), (2.0, "2"), (2.5, "2.5"), (-1, "-1")])
    def test_format_number(self, value, expected):
        assert format_number(value) == expected
