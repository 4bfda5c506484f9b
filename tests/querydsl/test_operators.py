"""Tests for the operator registry and its handler variants."""

import pytest

from tagsql.exceptions import DuplicateKeyError, InvalidFieldError, InvalidRegistrationError
from tagsql.querydsl.operators import (
    DEFAULT_FUNCTIONS,
    OperatorRegistry,
    Resolution,
    Resolver,
    Template,
    Verbatim,
    build_default_registry,
)
from tagsql.schema import Leaf


class TestRegistration:
    """Tests for write-once registration."""

    def test_register_and_get(self):
        registry = OperatorRegistry()
        registry.register("ilike", Verbatim(operator="ILIKE"))
        assert registry.has("ILIKE")
        assert "ilike" in registry
        assert isinstance(registry.get("Ilike"), Verbatim)
        assert registry.keys() == ["ILIKE"]

    def test_duplicate_key_is_case_insensitive(self, registry):
        with pytest.raises(DuplicateKeyError):
            registry.register("like", Verbatim(operator="LIKE"))

    @pytest.mark.parametrize("key", ["", "   ", None, 3])
    def test_invalid_key(self, key):
        with pytest.raises(InvalidRegistrationError):
            OperatorRegistry().register(key, Verbatim(operator="="))

    def test_handler_of_wrong_shape(self):
        with pytest.raises(InvalidRegistrationError):
            OperatorRegistry().register("EQ", "=")

    def test_non_callable_transform(self):
        with pytest.raises(InvalidRegistrationError):
            OperatorRegistry().register("EQ", Verbatim(operator="="), transform="LOWER")

    def test_transform_registered_with_handler(self):
        registry = OperatorRegistry()
        registry.register("LOWER_EQ", Verbatim(operator="="), transform=lambda p: f"LOWER({p})")
        assert registry.get_transform("lower_eq")("$1") == "LOWER($1)"
        assert registry.get_transform(None) is None

    def test_unregister(self, registry):
        registry.unregister("like")
        assert not registry.has("LIKE")
        assert registry.get_transform("LIKE") is None
        # Key can be reused once removed
        registry.register("LIKE", Verbatim(operator="ILIKE"))

    def test_unregister_missing_is_ignored(self):
        OperatorRegistry().unregister("NOPE")

    def test_get_unknown_returns_none(self, registry):
        assert registry.get("BETWEEN") is None
        assert registry.get(5) is None
        assert 5 not in registry


class TestRegisterFunction:
    """Tests for scalar function wrappers."""

    def test_invalid_arguments(self):
        registry = OperatorRegistry()
        with pytest.raises(InvalidRegistrationError):
            registry.register_function("")
        with pytest.raises(InvalidRegistrationError):
            registry.register_function("LOWER", apply_to_param="yes")
        with pytest.raises(InvalidRegistrationError):
            registry.register_function("LOWER", operator=" ")

    def test_resolution_wraps_column(self):
        registry = OperatorRegistry()
        registry.register_function("LOWER")
        res = registry.get("LOWER").resolve(Leaf(column="name", operator="LOWER", value="x"))
        assert res.column == "LOWER(name)"
        assert res.operator == "="
        assert res.value_transform is None
        assert not res.overrides_value

    def test_apply_to_param_sets_transform(self):
        registry = OperatorRegistry()
        registry.register_function("SOUNDEX", apply_to_param=True)
        res = registry.get("SOUNDEX").resolve(Leaf(column="name", operator="SOUNDEX", value="x"))
        assert res.value_transform == "SOUNDEX"

    def test_overrides(self):
        registry = OperatorRegistry()
        registry.register_function("SOUNDEX", apply_to_param=True)
        leaf = Leaf(column="name", operator="SOUNDEX", value="x", operator_override="<>", function_override=None)
        res = registry.get("SOUNDEX").resolve(leaf)
        assert res.operator == "<>"
        assert res.value_transform is None

    def test_default_functions_registered(self, registry):
        for name in DEFAULT_FUNCTIONS:
            assert registry.has(name)
            assert registry.get_transform(name)("$1") == f"{name}($1)"


class TestHandlers:
    """Tests for Verbatim, Template and Resolver."""

    @pytest.mark.parametrize(
        "factory",
        [
            lambda: Verbatim(operator=""),
            lambda: Verbatim(),
            lambda: Template(operator="  "),
            lambda: Template(operator=">", column=3),
            lambda: Resolver(fn=5),
        ],
    )
    def test_invalid_handler_raises_registration_error(self, factory):
        with pytest.raises(InvalidRegistrationError) as exc_info:
            factory()
        assert exc_info.value.details["errors"]

    def test_template_only_sets_given_fields(self):
        res = Template(operator=">").resolve(Leaf(column="x", value=1))
        assert res.operator == ">"
        assert res.column is None
        assert not res.overrides_value

    def test_template_value_override(self):
        template = Template(operator="=", value=None)
        first = template.resolve(Leaf(column="x", value=1))
        second = template.resolve(Leaf(column="y", value=2))
        assert first.overrides_value
        assert first.value is None
        assert first is not second

    def test_resolver_accepts_dict(self):
        res = Resolver(fn=lambda leaf: {"operator": "<>"}).resolve(Leaf(column="x"))
        assert isinstance(res, Resolution)
        assert res.operator == "<>"

    def test_resolver_rejects_other_results(self):
        with pytest.raises(InvalidFieldError):
            Resolver(fn=lambda leaf: 5).resolve(Leaf(column="x"))

    def test_resolver_rejects_invalid_dict(self):
        with pytest.raises(InvalidFieldError):
            Resolver(fn=lambda leaf: {"operator": 5}).resolve(Leaf(column="x"))


class TestDefaultRegistry:
    """Tests for the pre-seeded registry."""

    @pytest.mark.parametrize("key", ["=", "!=", ">=", "<=", ">", "<", "NOT", "LIKE"])
    def test_comparisons(self, key):
        assert build_default_registry().has(key)

    def test_not_is_inequality(self, registry):
        assert registry.get("NOT").resolve(Leaf(column="x")).operator == "!="

    @pytest.mark.parametrize(
        "side,expected",
        [(None, "%dash%"), ("both", "%dash%"), ("left", "%dash"), ("right", "dash%"), ("RIGHT", "dash%")],
    )
    def test_like_wildcard_side(self, registry, side, expected):
        res = registry.get("LIKE").resolve(Leaf(column="name", value="dash", wildcard_side=side))
        assert res.operator == "LIKE"
        assert res.value == expected

    def test_like_invalid_side(self, registry):
        with pytest.raises(InvalidFieldError):
            registry.get("LIKE").resolve(Leaf(column="name", value="dash", wildcard_side="middle"))
