"""Tests for the Validator: keyword semantics, issue reporting, fatal conditions."""

from __future__ import annotations

from typing import Any

import pytest

from jschematics import (
    Document,
    EngineSettings,
    InvalidSchemaValueException,
    NotYetImplemented,
    RecursionLimitExceeded,
    SchemaType,
    UnresolvableReference,
    ValidationResult,
    Validator,
)
from jschematics.validator.engine import is_multiple_of, matches_type


def evaluate(schema: Any, value: Any, **settings: Any) -> ValidationResult:
    return Validator(Document.from_json(schema), EngineSettings(**settings)).evaluate(value)


class TestResultShape:

    def test_missing_required_property(self, named_schema: dict[str, Any]) -> None:
        result = evaluate(named_schema, {})
        assert not result.passed
        assert len(result.issues) == 1
        issue = result.issues[0]
        assert issue.keyword == "required"
        assert issue.schema_path == "#"
        assert issue.instance_path == "#"
        assert '"name"' in issue.message

    def test_valid_instance(self, named_schema: dict[str, Any]) -> None:
        result = evaluate(named_schema, {"name": "Ada"})
        assert result.passed
        assert result.issues == []
        assert str(result) == "[PASS] 0 issue(s)"

    def test_all_issues_of_a_node_are_collected(self) -> None:
        result = evaluate({"type": "string", "minLength": 5, "pattern": "^[0-9]+$"}, "ab")
        assert result.keywords == {"minLength", "pattern"}

    def test_issue_paths_point_into_nested_values(self) -> None:
        schema = {
            "type": "object",
            "properties": {"tags": {"type": "array", "items": {"type": "string"}}},
        }
        result = evaluate(schema, {"tags": ["a", 2]})
        issue = result.issues[0]
        assert issue.schema_path == "#/properties/tags/items"
        assert issue.instance_path == "#/tags/1"

    def test_to_dict(self, named_schema: dict[str, Any]) -> None:
        data = evaluate(named_schema, {}).to_dict()
        assert data["passed"] is False
        assert data["issues"][0]["keyword"] == "required"

    def test_validate_raises(self, named_schema: dict[str, Any]) -> None:
        validator = Validator(Document.from_json(named_schema))
        validator.validate({"name": "x"})
        with pytest.raises(InvalidSchemaValueException) as exc_info:
            validator.validate({})
        assert exc_info.value.first.keyword == "required"
        assert not validator.is_valid({})

    def test_evaluate_node(self, person_document: Document) -> None:
        validator = Validator(person_document)
        node = person_document.resolve("#/$defs/Person/properties/age")
        result = validator.evaluate_node(node, "#/$defs/Person/properties/age", -1)
        assert result.keywords == {"minimum"}
        assert result.issues[0].schema_path == "#/$defs/Person/properties/age"


class TestRecursiveReferences:

    @pytest.mark.parametrize("depth", [0, 1, 60, 300])
    def test_lineage_is_valid(self, person_document: Document, make_lineage, depth: int) -> None:
        assert person_document.evaluate(make_lineage(depth)).passed

    def test_invalid_innermost_ancestor(self, person_document: Document, make_lineage) -> None:
        result = person_document.evaluate(make_lineage(60, innermost={"age": 3}))
        assert not result.passed
        issue = result.issues[0]
        assert issue.keyword == "required"
        assert issue.instance_path == "#" + "/father" * 60
        assert issue.schema_path == "#/$defs/Person"

    def test_cyclic_reference_hits_the_ceiling(self) -> None:
        document = Document.from_json({"$defs": {"loop": {"$ref": "#/$defs/loop"}}, "$ref": "#/$defs/loop"})
        with pytest.raises(RecursionLimitExceeded) as exc_info:
            document.evaluate(1)
        assert exc_info.value.limit == 200

    def test_deep_lineage_reports_the_innermost_issue(self, person_document: Document, make_lineage) -> None:
        result = person_document.evaluate(make_lineage(300, innermost={"name": ""}))
        assert result.keywords == {"minLength"}
        assert result.issues[0].instance_path == "#" + "/father" * 300 + "/name"

    def test_descent_into_the_instance_resets_the_ceiling(self, person_document: Document, make_lineage) -> None:
        settings = EngineSettings(max_depth=3)
        assert person_document.evaluate(make_lineage(50), settings).passed

    def test_ceiling_is_configurable(self) -> None:
        schema: Any = {"type": "integer"}
        for _ in range(12):
            schema = {"allOf": [schema]}
        document = Document.from_json(schema)
        assert document.is_valid(1)
        with pytest.raises(RecursionLimitExceeded) as exc_info:
            document.evaluate(1, EngineSettings(max_depth=10))
        assert exc_info.value.limit == 10

    def test_cycle_through_dependent_schemas(self) -> None:
        document = Document.from_json({"type": "object", "dependentSchemas": {"a": {"$ref": "#"}}})
        assert document.is_valid({"b": 1})
        with pytest.raises(RecursionLimitExceeded):
            document.evaluate({"a": 1})

    def test_exhausted_stack_is_a_recursion_limit(self) -> None:
        document = Document.from_json({"type": "array", "items": {"$ref": "#"}})
        value: list[Any] = []
        for _ in range(5000):
            value = [value]
        assert document.is_valid([[[]]])
        with pytest.raises(RecursionLimitExceeded):
            document.evaluate(value)

    def test_inheritance_through_all_of(self) -> None:
        schema = {
            "$defs": {
                "Base": {"type": "object", "properties": {"id": {"type": "integer"}}, "required": ["id"]},
            },
            "allOf": [{"$ref": "#/$defs/Base"}],
            "properties": {"label": {"type": "string"}},
        }
        document = Document.from_json(schema)
        assert document.is_valid({"id": 1, "label": "x"})
        result = document.evaluate({"label": 3})
        assert result.keywords == {"required", "type"}

    def test_ref_with_sibling_keywords(self) -> None:
        schema = {"$defs": {"n": {"type": "integer"}}, "$ref": "#/$defs/n", "minimum": 5}
        assert evaluate(schema, 6).passed
        assert evaluate(schema, 4).keywords == {"minimum"}
        assert evaluate(schema, "a").keywords == {"type"}


class TestFatalConditions:

    def test_unresolvable_reference(self) -> None:
        document = Document.from_json({"properties": {"a": {"$ref": "#/$defs/missing"}}})
        assert document.is_valid({"b": 1})
        with pytest.raises(UnresolvableReference):
            document.evaluate({"a": 1})

    def test_fatal_inside_any_of_propagates(self) -> None:
        document = Document.from_json({"anyOf": [{"type": "string"}, {"$ref": "#/$defs/missing"}]})
        with pytest.raises(UnresolvableReference):
            document.evaluate(1)

    def test_external_reference(self) -> None:
        document = Document.from_json({"$ref": "https://example.com/other.json"})
        with pytest.raises(NotYetImplemented):
            document.evaluate(1)

    def test_unevaluated_properties(self) -> None:
        document = Document.from_json({"unevaluatedProperties": False})
        with pytest.raises(NotYetImplemented) as exc_info:
            document.evaluate({})
        assert exc_info.value.feature == "unevaluatedProperties"
        assert document.is_valid("not an object")

    def test_unevaluated_items(self) -> None:
        with pytest.raises(NotYetImplemented):
            evaluate({"unevaluatedItems": False}, [1])

    def test_dynamic_ref(self) -> None:
        with pytest.raises(NotYetImplemented):
            evaluate({"$dynamicRef": "#meta"}, 1)


class TestTypes:

    @pytest.mark.parametrize(
        "kind, value, expected",
        [
            (SchemaType.INTEGER, 1, True),
            (SchemaType.INTEGER, 1.0, True),
            (SchemaType.INTEGER, 1.5, False),
            (SchemaType.INTEGER, True, False),
            (SchemaType.NUMBER, 1, True),
            (SchemaType.NUMBER, False, False),
            (SchemaType.BOOLEAN, 0, False),
            (SchemaType.NULL, None, True),
            (SchemaType.ARRAY, {}, False),
            (SchemaType.OBJECT, {}, True),
            (SchemaType.ANY, "x", True),
        ],
    )
    def test_matches_type(self, kind, value, expected) -> None:
        assert matches_type(kind, value) is expected

    def test_type_mismatch_message(self) -> None:
        issue = evaluate({"type": "integer"}, "3").issues[0]
        assert issue.keyword == "type"
        assert issue.message == "Expected integer, got string"

    def test_union(self) -> None:
        schema = {"type": ["string", "null"], "maxLength": 2}
        assert evaluate(schema, None).passed
        assert evaluate(schema, "ab").passed
        assert evaluate(schema, "abc").keywords == {"maxLength"}
        assert evaluate(schema, 1).keywords == {"type"}

    def test_untyped_keywords_only_constrain_their_kind(self) -> None:
        schema = {"minimum": 3, "multipleOf": 2}
        assert evaluate(schema, 4).passed
        assert evaluate(schema, "ab").passed
        assert evaluate(schema, None).passed
        assert evaluate(schema, 1).keywords == {"minimum", "multipleOf"}
        assert evaluate({"minLength": 2}, "a").keywords == {"minLength"}
        assert evaluate({"minLength": 2}, 1).passed

    def test_boolean_schemas(self) -> None:
        assert evaluate(True, {"anything": [1]}).passed
        result = evaluate(False, None)
        assert result.keywords == {"false"}


class TestValueKeywords:

    def test_const_null(self) -> None:
        assert evaluate({"const": None}, None).passed
        assert not evaluate({"const": None}, 0).passed
        assert not evaluate({"const": None}, False).passed

    def test_const_compares_structurally(self) -> None:
        schema = {"const": {"a": [1, 2]}}
        assert evaluate(schema, {"a": [1.0, 2]}).passed
        assert evaluate(schema, {"a": [2, 1]}).keywords == {"const"}

    def test_enum(self) -> None:
        schema = {"enum": [1, "two", None]}
        assert evaluate(schema, 1.0).passed
        assert evaluate(schema, None).passed
        assert evaluate(schema, True).keywords == {"enum"}


class TestCombinators:

    ONE_OF = {"oneOf": [{"type": "integer"}, {"minimum": 2}]}

    def test_one_of_exactly_one(self) -> None:
        assert evaluate(self.ONE_OF, 1).passed
        assert evaluate(self.ONE_OF, 2.5).passed

    def test_one_of_none(self) -> None:
        issue = evaluate(self.ONE_OF, 1.5).issues[0]
        assert issue.keyword == "oneOf"
        assert "does not match any" in issue.message

    def test_one_of_several(self) -> None:
        issue = evaluate(self.ONE_OF, 3).issues[0]
        assert issue.keyword == "oneOf"
        assert "[0, 1]" in issue.message

    def test_any_of(self) -> None:
        schema = {"anyOf": [{"type": "string"}, {"type": "integer", "minimum": 10}]}
        assert evaluate(schema, "x").passed
        assert evaluate(schema, 11).passed
        result = evaluate(schema, 3)
        assert [i.keyword for i in result.issues] == ["anyOf"]

    def test_all_of_reports_each_branch(self) -> None:
        schema = {"allOf": [{"minimum": 5}, {"multipleOf": 2}]}
        result = evaluate(schema, 3)
        assert result.keywords == {"minimum", "multipleOf"}
        assert {i.schema_path for i in result.issues} == {"#/allOf/0", "#/allOf/1"}

    def test_not(self) -> None:
        schema = {"not": {"type": "string"}}
        assert evaluate(schema, 1).passed
        assert evaluate(schema, "x").keywords == {"not"}

    def test_if_then_else(self) -> None:
        schema = {
            "if": {"properties": {"kind": {"const": "card"}}, "required": ["kind"]},
            "then": {"required": ["number"]},
            "else": {"required": ["iban"]},
        }
        assert evaluate(schema, {"kind": "card", "number": "4111"}).passed
        assert evaluate(schema, {"kind": "bank", "iban": "DE00"}).passed
        result = evaluate(schema, {"kind": "card"})
        assert result.issues[0].schema_path == "#/then"
        result = evaluate(schema, {"kind": "bank"})
        assert result.issues[0].schema_path == "#/else"

    def test_if_without_branches(self) -> None:
        assert evaluate({"if": {"type": "string"}}, 1).passed


class TestObjects:

    def test_additional_properties_false(self) -> None:
        schema = {"type": "object", "properties": {"a": {}}, "additionalProperties": False}
        result = evaluate(schema, {"a": 1, "b": 2})
        assert len(result.issues) == 1
        assert result.issues[0].keyword == "additionalProperties"
        assert result.issues[0].instance_path == "#/b"

    def test_pattern_properties_suppress_additional(self) -> None:
        schema = {
            "type": "object",
            "patternProperties": {"^x-": {"type": "string"}},
            "additionalProperties": {"type": "integer"},
        }
        assert evaluate(schema, {"x-a": "s", "n": 1}).passed
        result = evaluate(schema, {"x-a": 1, "n": "s"})
        assert {i.schema_path for i in result.issues} == {
            "#/patternProperties/^x-",
            "#/additionalProperties",
        }

    def test_property_names(self) -> None:
        schema = {"type": "object", "propertyNames": {"maxLength": 3}}
        assert evaluate(schema, {"abc": 1}).passed
        assert evaluate(schema, {"abcd": 1}).keywords == {"propertyNames"}

    def test_property_counts(self) -> None:
        schema = {"type": "object", "minProperties": 1, "maxProperties": 2}
        assert evaluate(schema, {}).keywords == {"minProperties"}
        assert evaluate(schema, {"a": 1, "b": 2, "c": 3}).keywords == {"maxProperties"}

    def test_dependent_required(self) -> None:
        schema = {"type": "object", "dependentRequired": {"card": ["billing"]}}
        assert evaluate(schema, {}).passed
        assert evaluate(schema, {"card": 1, "billing": 2}).passed
        assert evaluate(schema, {"card": 1}).keywords == {"dependentRequired"}

    def test_dependent_schemas(self) -> None:
        schema = {"type": "object", "dependentSchemas": {"card": {"required": ["billing"]}}}
        assert evaluate(schema, {"billing": 1}).passed
        result = evaluate(schema, {"card": 1})
        assert result.issues[0].schema_path == "#/dependentSchemas/card"


class TestArrays:

    def test_prefix_items_and_items_false(self) -> None:
        schema = {"type": "array", "prefixItems": [{"type": "integer"}, {"type": "string"}], "items": False}
        assert evaluate(schema, [1, "a"]).passed
        assert evaluate(schema, [1]).passed
        assert evaluate(schema, ["a"]).issues[0].instance_path == "#/0"
        assert evaluate(schema, [1, "a", None]).keywords == {"items"}

    def test_items_apply_after_prefix(self) -> None:
        schema = {"type": "array", "prefixItems": [{"type": "string"}], "items": {"type": "integer"}}
        result = evaluate(schema, ["a", 1, "b"])
        assert [i.instance_path for i in result.issues] == ["#/2"]

    def test_contains(self) -> None:
        schema = {"type": "array", "contains": {"type": "integer"}}
        assert evaluate(schema, ["a", 1]).passed
        assert evaluate(schema, ["a"]).keywords == {"contains"}
        assert evaluate(schema, []).keywords == {"contains"}

    def test_min_and_max_contains(self) -> None:
        schema = {"type": "array", "contains": {"const": 1}, "minContains": 2, "maxContains": 3}
        assert evaluate(schema, [1, 1, 2]).passed
        assert evaluate(schema, [1, 2]).keywords == {"minContains"}
        assert evaluate(schema, [1, 1, 1, 1]).keywords == {"maxContains"}

    def test_min_contains_zero(self) -> None:
        schema = {"type": "array", "contains": {"const": 1}, "minContains": 0}
        assert evaluate(schema, []).passed
        assert evaluate(schema, [2]).passed

    def test_unique_items(self) -> None:
        schema = {"type": "array", "uniqueItems": True}
        assert evaluate(schema, [1, True, "1"]).passed
        assert evaluate(schema, [1, 1.0]).keywords == {"uniqueItems"}
        assert evaluate({"type": "array", "uniqueItems": False}, [1, 1]).passed

    def test_item_counts(self) -> None:
        schema = {"type": "array", "minItems": 1, "maxItems": 2}
        assert evaluate(schema, []).keywords == {"minItems"}
        assert evaluate(schema, [1, 2, 3]).keywords == {"maxItems"}


class TestStrings:

    def test_length_counts_code_points(self) -> None:
        schema = {"type": "string", "minLength": 2, "maxLength": 2}
        assert evaluate(schema, "\U0001f600\U0001f600").passed
        assert evaluate(schema, "\U0001f600").keywords == {"minLength"}

    def test_pattern_is_a_search(self) -> None:
        schema = {"type": "string", "pattern": "b+"}
        assert evaluate(schema, "abba").passed
        assert evaluate(schema, "aaa").keywords == {"pattern"}

    def test_format_asserted_by_default(self) -> None:
        schema = {"type": "string", "format": "email"}
        assert evaluate(schema, "ada@example.com").passed
        assert evaluate(schema, "not an email").keywords == {"format"}

    def test_format_as_annotation(self) -> None:
        schema = {"type": "string", "format": "email"}
        assert evaluate(schema, "not an email", assert_formats=False).passed

    def test_unknown_format_passes(self) -> None:
        assert evaluate({"type": "string", "format": "color"}, "teal").passed


class TestNumbers:

    def test_bounds(self) -> None:
        schema = {"type": "number", "minimum": 1, "maximum": 3}
        assert evaluate(schema, 1).passed
        assert evaluate(schema, 3.0).passed
        assert evaluate(schema, 0.5).keywords == {"minimum"}
        assert evaluate(schema, 4).keywords == {"maximum"}

    def test_exclusive_bounds(self) -> None:
        schema = {"type": "number", "exclusiveMinimum": 1, "exclusiveMaximum": 3}
        assert evaluate(schema, 2).passed
        assert evaluate(schema, 1).keywords == {"exclusiveMinimum"}
        assert evaluate(schema, 3).keywords == {"exclusiveMaximum"}

    def test_multiple_of(self) -> None:
        assert evaluate({"type": "number", "multipleOf": 0.0001}, 0.0075).passed
        assert evaluate({"type": "number", "multipleOf": 0.5}, 1.25).keywords == {"multipleOf"}
        assert evaluate({"type": "integer", "multipleOf": 3}, 9).passed

    def test_multiple_of_overflow_fails_cleanly(self) -> None:
        schema = {"type": "integer", "multipleOf": 0.123456789}
        assert evaluate(schema, 1e308).keywords == {"multipleOf"}

    def test_is_multiple_of(self) -> None:
        assert is_multiple_of(10**30, 10)
        assert not is_multiple_of(10**30 + 1, 10)
        assert is_multiple_of(0.3, 0.1)
        assert not is_multiple_of(float("inf"), 2)
