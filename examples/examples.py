"""
Examples for jschematics
=========================
Three complete examples: a recursive schema, a schema built in code, and a
conformance run over fixture files.

Run:
    python examples/examples.py
"""

from __future__ import annotations

import json
import sys
import tempfile
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from jschematics import (
    ConformanceRunner,
    Document,
    InvalidSchemaException,
    InvalidSchemaValueException,
    SchemaBuilder,
    SchemaType,
    dumps,
    load_document,
)


# ---------------------------------------------------------------------------
# Example 1: Recursive schema
# ---------------------------------------------------------------------------


def example_family_tree() -> None:
    """
    Example 1: A Person whose father is a Person.

    The ``$ref`` is resolved lazily, so arbitrarily deep lineages validate
    without the schema ever being expanded.
    """
    print("\n" + "="*60)
    print("EXAMPLE 1: Recursive Person schema")
    print("="*60)

    document = Document.from_json({
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "$defs": {
            "Person": {
                "type": "object",
                "properties": {
                    "name": {"type": "string", "minLength": 1},
                    "born": {"type": "string", "format": "date"},
                    "father": {"$ref": "#/$defs/Person"},
                },
                "required": ["name"],
            }
        },
        "$ref": "#/$defs/Person",
    })
    print(f"  Document: {document!r}")
    print(f"  Indexed locations: {len(document.index)}")

    person = {"name": "Ada", "born": "1815-12-10", "father": {"name": "George", "father": {"name": "Byron"}}}
    print(f"  Valid lineage: {document.evaluate(person)}")

    try:
        document.validate({"name": "Ada", "father": {"born": "1788-01-22"}})
    except InvalidSchemaValueException as e:
        for issue in e.issues:
            print(f"  [{issue.keyword}] {issue.instance_path}: {issue.message}")

    try:
        Document.from_json({"type": "object", "properties": {"tags": {"type": "string", "items": {}}}})
    except InvalidSchemaException as e:
        print(f"  Rejected schema: {e}")

    print("  ✓ Example 1 complete")


# ---------------------------------------------------------------------------
# Example 2: Builder and canonical JSON
# ---------------------------------------------------------------------------


def example_builder() -> None:
    """
    Example 2: Build an order schema in code and write it out.

    The builder produces the same nodes as parsing the equivalent JSON, so
    the document can be serialized, reloaded and compared.
    """
    print("\n" + "="*60)
    print("EXAMPLE 2: SchemaBuilder and normalization")
    print("="*60)

    line = (
        SchemaBuilder.object()
        .with_property("sku", SchemaBuilder.string().pattern("^[A-Z]{3}-[0-9]+$"), required=True)
        .with_property("quantity", SchemaBuilder.integer().minimum(1), required=True)
        .with_property("price", SchemaBuilder.number().exclusive_minimum(0).multiple_of(0.01))
        .additional_properties(False)
    )
    order = (
        SchemaBuilder.object()
        .with_title("Order")
        .with_property("id", SchemaBuilder.string().format("uuid"), required=True)
        .with_property("lines", SchemaBuilder.array().items(SchemaBuilder.ref("#/$defs/Line")).min_items(1))
        .with_property("coupon", SchemaBuilder.any(SchemaType.STRING, SchemaType.NULL))
        .dependent_required("discount", "coupon")
        .define("Line", line)
        .build_document(dialect="https://json-schema.org/draft/2020-12/schema")
    )

    instance = {
        "id": "2eb8aa08-aa98-11ea-b4aa-73b441d16380",
        "lines": [{"sku": "ABC-1", "quantity": 2, "price": 19.99}],
        "coupon": None,
    }
    print(f"  Valid order: {order.evaluate(instance)}")

    result = order.evaluate({"id": "nope", "lines": [{"sku": "abc", "quantity": 0, "extra": 1}], "discount": 5})
    print(f"  Invalid order: {result}")
    for issue in result.issues:
        print(f"    [{issue.keyword}] {issue.instance_path}: {issue.message}")

    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "order.schema.json"
        path.write_text(dumps(order), encoding="utf-8")
        reloaded = load_document(path)
        print(f"  Written to {path.name}, reloaded equal: {reloaded == order}")

    print("  ✓ Example 2 complete")


# ---------------------------------------------------------------------------
# Example 3: Conformance run
# ---------------------------------------------------------------------------


def example_conformance() -> None:
    """
    Example 3: Run fixture files in the JSON-Schema-Test-Suite layout.

    Point ``ConformanceRunner.run_directory`` at
    ``JSON-Schema-Test-Suite/tests/draft2020-12`` for the official suite.
    """
    print("\n" + "="*60)
    print("EXAMPLE 3: Conformance harness")
    print("="*60)

    fixtures = [
        {
            "description": "oneOf with overlapping branches",
            "schema": {"oneOf": [{"type": "integer"}, {"minimum": 2}]},
            "tests": [
                {"description": "first only", "data": 1, "valid": True},
                {"description": "second only", "data": 2.5, "valid": True},
                {"description": "both", "data": 3, "valid": False},
            ],
        },
        {
            "description": "unevaluatedProperties",
            "schema": {"type": "object", "unevaluatedProperties": False},
            "tests": [
                {"description": "empty object", "data": {}, "valid": True},
                {"description": "extra property", "data": {"a": 1}, "valid": False},
            ],
        },
    ]

    with tempfile.TemporaryDirectory() as tmp:
        (Path(tmp) / "sample.json").write_text(json.dumps(fixtures), encoding="utf-8")
        report = ConformanceRunner().run_directory(tmp)

    print(f"  {report}")
    for outcome in report.outcomes:
        print(f"    {outcome.outcome.value:5}  {outcome.group}: {outcome.case}")
    print(f"  Pass counts: {report.pass_counts()}")
    print("  ✓ Example 3 complete")


# ---------------------------------------------------------------------------
# Run all examples
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    example_family_tree()
    example_builder()
    example_conformance()

    print("\n" + "="*60)
    print("All examples completed successfully.")
    print("="*60 + "\n")
