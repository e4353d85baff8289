"""
jschematics – JSON Schema engine
=================================
Typed object model, parser, serializer and validator for JSON Schema
draft 2020-12, checked against the official JSON-Schema-Test-Suite fixture
format by a bundled conformance harness.

Quick Start::

    from jschematics import Document, InvalidSchemaValueException

    document = Document.from_json({
        "$defs": {
            "Person": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "father": {"$ref": "#/$defs/Person"},
                },
                "required": ["name"],
            }
        },
        "$ref": "#/$defs/Person",
    })

    document.validate({"name": "Ada", "father": {"name": "George"}})

    try:
        document.validate({"father": {}})
    except InvalidSchemaValueException as e:
        for issue in e.issues:
            print(issue.keyword, issue.instance_path, issue.message)

    # Canonical JSON back out
    assert Document.from_json(document.to_json()) == document
"""

__version__ = "0.1.0"

# Core models
from .models.values import (
    JsonValue,
    ValueKind,
    kind_of,
    json_equal,
)
from .models.schema import (
    Document,
    Draft,
    Format,
    SchemaType,
    SchemaNode,
    Schema,
    ObjectSchema,
    ArraySchema,
    StringSchema,
    IntegerSchema,
    NumberSchema,
    BooleanSchema,
    NullSchema,
    AnySchema,
)

# Errors
from .exceptions import (
    SchematicsError,
    InvalidSchemaException,
    ValidationFailure,
    InvalidSchemaValueException,
    UnresolvableReference,
    NotYetImplemented,
    RecursionLimitExceeded,
    SchemaLoadingError,
)

# Parsing / serialization / resolution
from .index.document_index import DocumentIndex
from .parser.schema_parser import SchemaParser, from_json
from .serializer.schema_serializer import SchemaSerializer, to_json, dumps

# Builder
from .builder.schema_builder import SchemaBuilder

# Validator
from .config.settings import EngineSettings
from .validator.engine import (
    Validator,
    ValidationResult,
    ValidationIssue,
)

# I/O and conformance
from .io.loader import load_document, load_json
from .conformance.harness import ConformanceRunner, ConformanceReport, Outcome

__all__ = [
    # Models
    "JsonValue",
    "ValueKind",
    "kind_of",
    "json_equal",
    "Document",
    "Draft",
    "Format",
    "SchemaType",
    "SchemaNode",
    "Schema",
    "ObjectSchema",
    "ArraySchema",
    "StringSchema",
    "IntegerSchema",
    "NumberSchema",
    "BooleanSchema",
    "NullSchema",
    "AnySchema",
    # Errors
    "SchematicsError",
    "InvalidSchemaException",
    "ValidationFailure",
    "InvalidSchemaValueException",
    "UnresolvableReference",
    "NotYetImplemented",
    "RecursionLimitExceeded",
    "SchemaLoadingError",
    # Parsing / serialization
    "DocumentIndex",
    "SchemaParser",
    "from_json",
    "SchemaSerializer",
    "to_json",
    "dumps",
    # Builder
    "SchemaBuilder",
    # Validation
    "EngineSettings",
    "Validator",
    "ValidationResult",
    "ValidationIssue",
    # I/O and conformance
    "load_document",
    "load_json",
    "ConformanceRunner",
    "ConformanceReport",
    "Outcome",
]
