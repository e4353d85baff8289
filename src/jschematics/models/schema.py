"""
Schema Node Model
==================
Typed representation of a JSON Schema (draft 2020-12) document.

Every schema node is a frozen Pydantic model tagged by ``kind``. The tags are
the seven JSON types plus ``any``; the tagged union :data:`Schema` is what
every subschema position holds. Keywords shared by all kinds (metadata,
combinators, conditionals, ``$ref``, ``$defs``) live on :class:`SchemaNode`;
each typed subclass adds its own keyword family.

An ``any`` node is produced when no ``type`` is declared, or when a union of
types is. Its type-specific keywords are carried by ``variants``: one typed
node per candidate kind, evaluated with ``oneOf`` semantics.

Keyword presence is tracked through ``model_fields_set`` so that
``{"const": null}`` is distinguishable from a schema without ``const``.
"""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum
from functools import cached_property
from typing import TYPE_CHECKING, Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from ..config.settings import EngineSettings
    from ..index.document_index import DocumentIndex
    from ..validator.engine import ValidationResult


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class SchemaType(str, Enum):
    """Declared type of a schema node. ``ANY`` covers untyped and union nodes."""
    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    ANY = "any"


class Draft(str, Enum):
    """Known ``$schema`` dialect identifiers."""
    DECEMBER_2020 = "https://json-schema.org/draft/2020-12/schema"
    SEPTEMBER_2019 = "https://json-schema.org/draft/2019-09/schema"
    DRAFT_07 = "https://json-schema.org/draft-07/schema"
    DRAFT_06 = "https://json-schema.org/draft-06/schema"
    DRAFT_04 = "https://json-schema.org/draft-04/schema"
    DRAFT_03 = "https://json-schema.org/draft-03/schema"

    @classmethod
    def lookup(cls, uri: str | None) -> "Draft | None":
        """Match a ``$schema`` value, ignoring scheme and a trailing ``#``."""
        if uri is None:
            return None
        normalized = uri.rstrip("#").replace("http://", "https://", 1)
        for draft in cls:
            if draft.value == normalized:
                return draft
        return None


class Format(str, Enum):
    """``format`` values with a structural check in this implementation."""
    DATE_TIME = "date-time"
    TIME = "time"
    DATE = "date"
    DURATION = "duration"
    EMAIL = "email"
    IDN_EMAIL = "idn-email"
    HOSTNAME = "hostname"
    IDN_HOSTNAME = "idn-hostname"
    IPV4 = "ipv4"
    IPV6 = "ipv6"
    UUID = "uuid"
    URI = "uri"
    URI_REFERENCE = "uri-reference"
    IRI = "iri"
    IRI_REFERENCE = "iri-reference"
    URI_TEMPLATE = "uri-template"
    JSON_POINTER = "json-pointer"
    RELATIVE_JSON_POINTER = "relative-json-pointer"
    REGEX = "regex"


# ---------------------------------------------------------------------------
# Keyword vocabulary: JSON keyword -> model field
# ---------------------------------------------------------------------------

COMMON_KEYWORDS: dict[str, str] = {
    "$schema": "dialect",
    "$id": "id",
    "$anchor": "anchor",
    "$dynamicAnchor": "dynamic_anchor",
    "$ref": "ref",
    "$dynamicRef": "dynamic_ref",
    "$vocabulary": "vocabulary",
    "$comment": "comment",
    "title": "title",
    "description": "description",
    "default": "default",
    "examples": "examples",
    "deprecated": "deprecated",
    "readOnly": "read_only",
    "writeOnly": "write_only",
    "const": "const",
    "enum": "enum",
    "allOf": "all_of",
    "anyOf": "any_of",
    "oneOf": "one_of",
    "not": "not_",
    "if": "if_",
    "then": "then",
    "else": "else_",
    "$defs": "defs",
}

OBJECT_KEYWORDS: dict[str, str] = {
    "properties": "properties",
    "patternProperties": "pattern_properties",
    "additionalProperties": "additional_properties",
    "propertyNames": "property_names",
    "required": "required",
    "minProperties": "min_properties",
    "maxProperties": "max_properties",
    "dependentRequired": "dependent_required",
    "dependentSchemas": "dependent_schemas",
    "unevaluatedProperties": "unevaluated_properties",
}

ARRAY_KEYWORDS: dict[str, str] = {
    "prefixItems": "prefix_items",
    "items": "items",
    "contains": "contains",
    "minContains": "min_contains",
    "maxContains": "max_contains",
    "minItems": "min_items",
    "maxItems": "max_items",
    "uniqueItems": "unique_items",
    "unevaluatedItems": "unevaluated_items",
}

STRING_KEYWORDS: dict[str, str] = {
    "minLength": "min_length",
    "maxLength": "max_length",
    "pattern": "pattern",
    "format": "format",
    "contentEncoding": "content_encoding",
    "contentMediaType": "content_media_type",
    "contentSchema": "content_schema",
}

NUMERIC_KEYWORDS: dict[str, str] = {
    "multipleOf": "multiple_of",
    "minimum": "minimum",
    "maximum": "maximum",
    "exclusiveMinimum": "exclusive_minimum",
    "exclusiveMaximum": "exclusive_maximum",
}

FAMILY_KEYWORDS: dict[SchemaType, dict[str, str]] = {
    SchemaType.OBJECT: OBJECT_KEYWORDS,
    SchemaType.ARRAY: ARRAY_KEYWORDS,
    SchemaType.STRING: STRING_KEYWORDS,
    SchemaType.INTEGER: NUMERIC_KEYWORDS,
    SchemaType.NUMBER: NUMERIC_KEYWORDS,
    SchemaType.BOOLEAN: {},
    SchemaType.NULL: {},
}

# Family a type-specific keyword belongs to; integer keywords are numeric ones.
KEYWORD_FAMILY: dict[str, SchemaType] = {
    **{k: SchemaType.OBJECT for k in OBJECT_KEYWORDS},
    **{k: SchemaType.ARRAY for k in ARRAY_KEYWORDS},
    **{k: SchemaType.STRING for k in STRING_KEYWORDS},
    **{k: SchemaType.NUMBER for k in NUMERIC_KEYWORDS},
}


# ---------------------------------------------------------------------------
# Schema nodes
# ---------------------------------------------------------------------------

class SchemaNode(BaseModel):
    """
    Keywords common to every schema node.

    Subclasses fix ``kind`` and add their keyword family. Nodes are immutable;
    a document owns all of its nodes and ``$ref`` is kept as a string.
    """
    model_config = ConfigDict(frozen=True)

    kind: SchemaType

    # --- Identification / references ---
    dialect: str | None = Field(None, description="$schema dialect URI (document root)")
    id: str | None = Field(None, description="$id: base URI of this schema resource")
    anchor: str | None = Field(None, description="$anchor plain-name fragment")
    dynamic_anchor: str | None = Field(None, description="$dynamicAnchor")
    ref: str | None = Field(None, description="$ref, resolved lazily through the index")
    dynamic_ref: str | None = Field(None, description="$dynamicRef")
    vocabulary: dict[str, bool] | None = Field(None, description="$vocabulary (meta-schemas)")
    defs: dict[str, Schema] = Field(default_factory=dict, description="$defs")

    # --- Annotations ---
    comment: str | None = None
    title: str | None = None
    description: str | None = None
    default: Any = None
    examples: tuple[Any, ...] | None = None
    deprecated: bool | None = None
    read_only: bool | None = None
    write_only: bool | None = None

    # --- Value restrictions ---
    const: Any = None
    enum: tuple[Any, ...] | None = None

    # --- Combinators / conditionals ---
    all_of: tuple[Schema, ...] = ()
    any_of: tuple[Schema, ...] = ()
    one_of: tuple[Schema, ...] = ()
    not_: Schema | None = None
    if_: Schema | None = None
    then: Schema | None = None
    else_: Schema | None = None

    def declares(self, field: str) -> bool:
        """True when the keyword behind ``field`` was given explicitly."""
        return field in self.model_fields_set

    @property
    def is_ref_only(self) -> bool:
        """A node whose only keyword is ``$ref``."""
        return self.kind is SchemaType.ANY and self.ref is not None and self.model_fields_set <= {"kind", "ref"}

    def children(self) -> Iterator[tuple[tuple[str, ...], Schema]]:
        """
        Yield ``(tokens, node)`` for every direct subschema.

        ``tokens`` are the unescaped JSON Pointer tokens leading from this node
        to the child, e.g. ``("properties", "name")`` or ``("allOf", "0")``.
        """
        for name, node in self.defs.items():
            yield ("$defs", name), node
        for keyword, nodes in (("allOf", self.all_of), ("anyOf", self.any_of), ("oneOf", self.one_of)):
            for i, node in enumerate(nodes):
                yield (keyword, str(i)), node
        for keyword, node in (("not", self.not_), ("if", self.if_), ("then", self.then), ("else", self.else_)):
            if node is not None:
                yield (keyword,), node

    def __repr__(self) -> str:
        keys = sorted(f for f in self.model_fields_set if f != "kind")
        return f"{type(self).__name__}({', '.join(keys)})"


class ObjectSchema(SchemaNode):
    """``type: object`` keyword set."""
    kind: Literal[SchemaType.OBJECT] = SchemaType.OBJECT

    properties: dict[str, Schema] = Field(default_factory=dict)
    pattern_properties: dict[str, Schema] = Field(default_factory=dict)
    additional_properties: Schema | None = None
    property_names: Schema | None = None
    required: tuple[str, ...] = ()
    min_properties: int | None = Field(None, ge=0)
    max_properties: int | None = Field(None, ge=0)
    dependent_required: dict[str, tuple[str, ...]] = Field(default_factory=dict)
    dependent_schemas: dict[str, Schema] = Field(default_factory=dict)
    unevaluated_properties: Schema | None = None

    def children(self) -> Iterator[tuple[tuple[str, ...], Schema]]:
        yield from super().children()
        for name, node in self.properties.items():
            yield ("properties", name), node
        for pattern, node in self.pattern_properties.items():
            yield ("patternProperties", pattern), node
        if self.additional_properties is not None:
            yield ("additionalProperties",), self.additional_properties
        if self.property_names is not None:
            yield ("propertyNames",), self.property_names
        for name, node in self.dependent_schemas.items():
            yield ("dependentSchemas", name), node
        if self.unevaluated_properties is not None:
            yield ("unevaluatedProperties",), self.unevaluated_properties


class ArraySchema(SchemaNode):
    """``type: array`` keyword set."""
    kind: Literal[SchemaType.ARRAY] = SchemaType.ARRAY

    prefix_items: tuple[Schema, ...] = ()
    items: Schema | None = None
    contains: Schema | None = None
    min_contains: int | None = Field(None, ge=0)
    max_contains: int | None = Field(None, ge=0)
    min_items: int | None = Field(None, ge=0)
    max_items: int | None = Field(None, ge=0)
    unique_items: bool | None = None
    unevaluated_items: Schema | None = None

    def children(self) -> Iterator[tuple[tuple[str, ...], Schema]]:
        yield from super().children()
        for i, node in enumerate(self.prefix_items):
            yield ("prefixItems", str(i)), node
        if self.items is not None:
            yield ("items",), self.items
        if self.contains is not None:
            yield ("contains",), self.contains
        if self.unevaluated_items is not None:
            yield ("unevaluatedItems",), self.unevaluated_items


class StringSchema(SchemaNode):
    """``type: string`` keyword set."""
    kind: Literal[SchemaType.STRING] = SchemaType.STRING

    min_length: int | None = Field(None, ge=0)
    max_length: int | None = Field(None, ge=0)
    pattern: str | None = None
    format: str | None = None
    content_encoding: str | None = None
    content_media_type: str | None = None
    content_schema: Schema | None = None

    def children(self) -> Iterator[tuple[tuple[str, ...], Schema]]:
        yield from super().children()
        if self.content_schema is not None:
            yield ("contentSchema",), self.content_schema


class NumericSchema(SchemaNode):
    """Keywords shared by ``integer`` and ``number``."""
    multiple_of: int | float | None = Field(None, gt=0)
    minimum: int | float | None = None
    maximum: int | float | None = None
    exclusive_minimum: int | float | None = None
    exclusive_maximum: int | float | None = None


class IntegerSchema(NumericSchema):
    kind: Literal[SchemaType.INTEGER] = SchemaType.INTEGER


class NumberSchema(NumericSchema):
    kind: Literal[SchemaType.NUMBER] = SchemaType.NUMBER


class BooleanSchema(SchemaNode):
    kind: Literal[SchemaType.BOOLEAN] = SchemaType.BOOLEAN


class NullSchema(SchemaNode):
    kind: Literal[SchemaType.NULL] = SchemaType.NULL


class AnySchema(SchemaNode):
    """
    Node without a single declared type.

    ``types`` is the declared union (``None`` when ``type`` was absent).
    ``variants`` holds one typed node per candidate kind with that kind's
    keywords; the kinds are pairwise disjoint so at most one variant applies
    to a given value. ``accepts`` marks the boolean schemas ``true``/``false``.
    """
    kind: Literal[SchemaType.ANY] = SchemaType.ANY

    types: tuple[SchemaType, ...] | None = None
    variants: tuple[Schema, ...] = ()
    accepts: bool | None = None

    def children(self) -> Iterator[tuple[tuple[str, ...], Schema]]:
        yield from super().children()
        for variant in self.variants:
            yield from variant.children()


Schema = Annotated[
    Union[
        ObjectSchema,
        ArraySchema,
        StringSchema,
        IntegerSchema,
        NumberSchema,
        BooleanSchema,
        NullSchema,
        AnySchema,
    ],
    Field(discriminator="kind"),
]

NODE_CLASSES: dict[SchemaType, type[SchemaNode]] = {
    SchemaType.OBJECT: ObjectSchema,
    SchemaType.ARRAY: ArraySchema,
    SchemaType.STRING: StringSchema,
    SchemaType.INTEGER: IntegerSchema,
    SchemaType.NUMBER: NumberSchema,
    SchemaType.BOOLEAN: BooleanSchema,
    SchemaType.NULL: NullSchema,
    SchemaType.ANY: AnySchema,
}

for _cls in (SchemaNode, *NODE_CLASSES.values()):
    _cls.model_rebuild()


def boolean_schema(accepts: bool) -> AnySchema:
    """The schema ``true`` (accept everything) or ``false`` (reject everything)."""
    return AnySchema(accepts=accepts)


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------

class Document(BaseModel):
    """
    A parsed schema document.

    Owns the root node and, through it, every descendant. Immutable; the
    :class:`~jschematics.index.document_index.DocumentIndex` is built on first
    use and only read afterwards, so a document can be shared by validators
    running in parallel.
    """
    model_config = ConfigDict(frozen=True)

    root: Schema

    @property
    def dialect(self) -> str:
        return self.root.dialect or Draft.DECEMBER_2020.value

    @property
    def draft(self) -> Draft | None:
        return Draft.lookup(self.dialect)

    @property
    def defs(self) -> dict[str, Schema]:
        return self.root.defs

    @cached_property
    def index(self) -> DocumentIndex:
        from ..index.document_index import DocumentIndex

        return DocumentIndex(self.root)

    @classmethod
    def from_json(cls, value: Any) -> "Document":
        """Parse a decoded JSON value. See :func:`jschematics.parser.schema_parser.from_json`."""
        from ..parser.schema_parser import SchemaParser

        return SchemaParser().parse(value)

    def to_json(self) -> Any:
        from ..serializer.schema_serializer import SchemaSerializer

        return SchemaSerializer().serialize(self)

    def resolve(self, pointer: str) -> Schema:
        return self.index.resolve(pointer)

    def evaluate(self, value: Any, settings: EngineSettings | None = None) -> ValidationResult:
        from ..validator.engine import Validator

        return Validator(self, settings).evaluate(value)

    def validate(self, value: Any, settings: EngineSettings | None = None) -> None:
        """Raise ``InvalidSchemaValueException`` if ``value`` is invalid."""
        from ..validator.engine import Validator

        Validator(self, settings).validate(value)

    def is_valid(self, value: Any, settings: EngineSettings | None = None) -> bool:
        from ..validator.engine import Validator

        return Validator(self, settings).is_valid(value)

    def __repr__(self) -> str:
        return f"Document(dialect={self.dialect!r}, root={self.root!r})"
