"""
Schema Builder
===============
Fluent builder API for constructing schema nodes and documents in code.

Produces exactly the node model the parser produces for the equivalent JSON,
and enforces the same placement rules as the parser with ``ValueError``: a
type-specific keyword on a builder of another type, two keyword families on
one untyped builder, or an untyped property schema carrying type-specific
keywords. Regular expressions are compiled when they are set.

Example::

    from jschematics.builder.schema_builder import SchemaBuilder

    person = (
        SchemaBuilder.object()
        .with_title("Person")
        .with_property("name", SchemaBuilder.string().min_length(1), required=True)
        .with_property("father", SchemaBuilder.ref("#/$defs/Person"))
    )
    document = (
        SchemaBuilder.ref("#/$defs/Person")
        .define("Person", person)
        .build_document()
    )
"""

from __future__ import annotations

import re
from typing import Any, Union

from ..models.schema import (
    COMMON_KEYWORDS,
    FAMILY_KEYWORDS,
    KEYWORD_FAMILY,
    AnySchema,
    Document,
    Schema,
    SchemaNode,
    SchemaType,
    boolean_schema,
)
from ..parser.schema_parser import assemble_node
from ..validator.formats import compile_pattern

SchemaLike = Union["SchemaBuilder", SchemaNode, bool]


def _node(schema: SchemaLike) -> Schema:
    if isinstance(schema, SchemaBuilder):
        return schema.build()
    if isinstance(schema, bool):
        return boolean_schema(schema)
    return schema


def _checked_regex(pattern: str) -> str:
    try:
        compile_pattern(pattern)
    except re.error as exc:
        raise ValueError(f"invalid regular expression {pattern!r}: {exc}") from exc
    return pattern


class SchemaBuilder:
    """
    Fluent builder for schema nodes.

    Typically instantiated via the factory class methods (e.g. SchemaBuilder.object()).
    """

    def __init__(self, *types: SchemaType) -> None:
        self._types: list[SchemaType] | None = list(types) if types else None
        self._allowed = (
            None
            if self._types is None
            else {SchemaType.NUMBER if t is SchemaType.INTEGER else t for t in self._types}
        )
        self._common: dict[str, Any] = {}
        self._families: dict[SchemaType, dict[str, Any]] = {}

    # ------------------------------------------------------------------
    # Factory methods
    # ------------------------------------------------------------------

    @classmethod
    def object(cls) -> "SchemaBuilder":
        return cls(SchemaType.OBJECT)

    @classmethod
    def array(cls) -> "SchemaBuilder":
        return cls(SchemaType.ARRAY)

    @classmethod
    def string(cls) -> "SchemaBuilder":
        return cls(SchemaType.STRING)

    @classmethod
    def integer(cls) -> "SchemaBuilder":
        return cls(SchemaType.INTEGER)

    @classmethod
    def number(cls) -> "SchemaBuilder":
        return cls(SchemaType.NUMBER)

    @classmethod
    def boolean(cls) -> "SchemaBuilder":
        return cls(SchemaType.BOOLEAN)

    @classmethod
    def null(cls) -> "SchemaBuilder":
        return cls(SchemaType.NULL)

    @classmethod
    def any(cls, *types: SchemaType) -> "SchemaBuilder":
        """
        Untyped node, or a union when ``types`` lists two or more kinds.

        Without ``types`` the keywords of one family may be chained; they
        apply only to values of that kind.
        """
        if len(types) == 1:
            raise ValueError("use the single-type factory for one type")
        if len(set(types)) != len(types):
            raise ValueError("types must be unique")
        return cls(*types)

    @classmethod
    def ref(cls, reference: str) -> "SchemaBuilder":
        """Node holding only ``$ref`` (until further keywords are chained)."""
        return cls().with_ref(reference)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _set(self, keyword: str, value: Any) -> "SchemaBuilder":
        if keyword in COMMON_KEYWORDS:
            self._common[COMMON_KEYWORDS[keyword]] = value
            return self
        family = KEYWORD_FAMILY[keyword]
        if self._allowed is not None and family not in self._allowed:
            kinds = "/".join(t.value for t in self._types or ())
            raise ValueError(f"{keyword} is not allowed for type {kinds}")
        if self._allowed is None and self._families and family not in self._families:
            other = next(iter(self._families)).value
            raise ValueError(f"{keyword} mixes {family.value} and {other} keywords without a type")
        self._families.setdefault(family, {})[FAMILY_KEYWORDS[family][keyword]] = value
        return self

    def _get(self, keyword: str, default: Any) -> Any:
        family = KEYWORD_FAMILY[keyword]
        return self._families.get(family, {}).get(FAMILY_KEYWORDS[family][keyword], default)

    # ------------------------------------------------------------------
    # Identification, metadata, value restrictions
    # ------------------------------------------------------------------

    def with_id(self, uri: str) -> "SchemaBuilder":
        return self._set("$id", uri)

    def with_anchor(self, name: str) -> "SchemaBuilder":
        return self._set("$anchor", name)

    def with_ref(self, reference: str) -> "SchemaBuilder":
        return self._set("$ref", reference)

    def with_comment(self, comment: str) -> "SchemaBuilder":
        return self._set("$comment", comment)

    def with_title(self, title: str) -> "SchemaBuilder":
        return self._set("title", title)

    def with_description(self, description: str) -> "SchemaBuilder":
        return self._set("description", description)

    def with_default(self, value: Any) -> "SchemaBuilder":
        return self._set("default", value)

    def with_examples(self, *values: Any) -> "SchemaBuilder":
        return self._set("examples", tuple(values))

    def deprecated(self, flag: bool = True) -> "SchemaBuilder":
        return self._set("deprecated", flag)

    def read_only(self, flag: bool = True) -> "SchemaBuilder":
        return self._set("readOnly", flag)

    def write_only(self, flag: bool = True) -> "SchemaBuilder":
        return self._set("writeOnly", flag)

    def const(self, value: Any) -> "SchemaBuilder":
        return self._set("const", value)

    def enum(self, *values: Any) -> "SchemaBuilder":
        if not values:
            raise ValueError("enum needs at least one value")
        return self._set("enum", tuple(values))

    def define(self, name: str, schema: SchemaLike) -> "SchemaBuilder":
        """Add a ``$defs`` entry."""
        defs = dict(self._common.get("defs", {}))
        defs[name] = _node(schema)
        return self._set("$defs", defs)

    # --- Combinators / conditionals ---

    def all_of(self, *schemas: SchemaLike) -> "SchemaBuilder":
        return self._set("allOf", tuple(_node(s) for s in schemas))

    def any_of(self, *schemas: SchemaLike) -> "SchemaBuilder":
        return self._set("anyOf", tuple(_node(s) for s in schemas))

    def one_of(self, *schemas: SchemaLike) -> "SchemaBuilder":
        return self._set("oneOf", tuple(_node(s) for s in schemas))

    def not_(self, schema: SchemaLike) -> "SchemaBuilder":
        return self._set("not", _node(schema))

    def when(
        self,
        condition: SchemaLike,
        then: SchemaLike | None = None,
        otherwise: SchemaLike | None = None,
    ) -> "SchemaBuilder":
        """``if`` / ``then`` / ``else``."""
        self._set("if", _node(condition))
        if then is not None:
            self._set("then", _node(then))
        if otherwise is not None:
            self._set("else", _node(otherwise))
        return self

    # ------------------------------------------------------------------
    # Object keywords
    # ------------------------------------------------------------------

    def with_property(self, name: str, schema: SchemaLike, required: bool = False) -> "SchemaBuilder":
        node = _node(schema)
        if isinstance(node, AnySchema) and node.types is None and node.variants:
            raise ValueError(f"property {name!r} needs a type for its {node.variants[0].kind.value} keywords")
        properties = dict(self._get("properties", {}))
        properties[name] = node
        self._set("properties", properties)
        if required:
            self.require(name)
        return self

    def with_pattern_property(self, pattern: str, schema: SchemaLike) -> "SchemaBuilder":
        patterns = dict(self._get("patternProperties", {}))
        patterns[_checked_regex(pattern)] = _node(schema)
        return self._set("patternProperties", patterns)

    def additional_properties(self, schema: SchemaLike) -> "SchemaBuilder":
        return self._set("additionalProperties", _node(schema))

    def property_names(self, schema: SchemaLike) -> "SchemaBuilder":
        return self._set("propertyNames", _node(schema))

    def require(self, *names: str) -> "SchemaBuilder":
        required = list(self._get("required", ()))
        required.extend(n for n in names if n not in required)
        return self._set("required", tuple(required))

    def min_properties(self, count: int) -> "SchemaBuilder":
        return self._set("minProperties", count)

    def max_properties(self, count: int) -> "SchemaBuilder":
        return self._set("maxProperties", count)

    def dependent_required(self, trigger: str, *names: str) -> "SchemaBuilder":
        dependencies = dict(self._get("dependentRequired", {}))
        dependencies[trigger] = tuple(names)
        return self._set("dependentRequired", dependencies)

    def dependent_schema(self, trigger: str, schema: SchemaLike) -> "SchemaBuilder":
        dependencies = dict(self._get("dependentSchemas", {}))
        dependencies[trigger] = _node(schema)
        return self._set("dependentSchemas", dependencies)

    # ------------------------------------------------------------------
    # Array keywords
    # ------------------------------------------------------------------

    def items(self, schema: SchemaLike) -> "SchemaBuilder":
        return self._set("items", _node(schema))

    def prefix_items(self, *schemas: SchemaLike) -> "SchemaBuilder":
        return self._set("prefixItems", tuple(_node(s) for s in schemas))

    def contains(
        self,
        schema: SchemaLike,
        minimum: int | None = None,
        maximum: int | None = None,
    ) -> "SchemaBuilder":
        self._set("contains", _node(schema))
        if minimum is not None:
            self._set("minContains", minimum)
        if maximum is not None:
            self._set("maxContains", maximum)
        return self

    def min_items(self, count: int) -> "SchemaBuilder":
        return self._set("minItems", count)

    def max_items(self, count: int) -> "SchemaBuilder":
        return self._set("maxItems", count)

    def unique_items(self, flag: bool = True) -> "SchemaBuilder":
        return self._set("uniqueItems", flag)

    # ------------------------------------------------------------------
    # String keywords
    # ------------------------------------------------------------------

    def min_length(self, length: int) -> "SchemaBuilder":
        return self._set("minLength", length)

    def max_length(self, length: int) -> "SchemaBuilder":
        return self._set("maxLength", length)

    def pattern(self, regex: str) -> "SchemaBuilder":
        return self._set("pattern", _checked_regex(regex))

    def format(self, name: str) -> "SchemaBuilder":
        return self._set("format", name)

    # ------------------------------------------------------------------
    # Numeric keywords
    # ------------------------------------------------------------------

    def minimum(self, bound: int | float) -> "SchemaBuilder":
        return self._set("minimum", bound)

    def maximum(self, bound: int | float) -> "SchemaBuilder":
        return self._set("maximum", bound)

    def exclusive_minimum(self, bound: int | float) -> "SchemaBuilder":
        return self._set("exclusiveMinimum", bound)

    def exclusive_maximum(self, bound: int | float) -> "SchemaBuilder":
        return self._set("exclusiveMaximum", bound)

    def multiple_of(self, divisor: int | float) -> "SchemaBuilder":
        return self._set("multipleOf", divisor)

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def build(self) -> Schema:
        """Construct the schema node. Field constraints are checked by the model."""
        return assemble_node(self._types, dict(self._common), self._families)

    def build_document(self, dialect: str | None = None) -> Document:
        """Construct a document rooted at this node, optionally with ``$schema``."""
        common = dict(self._common)
        if dialect is not None:
            common[COMMON_KEYWORDS["$schema"]] = dialect
        return Document(root=assemble_node(self._types, common, self._families))
