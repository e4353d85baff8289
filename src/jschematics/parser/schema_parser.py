"""
Schema Parser
==============
Turns a decoded JSON value into the typed schema node model.

Traversal is depth-first in property order; the first unknown, misplaced or
ill-typed keyword aborts parsing with :class:`InvalidSchemaException`, which
names the JSON Pointer of the offending schema and the keyword.

Placement rules:

- ``type: "<kind>"``  only the common keywords and that kind's family
  (``integer`` shares the numeric family with ``number``).
- ``type: [k1, k2, ...]``  common keywords plus the families of the listed
  kinds; the node becomes an ``any`` node with one variant per kind.
- no ``type``  the keywords of one family at most, which then only
  constrain values of that kind. A ``properties`` entry without a ``type``
  takes no type-specific keywords at all, so ``items`` under
  ``properties/<name>`` is rejected unless the entry declares ``array``.

Example::

    from jschematics.parser.schema_parser import from_json

    document = from_json({
        "type": "object",
        "properties": {"name": {"type": "string"}},
        "required": ["name"],
    })
"""

from __future__ import annotations

import re
from typing import Any, Callable

import structlog

from ..exceptions import InvalidSchemaException
from ..index.document_index import ROOT_POINTER, join_pointer
from ..models.schema import (
    COMMON_KEYWORDS,
    FAMILY_KEYWORDS,
    KEYWORD_FAMILY,
    NODE_CLASSES,
    AnySchema,
    Document,
    Draft,
    Schema,
    SchemaType,
    boolean_schema,
)
from ..models.values import is_integral, is_number
from ..validator.formats import compile_pattern

log = structlog.get_logger(__name__)

ANCHOR_RE = re.compile(r"[A-Za-z_][-A-Za-z0-9._]*")

DECLARABLE_TYPES = {t.value: t for t in SchemaType if t is not SchemaType.ANY}


def _family(kind: SchemaType) -> SchemaType:
    return SchemaType.NUMBER if kind is SchemaType.INTEGER else kind


def assemble_node(
    declared: list[SchemaType] | None,
    common: dict[str, Any],
    families: dict[SchemaType, dict[str, Any]],
) -> Schema:
    """
    Build the node for already-validated keyword values.

    ``families`` maps a keyword family (``integer`` keywords live under
    ``number``) to its field values. Placement must have been checked.
    """
    if declared is not None and len(declared) == 1:
        kind = declared[0]
        return NODE_CLASSES[kind](**common, **families.get(_family(kind), {}))

    if declared is None:
        if families:
            common = {**common, "variants": tuple(NODE_CLASSES[f](**fields) for f, fields in families.items())}
        return AnySchema(**common)

    kinds = [k for k in declared if not (k is SchemaType.INTEGER and SchemaType.NUMBER in declared)]
    variants = tuple(NODE_CLASSES[k](**families.get(_family(k), {})) for k in kinds)
    return AnySchema(types=tuple(declared), variants=variants, **common)


class SchemaParser:
    """
    Builds :class:`Document` objects from decoded JSON.

    A parser holds no state between calls and may be reused.
    """

    def parse(self, value: Any) -> Document:
        """Parse a whole document. The root may be an object or a boolean."""
        root = self.parse_node(value, ROOT_POINTER)
        document = Document(root=root)
        if root.dialect is not None and Draft.lookup(root.dialect) is not Draft.DECEMBER_2020:
            log.warning("schema.dialect_unsupported", dialect=root.dialect)
        log.debug("schema.parsed", root_kind=root.kind.value, defs=len(root.defs))
        return document

    def parse_node(self, raw: Any, pointer: str, property_entry: bool = False) -> Schema:
        if isinstance(raw, bool):
            return boolean_schema(raw)
        if not isinstance(raw, dict):
            raise InvalidSchemaException(
                pointer, _last_token(pointer), "A schema must be an object or a boolean"
            )

        declared = self._declared_types(raw, pointer)
        allowed = None if declared is None else {_family(k) for k in declared}

        common: dict[str, Any] = {}
        families: dict[SchemaType, dict[str, Any]] = {}
        for keyword, value in raw.items():
            if keyword == "type":
                continue
            if keyword in COMMON_KEYWORDS:
                common[COMMON_KEYWORDS[keyword]] = self._parse_common(keyword, value, pointer)
                continue
            family = KEYWORD_FAMILY.get(keyword)
            if family is None:
                raise InvalidSchemaException(pointer, keyword, "Unknown keyword")
            if allowed is not None and family not in allowed:
                raise InvalidSchemaException(
                    pointer,
                    keyword,
                    f"Keyword not allowed for type {'/'.join(k.value for k in declared or ())}",
                )
            if declared is None:
                self._check_untyped(keyword, family, families, pointer, property_entry)
            field = FAMILY_KEYWORDS[family][keyword]
            families.setdefault(family, {})[field] = self._parse_family(keyword, value, pointer)

        return assemble_node(declared, common, families)

    def _check_untyped(
        self,
        keyword: str,
        family: SchemaType,
        families: dict[SchemaType, dict[str, Any]],
        pointer: str,
        property_entry: bool,
    ) -> None:
        if property_entry:
            raise InvalidSchemaException(
                pointer, keyword, f"Keyword needs `type: {family.value}` on a property schema"
            )
        if families and family not in families:
            other = next(iter(families)).value
            raise InvalidSchemaException(
                pointer, keyword, f"Keyword mixes {family.value} and {other} keywords without a `type`"
            )

    # ------------------------------------------------------------------
    # type
    # ------------------------------------------------------------------

    def _declared_types(self, raw: dict[str, Any], pointer: str) -> list[SchemaType] | None:
        if "type" not in raw:
            return None
        value = raw["type"]
        names = [value] if isinstance(value, str) else value
        if not isinstance(names, list) or not names:
            raise InvalidSchemaException(pointer, "type", "`type` must be a string or a non-empty array")
        kinds: list[SchemaType] = []
        for name in names:
            if not isinstance(name, str) or name not in DECLARABLE_TYPES:
                raise InvalidSchemaException(
                    pointer,
                    "type",
                    "`type` must be one of: " + ", ".join(DECLARABLE_TYPES),
                )
            kind = DECLARABLE_TYPES[name]
            if kind in kinds:
                raise InvalidSchemaException(pointer, "type", "`type` entries must be unique")
            kinds.append(kind)
        return kinds

    # ------------------------------------------------------------------
    # Common keywords
    # ------------------------------------------------------------------

    def _parse_common(self, keyword: str, value: Any, pointer: str) -> Any:
        if keyword in ("$schema", "$ref", "$dynamicRef", "$comment", "title", "description"):
            return _expect(isinstance(value, str), value, pointer, keyword, "a string")
        if keyword == "$id":
            _expect(isinstance(value, str), value, pointer, keyword, "a string")
            _, _, fragment = value.partition("#")
            if fragment:
                raise InvalidSchemaException(pointer, keyword, "`$id` must not contain a fragment")
            return value
        if keyword in ("$anchor", "$dynamicAnchor"):
            ok = isinstance(value, str) and ANCHOR_RE.fullmatch(value) is not None
            return _expect(ok, value, pointer, keyword, "a plain-name anchor")
        if keyword == "$vocabulary":
            ok = isinstance(value, dict) and all(isinstance(v, bool) for v in value.values())
            return _expect(ok, value, pointer, keyword, "an object of booleans")
        if keyword in ("default", "const"):
            return value
        if keyword in ("examples", "enum"):
            _expect(isinstance(value, list), value, pointer, keyword, "an array")
            return tuple(value)
        if keyword in ("deprecated", "readOnly", "writeOnly"):
            return _expect(isinstance(value, bool), value, pointer, keyword, "a boolean")
        if keyword in ("allOf", "anyOf", "oneOf"):
            return self._schema_list(keyword, value, pointer)
        if keyword in ("not", "if", "then", "else"):
            return self.parse_node(value, join_pointer(pointer, keyword))
        if keyword == "$defs":
            return self._schema_map(keyword, value, pointer)
        raise InvalidSchemaException(pointer, keyword, "Unknown keyword")

    # ------------------------------------------------------------------
    # Type-specific keywords
    # ------------------------------------------------------------------

    def _parse_family(self, keyword: str, value: Any, pointer: str) -> Any:
        parser = self._FAMILY_PARSERS[keyword]
        return parser(self, keyword, value, pointer)

    def _subschema(self, keyword: str, value: Any, pointer: str) -> Schema:
        return self.parse_node(value, join_pointer(pointer, keyword))

    def _schema_list(self, keyword: str, value: Any, pointer: str) -> tuple[Schema, ...]:
        _expect(isinstance(value, list) and len(value) > 0, value, pointer, keyword, "a non-empty array of schemas")
        return tuple(self.parse_node(item, join_pointer(pointer, keyword, i)) for i, item in enumerate(value))

    def _schema_map(self, keyword: str, value: Any, pointer: str) -> dict[str, Schema]:
        _expect(isinstance(value, dict), value, pointer, keyword, "an object of schemas")
        return {name: self.parse_node(item, join_pointer(pointer, keyword, name)) for name, item in value.items()}

    def _properties(self, keyword: str, value: Any, pointer: str) -> dict[str, Schema]:
        _expect(isinstance(value, dict), value, pointer, keyword, "an object of schemas")
        return {
            name: self.parse_node(item, join_pointer(pointer, keyword, name), property_entry=True)
            for name, item in value.items()
        }

    def _pattern_map(self, keyword: str, value: Any, pointer: str) -> dict[str, Schema]:
        _expect(isinstance(value, dict), value, pointer, keyword, "an object of schemas")
        for pattern in value:
            _regex(pattern, pointer, keyword)
        return self._schema_map(keyword, value, pointer)

    def _count(self, keyword: str, value: Any, pointer: str) -> int:
        _expect(is_integral(value) and value >= 0, value, pointer, keyword, "a non-negative integer")
        return int(value)

    def _number(self, keyword: str, value: Any, pointer: str) -> int | float:
        return _expect(is_number(value), value, pointer, keyword, "a number")

    def _positive_number(self, keyword: str, value: Any, pointer: str) -> int | float:
        return _expect(is_number(value) and value > 0, value, pointer, keyword, "a number strictly greater than 0")

    def _string(self, keyword: str, value: Any, pointer: str) -> str:
        return _expect(isinstance(value, str), value, pointer, keyword, "a string")

    def _pattern(self, keyword: str, value: Any, pointer: str) -> str:
        _expect(isinstance(value, str), value, pointer, keyword, "a string")
        _regex(value, pointer, keyword)
        return value

    def _boolean(self, keyword: str, value: Any, pointer: str) -> bool:
        return _expect(isinstance(value, bool), value, pointer, keyword, "a boolean")

    def _names(self, keyword: str, value: Any, pointer: str) -> tuple[str, ...]:
        ok = (
            isinstance(value, list)
            and all(isinstance(v, str) for v in value)
            and len(set(value)) == len(value)
        )
        _expect(ok, value, pointer, keyword, "an array of unique strings")
        return tuple(value)

    def _dependent_required(self, keyword: str, value: Any, pointer: str) -> dict[str, tuple[str, ...]]:
        _expect(isinstance(value, dict), value, pointer, keyword, "an object of string arrays")
        return {name: self._names(keyword, names, pointer) for name, names in value.items()}

    def _prefix_items(self, keyword: str, value: Any, pointer: str) -> tuple[Schema, ...]:
        return self._schema_list(keyword, value, pointer)

    _FAMILY_PARSERS: dict[str, Callable[["SchemaParser", str, Any, str], Any]] = {
        # object
        "properties": _properties,
        "patternProperties": _pattern_map,
        "additionalProperties": _subschema,
        "propertyNames": _subschema,
        "required": _names,
        "minProperties": _count,
        "maxProperties": _count,
        "dependentRequired": _dependent_required,
        "dependentSchemas": _schema_map,
        "unevaluatedProperties": _subschema,
        # array
        "prefixItems": _prefix_items,
        "items": _subschema,
        "contains": _subschema,
        "minContains": _count,
        "maxContains": _count,
        "minItems": _count,
        "maxItems": _count,
        "uniqueItems": _boolean,
        "unevaluatedItems": _subschema,
        # string
        "minLength": _count,
        "maxLength": _count,
        "pattern": _pattern,
        "format": _string,
        "contentEncoding": _string,
        "contentMediaType": _string,
        "contentSchema": _subschema,
        # numeric
        "multipleOf": _positive_number,
        "minimum": _number,
        "maximum": _number,
        "exclusiveMinimum": _number,
        "exclusiveMaximum": _number,
    }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _expect(condition: bool, value: Any, pointer: str, keyword: str, expected: str) -> Any:
    if not condition:
        raise InvalidSchemaException(pointer, keyword, f"`{keyword}` must be {expected}")
    return value


def _regex(pattern: str, pointer: str, keyword: str) -> None:
    try:
        compile_pattern(pattern)
    except re.error as exc:
        raise InvalidSchemaException(pointer, keyword, f"Invalid regular expression {pattern!r}: {exc}") from exc


def _last_token(pointer: str) -> str:
    return pointer.rsplit("/", 1)[-1] if "/" in pointer else pointer


def from_json(value: Any) -> Document:
    """Parse a decoded JSON schema document."""
    return SchemaParser().parse(value)
