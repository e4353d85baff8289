"""
Schema Serializer
==================
Re-emits a parsed :class:`~jschematics.models.schema.Document` as canonical
JSON: draft 2020-12 key names, every declared keyword exactly once, in a fixed
order (identifiers, annotations, ``type``, value restrictions, type-specific
keywords, combinators, conditionals, ``$defs``).

``from_json(to_json(d)) == d`` holds for every document the parser produces.

Example::

    from jschematics.serializer.schema_serializer import dumps

    print(dumps(document))
"""

from __future__ import annotations

import json
from typing import Any

from ..models.schema import (
    COMMON_KEYWORDS,
    FAMILY_KEYWORDS,
    AnySchema,
    Document,
    Schema,
    SchemaNode,
    SchemaType,
)

_TAIL_KEYWORDS = ("allOf", "anyOf", "oneOf", "not", "if", "then", "else", "$defs")
_VALUE_KEYWORDS = ("const", "enum")
_HEAD_KEYWORDS = tuple(k for k in COMMON_KEYWORDS if k not in _TAIL_KEYWORDS and k not in _VALUE_KEYWORDS)


class SchemaSerializer:
    """Converts schema nodes back to decoded-JSON values."""

    def serialize(self, document: Document) -> Any:
        return self.serialize_node(document.root)

    def serialize_node(self, node: Schema) -> Any:
        if isinstance(node, AnySchema) and node.accepts is not None:
            return node.accepts

        out: dict[str, Any] = {}
        self._emit_keywords(node, _HEAD_KEYWORDS, COMMON_KEYWORDS, out)

        if isinstance(node, AnySchema):
            if node.types is not None:
                names = [t.value for t in node.types]
                out["type"] = names[0] if len(names) == 1 else names
        else:
            out["type"] = node.kind.value

        self._emit_keywords(node, _VALUE_KEYWORDS, COMMON_KEYWORDS, out)

        typed = node.variants if isinstance(node, AnySchema) else (node,)
        for variant in typed:
            keywords = FAMILY_KEYWORDS.get(variant.kind, {})
            self._emit_keywords(variant, tuple(keywords), keywords, out)

        self._emit_keywords(node, _TAIL_KEYWORDS, COMMON_KEYWORDS, out)
        return out

    def _emit_keywords(
        self,
        node: SchemaNode,
        keywords: tuple[str, ...],
        fields: dict[str, str],
        out: dict[str, Any],
    ) -> None:
        for keyword in keywords:
            field = fields[keyword]
            if node.declares(field):
                out[keyword] = self._emit(getattr(node, field))

    def _emit(self, value: Any) -> Any:
        if isinstance(value, SchemaNode):
            return self.serialize_node(value)
        if isinstance(value, (list, tuple)):
            return [self._emit(v) for v in value]
        if isinstance(value, dict):
            return {k: self._emit(v) for k, v in value.items()}
        if isinstance(value, SchemaType):
            return value.value
        return value


def to_json(document: Document) -> Any:
    """Serialize a document to a decoded-JSON value."""
    return SchemaSerializer().serialize(document)


def dumps(document: Document, indent: int | None = 2) -> str:
    """Serialize a document to JSON text."""
    return json.dumps(to_json(document), indent=indent, ensure_ascii=False)
