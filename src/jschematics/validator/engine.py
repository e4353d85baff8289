"""
Validator
==========
Evaluates instances against a parsed :class:`~jschematics.models.schema.Document`.

Evaluation is a schema-driven depth-first descent. Within one node every
violated keyword is collected; trial evaluations (``anyOf``, ``oneOf``,
``not``, ``if``, ``contains``) only look at the issues they produced, so
fatal conditions raised below them always propagate:

- ``UnresolvableReference``   a ``$ref`` does not address a schema
- ``NotYetImplemented``       ``$dynamicRef``, ``unevaluated*``, external refs
- ``RecursionLimitExceeded``  more than ``settings.max_depth`` descents in a
  row without stepping into the instance, or an exhausted interpreter stack

Descents into a property or an item reset the count, so recursive schemas
validate data as deep as the interpreter stack allows, while a ``$ref``
cycle that never consumes the instance still terminates.

Example::

    from jschematics import Document, Validator

    document = Document.from_json({
        "type": "object",
        "properties": {"name": {"type": "string"}},
        "required": ["name"],
    })
    result = Validator(document).evaluate({})
    if not result.passed:
        for issue in result.issues:
            print(f"[{issue.keyword}] {issue.instance_path}: {issue.message}")
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any, Callable

import structlog

from ..config.settings import EngineSettings
from ..exceptions import InvalidSchemaValueException, NotYetImplemented, RecursionLimitExceeded
from ..index.document_index import ROOT_POINTER, join_pointer
from ..models.schema import (
    AnySchema,
    ArraySchema,
    Document,
    NumericSchema,
    ObjectSchema,
    Schema,
    SchemaType,
    StringSchema,
)
from ..models.values import (
    describe,
    has_duplicates,
    is_integral,
    is_number,
    json_contains,
    json_equal,
    kind_of,
)
from .formats import check_format, compile_pattern

log = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass
class ValidationIssue:
    """One violated keyword: where in the schema, where in the instance, why."""
    keyword: str
    message: str
    schema_path: str = ROOT_POINTER
    instance_path: str = ROOT_POINTER

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass
class ValidationResult:
    """Result of evaluating one instance."""
    passed: bool
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def errors(self) -> list[ValidationIssue]:
        return self.issues

    @property
    def keywords(self) -> set[str]:
        return {i.keyword for i in self.issues}

    def to_dict(self) -> dict[str, Any]:
        return {"passed": self.passed, "issues": [i.to_dict() for i in self.issues]}

    def __str__(self) -> str:
        status = "PASS" if self.passed else "FAIL"
        return f"[{status}] {len(self.issues)} issue(s)"


# ---------------------------------------------------------------------------
# Type matching
# ---------------------------------------------------------------------------


def matches_type(kind: SchemaType, value: Any) -> bool:
    """Does ``value`` belong to ``kind``? ``1.0`` is an integer, ``True`` is not."""
    if kind is SchemaType.ANY:
        return True
    if kind is SchemaType.INTEGER:
        return is_integral(value)
    if kind is SchemaType.NUMBER:
        return is_number(value)
    return kind_of(value).value == kind.value


def is_multiple_of(value: int | float, divisor: int | float) -> bool:
    """Tolerance-aware ``multipleOf``; exact for two integers."""
    if isinstance(value, int) and isinstance(divisor, int):
        return value % divisor == 0
    try:
        quotient = value / divisor
    except OverflowError:
        return False
    if not math.isfinite(quotient):
        return False
    return abs(quotient - round(quotient)) <= 1e-9 * max(1.0, abs(quotient))


def _rejects_everything(node: Schema) -> bool:
    return isinstance(node, AnySchema) and node.accepts is False


# ---------------------------------------------------------------------------
# Validator
# ---------------------------------------------------------------------------


class Validator:
    """
    Checks instances against one document.

    Holds no per-call state, so one validator may serve concurrent calls.
    """

    def __init__(self, document: Document, settings: EngineSettings | None = None) -> None:
        self.document = document
        self.settings = settings or EngineSettings()
        self._index = document.index

    def evaluate(self, value: Any) -> ValidationResult:
        """Evaluate ``value`` against the document root."""
        return self.evaluate_node(self.document.root, ROOT_POINTER, value)

    def evaluate_node(self, node: Schema, pointer: str, value: Any) -> ValidationResult:
        """Evaluate ``value`` against ``node``, which lives at ``pointer`` in the document."""
        try:
            issues = self._evaluate(node, pointer, value, ROOT_POINTER, 0)
        except RecursionError as exc:
            log.warning("validation.stack_exhausted", pointer=pointer)
            raise RecursionLimitExceeded(self.settings.max_depth, pointer) from exc
        log.debug("validation.finished", pointer=pointer, issues=len(issues))
        return ValidationResult(passed=not issues, issues=issues)

    def validate(self, value: Any) -> None:
        """Raise :class:`InvalidSchemaValueException` unless ``value`` is valid."""
        result = self.evaluate(value)
        if not result.passed:
            raise InvalidSchemaValueException(result.issues)

    def is_valid(self, value: Any) -> bool:
        return self.evaluate(value).passed

    # ------------------------------------------------------------------
    # Node evaluation
    # ------------------------------------------------------------------

    def _evaluate(self, node: Schema, pointer: str, value: Any, where: str, depth: int) -> list[ValidationIssue]:
        if depth > self.settings.max_depth:
            raise RecursionLimitExceeded(self.settings.max_depth, pointer)

        # Follow bare $ref chains in place.
        while node.is_ref_only:
            pointer, node = self._index.resolve_reference(node.ref, pointer)
            depth += 1
            if depth > self.settings.max_depth:
                raise RecursionLimitExceeded(self.settings.max_depth, pointer)

        if isinstance(node, AnySchema) and node.accepts is not None:
            if node.accepts:
                return []
            return [ValidationIssue("false", "No value is allowed here", pointer, where)]

        if node.dynamic_ref is not None:
            raise NotYetImplemented("$dynamicRef", pointer)

        issues: list[ValidationIssue] = []

        def add(keyword: str, message: str) -> None:
            issues.append(ValidationIssue(keyword, message, pointer, where))

        # const / enum
        if node.declares("const") and not json_equal(value, node.const):
            add("const", f"{describe(value)} does not equal the constant {describe(node.const)}")
        if node.enum is not None and not json_contains(value, node.enum):
            add("enum", f"{describe(value)} is not one of {describe(list(node.enum))}")

        # type and type-specific keywords
        if isinstance(node, AnySchema):
            if node.types is not None and not any(matches_type(t, value) for t in node.types):
                names = ", ".join(t.value for t in node.types)
                add("type", f"Expected one of [{names}], got {kind_of(value).value}")
            applicable: list[Schema] = [v for v in node.variants if matches_type(v.kind, value)]
        elif matches_type(node.kind, value):
            applicable = [node]
        else:
            applicable = []
            add("type", f"Expected {node.kind.value}, got {kind_of(value).value}")
        for family in applicable:
            check = self._FAMILY_CHECKS.get(family.kind)
            if check is not None:
                issues.extend(check(self, family, pointer, value, where, depth))

        # combinators
        for i, sub in enumerate(node.all_of):
            issues.extend(self._evaluate(sub, join_pointer(pointer, "allOf", i), value, where, depth + 1))

        if node.any_of:
            if not any(
                not self._evaluate(sub, join_pointer(pointer, "anyOf", i), value, where, depth + 1)
                for i, sub in enumerate(node.any_of)
            ):
                add("anyOf", "Value does not match any subschema")

        if node.one_of:
            matched = [
                i for i, sub in enumerate(node.one_of)
                if not self._evaluate(sub, join_pointer(pointer, "oneOf", i), value, where, depth + 1)
            ]
            if not matched:
                add("oneOf", "Value does not match any subschema")
            elif len(matched) > 1:
                add("oneOf", f"Value matches more than one subschema: {matched}")

        if node.not_ is not None:
            if not self._evaluate(node.not_, join_pointer(pointer, "not"), value, where, depth + 1):
                add("not", "Value must not match the subschema")

        # if / then / else
        if node.if_ is not None:
            condition = self._evaluate(node.if_, join_pointer(pointer, "if"), value, where, depth + 1)
            if not condition and node.then is not None:
                issues.extend(self._evaluate(node.then, join_pointer(pointer, "then"), value, where, depth + 1))
            elif condition and node.else_ is not None:
                issues.extend(self._evaluate(node.else_, join_pointer(pointer, "else"), value, where, depth + 1))

        # $ref
        if node.ref is not None:
            target_pointer, target = self._index.resolve_reference(node.ref, pointer)
            issues.extend(self._evaluate(target, target_pointer, value, where, depth + 1))

        return issues

    # ------------------------------------------------------------------
    # Objects
    # ------------------------------------------------------------------

    def _check_object(
        self, node: ObjectSchema, pointer: str, value: dict[str, Any], where: str, depth: int
    ) -> list[ValidationIssue]:
        if node.unevaluated_properties is not None:
            raise NotYetImplemented("unevaluatedProperties", pointer)

        issues: list[ValidationIssue] = []

        def add(keyword: str, message: str, at: str = where) -> None:
            issues.append(ValidationIssue(keyword, message, pointer, at))

        for name in node.required:
            if name not in value:
                add("required", f'Missing required property "{name}"')

        if node.min_properties is not None and len(value) < node.min_properties:
            add("minProperties", f"Expected at least {node.min_properties} properties, got {len(value)}")
        if node.max_properties is not None and len(value) > node.max_properties:
            add("maxProperties", f"Expected at most {node.max_properties} properties, got {len(value)}")

        for trigger, names in node.dependent_required.items():
            if trigger in value:
                for name in names:
                    if name not in value:
                        add("dependentRequired", f'Property "{name}" is required when "{trigger}" is present')

        patterns = [(compile_pattern(p), p, sub) for p, sub in node.pattern_properties.items()]
        for key, item in value.items():
            at = join_pointer(where, key)
            matched = False
            if key in node.properties:
                matched = True
                sub_pointer = join_pointer(pointer, "properties", key)
                issues.extend(self._evaluate(node.properties[key], sub_pointer, item, at, 0))
            for regex, pattern, sub in patterns:
                if regex.search(key):
                    matched = True
                    sub_pointer = join_pointer(pointer, "patternProperties", pattern)
                    issues.extend(self._evaluate(sub, sub_pointer, item, at, 0))
            if not matched and node.additional_properties is not None:
                if _rejects_everything(node.additional_properties):
                    add("additionalProperties", f'Additional property "{key}" is not allowed', at)
                else:
                    sub_pointer = join_pointer(pointer, "additionalProperties")
                    issues.extend(self._evaluate(node.additional_properties, sub_pointer, item, at, 0))

        if node.property_names is not None:
            sub_pointer = join_pointer(pointer, "propertyNames")
            for key in value:
                if self._evaluate(node.property_names, sub_pointer, key, where, depth + 1):
                    add("propertyNames", f'Property name "{key}" is not valid')

        for trigger, sub in node.dependent_schemas.items():
            if trigger in value:
                sub_pointer = join_pointer(pointer, "dependentSchemas", trigger)
                issues.extend(self._evaluate(sub, sub_pointer, value, where, depth + 1))

        return issues

    # ------------------------------------------------------------------
    # Arrays
    # ------------------------------------------------------------------

    def _check_array(
        self, node: ArraySchema, pointer: str, value: list[Any], where: str, depth: int
    ) -> list[ValidationIssue]:
        if node.unevaluated_items is not None:
            raise NotYetImplemented("unevaluatedItems", pointer)

        issues: list[ValidationIssue] = []

        def add(keyword: str, message: str) -> None:
            issues.append(ValidationIssue(keyword, message, pointer, where))

        if node.min_items is not None and len(value) < node.min_items:
            add("minItems", f"Expected at least {node.min_items} items, got {len(value)}")
        if node.max_items is not None and len(value) > node.max_items:
            add("maxItems", f"Expected at most {node.max_items} items, got {len(value)}")
        if node.unique_items and has_duplicates(value):
            add("uniqueItems", "Array items are not unique")

        for i, (sub, item) in enumerate(zip(node.prefix_items, value)):
            sub_pointer = join_pointer(pointer, "prefixItems", i)
            issues.extend(self._evaluate(sub, sub_pointer, item, join_pointer(where, i), 0))

        rest = len(node.prefix_items)
        if node.items is not None and len(value) > rest:
            if _rejects_everything(node.items):
                add("items", f"Expected at most {rest} items, got {len(value)}")
            else:
                sub_pointer = join_pointer(pointer, "items")
                for i in range(rest, len(value)):
                    issues.extend(self._evaluate(node.items, sub_pointer, value[i], join_pointer(where, i), 0))

        if node.contains is not None:
            sub_pointer = join_pointer(pointer, "contains")
            count = sum(
                1 for i, item in enumerate(value)
                if not self._evaluate(node.contains, sub_pointer, item, join_pointer(where, i), 0)
            )
            minimum = 1 if node.min_contains is None else node.min_contains
            if count < minimum:
                keyword = "contains" if node.min_contains is None else "minContains"
                add(keyword, f"Expected at least {minimum} matching item(s), got {count}")
            if node.max_contains is not None and count > node.max_contains:
                add("maxContains", f"Expected at most {node.max_contains} matching item(s), got {count}")

        return issues

    # ------------------------------------------------------------------
    # Strings
    # ------------------------------------------------------------------

    def _check_string(
        self, node: StringSchema, pointer: str, value: str, where: str, depth: int
    ) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []

        def add(keyword: str, message: str) -> None:
            issues.append(ValidationIssue(keyword, message, pointer, where))

        length = len(value)
        if node.min_length is not None and length < node.min_length:
            add("minLength", f"Expected at least {node.min_length} characters, got {length}")
        if node.max_length is not None and length > node.max_length:
            add("maxLength", f"Expected at most {node.max_length} characters, got {length}")
        if node.pattern is not None and compile_pattern(node.pattern).search(value) is None:
            add("pattern", f"{describe(value)} does not match {node.pattern!r}")
        if node.format is not None and self.settings.assert_formats and not check_format(node.format, value):
            add("format", f"{describe(value)} is not a valid {node.format}")
        return issues

    # ------------------------------------------------------------------
    # Numbers
    # ------------------------------------------------------------------

    def _check_numeric(
        self, node: NumericSchema, pointer: str, value: int | float, where: str, depth: int
    ) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []

        def add(keyword: str, message: str) -> None:
            issues.append(ValidationIssue(keyword, message, pointer, where))

        if node.minimum is not None and value < node.minimum:
            add("minimum", f"{value} is less than the minimum of {node.minimum}")
        if node.maximum is not None and value > node.maximum:
            add("maximum", f"{value} is greater than the maximum of {node.maximum}")
        if node.exclusive_minimum is not None and value <= node.exclusive_minimum:
            add("exclusiveMinimum", f"{value} is not greater than {node.exclusive_minimum}")
        if node.exclusive_maximum is not None and value >= node.exclusive_maximum:
            add("exclusiveMaximum", f"{value} is not less than {node.exclusive_maximum}")
        if node.multiple_of is not None and not is_multiple_of(value, node.multiple_of):
            add("multipleOf", f"{value} is not a multiple of {node.multiple_of}")
        return issues

    _FAMILY_CHECKS: dict[SchemaType, Callable[..., list[ValidationIssue]]] = {
        SchemaType.OBJECT: _check_object,
        SchemaType.ARRAY: _check_array,
        SchemaType.STRING: _check_string,
        SchemaType.INTEGER: _check_numeric,
        SchemaType.NUMBER: _check_numeric,
    }
