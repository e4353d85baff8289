"""
Exceptions
===========
Error taxonomy of the schema engine.

- ``InvalidSchemaException``       the schema document itself is malformed
- ``ValidationFailure``            the instance does not satisfy the schema
- ``InvalidSchemaValueException``  raised by the throwing ``validate()`` form
- ``UnresolvableReference``        a ``$ref`` does not address a schema
- ``NotYetImplemented``            the schema uses a feature the engine lacks
- ``RecursionLimitExceeded``       evaluation exceeded the depth ceiling
- ``SchemaLoadingError``           a document could not be read or decoded

``UnresolvableReference``, ``NotYetImplemented`` and ``RecursionLimitExceeded``
abort the validation call in progress. They are not ``ValidationFailure``
subclasses so that a conformance harness can tell "feature absent" from
"data invalid".
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .validator.engine import ValidationIssue


class SchematicsError(Exception):
    """Base class for every error raised by jschematics."""


class InvalidSchemaException(SchematicsError):
    """A keyword is unknown, misplaced, or has an invalid value."""

    def __init__(self, pointer: str, keyword: str, message: str | None = None) -> None:
        self.pointer = pointer
        self.keyword = keyword
        self.reason = message or "Invalid or misplaced keyword"
        super().__init__(f"{self.reason} at {pointer}: {keyword}")


class ValidationFailure(SchematicsError):
    """The instance does not satisfy an otherwise valid schema."""

    def __init__(self, issues: list[ValidationIssue]) -> None:
        if not issues:
            raise ValueError("a validation failure needs at least one issue")
        self.issues = list(issues)
        first = self.issues[0]
        more = f" (+{len(self.issues) - 1} more)" if len(self.issues) > 1 else ""
        super().__init__(f"{first.message} at {first.instance_path}{more}")

    @property
    def first(self) -> ValidationIssue:
        return self.issues[0]


class InvalidSchemaValueException(ValidationFailure):
    """Raised by ``Validator.validate`` when the instance is invalid."""


class UnresolvableReference(SchematicsError):
    """A ``$ref`` (or pointer) does not address an existing schema node."""

    def __init__(self, reference: str, pointer: str | None = None) -> None:
        self.reference = reference
        self.pointer = pointer
        where = f" at {pointer}" if pointer else ""
        super().__init__(f"Could not resolve $ref {reference}{where}")


class NotYetImplemented(SchematicsError):
    """The schema exercises a keyword or draft feature that is not supported."""

    def __init__(self, feature: str, pointer: str = "#") -> None:
        self.feature = feature
        self.pointer = pointer
        super().__init__(f"{feature} is not yet implemented at {pointer}")


class RecursionLimitExceeded(SchematicsError):
    """Evaluation descended deeper than the configured ceiling."""

    def __init__(self, limit: int, pointer: str) -> None:
        self.limit = limit
        self.pointer = pointer
        super().__init__(f"Recursion limit of {limit} exceeded at {pointer}")


class SchemaLoadingError(SchematicsError):
    """A schema or instance document could not be loaded."""

    def __init__(self, path: str, reason: str | None = None) -> None:
        self.path = path
        detail = f": {reason}" if reason else ""
        super().__init__(f'The document "{path}" could not be loaded{detail}')

    @classmethod
    def not_found(cls, path: str) -> "SchemaLoadingError":
        return cls(path, "file not found")
