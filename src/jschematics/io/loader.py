"""
Loader
=======
Reads schema documents, instances and test-suite fixture files from disk.

Every failure to read or decode a file surfaces as
:class:`~jschematics.exceptions.SchemaLoadingError`; schema-level problems
are left to the parser.

Example::

    from jschematics.io.loader import load_document, load_json

    document = load_document("person.schema.json")
    document.validate(load_json("alice.json"))
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..exceptions import SchemaLoadingError
from ..models.schema import Document
from ..parser.schema_parser import SchemaParser

log = structlog.get_logger(__name__)


class SuiteCase(BaseModel):
    """One ``{description, data, valid}`` entry of a fixture group."""
    description: str
    data: Any
    valid: bool


class SuiteGroup(BaseModel):
    """One ``{description, schema, tests}`` record of a fixture file."""
    model_config = ConfigDict(populate_by_name=True)

    description: str
    schema_: Any = Field(alias="schema")
    tests: list[SuiteCase]


def load_json(path: str | Path) -> Any:
    """Decode a JSON file."""
    source = Path(path)
    if not source.is_file():
        raise SchemaLoadingError.not_found(str(source))
    try:
        with source.open(encoding="utf-8") as fh:
            return json.load(fh)
    except (OSError, UnicodeDecodeError) as exc:
        raise SchemaLoadingError(str(source), str(exc)) from exc
    except json.JSONDecodeError as exc:
        raise SchemaLoadingError(str(source), f"invalid JSON: {exc}") from exc


def load_document(path: str | Path) -> Document:
    """Decode and parse a schema document."""
    document = SchemaParser().parse(load_json(path))
    log.debug("document.loaded", path=str(path))
    return document


def load_suite_file(path: str | Path) -> list[SuiteGroup]:
    """Read a fixture file in the official JSON-Schema-Test-Suite layout."""
    raw = load_json(path)
    if not isinstance(raw, list):
        raise SchemaLoadingError(str(path), "a fixture file must hold an array of groups")
    try:
        return [SuiteGroup.model_validate(group) for group in raw]
    except ValidationError as exc:
        raise SchemaLoadingError(str(path), f"malformed fixture: {exc}") from exc
