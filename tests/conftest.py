"""Shared fixtures for the jschematics test suite."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from jschematics import Document
from jschematics.config.logging import configure_logging

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True, scope="session")
def quiet_logging() -> None:
    configure_logging(verbose=False)


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES


@pytest.fixture
def suite_dir() -> Path:
    """Hand-written fixtures in the JSON-Schema-Test-Suite layout."""
    return FIXTURES / "draft2020-12"


@pytest.fixture
def person_schema() -> dict[str, Any]:
    """Self-referential schema: a Person's father is a Person."""
    return {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "$defs": {
            "Person": {
                "type": "object",
                "properties": {
                    "name": {"type": "string", "minLength": 1},
                    "age": {"type": "integer", "minimum": 0},
                    "father": {"$ref": "#/$defs/Person"},
                },
                "required": ["name"],
            }
        },
        "$ref": "#/$defs/Person",
    }


@pytest.fixture
def person_document(person_schema: dict[str, Any]) -> Document:
    return Document.from_json(person_schema)


@pytest.fixture
def named_schema() -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {"name": {"type": "string"}},
        "required": ["name"],
    }


def lineage(depth: int, innermost: dict[str, Any] | None = None) -> dict[str, Any]:
    """A Person whose paternal line is ``depth`` generations deep."""
    person = innermost if innermost is not None else {"name": f"p{depth}"}
    for generation in range(depth - 1, -1, -1):
        person = {"name": f"p{generation}", "father": person}
    return person


@pytest.fixture
def make_lineage():
    return lineage
