"""Tests for the jschematics command-line interface."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from jschematics import __version__
from jschematics.cli.main import cli
from jschematics.config.logging import configure_logging


@pytest.fixture(autouse=True)
def restore_logging():
    # The CLI points the log handler at the runner's temporary stderr.
    yield
    configure_logging()


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def write(path: Path, value: Any) -> Path:
    path.write_text(json.dumps(value), encoding="utf-8")
    return path


@pytest.fixture
def named_file(tmp_path: Path, named_schema: dict[str, Any]) -> Path:
    return write(tmp_path / "named.schema.json", named_schema)


class TestCheck:

    def test_valid_schema(self, runner: CliRunner, tmp_path: Path, person_schema: dict[str, Any]) -> None:
        path = write(tmp_path / "person.json", person_schema)
        result = runner.invoke(cli, ["check", str(path)])
        assert result.exit_code == 0
        assert "Schema OK" in result.output

    def test_misplaced_keyword(self, runner: CliRunner, tmp_path: Path) -> None:
        schema = {"type": "object", "properties": {"tags": {"type": "string", "items": {}}}}
        result = runner.invoke(cli, ["check", str(write(tmp_path / "bad.json", schema))])
        assert result.exit_code == 1
        assert "#/properties/tags" in result.output
        assert "items" in result.output

    def test_missing_file(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["check", str(tmp_path / "absent.json")])
        assert result.exit_code == 2


class TestValidate:

    def test_valid_instance(self, runner: CliRunner, tmp_path: Path, named_file: Path) -> None:
        instance = write(tmp_path / "ada.json", {"name": "Ada"})
        result = runner.invoke(cli, ["validate", str(named_file), str(instance)])
        assert result.exit_code == 0
        assert "PASS" in result.output

    def test_invalid_instance(self, runner: CliRunner, tmp_path: Path, named_file: Path) -> None:
        good = write(tmp_path / "ada.json", {"name": "Ada"})
        bad = write(tmp_path / "nobody.json", {})
        result = runner.invoke(cli, ["validate", str(named_file), str(good), str(bad)])
        assert result.exit_code == 1
        assert "required" in result.output

    def test_json_output(self, runner: CliRunner, tmp_path: Path, named_file: Path) -> None:
        bad = write(tmp_path / "nobody.json", {})
        result = runner.invoke(cli, ["validate", str(named_file), str(bad), "--json-output"])
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["passed"] is False
        issue = data["results"][0]["issues"][0]
        assert issue == {
            "keyword": "required",
            "message": 'Missing required property "name"',
            "schema_path": "#",
            "instance_path": "#",
        }

    def test_no_formats(self, runner: CliRunner, tmp_path: Path) -> None:
        schema = write(tmp_path / "email.json", {"type": "string", "format": "email"})
        instance = write(tmp_path / "value.json", "not an email")
        assert runner.invoke(cli, ["validate", str(schema), str(instance)]).exit_code == 1
        assert runner.invoke(cli, ["validate", str(schema), str(instance), "--no-formats"]).exit_code == 0

    def test_fatal_error(self, runner: CliRunner, tmp_path: Path) -> None:
        schema = write(tmp_path / "loop.json", {"$defs": {"l": {"$ref": "#/$defs/l"}}, "$ref": "#/$defs/l"})
        instance = write(tmp_path / "value.json", 1)
        result = runner.invoke(cli, ["validate", str(schema), str(instance)])
        assert result.exit_code == 2
        assert "Recursion limit" in result.output

    def test_max_depth(self, runner: CliRunner, tmp_path: Path) -> None:
        nested: Any = {"type": "integer"}
        for _ in range(12):
            nested = {"allOf": [nested]}
        schema = write(tmp_path / "nested.json", nested)
        instance = write(tmp_path / "value.json", 1)
        assert runner.invoke(cli, ["validate", str(schema), str(instance)]).exit_code == 0
        assert runner.invoke(cli, ["validate", str(schema), str(instance), "--max-depth", "10"]).exit_code == 2
        assert runner.invoke(cli, ["validate", str(schema), str(instance), "--max-depth", "0"]).exit_code == 2

    def test_deep_lineage(self, runner: CliRunner, tmp_path: Path, person_schema: dict[str, Any], make_lineage) -> None:
        schema = write(tmp_path / "person.json", person_schema)
        instance = write(tmp_path / "line.json", make_lineage(300))
        assert runner.invoke(cli, ["validate", str(schema), str(instance), "--max-depth", "5"]).exit_code == 0


class TestNormalize:

    def test_stdout(self, runner: CliRunner, tmp_path: Path) -> None:
        schema = write(tmp_path / "s.json", {"required": ["a"], "type": "object", "title": "T"})
        result = runner.invoke(cli, ["normalize", str(schema)])
        assert result.exit_code == 0
        assert list(json.loads(result.stdout)) == ["title", "type", "required"]

    def test_output_file(self, runner: CliRunner, tmp_path: Path, person_schema: dict[str, Any]) -> None:
        schema = write(tmp_path / "person.json", person_schema)
        target = tmp_path / "out.json"
        result = runner.invoke(cli, ["normalize", str(schema), "-o", str(target)])
        assert result.exit_code == 0
        assert json.loads(target.read_text(encoding="utf-8"))["$defs"]["Person"]["required"] == ["name"]

    def test_invalid_schema(self, runner: CliRunner, tmp_path: Path) -> None:
        schema = write(tmp_path / "bad.json", {"type": "strnig"})
        assert runner.invoke(cli, ["normalize", str(schema)]).exit_code == 2


class TestConformance:

    def test_against_pinned_baseline(self, runner: CliRunner, suite_dir: Path, fixtures_dir: Path) -> None:
        result = runner.invoke(cli, ["conformance", str(suite_dir), "--baseline", str(fixtures_dir / "baseline.json")])
        assert result.exit_code == 0
        assert "Conformance" in result.output

    def test_regression(self, runner: CliRunner, tmp_path: Path, suite_dir: Path) -> None:
        baseline = write(tmp_path / "baseline.json", {"type.json": 99})
        result = runner.invoke(cli, ["conformance", str(suite_dir), "--baseline", str(baseline), "--json-output"])
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["regressions"] == {"type.json": [99, 10]}
        assert data["counts"]["PASS"] == 59

    def test_strict(self, runner: CliRunner, tmp_path: Path) -> None:
        suite = tmp_path / "suite"
        suite.mkdir()
        write(suite / "wrong.json", [{
            "description": "wrong verdict",
            "schema": {"type": "string"},
            "tests": [{"description": "an integer", "data": 1, "valid": True}],
        }])
        assert runner.invoke(cli, ["conformance", str(suite)]).exit_code == 0
        assert runner.invoke(cli, ["conformance", str(suite), "--strict"]).exit_code == 1

    def test_update_baseline(self, runner: CliRunner, tmp_path: Path, suite_dir: Path) -> None:
        target = tmp_path / "baseline.json"
        result = runner.invoke(cli, ["conformance", str(suite_dir), "--baseline", str(target), "--update-baseline"])
        assert result.exit_code == 0
        assert json.loads(target.read_text(encoding="utf-8"))["ref.json"] == 16

    def test_update_needs_baseline(self, runner: CliRunner, suite_dir: Path) -> None:
        result = runner.invoke(cli, ["conformance", str(suite_dir), "--update-baseline"])
        assert result.exit_code == 2

    def test_include_remote(self, runner: CliRunner, suite_dir: Path) -> None:
        result = runner.invoke(cli, ["conformance", str(suite_dir), "--include-remote", "--json-output"])
        data = json.loads(result.stdout)
        assert data["counts"]["GAP"] == 2
        assert "refRemote.json" in data["files"]


class TestVersion:

    def test_version_command(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_version_option(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output
