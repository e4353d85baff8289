"""
Conformance Harness
====================
Runs fixture files in the official JSON-Schema-Test-Suite layout and
classifies every case.

Outcomes:

- ``PASS``   the engine reproduced the recorded ``valid`` flag
- ``FAIL``   the engine disagreed with the recorded ``valid`` flag
- ``GAP``    ``NotYetImplemented`` on a case that should be valid
- ``SKIP``   ``NotYetImplemented`` on a case that should be invalid; never
  counted as a pass
- ``ERROR``  the schema did not parse, a ``$ref`` did not resolve, or the
  recursion ceiling was hit

``format`` is asserted only for fixtures under ``optional/format``; everywhere
else it is an annotation, as draft 2020-12 prescribes by default.

Example::

    from jschematics.conformance.harness import ConformanceRunner, load_baseline

    report = ConformanceRunner().run_directory("JSON-Schema-Test-Suite/tests/draft2020-12")
    print(report)
    assert not report.regressions(load_baseline("baseline.json"))
"""

from __future__ import annotations

import json
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable

import structlog

from ..config.settings import EngineSettings
from ..exceptions import (
    InvalidSchemaException,
    NotYetImplemented,
    RecursionLimitExceeded,
    SchemaLoadingError,
    UnresolvableReference,
)
from ..io.loader import SuiteGroup, load_json, load_suite_file
from ..models.schema import Document
from ..validator.engine import Validator

log = structlog.get_logger(__name__)

# Fixtures that need network retrieval or meta-schema vocabularies.
DEFAULT_IGNORE = frozenset({"refRemote.json", "vocabulary.json"})

FORMAT_ASSERTION_DIR = "optional/format"


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


class Outcome(str, Enum):
    PASS = "PASS"
    FAIL = "FAIL"
    GAP = "GAP"
    SKIP = "SKIP"
    ERROR = "ERROR"


@dataclass
class CaseOutcome:
    file: str
    group: str
    case: str
    expected: bool
    outcome: Outcome
    detail: str | None = None


@dataclass
class ConformanceReport:
    """Outcomes of one harness run, in file order."""
    outcomes: list[CaseOutcome] = field(default_factory=list)

    @property
    def files(self) -> list[str]:
        return list(dict.fromkeys(o.file for o in self.outcomes))

    @property
    def failures(self) -> list[CaseOutcome]:
        return [o for o in self.outcomes if o.outcome in (Outcome.FAIL, Outcome.ERROR)]

    def counts(self) -> dict[Outcome, int]:
        tally = Counter(o.outcome for o in self.outcomes)
        return {outcome: tally.get(outcome, 0) for outcome in Outcome}

    def pass_counts(self) -> dict[str, int]:
        """Number of ``PASS`` cases per fixture file."""
        counts = {name: 0 for name in self.files}
        for o in self.outcomes:
            if o.outcome is Outcome.PASS:
                counts[o.file] += 1
        return counts

    def regressions(self, baseline: dict[str, int]) -> dict[str, tuple[int, int]]:
        """Files whose pass count dropped below ``baseline``: ``{file: (pinned, now)}``."""
        current = self.pass_counts()
        return {
            name: (pinned, current.get(name, 0))
            for name, pinned in baseline.items()
            if current.get(name, 0) < pinned
        }

    def extend(self, other: "ConformanceReport") -> None:
        self.outcomes.extend(other.outcomes)

    def to_dict(self) -> dict[str, object]:
        return {
            "counts": {k.value: v for k, v in self.counts().items()},
            "files": self.pass_counts(),
            "failures": [
                {"file": o.file, "group": o.group, "case": o.case, "outcome": o.outcome.value, "detail": o.detail}
                for o in self.failures
            ],
        }

    def __str__(self) -> str:
        counts = self.counts()
        parts = ", ".join(f"{v} {k.value.lower()}" for k, v in counts.items())
        return f"{len(self.outcomes)} case(s) in {len(self.files)} file(s): {parts}"


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


class ConformanceRunner:
    """Feeds fixture schemas to the parser and fixture data to the validator."""

    def __init__(self, settings: EngineSettings | None = None) -> None:
        self.settings = settings or EngineSettings()

    def run_groups(
        self,
        groups: Iterable[SuiteGroup],
        source: str,
        assert_formats: bool = False,
    ) -> ConformanceReport:
        settings = self.settings.with_formats(assert_formats)
        report = ConformanceReport()
        for group in groups:
            report.extend(self._run_group(group, source, settings))
        return report

    def _run_group(self, group: SuiteGroup, source: str, settings: EngineSettings) -> ConformanceReport:
        report = ConformanceReport()

        def add(case: str, expected: bool, outcome: Outcome, detail: str | None = None) -> None:
            report.outcomes.append(CaseOutcome(source, group.description, case, expected, outcome, detail))

        try:
            validator = Validator(Document.from_json(group.schema_), settings)
        except InvalidSchemaException as exc:
            for case in group.tests:
                add(case.description, case.valid, Outcome.ERROR, str(exc))
            return report

        for case in group.tests:
            try:
                passed = validator.is_valid(case.data)
            except NotYetImplemented as exc:
                add(case.description, case.valid, Outcome.GAP if case.valid else Outcome.SKIP, str(exc))
            except (UnresolvableReference, RecursionLimitExceeded) as exc:
                add(case.description, case.valid, Outcome.ERROR, str(exc))
            else:
                if passed is case.valid:
                    add(case.description, case.valid, Outcome.PASS)
                else:
                    add(case.description, case.valid, Outcome.FAIL, f"expected valid={case.valid}")
        return report

    def run_file(self, path: str | Path, name: str | None = None) -> ConformanceReport:
        """Run one fixture file; ``name`` is the key used in reports (default: file name)."""
        source = name or Path(path).name
        assert_formats = FORMAT_ASSERTION_DIR in Path(path).as_posix()
        with structlog.contextvars.bound_contextvars(fixture=source):
            report = self.run_groups(load_suite_file(path), source, assert_formats)
            log.debug("conformance.file", cases=len(report.outcomes), passed=report.pass_counts().get(source, 0))
        return report

    def run_directory(
        self,
        path: str | Path,
        ignore: Iterable[str] = DEFAULT_IGNORE,
    ) -> ConformanceReport:
        """Run every ``*.json`` fixture below ``path`` except the ``ignore``d file names."""
        root = Path(path)
        if not root.is_dir():
            raise SchemaLoadingError.not_found(str(root))
        skipped = set(ignore)
        report = ConformanceReport()
        for fixture in sorted(root.rglob("*.json")):
            if fixture.name in skipped:
                log.debug("conformance.ignored", file=fixture.name)
                continue
            report.extend(self.run_file(fixture, fixture.relative_to(root).as_posix()))
        log.info("conformance.finished", files=len(report.files), cases=len(report.outcomes))
        return report


# ---------------------------------------------------------------------------
# Baselines
# ---------------------------------------------------------------------------


def load_baseline(path: str | Path) -> dict[str, int]:
    """Read pinned per-file pass counts."""
    raw = load_json(path)
    if not isinstance(raw, dict) or not all(isinstance(v, int) for v in raw.values()):
        raise SchemaLoadingError(str(path), "a baseline must map file names to pass counts")
    return raw


def save_baseline(report: ConformanceReport, path: str | Path) -> None:
    """Pin the pass counts of ``report``."""
    with Path(path).open("w", encoding="utf-8") as fh:
        json.dump(report.pass_counts(), fh, indent=2, sort_keys=True)
        fh.write("\n")
