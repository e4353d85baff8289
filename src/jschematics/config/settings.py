"""
Engine Settings
================
Tunables of the validator and the conformance harness.

Priority chain (highest to lowest):
  1. Init kwargs: CLI flags or explicit construction
  2. Env vars: ``JSCHEMATICS_*`` prefix
  3. Code defaults

Example::

    settings = EngineSettings(max_depth=50, assert_formats=False)
    Validator(document, settings).evaluate(instance)
"""

from __future__ import annotations

from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """
    Frozen engine configuration.

    Attributes:
        max_depth: Most schema descents allowed in a row on one instance
            location (``$ref``, combinators, conditionals) before evaluation
            fails with ``RecursionLimitExceeded``. Stepping into a property
            or an item starts the count again.
        assert_formats: Treat ``format`` as an assertion. When False it is an
            annotation only.
    """

    model_config = SettingsConfigDict(frozen=True, env_prefix="JSCHEMATICS_")

    max_depth: int = Field(200, ge=1)
    assert_formats: bool = True

    @classmethod
    def from_cli(cls, **flags: Any) -> "EngineSettings":
        """Build settings from CLI flags; flags left unset (``None``) fall through."""
        return cls(**{k: v for k, v in flags.items() if v is not None})

    def with_formats(self, assert_formats: bool) -> "EngineSettings":
        return self.model_copy(update={"assert_formats": assert_formats})
