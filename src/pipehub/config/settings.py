"""Environment-derived defaults."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_HOME = Path.home() / ".pipehub"


class Settings(BaseSettings):
    """Defaults for the asset cache, organization and hosting provider.

    Every field can be overridden with a ``PIPEHUB_`` prefixed environment
    variable, e.g. ``PIPEHUB_ASSETS=/data/pipelines``.  Constructor kwargs take
    precedence over the environment.
    """

    model_config = SettingsConfigDict(env_prefix="PIPEHUB_")

    assets: Path = Field(default_factory=lambda: DEFAULT_HOME / "assets")
    org: str = "nextflow-io"
    hub: str = "github"
    scm: Path = Field(default_factory=lambda: DEFAULT_HOME / "scm.yaml")
