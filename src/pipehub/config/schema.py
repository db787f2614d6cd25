"""Provider configuration models."""

from __future__ import annotations

from typing import Literal
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, SecretStr

Platform = Literal["github", "gitlab", "bitbucket", "file"]


class ProviderConfig(BaseModel):
    """Connection settings for one hosting provider.

    ``server`` is the web address of the provider (used for home pages and to
    match a checkout's remote URL), ``endpoint`` the base URL of its REST API.
    A ``file`` provider only needs ``path``, the directory holding bare
    repositories laid out as ``<path>/<org>/<repo>``.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    platform: Platform
    server: str | None = None
    endpoint: str | None = None
    user: str | None = None
    password: SecretStr | None = None
    token: SecretStr | None = None
    path: str | None = None

    @property
    def domain(self) -> str | None:
        """Host part of ``server`` (``github.com`` for ``https://github.com``)."""
        if not self.server:
            return None
        parsed = urlparse(self.server if "://" in self.server else f"https://{self.server}")
        return parsed.hostname

    @property
    def api_endpoint(self) -> str | None:
        """REST endpoint, derived from ``server`` when not set explicitly."""
        if self.endpoint:
            return self.endpoint.rstrip("/")
        if self.server and self.platform == "gitlab":
            return f"{self.server.rstrip('/')}/api/v4"
        if self.server and self.platform == "github":
            return f"{self.server.rstrip('/')}/api/v3"
        return self.server.rstrip("/") if self.server else None


class ProviderEntry(BaseModel):
    """One entry of the ``providers`` mapping in the scm file (name comes from the key)."""

    model_config = ConfigDict(extra="forbid")

    platform: Platform | None = None
    server: str | None = None
    endpoint: str | None = None
    user: str | None = None
    password: str | None = None
    token: str | None = None
    path: str | None = None


class ScmFile(BaseModel):
    """Top-level structure of the user scm file."""

    model_config = ConfigDict(extra="forbid")

    providers: dict[str, ProviderEntry] = Field(default_factory=dict)


DEFAULT_PROVIDERS: tuple[ProviderConfig, ...] = (
    ProviderConfig(
        name="github",
        platform="github",
        server="https://github.com",
        endpoint="https://api.github.com",
    ),
    ProviderConfig(
        name="gitlab",
        platform="gitlab",
        server="https://gitlab.com",
        endpoint="https://gitlab.com/api/v4",
    ),
    ProviderConfig(
        name="bitbucket",
        platform="bitbucket",
        server="https://bitbucket.org",
        endpoint="https://api.bitbucket.org/2.0",
    ),
)
