"""Hosting provider clients."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pipehub.providers.base import RepositoryProvider
from pipehub.providers.bitbucket import BitbucketProvider
from pipehub.providers.github import GithubProvider
from pipehub.providers.gitlab import GitlabProvider
from pipehub.providers.local import LocalProvider

if TYPE_CHECKING:
    from pipehub.config.schema import ProviderConfig

__all__ = [
    "BitbucketProvider",
    "GithubProvider",
    "GitlabProvider",
    "LocalProvider",
    "RepositoryProvider",
    "create_provider",
]

_PLATFORMS: dict[str, type[RepositoryProvider]] = {
    "github": GithubProvider,
    "gitlab": GitlabProvider,
    "bitbucket": BitbucketProvider,
    "file": LocalProvider,
}


def create_provider(config: ProviderConfig, project: str) -> RepositoryProvider:
    """Instantiate the client matching ``config.platform`` for *project*."""
    return _PLATFORMS[config.platform](config, project)
