"""Bitbucket Cloud hosting provider."""

from __future__ import annotations

from functools import cached_property
from typing import TYPE_CHECKING, Any

from pipehub.errors import MissingRemoteProjectError
from pipehub.providers.base import ApiSession, ProviderAuth

if TYPE_CHECKING:
    import requests

    from pipehub.config.schema import ProviderConfig
    from pipehub.scm.git import Credentials


class BitbucketProvider:
    """REST client for Bitbucket Cloud (2.0 API) repositories."""

    def __init__(
        self,
        config: ProviderConfig,
        project: str,
        *,
        session: requests.Session | None = None,
    ) -> None:
        self.name = config.name
        self.project = project
        self.server = (config.server or "https://bitbucket.org").rstrip("/")
        self._auth = ProviderAuth(config, token_user="x-token-auth")
        self._api = ApiSession(
            config.endpoint or "https://api.bitbucket.org/2.0", session=session
        )

    def _request_args(self) -> dict[str, Any]:
        if self._auth.token and not self._auth.password:
            return {"headers": {"Authorization": f"Bearer {self._auth.token}"}}
        creds = self._auth.credentials()
        return {"auth": (creds.user, creds.password)} if creds else {}

    @cached_property
    def _repository(self) -> dict[str, Any] | None:
        return self._api.get_json(f"repositories/{self.project}", **self._request_args())

    @property
    def main_branch(self) -> str:
        repo = self._repository or {}
        return (repo.get("mainbranch") or {}).get("name") or "master"

    def clone_url(self) -> str | None:
        repo = self._repository
        if not repo:
            return None
        for link in repo.get("links", {}).get("clone", []):
            if link.get("name") == "https":
                return link.get("href")
        return None

    def home_page(self) -> str:
        repo = self._repository or {}
        href = repo.get("links", {}).get("html", {}).get("href")
        return href or f"{self.server}/{self.project}"

    def read_text(self, path: str) -> str | None:
        return self._api.get_text(
            f"repositories/{self.project}/src/{self.main_branch}/{path}",
            **self._request_args(),
        )

    def validate_for(self, script_name: str) -> None:
        if self._repository is None:
            msg = (
                f"Cannot find `{self.project}` -- Make sure a Bitbucket repository "
                f"exists at this address `{self.server}/{self.project}`"
            )
            raise MissingRemoteProjectError(msg)
        if self.read_text(script_name) is None:
            msg = (
                f"Not a valid pipeline project: `{self.project}` -- "
                f"missing script `{script_name}`"
            )
            raise MissingRemoteProjectError(msg)

    def has_credentials(self) -> bool:
        return self._auth.has_credentials()

    def credentials(self) -> Credentials | None:
        return self._auth.credentials()

    def set_credentials(self, user: str, password: str) -> None:
        self._auth.set(user, password)
        self.__dict__.pop("_repository", None)
