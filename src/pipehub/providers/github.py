"""GitHub hosting provider."""

from __future__ import annotations

import base64
from functools import cached_property
from typing import TYPE_CHECKING, Any

from pipehub.errors import MissingRemoteProjectError
from pipehub.providers.base import ApiSession, ProviderAuth

if TYPE_CHECKING:
    import requests

    from pipehub.config.schema import ProviderConfig
    from pipehub.scm.git import Credentials


class GithubProvider:
    """REST client for GitHub (and GitHub Enterprise) repositories."""

    def __init__(
        self,
        config: ProviderConfig,
        project: str,
        *,
        session: requests.Session | None = None,
    ) -> None:
        self.name = config.name
        self.project = project
        self.server = (config.server or "https://github.com").rstrip("/")
        self._auth = ProviderAuth(config, token_user="x-access-token")
        self._api = ApiSession(config.api_endpoint or "https://api.github.com", session=session)

    def _request_args(self) -> dict[str, Any]:
        headers = {"Accept": "application/vnd.github+json"}
        if self._auth.token and not self._auth.password:
            headers["Authorization"] = f"token {self._auth.token}"
            return {"headers": headers}
        creds = self._auth.credentials()
        return {"headers": headers, "auth": (creds.user, creds.password) if creds else None}

    @cached_property
    def _repository(self) -> dict[str, Any] | None:
        return self._api.get_json(f"repos/{self.project}", **self._request_args())

    def clone_url(self) -> str | None:
        repo = self._repository
        return repo.get("clone_url") if repo else None

    def home_page(self) -> str:
        return f"{self.server}/{self.project}"

    def read_text(self, path: str) -> str | None:
        data = self._api.get_json(f"repos/{self.project}/contents/{path}", **self._request_args())
        if not data or "content" not in data:
            return None
        return base64.b64decode(data["content"]).decode("utf-8")

    def validate_for(self, script_name: str) -> None:
        if self._repository is None:
            msg = (
                f"Cannot find `{self.project}` -- Make sure a GitHub repository "
                f"exists at this address `{self.home_page()}`"
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
