"""GitLab hosting provider."""

from __future__ import annotations

from functools import cached_property
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from pipehub.errors import MissingRemoteProjectError
from pipehub.providers.base import ApiSession, ProviderAuth

if TYPE_CHECKING:
    import requests

    from pipehub.config.schema import ProviderConfig
    from pipehub.scm.git import Credentials


class GitlabProvider:
    """REST client for GitLab (v4 API) projects.

    The API only accepts personal access tokens, so the configured ``token``
    (or the password, when no token is set) is sent as ``PRIVATE-TOKEN``.
    """

    def __init__(
        self,
        config: ProviderConfig,
        project: str,
        *,
        session: requests.Session | None = None,
    ) -> None:
        self.name = config.name
        self.project = project
        self.server = (config.server or "https://gitlab.com").rstrip("/")
        self._auth = ProviderAuth(config, token_user="oauth2")
        self._api = ApiSession(config.api_endpoint or f"{self.server}/api/v4", session=session)

    @property
    def _project_id(self) -> str:
        return quote(self.project, safe="")

    def _request_args(self) -> dict[str, Any]:
        token = self._auth.token or self._auth.password
        return {"headers": {"PRIVATE-TOKEN": token}} if token else {}

    @cached_property
    def _repository(self) -> dict[str, Any] | None:
        return self._api.get_json(f"projects/{self._project_id}", **self._request_args())

    @property
    def default_branch(self) -> str:
        repo = self._repository
        return (repo or {}).get("default_branch") or "master"

    def clone_url(self) -> str | None:
        repo = self._repository
        return repo.get("http_url_to_repo") if repo else None

    def home_page(self) -> str:
        return f"{self.server}/{self.project}"

    def read_text(self, path: str) -> str | None:
        file_path = quote(path, safe="")
        return self._api.get_text(
            f"projects/{self._project_id}/repository/files/{file_path}/raw",
            params={"ref": self.default_branch},
            **self._request_args(),
        )

    def validate_for(self, script_name: str) -> None:
        if self._repository is None:
            msg = (
                f"Cannot find `{self.project}` -- Make sure a GitLab project "
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
