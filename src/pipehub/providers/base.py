"""Hosting provider interface and shared HTTP plumbing."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

import requests

from pipehub.errors import ProviderAccessError
from pipehub.scm.git import Credentials

if TYPE_CHECKING:
    from pipehub.config.schema import ProviderConfig

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30

_ACCESS_DENIED = {
    401: "not authorized, check the provider credentials",
    403: "access forbidden or API rate limit exceeded",
}


class RepositoryProvider(Protocol):
    """Capabilities pipehub needs from a hosting backend."""

    name: str
    project: str

    def clone_url(self) -> str | None: ...

    def home_page(self) -> str | None: ...

    def read_text(self, path: str) -> str | None: ...

    def validate_for(self, script_name: str) -> None: ...

    def has_credentials(self) -> bool: ...

    def credentials(self) -> Credentials | None: ...

    def set_credentials(self, user: str, password: str) -> None: ...


class ProviderAuth:
    """Credentials held by a provider, seeded from its configuration.

    A token configured without a user authenticates git as *token_user*, the
    fixed user name the hosting service expects next to an access token.
    """

    def __init__(self, config: ProviderConfig, *, token_user: str | None = None) -> None:
        self.user = config.user
        self.password = config.password.get_secret_value() if config.password else None
        self.token = config.token.get_secret_value() if config.token else None
        self.token_user = token_user

    def set(self, user: str, password: str) -> None:
        self.user = user
        self.password = password

    @property
    def secret(self) -> str | None:
        return self.password or self.token

    def has_credentials(self) -> bool:
        if self.user and self.secret:
            return True
        return bool(self.token and self.token_user)

    def credentials(self) -> Credentials | None:
        if self.user and self.secret:
            return Credentials(user=self.user, password=self.secret)
        if self.token and self.token_user:
            return Credentials(user=self.token_user, password=self.token)
        return None


class ApiSession:
    """GET-only REST session; 404 answers map to ``None``.

    Transport failures and other error statuses raise ``ProviderAccessError``.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _get(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        auth: tuple[str, str] | None = None,
        params: dict[str, str] | None = None,
    ) -> requests.Response | None:
        url = f"{self.endpoint}/{path.lstrip('/')}"
        logger.debug("GET %s", url)
        try:
            response = self.session.get(
                url, headers=headers, auth=auth, params=params, timeout=self.timeout
            )
        except requests.RequestException as exc:
            raise ProviderAccessError(url, str(exc)) from exc
        if response.status_code == 404:
            return None
        if response.status_code in _ACCESS_DENIED:
            raise ProviderAccessError(url, _ACCESS_DENIED[response.status_code])
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise ProviderAccessError(url, str(exc)) from exc
        return response

    def get_json(self, path: str, **kwargs: Any) -> Any:
        response = self._get(path, **kwargs)
        return response.json() if response is not None else None

    def get_text(self, path: str, **kwargs: Any) -> str | None:
        response = self._get(path, **kwargs)
        return response.text if response is not None else None
