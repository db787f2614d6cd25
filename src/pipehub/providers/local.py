"""Provider backed by git repositories on the local filesystem."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from pipehub.errors import MissingRemoteProjectError
from pipehub.scm.git import run_git

if TYPE_CHECKING:
    from pipehub.config.schema import ProviderConfig
    from pipehub.scm.git import Credentials

logger = logging.getLogger(__name__)


class LocalProvider:
    """Serves projects stored as ``<path>/<org>/<repo>`` (bare or not, ``.git`` suffix optional)."""

    def __init__(self, config: ProviderConfig, project: str) -> None:
        if not config.path:
            raise ValueError(f"Provider '{config.name}' requires a 'path'")
        self.name = config.name
        self.project = project
        self.root = Path(config.path)

    @property
    def repository_path(self) -> Path:
        plain = self.root / self.project
        if plain.exists():
            return plain
        return self.root / f"{self.project}.git"

    def clone_url(self) -> str | None:
        path = self.repository_path
        return path.absolute().as_uri() if path.exists() else None

    def home_page(self) -> str | None:
        return self.clone_url()

    def read_text(self, path: str) -> str | None:
        repo = self.repository_path
        if not repo.exists():
            return None
        completed = run_git(["show", f"HEAD:{path}"], cwd=repo, check=False)
        if completed.returncode != 0:
            logger.debug("Cannot read %s from %s: %s", path, repo, completed.stderr.strip())
            return None
        return completed.stdout

    def validate_for(self, script_name: str) -> None:
        if not self.repository_path.exists():
            raise MissingRemoteProjectError(
                f"Cannot find `{self.project}` -- no repository at `{self.repository_path}`"
            )
        if self.read_text(script_name) is None:
            raise MissingRemoteProjectError(
                f"Not a valid pipeline project: `{self.project}` -- "
                f"missing script `{script_name}`"
            )

    def has_credentials(self) -> bool:
        return False

    def credentials(self) -> Credentials | None:
        return None

    def set_credentials(self, user: str, password: str) -> None:
        logger.debug("Ignoring credentials for local provider %s (user %s)", self.name, user)
