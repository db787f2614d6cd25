"""AssetManager - download, update and inspect one pipeline project."""

from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING

from pipehub.config.loader import ProviderConfigs, load_providers
from pipehub.config.settings import Settings
from pipehub.core.manifest import MANIFEST_FILE_NAME, Manifest, ManifestReader
from pipehub.core.naming import parse_git_url, resolve_name
from pipehub.core.revisions import RevisionController
from pipehub.core.store import LocalAssetStore
from pipehub.errors import (
    CloneUrlError,
    DirtyWorkingTreeError,
    MissingLocalAssetError,
    PullError,
    RevisionNotFoundError,
)
from pipehub.providers import create_provider
from pipehub.scm import git as scm
from pipehub.scm.git import GitRepository

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path
    from types import TracebackType

    from pipehub.config.schema import ProviderConfig
    from pipehub.providers import RepositoryProvider
    from pipehub.scm.git import Credentials, Ref

logger = logging.getLogger(__name__)

DEFAULT_MAIN_FILE_NAME = "main.nf"
DEFAULT_BRANCH = "master"


class AssetManager:
    """Manages a single pipeline: its name, provider, local copy and revisions.

    The pipeline name, local path and provider are fixed at construction.  The
    git handle is opened on first use and released by :meth:`close`; use the
    manager as a context manager to release it on every exit path.

    Examples:
        with AssetManager("nextflow-io/hello") as manager:
            manager.download()
            script = manager.main_script_file()

    Args:
        name: Pipeline identifier (``org/repo``, a short name, a script path
            such as ``org/repo/sub/main.nf``, or a git URL ending in ``.git``).
        hub: Provider configuration name; inferred when omitted.
        user: Username for the provider.
        password: Password or token for the provider.
        providers: Provider configurations; loaded from the scm file when omitted.
        settings: Environment defaults.
    """

    def __init__(
        self,
        name: str,
        *,
        hub: str | None = None,
        user: str | None = None,
        password: str | None = None,
        providers: ProviderConfigs | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.store = LocalAssetStore(self.settings.assets)
        self.providers = providers if providers is not None else load_providers(self.settings.scm)
        self._provider: RepositoryProvider | None = None
        self._git: GitRepository | None = None
        self._manifest_reader = ManifestReader(self._manifest_text)
        self._build(name, hub=hub, user=user, password=password)

    def _build(
        self, name: str, *, hub: str | None, user: str | None, password: str | None
    ) -> None:
        resolved = resolve_name(name, self.store, default_org=self.settings.org)
        self.project = resolved.project
        self.pinned_main_script = resolved.main_script
        self.local_path = self.store.local_path(self.project)

        providers = self.providers
        if resolved.provider is not None:
            providers = providers.with_provider(resolved.provider)
            hub = resolved.provider.name

        self.hub = hub or self._guess_hub_from_git_config(providers) or self.settings.hub
        self.provider_config: ProviderConfig = providers.select(self.hub)
        self._provider = create_provider(self.provider_config, self.project)
        if user:
            self.provider.set_credentials(user, password or "")

        self.revisions = RevisionController(
            lambda: self.git,
            project=self.project,
            local_path=self.local_path,
            manifest=self.read_manifest,
            default_branch=lambda: self.default_branch,
            credentials=self._credentials,
        )
        logger.debug("Built asset manager for %s (hub: %s)", self.project, self.hub)

    def __repr__(self) -> str:
        return f"AssetManager(project={self.project!r}, hub={self.hub!r})"

    @property
    def provider(self) -> RepositoryProvider:
        """Hosting client bound to this pipeline."""
        if self._provider is None:
            raise RuntimeError(f"No provider bound for {self.project}")
        return self._provider

    # -- repository handle ----------------------------------------------------

    @property
    def git(self) -> GitRepository:
        """The local repository, opened on first access."""
        if self._git is None:
            self._git = GitRepository.open(self.local_path)
        return self._git

    def close(self) -> None:
        """Release the repository handle; safe to call repeatedly."""
        if self._git is not None:
            self._git.close()
            self._git = None

    def __enter__(self) -> AssetManager:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    @contextlib.contextmanager
    def opened(self) -> Iterator[GitRepository]:
        """Yield the repository handle and close it afterwards."""
        try:
            yield self.git
        finally:
            self.close()

    # -- manifest-derived metadata ------------------------------------------

    def _manifest_text(self) -> str | None:
        if self.local_path.exists():
            return (self.local_path / MANIFEST_FILE_NAME).read_text(encoding="utf-8")
        if self._provider is None:
            return None
        return self._provider.read_text(MANIFEST_FILE_NAME)

    def read_manifest(self) -> Manifest:
        return self._manifest_reader.read()

    @property
    def main_script_name(self) -> str:
        if self.pinned_main_script:
            return self.pinned_main_script
        return self.read_manifest().main_script or DEFAULT_MAIN_FILE_NAME

    @property
    def home_page(self) -> str | None:
        manifest_page = self.read_manifest().home_page
        if manifest_page:
            return manifest_page
        return self.provider.home_page()

    @property
    def default_branch(self) -> str:
        return self.read_manifest().default_branch or DEFAULT_BRANCH

    @property
    def description(self) -> str | None:
        return self.read_manifest().description or None

    @property
    def base_name(self) -> str:
        return self.project.split("/")[-1]

    # -- local state ----------------------------------------------------------

    @property
    def is_local(self) -> bool:
        return self.local_path.exists()

    @property
    def is_clean(self) -> bool:
        return self.revisions.is_clean()

    def main_script_file(self) -> Path:
        """Path of the main script in the local copy.

        Raises:
            MissingLocalAssetError: When the pipeline or its script is not on disk.
        """
        if not self.local_path.exists():
            raise MissingLocalAssetError(f"Unknown pipeline folder: {self.local_path}")
        result = self.local_path / self.main_script_name
        if not result.exists():
            raise MissingLocalAssetError(f"Missing pipeline script: {result}")
        return result

    @property
    def git_repository_url(self) -> str | None:
        """URL to clone from: the local copy when installed, otherwise the provider's."""
        if self.local_path.exists():
            return self.local_path.absolute().as_uri()
        return self.provider.clone_url()

    def check_valid_remote_repo(self) -> None:
        self.provider.validate_for(self.main_script_name)

    def _credentials(self) -> Credentials | None:
        if not self.provider.has_credentials():
            return None
        return self.provider.credentials()

    # -- provider inference -------------------------------------------------

    def _git_config_remote_url(self) -> str | None:
        config_file = self.local_path / ".git" / "config"
        if not config_file.is_file():
            return None
        branch = self.default_branch
        remote = scm.config_get(config_file, f"branch.{branch}.remote") or "origin"
        return scm.config_get(config_file, f"remote.{remote}.url")

    def _git_config_remote_server(self) -> str | None:
        url = self._git_config_remote_url()
        if not url:
            return None
        try:
            return parse_git_url(url).location
        except ValueError as exc:
            logger.debug("%s", exc)
            return None

    def _guess_hub_from_git_config(self, providers: ProviderConfigs) -> str | None:
        config = providers.find_by_domain(self._git_config_remote_server())
        return config.name if config else None

    # -- operations -----------------------------------------------------------

    def download(self, revision: str | None = None) -> str:
        """Clone the pipeline, or update the local copy when already installed.

        Returns:
            A status message: ``downloaded from <url>``, ``checked out at <id>``
            after switching revision or on a detached checkout (nothing to
            pull), or the pull merge status (e.g. ``FAST_FORWARD``).

        Raises:
            MissingRemoteProjectError: When the remote project or script is missing.
            DirtyWorkingTreeError: When the local copy has uncommitted changes.
            PullError: When the pull fails for a reason other than a merge conflict.
        """
        if not self.local_path.exists():
            self.local_path.parent.mkdir(parents=True, exist_ok=True)
            self.check_valid_remote_repo()

            url = self.provider.clone_url()
            if not url:
                raise CloneUrlError(f"Cannot find the specified pipeline: {self.project}")
            logger.debug("Pulling %s -- Using remote clone url: %s", self.project, url)
            scm.clone(url, self.local_path, credentials=self._credentials())

            if revision and revision != self.revisions.current_revision():
                self._switch_to(revision)
            return f"downloaded from {url}"

        logger.debug("Pull pipeline %s -- Using local path: %s", self.project, self.local_path)

        if not self.is_clean:
            raise DirtyWorkingTreeError(self.project, "cannot pull from repository")

        if revision and revision != self.revisions.current_revision():
            ref = self._switch_to(revision)
            return f"checked out at {ref.object_id or ''}"

        head = self.git.head()
        if head is not None and not head.is_symbolic:
            return f"checked out at {head.object_id}"

        result = self.git.pull(credentials=self._credentials())
        if not result.successful:
            if result.merge_status == "CONFLICTING":
                logger.warning("Merge conflict pulling %s:\n%s", self.project, result.output)
                return result.merge_status
            raise PullError(self.project, result.output or result.merge_status)
        return result.merge_status

    def _switch_to(self, revision: str) -> Ref:
        """Check out *revision*, tracking a remote branch when no local ref matches."""
        try:
            return self.git.checkout(revision)
        except RevisionNotFoundError:
            return self.revisions.checkout_remote_branch(revision)

    def clone(self, directory: Path | str, revision: str | None = None) -> None:
        """Clone the pipeline into *directory*, independent of the managed copy.

        Raises:
            CloneUrlError: When no clone URL can be determined.
        """
        uri = self.git_repository_url
        logger.debug(
            "Clone pipeline %s -- Using remote URI: %s into: %s", self.project, uri, directory
        )
        if not uri:
            raise CloneUrlError(f"Cannot find the specified pipeline: {self.project}")
        scm.clone(uri, directory, credentials=self._credentials(), branch=revision)

    def current_revision(self) -> str:
        return self.revisions.current_revision()

    def current_revision_and_name(self) -> str:
        return self.revisions.current_revision_and_name()

    def list_revisions(self, level: int = 0) -> list[str]:
        return self.revisions.list_revisions(level)

    def checkout(self, revision: str | None = None) -> None:
        self.revisions.checkout(revision)

    def update_submodules(self) -> list[str]:
        return self.revisions.update_submodules()


def list_pipelines(settings: Settings | None = None) -> list[str]:
    """Names of all installed pipelines."""
    settings = settings or Settings()
    return LocalAssetStore(settings.assets).list()
