"""Error types raised by pipehub."""

from __future__ import annotations


class AssetError(Exception):
    """Base exception for user-facing asset errors."""


class ConfigError(AssetError):
    """Raised for provider configuration loading / validation errors."""


class InvalidNameError(AssetError):
    """Raised when a pipeline identifier is malformed."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Not a valid pipeline name: {name}")
        self.name = name


class AmbiguousNameError(AssetError):
    """Raised when a short name matches more than one installed pipeline."""

    def __init__(self, name: str, candidates: list[str]) -> None:
        msg = f"Which one do you mean for '{name}'?\n" + "\n".join(candidates)
        super().__init__(msg)
        self.name = name
        self.candidates = candidates


class UnknownProviderError(AssetError):
    """Raised when no provider configuration matches the requested name."""

    def __init__(self, provider: str) -> None:
        super().__init__(f"Unknown pipeline repository configuration provider: {provider}")
        self.provider = provider


class DirtyWorkingTreeError(AssetError):
    """Raised when a checkout or pull is attempted on uncommitted changes."""

    def __init__(self, project: str, action: str) -> None:
        super().__init__(f"{project} contains uncommitted changes -- {action}")
        self.project = project


class RevisionPinnedError(AssetError):
    """Raised when the checkout is away from the default branch and no revision is given."""

    def __init__(self, project: str, current: str) -> None:
        super().__init__(
            f"Pipeline '{project}' is currently pinned to revision: {current} "
            f"-- specify a revision explicitly to use it"
        )
        self.project = project
        self.current = current


class RevisionNotFoundError(AssetError):
    """Raised when a revision does not exist in the local repository."""

    def __init__(self, revision: str) -> None:
        super().__init__(f"Unknown revision: {revision}")
        self.revision = revision


class MissingRemoteProjectError(AssetError):
    """Raised when the remote project (or its main script) does not exist."""


class MissingLocalAssetError(AssetError):
    """Raised when an operation requires a pipeline that is not installed."""


class PullError(AssetError):
    """Raised when pulling from the remote fails for a reason other than a conflict."""

    def __init__(self, project: str, detail: str) -> None:
        super().__init__(f"Cannot pull pipeline: '{project}' -- {detail}")
        self.project = project
        self.detail = detail


class CloneUrlError(AssetError):
    """Raised when no clone URL can be determined for a project."""


class ProviderAccessError(AssetError):
    """Raised when a hosting provider API cannot be reached or refuses the request."""

    def __init__(self, url: str, detail: str) -> None:
        super().__init__(f"Cannot access {url} -- {detail}")
        self.url = url
        self.detail = detail


class GitCommandError(Exception):
    """Raised when a git command fails unexpectedly."""

    def __init__(self, args: list[str], returncode: int, stderr: str) -> None:
        msg = f"Failed to run {' '.join(args)} (exit {returncode})"
        if stderr:
            msg += f": {stderr}"
        super().__init__(msg)
        self.args_list = args
        self.returncode = returncode
        self.stderr = stderr


class RepositoryNotFoundError(GitCommandError):
    """Raised when a path is not a git repository."""

    def __init__(self, path: str) -> None:
        super().__init__(["git", "-C", path], 128, f"not a git repository: {path}")
        self.path = path
