"""Thin wrapper around the ``git`` executable."""

from __future__ import annotations

import logging
import os
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from pipehub.errors import GitCommandError, RepositoryNotFoundError, RevisionNotFoundError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import TracebackType

logger = logging.getLogger(__name__)

HEAD = "HEAD"
ORIGIN_PREFIX = "refs/remotes/origin/"

# Reads credentials from the child environment so they never show up in argv.
_CREDENTIAL_HELPER = (
    '!f() { echo "username=${PIPEHUB_GIT_USER}"; echo "password=${PIPEHUB_GIT_PASSWORD}"; }; f'
)

_SUBMODULE_UPDATED = re.compile(r"Submodule path '([^']+)': checked out")


@dataclass(frozen=True)
class Credentials:
    """Username/password pair handed to git for remote operations."""

    user: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(user={self.user!r}, password='**********')"


@dataclass(frozen=True)
class Ref:
    """A git reference.

    ``target`` is set for symbolic refs (``HEAD`` on a branch) and holds the
    full name of the ref pointed to.  ``object_id`` may be ``None`` for an
    unborn branch.
    """

    name: str
    object_id: str | None
    target: str | None = None

    @property
    def is_symbolic(self) -> bool:
        return self.target is not None


@dataclass(frozen=True)
class PullResult:
    """Outcome of ``git pull``."""

    successful: bool
    merge_status: str
    output: str


def shorten_ref_name(name: str) -> str:
    """Strip ``refs/heads/``, ``refs/tags/`` or ``refs/remotes/`` from *name*."""
    for prefix in ("refs/heads/", "refs/tags/", "refs/remotes/"):
        if name.startswith(prefix):
            return name.removeprefix(prefix)
    return name


def run_git(
    args: Sequence[str],
    *,
    cwd: Path | str | None = None,
    credentials: Credentials | None = None,
    check: bool = True,
) -> subprocess.CompletedProcess[str]:
    """Run ``git`` with *args* and return the completed process.

    Raises:
        GitCommandError: When *check* is true and git exits non-zero.
    """
    cmd = ["git"]
    if cwd is not None:
        cmd += ["-C", str(cwd)]
    env = dict(os.environ, GIT_TERMINAL_PROMPT="0")
    if credentials is not None:
        cmd += ["-c", "credential.helper=", "-c", f"credential.helper={_CREDENTIAL_HELPER}"]
        env["PIPEHUB_GIT_USER"] = credentials.user
        env["PIPEHUB_GIT_PASSWORD"] = credentials.password
    cmd += list(args)

    logger.debug("Running %s", " ".join(cmd))
    completed = subprocess.run(cmd, capture_output=True, text=True, env=env, check=False)
    if check and completed.returncode != 0:
        raise GitCommandError(cmd, completed.returncode, (completed.stderr or "").strip())
    return completed


def clone(
    uri: str,
    directory: Path | str,
    *,
    credentials: Credentials | None = None,
    branch: str | None = None,
) -> None:
    """Clone *uri* into *directory*, optionally checking out *branch*."""
    args = ["clone"]
    if branch:
        args += ["--branch", branch]
    args += ["--", uri, str(directory)]
    run_git(args, credentials=credentials)


def config_get(config_file: Path | str, key: str) -> str | None:
    """Read *key* from a git-config style file, ``None`` when unset."""
    completed = run_git(["config", "--file", str(config_file), "--get", key], check=False)
    if completed.returncode != 0:
        return None
    return completed.stdout.strip() or None


class GitRepository:
    """Handle on a local working copy.

    Use :meth:`open` to create one.  ``close`` is idempotent; a closed handle
    refuses further commands.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._closed = False

    @classmethod
    def open(cls, path: Path | str) -> GitRepository:
        """Open the working copy at *path*.

        Raises:
            RepositoryNotFoundError: When *path* has no ``.git`` entry.
        """
        path = Path(path)
        if not (path / ".git").exists():
            raise RepositoryNotFoundError(str(path))
        logger.debug("Opened git repository %s", path)
        return cls(path)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if not self._closed:
            logger.debug("Closed git repository %s", self.path)
        self._closed = True

    def __enter__(self) -> GitRepository:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _git(
        self,
        *args: str,
        credentials: Credentials | None = None,
        check: bool = True,
    ) -> subprocess.CompletedProcess[str]:
        if self._closed:
            raise ValueError(f"Git repository {self.path} is closed")
        return run_git(args, cwd=self.path, credentials=credentials, check=check)

    def _resolve(self, revision: str) -> str | None:
        completed = self._git("rev-parse", "--verify", "--quiet", revision, check=False)
        if completed.returncode != 0:
            return None
        return completed.stdout.strip() or None

    # -- inspection ---------------------------------------------------------

    def is_clean(self) -> bool:
        """True when the index, the working tree and HEAD agree (untracked files count)."""
        return not self._git("status", "--porcelain").stdout.strip()

    def head(self) -> Ref | None:
        """Return ``HEAD``, or ``None`` when the repository has no HEAD at all."""
        symbolic = self._git("symbolic-ref", "--quiet", HEAD, check=False)
        object_id = self._resolve(HEAD)
        if symbolic.returncode == 0:
            return Ref(HEAD, object_id, target=symbolic.stdout.strip())
        if object_id is None:
            return None
        return Ref(HEAD, object_id)

    def name_rev(self, object_id: str, prefix: str = "refs/tags/") -> str | None:
        """Name of the first ref under *prefix* pointing at *object_id*.

        Annotated tags match through their peeled commit.
        """
        completed = self._git(
            "for-each-ref",
            f"--points-at={object_id}",
            "--format=%(refname)",
            prefix.rstrip("/"),
        )
        names = sorted(line.strip() for line in completed.stdout.splitlines() if line.strip())
        if not names:
            return None
        return names[0].removeprefix(prefix)

    def _list_refs(self, *patterns: str) -> list[Ref]:
        completed = self._git(
            "for-each-ref", "--format=%(refname)%00%(objectname)%00%(symref)", *patterns
        )
        refs: list[Ref] = []
        for line in completed.stdout.splitlines():
            if not line:
                continue
            name, object_id, symref = line.split("\0")
            if symref:
                continue
            refs.append(Ref(name, object_id))
        return refs

    def branch_list(self, *, include_remotes: bool = True) -> list[Ref]:
        """Local branches, plus remote-tracking branches when *include_remotes* is set."""
        patterns = ["refs/heads"]
        if include_remotes:
            patterns.append("refs/remotes")
        return self._list_refs(*patterns)

    def tag_list(self) -> list[Ref]:
        return self._list_refs("refs/tags")

    def peel(self, ref: Ref) -> str:
        """Object id *ref* ultimately points to (annotated tags resolve to their commit)."""
        return self._resolve(f"{ref.name}^{{}}") or ref.object_id or ""

    def read_file(self, path: str, revision: str = HEAD) -> str:
        """Content of *path* at *revision*."""
        return self._git("show", f"{revision}:{path}").stdout

    # -- mutation -----------------------------------------------------------

    def fetch(self, *, credentials: Credentials | None = None) -> None:
        self._git("fetch", "origin", credentials=credentials)

    def checkout(
        self,
        name: str,
        *,
        create_branch: bool = False,
        start_point: str | None = None,
        track: bool = False,
    ) -> Ref:
        """Check out *name*, or create it from *start_point* with *create_branch*.

        Raises:
            RevisionNotFoundError: When *name* (or *start_point*) does not exist locally.
        """
        if create_branch:
            if start_point is not None and self._resolve(f"{start_point}^{{commit}}") is None:
                raise RevisionNotFoundError(start_point)
            args = ["checkout", "-b", name]
            if track:
                args.append("--track")
            if start_point is not None:
                args.append(start_point)
        else:
            if self._resolve(f"{name}^{{commit}}") is None:
                raise RevisionNotFoundError(name)
            args = ["checkout", "--no-guess", name]
        self._git(*args)

        head = self.head()
        return head if head is not None else Ref(HEAD, None)

    def pull(self, *, credentials: Credentials | None = None) -> PullResult:
        """Pull from the tracked upstream with a merge (never a rebase)."""
        completed = self._git(
            "pull", "--no-rebase", "--no-edit", credentials=credentials, check=False
        )
        output = "\n".join(s.strip() for s in (completed.stdout, completed.stderr) if s.strip())
        if completed.returncode != 0:
            status = "CONFLICTING" if "CONFLICT" in completed.stdout else "FAILED"
            return PullResult(successful=False, merge_status=status, output=output)
        if re.search(r"Already up[ -]to[ -]date", output):
            status = "ALREADY_UP_TO_DATE"
        elif "Fast-forward" in output:
            status = "FAST_FORWARD"
        else:
            status = "MERGED"
        return PullResult(successful=True, merge_status=status, output=output)

    def submodule_init(self, paths: Sequence[str] = ()) -> None:
        self._git("submodule", "init", "--", *paths)

    def submodule_update(
        self, paths: Sequence[str] = (), *, credentials: Credentials | None = None
    ) -> list[str]:
        """Update submodules limited to *paths* (all when empty); return the updated paths."""
        completed = self._git("submodule", "update", "--", *paths, credentials=credentials)
        return _SUBMODULE_UPDATED.findall(completed.stdout + completed.stderr)
