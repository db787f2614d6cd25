"""Revision inspection, listing and checkout for a local pipeline."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pipehub.errors import (
    DirtyWorkingTreeError,
    RepositoryNotFoundError,
    RevisionNotFoundError,
    RevisionPinnedError,
)
from pipehub.scm.git import ORIGIN_PREFIX, shorten_ref_name

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from pipehub.core.manifest import Manifest
    from pipehub.scm.git import Credentials, GitRepository, Ref

logger = logging.getLogger(__name__)

UNKNOWN_REVISION = "(unknown)"
SUBMODULES_FILE = ".gitmodules"


def short_name(ref_name: str) -> str:
    """Short display name; ``origin/`` is dropped from remote-tracking branches."""
    if ref_name.startswith(ORIGIN_PREFIX):
        return ref_name.removeprefix(ORIGIN_PREFIX)
    return shorten_ref_name(ref_name)


class RevisionController:
    """Exposes the revision state of one working copy.

    Nothing is cached: every call reflects the repository as it is now.

    Args:
        git: Returns the (lazily opened) repository handle.
        project: Pipeline name, used in error messages.
        local_path: Working copy directory.
        manifest: Returns the current manifest.
        default_branch: Returns the branch considered the default.
        credentials: Returns credentials for remote operations, if any.
    """

    def __init__(
        self,
        git: Callable[[], GitRepository],
        *,
        project: str,
        local_path: Path,
        manifest: Callable[[], Manifest],
        default_branch: Callable[[], str],
        credentials: Callable[[], Credentials | None] = lambda: None,
    ) -> None:
        self._git = git
        self.project = project
        self.local_path = local_path
        self._manifest = manifest
        self._default_branch = default_branch
        self._credentials = credentials

    def is_clean(self) -> bool:
        """True when nothing is uncommitted (or *local_path* is not a repository)."""
        try:
            return self._git().is_clean()
        except RepositoryNotFoundError:
            return True

    def current_revision(self) -> str:
        """Checked-out branch, else a tag on the detached commit, else its object id."""
        repo = self._git()
        head = repo.head()
        if head is None:
            return UNKNOWN_REVISION
        if head.is_symbolic:
            return shorten_ref_name(head.target or "")
        if not head.object_id:
            return UNKNOWN_REVISION
        return repo.name_rev(head.object_id, "refs/tags/") or head.object_id

    def current_revision_and_name(self) -> str:
        """Abbreviated commit id and branch or tag name, e.g. ``1a2b3c4d5e [master]``."""
        repo = self._git()
        head = repo.head()
        if head is None or not head.object_id:
            return UNKNOWN_REVISION
        abbrev = head.object_id[:10]
        if head.is_symbolic:
            return f"{abbrev} [{shorten_ref_name(head.target or '')}]"
        name = repo.name_rev(head.object_id, "refs/tags/")
        return f"{abbrev} [{name}]" if name else abbrev

    def list_revisions(self, level: int = 0) -> list[str]:
        """Branches then tags, one formatted line each.

        ``*`` marks the current revision, ``(default)`` the default branch and
        ``[t]`` a tag.  *level* 1 adds the abbreviated commit id, 2 the full one.
        """
        repo = self._git()
        current = self.current_revision()
        default = self._default_branch()

        seen: set[str] = set()
        branches: list[Ref] = []
        for ref in repo.branch_list(include_remotes=True):
            if not (ref.name.startswith("refs/heads/") or ref.name.startswith(ORIGIN_PREFIX)):
                continue
            name = short_name(ref.name)
            if name in seen:
                continue
            seen.add(name)
            branches.append(ref)

        tags = [ref for ref in repo.tag_list() if ref.name.startswith("refs/tags/")]

        fmt = self._format_ref
        return [
            *(fmt(repo, r, current, default, tag=False, level=level) for r in branches),
            *(fmt(repo, r, current, default, tag=True, level=level) for r in tags),
        ]

    @staticmethod
    def _format_ref(
        repo: GitRepository, ref: Ref, current: str, default: str, *, tag: bool, level: int
    ) -> str:
        name = short_name(ref.name)
        parts = ["*" if name == current else " "]
        if level:
            object_id = repo.peel(ref)
            parts.append(object_id[:10] if level == 1 else object_id)
        parts.append(name)
        line = " ".join(parts)
        if tag:
            line += " [t]"
        elif name == default:
            line += " (default)"
        return line

    def checkout(self, revision: str | None = None) -> None:
        """Switch the working copy to *revision*.

        Raises:
            RevisionPinnedError: When away from the default branch and no revision is given.
            DirtyWorkingTreeError: When a switch is needed but changes are uncommitted.
        """
        current = self.current_revision()
        if current != self._default_branch():
            if not revision:
                raise RevisionPinnedError(self.project, current)
        elif not revision or revision == current:
            return

        if revision == current:
            return

        if not self.is_clean():
            raise DirtyWorkingTreeError(
                self.project, f"cannot switch to revision: {revision}"
            )

        try:
            self._git().checkout(revision)
        except RevisionNotFoundError:
            self.checkout_remote_branch(revision)

    def checkout_remote_branch(self, revision: str) -> Ref:
        """Fetch, then create and check out a local branch tracking ``origin/<revision>``."""
        repo = self._git()
        repo.fetch(credentials=self._credentials())
        ref = repo.checkout(
            revision, create_branch=True, start_point=f"origin/{revision}", track=True
        )
        logger.debug("Checked out remote branch origin/%s at %s", revision, ref.object_id)
        return ref

    def update_submodules(self) -> list[str]:
        """Init and update submodules, restricted by the manifest ``gitmodules`` setting.

        Returns the paths of the updated submodules.
        """
        marker = self.local_path / SUBMODULES_FILE
        if not marker.is_file() or marker.stat().st_size == 0:
            return []

        paths = self._manifest().submodule_paths()
        if paths is None:
            logger.debug("Submodule update disabled by manifest for %s", self.project)
            return []

        repo = self._git()
        repo.submodule_init(paths)
        updated = repo.submodule_update(paths, credentials=self._credentials())
        logger.debug("Update submodules %s", updated)
        return updated
