"""Pipeline name parsing and disambiguation."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import TYPE_CHECKING
from urllib.parse import unquote, urlparse

from pipehub.config.schema import ProviderConfig
from pipehub.errors import AmbiguousNameError, InvalidNameError

if TYPE_CHECKING:
    from pipehub.core.store import LocalAssetStore

logger = logging.getLogger(__name__)

SCRIPT_EXTENSIONS: tuple[str, ...] = (".nf", ".nxf")

_SCP_LIKE = re.compile(r"^(?:(?P<user>[^@/]+)@)?(?P<host>[^:/]+):(?P<path>[^/].*)$")


@dataclass(frozen=True)
class GitUrl:
    """Parts of a git remote URL.

    ``location`` is the host for network URLs and the directory holding the
    ``<org>/<repo>`` tree for ``file`` URLs.
    """

    protocol: str
    location: str
    project: str
    user: str | None = None


def _strip_git_suffix(path: str) -> str:
    path = path.strip("/")
    return path.removesuffix(".git")


def parse_git_url(url: str) -> GitUrl:
    """Parse an https, ssh, git, file or scp-like (``git@host:org/repo.git``) URL.

    Raises:
        ValueError: When *url* is not recognisable as a git URL.
    """
    if url.startswith("file:"):
        path = str(PurePosixPath(unquote(urlparse(url).path)))
        parts = _strip_git_suffix(path).split("/")
        if len(parts) < 2 or not all(parts):
            raise ValueError(f"Not a valid git file URL: {url}")
        prefix = "/" if path.startswith("/") else ""
        return GitUrl(
            protocol="file",
            location=prefix + "/".join(parts[:-2]),
            project="/".join(parts[-2:]),
        )

    if "://" in url:
        parsed = urlparse(url)
        if not parsed.hostname or not parsed.path.strip("/"):
            raise ValueError(f"Not a valid git URL: {url}")
        return GitUrl(
            protocol=parsed.scheme,
            location=parsed.hostname,
            project=_strip_git_suffix(parsed.path),
            user=parsed.username,
        )

    match = _SCP_LIKE.match(url)
    if match is None:
        raise ValueError(f"Not a valid git URL: {url}")
    return GitUrl(
        protocol="ssh",
        location=match["host"],
        project=_strip_git_suffix(match["path"]),
        user=match["user"],
    )


@dataclass(frozen=True)
class Resolved:
    """A short name matched exactly one installed pipeline."""

    name: str


@dataclass(frozen=True)
class Ambiguous:
    """A short name matched several installed pipelines."""

    candidates: list[str]


def lookup(name: str, store: LocalAssetStore) -> Resolved | Ambiguous | None:
    """Match a bare repository name against installed pipelines."""
    matches = store.find(name)
    if not matches:
        return None
    if len(matches) == 1:
        return Resolved(matches[0])
    return Ambiguous(matches)


@dataclass(frozen=True)
class ResolvedName:
    """Result of resolving a pipeline identifier.

    ``provider`` is only set when the identifier was a ``file:`` git URL; it
    describes a one-off provider valid for this resolution.
    """

    project: str
    main_script: str | None = None
    provider: ProviderConfig | None = None

    @property
    def organization(self) -> str:
        return self.project.split("/")[0]

    @property
    def repository(self) -> str:
        return self.project.split("/")[-1]


def resolve_name(identifier: str, store: LocalAssetStore, *, default_org: str) -> ResolvedName:
    """Turn *identifier* into a canonical ``owner/repo`` name.

    Raises:
        InvalidNameError: For too many segments or a script without an owner.
        AmbiguousNameError: When a short name matches several installed pipelines.
    """
    if not identifier:
        raise InvalidNameError(identifier)

    if identifier.endswith(".git"):
        try:
            url = parse_git_url(identifier)
        except ValueError as exc:
            logger.debug("%s", exc)
        else:
            provider = None
            if url.protocol == "file":
                provider = ProviderConfig(
                    name=f"file:{url.location}", platform="file", path=url.location
                )
            return ResolvedName(project=url.project, provider=provider)

    parts = identifier.split("/")
    main_script: str | None = None
    if parts[-1].endswith(SCRIPT_EXTENSIONS):
        if len(parts) == 1:
            raise InvalidNameError(identifier)
        if len(parts) == 2:
            main_script = parts[-1]
            parts = parts[:1]
        else:
            main_script = "/".join(parts[2:])
            parts = parts[:2]

    if len(parts) == 2:
        return ResolvedName(project="/".join(parts), main_script=main_script)
    if len(parts) > 2:
        raise InvalidNameError(identifier)

    name = parts[0]
    match lookup(name, store):
        case None:
            project = f"{default_org}/{name}"
        case Resolved(name=found):
            project = found
        case Ambiguous(candidates=candidates):
            raise AmbiguousNameError(name, candidates)

    return ResolvedName(project=project, main_script=main_script)
