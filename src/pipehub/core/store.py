"""On-disk layout of installed pipelines."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class LocalAssetStore:
    """Pipelines installed under ``root/<organization>/<repository>``."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def local_path(self, project: str) -> Path:
        return self.root / project

    def is_local(self, project: str) -> bool:
        return self.local_path(project).exists()

    def list(self) -> list[str]:
        """Names of all installed pipelines, sorted."""
        logger.debug("Listing pipelines in folder: %s", self.root)
        if not self.root.is_dir():
            return []
        return sorted(
            f"{org.name}/{repo.name}"
            for org in self.root.iterdir()
            if org.is_dir()
            for repo in org.iterdir()
            if repo.is_dir()
        )

    def find(self, name: str) -> list[str]:
        """Installed pipelines whose repository is *name*, else those starting with it."""
        exact: list[str] = []
        partial: list[str] = []
        for item in self.list():
            repo = item.split("/")[1]
            if repo == name:
                exact.append(item)
            elif repo.startswith(name):
                partial.append(item)
        return exact or partial
