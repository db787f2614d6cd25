"""Shared fixtures for unit tests."""

from __future__ import annotations

import os
import shutil
import subprocess
from typing import TYPE_CHECKING

import pytest

from pipehub.config.settings import Settings

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


@pytest.fixture(autouse=True)
def _clean_pipehub_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove PIPEHUB_* env vars so unit tests don't leak host config."""
    for var in list(os.environ):
        if var.startswith("PIPEHUB_"):
            monkeypatch.delenv(var, raising=False)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(assets=tmp_path / "assets", scm=tmp_path / "scm.yaml", org="nextflow-io")


@pytest.fixture
def install(settings: Settings) -> Callable[..., Path]:
    """Factory fixture: create ``<assets>/<org>/<repo>`` directories."""

    def _install(*names: str) -> Path:
        path = settings.assets
        for name in names:
            path = settings.assets / name
            path.mkdir(parents=True)
        return path

    return _install


def git(cwd: Path, *args: str) -> str:
    """Run git in *cwd* and return its stripped stdout."""
    completed = subprocess.run(
        ["git", "-C", str(cwd), *args], check=True, capture_output=True, text=True
    )
    return completed.stdout.strip()


@pytest.fixture
def git_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Isolate git from the user's configuration; skip when git is missing."""
    if shutil.which("git") is None:
        pytest.skip("git executable not available")
    gitconfig = tmp_path / "gitconfig"
    gitconfig.write_text("[init]\n\tdefaultBranch = master\n")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(gitconfig))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    for key, value in {
        "GIT_AUTHOR_NAME": "Test",
        "GIT_AUTHOR_EMAIL": "test@example.com",
        "GIT_COMMITTER_NAME": "Test",
        "GIT_COMMITTER_EMAIL": "test@example.com",
    }.items():
        monkeypatch.setenv(key, value)


@pytest.fixture
def origin_repo(git_env: None, tmp_path: Path) -> Path:
    """Repository at ``<tmp>/remote/acme/demo``.

    ``master`` has two commits, the first tagged ``v1.0``; branch ``dev`` adds
    ``dev.nf`` on top of the first commit.
    """
    repo = tmp_path / "remote" / "acme" / "demo"
    repo.mkdir(parents=True)
    git(repo, "init")
    git(repo, "symbolic-ref", "HEAD", "refs/heads/master")
    (repo / "main.nf").write_text("println 'hello'\n")
    (repo / "pipehub.yaml").write_text("manifest:\n  description: Demo pipeline\n")
    git(repo, "add", ".")
    git(repo, "commit", "-m", "first")
    git(repo, "tag", "v1.0")
    git(repo, "checkout", "-b", "dev")
    (repo / "dev.nf").write_text("println 'dev'\n")
    git(repo, "add", ".")
    git(repo, "commit", "-m", "dev work")
    git(repo, "checkout", "master")
    (repo / "README.md").write_text("demo\n")
    git(repo, "add", ".")
    git(repo, "commit", "-m", "second")
    return repo
