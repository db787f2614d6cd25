from __future__ import annotations

import logging
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from pipehub.cli import app
from pipehub.errors import (
    AmbiguousNameError,
    ConfigError,
    DirtyWorkingTreeError,
    GitCommandError,
    MissingRemoteProjectError,
    ProviderAccessError,
    PullError,
    RevisionPinnedError,
    UnknownProviderError,
)

runner = CliRunner()


def _mock_manager(*, local: bool = True) -> MagicMock:
    manager = MagicMock()
    manager.__enter__.return_value = manager
    manager.project = "acme/demo"
    manager.base_name = "demo"
    manager.is_local = local
    manager.local_path = Path("/assets/acme/demo")
    manager.git_repository_url = "https://github.com/acme/demo.git"
    manager.main_script_name = "main.nf"
    manager.description = "Demo pipeline"
    manager.home_page = "https://github.com/acme/demo"
    manager.current_revision_and_name.return_value = "1a2b3c4d5e [master]"
    manager.list_revisions.return_value = ["* master (default)", "  v1.0 [t]"]
    return manager


class TestVersion:
    def test_version_flag(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "pipehub" in result.stdout

    def test_short_version_flag(self) -> None:
        result = runner.invoke(app, ["-V"])
        assert result.exit_code == 0
        assert "pipehub" in result.stdout


class TestListCommand:
    @patch("pipehub.core.manager.list_pipelines")
    def test_lists_installed(self, mock_list: MagicMock) -> None:
        mock_list.return_value = ["acme/demo", "nextflow-io/hello"]
        result = runner.invoke(app, ["list"])
        assert result.exit_code == 0
        assert result.stdout.splitlines() == ["acme/demo", "nextflow-io/hello"]

    @patch("pipehub.core.manager.list_pipelines")
    def test_nothing_installed(self, mock_list: MagicMock) -> None:
        mock_list.return_value = []
        result = runner.invoke(app, ["list"])
        assert result.exit_code == 0
        assert "No pipelines installed." in result.stdout


class TestPullCommand:
    @patch("pipehub.cli.commands._manager")
    def test_download(self, mock_factory: MagicMock) -> None:
        manager = _mock_manager()
        manager.download.return_value = "downloaded from https://github.com/acme/demo.git"
        mock_factory.return_value = manager

        result = runner.invoke(app, ["pull", "acme/demo"])

        assert result.exit_code == 0
        assert "acme/demo - downloaded from https://github.com/acme/demo.git" in result.stdout
        assert "revision: 1a2b3c4d5e [master]" in result.stdout
        manager.download.assert_called_once_with(None)
        manager.update_submodules.assert_called_once()
        manager.__exit__.assert_called_once()

    @patch("pipehub.cli.commands._manager")
    def test_options_forwarded(self, mock_factory: MagicMock) -> None:
        manager = _mock_manager()
        manager.download.return_value = "FAST_FORWARD"
        mock_factory.return_value = manager

        result = runner.invoke(
            app,
            ["pull", "demo", "-r", "dev", "--hub", "gitlab", "--user", "alice"],
            env={"PIPEHUB_PASSWORD": "pw"},
        )

        assert result.exit_code == 0
        mock_factory.assert_called_once_with("demo", hub="gitlab", user="alice", password="pw")
        manager.download.assert_called_once_with("dev")

    @patch("pipehub.cli.commands._manager")
    def test_dirty_tree(self, mock_factory: MagicMock) -> None:
        manager = _mock_manager()
        manager.download.side_effect = DirtyWorkingTreeError(
            "acme/demo", "cannot pull from repository"
        )
        mock_factory.return_value = manager

        result = runner.invoke(app, ["pull", "acme/demo", "--no-color"])

        assert result.exit_code == 1
        assert "Local changes: acme/demo contains uncommitted changes" in result.output
        manager.update_submodules.assert_not_called()

    @patch("pipehub.cli.commands._manager")
    def test_pull_failure_shows_detail(self, mock_factory: MagicMock) -> None:
        manager = _mock_manager()
        manager.download.side_effect = PullError("acme/demo", "fatal: no upstream\nhint: x")
        mock_factory.return_value = manager

        result = runner.invoke(app, ["pull", "acme/demo", "--no-color"])

        assert result.exit_code == 1
        assert "Pull failed: acme/demo" in result.output
        assert "  fatal: no upstream" in result.output

    @patch("pipehub.cli.commands._manager")
    def test_missing_remote(self, mock_factory: MagicMock) -> None:
        manager = _mock_manager(local=False)
        manager.download.side_effect = MissingRemoteProjectError("Cannot find `acme/demo`")
        mock_factory.return_value = manager

        result = runner.invoke(app, ["pull", "acme/demo"])

        assert result.exit_code == 1
        assert "Error: Cannot find `acme/demo`" in result.output

    @patch("pipehub.cli.commands._manager")
    def test_ambiguous_name(self, mock_factory: MagicMock) -> None:
        mock_factory.side_effect = AmbiguousNameError("foo", ["a/foo", "b/foo"])

        result = runner.invoke(app, ["pull", "foo", "--no-color"])

        assert result.exit_code == 1
        assert "Ambiguous pipeline name 'foo'" in result.output
        assert "  - a/foo" in result.output
        assert "  - b/foo" in result.output

    @patch("pipehub.cli.commands._manager")
    def test_unknown_hub(self, mock_factory: MagicMock) -> None:
        mock_factory.side_effect = UnknownProviderError("nope")

        result = runner.invoke(app, ["pull", "acme/demo", "--hub", "nope"])

        assert result.exit_code == 1
        assert "Unknown provider: nope" in result.output

    @patch("pipehub.cli.commands._manager")
    def test_config_error(self, mock_factory: MagicMock) -> None:
        mock_factory.side_effect = ConfigError("bad scm file")

        result = runner.invoke(app, ["pull", "acme/demo"])

        assert result.exit_code == 1
        assert "Configuration error: bad scm file" in result.output

    @patch("pipehub.cli.commands._manager")
    def test_git_error(self, mock_factory: MagicMock) -> None:
        manager = _mock_manager()
        manager.download.side_effect = GitCommandError(["git", "fetch"], 128, "denied")
        mock_factory.return_value = manager

        result = runner.invoke(app, ["pull", "acme/demo"])

        assert result.exit_code == 1
        assert "Git error: Failed to run git fetch (exit 128): denied" in result.output

    @patch("pipehub.cli.commands._manager")
    def test_provider_access_error(self, mock_factory: MagicMock) -> None:
        manager = _mock_manager(local=False)
        manager.download.side_effect = ProviderAccessError(
            "https://api.github.com/repos/acme/demo", "access forbidden"
        )
        mock_factory.return_value = manager

        result = runner.invoke(app, ["pull", "acme/demo", "--no-color"])

        assert result.exit_code == 1
        assert "Provider error: Cannot access https://api.github.com/repos/acme/demo" in (
            result.output
        )
        assert "Traceback" not in result.output

    @patch("pipehub.cli.commands._manager")
    def test_no_color_has_no_ansi(self, mock_factory: MagicMock) -> None:
        mock_factory.side_effect = ConfigError("bad")
        result = runner.invoke(app, ["pull", "acme/demo", "--no-color"])
        assert "\x1b[" not in result.output


class TestCloneCommand:
    @patch("pipehub.cli.commands._manager")
    def test_clone_to_directory(self, mock_factory: MagicMock, tmp_path: Path) -> None:
        manager = _mock_manager(local=False)
        mock_factory.return_value = manager
        target = tmp_path / "copy"

        result = runner.invoke(app, ["clone", "acme/demo", str(target), "-r", "v1.0"])

        assert result.exit_code == 0
        manager.clone.assert_called_once_with(target, "v1.0")
        assert f"acme/demo cloned to: {target}" in result.stdout

    @patch("pipehub.cli.commands._manager")
    def test_defaults_to_base_name(
        self, mock_factory: MagicMock, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        manager = _mock_manager(local=False)
        mock_factory.return_value = manager

        result = runner.invoke(app, ["clone", "acme/demo"])

        assert result.exit_code == 0
        manager.clone.assert_called_once_with(Path("demo"), None)

    @patch("pipehub.cli.commands._manager")
    def test_refuses_non_empty_directory(self, mock_factory: MagicMock, tmp_path: Path) -> None:
        (tmp_path / "existing.txt").write_text("x")
        manager = _mock_manager(local=False)
        mock_factory.return_value = manager

        result = runner.invoke(app, ["clone", "acme/demo", str(tmp_path)])

        assert result.exit_code == 1
        assert "Target directory is not empty" in result.output
        manager.clone.assert_not_called()


class TestInfoCommand:
    @patch("pipehub.cli.commands._manager")
    def test_installed(self, mock_factory: MagicMock) -> None:
        manager = _mock_manager()
        mock_factory.return_value = manager

        result = runner.invoke(app, ["info", "acme/demo", "--no-color"])

        assert result.exit_code == 0
        assert "project name: acme/demo" in result.stdout
        assert "description:  Demo pipeline" in result.stdout
        assert "revisions:" in result.stdout
        assert "* master (default)" in result.stdout
        manager.list_revisions.assert_called_once_with(0)

    @patch("pipehub.cli.commands._manager")
    def test_detail_level(self, mock_factory: MagicMock) -> None:
        manager = _mock_manager()
        mock_factory.return_value = manager

        result = runner.invoke(app, ["info", "acme/demo", "-dd"])

        assert result.exit_code == 0
        manager.list_revisions.assert_called_once_with(2)

    @patch("pipehub.cli.commands._manager")
    def test_not_installed_skips_revisions(self, mock_factory: MagicMock) -> None:
        manager = _mock_manager(local=False)
        manager.description = None
        mock_factory.return_value = manager

        result = runner.invoke(app, ["info", "acme/demo", "--no-color"])

        assert result.exit_code == 0
        assert "revisions:" not in result.stdout
        assert "description" not in result.stdout
        manager.list_revisions.assert_not_called()


class TestCheckoutCommand:
    @patch("pipehub.cli.commands._manager")
    def test_checkout(self, mock_factory: MagicMock) -> None:
        manager = _mock_manager()
        manager.current_revision_and_name.return_value = "0f0f0f0f0f [v1.0]"
        mock_factory.return_value = manager

        result = runner.invoke(app, ["checkout", "acme/demo", "v1.0"])

        assert result.exit_code == 0
        manager.checkout.assert_called_once_with("v1.0")
        assert "acme/demo at revision: 0f0f0f0f0f [v1.0]" in result.stdout

    @patch("pipehub.cli.commands._manager")
    def test_not_installed(self, mock_factory: MagicMock) -> None:
        manager = _mock_manager(local=False)
        mock_factory.return_value = manager

        result = runner.invoke(app, ["checkout", "acme/demo", "v1.0"])

        assert result.exit_code == 1
        assert "Pipeline not installed: acme/demo" in result.output
        manager.checkout.assert_not_called()

    @patch("pipehub.cli.commands._manager")
    def test_pinned(self, mock_factory: MagicMock) -> None:
        manager = _mock_manager()
        manager.checkout.side_effect = RevisionPinnedError("acme/demo", "v1.0")
        mock_factory.return_value = manager

        result = runner.invoke(app, ["checkout", "acme/demo", "master", "--no-color"])

        assert result.exit_code == 1
        assert "currently pinned to revision: v1.0" in result.output


@pytest.fixture(autouse=False)
def _reset_pkg_logger():
    """Reset the pipehub logger level after each logging test."""
    yield
    logging.getLogger("pipehub").setLevel(logging.NOTSET)


@pytest.mark.usefixtures("_reset_pkg_logger")
class TestConfigureLogging:
    """Unit-test ``_configure_logging`` by mocking ``logging.basicConfig``.

    Pytest's logging plugin installs a handler on the root logger, so the
    call arguments are asserted instead of the resulting handler setup.
    """

    @patch("logging.basicConfig")
    def test_verbose_flag_configures_info(self, mock_bc: MagicMock) -> None:
        from pipehub.cli import _LOG_FORMAT, _configure_logging

        _configure_logging(1)
        mock_bc.assert_called_once_with(
            level=logging.WARNING,
            format=_LOG_FORMAT,
            stream=sys.stderr,
            force=True,
        )
        assert logging.getLogger("pipehub").level == logging.INFO

    @patch("logging.basicConfig")
    def test_double_verbose_configures_debug(self, mock_bc: MagicMock) -> None:
        from pipehub.cli import _configure_logging

        _configure_logging(2)
        mock_bc.assert_called_once()
        assert logging.getLogger("pipehub").level == logging.DEBUG

    @patch("logging.basicConfig")
    def test_no_verbose_stays_unconfigured(self, mock_bc: MagicMock) -> None:
        from pipehub.cli import _configure_logging

        _configure_logging(0)
        mock_bc.assert_not_called()

    @patch("logging.basicConfig")
    def test_log_env_var_overrides_verbose(
        self, mock_bc: MagicMock, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        from pipehub.cli import _configure_logging

        monkeypatch.setenv("PIPEHUB_LOG", "WARNING")
        _configure_logging(2)
        mock_bc.assert_called_once()
        assert logging.getLogger("pipehub").level == logging.WARNING

    @patch("logging.basicConfig")
    def test_invalid_log_level_is_reported_and_ignored(
        self,
        mock_bc: MagicMock,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        from pipehub.cli import _configure_logging

        monkeypatch.setenv("PIPEHUB_LOG", "BOGUS")
        _configure_logging(0)
        mock_bc.assert_not_called()
        assert "invalid PIPEHUB_LOG level 'BOGUS' ignored" in capsys.readouterr().err

    @patch("logging.basicConfig")
    def test_invalid_log_level_falls_back_to_verbose_flags(
        self, mock_bc: MagicMock, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        from pipehub.cli import _configure_logging

        monkeypatch.setenv("PIPEHUB_LOG", "notset")
        _configure_logging(2)
        mock_bc.assert_called_once()
        assert logging.getLogger("pipehub").level == logging.DEBUG

    @patch("logging.basicConfig")
    def test_log_env_var_is_case_insensitive(
        self, mock_bc: MagicMock, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        from pipehub.cli import _configure_logging

        monkeypatch.setenv("PIPEHUB_LOG", "debug")
        _configure_logging(0)
        mock_bc.assert_called_once()
        assert logging.getLogger("pipehub").level == logging.DEBUG

    @patch("logging.basicConfig")
    def test_extra_verbose_flags_cap_at_debug(self, mock_bc: MagicMock) -> None:
        from pipehub.cli import _configure_logging

        _configure_logging(5)
        mock_bc.assert_called_once()
        assert logging.getLogger("pipehub").level == logging.DEBUG
