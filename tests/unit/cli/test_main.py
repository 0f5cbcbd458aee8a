"""Unit tests for main CLI entry point (main.py).

Tests the Typer CLI application using CliRunner against a real temporary
directory and a YAML catalog.
"""

import logging
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from src.cli.main import VERSION, _configure_logging, app
from src.cli.models import ExitCode
from src.vault.config_loader import ConfigLoader
from src.vault.errors import PartialFailureError
from src.vault.models import VaultConfig
from tests.fixtures.vault_fixtures import write_layout


runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    """Config with an absolute catalog path and write access granted."""
    path = tmp_path / "config.yaml"
    ConfigLoader.save(
        str(path),
        VaultConfig(catalog_path=str(tmp_path / "state" / "catalog.yaml"), write_access="always"),
    )
    return str(path)


@pytest.fixture
def notes_dir(tmp_path):
    root = tmp_path / "notes"
    root.mkdir()
    write_layout(root, {"index.md": "# Index\n", "docs/guide.md": "# Guide\n", "logo.png": b"png"})
    return root


def invoke(config_file, *args, **kwargs):
    return runner.invoke(app, ["--config", config_file, "--no-color", *args], **kwargs)


@pytest.fixture
def opened(config_file, notes_dir):
    result = invoke(config_file, "open", str(notes_dir))
    assert result.exit_code == ExitCode.SUCCESS, result.output
    return notes_dir


class TestConfigureLogging:
    """Test cases for _configure_logging function."""

    @pytest.mark.parametrize("verbosity,level", [
        (0, logging.WARNING),
        (1, logging.INFO),
        (2, logging.DEBUG),
        (5, logging.DEBUG),
    ])
    def test_levels(self, verbosity, level):
        with patch('logging.getLogger') as mock_get_logger:
            mock_logger = MagicMock()
            mock_get_logger.return_value = mock_logger

            _configure_logging(verbosity)

            mock_get_logger.assert_called_with("src")
            mock_logger.setLevel.assert_called_with(level)

    def test_logdir_creates_log_file(self, tmp_path):
        logdir = tmp_path / "logs"

        _configure_logging(1, str(logdir))
        try:
            files = list(logdir.glob("notevault_*.log"))
            assert len(files) == 1
        finally:
            for handler in logging.getLogger("src").handlers:
                handler.close()
            logging.getLogger("src").handlers.clear()


class TestGlobalOptions:
    """Test cases for app-level options."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert VERSION in result.output

    def test_no_arguments_shows_help(self):
        result = runner.invoke(app, [])

        assert "Usage" in result.output

    def test_invalid_config(self, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("on_read_error: retry\n")

        result = invoke(str(config), "sync")

        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert "on_read_error" in result.output


class TestOpenAndSync:
    """Test cases for open and sync commands."""

    def test_open_indexes_folder(self, config_file, notes_dir):
        result = invoke(config_file, "open", str(notes_dir))

        assert result.exit_code == ExitCode.SUCCESS
        assert "Notes: 2" in result.output
        assert "Resources: 1" in result.output

    def test_open_missing_folder(self, config_file, tmp_path):
        result = invoke(config_file, "open", str(tmp_path / "missing"))

        assert result.exit_code == ExitCode.NOT_FOUND

    def test_sync_without_open_root(self, config_file):
        result = invoke(config_file, "sync")

        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert "notevault open" in result.output.replace("\n", " ")

    def test_sync_picks_up_new_files(self, config_file, opened):
        (opened / "new.md").write_text("# New")

        result = invoke(config_file, "sync")

        assert result.exit_code == ExitCode.SUCCESS
        assert "Notes: 3" in result.output

    def test_tree(self, config_file, opened):
        result = invoke(config_file, "tree")

        assert result.exit_code == ExitCode.SUCCESS
        assert "docs/" in result.output
        assert "guide" in result.output
        assert "logo.png" in result.output


class TestNoteCommands:
    """Test cases for new-note, mkdir, cat and write."""

    def test_new_note(self, config_file, opened):
        result = invoke(config_file, "new-note", "ideas/first", "--content", "# First")

        assert result.exit_code == ExitCode.SUCCESS
        assert (opened / "ideas" / "first.md").read_text() == "# First"

    def test_new_note_conflict(self, config_file, opened):
        result = invoke(config_file, "new-note", "index")

        assert result.exit_code == ExitCode.CONFLICT

    def test_mkdir(self, config_file, opened):
        result = invoke(config_file, "mkdir", "a/b")

        assert result.exit_code == ExitCode.SUCCESS
        assert (opened / "a" / "b").is_dir()

    def test_cat(self, config_file, opened):
        result = invoke(config_file, "cat", "docs/guide.md")

        assert result.exit_code == ExitCode.SUCCESS
        assert result.output == "# Guide\n"

    def test_cat_unknown_note(self, config_file, opened):
        result = invoke(config_file, "cat", "nope.md")

        assert result.exit_code == ExitCode.NOT_FOUND

    def test_write_from_stdin(self, config_file, opened):
        result = invoke(config_file, "write", "index.md", input="# Changed\n")

        assert result.exit_code == ExitCode.SUCCESS
        assert (opened / "index.md").read_text() == "# Changed\n"

    def test_write_from_file(self, config_file, opened, tmp_path):
        source = tmp_path / "draft.md"
        source.write_text("# Draft")

        result = invoke(config_file, "write", "index.md", "--from", str(source))

        assert result.exit_code == ExitCode.SUCCESS
        assert (opened / "index.md").read_text() == "# Draft"

    def test_write_from_missing_file(self, config_file, opened, tmp_path):
        result = invoke(config_file, "write", "index.md", "--from", str(tmp_path / "nope"))

        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert (opened / "index.md").read_text() == "# Index\n"


class TestMoveAndDelete:
    """Test cases for mv and rm."""

    def test_mv(self, config_file, opened):
        result = invoke(config_file, "mv", "docs/guide.md", "archive/guide.md")

        assert result.exit_code == ExitCode.SUCCESS
        assert (opened / "archive" / "guide.md").exists()
        assert not (opened / "docs" / "guide.md").exists()

    def test_mv_onto_existing(self, config_file, opened):
        result = invoke(config_file, "mv", "docs/guide.md", "index.md")

        assert result.exit_code == ExitCode.CONFLICT

    def test_mv_partial_failure(self, config_file, opened):
        failure = PartialFailureError("docs", "archive")
        with patch('src.cli.main.Workspace.rename', side_effect=failure):
            result = invoke(config_file, "mv", "docs", "archive")

        assert result.exit_code == ExitCode.PARTIAL_FAILURE
        assert "original: docs" in result.output

    def test_rm_with_yes(self, config_file, opened):
        result = invoke(config_file, "rm", "docs", "--yes")

        assert result.exit_code == ExitCode.SUCCESS
        assert not (opened / "docs").exists()

    def test_rm_confirmed(self, config_file, opened):
        result = invoke(config_file, "rm", "index.md", input="y\n")

        assert result.exit_code == ExitCode.SUCCESS
        assert not (opened / "index.md").exists()

    def test_rm_folder_asks_about_contents(self, config_file, opened):
        result = invoke(config_file, "rm", "docs", input="n\n")

        assert result.exit_code == ExitCode.SUCCESS
        assert "everything inside it" in result.output
        assert "cancelled" in result.output
        assert (opened / "docs" / "guide.md").exists()

    def test_rm_missing(self, config_file, opened):
        result = invoke(config_file, "rm", "ghost.md", "--yes")

        assert result.exit_code == ExitCode.NOT_FOUND


class TestWriteAccess:
    """write_access modes seen from the command line."""

    def _config(self, tmp_path, mode):
        path = tmp_path / f"config-{mode}.yaml"
        ConfigLoader.save(
            str(path),
            VaultConfig(catalog_path=str(tmp_path / "state" / "catalog.yaml"), write_access=mode),
        )
        return str(path)

    def test_never_denies_writes(self, tmp_path, notes_dir):
        config = self._config(tmp_path, "never")
        invoke(config, "open", str(notes_dir))

        result = invoke(config, "mkdir", "blocked")

        assert result.exit_code == ExitCode.ACCESS_DENIED
        assert not (notes_dir / "blocked").exists()

    def test_prompt_declined(self, tmp_path, notes_dir):
        config = self._config(tmp_path, "prompt")
        invoke(config, "open", str(notes_dir))

        result = invoke(config, "mkdir", "blocked", input="n\n")

        assert result.exit_code == ExitCode.ACCESS_DENIED
        assert "Allow notevault to modify files" in result.output
        assert not (notes_dir / "blocked").exists()

    def test_prompt_accepted(self, tmp_path, notes_dir):
        config = self._config(tmp_path, "prompt")
        invoke(config, "open", str(notes_dir))

        result = invoke(config, "mkdir", "allowed", input="y\n")

        assert result.exit_code == ExitCode.SUCCESS
        assert (notes_dir / "allowed").is_dir()
