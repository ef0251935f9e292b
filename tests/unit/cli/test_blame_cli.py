"""Unit tests for the vcs-blame command line interface."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, Mock, patch

import pytest
from click.testing import CliRunner

from vcs_blame.cli import cli

SHA = "89e6c98d92887913cadf06b2adb97f26cde4849b"


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    return tmp_path / ".vcs-blame" / "config.json"


@pytest.fixture
def source_file(tmp_path: Path) -> Path:
    file_path = tmp_path / "app.py"
    file_path.write_text("print('hello')\n")
    return file_path


@pytest.fixture
def mock_service():
    service = Mock()
    service.initialize = AsyncMock()
    service.get_blame_text = AsyncMock(return_value="  Fix parser • 2 days ago • You")
    service.get_sha = AsyncMock(return_value=SHA)
    service.get_commit_url = AsyncMock(return_value=f"https://github.com/acme/widgets/commit/{SHA}")
    service.get_file_url = AsyncMock(return_value="https://github.com/acme/widgets/blob/main/app.py")
    service.get_file_url_for_selection = AsyncMock(
        return_value=f"https://github.com/acme/widgets/blob/{SHA}/app.py#L1"
    )
    with patch("vcs_blame.cli.BlameService", return_value=service):
        yield service


class TestRemoteUrlCommand:
    """remote-url needs no repository."""

    def test_canonicalizes_remote(self):
        result = CliRunner().invoke(cli, ["remote-url", "git@github.com:acme/widgets.git"])

        assert result.exit_code == 0
        assert result.output.strip() == "https://github.com/acme/widgets"

    def test_commit_url(self):
        result = CliRunner().invoke(
            cli, ["remote-url", "git@bitbucket.org:acme/widgets.git", "--commit", SHA]
        )

        assert result.exit_code == 0
        assert result.output.strip() == f"https://bitbucket.org/acme/widgets/commits/{SHA}"


class TestConfigCommands:
    """init and config."""

    def test_init_writes_config(self, config_path: Path):
        result = CliRunner().invoke(
            cli, ["--config", str(config_path), "init", "--vcs", "jj", "--date-format", "%r"]
        )

        assert result.exit_code == 0
        data = json.loads(config_path.read_text())
        assert data["vcs"] == "jj"
        assert data["date_format"] == "%r"

    def test_init_refuses_to_overwrite(self, config_path: Path):
        runner = CliRunner()
        runner.invoke(cli, ["--config", str(config_path), "init"])

        result = runner.invoke(cli, ["--config", str(config_path), "init"])
        assert result.exit_code == 1

        result = runner.invoke(cli, ["--config", str(config_path), "init", "--force"])
        assert result.exit_code == 0

    def test_set_values(self, config_path: Path):
        result = CliRunner().invoke(
            cli,
            [
                "--config",
                str(config_path),
                "config",
                "--set",
                "max_commit_summary_length=40",
                "--set",
                'ignored_filetypes=["markdown"]',
                "--set",
                "date_format=%Y-%m-%d",
            ],
        )

        assert result.exit_code == 0
        data = json.loads(config_path.read_text())
        assert data["max_commit_summary_length"] == 40
        assert data["ignored_filetypes"] == ["markdown"]
        assert data["date_format"] == "%Y-%m-%d"

    def test_unknown_setting_rejected(self, config_path: Path):
        result = CliRunner().invoke(
            cli, ["--config", str(config_path), "config", "--set", "colour=red"]
        )

        assert result.exit_code == 1
        assert not config_path.exists()

    def test_invalid_value_rejected(self, config_path: Path):
        result = CliRunner().invoke(
            cli, ["--config", str(config_path), "config", "--set", "vcs=svn"]
        )

        assert result.exit_code == 1

    def test_show(self, config_path: Path):
        result = CliRunner().invoke(cli, ["--config", str(config_path), "config", "--show"])

        assert result.exit_code == 0
        assert "\"git\"" in result.output

    def test_broken_config_file_fails_cleanly(self, config_path: Path, source_file: Path):
        config_path.parent.mkdir(parents=True)
        config_path.write_text("{not json")

        result = CliRunner().invoke(
            cli, ["--config", str(config_path), "line", str(source_file), "1"]
        )

        assert result.exit_code == 1


class TestBlameCommands:
    """Commands that query blame through BlameService."""

    def test_line(self, config_path, source_file, mock_service):
        result = CliRunner().invoke(
            cli, ["--config", str(config_path), "line", str(source_file), "1"]
        )

        assert result.exit_code == 0
        assert result.output.strip() == "Fix parser • 2 days ago • You"
        mock_service.get_blame_text.assert_awaited_once_with(str(source_file), 1, None)

    def test_line_without_blame_prints_nothing(self, config_path, source_file, mock_service):
        mock_service.get_blame_text.return_value = None

        result = CliRunner().invoke(
            cli, ["--config", str(config_path), "line", str(source_file), "1"]
        )

        assert result.exit_code == 0
        assert result.output == ""

    def test_sha(self, config_path, source_file, mock_service):
        result = CliRunner().invoke(
            cli, ["--config", str(config_path), "sha", str(source_file), "1", "--end", "3"]
        )

        assert result.exit_code == 0
        assert result.output.strip() == SHA
        mock_service.get_sha.assert_awaited_once_with(str(source_file), 1, 3)

    def test_sha_of_uncommitted_line_fails(self, config_path, source_file, mock_service):
        mock_service.get_sha.return_value = "0" * 40

        result = CliRunner().invoke(
            cli, ["--config", str(config_path), "sha", str(source_file), "1"]
        )

        assert result.exit_code == 1

    def test_commit_url_missing(self, config_path, source_file, mock_service):
        mock_service.get_commit_url.return_value = None

        result = CliRunner().invoke(
            cli, ["--config", str(config_path), "commit-url", str(source_file), "1"]
        )

        assert result.exit_code == 1

    def test_file_url_for_selection(self, config_path, source_file, mock_service):
        result = CliRunner().invoke(
            cli, ["--config", str(config_path), "file-url", str(source_file), "--line1", "1"]
        )

        assert result.exit_code == 0
        assert result.output.strip().endswith("/app.py#L1")
        mock_service.get_file_url_for_selection.assert_awaited_once_with(
            str(source_file), 1, None
        )

    def test_file_url_with_ref(self, config_path, source_file, mock_service):
        result = CliRunner().invoke(
            cli, ["--config", str(config_path), "file-url", str(source_file), "--sha", "main"]
        )

        assert result.exit_code == 0
        mock_service.get_file_url.assert_awaited_once_with(str(source_file), "main", None, None)

    def test_line2_requires_line1(self, config_path, source_file, mock_service):
        result = CliRunner().invoke(
            cli, ["--config", str(config_path), "file-url", str(source_file), "--line2", "4"]
        )

        assert result.exit_code == 2
