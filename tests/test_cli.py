"""Tests for the command line interface."""

from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from handover.cli import cli


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("replication:\n  workers: 2\n")
    return path


@pytest.fixture
def runner():
    return CliRunner()


class TestCli:
    """Test CLI commands end to end."""

    def test_categories(self, runner, config_file):
        result = runner.invoke(cli, ["--config", str(config_file), "categories"])

        assert result.exit_code == 0
        assert "new-office" in result.output
        assert "docx" in result.output

    def test_backup_run(self, runner, config_file, source_tree, tmp_path):
        """Selected categories land under the backup folder with their logs."""
        target = tmp_path / "usb"

        result = runner.invoke(cli, [
            "--config", str(config_file),
            "backup", "run", str(source_tree), str(target),
            "-C", "new-office", "-C", "pdf",
            "--mirror-from-source",
        ])

        assert result.exit_code == 0, result.output
        assert (target / "Backup" / "report.docx").exists()
        assert (target / "Backup" / "Docs" / "scan.pdf").exists()
        assert not (target / "Backup" / "video.mp4").exists()
        assert len(list((target / "Backup" / "Logs").glob("*-Backup-Activity.txt"))) == 1
        assert len(list((target / "Backup" / "Logs").glob("*-Backup-Error.txt"))) == 1

    def test_backup_missing_source(self, runner, config_file, tmp_path):
        result = runner.invoke(cli, [
            "--config", str(config_file),
            "backup", "run", str(tmp_path / "missing"), str(tmp_path / "usb"),
        ])

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_unknown_category(self, runner, config_file, source_tree, tmp_path):
        result = runner.invoke(cli, [
            "--config", str(config_file),
            "backup", "run", str(source_tree), str(tmp_path / "usb"), "-C", "spreadsheets",
        ])

        assert result.exit_code != 0

    def test_invalid_workers(self, runner, config_file, source_tree, tmp_path):
        result = runner.invoke(cli, [
            "--config", str(config_file),
            "backup", "run", str(source_tree), str(tmp_path / "usb"), "--workers", "0",
        ])

        assert result.exit_code == 1
        assert "workers must be at least 1" in result.output

    def test_invalid_snapshot_policy(self, runner, tmp_path):
        """A bad policy in the configuration is reported without a traceback."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("recovery:\n  snapshot_policy: newest\n")

        result = runner.invoke(cli, [
            "--config", str(config_file), "recover", "file", r"Users\demo\a.txt", str(tmp_path / "usb"),
        ])

        assert result.exit_code == 1
        assert "Unknown snapshot policy" in result.output
        assert not (tmp_path / "usb").exists()

    @patch("handover.util.commands.subprocess.run")
    def test_drives_with_malformed_output(self, mock_run, runner, config_file):
        mock_run.return_value = MagicMock(stdout="WARNING: something\n[{")

        result = runner.invoke(cli, ["--config", str(config_file), "drives"])

        assert result.exit_code == 1
        assert "Could not list drives" in result.output
