"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from handover.config import HandoverConfig, load_config, save_config


class TestConfig:
    """Test YAML configuration handling."""

    def test_defaults(self):
        config = HandoverConfig()

        assert config.replication.default_categories == ["all"]
        assert config.replication.workers == 4
        assert config.recovery.snapshot_policy == "most-recent"
        assert config.recovery.tool_package_id == "9N26S50LN705"

    def test_missing_file_is_created(self, tmp_path):
        """Loading a missing file writes the defaults to it."""
        path = tmp_path / "nested" / "config.yaml"

        config = load_config(path)

        assert path.exists()
        assert config == HandoverConfig()

    def test_round_trip(self, tmp_path):
        path = tmp_path / "config.yaml"
        config = HandoverConfig()
        config.replication.workers = 12
        config.recovery.volume = "D:"
        config.log_file = tmp_path / "handover.log"

        save_config(config, path)
        loaded = load_config(path)

        assert loaded.replication.workers == 12
        assert loaded.recovery.volume == "D:"
        assert loaded.log_file == tmp_path / "handover.log"

    def test_partial_yaml(self, tmp_path):
        """Sections left out of the file keep their defaults."""
        path = tmp_path / "config.yaml"
        path.write_text("replication:\n  default_categories: [pdf, image]\n  overwrite: false\n")

        config = load_config(path)

        assert config.replication.default_categories == ["pdf", "image"]
        assert config.replication.overwrite is False
        assert config.replication.backup_folder == "Backup"
        assert config.diagnostics.low_space_percent == 10.0

    def test_invalid_workers(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("replication:\n  workers: 0\n")

        with pytest.raises(ValidationError):
            load_config(path)
