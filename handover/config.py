"""Configuration management for Handover."""

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field
from ruamel.yaml import YAML

DEFAULT_CONFIG_PATH = Path.home() / ".config/handover/config.yaml"


class ReplicationConfig(BaseModel):
    """Configuration for category-based replication."""

    default_categories: List[str] = Field(default=["all"], description="Categories used when none are given")
    backup_folder: str = Field(default="Backup", description="Folder created on the target drive")
    log_folder: str = Field(default="Logs", description="Folder for run logs, relative to the backup folder")
    workers: int = Field(default=4, ge=1, description="Concurrent copy workers")
    copy_timeout_seconds: float = Field(default=300.0, gt=0, description="Per-file copy time limit")
    chunk_size_kb: int = Field(default=1024, ge=4, description="Read size while copying")
    overwrite: bool = Field(default=True, description="Overwrite files already present at the destination")
    verify_integrity: bool = Field(default=False, description="Compare SHA-256 of source and copy")


class RecoveryConfig(BaseModel):
    """Configuration for snapshot recovery."""

    volume: str = Field(default="C:", description="Volume whose shadow copies are searched")
    snapshot_policy: str = Field(default="most-recent", description="Snapshot selection policy")
    recovery_folder: str = Field(default="Recovered", description="Folder for recovered files")
    tool_executable: str = Field(default="winfr", description="Recovery utility looked up on PATH")
    tool_package_id: str = Field(default="9N26S50LN705", description="winget id of the recovery utility")
    install_timeout_seconds: int = Field(default=600, description="Time limit for the utility install")


class DiagnosticsConfig(BaseModel):
    """Configuration for disk-health probes."""

    probe_timeout_seconds: int = Field(default=120, description="Time limit for each probe command")
    low_space_percent: float = Field(default=10.0, description="Free-space warning threshold")


class HandoverConfig(BaseModel):
    """Main configuration for Handover."""

    replication: ReplicationConfig = Field(default_factory=ReplicationConfig)
    recovery: RecoveryConfig = Field(default_factory=RecoveryConfig)
    diagnostics: DiagnosticsConfig = Field(default_factory=DiagnosticsConfig)

    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Optional[Path] = Field(default=None, description="Optional detailed application log")

    class Config:
        """Pydantic configuration."""

        validate_assignment = True


def load_config(config_path: Optional[Path] = None) -> HandoverConfig:
    """Load configuration from file or create default."""

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if config_path.exists():
        yaml = YAML(typ="safe")
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.load(f) or {}
        return HandoverConfig(**data)
    else:
        config = HandoverConfig()
        save_config(config, config_path)
        return config


def save_config(config: HandoverConfig, config_path: Optional[Path] = None) -> None:
    """Save configuration to file."""

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    config_path.parent.mkdir(parents=True, exist_ok=True)

    yaml = YAML()
    yaml.default_flow_style = False

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(config.model_dump(mode="json"), f)


def get_config() -> HandoverConfig:
    """Get the global configuration instance."""

    if not hasattr(get_config, "_config"):
        get_config._config = load_config()

    return get_config._config


def set_config(config: HandoverConfig) -> None:
    """Replace the global configuration instance."""
    get_config._config = config
