"""pmflow configuration management."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

VALID_MODES = {"waterfall", "agile", "hybrid"}


@dataclass
class Config:
    """pmflow configuration."""

    workspace_path: Path = field(default_factory=lambda: Path.home() / ".pmflow")
    log_level: str = "INFO"
    wal_mode: bool = True
    default_mode: str = "waterfall"
    default_actor: str = "system"

    # Reject a second Accountable role on the same entity
    raci_validate_single_accountable: bool = True

    # Fill blank requirement codes as <PREFIX>-NNN
    requirements_auto_generate_code: bool = True

    # Oldest task history rows are dropped past this count; 0 keeps everything
    max_history_entries: int = 0

    create_demo_project: bool = True

    @classmethod
    def load(cls, workspace_path: Path | None = None) -> Config:
        """Load config from YAML file, env vars, then defaults."""
        config = cls()

        if workspace_path:
            config.workspace_path = workspace_path

        env_path = os.environ.get("PMFLOW_WORKSPACE")
        if env_path and not workspace_path:
            config.workspace_path = Path(env_path)

        env_log = os.environ.get("PMFLOW_LOG_LEVEL")
        if env_log:
            config.log_level = env_log

        config_file = config.workspace_path / "config.yaml"
        if config_file.exists():
            with open(config_file) as f:
                data = yaml.safe_load(f) or {}
            for key, value in data.items():
                if hasattr(config, key):
                    expected_type = type(getattr(config, key))
                    if expected_type is Path or isinstance(getattr(config, key), Path):
                        setattr(config, key, Path(value))
                    else:
                        setattr(config, key, expected_type(value))

        if config.default_mode not in VALID_MODES:
            raise ValueError(
                f"Invalid default_mode: {config.default_mode}. Must be one of {VALID_MODES}"
            )
        return config

    @property
    def db_path(self) -> Path:
        return self.workspace_path / "pmflow.db"

    def save(self) -> None:
        """Save current config to YAML."""
        self.workspace_path.mkdir(parents=True, exist_ok=True)
        config_file = self.workspace_path / "config.yaml"
        data = {
            "log_level": self.log_level,
            "wal_mode": self.wal_mode,
            "default_mode": self.default_mode,
            "default_actor": self.default_actor,
            "raci_validate_single_accountable": self.raci_validate_single_accountable,
            "requirements_auto_generate_code": self.requirements_auto_generate_code,
            "max_history_entries": self.max_history_entries,
            "create_demo_project": self.create_demo_project,
        }
        with open(config_file, "w") as f:
            yaml.dump(data, f, default_flow_style=False)
