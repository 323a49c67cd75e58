"""Configuration management with Pydantic and YAML support."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONFIG_PATH = Path.home() / ".config/focustools/config.yaml"


class TimerSettings(BaseModel):
    """Focus timer durations and notification preferences."""

    work_minutes: int = Field(default=25, ge=1, le=60, description="Work phase length")
    break_minutes: int = Field(default=5, ge=1, le=30, description="Break phase length")
    sound_enabled: bool = Field(default=True, description="Play a cue when a phase ends")
    complete_on_zero_adjust: bool = Field(
        default=False,
        description="Treat a -30s adjustment that reaches zero as phase completion",
    )

    @property
    def work_seconds(self) -> int:
        return self.work_minutes * 60

    @property
    def break_seconds(self) -> int:
        return self.break_minutes * 60


class WebConfig(BaseModel):
    """REST API server configuration."""

    host: str = Field(default="127.0.0.1", description="Bind to localhost only")
    port: int = Field(default=3001, ge=1024, le=65535)
    api_prefix: str = Field(default="/api", pattern="^(/[A-Za-z0-9_-]+)*$")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"]
    )


class Config(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FOCUSTOOLS_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Paths
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".local/share/focustools")
    log_dir: Path = Field(default_factory=lambda: Path.home() / ".local/state/focustools")
    config_dir: Path = Field(default_factory=lambda: Path.home() / ".config/focustools")

    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")

    # Sub-configurations
    timer: TimerSettings = Field(default_factory=TimerSettings)
    web: WebConfig = Field(default_factory=WebConfig)

    @property
    def db_path(self) -> Path:
        """Path to SQLite database."""
        return self.data_dir / "focustools.db"

    @property
    def config_file(self) -> Path:
        """Path to YAML config file."""
        return self.config_dir / "config.yaml"

    def ensure_directories(self) -> None:
        """Create all required directories."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.config_dir.mkdir(parents=True, exist_ok=True)

        os.chmod(self.data_dir, 0o700)

    @classmethod
    def load(cls, config_path: Path | None = None) -> Config:
        """Load configuration from a YAML file, environment variables, and defaults.

        Values present in the YAML file win over environment variables,
        which win over defaults.
        """
        config_path = config_path or DEFAULT_CONFIG_PATH

        yaml_config: dict[str, Any] = {}
        if config_path.exists():
            with open(config_path) as f:
                yaml_config = yaml.safe_load(f) or {}

        config = cls(**yaml_config)
        if config_path != DEFAULT_CONFIG_PATH and "config_dir" not in yaml_config:
            config.config_dir = config_path.parent
        return config

    def save(self, config_path: Path | None = None) -> Path:
        """Save current configuration to YAML file."""
        config_path = config_path or self.config_file
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = self.model_dump(exclude_none=True)

        # Convert Path objects to strings for YAML
        for key in ["data_dir", "log_dir", "config_dir"]:
            if key in data:
                data[key] = str(data[key])

        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

        os.chmod(config_path, 0o600)
        return config_path


@lru_cache
def get_config() -> Config:
    """Get cached configuration instance."""
    return Config.load()
