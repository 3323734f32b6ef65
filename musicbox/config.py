"""
Configuration models and loader.
"""

import yaml
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from musicbox.exceptions import ConfigError


class ServerSettings(BaseModel):
    """Server, storage and acquisition settings."""

    music_dir: Path = Path("music")
    img_dir: Path = Path("img")
    temp_dir: Path = Path("temp")
    public_dir: Path = Path("public")
    host: str = "0.0.0.0"
    port: int = 1809
    max_retries: int = Field(default=3, ge=1)
    retry_delay: float = Field(default=0.0, ge=0)  # Base backoff in seconds, 0 disables
    audio_format: str = "mp3"
    ytdlp_command: List[str] = Field(default_factory=lambda: ["yt-dlp"])
    history_size: int = Field(default=10, ge=1)
    temp_cleanup_interval: int = Field(default=3600, ge=1)  # Seconds
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_file: Optional[Path] = None

    @field_validator("ytdlp_command", mode="before")
    @classmethod
    def split_command(cls, value):
        """Allow the command to be given as a single string."""
        if isinstance(value, str):
            return value.split()
        return value

    @field_validator("ytdlp_command")
    @classmethod
    def command_not_empty(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("ytdlp_command must not be empty")
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, value):
        if isinstance(value, str):
            return value.upper()
        return value

    def ensure_directories(self) -> None:
        """Create the store directories if they do not exist."""
        for directory in (self.music_dir, self.img_dir, self.temp_dir, self.public_dir):
            directory.mkdir(parents=True, exist_ok=True)


class MusicBoxConfig(BaseModel):
    """Main configuration model."""

    server: ServerSettings = Field(default_factory=ServerSettings)

    @classmethod
    def from_yaml(cls, path: str) -> "MusicBoxConfig":
        """
        Load and validate configuration from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            MusicBoxConfig instance

        Raises:
            ConfigError: If file not found or invalid
        """
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Error parsing YAML file: {e}") from e

        # An empty file means all defaults
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError("Configuration root must be a mapping")

        try:
            return cls(**data)
        except Exception as e:
            raise ConfigError(f"Invalid configuration: {e}") from e


def load_config(config_path: Optional[str] = None) -> MusicBoxConfig:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to configuration file, or None for defaults

    Returns:
        MusicBoxConfig instance
    """
    if config_path is None:
        return MusicBoxConfig()
    return MusicBoxConfig.from_yaml(config_path)
