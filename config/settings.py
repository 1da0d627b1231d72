"""Configuration settings and data models."""

import os
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator


class SystemConfig(BaseModel):
    """System-wide configuration."""

    db_path: str = Field(default="tournaments.db", description="SQLite database file")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    host: str = Field(default="0.0.0.0", description="Web server bind address")
    port: int = Field(default=8000, description="Web server port")

    @field_validator("port")
    @classmethod
    def validate_port(cls, v):
        if not 0 < v < 65536:
            raise ValueError("port must be between 1 and 65535")
        return v


class RatingsConfig(BaseModel):
    """Player rating configuration."""

    enabled: bool = Field(default=True, description="Update player profiles after matches")
    win_delta: int = Field(default=25, description="Rating gained by each winning player")
    loss_delta: int = Field(default=-15, description="Rating change for each losing player")
    default_rating: int = Field(default=1000, description="Rating of a new profile")

    @field_validator("win_delta")
    @classmethod
    def validate_win_delta(cls, v):
        if v < 0:
            raise ValueError("win_delta must not be negative")
        return v

    @field_validator("loss_delta")
    @classmethod
    def validate_loss_delta(cls, v):
        if v > 0:
            raise ValueError("loss_delta must not be positive")
        return v


class NotificationsConfig(BaseModel):
    """Discord notification configuration."""

    enabled: bool = Field(default=False, description="Post tournament events to Discord")
    discord_webhook_url: Optional[str] = Field(
        default=None,
        description="Discord webhook URL (can also be set via DISCORD_WEBHOOK_URL env var)",
    )
    timeout: float = Field(default=10.0, description="Webhook request timeout in seconds")
    footer: str = Field(default="Rivals Arena", description="Embed footer text")

    @field_validator("discord_webhook_url")
    @classmethod
    def validate_webhook_url(cls, v):
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("discord_webhook_url must be an http(s) URL")
        return v

    def resolved_webhook_url(self) -> Optional[str]:
        """Webhook URL with the environment variable taking precedence."""
        return os.getenv("DISCORD_WEBHOOK_URL") or self.discord_webhook_url


class AppConfig(BaseModel):
    """Complete application configuration."""

    system: SystemConfig = Field(default_factory=SystemConfig)
    ratings: RatingsConfig = Field(default_factory=RatingsConfig)
    notifications: NotificationsConfig = Field(default_factory=NotificationsConfig)

    @classmethod
    def load_from_file(cls, config_path: Path) -> "AppConfig":
        """Load configuration from JSON file."""
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        import json

        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a JSON object")

        # Validate required sections
        required_sections = ["system"]
        missing_sections = [
            section for section in required_sections if section not in data
        ]
        if missing_sections:
            raise ValueError(f"Missing required config sections: {missing_sections}")

        return cls(**data)

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to YAML file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump(
                self.model_dump(exclude_unset=True),
                f,
                default_flow_style=False,
                indent=2,
            )


def get_default_config(config_path: Path = Path("arena_config.json")) -> AppConfig:
    """Load configuration from arena_config.json, creating it if needed."""
    if not config_path.exists():
        import json

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(get_template_config().model_dump(), f, indent=2)
    return AppConfig.load_from_file(config_path)


def get_template_config() -> AppConfig:
    """Get template configuration for config file generation."""
    return AppConfig(
        system=SystemConfig(
            db_path="tournaments.db",
            log_level="INFO",
            host="0.0.0.0",
            port=8000,
        ),
        ratings=RatingsConfig(
            enabled=True,
            win_delta=25,
            loss_delta=-15,
            default_rating=1000,
        ),
        notifications=NotificationsConfig(
            enabled=False,
            discord_webhook_url=None,  # Or set DISCORD_WEBHOOK_URL
            timeout=10.0,
            footer="Rivals Arena",
        ),
    )
