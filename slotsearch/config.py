"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import Literal, Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class BookingPolicy(BaseModel):
    """Booking rules applied around the slot search."""
    slot_interval_minutes: int = 30
    min_lead_minutes: int = 0
    booking_horizon_days: Optional[int] = None
    default_duration_minutes: int = 30
    alternative_scan_days: int = 14

    @field_validator("slot_interval_minutes")
    @classmethod
    def validate_interval(cls, value: int) -> int:
        """Ensure the slot step is at least five minutes."""
        if value < 5:
            raise ValueError(f"slot_interval_minutes must be at least 5, got {value}")
        return value

    @field_validator("default_duration_minutes", "alternative_scan_days")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("value must be greater than zero")
        return value

    @field_validator("min_lead_minutes")
    @classmethod
    def validate_lead(cls, value: int) -> int:
        if value < 0:
            raise ValueError("min_lead_minutes cannot be negative")
        return value

    @field_validator("booking_horizon_days")
    @classmethod
    def validate_horizon(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value <= 0:
            raise ValueError("booking_horizon_days must be greater than zero when set")
        return value


class StoreConfig(BaseModel):
    """Where business data is read from."""
    kind: Literal["snapshot", "http"] = "snapshot"
    snapshot_path: Optional[Path] = None
    base_url: Optional[str] = None
    api_token: Optional[str] = None
    timeout_seconds: float = 10.0

    @model_validator(mode="after")
    def validate_kind_settings(self) -> "StoreConfig":
        """Ensure the selected store has what it needs."""
        if self.kind == "http" and not self.base_url:
            raise ValueError("store.base_url is required when store.kind is 'http'")
        return self


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Asia/Manila"
    policy: BookingPolicy = Field(default_factory=BookingPolicy)
    store: StoreConfig = Field(default_factory=StoreConfig)
    log_level: str = "WARNING"

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA identifier."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: '{value}'") from exc
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: '{value}'")
        return level

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)

        # relative snapshot paths are relative to the config file
        snapshot = config.store.snapshot_path
        if snapshot is not None and not snapshot.is_absolute():
            config.store.snapshot_path = (config_path.parent / snapshot).resolve()

        return config


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
