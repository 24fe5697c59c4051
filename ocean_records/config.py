"""Configuration management for ocean-records.

This module provides:
1. Static configuration from YAML files
2. Dot-notation overrides (e.g., from the command line)
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


class ResolverConfig(BaseModel):
    """Attribute resolver settings."""

    reference_pressure: float = Field(
        default=0.0, description="Reference pressure in dbar for potential temperature", ge=0
    )
    default_latitude: float = Field(
        default=45.0,
        description="Latitude used for depth when a record has none",
        ge=-90,
        le=90,
    )
    validate_aliases: bool = Field(
        default=True, description="Reject records whose aliases point at unknown names"
    )

    def derivation_parameters(self) -> dict[str, Any]:
        """Map settings onto derivation parameter names."""
        return {
            "referencePressure": self.reference_pressure,
            "defaultLatitude": self.default_latitude,
        }


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(default="INFO", description="Root log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log record format",
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate level is a standard logging level name."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    def apply(self) -> None:
        """Configure the root logger."""
        logging.basicConfig(level=getattr(logging, self.level), format=self.format)


class AppConfig(BaseModel):
    """Main application configuration."""

    resolver: ResolverConfig = Field(default_factory=lambda: ResolverConfig())
    logging: LoggingConfig = Field(default_factory=lambda: LoggingConfig())
    aliases: dict[str, dict[str, str]] = Field(
        default_factory=dict,
        description="Extra alias tables keyed by source name: original -> canonical",
    )

    @classmethod
    def load(cls, path: str | Path) -> "AppConfig":
        """Read settings from a YAML file.

        Sections missing from the file keep their defaults.

        Raises:
            FileNotFoundError: If there is no file at ``path``
            ValueError: If the file is empty or its top level is not a mapping
        """
        config_path = Path(path)
        if not config_path.is_file():
            raise FileNotFoundError(f"No ocean-records settings at {config_path}")

        with open(config_path) as f:
            settings = yaml.safe_load(f)

        if not isinstance(settings, dict) or not settings:
            raise ValueError(f"Settings file {config_path} must hold a non-empty mapping")

        logger.debug(f"Loaded settings from {config_path}")
        return cls(**settings)

    def save(self, path: str | Path) -> None:
        """Write these settings as YAML, creating parent directories as needed."""
        config_path = Path(path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    def to_dict(self) -> dict[str, Any]:
        """Plain nested dict of all sections."""
        return self.model_dump()


class SettingOverride(BaseModel):
    """A single dot-notation configuration change.

    Example:
        {
            "setting_key": "resolver.reference_pressure",
            "new_value": 1000.0
        }
    """

    setting_key: str = Field(
        ..., description="Dot-notation path to setting (e.g., 'resolver.reference_pressure')"
    )
    new_value: Any = Field(..., description="New value for the setting")

    @classmethod
    def parse(cls, text: str) -> "SettingOverride":
        """Parse ``key=value``; the value is read as YAML so numbers and booleans keep their type.

        Raises:
            ValueError: If there is no '='
        """
        key, sep, value = text.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Expected key=value, got: {text}")
        return cls(setting_key=key.strip(), new_value=yaml.safe_load(value))

    def apply_to_config(self, config: AppConfig) -> AppConfig:
        """Apply this change to an AppConfig instance.

        Args:
            config: The configuration to update

        Returns:
            Updated configuration (new instance)

        Raises:
            ValueError: If setting_key is invalid
        """
        parts = self.setting_key.split(".")

        if len(parts) < 2:
            raise ValueError(f"Invalid setting_key: {self.setting_key}")

        config_dict = config.to_dict()

        target = config_dict
        for part in parts[:-1]:
            if part not in target or not isinstance(target[part], dict):
                raise ValueError(f"Invalid setting path: {self.setting_key}")
            target = target[part]

        final_key = parts[-1]
        # Alias tables are open-ended, everything else must already exist
        if final_key not in target and parts[0] != "aliases":
            raise ValueError(f"Invalid setting key: {self.setting_key}")

        target[final_key] = self.new_value

        return AppConfig(**config_dict)


def load_config_from_env(env_var: str = "OCEAN_RECORDS_CONFIG") -> AppConfig:
    """Settings from the file named by ``env_var``, or the defaults when it is unset.

    Raises:
        FileNotFoundError: If the variable names a file that does not exist
    """
    config_path = os.getenv(env_var)
    if not config_path:
        logger.debug(f"{env_var} not set, using default settings")
        return AppConfig()
    return AppConfig.load(config_path)
