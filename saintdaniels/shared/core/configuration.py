"""
Configuration Management System for SaintDaniels

This module provides a centralized configuration system that supports a 4-tier
precedence hierarchy: environment → project → user → packaged defaults.
"""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from saintdaniels.shared.config import SETTINGS_DIR
from saintdaniels.shared.domain.models import Reward

logger = logging.getLogger(__name__)


class ValidationLevel(Enum):
    """Configuration validation strictness levels"""
    STRICT = "strict"      # Fail fast on validation errors
    LENIENT = "lenient"    # Log warnings, use defaults


class SessionConfig(BaseModel):
    """Session defaults applied at sign-in"""
    model_config = ConfigDict(extra='forbid')

    starter_points: int = Field(default=2500, ge=0, description="Balance given to a freshly signed-in user")


class AuthConfig(BaseModel):
    """Auth provider retry policy"""
    model_config = ConfigDict(extra='forbid')

    sign_in_max_retries: int = Field(default=2, ge=0, le=10, description="Retries on transient provider errors")
    retry_delay: float = Field(default=0.5, ge=0.0, le=60.0, description="Initial retry delay (seconds), doubles per attempt")


class RewardsConfig(BaseModel):
    """Static rewards catalog"""
    model_config = ConfigDict(extra='forbid')

    catalog: List[Reward] = Field(default_factory=list, description="Rewards seeded into the ledger")


class LoggingConfig(BaseModel):
    """Logging Configuration"""
    model_config = ConfigDict(extra='forbid')

    level: str = Field(default="INFO", description="Root / file log level")
    console_level: str = Field(default="WARNING", description="Console handler log level")
    file: Optional[str] = Field(default=None, description="Rotating log file path; console only when unset")


class SystemConfig(BaseModel):
    """Complete system configuration"""
    model_config = ConfigDict(extra='forbid')

    session: SessionConfig = Field(default_factory=SessionConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    rewards: RewardsConfig = Field(default_factory=RewardsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Metadata
    schema_version: int = Field(default=1, description="Configuration schema version")


# Environment variable -> (section, key, type)
ENV_OVERRIDES: Dict[str, tuple] = {
    'SAINTDANIELS_STARTER_POINTS': ('session', 'starter_points', int),
    'SAINTDANIELS_SIGN_IN_MAX_RETRIES': ('auth', 'sign_in_max_retries', int),
    'SAINTDANIELS_RETRY_DELAY': ('auth', 'retry_delay', float),
    'LOG_LEVEL': ('logging', 'level', str),
    'SAINTDANIELS_LOG_FILE': ('logging', 'file', str),
}


class ConfigManager:
    """Centralized configuration manager with 4-tier precedence hierarchy.

    Packaged defaults ship inside the package; ``user.yaml`` and
    ``project.yaml`` are read from ``config_dir``.
    """

    def __init__(self, config_dir: Optional[Path] = None, settings_dir: Optional[Path] = None):
        self.config_dir = Path(config_dir) if config_dir else Path.cwd() / ".saintdaniels"
        self.settings_dir = Path(settings_dir) if settings_dir else SETTINGS_DIR
        self._system_config: Optional[SystemConfig] = None
        self._user_config: Optional[Dict[str, Any]] = None
        self._project_config: Optional[Dict[str, Any]] = None

    def _load_yaml_file(self, file_path: Path) -> Dict[str, Any]:
        """Load YAML configuration file"""
        if not file_path.exists():
            return {}

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                return yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.warning(f"Failed to load {file_path}: {e}")
            return {}

    def _save_yaml_file(self, file_path: Path, data: Dict[str, Any]) -> bool:
        """Save configuration to YAML file"""
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(file_path, 'w', encoding='utf-8') as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, indent=2)
            return True
        except OSError as e:
            logger.error(f"Failed to save {file_path}: {e}")
            return False

    def _load_system_defaults(self) -> SystemConfig:
        """Load packaged default configuration"""
        if self._system_config is None:
            defaults_dict = self._load_yaml_file(self.settings_dir / "defaults.yaml")

            try:
                self._system_config = SystemConfig(**defaults_dict)
            except ValidationError as e:
                logger.warning(f"System defaults validation failed: {e}")
                self._system_config = SystemConfig()

        return self._system_config

    def _load_user_config(self) -> Dict[str, Any]:
        if self._user_config is None:
            self._user_config = self._load_yaml_file(self.config_dir / "user.yaml")
        return self._user_config

    def _load_project_config(self) -> Dict[str, Any]:
        if self._project_config is None:
            self._project_config = self._load_yaml_file(self.config_dir / "project.yaml")
        return self._project_config

    def _merge_configs(self) -> Dict[str, Any]:
        """Merge configurations with precedence: env → project → user → system"""
        merged = self._load_system_defaults().model_dump(mode='json')

        self._deep_merge(merged, self._load_user_config())
        self._deep_merge(merged, self._load_project_config())
        self._deep_merge(merged, self._get_env_overrides())

        return merged

    def _deep_merge(self, base: Dict[str, Any], updates: Dict[str, Any]) -> None:
        """Deep merge configuration dictionaries"""
        for key, value in updates.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _get_env_overrides(self) -> Dict[str, Any]:
        """Extract configuration overrides from environment variables"""
        overrides: Dict[str, Any] = {}
        for env_key, (section, config_key, cast) in ENV_OVERRIDES.items():
            value = os.getenv(env_key)
            if value is None:
                continue
            try:
                converted = cast(value)
            except ValueError:
                logger.warning(f"Ignoring {env_key}={value!r}: expected {cast.__name__}")
                continue
            overrides.setdefault(section, {})[config_key] = converted

        return overrides

    def get_config(self, validation_level: ValidationLevel = ValidationLevel.STRICT) -> SystemConfig:
        """Get merged configuration with validation"""
        merged_config = self._merge_configs()

        try:
            return SystemConfig(**merged_config)
        except ValidationError as e:
            if validation_level == ValidationLevel.STRICT:
                raise ValueError(f"Configuration validation failed: {e}") from e
            logger.warning(f"Configuration validation failed, using packaged defaults: {e}")
            return self._load_system_defaults()

    def save_project_config(self, config_updates: Dict[str, Any]) -> bool:
        """Save project-specific configuration updates"""
        project_path = self.config_dir / "project.yaml"

        existing_config = self._load_yaml_file(project_path)
        self._deep_merge(existing_config, config_updates)

        success = self._save_yaml_file(project_path, existing_config)
        if success:
            # Force reload on next get_config()
            self._project_config = None

        return success

    def reload_config(self) -> None:
        """Clear cached configurations and reload from files"""
        self._system_config = None
        self._user_config = None
        self._project_config = None


def get_config(
    config_dir: Optional[Path] = None,
    validation_level: ValidationLevel = ValidationLevel.STRICT,
) -> SystemConfig:
    """Get current system configuration"""
    return ConfigManager(config_dir).get_config(validation_level)
