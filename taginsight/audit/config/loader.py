"""Engine configuration with YAML support and environment overrides.

Configuration is resolved in layers: built-in defaults, the YAML file, the
file's ``environments.<name>`` section, ``TAG_INSIGHT_*`` environment
variables, then explicit overrides.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..rules.checks.formats import KNOWN_CURRENCY_CODES


logger = logging.getLogger(__name__)


ALLOWED_ENVIRONMENTS = ('development', 'staging', 'production', 'test')
ALLOWED_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


class ConfigurationError(Exception):
    """Configuration-related errors."""
    pass


class EngineConfig(BaseModel):
    """Settings for the audit engine."""

    environment: str = Field(
        default="production",
        description="Environment name"
    )

    duplicate_window_ms: int = Field(
        default=500,
        ge=1,
        le=60000,
        description="Window within which identical PageView events count as duplicates"
    )

    enabled_vendors: List[str] = Field(
        default_factory=list,
        description="Vendor keys to audit (empty means all)"
    )

    known_currencies: List[str] = Field(
        default_factory=lambda: list(KNOWN_CURRENCY_CODES),
        description="Currency codes considered common"
    )

    max_issue_preview: int = Field(
        default=3,
        ge=0,
        le=20,
        description="Number of short issue strings listed per event"
    )

    log_level: str = Field(
        default="INFO",
        description="Log level for the CLI"
    )

    @field_validator('environment')
    @classmethod
    def validate_environment(cls, v):
        """Validate environment name."""
        if v not in ALLOWED_ENVIRONMENTS:
            raise ValueError(f"Environment must be one of: {list(ALLOWED_ENVIRONMENTS)}")
        return v

    @field_validator('enabled_vendors')
    @classmethod
    def normalize_vendors(cls, v):
        """Vendor keys are lowercase; duplicates are dropped."""
        normalized: List[str] = []
        for key in v:
            key = key.strip().lower()
            if key and key not in normalized:
                normalized.append(key)
        return normalized

    @field_validator('known_currencies')
    @classmethod
    def normalize_currencies(cls, v):
        """Currency codes are stored uppercase."""
        return [code.strip().upper() for code in v if code.strip()]

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level name."""
        level = v.upper()
        if level not in ALLOWED_LOG_LEVELS:
            raise ValueError(f"Log level must be one of: {list(ALLOWED_LOG_LEVELS)}")
        return level

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


class ConfigManager:
    """Manages engine configuration loading and validation."""

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to configuration file
        """
        self.config_path = Path(config_path) if config_path else None
        self._config: Optional[EngineConfig] = None

    def load_config(self, config_path: Optional[Union[str, Path]] = None,
                    environment: Optional[str] = None,
                    overrides: Optional[Dict[str, Any]] = None) -> EngineConfig:
        """Load configuration.

        Args:
            config_path: Optional override for config file path
            environment: Environment whose overrides apply; defaults to
                TAG_INSIGHT_ENVIRONMENT, then the file's own setting
            overrides: Additional configuration overrides to apply last

        Returns:
            Loaded and validated configuration

        Raises:
            ConfigurationError: If the file cannot be read or the result is invalid
        """
        if config_path:
            self.config_path = Path(config_path)

        config_data: Dict[str, Any] = {}
        if self.config_path:
            config_data = self._read_file(self.config_path)

        env_config = self._load_environment_variables()

        environment = (
            environment
            or env_config.get('environment')
            or config_data.get('environment')
            or 'production'
        )

        environments = config_data.pop('environments', None) or {}
        if not isinstance(environments, dict):
            raise ConfigurationError("'environments' must be a mapping of environment name to overrides")
        overlay = environments.get(environment) if isinstance(environment, str) else None
        if overlay is not None and not isinstance(overlay, dict):
            raise ConfigurationError(f"Overrides for environment '{environment}' must be a mapping")
        if overlay:
            config_data = _deep_merge(config_data, overlay)
            logger.info(f"Applied environment overrides for: {environment}")

        config_data = _deep_merge(config_data, env_config)
        if overrides:
            config_data = _deep_merge(config_data, overrides)
            logger.debug("Applied additional configuration overrides")

        config_data['environment'] = environment

        try:
            self._config = EngineConfig(**config_data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

        return self._config

    def get_config(self) -> EngineConfig:
        """Get current configuration, loading defaults if needed."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def validate_config(self, config_data: Dict[str, Any]) -> List[str]:
        """Validate configuration data without loading.

        Args:
            config_data: Configuration data to validate

        Returns:
            List of validation errors
        """
        try:
            EngineConfig(**config_data)
        except ValidationError as e:
            return [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        return []

    def create_default_config(self, output_path: Union[str, Path]) -> None:
        """Write the default configuration as YAML.

        Args:
            output_path: Path where to write the default config
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w') as f:
            yaml.safe_dump(EngineConfig().model_dump(), f, default_flow_style=False, sort_keys=False)

    def _read_file(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")

        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse YAML config: {e}")
        except OSError as e:
            raise ConfigurationError(f"Failed to read config file: {e}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError("Config file must contain a YAML dictionary")
        return data

    def _load_environment_variables(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        env_config: Dict[str, Any] = {}

        if env_env := os.getenv('TAG_INSIGHT_ENVIRONMENT'):
            env_config['environment'] = env_env

        if window := os.getenv('TAG_INSIGHT_DUPLICATE_WINDOW_MS'):
            try:
                env_config['duplicate_window_ms'] = int(window)
            except ValueError:
                raise ConfigurationError(f"TAG_INSIGHT_DUPLICATE_WINDOW_MS must be an integer, got {window!r}")

        if vendors := os.getenv('TAG_INSIGHT_ENABLED_VENDORS'):
            env_config['enabled_vendors'] = [v for v in vendors.split(',') if v.strip()]

        if log_level := os.getenv('TAG_INSIGHT_LOG_LEVEL'):
            env_config['log_level'] = log_level

        return env_config


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence.

    Args:
        base: Base configuration dictionary.
        override: Override values to merge in.

    Returns:
        Merged configuration dictionary.
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


# Global configuration manager instance
config_manager = ConfigManager()


def get_config() -> EngineConfig:
    """Get current engine configuration."""
    return config_manager.get_config()


def load_config(config_path: Optional[Union[str, Path]] = None,
                environment: Optional[str] = None) -> EngineConfig:
    """Load configuration from the specified path."""
    return ConfigManager().load_config(config_path, environment=environment)
