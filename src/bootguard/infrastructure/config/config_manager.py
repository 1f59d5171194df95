"""Configuration manager for loading and validating .bootguard.yml"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from bootguard.domain.config import AppConfig, ConnectionConfig

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".bootguard.yml"


class ConfigurationError(Exception):
    """Configuration validation error."""

    pass


class ConfigManager:
    """Manages configuration from .bootguard.yml and environment variables

    Loads configuration with validation using Pydantic models. Configuration priority:
    1. Default values (defined in Pydantic models)
    2. .bootguard.yml file (searched from current directory)
    3. Environment variables (MONGO_*, BOOTGUARD_*)
    4. CLI arguments (handled by CLI layer)
    """

    DEFAULT_CONFIG = {
        "environment": "development",
        "datastore": "mongo",
        "mongo": {
            "uri": "mongodb://localhost:27017",
            "db_name": "app",
            "max_retries": 5,
            "retry_delay_ms": 5000,
            "connect_timeout_ms": 30000,
        },
    }

    # env var -> (section, key); None section means top level
    ENV_OVERRIDES = {
        "MONGO_URI": ("mongo", "uri"),
        "MONGO_DB_NAME": ("mongo", "db_name"),
        "BOOTGUARD_MAX_RETRIES": ("mongo", "max_retries"),
        "BOOTGUARD_RETRY_DELAY_MS": ("mongo", "retry_delay_ms"),
        "BOOTGUARD_CONNECT_TIMEOUT_MS": ("mongo", "connect_timeout_ms"),
        "BOOTGUARD_ENV": (None, "environment"),
        "BOOTGUARD_DATASTORE": (None, "datastore"),
    }

    def __init__(self, config_path: Optional[Path] = None, overrides: Optional[Dict[str, Any]] = None):
        """Initialize config manager

        Args:
            config_path: Path to .bootguard.yml (searches from current dir if None)
            overrides: Highest-priority values (e.g. from CLI options), same shape as the file

        Raises:
            ConfigurationError: If configuration validation fails
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)
        self.config_path = config_path or self._find_config_file()
        self._overrides = overrides or {}
        try:
            self.config: AppConfig = self._load_config()
        except ValidationError as e:
            errors = []
            for error in e.errors():
                field = ".".join(str(x) for x in error["loc"])
                msg = error["msg"]
                errors.append(f"  - {field}: {msg}")
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(errors)
            ) from e

    def _find_config_file(self) -> Optional[Path]:
        """Find .bootguard.yml file starting from current directory

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            config_file = parent / CONFIG_FILE_NAME
            if config_file.exists():
                logger.info(f"Found config file: {config_file}")
                return config_file
        logger.debug(f"No {CONFIG_FILE_NAME} found, using defaults")
        return None

    def _load_config(self) -> AppConfig:
        """Load configuration from file and validate with Pydantic

        Returns:
            Validated AppConfig instance

        Raises:
            ValidationError: If configuration is invalid
            ConfigurationError: If the config file cannot be parsed
        """
        config_dict = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    file_config = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigurationError(f"Failed to load config from {self.config_path}: {e}") from e
            if not isinstance(file_config, dict):
                raise ConfigurationError(f"Config file {self.config_path} must contain a mapping")
            config_dict = self._merge_config(config_dict, file_config)
            logger.info(f"Loaded configuration from {self.config_path}")

        config_dict = self._apply_env_overrides(config_dict)
        config_dict = self._merge_config(config_dict, self._overrides)

        return AppConfig(**config_dict)

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries

        Args:
            base: Base configuration
            override: Override configuration

        Returns:
            Merged configuration
        """
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides

        Values are passed through as strings; Pydantic coerces numeric fields.
        """
        for env_name, (section, key) in self.ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if not value:
                continue
            if section is None:
                target = config
            else:
                # an empty "mongo:" key in the file loads as None
                if config.get(section) is None:
                    config[section] = {}
                target = config[section]
                if not isinstance(target, dict):
                    raise ConfigurationError(f"'{section}' must be a mapping")
            target[key] = value
            logger.debug(f"Applied {env_name} override")
        return config

    def get_app_config(self) -> AppConfig:
        return self.config

    def get_connection_config(self) -> ConnectionConfig:
        """Get data store connection configuration

        Returns:
            Connection configuration model
        """
        return self.config.mongo

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key (supports dot notation)

        Args:
            key: Configuration key (e.g., "mongo.uri" or "mongo")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key.split(".")
        value = self.config.model_dump()
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value
