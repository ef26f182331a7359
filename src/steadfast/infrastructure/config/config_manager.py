"""Configuration manager for loading and validating .steadfast.yml"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from steadfast.domain.config import AppConfig, LLMConfig, RetryConfig
from steadfast.domain.errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".steadfast.yml"


class ConfigManager:
    """Manages configuration from .steadfast.yml and environment variables

    Configuration priority:
    1. Default values (defined in Pydantic models)
    2. .steadfast.yml file (searched from current directory upwards)
    3. Environment variables (STEADFAST_*)
    4. CLI arguments (handled by CLI layer)
    """

    # (env var, section, key)
    ENV_OVERRIDES = (
        ("STEADFAST_LLM_PROVIDER", "llm", "provider"),
        ("STEADFAST_LLM_MODEL", "llm", "model"),
        ("STEADFAST_MAX_ATTEMPTS", "retry", "max_attempts"),
        ("STEADFAST_TIMEOUT", "retry", "timeout"),
    )

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config manager

        Args:
            config_path: Path to .steadfast.yml (searches from current dir if None)

        Raises:
            ConfigurationError: If configuration validation fails
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)
        self.config_path = config_path or self._find_config_file()
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
        """Find .steadfast.yml starting from current directory

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

        Raises:
            ConfigurationError: If the file cannot be read or parsed
            ValidationError: If configuration is invalid
        """
        config_dict: Dict[str, Any] = {"llm": {}, "retry": {}}

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
        return AppConfig(**config_dict)

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries"""
        result = copy.deepcopy(base)
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides"""
        for env_name, section, key in self.ENV_OVERRIDES:
            value = os.getenv(env_name)
            if value:
                if not isinstance(config.get(section), dict):
                    config[section] = {}
                config[section][key] = value
        return config

    def get_llm_config(self) -> LLMConfig:
        """Get LLM provider configuration"""
        return self.config.llm

    def get_retry_config(self) -> RetryConfig:
        """Get retry configuration"""
        return self.config.retry
