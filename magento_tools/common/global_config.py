"""
================================================================================
Global Configuration for Magento Test Tools
================================================================================

Centralized configuration and logging setup shared by the WebDriver
framework, the Web API client and the credential store.

Features:
    - Singleton pattern for global configuration
    - YAML-based configuration loading
    - Environment variable overrides (explicit mapping)
    - Centralized Loguru logging configuration

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from loguru import logger


DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "config.yaml"

# Environment variable -> dot-notation config key
ENV_MAPPING: Dict[str, str] = {
    "MAGENTO_BASE_URL": "magento.base_url",
    "MAGENTO_BACKEND_NAME": "magento.backend_name",
    "MAGENTO_ADMIN_USERNAME": "magento.admin_username",
    "MAGENTO_ADMIN_PASSWORD": "magento.admin_password",
    "MAGENTO_CLI_COMMAND_PATH": "magento.cli_command_path",
    "MAGENTO_CLI_COMMAND_PARAMETER": "magento.cli_command_parameter",
    "BROWSER": "webdriver.browser",
    "WEBDRIVER_ENGINE": "webdriver.engine",
    "PAGELOAD_TIMEOUT": "webdriver.pageload_timeout",
    "HEADLESS": "webdriver.headless",
    "LOG_LEVEL": "logging.level",
    "CREDENTIALS_FILE": "credentials.file",
}


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""
    pass


class GlobalConfig:
    """
    Singleton class to manage global configuration.

    Loads settings from a YAML file and environment variables.
    Environment variables take precedence over file-based configuration.
    """
    _instance: Optional["GlobalConfig"] = None
    _config: Dict[str, Any] = {}
    _initialized: bool = False

    def __new__(cls, config_path: Optional[Path] = None) -> "GlobalConfig":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, config_path: Optional[Path] = None):
        if self._initialized:
            return
        self._config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self._config = {}
        self._load_configs()
        self._initialized = True

    def _load_configs(self) -> None:
        """
        Loads configuration from the YAML file and environment variables.
        """
        if self._config_path.exists():
            try:
                with open(self._config_path, "r", encoding="utf-8") as f:
                    self._config.update(yaml.safe_load(f) or {})
                logger.debug(f"Loaded configuration from {self._config_path}")
            except yaml.YAMLError as e:
                raise ConfigurationError(
                    f"Invalid YAML in configuration file {self._config_path}: {e}"
                ) from e
        else:
            logger.warning(
                f"Configuration file not found: {self._config_path}. "
                f"Using defaults and environment variables only."
            )

        for env_key, config_key in ENV_MAPPING.items():
            if env_key in os.environ:
                self._set_nested(config_key, os.environ[env_key])

    def _set_nested(self, key: str, value: Any) -> None:
        """
        Sets a nested configuration value using dot notation.
        """
        keys = key.split(".")
        current = self._config
        for k in keys[:-1]:
            if not isinstance(current.get(k), dict):
                current[k] = {}
            current = current[k]
        current[keys[-1]] = value

    def get(self, key: str, default: Any = None) -> Any:
        """
        Retrieves a configuration value using dot notation.

        Args:
            key: Configuration key (e.g., "webdriver.pageload_timeout")
            default: Default value if key is not found

        Returns:
            Configuration value or default
        """
        value = self._config
        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """Sets a configuration value at runtime."""
        self._set_nested(key, value)

    def get_section(self, section: str) -> Dict[str, Any]:
        """Returns a copy of a top-level section, or an empty dict."""
        value = self._config.get(section, {})
        return dict(value) if isinstance(value, dict) else {}

    def get_all(self) -> Dict[str, Any]:
        """Returns the entire configuration dictionary."""
        return self._config.copy()

    @classmethod
    def reset(cls) -> None:
        """
        Drop the singleton so the next access reloads from disk.

        Used by tests that point the loader at a temporary file.
        """
        cls._instance = None
        cls._config = {}
        cls._initialized = False


def get_config(key: str, default: Any = None) -> Any:
    """
    Convenience function to get a configuration value.

    Example:
        timeout = get_config("webdriver.pageload_timeout", 30)
    """
    return GlobalConfig().get(key, default)


def set_config(key: str, value: Any) -> None:
    """Convenience function to set a configuration value."""
    GlobalConfig().set(key, value)


# ============================================================
# Logging Setup
# ============================================================

_logger_initialized = False


def init_logger(
    level: Optional[str] = None,
    format_string: Optional[str] = None,
    log_file: Optional[str] = None,
) -> None:
    """
    Initializes the loguru logger with standard settings.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to config value.
        format_string: Log format string. Uses default if not provided.
        log_file: Optional file path to write logs to.
    """
    global _logger_initialized

    if _logger_initialized:
        return

    logger.remove()

    level = (level or get_config("logging.level", "INFO")).upper()
    format_string = format_string or get_config(
        "logging.format",
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        "<level>{message}</level>"
    )

    logger.add(
        sys.stderr,
        format=format_string,
        level=level,
        colorize=True,
    )

    log_file = log_file or get_config("logging.file")
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=format_string,
            level=level,
            rotation=get_config("logging.rotation", "10 MB"),
            retention=get_config("logging.retention", "7 days"),
        )

    _logger_initialized = True
    logger.debug(f"Logger initialized with level: {level}")


def ensure_directory(path: Path) -> Path:
    """Ensures a directory exists, creating it if necessary."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path
