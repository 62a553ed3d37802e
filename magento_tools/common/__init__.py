"""
================================================================================
Magento Tools Common Utilities
================================================================================

Shared configuration management and logging setup.

Exports:
    - GlobalConfig: Singleton configuration manager
    - get_config / set_config: Dot-notation configuration access
    - init_logger: Initialize loguru with standard settings
    - ConfigurationError: Raised for invalid configuration

Usage:
    from magento_tools.common import get_config, init_logger

    init_logger()
    timeout = get_config("webdriver.pageload_timeout", 30)

================================================================================
"""

from .global_config import (
    ConfigurationError,
    GlobalConfig,
    ensure_directory,
    get_config,
    init_logger,
    set_config,
)

__all__ = [
    "ConfigurationError",
    "GlobalConfig",
    "ensure_directory",
    "get_config",
    "init_logger",
    "set_config",
]
