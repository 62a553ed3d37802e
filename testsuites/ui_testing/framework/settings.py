"""
================================================================================
WebDriver Settings
================================================================================

Typed, validated view over the ``magento`` and ``webdriver`` configuration
sections. Invalid values fail fast with ConfigurationError instead of
surfacing later as confusing wait behavior.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from magento_tools.common import ConfigurationError, GlobalConfig

from .page_readiness import DEFAULT_POLL_INTERVAL


SUPPORTED_ENGINES = ("selenium", "playwright")


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes", "on")


def _as_positive_int(name: str, value: Any) -> int:
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be a positive integer, got {value!r}") from e
    if number <= 0:
        raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
    return number


def normalize_base_url(url: str) -> str:
    """Ensure the base URL ends with exactly one slash."""
    url = (url or "").strip()
    if not url:
        raise ConfigurationError("magento.base_url is required")
    return url.rstrip("/") + "/"


@dataclass(frozen=True)
class WebDriverSettings:
    """
    Attributes:
        base_url: Storefront base URL, always ending with '/'
        backend_name: Admin area path segment
        engine: 'selenium' or 'playwright'
        browser: Browser name ('chrome', 'firefox', 'chromium', 'webkit')
        headless: Run without a visible window
        pageload_timeout: Default readiness timeout in seconds
        poll_interval: Seconds between predicate evaluations
        window_size: "<width>,<height>"
        output_dir: Directory for screenshots and failure artifacts
    """
    base_url: str
    backend_name: str = "admin"
    engine: str = "selenium"
    browser: str = "chrome"
    headless: bool = True
    pageload_timeout: int = 30
    poll_interval: float = DEFAULT_POLL_INTERVAL
    window_size: str = "1920,1080"
    output_dir: Path = Path("reports/webdriver")

    @classmethod
    def from_config(cls, config: Optional[GlobalConfig] = None) -> "WebDriverSettings":
        """
        Build settings from configuration, validating every field.

        Raises:
            ConfigurationError: For missing or invalid values
        """
        config = config or GlobalConfig()

        engine = str(config.get("webdriver.engine", "selenium")).strip().lower()
        if engine not in SUPPORTED_ENGINES:
            raise ConfigurationError(
                f"webdriver.engine must be one of {SUPPORTED_ENGINES}, got {engine!r}"
            )

        try:
            poll_interval = float(config.get("webdriver.poll_interval", DEFAULT_POLL_INTERVAL))
        except (TypeError, ValueError) as e:
            raise ConfigurationError("webdriver.poll_interval must be a number") from e
        if poll_interval <= 0:
            raise ConfigurationError("webdriver.poll_interval must be positive")

        if config.get("webdriver.pageload_timeout") is None:
            raise ConfigurationError("webdriver.pageload_timeout is required")

        return cls(
            base_url=normalize_base_url(config.get("magento.base_url", "")),
            backend_name=str(config.get("magento.backend_name", "admin")).strip("/"),
            engine=engine,
            browser=str(config.get("webdriver.browser", "chrome")).lower(),
            headless=_as_bool(config.get("webdriver.headless", True)),
            pageload_timeout=_as_positive_int(
                "webdriver.pageload_timeout", config.get("webdriver.pageload_timeout")
            ),
            poll_interval=poll_interval,
            window_size=str(config.get("webdriver.window_size", "1920,1080")),
            output_dir=Path(config.get("webdriver.output_dir", "reports/webdriver")),
        )

    @property
    def admin_url(self) -> str:
        return f"{self.base_url}{self.backend_name}/"

    @property
    def window_dimensions(self) -> tuple:
        width, _, height = self.window_size.partition(",")
        return int(width), int(height)


__all__ = [
    "SUPPORTED_ENGINES",
    "WebDriverSettings",
    "normalize_base_url",
]
