"""
================================================================================
UI Testing Framework
================================================================================

Magento browser automation with page readiness waits.

Components:
    - drivers: Selenium / Playwright adapters behind one BrowserDriver surface
    - page_readiness: Document, AJAX and loading mask waits
    - magento_webdriver: Magento-aware actions and failure artifacts
    - browser_manager: Browser session lifecycle
    - settings: Validated WebDriver settings

Author: Automation Team
License: MIT
================================================================================
"""

from .browser_manager import BrowserManager
from .drivers import BrowserDriver, PlaywrightDriver, SeleniumDriver
from .exceptions import (
    AmbiguousElementMatch,
    BrowserDriverError,
    EvaluationFailure,
    PredicateNeverSatisfied,
    ReadinessError,
)
from .magento_webdriver import MagentoWebDriver
from .money import MoneyFormat, format_money, parse_float
from .page_readiness import (
    LOADING_MASK_LOCATORS,
    JsPredicatePoller,
    PageStabilityWaiter,
    StabilityReport,
    WaitOutcome,
)
from .settings import WebDriverSettings

__all__ = [
    "AmbiguousElementMatch",
    "BrowserDriver",
    "BrowserDriverError",
    "BrowserManager",
    "EvaluationFailure",
    "JsPredicatePoller",
    "LOADING_MASK_LOCATORS",
    "MagentoWebDriver",
    "MoneyFormat",
    "PageStabilityWaiter",
    "PlaywrightDriver",
    "PredicateNeverSatisfied",
    "ReadinessError",
    "SeleniumDriver",
    "StabilityReport",
    "WaitOutcome",
    "WebDriverSettings",
    "format_money",
    "parse_float",
]
