"""
================================================================================
UI Testing Pytest Configuration
================================================================================

Fixtures for live-browser tests against a Magento instance.

Key Features:
- One browser session per test session (Selenium or Playwright)
- MagentoWebDriver bound to the current test
- Screenshot and page source capture on failure

Live tests need a running Magento and a browser, so they only run when
UI_E2E=1 is set.

================================================================================
"""

import os
from typing import Generator

import pytest

from magento_tools.common import init_logger
from testsuites.ui_testing.framework import (
    BrowserDriver,
    BrowserManager,
    MagentoWebDriver,
    WebDriverSettings,
)


def pytest_collection_modifyitems(config, items):
    """Skip live browser tests unless explicitly enabled."""
    if os.getenv("UI_E2E") == "1":
        return
    skip_live = pytest.mark.skip(reason="Live UI tests disabled (set UI_E2E=1)")
    for item in items:
        if "ui_testing" in str(item.fspath):
            item.add_marker(skip_live)


# ================================================================================
# Browser Fixtures
# ================================================================================

@pytest.fixture(scope="session")
def settings() -> WebDriverSettings:
    """Validated WebDriver settings from config/config.yaml and the environment."""
    init_logger()
    return WebDriverSettings.from_config()


@pytest.fixture(scope="session")
def browser(settings: WebDriverSettings) -> Generator[BrowserDriver, None, None]:
    """
    Session-scoped browser session.

    Sessions are not reset between tests, matching how Magento admin
    flows reuse the logged-in state.
    """
    with BrowserManager(settings) as driver:
        yield driver


@pytest.fixture
def magento(
    request: pytest.FixtureRequest,
    browser: BrowserDriver,
    settings: WebDriverSettings,
) -> Generator[MagentoWebDriver, None, None]:
    """MagentoWebDriver bound to the current test."""
    magento = MagentoWebDriver(browser, settings)
    magento.before_test(request.node.nodeid)
    magento.clean_js_error()
    yield magento
    magento.close()


# ================================================================================
# Test Lifecycle Hooks
# ================================================================================

@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """
    Capture failure artifacts when a UI test fails.

    Saves a screenshot and the page source next to each other and attaches
    both to the Allure report.
    """
    outcome = yield
    report = outcome.get_result()

    if report.when == "call" and report.failed:
        magento = getattr(item, "funcargs", {}).get("magento")
        if magento is not None:
            try:
                magento.failed(item.name, call.excinfo.value if call.excinfo else report.longrepr)
            except Exception as e:
                # Log but don't fail if artifact capture fails
                from loguru import logger
                logger.warning(f"Failed to capture failure artifacts: {e}")
