"""
================================================================================
Browser Manager
================================================================================

Browser session lifecycle for UI automation.

Features:
    - Selenium (Chrome / Firefox) or Playwright (Chromium / Firefox / WebKit)
    - Headless mode and window size from settings
    - Session wrapped in the matching BrowserDriver adapter

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from loguru import logger
from playwright.sync_api import Browser, Playwright, sync_playwright
from selenium import webdriver
from selenium.common.exceptions import WebDriverException
from selenium.webdriver.chrome.options import Options as ChromeOptions
from selenium.webdriver.firefox.options import Options as FirefoxOptions

from .drivers import BrowserDriver, PlaywrightDriver, SeleniumDriver
from .exceptions import BrowserDriverError
from .settings import WebDriverSettings


class BrowserManager:
    """
    Owns exactly one browser session.

    Usage:
        with BrowserManager(settings) as driver:
            driver.open(settings.admin_url)

        # Or explicitly
        manager = BrowserManager(settings)
        driver = manager.start()
        ...
        manager.close()
    """

    # Default Chrome arguments
    CHROME_ARGUMENTS = (
        "--ignore-certificate-errors",
        "--disable-dev-shm-usage",
        "--no-sandbox",
    )

    # Default Playwright launch options
    DEFAULT_LAUNCH_OPTIONS: Dict[str, Any] = {
        "args": ["--ignore-certificate-errors"],
    }

    def __init__(self, settings: WebDriverSettings):
        """
        Args:
            settings: Engine, browser, headless mode and window size
        """
        self.settings = settings
        self.driver: Optional[BrowserDriver] = None

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    def __enter__(self) -> BrowserDriver:
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def start(self) -> BrowserDriver:
        """Launch the browser and return its adapter."""
        if self.driver is not None:
            return self.driver

        if self.settings.engine == "playwright":
            self.driver = self._start_playwright()
        else:
            self.driver = self._start_selenium()

        logger.debug(
            f"Browser started: {self.settings.engine}/{self.settings.browser} "
            f"(headless={self.settings.headless})"
        )
        return self.driver

    def _start_selenium(self) -> SeleniumDriver:
        width, height = self.settings.window_dimensions
        browser = self.settings.browser

        try:
            if browser == "firefox":
                options = FirefoxOptions()
                if self.settings.headless:
                    options.add_argument("-headless")
                session = webdriver.Firefox(options=options)
            elif browser in ("chrome", "chromium"):
                options = ChromeOptions()
                if self.settings.headless:
                    options.add_argument("--headless=new")
                for argument in self.CHROME_ARGUMENTS:
                    options.add_argument(argument)
                options.add_argument(f"--window-size={width},{height}")
                session = webdriver.Chrome(options=options)
            else:
                raise BrowserDriverError(f"Unsupported Selenium browser: {browser}")
        except WebDriverException as e:
            raise BrowserDriverError(f"Could not start {browser}: {e.msg}") from e

        session.set_window_size(width, height)
        return SeleniumDriver(session)

    def _start_playwright(self) -> PlaywrightDriver:
        width, height = self.settings.window_dimensions
        self._playwright = sync_playwright().start()

        # Select browser type
        if self.settings.browser == "firefox":
            browser_launcher = self._playwright.firefox
        elif self.settings.browser == "webkit":
            browser_launcher = self._playwright.webkit
        else:
            browser_launcher = self._playwright.chromium

        self._browser = browser_launcher.launch(
            **self.DEFAULT_LAUNCH_OPTIONS,
            headless=self.settings.headless,
        )
        context = self._browser.new_context(
            viewport={"width": width, "height": height},
            ignore_https_errors=True,
        )
        return PlaywrightDriver(context.new_page())

    def close(self) -> None:
        """End the session and release the engine."""
        if self.driver is not None:
            try:
                self.driver.quit()
            except Exception as e:
                logger.warning(f"Error while closing browser session: {e}")
            self.driver = None

        if self._browser:
            self._browser.close()
            self._browser = None

        if self._playwright:
            self._playwright.stop()
            self._playwright = None

        logger.debug("Browser closed")


__all__ = ["BrowserManager"]
