"""
================================================================================
Browser Driver Adapters
================================================================================

The readiness waits and Magento actions talk to the browser through the
narrow ``BrowserDriver`` surface defined here. Two engines are supported:

    - SeleniumDriver:   Selenium WebDriver session (default engine)
    - PlaywrightDriver: Playwright sync API page

Locator convention:
    Locators starting with '/' or '(' are XPath, everything else is CSS.
    e.g. '//div[@data-role="spinner"]', '(//div[@data-role="spinner"])[2]',
         '#product_form .admin__action-multiselect'

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Optional, Tuple

from loguru import logger
from playwright.sync_api import Page
from selenium.common.exceptions import StaleElementReferenceException
from selenium.webdriver.common.action_chains import ActionChains
from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webdriver import WebDriver

from .exceptions import BrowserDriverError


def is_xpath(locator: str) -> bool:
    """Return True when the locator is an XPath expression."""
    return locator.lstrip().startswith(("/", "("))


class BrowserDriver(ABC):
    """
    Minimal browser surface consumed by the framework.

    Implementations must not swallow engine errors; the readiness layer
    decides which failures are tolerated.
    """

    engine: str = ""

    @abstractmethod
    def execute_script(self, script: str) -> Any:
        """Run a JavaScript function body (may contain ``return``)."""

    @abstractmethod
    def find_elements(self, locator: str) -> List[Any]:
        """Return a snapshot of all elements currently matching the locator."""

    @abstractmethod
    def is_displayed(self, element: Any) -> bool:
        """Visibility of an element returned by ``find_elements``."""

    @abstractmethod
    def is_visible(self, locator: str) -> bool:
        """True when the first element matching the locator is visible."""

    @abstractmethod
    def open(self, url: str) -> None:
        """Navigate the session to ``url``."""

    @abstractmethod
    def click(self, locator: str) -> None:
        """Click the first element matching the locator."""

    @abstractmethod
    def fill_field(self, locator: str, value: str) -> None:
        """Replace the content of an input or textarea."""

    @abstractmethod
    def get_attribute(self, locator: str, name: str) -> Optional[str]:
        """Read an attribute of the first matching element."""

    @property
    @abstractmethod
    def current_url(self) -> str:
        """URL of the page currently shown."""

    @property
    @abstractmethod
    def page_source(self) -> str:
        """Serialized HTML of the current page."""

    @abstractmethod
    def save_screenshot(self, path: Path) -> Path:
        """Write a PNG screenshot to ``path``."""

    @abstractmethod
    def drag_and_drop(
        self,
        source: str,
        target: str,
        x_offset: Optional[int] = None,
        y_offset: Optional[int] = None,
    ) -> None:
        """Drag ``source`` onto ``target``, optionally offset from its corner."""

    @abstractmethod
    def quit(self) -> None:
        """End the browser session."""

    def sleep(self, seconds: float) -> None:
        """Block the calling thread; tests replace this with a virtual clock."""
        time.sleep(seconds)


class SeleniumDriver(BrowserDriver):
    """
    ``BrowserDriver`` backed by a Selenium WebDriver session.

    Usage:
        >>> driver = SeleniumDriver(webdriver.Chrome(options=options))
        >>> driver.open("http://magento.local/admin")
    """

    engine = "selenium"

    def __init__(self, webdriver: WebDriver):
        self.webdriver = webdriver

    @staticmethod
    def _by(locator: str) -> Tuple[str, str]:
        if is_xpath(locator):
            return By.XPATH, locator
        return By.CSS_SELECTOR, locator

    def _find_one(self, locator: str):
        return self.webdriver.find_element(*self._by(locator))

    def execute_script(self, script: str) -> Any:
        return self.webdriver.execute_script(script)

    def find_elements(self, locator: str) -> List[Any]:
        return self.webdriver.find_elements(*self._by(locator))

    def is_displayed(self, element: Any) -> bool:
        try:
            return element.is_displayed()
        except StaleElementReferenceException:
            # Detached from the DOM: no longer visible
            return False

    def is_visible(self, locator: str) -> bool:
        elements = self.find_elements(locator)
        if not elements:
            return False
        return self.is_displayed(elements[0])

    def open(self, url: str) -> None:
        logger.debug(f"Opening: {url}")
        self.webdriver.get(url)

    def click(self, locator: str) -> None:
        self._find_one(locator).click()

    def fill_field(self, locator: str, value: str) -> None:
        element = self._find_one(locator)
        element.clear()
        element.send_keys(value)

    def get_attribute(self, locator: str, name: str) -> Optional[str]:
        return self._find_one(locator).get_attribute(name)

    @property
    def current_url(self) -> str:
        return self.webdriver.current_url

    @property
    def page_source(self) -> str:
        return self.webdriver.page_source

    def save_screenshot(self, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.webdriver.save_screenshot(str(path))
        return path

    def drag_and_drop(
        self,
        source: str,
        target: str,
        x_offset: Optional[int] = None,
        y_offset: Optional[int] = None,
    ) -> None:
        source_element = self._find_one(source)
        target_element = self._find_one(target)

        if x_offset is None and y_offset is None:
            ActionChains(self.webdriver).drag_and_drop(
                source_element, target_element
            ).perform()
            return

        target_x = int(target_element.location["x"] + (x_offset or 0))
        target_y = int(target_element.location["y"] + (y_offset or 0))
        travel_x = int(target_x - source_element.location["x"])
        travel_y = int(target_y - source_element.location["y"])

        actions = ActionChains(self.webdriver)
        actions.move_to_element(source_element).perform()
        actions.click_and_hold(source_element).perform()
        actions.move_by_offset(travel_x, travel_y).perform()
        actions.release().perform()

    def quit(self) -> None:
        self.webdriver.quit()


class PlaywrightDriver(BrowserDriver):
    """
    ``BrowserDriver`` backed by a Playwright (sync API) page.

    Scripts are wrapped into an arrow function so the same
    ``return ...`` bodies work for both engines.
    """

    engine = "playwright"

    def __init__(self, page: Page):
        self.page = page

    @staticmethod
    def _selector(locator: str) -> str:
        if is_xpath(locator):
            return f"xpath={locator}"
        return locator

    def execute_script(self, script: str) -> Any:
        return self.page.evaluate(f"() => {{ {script} }}")

    def find_elements(self, locator: str) -> List[Any]:
        return self.page.locator(self._selector(locator)).all()

    def is_displayed(self, element: Any) -> bool:
        return element.is_visible()

    def is_visible(self, locator: str) -> bool:
        return self.page.locator(self._selector(locator)).first.is_visible()

    def open(self, url: str) -> None:
        logger.debug(f"Opening: {url}")
        self.page.goto(url)

    def click(self, locator: str) -> None:
        self.page.locator(self._selector(locator)).first.click()

    def fill_field(self, locator: str, value: str) -> None:
        self.page.locator(self._selector(locator)).first.fill(value)

    def get_attribute(self, locator: str, name: str) -> Optional[str]:
        return self.page.locator(self._selector(locator)).first.get_attribute(name)

    @property
    def current_url(self) -> str:
        return self.page.url

    @property
    def page_source(self) -> str:
        return self.page.content()

    def save_screenshot(self, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.page.screenshot(path=str(path), full_page=True)
        return path

    def drag_and_drop(
        self,
        source: str,
        target: str,
        x_offset: Optional[int] = None,
        y_offset: Optional[int] = None,
    ) -> None:
        if x_offset is None and y_offset is None:
            self.page.drag_and_drop(self._selector(source), self._selector(target))
            return

        source_box = self.page.locator(self._selector(source)).first.bounding_box()
        target_box = self.page.locator(self._selector(target)).first.bounding_box()
        if source_box is None or target_box is None:
            raise BrowserDriverError(f"Cannot drag {source} to {target}: element not rendered")

        self.page.mouse.move(
            source_box["x"] + source_box["width"] / 2,
            source_box["y"] + source_box["height"] / 2,
        )
        self.page.mouse.down()
        self.page.mouse.move(
            target_box["x"] + (x_offset or 0),
            target_box["y"] + (y_offset or 0),
        )
        self.page.mouse.up()

    def quit(self) -> None:
        self.page.context.close()


__all__ = [
    "BrowserDriver",
    "PlaywrightDriver",
    "SeleniumDriver",
    "is_xpath",
]
