"""
================================================================================
Magento WebDriver Actions
================================================================================

Magento-aware action layer on top of a ``BrowserDriver``.

Provides:
    - Navigation with page readiness waits
    - Admin helpers (multi-select search, notification popups, conditional click)
    - Secret-aware field filling and CLI calls
    - Current URL assertions with Allure comparisons
    - JavaScript error tracking
    - Screenshots and failure artifacts
    - Money formatting helpers

Usage:
    with BrowserManager(settings) as driver:
        magento = MagentoWebDriver(driver, settings)
        magento.am_on_page("admin/")
        magento.see_in_current_url("/admin/")

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union
from urllib.parse import urlsplit

import allure
from loguru import logger

from magento_tools.common import ensure_directory
from magento_tools.credentials import CredentialStore
from magento_tools.report_tools import attach_comparison, attach_file, attach_json
from testsuites.api_testing.framework.webapi_client import MagentoWebapiClient

from .drivers import BrowserDriver
from .exceptions import AmbiguousElementMatch, BrowserDriverError, PredicateNeverSatisfied
from .money import US_DOLLAR, MoneyFormat, format_money, parse_float
from .page_readiness import (
    CheckResult,
    ElementNotVisiblePredicate,
    ElementVisiblePredicate,
    PageStabilityWaiter,
    Predicate,
    StabilityReport,
    WaitOutcome,
)
from .settings import WebDriverSettings


CLOSE_ADMIN_NOTIFICATION_SCRIPT = (
    "jQuery('.modal-popup').remove(); jQuery('.modals-overlay').remove();"
)
SCROLL_TO_TOP_SCRIPT = "window.scrollTo(0,0);"

# Byte limits for failure artifact stems; ".fail.png" / ".fail.html" are appended after the cut
SCREENSHOT_NAME_LIMIT = 245
PAGE_SOURCE_NAME_LIMIT = 244


def _cut_utf8(text: str, limit: int) -> str:
    """Cut ``text`` to at most ``limit`` bytes without splitting a character."""
    return text.encode("utf-8")[:limit].decode("utf-8", errors="ignore")


def failure_artifact_stem(signature: str, limit: int) -> str:
    """
    File name stem for a failure artifact.

    Example:
        >>> failure_artifact_stem("tests/test_admin.py::test_login[chrome]", 245)
        'tests.test_admin.py..test_login.chrome.'
    """
    return _cut_utf8(re.sub(r"\W", ".", signature), limit)


class MagentoWebDriver:
    """
    Magento actions bound to one browser session.

    Attributes:
        driver: Browser adapter
        settings: WebDriver settings (base URL, timeouts, output dir)
        waiter: Page stability waiter used by every readiness wait
        js_errors: JavaScript errors collected during the test
    """

    def __init__(
        self,
        driver: BrowserDriver,
        settings: WebDriverSettings,
        waiter: Optional[PageStabilityWaiter] = None,
        credential_store: Optional[CredentialStore] = None,
        webapi_client: Optional[MagentoWebapiClient] = None,
    ):
        """
        Args:
            driver: Browser adapter for the session
            settings: Validated WebDriver settings
            waiter: Custom waiter (tests inject one with a virtual clock)
            credential_store: Secret resolver, created on first use if None
            webapi_client: Web API client, created on first use if None
        """
        self.driver = driver
        self.settings = settings
        self.waiter = waiter or PageStabilityWaiter(
            driver,
            pageload_timeout=settings.pageload_timeout,
            poll_interval=settings.poll_interval,
        )
        self._credential_store = credential_store
        self._webapi_client = webapi_client

        self.skip_readiness = False
        self.js_errors: List[str] = []
        self.current_test: Optional[str] = None
        self.png_report: Optional[Path] = None
        self.html_report: Optional[Path] = None

    @property
    def credential_store(self) -> CredentialStore:
        if self._credential_store is None:
            self._credential_store = CredentialStore()
        return self._credential_store

    @property
    def webapi_client(self) -> MagentoWebapiClient:
        if self._webapi_client is None:
            self._webapi_client = MagentoWebapiClient()
        return self._webapi_client

    # =========================================================================
    # Readiness
    # =========================================================================

    def wait_for_page_load(self, timeout: Optional[int] = None) -> StabilityReport:
        """
        Wait until the document is ready, AJAX is idle and loading masks are gone.

        Raises:
            PredicateNeverSatisfied: Document or loading masks timed out
            EvaluationFailure: Document or mask predicate could not be evaluated
        """
        report = self.waiter.wait_for_stable(timeout)
        if not report.is_stable:
            attach_json(
                {
                    "timeout": report.timeout,
                    "elapsed": round(report.elapsed, 2),
                    "checks": {
                        result.name: {
                            "outcome": result.outcome.value,
                            "tolerated": result.tolerated,
                            "timed_out_locators": result.timed_out_locators,
                        }
                        for result in report.results
                    },
                },
                name="Page readiness",
            )
        report.raise_for_timeout()
        return report

    def wait_for_document_ready(self, timeout: Optional[int] = None) -> CheckResult:
        result = self.waiter.wait_for_document_ready(timeout)
        result.raise_for_timeout()
        return result

    def wait_for_ajax_load(self, timeout: Optional[int] = None) -> CheckResult:
        """Wait for jQuery AJAX to settle; timeouts are tolerated."""
        return self.waiter.wait_for_ajax_load(timeout)

    def wait_for_loading_mask_to_disappear(self, timeout: Optional[int] = None) -> CheckResult:
        result = self.waiter.wait_for_loading_mask_to_disappear(timeout)
        result.raise_for_timeout()
        return result

    def _wait_for(self, predicate: Predicate, timeout: Optional[int]) -> None:
        timeout = self.waiter.resolve_timeout(timeout)
        if self.waiter.poller.poll(predicate, timeout) is WaitOutcome.TIMED_OUT:
            raise PredicateNeverSatisfied(predicate.description, timeout)

    def wait_for_element_visible(self, locator: str, timeout: Optional[int] = None) -> None:
        self._wait_for(ElementVisiblePredicate(locator), timeout)

    def wait_for_element_not_visible(self, locator: str, timeout: Optional[int] = None) -> None:
        self._wait_for(ElementNotVisiblePredicate(locator), timeout)

    def skip_readiness_check(self, check: bool) -> None:
        """Turn the page load wait after navigation off (True) or on (False)."""
        self.skip_readiness = check

    def am_on_page(self, page: str) -> None:
        """
        Open a page relative to the base URL and wait for it to stabilize.

        Args:
            page: Path such as "admin/catalog/product/" or an absolute URL
        """
        url = page if page.startswith(("http://", "https://")) else (
            f"{self.settings.base_url}{page.lstrip('/')}"
        )
        with allure.step(f"Open {url}"):
            self.driver.open(url)
            if not self.skip_readiness:
                self.wait_for_page_load()

    # =========================================================================
    # Admin helpers
    # =========================================================================

    def search_and_multi_select_option(
        self,
        select: str,
        options: Sequence[str],
        require_action: bool = False,
    ) -> None:
        """
        Search for and select options in a Magento admin multi-select,
        e.g. the dropdown assigning products to categories.

        Args:
            select: Selector of the multi-select container
            options: Option labels to pick
            require_action: Click the "Done" action button afterwards
        """
        select_dropdown = f"{select} .action-select.admin__action-multiselect"
        select_search_text = (
            f"{select} .admin__action-multiselect-search-wrap"
            '>input[data-role="advanced-select-text"]'
        )
        select_search_result = f"{select} .admin__action-multiselect-label>span"

        with allure.step(f"Multi-select {list(options)} in {select}"):
            self.wait_for_page_load()
            self.wait_for_element_visible(select_dropdown)
            self.click(select_dropdown)

            self.select_multiple_options(select_search_text, select_search_result, options)

            if require_action:
                self.wait_for_page_load()
                self.click(f"{select} button[class=action-default]")

    def select_multiple_options(
        self,
        search_field: str,
        search_result: str,
        options: Sequence[str],
    ) -> None:
        """Filter a dropdown by each option text and click the first result."""
        for option in options:
            self.wait_for_page_load()
            self.clear_field(search_field)
            self.wait_for_page_load()
            self.fill_field(search_field, option)
            self.wait_for_page_load()
            self.click(search_result)

    def close_admin_notification(self) -> None:
        """Remove admin notification popups and their overlay."""
        try:
            self.driver.execute_script(CLOSE_ADMIN_NOTIFICATION_SCRIPT)
        except Exception as e:
            logger.debug(f"Could not remove admin notification popups: {e}")

    def conditional_click(self, selector: str, dependent_selector: str, visible: bool) -> None:
        """
        Click ``selector`` depending on the visibility of another element.

        Args:
            selector: Element to click
            dependent_selector: Element whose visibility decides
            visible: Click when the dependent element is visible (True)
                or when it is absent or hidden (False)

        Raises:
            AmbiguousElementMatch: More than one dependent element matched
        """
        elements = self.driver.find_elements(dependent_selector)
        if len(elements) > 1:
            raise AmbiguousElementMatch(dependent_selector, len(elements))

        shown = bool(elements) and self.driver.is_displayed(elements[0])
        if shown == visible:
            self.click(selector)
        else:
            logger.debug(f"Skipping click on {selector}: {dependent_selector} visible={shown}")

    # =========================================================================
    # Fields and elements
    # =========================================================================

    def click(self, selector: str) -> None:
        with allure.step(f"Click {selector}"):
            self.driver.click(selector)

    def fill_field(self, selector: str, value: str) -> None:
        with allure.step(f"Fill {selector} with '{value}'"):
            self.driver.fill_field(selector, value)

    def clear_field(self, selector: str) -> None:
        self.fill_field(selector, "")

    def fill_secret_field(self, field: str, value: str) -> None:
        """
        Fill a field with a secret; the value is resolved right before the fill.

        Args:
            field: Field selector
            value: Secret reference like "{{_CREDS.magento/tfa/OTP_SHARED_SECRET}}"
        """
        with allure.step(f"Fill {field} with '***MASKED***'"):
            self.driver.fill_field(field, self.credential_store.decrypt_secret_value(value))

    def assert_element_contains_attribute(
        self,
        selector: str,
        attribute: str,
        value: Optional[str],
    ) -> None:
        """
        Assert that an attribute of the element contains ``value``.

        An empty ``value`` asserts the attribute is present: browsers report
        blank boolean attributes as "true". ``None`` means no expected value
        was given and always fails.
        """
        if value is None:
            raise AssertionError(
                f"No expected value given for attribute '{attribute}' of {selector}"
            )
        actual = self.driver.get_attribute(selector, attribute)
        if value == "":
            if actual != "true":
                raise AssertionError(
                    f"Attribute '{attribute}' of {selector} is not present (got {actual!r})"
                )
            return
        if actual is None or value not in actual:
            raise AssertionError(
                f"Attribute '{attribute}' of {selector} does not contain "
                f"{value!r} (got {actual!r})"
            )

    def drag_and_drop(
        self,
        source: str,
        target: str,
        x_offset: Optional[int] = None,
        y_offset: Optional[int] = None,
    ) -> None:
        with allure.step(f"Drag {source} to {target}"):
            self.driver.drag_and_drop(source, target, x_offset, y_offset)

    def scroll_to_top_of_page(self) -> None:
        self.driver.execute_script(SCROLL_TO_TOP_SCRIPT)

    # =========================================================================
    # Current URL
    # =========================================================================

    def _compare_url(self, expected: str) -> str:
        actual = self.driver.current_url
        attach_comparison(expected, actual)
        return actual

    def see_current_url_equals(self, url: str) -> None:
        actual = self._compare_url(url)
        if actual != url:
            raise AssertionError(f"Expected current URL {url}, got {actual}")

    def dont_see_current_url_equals(self, url: str) -> None:
        actual = self._compare_url(url)
        if actual == url:
            raise AssertionError(f"Current URL should not be {url}")

    def see_current_url_matches(self, regex: str) -> None:
        actual = self._compare_url(regex)
        if not re.search(regex, actual):
            raise AssertionError(f"Current URL {actual} does not match {regex}")

    def dont_see_current_url_matches(self, regex: str) -> None:
        actual = self._compare_url(regex)
        if re.search(regex, actual):
            raise AssertionError(f"Current URL {actual} should not match {regex}")

    def see_in_current_url(self, needle: str) -> None:
        actual = self._compare_url(needle)
        if needle not in actual:
            raise AssertionError(f"Current URL {actual} does not contain {needle}")

    def dont_see_in_current_url(self, needle: str) -> None:
        actual = self._compare_url(needle)
        if needle in actual:
            raise AssertionError(f"Current URL {actual} should not contain {needle}")

    def grab_from_current_url(self, regex: Optional[str] = None) -> str:
        """
        Return the current URL, or its first capture group for ``regex``.

        Example:
            >>> magento.grab_from_current_url(r"/id/(\\d+)/")
            '42'
        """
        full_url = self.driver.current_url
        if not regex:
            return full_url

        match = re.search(regex, full_url)
        if match is None:
            raise AssertionError(f"Couldn't match {regex} in {full_url}")
        if match.re.groups < 1 or match.group(1) is None:
            raise AssertionError(
                "Nothing to grab. A regex parameter with a capture group is required. "
                "Ex: '(foo)(bar)'"
            )
        return match.group(1)

    def current_uri(self) -> str:
        """
        Path, query and fragment of the open page.

        Raises:
            BrowserDriverError: No page was opened yet
        """
        url = self.driver.current_url
        if url == "about:blank":
            raise BrowserDriverError("Current url is blank, no page was opened")

        parts = urlsplit(url)
        uri = parts.path or "/"
        if parts.query:
            uri += f"?{parts.query}"
        if parts.fragment:
            uri += f"#{parts.fragment}"
        return uri

    # =========================================================================
    # JavaScript errors
    # =========================================================================

    def clean_js_error(self) -> None:
        self.js_errors = []

    def set_js_error(self, message: str) -> None:
        self.js_errors.append(message)

    def dont_see_js_error(self) -> None:
        """Assert that no JavaScript error was recorded."""
        if self.js_errors:
            raise AssertionError("Errors in JavaScript:\n" + "\n".join(self.js_errors))

    # =========================================================================
    # Screenshots and failure artifacts
    # =========================================================================

    def make_screenshot(self, name: Optional[str] = None) -> Path:
        """Save a screenshot under ``<output_dir>/debug`` and attach it to the current step."""
        if not name:
            name = datetime.now().strftime("%Y-%m-%d_%H-%M-%S_") + uuid.uuid4().hex[:13]

        debug_dir = ensure_directory(self.settings.output_dir / "debug")
        path = self.driver.save_screenshot(debug_dir / f"{name}.png")
        logger.debug(f"Screenshot saved to {path}")
        attach_file(path, "Screenshot")
        return path

    def before_test(self, test_name: str) -> None:
        """Make ``test_name`` the current test and forget previous failure artifacts."""
        self.current_test = test_name
        self.png_report = None
        self.html_report = None

    def save_failure_artifacts(self) -> None:
        """Write ``<signature>.fail.png`` and ``<signature>.fail.html`` for the current test."""
        signature = self.current_test or f"unknown.{uuid.uuid4().hex[:13]}"
        output_dir = ensure_directory(self.settings.output_dir)

        self.png_report = self.driver.save_screenshot(
            output_dir / f"{failure_artifact_stem(signature, SCREENSHOT_NAME_LIMIT)}.fail.png"
        )
        self.html_report = (
            output_dir / f"{failure_artifact_stem(signature, PAGE_SOURCE_NAME_LIMIT)}.fail.html"
        )
        self.html_report.write_text(self.driver.page_source, encoding="utf-8")

    def failed(self, test_name: str, error: Union[BaseException, str]) -> None:
        """
        Capture the browser state of a failed test and attach it to the report.

        Raises:
            RuntimeError: The failure happened outside a test (suite setup)
        """
        if self.png_report is None and self.html_report is None:
            self.save_failure_artifacts()

        if self.current_test is None:
            raise RuntimeError(f"Suite condition failure: \n{error}")

        attach_file(self.png_report, f"{test_name}.png")
        attach_file(self.html_report, f"{test_name}.html")

        logger.debug(f"Failure due to : {error}")
        logger.debug(f"Screenshot saved to {self.png_report}")
        logger.debug(f"Html saved to {self.html_report}")

    # =========================================================================
    # Web API
    # =========================================================================

    def magento_cli(self, command: str, arguments: Optional[str] = None) -> str:
        """Run a bin/magento command on the server and return its output."""
        logger.info(f"Magento CLI: {command}")
        return self.webapi_client.magento_cli(command, arguments)

    def magento_cli_secret(self, command: str, arguments: Optional[str] = None) -> str:
        """Like ``magento_cli``, resolving secret references right before sending."""
        decrypted = self.credential_store.decrypt_all_secrets_in_string(command)
        logger.info("Magento CLI: ***MASKED***")
        return self.webapi_client.magento_cli(decrypted, arguments, secret=True)

    def delete_entity_by_url(self, url: str) -> str:
        logger.info(f"Deleting entity: {url}")
        return self.webapi_client.delete_entity_by_url(url)

    def close(self) -> None:
        """Release the Web API session; the browser belongs to its manager."""
        if self._webapi_client is not None:
            self._webapi_client.close()

    # =========================================================================
    # Money
    # =========================================================================

    def format_money(
        self,
        amount: Any,
        money_format: MoneyFormat = US_DOLLAR,
    ) -> Dict[str, str]:
        return format_money(amount, money_format)

    def parse_float(self, text: str) -> float:
        return parse_float(text)


__all__ = [
    "MagentoWebDriver",
    "failure_artifact_stem",
]
