import pytest
from selenium.common.exceptions import StaleElementReferenceException
from selenium.webdriver.common.by import By

from testsuites.ui_testing.framework.drivers import PlaywrightDriver, SeleniumDriver, is_xpath


class StubWebDriver:
    """Records Selenium WebDriver calls."""

    def __init__(self, elements=None):
        self.elements = elements or []
        self.lookups = []
        self.scripts = []

    def find_elements(self, by, value):
        self.lookups.append((by, value))
        return self.elements

    def execute_script(self, script):
        self.scripts.append(script)
        return True


class StubElement:
    def __init__(self, displayed=True, stale=False):
        self.displayed = displayed
        self.stale = stale

    def is_displayed(self):
        if self.stale:
            raise StaleElementReferenceException("element is not attached to the page document")
        return self.displayed


class StubPage:
    def __init__(self):
        self.evaluated = []

    def evaluate(self, expression):
        self.evaluated.append(expression)
        return "complete"


@pytest.mark.parametrize(
    "locator, expected",
    [
        ('//div[@data-role="spinner"]', True),
        ('(//div[contains(@class, "loading-mask")])[2]', True),
        ("  //body", True),
        ("#product_form .admin__action-multiselect", False),
        (".loading-mask", False),
    ],
)
def test_is_xpath(locator, expected):
    assert is_xpath(locator) is expected


def test_selenium_driver_picks_locator_strategy():
    webdriver = StubWebDriver()
    driver = SeleniumDriver(webdriver)

    driver.find_elements("(//div[@data-role='spinner'])[1]")
    driver.find_elements("#save")

    assert webdriver.lookups == [
        (By.XPATH, "(//div[@data-role='spinner'])[1]"),
        (By.CSS_SELECTOR, "#save"),
    ]


def test_selenium_stale_element_counts_as_invisible():
    driver = SeleniumDriver(StubWebDriver([StubElement(stale=True)]))

    assert driver.is_visible(".loading-mask") is False


def test_selenium_visibility_uses_first_match():
    assert SeleniumDriver(StubWebDriver([StubElement(True), StubElement(False)])).is_visible("div")
    assert not SeleniumDriver(StubWebDriver([])).is_visible("div")


def test_playwright_driver_wraps_script_body():
    page = StubPage()
    driver = PlaywrightDriver(page)

    assert driver.execute_script("return document.readyState;") == "complete"
    assert page.evaluated == ["() => { return document.readyState; }"]


def test_playwright_selector_prefixes_xpath():
    assert PlaywrightDriver._selector("//div") == "xpath=//div"
    assert PlaywrightDriver._selector("#save") == "#save"
