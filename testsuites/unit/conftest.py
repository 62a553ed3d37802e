"""
Fixtures for browser-free unit tests.

``FakeDriver`` implements the BrowserDriver surface on top of a virtual
clock: ``sleep`` advances time instantly, so waits measured in seconds run
in microseconds and elapsed time can be asserted exactly.
"""

from __future__ import annotations

import math
import re
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import pytest

from magento_tools.common import GlobalConfig
from magento_tools.common.global_config import ENV_MAPPING
from testsuites.ui_testing.framework.drivers import BrowserDriver
from testsuites.ui_testing.framework.settings import WebDriverSettings


INDEXED_LOCATOR = re.compile(r"^\((?P<locator>.+)\)\[(?P<index>\d+)\]$")


class VirtualClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeElement:
    """Element visible until ``visible_until`` on the virtual clock."""

    def __init__(self, clock: VirtualClock, visible_until: float = math.inf):
        self.clock = clock
        self.visible_until = visible_until

    @property
    def visible(self) -> bool:
        return self.clock.now < self.visible_until


ScriptBehavior = Union[Any, Exception, Callable[[float], Any]]


class FakeDriver(BrowserDriver):
    """
    Scriptable BrowserDriver.

    Attributes:
        scripts: script -> return value, exception to raise, or callable(now)
        elements: locator -> elements found for it
        calls: ordered log of (method, argument) tuples
        sleeps: every sleep duration requested
    """

    engine = "fake"

    def __init__(self, clock: Optional[VirtualClock] = None):
        self.clock = clock or VirtualClock()
        self.scripts: Dict[str, ScriptBehavior] = {}
        self.elements: Dict[str, List[FakeElement]] = {}
        self.attributes: Dict[Tuple[str, str], Optional[str]] = {}
        self.calls: List[Tuple[str, Any]] = []
        self.sleeps: List[float] = []
        self.url = "about:blank"
        self.html = "<html><body>fake</body></html>"

    # -- helpers used by tests ----------------------------------------------

    def page_ready_at(self, seconds: float) -> None:
        self.scripts['return document.readyState == "complete";'] = (
            lambda now: now >= seconds
        )

    def ajax_idle_at(self, seconds: float) -> None:
        self.scripts["return !!window.jQuery && window.jQuery.active == 0;"] = (
            lambda now: now >= seconds
        )

    def add_elements(self, locator: str, *visible_until: float) -> List[FakeElement]:
        elements = [FakeElement(self.clock, until) for until in visible_until]
        self.elements.setdefault(locator, []).extend(elements)
        return elements

    def calls_to(self, method: str) -> List[Any]:
        return [argument for name, argument in self.calls if name == method]

    # -- BrowserDriver ------------------------------------------------------

    def execute_script(self, script: str) -> Any:
        self.calls.append(("execute_script", script))
        behavior = self.scripts.get(script)
        if isinstance(behavior, Exception):
            raise behavior
        if callable(behavior):
            return behavior(self.clock.now)
        return behavior

    def _resolve(self, locator: str) -> List[FakeElement]:
        match = INDEXED_LOCATOR.match(locator)
        if match:
            candidates = self.elements.get(match.group("locator"), [])
            index = int(match.group("index"))
            return candidates[index - 1:index]
        return list(self.elements.get(locator, []))

    def find_elements(self, locator: str) -> List[Any]:
        self.calls.append(("find_elements", locator))
        return self._resolve(locator)

    def is_displayed(self, element: Any) -> bool:
        return element.visible

    def is_visible(self, locator: str) -> bool:
        self.calls.append(("is_visible", locator))
        found = self._resolve(locator)
        return bool(found) and found[0].visible

    def open(self, url: str) -> None:
        self.calls.append(("open", url))
        self.url = url

    def click(self, locator: str) -> None:
        self.calls.append(("click", locator))

    def fill_field(self, locator: str, value: str) -> None:
        self.calls.append(("fill_field", (locator, value)))

    def get_attribute(self, locator: str, name: str) -> Optional[str]:
        return self.attributes.get((locator, name))

    @property
    def current_url(self) -> str:
        return self.url

    @property
    def page_source(self) -> str:
        return self.html

    def save_screenshot(self, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"\x89PNG fake")
        self.calls.append(("save_screenshot", path))
        return path

    def drag_and_drop(self, source, target, x_offset=None, y_offset=None) -> None:
        self.calls.append(("drag_and_drop", (source, target, x_offset, y_offset)))

    def quit(self) -> None:
        self.calls.append(("quit", None))

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.clock.advance(seconds)


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch):
    """Keep unit tests independent of the developer's environment and config singleton."""
    for env_key in ENV_MAPPING:
        monkeypatch.delenv(env_key, raising=False)
    GlobalConfig.reset()
    yield
    GlobalConfig.reset()


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock()


@pytest.fixture
def driver(clock: VirtualClock) -> FakeDriver:
    return FakeDriver(clock)


@pytest.fixture
def settings(tmp_path: Path) -> WebDriverSettings:
    return WebDriverSettings(
        base_url="http://magento.local/",
        pageload_timeout=5,
        output_dir=tmp_path / "webdriver",
    )
