"""
================================================================================
Page Readiness Waits
================================================================================

Layered polling protocol deciding when a Magento page is safe to interact
with. Three checks run strictly in order, each with the full timeout:

    1. DocumentReadyCheck      document.readyState == "complete"
    2. AjaxIdleCheck           jQuery present and no active requests
                               (+1 second grace, flat sleep on script errors)
    3. LoadingMaskAbsenceCheck every known loading mask is invisible

Usage:
    waiter = PageStabilityWaiter(driver, pageload_timeout=30)
    report = waiter.wait_for_stable()
    report.raise_for_timeout()

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

import allure
from loguru import logger

from .drivers import BrowserDriver
from .exceptions import EvaluationFailure, PredicateNeverSatisfied


DEFAULT_POLL_INTERVAL = 0.5

# Fixed delay after every AJAX check for requests fired but not yet registered
AJAX_GRACE_SECONDS = 1

LOADING_MASK_LOCATORS: Tuple[str, ...] = (
    '//div[contains(@class, "loading-mask")]',
    '//div[contains(@class, "admin_data-grid-loading-mask")]',
    '//div[contains(@class, "admin__data-grid-loading-mask")]',
    '//div[contains(@class, "admin__form-loading-mask")]',
    '//div[@data-role="spinner"]',
)


class WaitOutcome(Enum):
    """Result of a single poll loop."""
    SATISFIED = "satisfied"
    TIMED_OUT = "timed_out"


def validate_timeout(timeout: int) -> int:
    """Reject anything that is not a positive whole number of seconds."""
    if isinstance(timeout, bool) or not isinstance(timeout, int) or timeout <= 0:
        raise ValueError(f"timeout must be a positive integer (seconds), got {timeout!r}")
    return timeout


# =============================================================================
# Predicates
# =============================================================================

class Predicate(ABC):
    """Side-effect-free boolean check against the live page."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable form used in logs and timeout messages."""

    @abstractmethod
    def evaluate(self, driver: BrowserDriver) -> bool:
        """Evaluate once against the current page state."""


@dataclass(frozen=True)
class JsPredicate(Predicate):
    """JavaScript function body returning a truthy value when satisfied."""
    script: str

    @property
    def description(self) -> str:
        return self.script

    def evaluate(self, driver: BrowserDriver) -> bool:
        return bool(driver.execute_script(self.script))


@dataclass(frozen=True)
class ElementNotVisiblePredicate(Predicate):
    """No element matching the locator is visible (absent counts as invisible)."""
    locator: str

    @property
    def description(self) -> str:
        return f"{self.locator} is not visible"

    def evaluate(self, driver: BrowserDriver) -> bool:
        return not driver.is_visible(self.locator)


@dataclass(frozen=True)
class ElementVisiblePredicate(Predicate):
    """The first element matching the locator is visible."""
    locator: str

    @property
    def description(self) -> str:
        return f"{self.locator} is visible"

    def evaluate(self, driver: BrowserDriver) -> bool:
        return driver.is_visible(self.locator)


# =============================================================================
# Poller
# =============================================================================

class JsPredicatePoller:
    """
    Evaluate a predicate until it holds or the timeout elapses.

    The predicate is evaluated immediately and then every ``poll_interval``
    seconds. Timeouts are reported as ``WaitOutcome.TIMED_OUT``, never raised;
    escalation is the caller's decision. Errors raised while evaluating
    are re-raised as ``EvaluationFailure``.
    """

    def __init__(
        self,
        driver: BrowserDriver,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ):
        if poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {poll_interval!r}")
        self.driver = driver
        self.poll_interval = poll_interval
        self.clock = clock

    def poll(self, predicate: Predicate, timeout: int) -> WaitOutcome:
        """
        Poll ``predicate`` for at most ``timeout`` seconds.

        Args:
            predicate: Check to evaluate
            timeout: Positive whole number of seconds

        Returns:
            SATISFIED as soon as the predicate holds, TIMED_OUT once the
            full timeout elapsed without success

        Raises:
            ValueError: Invalid timeout
            EvaluationFailure: The predicate could not be evaluated
        """
        timeout = validate_timeout(timeout)
        started = self.clock()
        deadline = started + timeout
        attempt = 0

        while True:
            attempt += 1
            try:
                satisfied = predicate.evaluate(self.driver)
            except Exception as e:
                raise EvaluationFailure(predicate.description, e) from e

            if satisfied:
                logger.debug(
                    f"Satisfied after {attempt} attempts "
                    f"({self.clock() - started:.1f}s): {predicate.description}"
                )
                return WaitOutcome.SATISFIED

            remaining = deadline - self.clock()
            if remaining <= 0:
                logger.debug(
                    f"Timed out after {timeout}s ({attempt} attempts): "
                    f"{predicate.description}"
                )
                return WaitOutcome.TIMED_OUT

            self.driver.sleep(min(self.poll_interval, remaining))


# =============================================================================
# Check results
# =============================================================================

@dataclass
class CheckResult:
    """
    Outcome of one readiness check.

    Attributes:
        name: Check identifier ("document_ready", "ajax_idle", "loading_masks")
        predicate: Description of what was awaited
        timeout: Timeout in seconds the check was given
        outcome: SATISFIED or TIMED_OUT
        tolerated: Timeouts of this check never fail the caller
        timed_out_locators: Indexed mask locators that stayed visible
    """
    name: str
    predicate: str
    timeout: int
    outcome: WaitOutcome
    tolerated: bool = False
    timed_out_locators: List[str] = field(default_factory=list)

    @property
    def satisfied(self) -> bool:
        return self.outcome is WaitOutcome.SATISFIED

    def raise_for_timeout(self) -> None:
        """Raise PredicateNeverSatisfied for a timed-out, non-tolerated check."""
        if self.satisfied or self.tolerated:
            return
        detail = None
        if self.timed_out_locators:
            detail = "still visible: " + ", ".join(self.timed_out_locators)
        raise PredicateNeverSatisfied(self.predicate, self.timeout, detail)


@dataclass
class StabilityReport:
    """Ordered results of one ``wait_for_stable`` call."""
    timeout: int
    results: List[CheckResult] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def is_stable(self) -> bool:
        return all(result.satisfied for result in self.results)

    def get(self, name: str) -> Optional[CheckResult]:
        for result in self.results:
            if result.name == name:
                return result
        return None

    def raise_for_timeout(self) -> None:
        """Raise for the first timed-out check whose timeouts are not tolerated."""
        for result in self.results:
            result.raise_for_timeout()


# =============================================================================
# Checks
# =============================================================================

class DocumentReadyCheck:
    """The document finished loading."""

    name = "document_ready"
    PREDICATE = JsPredicate('return document.readyState == "complete";')

    def __init__(self, poller: JsPredicatePoller):
        self.poller = poller

    def wait(self, timeout: int) -> CheckResult:
        outcome = self.poller.poll(self.PREDICATE, timeout)
        if outcome is WaitOutcome.TIMED_OUT:
            logger.warning(f"Document not ready after {timeout}s")
        return CheckResult(self.name, self.PREDICATE.description, timeout, outcome)


class AjaxIdleCheck:
    """
    No jQuery AJAX request is outstanding.

    Never fails the caller: a script error becomes a flat sleep of the full
    timeout, and a timed-out poll has already waited that long. Either way
    a fixed one second grace delay follows.
    """

    name = "ajax_idle"
    PREDICATE = JsPredicate("return !!window.jQuery && window.jQuery.active == 0;")

    def __init__(self, poller: JsPredicatePoller):
        self.poller = poller

    def wait(self, timeout: int) -> CheckResult:
        timeout = validate_timeout(timeout)
        try:
            outcome = self.poller.poll(self.PREDICATE, timeout)
        except EvaluationFailure as e:
            logger.debug(f"js never executed, performing {timeout} second wait. ({e.cause})")
            self.poller.driver.sleep(timeout)
            outcome = WaitOutcome.TIMED_OUT
        else:
            if outcome is WaitOutcome.TIMED_OUT:
                logger.debug(
                    f"AJAX not idle (or jQuery absent) after {timeout}s, continuing"
                )

        self.poller.driver.sleep(AJAX_GRACE_SECONDS)
        return CheckResult(
            self.name, self.PREDICATE.description, timeout, outcome, tolerated=True
        )


class LoadingMaskAbsenceCheck:
    """
    Every loading mask present when the check starts becomes invisible.

    Matches are counted once per locator, then each match is re-addressed as
    ``(<locator>)[i]`` because the raw handles cannot be waited on. Masks
    appearing after the count, or a DOM reshuffle between the count and the
    indexed waits, are not accounted for.
    """

    name = "loading_masks"

    def __init__(
        self,
        poller: JsPredicatePoller,
        locators: Sequence[str] = LOADING_MASK_LOCATORS,
    ):
        self.poller = poller
        self.locators = tuple(locators)

    def _count(self, locator: str) -> int:
        try:
            return len(self.poller.driver.find_elements(locator))
        except Exception as e:
            raise EvaluationFailure(f"count of {locator}", e) from e

    def wait(self, timeout: int) -> CheckResult:
        timeout = validate_timeout(timeout)
        timed_out: List[str] = []

        for mask_locator in self.locators:
            count = self._count(mask_locator)
            for index in range(1, count + 1):
                indexed_locator = f"({mask_locator})[{index}]"
                outcome = self.poller.poll(
                    ElementNotVisiblePredicate(indexed_locator), timeout
                )
                if outcome is WaitOutcome.TIMED_OUT:
                    logger.warning(f"Loading mask still visible after {timeout}s: {indexed_locator}")
                    timed_out.append(indexed_locator)

        return CheckResult(
            self.name,
            "no loading mask is visible",
            timeout,
            WaitOutcome.TIMED_OUT if timed_out else WaitOutcome.SATISFIED,
            timed_out_locators=timed_out,
        )


# =============================================================================
# Orchestrator
# =============================================================================

class PageStabilityWaiter:
    """
    Runs the three readiness checks in a fixed order.

    Every check receives the full timeout regardless of the time spent in
    the previous ones, no check is skipped when an earlier one timed out,
    and nothing is retried. Timeouts are returned in the report, not raised.

    Usage:
        >>> waiter = PageStabilityWaiter(driver, pageload_timeout=30)
        >>> report = waiter.wait_for_stable(timeout=10)
        >>> report.is_stable
        True
    """

    def __init__(
        self,
        driver: BrowserDriver,
        pageload_timeout: int,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        mask_locators: Sequence[str] = LOADING_MASK_LOCATORS,
    ):
        """
        Args:
            driver: Browser adapter for the session under test
            pageload_timeout: Default timeout (seconds) when none is given
            poll_interval: Seconds between predicate evaluations
            clock: Monotonic time source
            mask_locators: Ordered loading mask XPaths
        """
        self.pageload_timeout = validate_timeout(pageload_timeout)
        self.clock = clock
        self.poller = JsPredicatePoller(driver, poll_interval=poll_interval, clock=clock)
        self.document_ready = DocumentReadyCheck(self.poller)
        self.ajax_idle = AjaxIdleCheck(self.poller)
        self.loading_masks = LoadingMaskAbsenceCheck(self.poller, mask_locators)

    def resolve_timeout(self, timeout: Optional[int] = None) -> int:
        if timeout is None:
            return self.pageload_timeout
        return validate_timeout(timeout)

    @allure.step("Wait for page to stabilize")
    def wait_for_stable(self, timeout: Optional[int] = None) -> StabilityReport:
        """
        Document ready, then AJAX idle, then loading masks gone.

        Args:
            timeout: Seconds per check; the configured page-load timeout if None

        Returns:
            StabilityReport with one result per check, in execution order
        """
        timeout = self.resolve_timeout(timeout)
        started = self.clock()

        report = StabilityReport(timeout=timeout)
        report.results.append(self.document_ready.wait(timeout))
        report.results.append(self.ajax_idle.wait(timeout))
        report.results.append(self.loading_masks.wait(timeout))
        report.elapsed = self.clock() - started

        logger.debug(
            f"Page stabilization finished in {report.elapsed:.1f}s: "
            + ", ".join(f"{r.name}={r.outcome.value}" for r in report.results)
        )
        return report

    def wait_for_document_ready(self, timeout: Optional[int] = None) -> CheckResult:
        return self.document_ready.wait(self.resolve_timeout(timeout))

    def wait_for_ajax_load(self, timeout: Optional[int] = None) -> CheckResult:
        return self.ajax_idle.wait(self.resolve_timeout(timeout))

    def wait_for_loading_mask_to_disappear(self, timeout: Optional[int] = None) -> CheckResult:
        return self.loading_masks.wait(self.resolve_timeout(timeout))


__all__ = [
    "AJAX_GRACE_SECONDS",
    "AjaxIdleCheck",
    "CheckResult",
    "DEFAULT_POLL_INTERVAL",
    "DocumentReadyCheck",
    "ElementNotVisiblePredicate",
    "ElementVisiblePredicate",
    "JsPredicate",
    "JsPredicatePoller",
    "LOADING_MASK_LOCATORS",
    "LoadingMaskAbsenceCheck",
    "PageStabilityWaiter",
    "Predicate",
    "StabilityReport",
    "WaitOutcome",
    "validate_timeout",
]
