"""
Exception hierarchy for readiness waits and browser actions.
"""

from __future__ import annotations

from typing import Optional


class BrowserDriverError(Exception):
    """Raised for browser session problems (no session, blank page, ...)."""
    pass


class ReadinessError(Exception):
    """Base class for page readiness failures."""
    pass


class PredicateNeverSatisfied(ReadinessError):
    """
    Raised when a readiness wait timed out.

    Attributes:
        predicate: Description of the evaluated predicate
        timeout: Timeout in seconds that elapsed
    """

    def __init__(self, predicate: str, timeout: int, detail: Optional[str] = None):
        self.predicate = predicate
        self.timeout = timeout
        message = f"Timed out after {timeout}s waiting for: {predicate}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class EvaluationFailure(ReadinessError):
    """Raised when a predicate could not be evaluated against the page."""

    def __init__(self, predicate: str, cause: Exception):
        self.predicate = predicate
        self.cause = cause
        super().__init__(f"Could not evaluate '{predicate}': {cause}")


class AmbiguousElementMatch(Exception):
    """Raised when a selector expected to match at most once matches more."""

    def __init__(self, selector: str, count: int):
        self.selector = selector
        self.count = count
        super().__init__(
            f"more than one element matches selector {selector} ({count} found)"
        )


__all__ = [
    "AmbiguousElementMatch",
    "BrowserDriverError",
    "EvaluationFailure",
    "PredicateNeverSatisfied",
    "ReadinessError",
]
