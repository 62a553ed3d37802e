"""
================================================================================
Root Pytest Configuration
================================================================================

Markers shared by every suite. Tests are tagged with their suite marker
(ui, webapi, unit) from the directory they are collected from, so
`run_tests.py --tags unit` works without decorating each module.

================================================================================
"""

from pathlib import Path

import pytest


MARKERS = {
    "P0": "Critical priority tests - must pass for deployment",
    "P1": "High priority tests - important functionality",
    "P2": "Medium priority tests - edge cases and minor features",
    "P3": "Low priority tests - extensive validation",
    "smoke": "Quick verification tests",
    "regression": "Full regression test suite",
    "unit": "Browser-free tests against fake drivers and a virtual clock",
    "e2e": "End-to-end tests against a live Magento instance",
    "ui": "Tests driving a real browser",
    "webapi": "Magento Web API tests",
    "readiness": "Page readiness waits",
}

SUITE_DIRECTORIES = {
    "ui_testing": pytest.mark.ui,
    "api_testing": pytest.mark.webapi,
    "unit": pytest.mark.unit,
}


def pytest_configure(config):
    for name, description in MARKERS.items():
        config.addinivalue_line("markers", f"{name}: {description}")


def pytest_collection_modifyitems(config, items):
    for item in items:
        parts = Path(str(item.fspath)).parts
        for directory, marker in SUITE_DIRECTORIES.items():
            if directory in parts:
                item.add_marker(marker)


def pytest_report_header(config):
    return ["Magento WebDriver Test Kit"]
