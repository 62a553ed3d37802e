"""
Test suites package.

This repository keeps `testsuites` importable to support:
  - the Magento framework modules under `ui_testing` and `api_testing`
  - programmatic runners (e.g., `run_tests.py`)
  - CI/CD module imports

All configuration shipped here is demo-safe and holds no real secrets.
"""
