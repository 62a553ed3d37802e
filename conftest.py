"""
Repository-level pytest configuration (demo-safe).

Why this exists:
  - Provide safe defaults for local runs (no secrets embedded)
  - Keep behavior explicit and discoverable

Important:
  Values below are placeholders for a local Magento instance.
  Real projects should load secrets from a secure secret manager in CI/CD.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator

import pytest


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent


@pytest.fixture(scope="session", autouse=True)
def _demo_safe_env_defaults() -> Generator[None, None, None]:
    """
    Set demo-safe environment defaults if not already provided by the user/CI.

    This prevents accidental leakage and keeps local runs predictable.
    """
    defaults = {
        "MAGENTO_BASE_URL": "http://magento.local/",
        "MAGENTO_BACKEND_NAME": "admin",
        "MAGENTO_ADMIN_USERNAME": "admin",
        "MAGENTO_ADMIN_PASSWORD": "demo_password",
    }

    for k, v in defaults.items():
        os.environ.setdefault(k, v)

    yield
