"""
================================================================================
Magento Tools
================================================================================

Support utilities for the Magento WebDriver test framework.

Modules:
    - common: Shared configuration and logging utilities
    - credentials: Secret reference resolution for sensitive test data
    - report_tools: Allure attachment helpers

Example:
    from magento_tools.common import get_config, init_logger
    from magento_tools.credentials import CredentialStore

    init_logger()
    store = CredentialStore()
    otp_secret = store.decrypt_secret_value("{{_CREDS.magento/tfa/OTP_SHARED_SECRET}}")

================================================================================
"""

__version__ = "1.0.0"

__all__ = [
    "common",
    "credentials",
    "report_tools",
]
