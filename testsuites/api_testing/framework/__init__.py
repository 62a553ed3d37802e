"""
================================================================================
Web API Framework
================================================================================

Magento Web API access used by browser tests for remote management.

Modules:
    - webapi_client: Admin-token client with retry and Allure logging

Author: Automation Team
License: MIT
================================================================================
"""

from .webapi_client import MagentoWebapiClient, WebapiError, cli_endpoint

__all__ = [
    "MagentoWebapiClient",
    "WebapiError",
    "cli_endpoint",
]
