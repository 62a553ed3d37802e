"""
================================================================================
Credential Store
================================================================================

Resolves secret references used in test data so that sensitive values are
only materialized right before they are sent to the browser or the server.

Reference syntax:
    {{_CREDS.magento/tfa/OTP_SHARED_SECRET}}

Resolution order:
    1. Environment variable MAGENTO_CREDS_<KEY>
       (key upper-cased, '/', '-' and '.' replaced by '_')
    2. Credentials file (key=value per line, '#' comments)

Values are never logged; only reference keys are.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Dict, Optional

from loguru import logger

from magento_tools.common import get_config


SECRET_REFERENCE_PATTERN = re.compile(r"\{\{_CREDS\.([^}\s]+)\}\}")

ENV_PREFIX = "MAGENTO_CREDS_"


class CredentialError(Exception):
    """Raised when a secret reference cannot be resolved."""
    pass


def env_name_for_key(key: str) -> str:
    """Map a credential key to the environment variable that may hold it."""
    sanitized = key.upper().replace("/", "_").replace("-", "_").replace(".", "_")
    return f"{ENV_PREFIX}{sanitized}"


class CredentialStore:
    """
    Lookup of secret values behind {{_CREDS.<key>}} references.

    Usage:
        >>> store = CredentialStore()
        >>> store.decrypt_secret_value("{{_CREDS.magento/admin_password}}")
        '...'
        >>> store.decrypt_all_secrets_in_string(
        ...     "config:set payment/key {{_CREDS.payment/key}}"
        ... )
    """

    def __init__(self, credentials_file: Optional[Path] = None) -> None:
        """
        Args:
            credentials_file: key=value file. Defaults to the
                              ``credentials.file`` config value.
        """
        if credentials_file is None:
            credentials_file = Path(get_config("credentials.file", ".credentials"))
        self.credentials_file = Path(credentials_file)
        self._file_values: Optional[Dict[str, str]] = None

    def _load_file(self) -> Dict[str, str]:
        if self._file_values is not None:
            return self._file_values

        values: Dict[str, str] = {}
        if self.credentials_file.exists():
            with open(self.credentials_file, "r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if not line or line.startswith("#") or "=" not in line:
                        continue
                    key, value = line.split("=", 1)
                    values[key.strip()] = value.strip()
            logger.debug(
                f"Loaded {len(values)} credential keys from {self.credentials_file}"
            )
        else:
            logger.debug(f"Credentials file not found: {self.credentials_file}")

        self._file_values = values
        return values

    def get_secret(self, key: str) -> str:
        """
        Resolve a single credential key.

        Raises:
            CredentialError: If the key is unknown
        """
        value = os.environ.get(env_name_for_key(key))
        if value is None:
            value = self._load_file().get(key)
        if value is None:
            raise CredentialError(
                f"Credential '{key}' not found in environment "
                f"({env_name_for_key(key)}) or {self.credentials_file}"
            )
        return value

    def decrypt_secret_value(self, value: str) -> str:
        """
        Resolve a value that is exactly one secret reference.

        Plain values (no reference) are returned unchanged.
        """
        match = SECRET_REFERENCE_PATTERN.fullmatch(value.strip())
        if not match:
            return value
        return self.get_secret(match.group(1))

    def decrypt_all_secrets_in_string(self, text: str) -> str:
        """Replace every secret reference inside ``text``."""
        return SECRET_REFERENCE_PATTERN.sub(
            lambda m: self.get_secret(m.group(1)), text
        )

    def clear(self) -> None:
        """Forget cached file contents."""
        self._file_values = None


__all__ = [
    "CredentialError",
    "CredentialStore",
    "SECRET_REFERENCE_PATTERN",
    "env_name_for_key",
]
