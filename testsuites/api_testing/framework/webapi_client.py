"""
================================================================================
Magento Web API Client with Allure Integration
================================================================================

HTTP client used by WebDriver tests to run remote management commands:
    - Admin token acquisition (rest/V1/integration/admin/token)
    - Magento CLI passthrough (MAGENTO_CLI_COMMAND_PATH endpoint)
    - Entity deletion by URL
    - Automatic retry with exponential backoff on network errors
    - Allure request/response reporting with secret redaction

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
import time
from typing import Any, Dict, Iterable, Optional, Set

import allure
import httpx
from allure_commons.types import AttachmentType
from loguru import logger

from magento_tools.common import GlobalConfig


# Maximum response length to include in Allure reports
MAX_RESPONSE_LENGTH = 3000

ADMIN_TOKEN_PATH = "rest/V1/integration/admin/token"

# Default retry settings
DEFAULT_RETRY_COUNT = 3
DEFAULT_RETRY_BACKOFF = 0.5
DEFAULT_RETRY_MAX_WAIT = 5.0

SENSITIVE_HEADERS = {"authorization", "cookie", "set-cookie"}
SENSITIVE_FIELDS = ("password", "secret", "token", "api_key", "authorization")


class WebapiError(Exception):
    """Raised when the Magento Web API rejects a request."""
    pass


def cli_endpoint(base_url: str, command_path: str) -> str:
    """
    Build the CLI endpoint URL from the storefront URL.

    'index.php' is removed from the base URL when present.

    Example:
        >>> cli_endpoint("http://magento.local/index.php/", "dev/tests/utils/command.php")
        'http://magento.local/dev/tests/utils/command.php'
    """
    root = base_url.rstrip("/").replace("index.php", "").rstrip("/")
    return f"{root}/{command_path.lstrip('/')}"


class MagentoWebapiClient:
    """
    Admin-authenticated client for Magento remote operations.

    Usage:
        >>> with MagentoWebapiClient() as client:
        ...     client.magento_cli("cache:flush")
        ...     client.delete_entity_by_url("rest/V1/products/SKU-1")
    """

    def __init__(
        self,
        config: Optional[GlobalConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """
        Args:
            config: Configuration instance. Uses the global one if None.
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        config = config or GlobalConfig()

        self.base_url = str(config.get("magento.base_url", "http://magento.local/")).rstrip("/") + "/"
        self.username = config.get("magento.admin_username", "")
        self.password = config.get("magento.admin_password", "")
        self.cli_command_path = config.get("magento.cli_command_path", "")
        self.cli_command_parameter = config.get("magento.cli_command_parameter", "command")
        self.timeout = int(config.get("webapi.timeout", 30))
        self.retry_count = int(config.get("webapi.retry_count", DEFAULT_RETRY_COUNT))
        self.retry_backoff = float(config.get("webapi.retry_backoff", DEFAULT_RETRY_BACKOFF))
        self.retry_max_wait = float(config.get("webapi.retry_max_wait", DEFAULT_RETRY_MAX_WAIT))

        self._transport = transport
        self._token: Optional[str] = None
        self.session: Optional[httpx.Client] = None

    def __enter__(self) -> "MagentoWebapiClient":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def open(self) -> None:
        """Create the HTTP session if it is not open yet."""
        if self.session is None:
            self.session = httpx.Client(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )

    def close(self) -> None:
        """Close the HTTP session and forget the token."""
        if self.session:
            self.session.close()
            self.session = None
        self._token = None

    # =========================================================================
    # Magento operations
    # =========================================================================

    def get_auth_token(self) -> str:
        """
        Return the admin token, requesting it on first use.

        Raises:
            WebapiError: When the credentials are rejected
        """
        if self._token:
            return self._token

        response = self.request(
            "POST",
            ADMIN_TOKEN_PATH,
            json={"username": self.username, "password": self.password},
        )
        if response.status_code != 200:
            raise WebapiError(
                f"Admin token request failed with {response.status_code}: {response.text[:200]}"
            )

        self._token = response.json()
        logger.debug("Acquired Magento admin token")
        return self._token

    def magento_cli(
        self,
        command: str,
        arguments: Optional[str] = None,
        secret: bool = False,
    ) -> str:
        """
        Run a bin/magento command through the exposed CLI endpoint.

        Args:
            command: Command, e.g. "cache:flush"
            arguments: Extra arguments string
            secret: The command carries resolved credentials; keep it out of reports

        Returns:
            Response body returned by the endpoint
        """
        url = cli_endpoint(self.base_url, self.cli_command_path)
        data = {
            "token": self.get_auth_token(),
            self.cli_command_parameter: command,
            "arguments": arguments or "",
        }
        title = "Magento CLI: ***MASKED***" if secret else f"Magento CLI: {command}"
        redact = {self.cli_command_parameter} if secret else set()
        with allure.step(title):
            response = self.request("POST", url, redact=redact, data=data)
        return response.text

    def delete_entity_by_url(self, url: str) -> str:
        """Send an authenticated DELETE to ``url`` and return the body."""
        headers = {"Authorization": f"Bearer {self.get_auth_token()}"}
        response = self.request("DELETE", url, headers=headers)
        return response.text

    # =========================================================================
    # Transport
    # =========================================================================

    def request(
        self,
        method: str,
        url: str,
        redact: Iterable[str] = (),
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Execute HTTP request with retry and Allure logging.

        Args:
            method: HTTP method
            url: URL, relative to the base URL or absolute
            redact: Extra body field names to mask in the report
            **kwargs: Passed to httpx

        Raises:
            httpx.HTTPError: When network retries are exhausted
            WebapiError: When rate limit retries are exhausted
        """
        self.open()

        for attempt in range(self.retry_count):
            try:
                response = self.session.request(method, url, **kwargs)

                if response.status_code == 429:
                    retry_after = self._parse_retry_after(response)
                    logger.warning(
                        f"Rate limited (429). Waiting {retry_after}s before retry. "
                        f"Attempt {attempt + 1}/{self.retry_count}"
                    )
                    time.sleep(retry_after)
                    continue

                self._log_to_allure(method, url, kwargs, response, set(redact))
                return response

            except (httpx.TimeoutException, httpx.NetworkError) as e:
                if attempt < self.retry_count - 1:
                    wait_time = self._calculate_backoff(attempt)
                    logger.warning(
                        f"Network error: {e}. Retrying in {wait_time}s. "
                        f"Attempt {attempt + 1}/{self.retry_count}"
                    )
                    time.sleep(wait_time)
                else:
                    logger.error(f"All retries exhausted. Last error: {e}")
                    raise

        raise WebapiError(f"Rate limit exceeded after {self.retry_count} retries")

    def _parse_retry_after(self, response: httpx.Response) -> float:
        try:
            wait_time = float(response.headers.get("Retry-After", ""))
        except ValueError:
            wait_time = self.retry_backoff
        return min(wait_time, self.retry_max_wait)

    def _calculate_backoff(self, attempt: int) -> float:
        """base * (2 ^ attempt), capped at max_wait"""
        return min(self.retry_backoff * (2 ** attempt), self.retry_max_wait)

    def _log_to_allure(
        self,
        method: str,
        url: str,
        kwargs: Dict[str, Any],
        response: httpx.Response,
        redact: Set[str],
    ) -> None:
        """Attach redacted request and truncated response to the report."""
        with allure.step(f"{method} {url} -> {response.status_code}"):
            headers = self._redact_headers(kwargs.get("headers") or {})
            if headers:
                allure.attach(
                    json.dumps(headers, ensure_ascii=False, indent=2),
                    name="Request Headers",
                    attachment_type=AttachmentType.JSON,
                )

            body = self._redact_body(kwargs.get("json") or kwargs.get("data"), redact)
            if body:
                allure.attach(
                    json.dumps(body, ensure_ascii=False, indent=2, default=str),
                    name="Request Body",
                    attachment_type=AttachmentType.JSON,
                )

            content = response.text or "<empty>"
            if method == "POST" and url == ADMIN_TOKEN_PATH:
                content = "***MASKED***"
            if len(content) > MAX_RESPONSE_LENGTH:
                content = (
                    f"{content[:MAX_RESPONSE_LENGTH]}\n\n"
                    f"... [Truncated, full length: {len(content)} chars] ..."
                )
            allure.attach(
                content,
                name="Response Body",
                attachment_type=AttachmentType.TEXT,
            )

    def _redact_headers(self, headers: Dict[str, Any]) -> Dict[str, Any]:
        """Mask sensitive header values before logging."""
        return {
            key: "***MASKED***" if key.lower() in SENSITIVE_HEADERS else value
            for key, value in headers.items()
        }

    def _redact_body(self, payload: Any, extra_fields: Iterable[str] = ()) -> Any:
        """Recursively mask sensitive fields in request bodies."""
        extra_fields = set(extra_fields)
        if isinstance(payload, dict):
            return {
                key: "***MASKED***"
                if key in extra_fields
                or any(token in str(key).lower() for token in SENSITIVE_FIELDS)
                else self._redact_body(value, extra_fields)
                for key, value in payload.items()
            }
        if isinstance(payload, list):
            return [self._redact_body(item, extra_fields) for item in payload]
        return payload


__all__ = [
    "MagentoWebapiClient",
    "WebapiError",
    "cli_endpoint",
]
