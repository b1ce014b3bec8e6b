"""
Base API client for the gym ledger application.
"""

import json
import threading
import time
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from gymledger.exceptions import APIError
from gymledger.exceptions import APIResponseError
from gymledger.exceptions import APITimeoutError
from gymledger.exceptions import APIValidationError
from gymledger.utils.logging_utils import LoggerMixin


JSONData = dict[str, Any] | list[dict[str, Any]] | None


class BaseAPI(LoggerMixin):
    """Base class for API clients."""

    # Default timeouts (connection timeout, read timeout)
    DEFAULT_TIMEOUT = (7, 20)

    # Failures are handled by the caller's fallback, not by resending
    DEFAULT_RETRY_TOTAL = 0

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str] | None = None,
        timeout: tuple[float, float] | None = None
    ):
        """Initialize API client.

        Args:
            base_url: Base URL for API
            headers: Headers sent with every request
            timeout: (connect, read) timeout in seconds
        """
        super().__init__()

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout or self.DEFAULT_TIMEOUT
        # requests.Session is not thread-safe; the facade calls in from worker threads
        self._session_lock = threading.Lock()
        self.session = self._create_session()
        if headers:
            self.session.headers.update(headers)

        self.logger.debug(f"BaseAPI: base_url: {self.base_url}")

    def _create_session(self) -> requests.Session:
        """
        Create a requests session with the configured retry strategy.

        Returns:
            Session with mounted adapters
        """
        session = requests.Session()

        retry_strategy = Retry(
            total=self.DEFAULT_RETRY_TOTAL,
            connect=self.DEFAULT_RETRY_TOTAL,
            read=self.DEFAULT_RETRY_TOTAL,
            status=self.DEFAULT_RETRY_TOTAL,
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        return session

    def close(self) -> None:
        """Close the underlying HTTP session."""
        with self._session_lock:
            self.session.close()

    def _validate_response(self, response: requests.Response) -> None:
        """
        Validate response and raise appropriate errors.

        Args:
            response: Response to validate

        Raises:
            APIResponseError: If response status code indicates an error
        """
        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            error_msg = f"HTTP {response.status_code}"
            try:
                error_data = response.json()
                if isinstance(error_data, dict):
                    detail = error_data.get('message', error_data.get('error'))
                    if detail:
                        error_msg = f"{error_msg}: {detail}"
            except (ValueError, AttributeError):
                if response.text:
                    error_msg = f"{error_msg}: {response.text[:200]}"

            raise APIResponseError(f"Request failed: {error_msg}", response=response) from e

    def _parse_response(self, response: requests.Response) -> JSONData:
        """Parse response content.

        Args:
            response: Response object to parse

        Returns:
            Parsed response data or None if empty

        Raises:
            APIValidationError: If response cannot be parsed
        """
        content = (response.text or "").strip()
        if not content or content == "null":
            return None

        try:
            result: dict[str, Any] | list[dict[str, Any]] = json.loads(content)
            return result
        except json.JSONDecodeError as e:
            raise APIValidationError(f"Failed to parse response: {content[:100]}...") from e

    def _make_request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, str] | None = None,
        data: dict[str, Any] | list[dict[str, Any]] | None = None,
        headers: dict[str, str] | None = None,
        timeout: tuple[float, float] | None = None,
        validate_response: bool = True
    ) -> JSONData:
        """
        Make an API request.

        Args:
            method: HTTP method
            endpoint: API endpoint, relative to the base URL
            params: Query parameters
            data: Request body data
            headers: Extra headers for this request only
            timeout: Request timeout (connection timeout, read timeout)
            validate_response: Whether to validate the response

        Returns:
            Response data

        Raises:
            APITimeoutError: If request times out
            APIResponseError: If request fails
            APIValidationError: If response validation fails
            APIError: For other errors
        """
        start_time = time.time()
        url = f"{self.base_url}/{endpoint.lstrip('/')}"

        if timeout is None:
            timeout = self.timeout

        try:
            with self._session_lock:
                response = self.session.request(
                    method=method,
                    url=url,
                    params=params,
                    json=data,
                    headers=headers,
                    timeout=timeout
                )

            if validate_response:
                self._validate_response(response)

            return self._parse_response(response)

        except requests.exceptions.Timeout as e:
            elapsed = time.time() - start_time
            self.logger.error(f"BaseAPI: {method} {endpoint} timed out after {elapsed:.2f} seconds with timeout settings {timeout}: {e}")
            raise APITimeoutError(f"Request timed out after {elapsed:.2f} seconds: {e!s}") from e

        except requests.exceptions.RequestException as e:
            elapsed = time.time() - start_time
            self.logger.error(f"BaseAPI: {method} {endpoint} failed after {elapsed:.2f} seconds: {e}")
            raise APIResponseError(f"Request failed after {elapsed:.2f} seconds: {e!s}") from e

        except (APIResponseError, APIValidationError) as e:
            elapsed = time.time() - start_time
            self.logger.error(f"BaseAPI: {method} {endpoint} API error after {elapsed:.2f} seconds: {e}")
            raise

        except Exception as e:
            elapsed = time.time() - start_time
            self.logger.error(f"BaseAPI: {method} {endpoint} unexpected error after {elapsed:.2f} seconds: {e}")
            raise APIError(f"Unexpected error after {elapsed:.2f} seconds: {e!s}") from e
