"""
Base HTTP client with robust error handling.

Thread-safe, pooled, no retries: a signed request is sent exactly once and
its outcome surfaces to the caller unmodified.

PERFORMANCE OPTIMIZATION: orjson for JSON parsing (releases GIL)
"""

import orjson
import requests
from requests.adapters import HTTPAdapter
from typing import Optional, Any, Dict
from urllib.parse import urljoin
import logging

from ..config import ClobSettings
from ..exceptions import APIError, TimeoutError
from .. import metrics

logger = logging.getLogger(__name__)


class BaseAPIClient:
    """
    Base HTTP client with error handling and connection pooling.

    Thread-safe for concurrent use (requests.Session with a pooled adapter).
    """

    def __init__(self, base_url: str, settings: ClobSettings):
        """
        Initialize base API client.

        Args:
            base_url: API base URL
            settings: Client settings
        """
        self.base_url = base_url.rstrip("/")
        self.settings = settings

        self.session = requests.Session()

        adapter = HTTPAdapter(
            pool_connections=settings.pool_connections,
            pool_maxsize=settings.pool_maxsize,
            max_retries=0,
            pool_block=False
        )
        self.session.mount('https://', adapter)
        self.session.mount('http://', adapter)

        self.session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Connection": "keep-alive",
        })

        self.timeout = (settings.connect_timeout, settings.request_timeout)

    def _make_request(
        self,
        method: str,
        path: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[str] = None
    ) -> Any:
        """
        Make HTTP request with error handling.

        Args:
            method: HTTP method
            path: Request path (signed as-is, without query string)
            headers: Additional headers (auth)
            params: Query parameters
            body: Serialized request body, sent byte-for-byte

        Returns:
            Decoded JSON response (None for an empty body)

        Raises:
            APIError: On HTTP errors (status >= 400) and connection failures
            TimeoutError: On timeout
        """
        url = urljoin(self.base_url + "/", path.lstrip("/"))

        if self.settings.log_requests:
            logger.debug(f"{method} {url} params={params}")

        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=headers,
                params=params,
                data=body.encode("utf-8") if body is not None else None,
                timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            metrics.track_api_request(method, path, "timeout")
            logger.error(f"Request timeout: {method} {path}")
            raise TimeoutError(f"Request timeout: {method} {path}") from e
        except requests.exceptions.RequestException as e:
            metrics.track_api_request(method, path, "error")
            logger.error(f"Connection error: {method} {path}: {type(e).__name__}")
            raise APIError(f"Connection error: {method} {path}: {type(e).__name__}") from e

        metrics.track_api_request(method, path, str(response.status_code))

        if response.status_code >= 400:
            error_data = None
            error_msg = f"{method} {path} failed with {response.status_code}"
            try:
                error_data = orjson.loads(response.content)
                error_msg += f": {error_data}"
            except orjson.JSONDecodeError:
                error_msg += f": {response.text[:200]}"

            raise APIError(error_msg, status_code=response.status_code, response=error_data)

        if not response.content:
            return None

        try:
            return orjson.loads(response.content)
        except orjson.JSONDecodeError as e:
            logger.error(f"Invalid JSON response: {response.text[:200]}")
            raise APIError(
                f"Invalid JSON response from {method} {path}",
                status_code=response.status_code
            ) from e

    def get(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> Any:
        """Make GET request."""
        return self._make_request("GET", path, headers=headers, params=params)

    def close(self) -> None:
        """Close session and cleanup resources."""
        self.session.close()
        logger.info("API client session closed")
