"""
Katha API Client - Unified HTTP client for the marketplace backend.
Centralizes headers, timeouts, and error handling.
"""

import logging
import requests
from typing import Dict, Any, Optional

from katha.config import get_config
from katha.errors import APIError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "katha-session-editor/1.0",
}


def _extract_backend_message(response: requests.Response) -> Optional[str]:
    """Pull the human-readable error out of an error response body"""
    try:
        error_data = response.json()
    except ValueError:
        return None
    if isinstance(error_data, dict):
        for key in ("error", "message"):
            value = error_data.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return None


class KathaAPIClient:
    """HTTP client for the coach-facing marketplace API"""

    def __init__(self, base_url: str, api_token: str, timeout: int = 10):
        """
        Initialize API client.

        Args:
            base_url: API root, e.g. "https://thekatha.example/api"
            api_token: Coach Bearer token
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.api_token = api_token
        self.timeout = timeout

    def _get_headers(self, content_type: Optional[str] = None) -> Dict[str, str]:
        """
        Get headers for request.

        Args:
            content_type: Content-Type header value (for requests with a body)

        Returns:
            Headers dictionary
        """
        headers = DEFAULT_HEADERS.copy()
        headers["Authorization"] = f"Bearer {self.api_token}"
        if content_type:
            headers["Content-Type"] = content_type
        return headers

    def get_full_url(self, path: str) -> str:
        """Get full URL for an API endpoint"""
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        endpoint: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Send a request and decode the JSON response.

        Args:
            method: HTTP method
            endpoint: API endpoint path (e.g., "coach-profile/sessions")
            data: JSON body, if any

        Returns:
            Decoded response body, or None for an empty body

        Raises:
            APIError: On HTTP errors, timeouts, connection failures and
                undecodable responses
        """
        url = self.get_full_url(endpoint)
        headers = self._get_headers(
            content_type="application/json" if data is not None else None
        )

        try:
            logger.debug(f"{method} {endpoint}")
            response = requests.request(
                method, url, headers=headers, json=data, timeout=self.timeout
            )
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            backend_message = (
                _extract_backend_message(e.response) if e.response is not None else None
            )
            logger.warning(f"HTTP {status} error for {method} {endpoint}: {backend_message}")
            raise APIError(
                f"Request failed with status {status}",
                status_code=status,
                backend_message=backend_message,
            ) from e
        except requests.exceptions.Timeout as e:
            logger.error(f"Timeout after {self.timeout}s for {method} {endpoint}")
            raise APIError("The server took too long to respond.") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Network error for {method} {endpoint}: {e}")
            raise APIError("Could not reach the server.") from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Non-JSON response for {method} {endpoint}: {response.text[:200]}")
            raise APIError("The server returned an unexpected response.") from e

    def get(self, endpoint: str) -> Optional[Dict[str, Any]]:
        return self.request("GET", endpoint)

    def post(self, endpoint: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.request("POST", endpoint, data)

    def put(self, endpoint: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.request("PUT", endpoint, data)

    def delete(self, endpoint: str) -> Optional[Dict[str, Any]]:
        return self.request("DELETE", endpoint)


# Singleton instance for convenience
_client = None


def get_api_client() -> KathaAPIClient:
    """Get singleton API client instance"""
    global _client
    if _client is None:
        config = get_config()
        _client = KathaAPIClient(
            base_url=config.api_base_url,
            api_token=config.api_token,
            timeout=config.request_timeout,
        )
    return _client
