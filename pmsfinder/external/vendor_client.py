"""
Shared HTTP client for the vendor colour APIs.

This module wraps a requests session with a bounded timeout, uniform
error surfacing and a shape-checked TTL cache for idempotent reads.
Vendor adapters (Matsui, Green Galaxy, FN-INK) compose a VendorClient
rather than subclassing it.
"""

import logging
from typing import Any, Callable, Dict, Optional

import requests

from .cache import ResponseCache
from ..errors import MalformedUpstreamShape, UpstreamTimeout, UpstreamUnavailable

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15  # seconds

ShapeCheck = Callable[[Any], None]


# ---------------------------------------------------------------------
# Shape checks: raise MalformedUpstreamShape, return None when fine
# ---------------------------------------------------------------------
def expect_object_or_list(data) -> None:
    if not isinstance(data, (dict, list)):
        raise MalformedUpstreamShape(f"expected an object or array, got {type(data).__name__}")


def expect_list(data, *required_fields: str) -> None:
    """Data must be a list whose first element (if any) has string ``required_fields``."""
    if not isinstance(data, list):
        raise MalformedUpstreamShape(f"expected an array, got {type(data).__name__}")
    if data:
        first = data[0]
        if not isinstance(first, dict):
            raise MalformedUpstreamShape("first element is not an object")
        for name in required_fields:
            if name not in first:
                raise MalformedUpstreamShape(f"first element missing '{name}' field")


class VendorClient:
    """HTTP client for one vendor API."""

    def __init__(
        self,
        name: str,
        base_url: str,
        cache: Optional[ResponseCache] = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
        verify: bool = True,
    ):
        """
        Initialize the client.

        Args:
            name: Vendor label used in errors, logs and cache keys
            base_url: API root, without trailing slash
            cache: Shared response cache; a private one is created if omitted
            timeout: Request timeout in seconds
            session: Optional pre-built requests session (tests inject fakes here)
            verify: Whether to verify TLS certificates
        """
        self.name = name
        self.base_url = base_url.rstrip("/")
        self.cache = cache if cache is not None else ResponseCache()
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        self.session.verify = verify

    def url_for(self, path: str) -> str:
        path = (path or "").lstrip("/")
        return f"{self.base_url}/{path}" if path else self.base_url

    def get(self, path: str, use_cache: bool = False, shape_check: Optional[ShapeCheck] = None) -> Any:
        """
        GET ``path`` and return the parsed JSON.

        Args:
            path: Path relative to the base URL
            use_cache: Serve from / admit to the TTL cache
            shape_check: Check run before a response is admitted to the cache

        Raises:
            UpstreamTimeout: If the vendor does not answer within the timeout
            UpstreamUnavailable: On connection failure, HTTP error or non-JSON body
        """
        cache_key = f"{self.name}:GET:{path}"
        if use_cache:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        data = self._request("GET", path)
        if use_cache:
            self.admit(cache_key, data, shape_check)
        return data

    def post(
        self,
        path: str,
        body: Dict,
        cache_key: Optional[str] = None,
        shape_check: Optional[ShapeCheck] = None,
    ) -> Any:
        """
        POST a JSON body and return the parsed JSON.

        POSTs are only cached when the caller marks them idempotent by
        passing ``cache_key`` (GraphQL reads).

        Raises:
            UpstreamTimeout: If the vendor does not answer within the timeout
            UpstreamUnavailable: On connection failure, HTTP error or non-JSON body
        """
        if cache_key:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        data = self._request("POST", path, body)
        if cache_key:
            self.admit(cache_key, data, shape_check)
        return data

    def admit(self, cache_key: str, data: Any, shape_check: Optional[ShapeCheck]) -> None:
        """Cache a response only when it passes the shape check."""
        check = shape_check or expect_object_or_list
        try:
            check(data)
        except MalformedUpstreamShape as e:
            logger.warning(f"[{self.name}] Skipping cache for {cache_key}: {e.message}")
            return
        self.cache.set(cache_key, data)

    def _request(self, method: str, path: str, body: Optional[Dict] = None) -> Any:
        url = self.url_for(path)
        try:
            if method == "GET":
                response = self.session.get(url, timeout=self.timeout)
            else:
                response = self.session.post(url, json=body, timeout=self.timeout)
        except requests.Timeout as e:
            raise UpstreamTimeout(f"{self.name} API timeout after {self.timeout}s", vendor=self.name) from e
        except requests.RequestException as e:
            raise UpstreamUnavailable(f"Network error calling {self.name} API: {str(e)}", vendor=self.name) from e

        return self._handle_response(response)

    def _handle_response(self, response) -> Any:
        """
        Turn a response into parsed JSON or a vendor error.

        Raises:
            UpstreamUnavailable: For non-2xx statuses and non-JSON bodies
        """
        status = response.status_code
        if 500 <= status < 600:
            raise UpstreamUnavailable(f"{self.name} server error ({status})", vendor=self.name)
        elif status == 404:
            raise UpstreamUnavailable(f"{self.name} resource not found (404): {response.url}", vendor=self.name)
        elif status == 429:
            retry_after = response.headers.get("Retry-After", "60")
            raise UpstreamUnavailable(
                f"{self.name} rate limit exceeded. Retry after {retry_after} seconds.", vendor=self.name
            )
        elif not 200 <= status < 300:
            raise UpstreamUnavailable(f"{self.name} client error ({status})", vendor=self.name)

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamUnavailable(f"Invalid JSON from {self.name} API", vendor=self.name) from e
