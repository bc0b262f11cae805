"""HTTP client for the shop backend.

Wraps a single ``httpx.AsyncClient`` so connections are pooled for the
lifetime of the app. Every call goes through ``request`` which attaches
the bearer token and maps failed responses onto the ``api.errors``
hierarchy.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from api.errors import ApiError, AuthError, NotFoundError
from utils import config
from utils.logger import get_logger

_logger = get_logger(__name__)


def _error_message(response: httpx.Response, fallback: str) -> str:
    """message field of a JSON error body, fallback otherwise."""
    try:
        data = response.json()
    except ValueError:
        return fallback
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return fallback


class ApiClient:
    """
    Thin async REST client.

    The client holds no session state; callers pass the token they want
    to authenticate with, so the storefront and admin sessions can share
    one connection pool.
    """

    def __init__(
        self,
        base_url: str = config.API_URL,
        timeout: float = config.HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._http = httpx.AsyncClient(
            base_url=self.base_url, timeout=timeout, transport=transport
        )

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @staticmethod
    def _headers(token: Optional[str]) -> Dict[str, str]:
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    async def request(
        self,
        method: str,
        path: str,
        *,
        token: Optional[str] = None,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        files: Any = None,
    ) -> Any:
        """
        Issue a request and return the decoded JSON body (None when empty).

        Raises:
            AuthError: on 401, the caller is expected to end the session.
            NotFoundError: on 404.
            ApiError: on any other non-2xx status or transport failure.
        """
        try:
            response = await self._http.request(
                method,
                path,
                headers=self._headers(token),
                json=json,
                params=params,
                files=files,
            )
        except httpx.HTTPError as e:
            _logger.error(f"{method} {path} failed: {e!r}")
            raise ApiError(f"Could not reach server: {e}") from e

        if response.status_code == 401:
            message = _error_message(response, AuthError.DEFAULT_MESSAGE)
            _logger.warning(f"{method} {path} rejected: {message}")
            raise AuthError(message)

        if response.status_code == 404:
            raise NotFoundError(_error_message(response, "Not found"))

        if response.is_error:
            message = _error_message(response, f"HTTP {response.status_code}")
            _logger.error(f"{method} {path} -> {response.status_code}: {message}")
            raise ApiError(message, response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ApiError("Malformed response from server", response.status_code) from e

    async def get(self, path: str, **kwargs) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs) -> Any:
        return await self.request("DELETE", path, **kwargs)
