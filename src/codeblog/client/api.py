"""HTTP client for the codeblog API.

Every call returns the decoded JSON body. Any failure (transport error or a
non-success status) raises ``ApiError`` carrying a human-readable message.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

import httpx

from codeblog.core.settings import settings

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong"


class ApiError(RuntimeError):
    """Raised when a gateway call fails.

    ``status_code`` is ``None`` for transport failures (backend unreachable,
    timeouts) and the HTTP status otherwise.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _extract_message(body: Any) -> str | None:
    if not isinstance(body, Mapping):
        return None
    message = body.get("message") or body.get("detail")
    if isinstance(message, str) and message:
        return message
    if isinstance(message, list):
        # FastAPI validation errors: a list of {"loc": ..., "msg": ...}
        parts = [item.get("msg") for item in message if isinstance(item, Mapping)]
        joined = "; ".join(part for part in parts if part)
        return joined or None
    return None


class BlogAPIClient:
    """Async wrapper around the codeblog HTTP surface."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or settings.api_base_url
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=self.base_url,
                    timeout=httpx.Timeout(self.timeout),
                    transport=self._transport,
                    headers={"Accept": "application/json"},
                )
        return self._client

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @staticmethod
    def _handle_response(response: httpx.Response) -> Any:
        if not response.is_success:
            message = GENERIC_ERROR_MESSAGE
            try:
                message = _extract_message(response.json()) or message
            except ValueError:
                logger.error("Non-JSON error from API (%s): %s", response.status_code, response.text)
            raise ApiError(message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as exc:
            raise ApiError("Invalid JSON in API response", status_code=response.status_code) from exc

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_data: Any | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        client = await self._ensure_client()
        try:
            response = await client.request(method, path, json=json_data, params=params)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ApiError(f"Network request failed: {exc}") from exc
        return self._handle_response(response)

    async def get_posts(self, params: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """List posts; ``params`` become query parameters (status, author, tag, limit, skip)."""
        return await self._request("GET", "/posts", params=dict(params or {}))

    async def search_posts(self, query: str) -> dict[str, Any]:
        return await self._request("GET", "/posts/search", params={"q": query})

    async def get_post(self, post_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/posts/{post_id}")

    async def create_post(self, post_data: Mapping[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/posts", json_data=dict(post_data))

    async def update_post(self, post_id: str, post_data: Mapping[str, Any]) -> dict[str, Any]:
        return await self._request("PUT", f"/posts/{post_id}", json_data=dict(post_data))

    async def delete_post(self, post_id: str) -> dict[str, Any]:
        return await self._request("DELETE", f"/posts/{post_id}")

    async def add_reaction(self, post_id: str, reaction_type: str) -> dict[str, int]:
        return await self._request(
            "PATCH",
            f"/posts/{post_id}/reactions",
            json_data={"reactionType": reaction_type},
        )

    async def add_comment(self, post_id: str, comment_data: Mapping[str, Any]) -> dict[str, Any]:
        return await self._request(
            "POST",
            f"/posts/{post_id}/comments",
            json_data=dict(comment_data),
        )

    async def add_comment_reaction(
        self, post_id: str, comment_id: str, reaction_type: str
    ) -> dict[str, int]:
        return await self._request(
            "PATCH",
            f"/posts/{post_id}/comments/{comment_id}/reactions",
            json_data={"reactionType": reaction_type},
        )
