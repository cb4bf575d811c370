"""Shared httpx plumbing for provider adapters.

Every transport problem (timeout, connection error, non-2xx) surfaces as
PaymentProviderError so the caller can leave the order PENDING and retry.
"""

import logging
from typing import Any

import httpx

from src.mp_common.errors import PaymentProviderError

logger = logging.getLogger(__name__)


class HttpProviderClient:
    name = "provider"

    def __init__(self, timeout: float, client: httpx.AsyncClient | None = None) -> None:
        self._timeout = timeout
        self._client = client

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            if self._client is not None:
                return await self._client.request(method, url, **kwargs)
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                return await client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise PaymentProviderError(self.name, f"timeout calling {url}") from exc
        except httpx.HTTPError as exc:
            raise PaymentProviderError(self.name, f"{method} {url} failed: {exc}") from exc

    async def _json(
        self, method: str, url: str, *, allow_status: tuple[int, ...] = (), **kwargs: Any
    ) -> tuple[int, dict[str, Any]]:
        """Send and decode a JSON body; statuses in `allow_status` are returned, not raised."""
        response = await self._send(method, url, **kwargs)
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {"data": body}
        if response.is_success or response.status_code in allow_status:
            return response.status_code, body
        logger.warning(
            "%s %s %s -> %d %s", self.name, method, url, response.status_code, body
        )
        if response.status_code in (401, 403):
            raise PaymentProviderError(self.name, "authentication with provider failed")
        raise PaymentProviderError(
            self.name, f"HTTP {response.status_code}: {body.get('message', response.text[:200])}"
        )
