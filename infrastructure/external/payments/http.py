"""
HTTP transport shared by gateway adapters: timeouts, connect retry, logging.

Adapters hold an instance of `GatewayHttpClient` (composition); it knows
nothing about any gateway's fields, signing or status vocabulary.
"""
from __future__ import annotations

import json
from typing import Any, Callable, Optional

import httpx
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential, retry_if_exception_type

from core.logging_config import get_logger
from infrastructure.external.payments.exceptions import (
    GatewayResponseError,
    GatewayTransportError,
)


logger = get_logger(__name__)

# Only failures where the request provably never reached the gateway are
# retried; a delivered refund or checkout request is never sent twice.
RETRYABLE_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout)


class GatewayHttpClient:

    def __init__(
        self,
        provider: str,
        *,
        timeouts: Optional[dict[str, float]] = None,
        retry: Optional[dict[str, Any]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.provider = provider
        self._timeouts_cfg = timeouts or {"connect": 1.0, "read": 5.0, "write": 5.0, "total": 5.0}
        self._retry_cfg = retry or {"max": 1, "base": 0.2}
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def timeouts(self) -> httpx.Timeout:
        return httpx.Timeout(
            self._timeouts_cfg["total"],
            connect=self._timeouts_cfg["connect"],
            read=self._timeouts_cfg["read"],
            write=self._timeouts_cfg["write"],
        )

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeouts, transport=self._transport)
        return self._client

    async def aclose(self) -> None:
        """Close underlying HTTP client if created."""
        if self._client is not None:
            try:
                await self._client.aclose()
            finally:
                self._client = None

    async def _retry(self, fn: Callable[[], Any]):
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(int(self._retry_cfg["max"]) + 1),
            wait=wait_exponential(multiplier=self._retry_cfg["base"], min=0.1, max=2.0),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            reraise=True,
        ):
            with attempt:
                return await fn()

    async def request(
        self,
        method: str,
        url: str,
        *,
        data: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> httpx.Response:
        """Send one request; any status code is returned, transport failures raise."""
        client = self._get_client()
        try:
            response = await self._retry(
                lambda: client.request(method, url, data=data, headers=headers)
            )
        except httpx.HTTPError as exc:
            logger.error(
                "gateway_http_failed",
                provider=self.provider,
                method=method,
                url=url,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise GatewayTransportError(str(exc) or type(exc).__name__, provider=self.provider) from exc

        logger.info(
            "gateway_http_response",
            provider=self.provider,
            method=method,
            url=url,
            status_code=response.status_code,
        )
        return response

    def decode_json(self, response: httpx.Response) -> dict[str, Any]:
        """Decode a JSON object body or raise GatewayResponseError."""
        try:
            payload = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError, ValueError) as exc:
            raise GatewayResponseError(
                "Response body is not valid JSON",
                provider=self.provider,
                status_code=response.status_code,
            ) from exc
        if not isinstance(payload, dict):
            raise GatewayResponseError(
                "Response body is not a JSON object",
                provider=self.provider,
                status_code=response.status_code,
            )
        return payload
