"""Backend REST client: thin httpx wrapper shared by every adapter.

Maps transport outcomes onto the error taxonomy:
  httpx.TimeoutException   → RemoteTimeoutError (retryable)
  other httpx.TransportError → RemoteUnavailableError (retryable)
  HTTP 502/503/504         → RemoteUnavailableError (retryable)
  HTTP 404 (when allowed)  → None
  other HTTP 4xx/5xx       → RemoteRejectionError with the server's reason

Every call is logged on the "la.http" logger:
    INFO [GET] /api/Auctions/42 → 200 (23ms)
"""

import logging
import time
from typing import Any

import httpx

from config.settings import settings
from src.la_common.errors import (
    RemoteRejectionError,
    RemoteTimeoutError,
    RemoteUnavailableError,
)
from src.la_common.response import error_reason
from src.la_common.retry import with_retry
from src.la_common.session import SessionContext

logger = logging.getLogger("la.http")

_UNAVAILABLE_STATUSES = frozenset({502, 503, 504})


async def _mark_start(request: httpx.Request) -> None:
    request.extensions["la_started"] = time.perf_counter()


async def _log_response(response: httpx.Response) -> None:
    request = response.request
    started = request.extensions.get("la_started")
    elapsed_ms = (time.perf_counter() - started) * 1000 if started else 0.0
    logger.info(
        "[%s] %s → %d (%.0fms)",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )


class RemoteClient:
    def __init__(
        self,
        session: SessionContext | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        retry_base_delay: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if session is not None:
            headers.update(session.auth_headers())
        elif settings.ACCESS_TOKEN:
            headers["Authorization"] = f"Bearer {settings.ACCESS_TOKEN}"
        self._max_retries = settings.REMOTE_RETRY_ATTEMPTS if max_retries is None else max_retries
        self._retry_base_delay = (
            settings.RETRY_BASE_DELAY_SECONDS if retry_base_delay is None else retry_base_delay
        )
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.API_BASE,
            headers=headers,
            timeout=timeout or settings.HTTP_TIMEOUT_SECONDS,
            transport=transport,
            event_hooks={"request": [_mark_start], "response": [_log_response]},
        )

    async def __aenter__(self) -> "RemoteClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_json(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        allow_not_found: bool = False,
    ) -> Any:
        return await self.request("GET", path, params=params, allow_not_found=allow_not_found)

    async def post_json(self, path: str, body: dict[str, Any]) -> Any:
        return await self.request("POST", path, json=body)

    async def delete(self, path: str, allow_not_found: bool = False) -> Any:
        return await self.request("DELETE", path, allow_not_found=allow_not_found)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        allow_not_found: bool = False,
    ) -> Any:
        async def attempt() -> Any:
            return await self._send_once(method, path, params, json, allow_not_found)

        return await with_retry(
            attempt,
            max_retries=self._max_retries,
            base_delay=self._retry_base_delay,
            name=f"{method} {path}",
        )

    async def _send_once(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None,
        json: dict[str, Any] | None,
        allow_not_found: bool,
    ) -> Any:
        try:
            response = await self._client.request(method, path, params=params, json=json)
        except httpx.TimeoutException as exc:
            raise RemoteTimeoutError(f"{method} {path}") from exc
        except httpx.TransportError as exc:
            raise RemoteUnavailableError(str(exc) or type(exc).__name__) from exc

        if response.status_code == 404 and allow_not_found:
            return None
        if response.status_code in _UNAVAILABLE_STATUSES:
            raise RemoteUnavailableError(f"{method} {path} returned {response.status_code}")
        if response.is_error:
            raise RemoteRejectionError(response.status_code, error_reason(response.text))
        if not response.content:
            return None
        return response.json()
