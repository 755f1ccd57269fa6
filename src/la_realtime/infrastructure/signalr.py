"""SignalR JSON hub protocol client over WebSockets.

Implements HubTransportProtocol:
  1. POST {hub}/negotiate?negotiateVersion=1 → connectionToken (skippable)
  2. WebSocket connect to {hub}?id=<token>, JSON handshake
  3. Frames are JSON records terminated by 0x1E:
       type 1 Invocation  server → client events, client → server calls
       type 3 Completion  result/error of a client call
       type 6 Ping        keepalive both ways
       type 7 Close       server-initiated close
"""

import asyncio
import inspect
import itertools
import json
import logging
from collections import defaultdict
from typing import Any
from urllib.parse import urlencode, urlsplit, urlunsplit

import httpx
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed

from config.settings import settings
from src.la_common.errors import RealtimeConnectionError, RemoteRejectionError, RemoteTimeoutError
from src.la_realtime.domain.transport import CloseHandler, InvocationHandler

logger = logging.getLogger(__name__)

RECORD_SEPARATOR = "\x1e"

INVOCATION = 1
COMPLETION = 3
PING = 6
CLOSE = 7


def encode_frame(message: dict[str, Any]) -> str:
    return json.dumps(message, separators=(",", ":")) + RECORD_SEPARATOR


def decode_frames(raw: str | bytes) -> list[dict[str, Any]]:
    if isinstance(raw, bytes):
        chunks = raw.split(RECORD_SEPARATOR.encode())
    else:
        chunks = raw.split(RECORD_SEPARATOR)
    frames = []
    for chunk in chunks:
        if not chunk.strip():
            continue
        try:
            frame = json.loads(chunk)
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Dropping undecodable hub frame: %.80r", chunk)
            continue
        if isinstance(frame, dict):
            frames.append(frame)
        else:
            logger.warning("Dropping non-object hub frame: %.80r", chunk)
    return frames


def to_websocket_url(url: str, query: dict[str, str]) -> str:
    parts = urlsplit(url)
    scheme = {"http": "ws", "https": "wss"}.get(parts.scheme, parts.scheme)
    merged = "&".join(q for q in (parts.query, urlencode(query)) if q)
    return urlunsplit((scheme, parts.netloc, parts.path, merged, ""))


class SignalRHubTransport:
    def __init__(
        self,
        url: str,
        access_token: str | None = None,
        skip_negotiation: bool = False,
        invoke_timeout: float | None = None,
        open_timeout: float | None = None,
        keepalive_interval: float = 15.0,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._access_token = access_token
        self._skip_negotiation = skip_negotiation
        self._invoke_timeout = invoke_timeout or settings.HUB_INVOKE_TIMEOUT_SECONDS
        self._open_timeout = open_timeout or settings.HTTP_TIMEOUT_SECONDS
        self._keepalive_interval = keepalive_interval
        self._http_transport = http_transport
        self._ws: ClientConnection | None = None
        self._handlers: dict[str, list[InvocationHandler]] = defaultdict(list)
        self._close_handlers: list[CloseHandler] = []
        self._pending: dict[str, asyncio.Future[Any]] = {}
        self._ids = itertools.count(1)
        self._reader: asyncio.Task[None] | None = None
        self._pinger: asyncio.Task[None] | None = None
        self._stopping = False

    def on(self, target: str, handler: InvocationHandler) -> None:
        self._handlers[target].append(handler)

    def on_close(self, handler: CloseHandler) -> None:
        self._close_handlers.append(handler)

    # ------------------------------------------------------------------
    # Connect
    # ------------------------------------------------------------------

    async def _negotiate(self) -> tuple[str, str | None]:
        """Return (websocket url, access token) for the connection."""
        if self._skip_negotiation:
            query = {"access_token": self._access_token} if self._access_token else {}
            return to_websocket_url(self._url, query), self._access_token

        headers = {}
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
        async with httpx.AsyncClient(
            timeout=self._open_timeout, transport=self._http_transport
        ) as client:
            response = await client.post(
                f"{self._url.rstrip('/')}/negotiate",
                params={"negotiateVersion": 1},
                headers=headers,
            )
        if response.is_error:
            raise RealtimeConnectionError(f"negotiate returned {response.status_code}")
        body = response.json()
        if body.get("error"):
            raise RealtimeConnectionError(f"negotiate refused: {body['error']}")
        if body.get("url"):
            # Redirect to a service endpoint that issues its own token
            token = body.get("accessToken") or self._access_token
            query = {"access_token": token} if token else {}
            return to_websocket_url(body["url"], query), token

        token = body.get("connectionToken") or body.get("connectionId")
        query = {"id": token} if token else {}
        if self._access_token:
            query["access_token"] = self._access_token
        return to_websocket_url(self._url, query), self._access_token

    async def start(self) -> None:
        self._stopping = False
        ws_url, token = await self._negotiate()
        headers = {"Authorization": f"Bearer {token}"} if token else None
        ws = await connect(ws_url, additional_headers=headers, open_timeout=self._open_timeout)
        try:
            await ws.send(encode_frame({"protocol": "json", "version": 1}))
            raw = await asyncio.wait_for(ws.recv(), timeout=self._open_timeout)
        except (asyncio.TimeoutError, ConnectionClosed) as exc:
            await ws.close()
            raise RealtimeConnectionError(f"handshake failed: {exc!r}") from exc
        frames = decode_frames(raw)
        if not frames or frames[0].get("error"):
            await ws.close()
            detail = frames[0].get("error") if frames else "empty handshake response"
            raise RealtimeConnectionError(f"handshake rejected: {detail}")

        self._ws = ws
        loop = asyncio.get_running_loop()
        self._reader = loop.create_task(self._read_loop(ws, frames[1:]), name="signalr-reader")
        self._pinger = loop.create_task(self._ping_loop(ws), name="signalr-ping")
        logger.info("Connected to hub %s", self._url)

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    async def invoke(self, method: str, *args: Any) -> Any:
        ws = self._ws
        if ws is None:
            raise RealtimeConnectionError(f"cannot invoke {method}: not connected")
        invocation_id = str(next(self._ids))
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[invocation_id] = future
        try:
            await ws.send(
                encode_frame(
                    {
                        "type": INVOCATION,
                        "invocationId": invocation_id,
                        "target": method,
                        "arguments": list(args),
                    }
                )
            )
            return await asyncio.wait_for(future, timeout=self._invoke_timeout)
        except asyncio.TimeoutError as exc:
            raise RemoteTimeoutError(f"hub method {method}") from exc
        except ConnectionClosed as exc:
            raise RealtimeConnectionError(f"connection closed during {method}") from exc
        finally:
            self._pending.pop(invocation_id, None)

    # ------------------------------------------------------------------
    # Loops
    # ------------------------------------------------------------------

    async def _ping_loop(self, ws: ClientConnection) -> None:
        """Application-level keepalive; the hub drops clients that stay silent."""
        while True:
            await asyncio.sleep(self._keepalive_interval)
            try:
                await ws.send(encode_frame({"type": PING}))
            except ConnectionClosed:
                return

    async def _read_loop(self, ws: ClientConnection, buffered: list[dict[str, Any]]) -> None:
        error: BaseException | None = None
        try:
            for message in buffered:
                if await self._handle(message):
                    return
            async for raw in ws:
                for message in decode_frames(raw):
                    if await self._handle(message):
                        return
        except ConnectionClosed as exc:
            error = exc
        except RealtimeConnectionError as exc:
            error = exc
        finally:
            await self._teardown(ws, error)

    async def _handle(self, message: dict[str, Any]) -> bool:
        """Process one frame; True means the server closed the connection."""
        kind = message.get("type")
        if kind == INVOCATION:
            target = message.get("target", "")
            for handler in list(self._handlers.get(target, ())):
                try:
                    result = handler(message.get("arguments") or [])
                    if inspect.isawaitable(result):
                        await result
                except Exception:
                    logger.exception("Hub handler for %s failed", target)
        elif kind == COMPLETION:
            future = self._pending.get(str(message.get("invocationId")))
            if future is not None and not future.done():
                if message.get("error"):
                    future.set_exception(RemoteRejectionError(None, message["error"]))
                else:
                    future.set_result(message.get("result"))
        elif kind == CLOSE:
            if message.get("error"):
                raise RealtimeConnectionError(f"server closed: {message['error']}")
            return True
        return False

    async def _teardown(self, ws: ClientConnection, error: BaseException | None) -> None:
        if self._ws is ws:
            self._ws = None
        pinger, self._pinger = self._pinger, None
        if pinger is not None:
            pinger.cancel()
        for future in self._pending.values():
            if not future.done():
                future.set_exception(RealtimeConnectionError("connection closed"))
        self._pending.clear()
        await ws.close()
        if self._stopping:
            return
        for handler in list(self._close_handlers):
            try:
                result = handler(error)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Hub close handler failed")

    async def stop(self) -> None:
        self._stopping = True
        ws, self._ws = self._ws, None
        if ws is not None:
            await ws.close()
        reader, self._reader = self._reader, None
        if reader is not None and reader is not asyncio.current_task():
            reader.cancel()
            await asyncio.gather(reader, return_exceptions=True)
        pinger, self._pinger = self._pinger, None
        if pinger is not None:
            pinger.cancel()
            await asyncio.gather(pinger, return_exceptions=True)
