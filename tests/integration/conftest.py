"""Integration-test fixtures: a minimal SignalR JSON hub on a local port."""

import asyncio
from typing import Any

import pytest_asyncio
from websockets.asyncio.server import ServerConnection, serve

from src.la_realtime.infrastructure.signalr import (
    CLOSE,
    COMPLETION,
    INVOCATION,
    decode_frames,
    encode_frame,
)

BID = {
    "auctionId": 7,
    "currentBid": 2_000_000,
    "bidCount": 5,
    "placedBid": {"bidderId": 3, "amount": 2_000_000, "bidTime": "2025-06-01T11:59:00Z"},
}


class FakeHub:
    """Answers the handshake, completes invocations and pushes a bid on join."""

    def __init__(self) -> None:
        self.paths: list[str] = []
        self.handshakes: list[dict[str, Any]] = []
        self.invocations: list[dict[str, Any]] = []
        self.connections: list[ServerConnection] = []
        self.port = 0

    @property
    def url(self) -> str:
        return f"http://127.0.0.1:{self.port}/hubs/auction"

    async def handler(self, ws: ServerConnection) -> None:
        self.paths.append(ws.request.path)
        self.connections.append(ws)
        self.handshakes.extend(decode_frames(await ws.recv()))
        await ws.send(encode_frame({}))
        async for raw in ws:
            for frame in decode_frames(raw):
                if frame.get("type") != INVOCATION:
                    continue
                self.invocations.append(frame)
                await self._answer(ws, frame)

    async def _answer(self, ws: ServerConnection, frame: dict[str, Any]) -> None:
        target = frame.get("target")
        reply: dict[str, Any] = {"type": COMPLETION, "invocationId": frame["invocationId"]}
        if target == "Explode":
            reply["error"] = "Hub method failed"
        elif target == "Hang":
            return
        elif target == "Shutdown":
            await ws.send(encode_frame({"type": CLOSE, "error": "server shutting down"}))
            return
        else:
            reply["result"] = None
        await ws.send(encode_frame(reply))
        if target == "JoinAuctionGroup":
            await ws.send(encode_frame({"type": INVOCATION, "target": "BidPlaced", "arguments": [BID]}))


@pytest_asyncio.fixture
async def hub():
    fake = FakeHub()
    async with serve(fake.handler, "127.0.0.1", 0) as server:
        fake.port = server.sockets[0].getsockname()[1]
        yield fake
        for connection in fake.connections:
            await connection.close()
    await asyncio.sleep(0)
