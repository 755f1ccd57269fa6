"""In-memory stand-ins for the hub transport."""

import inspect
from typing import Any

from src.la_common.errors import RealtimeConnectionError


class FakeTransport:
    """HubTransportProtocol double: records invocations, replays pushes."""

    def __init__(self, fail_start: bool = False, fail_methods: set[str] | None = None) -> None:
        self.fail_start = fail_start
        self.fail_methods = fail_methods or set()
        self.started = False
        self.stopped = False
        self.invocations: list[tuple[str, tuple[Any, ...]]] = []
        self.handlers: dict[str, list] = {}
        self.close_handlers: list = []

    async def start(self) -> None:
        if self.fail_start:
            raise RealtimeConnectionError("handshake refused")
        self.started = True

    async def stop(self) -> None:
        self.stopped = True

    async def invoke(self, method: str, *args: Any) -> Any:
        self.invocations.append((method, args))
        if method in self.fail_methods:
            raise RealtimeConnectionError(f"{method} failed")
        return None

    def on(self, target: str, handler) -> None:
        self.handlers.setdefault(target, []).append(handler)

    def on_close(self, handler) -> None:
        self.close_handlers.append(handler)

    async def push(self, target: str, *args: Any) -> None:
        for handler in self.handlers.get(target, []):
            result = handler(list(args))
            if inspect.isawaitable(result):
                await result

    async def drop(self, error: BaseException | None = None) -> None:
        for handler in self.close_handlers:
            result = handler(error)
            if inspect.isawaitable(result):
                await result

    def methods(self) -> list[str]:
        return [method for method, _ in self.invocations]


class TransportQueue:
    """Transport factory handing out prepared FakeTransports in order."""

    def __init__(self, *transports: FakeTransport) -> None:
        self._pending = list(transports)
        self.created: list[FakeTransport] = []

    def __call__(self) -> FakeTransport:
        transport = self._pending.pop(0) if self._pending else FakeTransport()
        self.created.append(transport)
        return transport
