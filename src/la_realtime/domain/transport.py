"""Transport Protocol: the channel manager depends only on this.

The infrastructure layer provides a SignalR implementation; unit tests inject
an in-memory fake.
"""

from collections.abc import Awaitable, Callable
from typing import Any, Protocol

InvocationHandler = Callable[[list[Any]], Awaitable[None] | None]
CloseHandler = Callable[[BaseException | None], Awaitable[None] | None]


class HubTransportProtocol(Protocol):
    async def start(self) -> None:
        """Connect and complete the handshake; raise on failure."""
        ...

    async def stop(self) -> None: ...

    async def invoke(self, method: str, *args: Any) -> Any: ...

    def on(self, target: str, handler: InvocationHandler) -> None: ...

    def on_close(self, handler: CloseHandler) -> None:
        """Called once when an established connection drops or is closed."""
        ...


TransportFactory = Callable[[], HubTransportProtocol]
