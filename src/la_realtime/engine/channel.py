"""RealtimeChannelManager: one push connection per logical stream per view.

State machine:
    IDLE → CONNECTING → CONNECTED → RECONNECTING → CONNECTED ...
                                  ↘ CLOSED (stop)

Connection problems never escape ``start``/``stop``: they are logged, kept in
``last_error`` and reflected in ``state`` so dependents can fall back to REST
polling. Group membership is serialized through one lock per connection;
groups requested while disconnected are remembered and joined on the next
successful connect, including after every reconnect.
"""

import asyncio
import inspect
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable, Sequence

from config.settings import settings
from src.la_common.enums import ConnectionState, HubStream, StreamKind
from src.la_common.errors import RealtimeConnectionError
from src.la_realtime.domain.models import HubEndpoint, StreamEvent
from src.la_realtime.domain.transport import HubTransportProtocol, TransportFactory
from src.la_realtime.engine.mapping import STREAM_TARGETS, to_stream_event

logger = logging.getLogger(__name__)

EventHandler = Callable[[StreamEvent], Awaitable[None] | None]
StateListener = Callable[[ConnectionState], None]

HUB_ENDPOINTS: dict[HubStream, HubEndpoint] = {
    HubStream.AUCTION: HubEndpoint(
        settings.AUCTION_HUB_PATH, "JoinAuctionGroup", "LeaveAuctionGroup"
    ),
    HubStream.MESSAGES: HubEndpoint(
        settings.MESSAGE_HUB_PATH, "JoinUserGroup", "LeaveUserGroup"
    ),
    HubStream.NOTIFICATIONS: HubEndpoint(
        settings.NOTIFICATION_HUB_PATH, "JoinUserGroup", "LeaveUserGroup"
    ),
}


async def _safe_stop(transport: HubTransportProtocol) -> None:
    try:
        await transport.stop()
    except Exception:
        logger.debug("Ignoring error while stopping transport", exc_info=True)


class RealtimeChannelManager:
    def __init__(
        self,
        stream: HubStream,
        transport_factory: TransportFactory,
        endpoint: HubEndpoint | None = None,
        reconnect_delays: Sequence[float] | None = None,
    ) -> None:
        self._stream = stream
        self._factory = transport_factory
        self._endpoint = endpoint or HUB_ENDPOINTS[stream]
        delays = list(reconnect_delays or settings.RECONNECT_DELAYS_SECONDS)
        self._delays = delays or [0.0]
        self._state = ConnectionState.IDLE
        self._transport: HubTransportProtocol | None = None
        self._joined: set[str] = set()
        self._wanted: set[str] = set()
        self._group_lock = asyncio.Lock()
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._state_listeners: list[StateListener] = []
        self._reconnect_task: asyncio.Task[None] | None = None
        self.last_error: RealtimeConnectionError | None = None

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def stream(self) -> HubStream:
        return self._stream

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED

    @property
    def joined_groups(self) -> frozenset[str]:
        if self._state != ConnectionState.CONNECTED:
            return frozenset()
        return frozenset(self._joined)

    @property
    def pending_groups(self) -> frozenset[str]:
        """Requested groups not joined yet; joined on the next connect."""
        return frozenset(self._wanted - self.joined_groups)

    def on_state_change(self, listener: StateListener) -> None:
        self._state_listeners.append(listener)

    def _set_state(self, state: ConnectionState) -> None:
        if state == self._state:
            return
        logger.info("%s channel: %s → %s", self._stream.value, self._state.value, state.value)
        self._state = state
        for listener in list(self._state_listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("State listener failed on %s", self._stream.value)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    @staticmethod
    def _key(selector: StreamKind | str) -> str:
        return selector.value if isinstance(selector, StreamKind) else selector

    def on(self, selector: StreamKind | str, handler: EventHandler) -> None:
        """Subscribe by event kind or by hub target name ("BidPlaced")."""
        self._handlers[self._key(selector)].append(handler)

    def off(self, selector: StreamKind | str, handler: EventHandler) -> None:
        handlers = self._handlers.get(self._key(selector))
        if handlers and handler in handlers:
            handlers.remove(handler)

    async def _dispatch(self, event: StreamEvent) -> None:
        handlers = [
            *self._handlers.get(event.kind.value, ()),
            *self._handlers.get(event.name, ()),
        ]
        for handler in handlers:
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Handler for %s failed on event %s", event.name, event.id)

    def _invocation_handler(
        self, transport: HubTransportProtocol, target: str
    ) -> Callable[[list], Awaitable[None]]:
        async def handle(args: list) -> None:
            # Liveness check: late frames from a replaced transport are dropped
            if transport is not self._transport:
                return
            event = to_stream_event(self._stream, target, args)
            if event is not None:
                await self._dispatch(event)

        return handle

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> bool:
        """Connect; on failure keep retrying in the background and return False."""
        if self._state == ConnectionState.CLOSED:
            logger.warning("%s channel already stopped; not restarting", self._stream.value)
            return False
        if self._state != ConnectionState.IDLE:
            return self.is_connected
        self._set_state(ConnectionState.CONNECTING)
        if await self._connect_once():
            return self.is_connected
        if self._state != ConnectionState.CLOSED:
            self._schedule_reconnect()
        return False

    async def stop(self) -> None:
        """Leave groups, close transport, cancel reconnects. Idempotent."""
        if self._state == ConnectionState.CLOSED:
            return
        task, self._reconnect_task = self._reconnect_task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

        transport = self._transport
        if transport is not None and self._state == ConnectionState.CONNECTED:
            async with self._group_lock:
                for group in sorted(self._joined):
                    try:
                        await transport.invoke(self._endpoint.leave_method, group)
                    except Exception:
                        logger.debug("Leave %s failed during stop", group, exc_info=True)
        self._transport = None
        self._joined.clear()
        self._wanted.clear()
        self._set_state(ConnectionState.CLOSED)
        if transport is not None:
            await _safe_stop(transport)

    async def __aenter__(self) -> "RealtimeChannelManager":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    async def _connect_once(self) -> bool:
        transport = self._factory()
        for target in STREAM_TARGETS[self._stream]:
            transport.on(target, self._invocation_handler(transport, target))
        transport.on_close(lambda error: self._on_transport_closed(transport, error))
        try:
            await transport.start()
        except asyncio.CancelledError:
            await _safe_stop(transport)
            raise
        except Exception as exc:
            self.last_error = RealtimeConnectionError(str(exc) or type(exc).__name__)
            logger.warning("%s channel: %s", self._stream.value, self.last_error.message)
            await _safe_stop(transport)
            return False

        if self._state == ConnectionState.CLOSED:
            await _safe_stop(transport)
            return False
        self._transport = transport
        self.last_error = None
        self._set_state(ConnectionState.CONNECTED)
        await self._sync_groups()
        return True

    def _on_transport_closed(
        self, transport: HubTransportProtocol, error: BaseException | None
    ) -> None:
        if transport is not self._transport or self._state == ConnectionState.CLOSED:
            return
        self._transport = None
        self._joined.clear()
        if error is not None:
            self.last_error = RealtimeConnectionError(str(error) or type(error).__name__)
        logger.warning(
            "%s channel dropped: %s", self._stream.value, error or "closed by server"
        )
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        self._set_state(ConnectionState.RECONNECTING)
        if self._reconnect_task is not None and not self._reconnect_task.done():
            return
        self._reconnect_task = asyncio.get_running_loop().create_task(
            self._reconnect_loop(), name=f"{self._stream.value}-reconnect"
        )

    async def _reconnect_loop(self) -> None:
        attempt = 0
        while self._state == ConnectionState.RECONNECTING:
            delay = self._delays[min(attempt, len(self._delays) - 1)]
            logger.info(
                "%s channel: reconnect attempt %d in %.1fs", self._stream.value, attempt + 1, delay
            )
            await asyncio.sleep(delay)
            if self._state != ConnectionState.RECONNECTING:
                return
            # A drop while re-joining groups leaves the state RECONNECTING
            if await self._connect_once() and self._state == ConnectionState.CONNECTED:
                return
            attempt += 1

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    async def join_group(self, group: str) -> bool:
        """Join now if connected, otherwise queue for the next connect."""
        async with self._group_lock:
            if self._state == ConnectionState.CLOSED:
                return False
            self._wanted.add(group)
            if self._state != ConnectionState.CONNECTED or group in self._joined:
                return group in self.joined_groups
            return await self._invoke_join(group)

    async def leave_group(self, group: str) -> bool:
        async with self._group_lock:
            self._wanted.discard(group)
            transport = self._transport
            if self._state != ConnectionState.CONNECTED or group not in self._joined:
                return False
            self._joined.discard(group)
            assert transport is not None
            try:
                await transport.invoke(self._endpoint.leave_method, group)
            except Exception as exc:
                logger.warning("%s channel: leave %s failed: %s", self._stream.value, group, exc)
                return False
            return True

    async def _sync_groups(self) -> None:
        async with self._group_lock:
            for group in sorted(self._wanted - self._joined):
                if self._state != ConnectionState.CONNECTED:
                    return
                await self._invoke_join(group)

    async def _invoke_join(self, group: str) -> bool:
        transport = self._transport
        assert transport is not None
        try:
            await transport.invoke(self._endpoint.join_method, group)
        except Exception as exc:
            # Stays wanted; retried after the next reconnect
            logger.warning("%s channel: join %s failed: %s", self._stream.value, group, exc)
            return False
        if transport is not self._transport:
            return False
        self._joined.add(group)
        return True
