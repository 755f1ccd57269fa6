"""Tests for RealtimeChannelManager against an in-memory transport."""

import asyncio

import pytest

from src.la_common.enums import ConnectionState, HubStream, StreamKind
from src.la_realtime.engine.channel import RealtimeChannelManager
from src.la_realtime.engine.mapping import BID_PLACED
from tests.fakes import FakeTransport, TransportQueue

BID = {
    "auctionId": 7,
    "currentBid": 2_000_000,
    "bidCount": 5,
    "placedBid": {"bidderId": 3, "amount": 2_000_000, "bidTime": "2025-06-01T11:59:00Z"},
}


def _manager(*transports: FakeTransport, delays=(0.0,)) -> tuple[RealtimeChannelManager, TransportQueue]:
    factory = TransportQueue(*transports)
    return RealtimeChannelManager(HubStream.AUCTION, factory, reconnect_delays=delays), factory


class DroppingOnJoinTransport(FakeTransport):
    """Connection that drops while the first group join is in flight."""

    async def invoke(self, method: str, *args):
        self.invocations.append((method, args))
        await self.drop(ConnectionError("reset during join"))
        raise ConnectionError("reset during join")


async def _wait_for(predicate, timeout: float = 1.0) -> None:
    async def poll() -> None:
        while not predicate():
            await asyncio.sleep(0)

    await asyncio.wait_for(poll(), timeout)


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_connects(self) -> None:
        manager, factory = _manager()
        states = []
        manager.on_state_change(states.append)
        assert await manager.start() is True
        assert manager.state == ConnectionState.CONNECTED
        assert states == [ConnectionState.CONNECTING, ConnectionState.CONNECTED]
        await manager.stop()

    @pytest.mark.asyncio
    async def test_failed_start_does_not_raise_and_retries(self) -> None:
        manager, factory = _manager(FakeTransport(fail_start=True))
        assert await manager.start() is False
        assert manager.last_error is not None
        assert manager.last_error.code == 2001
        await _wait_for(lambda: manager.state == ConnectionState.CONNECTED)
        assert len(factory.created) == 2
        await manager.stop()

    @pytest.mark.asyncio
    async def test_stop_before_start_is_safe(self) -> None:
        manager, factory = _manager()
        await manager.stop()
        await manager.stop()
        assert manager.state == ConnectionState.CLOSED
        assert factory.created == []

    @pytest.mark.asyncio
    async def test_closed_is_terminal(self) -> None:
        manager, factory = _manager()
        await manager.stop()
        assert await manager.start() is False
        assert await manager.join_group("7") is False

    @pytest.mark.asyncio
    async def test_stop_during_reconnect_cancels_it(self) -> None:
        manager, factory = _manager(FakeTransport(fail_start=True), delays=(60.0,))
        await manager.start()
        assert manager.state == ConnectionState.RECONNECTING
        await manager.stop()
        assert manager.state == ConnectionState.CLOSED
        assert len(factory.created) == 1

    @pytest.mark.asyncio
    async def test_context_manager(self) -> None:
        manager, factory = _manager()
        async with manager:
            assert manager.is_connected
        assert factory.created[0].stopped


class TestGroups:
    @pytest.mark.asyncio
    async def test_join_before_connect_is_queued(self) -> None:
        manager, factory = _manager()
        assert await manager.join_group("7") is False
        assert manager.joined_groups == frozenset()
        assert manager.pending_groups == {"7"}
        await manager.start()
        assert manager.joined_groups == {"7"}
        assert factory.created[0].invocations == [("JoinAuctionGroup", ("7",))]
        await manager.stop()

    @pytest.mark.asyncio
    async def test_joined_groups_empty_unless_connected(self) -> None:
        manager, factory = _manager(delays=(60.0,))
        await manager.start()
        await manager.join_group("7")
        await factory.created[0].drop(ConnectionError("reset"))
        assert manager.state == ConnectionState.RECONNECTING
        assert manager.joined_groups == frozenset()
        await manager.stop()

    @pytest.mark.asyncio
    async def test_rejoin_after_reconnect(self) -> None:
        manager, factory = _manager()
        await manager.start()
        await manager.join_group("7")
        await manager.join_group("8")
        await factory.created[0].drop(ConnectionError("reset"))
        await _wait_for(lambda: manager.state == ConnectionState.CONNECTED)
        second = factory.created[1]
        assert sorted(second.invocations) == [("JoinAuctionGroup", ("7",)), ("JoinAuctionGroup", ("8",))]
        assert manager.joined_groups == {"7", "8"}
        await manager.stop()

    @pytest.mark.asyncio
    async def test_drop_while_rejoining_keeps_reconnecting(self) -> None:
        manager, factory = _manager(FakeTransport(), DroppingOnJoinTransport())
        await manager.start()
        await manager.join_group("7")
        await factory.created[0].drop(ConnectionError("reset"))
        await _wait_for(lambda: len(factory.created) == 3 and manager.state == ConnectionState.CONNECTED)
        assert factory.created[2].invocations == [("JoinAuctionGroup", ("7",))]
        assert manager.joined_groups == {"7"}
        await manager.stop()

    @pytest.mark.asyncio
    async def test_failed_join_stays_wanted(self) -> None:
        manager, factory = _manager(FakeTransport(fail_methods={"JoinAuctionGroup"}))
        await manager.start()
        assert await manager.join_group("7") is False
        assert manager.pending_groups == {"7"}
        await manager.stop()

    @pytest.mark.asyncio
    async def test_leave(self) -> None:
        manager, factory = _manager()
        await manager.start()
        await manager.join_group("7")
        assert await manager.leave_group("7") is True
        assert manager.joined_groups == frozenset()
        assert factory.created[0].methods() == ["JoinAuctionGroup", "LeaveAuctionGroup"]
        await manager.stop()

    @pytest.mark.asyncio
    async def test_stop_leaves_groups_and_closes(self) -> None:
        manager, factory = _manager()
        await manager.start()
        await manager.join_group("7")
        await manager.stop()
        transport = factory.created[0]
        assert transport.methods()[-1] == "LeaveAuctionGroup"
        assert transport.stopped
        assert manager.pending_groups == frozenset()

    @pytest.mark.asyncio
    async def test_concurrent_joins_are_serialized(self) -> None:
        manager, factory = _manager()
        await manager.start()
        await asyncio.gather(*(manager.join_group(str(g)) for g in range(5)))
        assert manager.joined_groups == {str(g) for g in range(5)}
        assert len(factory.created[0].invocations) == 5
        await manager.stop()


class TestDelivery:
    @pytest.mark.asyncio
    async def test_events_by_kind_and_name(self) -> None:
        manager, factory = _manager()
        by_kind, by_name = [], []
        manager.on(StreamKind.BID, by_kind.append)
        manager.on(BID_PLACED, by_name.append)
        await manager.start()
        await factory.created[0].push(BID_PLACED, BID)
        assert len(by_kind) == 1
        assert by_kind[0].id == by_name[0].id
        await manager.stop()

    @pytest.mark.asyncio
    async def test_off_unsubscribes(self) -> None:
        manager, factory = _manager()
        seen = []
        manager.on(StreamKind.BID, seen.append)
        manager.off(StreamKind.BID, seen.append)
        await manager.start()
        await factory.created[0].push(BID_PLACED, BID)
        assert seen == []
        await manager.stop()

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_block_others(self, caplog) -> None:
        manager, factory = _manager()
        seen = []

        def broken(event) -> None:
            raise RuntimeError("boom")

        async def works(event) -> None:
            seen.append(event)

        manager.on(StreamKind.BID, broken)
        manager.on(StreamKind.BID, works)
        await manager.start()
        await factory.created[0].push(BID_PLACED, BID)
        assert len(seen) == 1
        assert "Handler for BidPlaced failed" in caplog.text
        await manager.stop()

    @pytest.mark.asyncio
    async def test_frames_from_replaced_transport_are_dropped(self) -> None:
        manager, factory = _manager()
        seen = []
        manager.on(StreamKind.BID, seen.append)
        await manager.start()
        stale = factory.created[0]
        await stale.drop(ConnectionError("reset"))
        await _wait_for(lambda: manager.state == ConnectionState.CONNECTED)
        await stale.push(BID_PLACED, BID)
        assert seen == []
        await factory.created[1].push(BID_PLACED, BID)
        assert len(seen) == 1
        await manager.stop()
