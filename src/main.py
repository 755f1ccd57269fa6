"""Command-line entry point: follow one live auction from the terminal.

Run with: python -m src.main watch 42
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import argparse
import asyncio
import logging
import signal

from config.settings import settings
from src.la_auction.application.tracker import LiveAuctionTracker
from src.la_auction.domain.models import AuctionSnapshot, StatusReading
from src.la_auction.infrastructure.client import AuctionHttpReader
from src.la_common.enums import HubStream, StreamKind
from src.la_common.errors import AppError
from src.la_common.http_client import RemoteClient
from src.la_common.money import format_vnd
from src.la_pricing.domain.increment import increment_for
from src.la_realtime.infrastructure.factory import create_channel
from src.la_sync.application.feeds import ReconciledFeed
from src.la_sync.application.projections import ticker_items

logger = logging.getLogger("la.cli")


def _log_reading(reading: StatusReading) -> None:
    logger.debug("%s %s", reading.status.value, reading.label)


def _log_snapshot(snapshot: AuctionSnapshot) -> None:
    logger.info(
        "Auction %d: %s (%d bids), next step %s",
        snapshot.id,
        format_vnd(snapshot.current_bid),
        snapshot.bid_count,
        format_vnd(increment_for(snapshot.current_bid)),
    )


async def watch(auction_id: int) -> None:
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    async with RemoteClient() as client:
        tracker = LiveAuctionTracker(auction_id, AuctionHttpReader(client), on_reading=_log_reading)
        tracker.subscribe(_log_snapshot)
        channel = create_channel(HubStream.AUCTION)
        bids = ReconciledFeed(StreamKind.BID, limit=settings.TICKER_LIMIT, name="bids")

        def _log_top(items) -> None:
            top = ticker_items(items, limit=1)
            if top:
                logger.info("Latest bid: %s by %s", top[0].amount_display, top[0].bidder)

        bids.subscribe(_log_top)
        bids.attach(channel)
        channel.on_state_change(lambda state: logger.info("Auction hub %s", state.value))

        try:
            await tracker.open(channel)
        except AppError as exc:
            logger.error("Cannot read auction %d: %s", auction_id, exc.message)
            return

        await channel.join_group(str(auction_id))
        await channel.start()
        try:
            await stop_event.wait()
        finally:
            bids.detach()
            await tracker.close()
            await channel.stop()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="live-auction")
    commands = parser.add_subparsers(dest="command", required=True)
    watch_cmd = commands.add_parser("watch", help="follow a live auction")
    watch_cmd.add_argument("auction_id", type=int)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    if args.command == "watch":
        asyncio.run(watch(args.auction_id))


if __name__ == "__main__":
    main()
