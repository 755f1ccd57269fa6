"""Channel factory wiring the SignalR transport to the channel manager."""

from config.settings import settings
from src.la_common.enums import HubStream
from src.la_common.session import SessionContext
from src.la_realtime.engine.channel import HUB_ENDPOINTS, RealtimeChannelManager
from src.la_realtime.infrastructure.signalr import SignalRHubTransport


def hub_url(stream: HubStream, api_base: str | None = None) -> str:
    base = (api_base or settings.API_BASE).rstrip("/")
    return f"{base}{HUB_ENDPOINTS[stream].path}"


def create_channel(
    stream: HubStream,
    session: SessionContext | None = None,
    api_base: str | None = None,
) -> RealtimeChannelManager:
    """New manager for one view; the caller owns it and must ``stop()`` it."""
    url = hub_url(stream, api_base)
    token = session.access_token if session is not None else settings.ACCESS_TOKEN

    def transport_factory() -> SignalRHubTransport:
        return SignalRHubTransport(url, access_token=token)

    return RealtimeChannelManager(stream, transport_factory)
