from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Backend REST API (defaults match the local dev backend)
    API_BASE: str = "http://localhost:5167"
    ACCESS_TOKEN: str | None = None

    # Push hubs, relative to API_BASE
    AUCTION_HUB_PATH: str = "/hubs/auction"
    MESSAGE_HUB_PATH: str = "/hubs/messages"
    NOTIFICATION_HUB_PATH: str = "/hubs/notifications"

    # Remote calls
    HTTP_TIMEOUT_SECONDS: float = 10.0
    HUB_INVOKE_TIMEOUT_SECONDS: float = 15.0
    REMOTE_RETRY_ATTEMPTS: int = 3
    RETRY_BASE_DELAY_SECONDS: float = 0.5

    # Reconnect schedule; the last delay repeats forever
    RECONNECT_DELAYS_SECONDS: list[float] = [0.0, 2.0, 5.0, 10.0, 20.0, 30.0]

    # Timers
    STATUS_TICK_SECONDS: float = 1.0
    SNAPSHOT_POLL_SECONDS: float = 15.0

    # Dispute chat: tolerance for client/server clock skew at dispute creation
    DISPUTE_GRACE_SECONDS: int = 60
    SUPPORT_ADMIN_EMAIL: str = "admin@bidnow.local"

    TICKER_LIMIT: int = 20

    # App
    APP_NAME: str = "Live Auction Client"
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False


settings = Settings()
