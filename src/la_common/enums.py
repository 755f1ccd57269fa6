"""Global enums: wire values must match what the backend and hubs emit."""

from enum import Enum


class ServerStatus(str, Enum):
    """Auction status as stored by the backend (lower-case on the wire)."""

    PENDING = "pending"
    APPROVED = "approved"
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED = "cancelled"
    ENDED = "ended"
    COMPLETED = "completed"
    REJECTED = "rejected"
    UNKNOWN = "unknown"

    @classmethod
    def from_wire(cls, value: object) -> "ServerStatus":
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return cls.UNKNOWN
        normalized = value.strip().lower()
        if normalized == "canceled":
            normalized = "cancelled"
        try:
            return cls(normalized)
        except ValueError:
            return cls.UNKNOWN


class DerivedStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    CANCELLED = "CANCELLED"
    ENDED = "ENDED"


class StreamKind(str, Enum):
    BID = "BID"
    MESSAGE = "MESSAGE"
    NOTIFICATION = "NOTIFICATION"
    AUCTION_STATUS = "AUCTION_STATUS"


class HubStream(str, Enum):
    """Logical push streams; one connection per stream per view."""

    AUCTION = "AUCTION"
    MESSAGES = "MESSAGES"
    NOTIFICATIONS = "NOTIFICATIONS"


class ConnectionState(str, Enum):
    IDLE = "IDLE"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"
    RECONNECTING = "RECONNECTING"
    CLOSED = "CLOSED"


class AutoBidState(str, Enum):
    NOT_CONFIGURED = "NOT_CONFIGURED"
    ACTIVE = "ACTIVE"
    UPDATED = "UPDATED"
    DEACTIVATED = "DEACTIVATED"


class UserRole(str, Enum):
    BUYER = "buyer"
    SELLER = "seller"
    STAFF = "staff"
    SUPPORT = "support"
    ADMIN = "admin"
