"""Immutable session context injected into components at construction.

Replaces free-floating "current user" state: every component that needs the
caller's identity receives one of these and re-derives role restrictions from
it instead of reading a global.
"""

from dataclasses import dataclass

from src.la_common.enums import UserRole

_STAFF_ROLES = frozenset({UserRole.ADMIN, UserRole.STAFF, UserRole.SUPPORT})


@dataclass(frozen=True)
class SessionContext:
    user_id: int
    role: UserRole = UserRole.BUYER
    email: str | None = None
    access_token: str | None = None

    @property
    def is_staff(self) -> bool:
        return self.role in _STAFF_ROLES

    @property
    def user_group(self) -> str:
        """Hub group carrying this user's personal messages/notifications."""
        return str(self.user_id)

    def auth_headers(self) -> dict[str, str]:
        headers = {"X-User-Id": str(self.user_id)}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers
