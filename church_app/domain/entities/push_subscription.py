"""Domain entity representing a registered Web Push endpoint."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class PushSubscription:
    """One browser or device endpoint able to receive push messages for a user."""

    id: int | None
    user_id: str
    user_role: str
    endpoint: str
    p256dh: str
    auth: str
    user_agent: str | None = None
    device_name: str | None = None
    is_active: bool = True
    last_used: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_subscription_info(self) -> dict[str, object]:
        """Return the structure expected by ``pywebpush.webpush``."""

        return {
            "endpoint": self.endpoint,
            "keys": {"p256dh": self.p256dh, "auth": self.auth},
        }


__all__ = ["PushSubscription"]
