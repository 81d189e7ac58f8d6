from .notification import (
    ActionResult,
    NotificationActionRequest,
    NotificationListResponse,
    NotificationRead,
    NotificationSendRequest,
    StreamStatusRead,
    UnreadCountResponse,
)
from .preferences import PreferencesRead, PreferencesUpdate
from .push import (
    PublicKeyResponse,
    PushKeys,
    PushSubscribeRequest,
    PushSubscriptionListResponse,
    PushSubscriptionPayload,
    PushSubscriptionRead,
    PushUnsubscribeRequest,
)

__all__ = [
    "ActionResult",
    "NotificationActionRequest",
    "NotificationListResponse",
    "NotificationRead",
    "NotificationSendRequest",
    "PreferencesRead",
    "PreferencesUpdate",
    "PublicKeyResponse",
    "PushKeys",
    "PushSubscribeRequest",
    "PushSubscriptionListResponse",
    "PushSubscriptionPayload",
    "PushSubscriptionRead",
    "PushUnsubscribeRequest",
    "StreamStatusRead",
    "UnreadCountResponse",
]
