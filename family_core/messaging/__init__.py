from .base import BaseMessenger, MAX_MULTICAST_TOKENS
from .exceptions import MessagingError
from .schemas import MulticastResult, NotificationType, PushNotification

__all__ = [
    "BaseMessenger",
    "MAX_MULTICAST_TOKENS",
    "MessagingError",
    "MulticastResult",
    "NotificationType",
    "PushNotification",
]
