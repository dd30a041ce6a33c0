"""
messaging/fcm.py: Firebase Cloud Messaging gateway.
"""
import logging
from typing import List, Optional

import firebase_admin
from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging

from .base import BaseMessenger, MAX_MULTICAST_TOKENS
from .exceptions import MessagingError
from .schemas import MulticastResult, PushNotification


class FCMMessenger(BaseMessenger):
    """Sends push notifications through the Firebase Admin SDK."""

    def __init__(self, app: Optional[firebase_admin.App] = None, logger: Optional[logging.Logger] = None):
        """
        Args:
            app (Optional[firebase_admin.App]): Initialized Firebase app; the default app when omitted.
            logger (Optional[logging.Logger]): Logger instance.
        """
        self.app = app
        self.logger = logger or logging.getLogger(__name__)

    def send(self, notification: PushNotification, token: str) -> str:
        message = messaging.Message(
            notification=messaging.Notification(title=notification.title, body=notification.body),
            data=notification.data,
            token=token,
        )
        try:
            return messaging.send(message, app=self.app)
        except firebase_exceptions.FirebaseError as e:
            raise MessagingError("Failed to send push notification.", cause=e)
        except ValueError as e:
            raise MessagingError("Invalid push notification.", cause=e)

    def send_multicast(self, notification: PushNotification, tokens: List[str]) -> MulticastResult:
        if len(tokens) > MAX_MULTICAST_TOKENS:
            raise ValueError(f"At most {MAX_MULTICAST_TOKENS} tokens per multicast, got {len(tokens)}")

        message = messaging.MulticastMessage(
            notification=messaging.Notification(title=notification.title, body=notification.body),
            data=notification.data,
            tokens=tokens,
        )
        try:
            response = messaging.send_each_for_multicast(message, app=self.app)
        except firebase_exceptions.FirebaseError as e:
            raise MessagingError("Failed to send multicast notification.", cause=e)

        failed_tokens = [
            token for token, result in zip(tokens, response.responses) if not result.success
        ]
        if failed_tokens:
            self.logger.warning(f"[send_multicast] {len(failed_tokens)} of {len(tokens)} deliveries failed")

        return MulticastResult(
            success_count=response.success_count,
            failure_count=response.failure_count,
            failed_tokens=failed_tokens,
        )
