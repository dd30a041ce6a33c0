from abc import ABC, abstractmethod
from typing import List

from .schemas import MulticastResult, PushNotification

# Cloud Messaging rejects multicast requests above this many tokens
MAX_MULTICAST_TOKENS = 500


class BaseMessenger(ABC):
    """Push-messaging gateway used by the notifiers."""

    @abstractmethod
    def send(self, notification: PushNotification, token: str) -> str:
        """
        Deliver a notification to a single device.

        Args:
            notification (PushNotification): Payload to deliver.
            token (str): Registered push token of the recipient.

        Returns:
            str: The gateway message ID.

        Raises:
            MessagingError: If the gateway rejects or fails the request.
        """
        pass

    @abstractmethod
    def send_multicast(self, notification: PushNotification, tokens: List[str]) -> MulticastResult:
        """
        Deliver a notification to up to `MAX_MULTICAST_TOKENS` devices.

        Each token is an independent delivery: a failed token is reported in the
        result, it does not prevent delivery to the others.

        Args:
            notification (PushNotification): Payload to deliver.
            tokens (List[str]): Registered push tokens.

        Returns:
            MulticastResult: Per-batch success and failure counts.

        Raises:
            MessagingError: If the whole request fails.
        """
        pass
