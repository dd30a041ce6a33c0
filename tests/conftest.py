"""
Pytest configuration for the FamilySync tests.

Provides an in-memory datastore seeded with one family and a recording
messenger, so handlers run end to end without Firebase.
"""

import logging
from typing import List

import pytest

from family_core.datastore.memory.service import InMemoryDatastore
from family_core.functions import AuthContext, CallableRequest, CallableService
from family_core.messaging.base import BaseMessenger
from family_core.messaging.exceptions import MessagingError
from family_core.messaging.schemas import MulticastResult, PushNotification
from family_core.notifiers import NotificationService

FAMILY_ID = "family123"


class RecordingMessenger(BaseMessenger):
    """Messenger double that records every delivery instead of contacting FCM."""

    def __init__(self):
        self.sent = []
        self.multicasts = []
        self.fail = False

    def send(self, notification: PushNotification, token: str) -> str:
        if self.fail:
            raise MessagingError("gateway down")
        self.sent.append((notification, token))
        return f"message-{len(self.sent)}"

    def send_multicast(self, notification: PushNotification, tokens: List[str]) -> MulticastResult:
        if self.fail:
            raise MessagingError("gateway down")
        self.multicasts.append((notification, list(tokens)))
        return MulticastResult(success_count=len(tokens))

    @property
    def multicast_tokens(self) -> List[str]:
        return [token for _, tokens in self.multicasts for token in tokens]


@pytest.fixture
def logger():
    return logging.getLogger("family_core.tests")


@pytest.fixture
def datastore():
    return InMemoryDatastore({
        "users/parent1": {
            "name": "Jane Doe",
            "email": "jane@example.com",
            "role": "parent",
            "familyId": FAMILY_ID,
            "fcmToken": "token-parent1",
        },
        # signup documents of older clients carry a capitalised role
        "users/parent2": {
            "name": "John Doe",
            "email": "john@example.com",
            "role": "Parent",
            "familyId": FAMILY_ID,
            "fcmToken": "token-parent2",
        },
        "users/aupair1": {
            "name": "Ana Lopez",
            "email": "ana@example.com",
            "role": "aupair",
            "familyId": FAMILY_ID,
            "fcmToken": "token-aupair1",
        },
        "users/outsider": {
            "name": "Olga Stranger",
            "email": "olga@example.com",
            "role": "parent",
            "familyId": "other-family",
            "fcmToken": "token-outsider",
        },
        f"families/{FAMILY_ID}": {
            "name": "The Doe Family",
            "memberUids": ["parent1", "parent2", "aupair1"],
        },
        f"families/{FAMILY_ID}/shoppingLists/list1": {
            "name": "Weekly groceries",
            "items": {},
        },
        f"families/{FAMILY_ID}/tasks/task1": {
            "title": "Pick up kids",
            "familyId": FAMILY_ID,
            "assignedTo": "aupair1",
            "priority": "high",
            "completed": False,
        },
    })


@pytest.fixture
def messenger():
    return RecordingMessenger()


@pytest.fixture
def callables(datastore, logger):
    return CallableService(datastore, logger=logger)


@pytest.fixture
def notifications(datastore, messenger, logger):
    return NotificationService(datastore, messenger, logger=logger)


@pytest.fixture
def as_user():
    """Build a callable request made by the given user (None for an anonymous caller)."""

    def _request(uid, data):
        return CallableRequest(data=data, auth=AuthContext(uid=uid) if uid else None)

    return _request
