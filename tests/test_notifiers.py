"""
Tests for the document-change notifiers and the trigger router.
"""

import logging
from unittest.mock import patch

import pytest

from family_core.datastore.firestore.exceptions import DatastoreError
from family_core.messaging.base import MAX_MULTICAST_TOKENS
from family_core.notifiers import DocumentEvent, build_router


def created(document, after):
    return DocumentEvent(document=document, eventType="created", after=after)


def updated(document, before, after):
    return DocumentEvent(document=document, eventType="updated", before=before, after=after)


class TestTriggerRouter:
    @pytest.mark.asyncio
    async def test_dispatches_with_params(self, notifications, messenger):
        router = build_router(notifications)
        event = created("families/family123/tasks/t9", {"title": "Laundry", "assignedTo": "aupair1"})

        pattern = await router.dispatch(event)

        assert pattern == "families/{familyId}/tasks/{taskId}"
        notification, token = messenger.sent[0]
        assert token == "token-aupair1"
        assert notification.data["taskId"] == "t9"

    @pytest.mark.asyncio
    async def test_event_type_must_match(self, notifications, messenger):
        router = build_router(notifications)
        event = updated("families/family123/tasks/t9", {}, {"title": "Laundry", "assignedTo": "aupair1"})

        assert await router.dispatch(event) is None
        assert messenger.sent == []

    @pytest.mark.asyncio
    async def test_unknown_path(self, notifications):
        router = build_router(notifications)
        assert await router.dispatch(created("families/family123/tasks/t9/comments/c1", {})) is None

    def test_registered_triggers(self, notifications):
        assert build_router(notifications).patterns == [
            ("users/{userId}", "created"),
            ("families/{familyId}/shopping/{itemId}", "updated"),
            ("families/{familyId}/shoppingLists/{listId}", "updated"),
            ("families/{familyId}/tasks/{taskId}", "created"),
            ("families/{familyId}/calendar/{eventId}", "updated"),
        ]


class TestOnUserCreate:
    @pytest.mark.asyncio
    async def test_creates_family_and_links_user(self, notifications, datastore):
        datastore.set_document("users/new1", {"name": "Maria Garcia Lopez", "email": "maria@example.com"})

        family_id = await notifications.on_user_create(created("users/new1", datastore.get_user("new1")).model_copy(
            update={"params": {"userId": "new1"}}
        ))

        family = datastore.get_family(family_id)
        assert family["name"] == "The Lopez Family"
        assert family["memberUids"] == ["new1"]
        assert family["settings"] == {"language": "en", "timezone": "UTC", "notifications": True}
        user = datastore.get_user("new1")
        assert user["familyId"] == family_id
        assert user["role"] == "parent"
        assert "joinedAt" in user

    @pytest.mark.asyncio
    async def test_redelivery_creates_one_family(self, notifications, datastore):
        datastore.set_document("users/new1", {"name": "Maria"})
        router = build_router(notifications)
        event = created("users/new1", {"name": "Maria"})

        await router.dispatch(event)
        await router.dispatch(event)

        assert len(datastore._children("families")) == 2

    @pytest.mark.asyncio
    async def test_nameless_user(self, notifications, datastore):
        datastore.set_document("users/new2", {})
        family_id = await notifications.on_user_create(
            created("users/new2", {"email": "x@example.com"}).model_copy(update={"params": {"userId": "new2"}})
        )
        assert datastore.get_family(family_id)["name"] == "The Family Family"

    @pytest.mark.asyncio
    async def test_user_with_family_is_left_alone(self, notifications, datastore):
        router = build_router(notifications)
        await router.dispatch(created("users/parent1", datastore.get_user("parent1")))
        assert len(datastore._children("families")) == 1

    @pytest.mark.asyncio
    async def test_datastore_failure_is_logged(self, notifications, datastore, caplog):
        datastore.set_document("users/new1", {"name": "Maria"})
        with patch.object(datastore, "create_family_for_user", side_effect=DatastoreError("down")):
            with caplog.at_level(logging.ERROR, logger="family_core.tests"):
                await build_router(notifications).dispatch(created("users/new1", {"name": "Maria"}))
        assert "Failed to create family for user new1" in caplog.text


class TestShoppingNotifiers:
    @pytest.mark.asyncio
    async def test_purchase_notifies_parents_only(self, notifications, messenger):
        event = updated(
            "families/family123/shopping/item7",
            {"name": "Milk", "isPurchased": False},
            {"name": "Milk", "isPurchased": True},
        )
        await build_router(notifications).dispatch(event)

        notification, tokens = messenger.multicasts[0]
        assert sorted(tokens) == ["token-parent1", "token-parent2"]
        assert notification.title == "Shopping Item Purchased"
        assert notification.body == "Milk has been purchased and needs approval"
        assert notification.data == {"type": "shopping_approval", "familyId": "family123", "itemId": "item7"}

    @pytest.mark.asyncio
    async def test_already_purchased_is_ignored(self, notifications, messenger):
        event = updated(
            "families/family123/shopping/item7",
            {"name": "Milk", "purchased": True},
            {"name": "Milk", "purchased": True, "quantity": 3},
        )
        await build_router(notifications).dispatch(event)
        assert messenger.multicasts == []

    @pytest.mark.asyncio
    async def test_parents_without_tokens_are_skipped(self, notifications, messenger, datastore):
        datastore.update_user_profile("parent1", {"fcmToken": None})
        datastore.update_user_profile("parent2", {"fcmToken": ""})

        event = updated("families/family123/shopping/item7", {"purchased": False}, {"name": "Milk", "purchased": True})
        await build_router(notifications).dispatch(event)

        assert messenger.multicasts == []

    @pytest.mark.asyncio
    async def test_list_update_notifies_each_newly_purchased_item(self, notifications, messenger):
        before = {"items": {
            "a": {"name": "Milk", "purchased": False},
            "b": {"name": "Bread", "purchased": True},
            "c": {"name": "Eggs", "purchased": False},
        }}
        after = {"items": {
            "a": {"name": "Milk", "purchased": True},
            "b": {"name": "Bread", "purchased": True},
            "c": {"name": "Eggs", "purchased": False},
            "d": {"name": "Jam", "purchased": True},
        }}
        await build_router(notifications).dispatch(updated("families/family123/shoppingLists/list1", before, after))

        item_ids = sorted(notification.data["itemId"] for notification, _ in messenger.multicasts)
        assert item_ids == ["a", "d"]

    @pytest.mark.asyncio
    async def test_gateway_failure_is_swallowed(self, notifications, messenger, caplog):
        messenger.fail = True
        event = updated("families/family123/shopping/item7", {"purchased": False}, {"name": "Milk", "purchased": True})

        with caplog.at_level(logging.ERROR, logger="family_core.tests"):
            await build_router(notifications).dispatch(event)

        assert "familyId=family123" in caplog.text
        assert "refId=item7" in caplog.text

    @pytest.mark.asyncio
    async def test_recipient_lookup_failure_skips_recipient(self, notifications, messenger, datastore):
        original = datastore.get_user

        def flaky_get_user(user_id):
            if user_id == "parent2":
                raise DatastoreError("timeout")
            return original(user_id)

        with patch.object(datastore, "get_user", side_effect=flaky_get_user):
            event = updated("families/family123/shopping/item7", {"purchased": False}, {"name": "Milk", "purchased": True})
            await build_router(notifications).dispatch(event)

        assert messenger.multicast_tokens == ["token-parent1"]


class TestOnTaskAssign:
    @pytest.mark.asyncio
    async def test_notifies_assignee(self, notifications, messenger):
        await build_router(notifications).dispatch(
            created("families/family123/tasks/t1", {"title": "Laundry", "assignedTo": "aupair1"})
        )

        notification, token = messenger.sent[0]
        assert token == "token-aupair1"
        assert notification.title == "New Task Assigned"
        assert notification.body == "You have been assigned: Laundry"
        assert notification.data == {"type": "task_assignment", "familyId": "family123", "taskId": "t1"}

    @pytest.mark.asyncio
    async def test_unassigned_task(self, notifications, messenger):
        await build_router(notifications).dispatch(created("families/family123/tasks/t1", {"title": "Laundry"}))
        assert messenger.sent == []

    @pytest.mark.asyncio
    async def test_assignee_without_token(self, notifications, messenger):
        await build_router(notifications).dispatch(
            created("families/family123/tasks/t1", {"title": "Laundry", "assignedTo": "ghost"})
        )
        assert messenger.sent == []

    @pytest.mark.asyncio
    async def test_gateway_failure_is_swallowed(self, notifications, messenger):
        messenger.fail = True
        await build_router(notifications).dispatch(
            created("families/family123/tasks/t1", {"title": "Laundry", "assignedTo": "aupair1"})
        )
        assert messenger.sent == []


class TestOnCalendarChange:
    BEFORE = {"title": "Swim class", "datetime": "2024-12-25T10:00:00Z", "assignedTo": ["parent1", "aupair1"]}

    @pytest.mark.asyncio
    async def test_time_change_notifies_assignees(self, notifications, messenger):
        after = {**self.BEFORE, "datetime": "2024-12-25T11:00:00Z"}
        await build_router(notifications).dispatch(updated("families/family123/calendar/e1", self.BEFORE, after))

        notification, tokens = messenger.multicasts[0]
        assert sorted(tokens) == ["token-aupair1", "token-parent1"]
        assert notification.title == "Calendar Event Updated"
        assert notification.body == "\"Swim class\" has been updated"
        assert notification.data == {"type": "calendar_update", "familyId": "family123", "eventId": "e1"}

    @pytest.mark.asyncio
    async def test_reordered_assignees_are_not_a_change(self, notifications, messenger):
        after = {**self.BEFORE, "assignedTo": ["aupair1", "parent1"], "location": "Pool"}
        await build_router(notifications).dispatch(updated("families/family123/calendar/e1", self.BEFORE, after))
        assert messenger.multicasts == []

    @pytest.mark.asyncio
    async def test_assignee_change(self, notifications, messenger):
        after = {**self.BEFORE, "assignedTo": ["parent2"]}
        await build_router(notifications).dispatch(updated("families/family123/calendar/e1", self.BEFORE, after))
        assert messenger.multicast_tokens == ["token-parent2"]

    @pytest.mark.asyncio
    async def test_same_instant_in_another_format(self, notifications, messenger):
        after = {**self.BEFORE, "datetime": "2024-12-25T11:00:00+01:00"}
        await build_router(notifications).dispatch(updated("families/family123/calendar/e1", self.BEFORE, after))
        assert messenger.multicasts == []


class TestMulticastChunking:
    @pytest.mark.asyncio
    async def test_tokens_are_sent_in_chunks(self, notifications, messenger, datastore):
        member_uids = [f"user{i}" for i in range(MAX_MULTICAST_TOKENS + 20)]
        for uid in member_uids:
            datastore.set_document(f"users/{uid}", {"role": "parent", "fcmToken": f"token-{uid}"})
        datastore.set_document("families/big", {"name": "Big", "memberUids": member_uids})

        event = updated("families/big/shopping/item1", {"purchased": False}, {"name": "Rice", "purchased": True})
        await build_router(notifications).dispatch(event)

        chunk_sizes = sorted(len(tokens) for _, tokens in messenger.multicasts)
        assert chunk_sizes == [20, MAX_MULTICAST_TOKENS]
        assert len(set(messenger.multicast_tokens)) == MAX_MULTICAST_TOKENS + 20
