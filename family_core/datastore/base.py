from abc import ABC, abstractmethod
from typing import Dict, Any, List, Optional


class BaseDatastore(ABC):
    """
    Document-store operations used by the FamilySync handlers.

    Implementations stamp server-side timestamps (`createdAt`/`updatedAt`) themselves;
    callers never pass them. Missing documents on update raise
    `google.api_core.exceptions.NotFound`; other failures raise `DatastoreError`.
    """

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        """
        Retrieve a user document.

        Args:
            user_id (str): ID of the user.

        Returns:
            Optional[Dict[str, Any]]: The document data (with `id`), or None if it does not exist.
        """
        pass

    @abstractmethod
    def get_family(self, family_id: str) -> Optional[Dict[str, Any]]:
        """
        Retrieve a family document.

        Args:
            family_id (str): ID of the family.

        Returns:
            Optional[Dict[str, Any]]: The document data (with `id`), or None if it does not exist.
        """
        pass

    @abstractmethod
    def update_user_profile(self, user_id: str, fields: Dict[str, Any]) -> None:
        """
        Update fields of an existing user document and stamp `updatedAt`.

        Args:
            user_id (str): ID of the user.
            fields (Dict[str, Any]): Fields to overwrite.
        """
        pass

    @abstractmethod
    def add_child(self, data: Dict[str, Any]) -> str:
        """
        Create a child document.

        Args:
            data (Dict[str, Any]): Child profile data.

        Returns:
            str: The new child ID.
        """
        pass

    @abstractmethod
    def add_task(self, family_id: str, data: Dict[str, Any]) -> str:
        """
        Create a task under the family.

        Args:
            family_id (str): ID of the owning family.
            data (Dict[str, Any]): Task data.

        Returns:
            str: The new task ID.
        """
        pass

    @abstractmethod
    def complete_task(self, family_id: str, task_id: str, user_id: str, notes: str = "") -> Dict[str, Any]:
        """
        Mark a task completed, atomically and only once.

        Completing an already completed task leaves `completedBy`/`completedAt` untouched.

        Args:
            family_id (str): ID of the owning family.
            task_id (str): ID of the task.
            user_id (str): ID of the completing user.
            notes (str): Optional completion notes.

        Returns:
            Dict[str, Any]: The task data after the operation.
        """
        pass

    @abstractmethod
    def add_calendar_event(self, family_id: str, data: Dict[str, Any]) -> str:
        """
        Create a calendar event under the family.

        Args:
            family_id (str): ID of the owning family.
            data (Dict[str, Any]): Event data.

        Returns:
            str: The new event ID.
        """
        pass

    @abstractmethod
    def list_calendar_events(self, family_id: str) -> List[Dict[str, Any]]:
        """
        Retrieve every calendar event of a family.

        Args:
            family_id (str): ID of the family.

        Returns:
            List[Dict[str, Any]]: Event documents, each including its `id`.
        """
        pass

    @abstractmethod
    def add_shopping_item(self, family_id: str, list_id: str, item: Dict[str, Any]) -> str:
        """
        Add an item to the `items` map of an existing shopping list, stamping `addedAt`.

        Args:
            family_id (str): ID of the owning family.
            list_id (str): ID of the shopping list.
            item (Dict[str, Any]): Item data.

        Returns:
            str: The generated item ID (key in the `items` map).
        """
        pass

    @abstractmethod
    def create_family_for_user(self, user_id: str, family: Dict[str, Any], role: str) -> Optional[str]:
        """
        Create a family for a user and link the user to it in one atomic step.

        Does nothing when the user document is gone or already carries a `familyId`,
        so repeated deliveries of the signup event create at most one family.

        Args:
            user_id (str): ID of the founding user.
            family (Dict[str, Any]): Family document data.
            role (str): Role assigned to the founding user.

        Returns:
            Optional[str]: The new family ID, or None when nothing was written.
        """
        pass

    @abstractmethod
    def list_notes(self, family_id: str) -> List[Dict[str, Any]]:
        """
        Retrieve the family's notes, newest first.

        Args:
            family_id (str): ID of the family.

        Returns:
            List[Dict[str, Any]]: Note documents, each including its `id`.
        """
        pass

    @abstractmethod
    def add_note(self, family_id: str, data: Dict[str, Any]) -> str:
        """
        Create a note under the family.

        Args:
            family_id (str): ID of the owning family.
            data (Dict[str, Any]): Note data.

        Returns:
            str: The new note ID.
        """
        pass

    @abstractmethod
    def update_note(
        self,
        family_id: str,
        note_id: str,
        fields: Optional[Dict[str, Any]] = None,
        array_union: Optional[Dict[str, List[Any]]] = None,
        array_remove: Optional[Dict[str, List[Any]]] = None,
    ) -> None:
        """
        Update an existing note.

        Args:
            family_id (str): ID of the owning family.
            note_id (str): ID of the note.
            fields (Optional[Dict[str, Any]]): Fields to overwrite.
            array_union (Optional[Dict[str, List[Any]]]): Values to add to array fields (no duplicates).
            array_remove (Optional[Dict[str, List[Any]]]): Values to remove from array fields.
        """
        pass

    @abstractmethod
    def delete_note(self, family_id: str, note_id: str) -> None:
        """
        Delete a note.

        Args:
            family_id (str): ID of the owning family.
            note_id (str): ID of the note.
        """
        pass
