from .config import (
    USERS_COLLECTION,
    FAMILIES_COLLECTION,
    CHILDREN_COLLECTION,
    TASKS_COLLECTION,
    CALENDAR_COLLECTION,
    SHOPPING_LISTS_COLLECTION,
    NOTES_COLLECTION,
)

from google.cloud.firestore_v1 import Client as FirestoreClient, CollectionReference, DocumentReference


def user_path(client: FirestoreClient, user_id: str) -> DocumentReference:
    return client.collection(USERS_COLLECTION).document(user_id)


def family_path(client: FirestoreClient, family_id: str) -> DocumentReference:
    return client.collection(FAMILIES_COLLECTION).document(family_id)


def families_collection(client: FirestoreClient) -> CollectionReference:
    return client.collection(FAMILIES_COLLECTION)


def children_collection(client: FirestoreClient) -> CollectionReference:
    return client.collection(CHILDREN_COLLECTION)


def family_subcollection(client: FirestoreClient, family_id: str, collection_id: str) -> CollectionReference:
    return client.collection(FAMILIES_COLLECTION).document(family_id).collection(collection_id)


def tasks_collection(client: FirestoreClient, family_id: str) -> CollectionReference:
    return family_subcollection(client, family_id, TASKS_COLLECTION)


def calendar_collection(client: FirestoreClient, family_id: str) -> CollectionReference:
    return family_subcollection(client, family_id, CALENDAR_COLLECTION)


def notes_collection(client: FirestoreClient, family_id: str) -> CollectionReference:
    return family_subcollection(client, family_id, NOTES_COLLECTION)


def shopping_list_path(client: FirestoreClient, family_id: str, list_id: str) -> DocumentReference:
    return family_subcollection(client, family_id, SHOPPING_LISTS_COLLECTION).document(list_id)
