from .base import BaseDatastore
from .firestore.exceptions import DatastoreError
from .registry import get_datastore

__all__ = ["BaseDatastore", "DatastoreError", "get_datastore"]
