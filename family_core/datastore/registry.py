"""
'datastore/registry.py': Builds the datastore backend named by the `database` config block.
"""
from typing import Dict, Any, Optional

from .base import BaseDatastore


def get_datastore(backend: Optional[str] = None, config: Optional[Dict[str, Any]] = None, credentials_path: Optional[str] = None) -> BaseDatastore:
    """
    Instantiate a datastore backend.

    Args:
        backend (Optional[str]): "firestore" or "memory"; defaults to `config["type"]`.
        config (Optional[Dict[str, Any]]): The database block of the configuration.
        credentials_path (Optional[str]): Service-account key for Firestore (instead of ADC).

    Returns:
        BaseDatastore: The configured datastore.

    Raises:
        ValueError: If the backend is unknown.
    """
    config = config or {}
    backend = backend or config.get("type", "firestore")

    if backend == "memory":
        from .memory.service import InMemoryDatastore
        return InMemoryDatastore()

    if backend == "firestore":
        from .firestore.service import FirestoreService
        if credentials_path:
            return FirestoreService(credentials_path=credentials_path)
        return FirestoreService(config=config)

    raise ValueError(f"Unknown datastore backend: {backend}")
