"""
'firebase.py': Firebase Admin SDK initialization shared by messaging and token verification.
"""
import logging
import os
from typing import Optional

import firebase_admin
from firebase_admin import credentials

logger = logging.getLogger("family_core.firebase")


def initialize_firebase(credentials_path: Optional[str] = None, project_id: Optional[str] = None) -> firebase_admin.App:
    """
    Return the default Firebase Admin app, initializing it on first use.

    Args:
        credentials_path (Optional[str]): Service-account key; Application Default Credentials when omitted.
        project_id (Optional[str]): Project to bind the app to.

    Returns:
        firebase_admin.App: The default app.

    Raises:
        FileNotFoundError: If `credentials_path` does not exist.
    """
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    if credentials_path:
        if not os.path.exists(credentials_path):
            raise FileNotFoundError(f"Service-account key not found: {credentials_path}")
        credential = credentials.Certificate(credentials_path)
    else:
        credential = credentials.ApplicationDefault()

    options = {"projectId": project_id} if project_id else None
    app = firebase_admin.initialize_app(credential, options)
    logger.info("[initialize_firebase] Firebase Admin SDK initialized")
    return app
