"""
functions/auth.py: Resolves the caller identity of a callable request from its Firebase ID token,
and authenticates the platform pushing document-change events.
"""
import hmac
import logging
from typing import Optional

import firebase_admin
from google.auth import exceptions as google_auth_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token
from firebase_admin import auth
from firebase_admin import exceptions as firebase_exceptions

from .schemas import AuthContext

BEARER_PREFIX = "Bearer "


class IdTokenVerifier:
    def __init__(self, app: Optional[firebase_admin.App] = None, logger: Optional[logging.Logger] = None):
        self.app = app
        self.logger = logger or logging.getLogger(__name__)

    def verify(self, authorization: Optional[str]) -> Optional[AuthContext]:
        """
        Verify the `Authorization` header of a request.

        Args:
            authorization (Optional[str]): Header value, expected as "Bearer <idToken>".

        Returns:
            Optional[AuthContext]: The caller identity, or None when the header is
            missing or the token does not verify.
        """
        if not authorization or not authorization.startswith(BEARER_PREFIX):
            return None

        id_token = authorization[len(BEARER_PREFIX):].strip()
        if not id_token:
            return None

        try:
            claims = auth.verify_id_token(id_token, app=self.app)
        except (ValueError, firebase_exceptions.FirebaseError) as e:
            self.logger.warning(f"[verify] Rejected ID token: {e}")
            return None

        return AuthContext(uid=claims["uid"], claims=claims)


class TriggerVerifier:
    """
    Authenticates the caller of the document-trigger route.

    Change events are pushed by the platform with a Google-signed OIDC token
    minted for `audience`; when `service_account` is set the token must also
    belong to that account. A shared `secret` can stand in for local runs and
    for emulators that cannot sign tokens. With neither configured every
    trigger request is rejected.
    """

    def __init__(
        self,
        audience: Optional[str] = None,
        service_account: Optional[str] = None,
        secret: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.audience = audience
        self.service_account = service_account
        self.secret = secret
        self.logger = logger or logging.getLogger(__name__)
        self._transport = google_requests.Request()

    @property
    def configured(self) -> bool:
        return bool(self.audience or self.secret)

    def verify(self, authorization: Optional[str]) -> bool:
        """
        Verify the `Authorization` header of a trigger request.

        Args:
            authorization (Optional[str]): Header value, expected as "Bearer <token>".

        Returns:
            bool: True when the caller presented the shared secret or a valid push token.
        """
        if not authorization or not authorization.startswith(BEARER_PREFIX):
            return False

        token = authorization[len(BEARER_PREFIX):].strip()
        if not token:
            return False

        if self.secret and hmac.compare_digest(token.encode(), self.secret.encode()):
            return True

        if not self.audience:
            self.logger.warning("[verify] Rejected trigger call: no push audience configured")
            return False

        try:
            claims = google_id_token.verify_oauth2_token(token, self._transport, audience=self.audience)
        except (ValueError, google_auth_exceptions.GoogleAuthError) as e:
            self.logger.warning(f"[verify] Rejected trigger token: {e}")
            return False

        if self.service_account and (
            claims.get("email") != self.service_account or not claims.get("email_verified")
        ):
            self.logger.warning(f"[verify] Rejected trigger token issued to {claims.get('email')}")
            return False

        return True
