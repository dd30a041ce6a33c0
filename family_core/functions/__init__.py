from .auth import IdTokenVerifier, TriggerVerifier
from .errors import CallableError, FunctionsErrorCode
from .membership import MembershipGuard
from .schemas import AuthContext, CallableRequest
from .service import CallableService

__all__ = [
    "IdTokenVerifier",
    "TriggerVerifier",
    "CallableError",
    "FunctionsErrorCode",
    "MembershipGuard",
    "AuthContext",
    "CallableRequest",
    "CallableService",
]
