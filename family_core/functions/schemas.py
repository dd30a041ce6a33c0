from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class AuthContext:
    """Verified identity of a caller."""
    uid: str
    claims: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CallableRequest:
    """A callable invocation: the client payload plus the verified caller, if any."""
    data: Any = None
    auth: Optional[AuthContext] = None

    @property
    def uid(self) -> Optional[str]:
        return self.auth.uid if self.auth else None
