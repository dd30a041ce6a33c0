from .router import TriggerRouter
from .schemas import DocumentEvent, DocumentEventType
from .service import NotificationService, build_router

__all__ = ["TriggerRouter", "DocumentEvent", "DocumentEventType", "NotificationService", "build_router"]
