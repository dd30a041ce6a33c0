"""
'notifiers/router.py': Dispatches document changes to the trigger registered for their path.
"""
import logging
import re
from typing import Any, Awaitable, Callable, List, Optional, Pattern, Tuple

from .schemas import DocumentEvent, DocumentEventType

TriggerHandler = Callable[[DocumentEvent], Awaitable[Any]]

WILDCARD = re.compile(r"\{(\w+)\}")


def compile_pattern(pattern: str) -> Pattern:
    """Turn "families/{familyId}/tasks/{taskId}" into a regex with one named group per wildcard."""
    parts = []
    position = 0
    for match in WILDCARD.finditer(pattern):
        parts.append(re.escape(pattern[position:match.start()]))
        parts.append(f"(?P<{match.group(1)}>[^/]+)")
        position = match.end()
    parts.append(re.escape(pattern[position:]))
    return re.compile("".join(parts))


class TriggerRouter:
    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._routes: List[Tuple[str, Pattern, DocumentEventType, TriggerHandler]] = []

    def register(self, pattern: str, event_type: DocumentEventType, handler: TriggerHandler) -> None:
        self._routes.append((pattern, compile_pattern(pattern), DocumentEventType(event_type), handler))

    @property
    def patterns(self) -> List[Tuple[str, str]]:
        return [(pattern, event_type.value) for pattern, _, event_type, _ in self._routes]

    async def dispatch(self, event: DocumentEvent) -> Optional[str]:
        """
        Run the handler registered for the event's document path and type.

        Returns:
            Optional[str]: The matched pattern, or None when no trigger applies.
        """
        document = event.document.strip("/")
        for pattern, regex, event_type, handler in self._routes:
            if event_type != event.event_type:
                continue
            match = regex.fullmatch(document)
            if match is None:
                continue
            routed = event.model_copy(update={"document": document, "params": match.groupdict()})
            self.logger.debug(f"[dispatch] {event.event_type.value} {document} -> {pattern}")
            await handler(routed)
            return pattern

        self.logger.debug(f"[dispatch] No trigger for {event.event_type.value} {document}")
        return None
