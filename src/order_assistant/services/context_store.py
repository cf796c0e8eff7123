"""
Session context store: one ConversationContext per active session
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from order_assistant.models.order_models import (
    Cart,
    ConversationContext,
    ConversationStep,
    Preferences,
)

logger = logging.getLogger(__name__)

_PATCHABLE_FIELDS = ("current_step", "cart", "user_id", "preferences")


class SessionContextStore:
    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self._contexts: Dict[str, ConversationContext] = {}
        self._clock = clock

    def __len__(self) -> int:
        return len(self._contexts)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._contexts

    def session_ids(self) -> List[str]:
        return list(self._contexts)

    def get(self, session_id: str) -> Optional[ConversationContext]:
        return self._contexts.get(session_id)

    def build(self, session_id: str, user_id: Optional[str] = None) -> ConversationContext:
        """A fresh context for a new session; not inserted until put()"""
        return ConversationContext(
            session_id=session_id,
            user_id=user_id,
            current_step=ConversationStep.GREETING,
            last_activity=self._clock(),
            cart=Cart(session_id=session_id),
            preferences=Preferences(language="es"),
        )

    def get_or_create(self, session_id: str, user_id: Optional[str] = None) -> ConversationContext:
        context = self._contexts.get(session_id)
        if context is None:
            context = self.build(session_id, user_id)
            self._contexts[session_id] = context
            logger.debug(f"Context created for session {session_id}")
        return context

    def put(self, context: ConversationContext):
        self._contexts[context.session_id] = context

    def remove(self, session_id: str) -> bool:
        return self._contexts.pop(session_id, None) is not None

    def patch(self, session_id: str, partial: Dict[str, Any]) -> bool:
        """Shallow-merge known fields into a stored context; no-op for unknown sessions"""
        context = self._contexts.get(session_id)
        if context is None:
            logger.debug(f"Patch ignored for unknown session {session_id}")
            return False

        apply_patch(context, partial)
        context.last_activity = self._clock()
        return True

    def reap_older_than(self, max_age_hours: float) -> int:
        cutoff = self._clock() - timedelta(hours=max_age_hours)
        stale = [sid for sid, ctx in self._contexts.items() if ctx.last_activity < cutoff]
        for session_id in stale:
            self._contexts.pop(session_id, None)

        if stale:
            logger.info(f"Context reap: removed {len(stale)} sessions idle for more than {max_age_hours}h")
        return len(stale)


def apply_patch(context: ConversationContext, partial: Dict[str, Any]):
    """Merge a context patch into a context in place; unknown keys are ignored"""
    for key, value in (partial or {}).items():
        if key not in _PATCHABLE_FIELDS:
            logger.debug(f"Ignoring unknown context field '{key}'")
            continue
        if key == "current_step":
            value = ConversationStep(value)
        setattr(context, key, value)
