"""
Conversation history store with bounded per-session retention
"""
import logging
import math
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from order_assistant.config.settings import MAX_MESSAGES_PER_SESSION
from order_assistant.models.order_models import (
    ChatMessage,
    ConversationContext,
    ConversationHistory,
    HistoryMetadata,
    MessageRole,
    MessageSummary,
)

logger = logging.getLogger(__name__)

ACTIVE_WINDOW = timedelta(hours=24)
PREVIEW_LENGTH = 100


def round_half_up(value: float) -> int:
    """Round halves up (2.5 -> 3), unlike the banker's rounding of round()"""
    return int(math.floor(value + 0.5))


def _local_naive(moment: Optional[datetime]) -> Optional[datetime]:
    """Stored timestamps are naive local time; bring aware filter bounds onto that clock"""
    if moment is None or moment.tzinfo is None:
        return moment
    return moment.astimezone().replace(tzinfo=None)


def _duration_minutes(history: ConversationHistory) -> int:
    return round_half_up((history.updated_at - history.created_at).total_seconds() / 60)


class ConversationHistoryStore:
    def __init__(self, max_messages_per_session: int = MAX_MESSAGES_PER_SESSION,
                 clock: Callable[[], datetime] = datetime.now):
        if max_messages_per_session < 1:
            raise ValueError("max_messages_per_session must be at least 1")
        self.max_messages_per_session = max_messages_per_session
        self._conversations: Dict[str, ConversationHistory] = {}
        self._clock = clock

    def __len__(self) -> int:
        return len(self._conversations)

    def has_session(self, session_id: str) -> bool:
        return session_id in self._conversations

    def add_message(self, session_id: str, message: ChatMessage, context: ConversationContext):
        now = self._clock()
        history = self._conversations.get(session_id)

        if history is None:
            history = ConversationHistory(
                session_id=session_id,
                user_id=context.user_id,
                context=context.snapshot(),
                created_at=now,
                updated_at=now,
                metadata=HistoryMetadata(total_messages=0, last_activity=now),
            )
            self._conversations[session_id] = history
            logger.debug(f"History created for session {session_id}")

        history.messages.append(message)
        history.context = context.snapshot()
        history.updated_at = now

        if len(history.messages) > self.max_messages_per_session:
            removed = len(history.messages) - self.max_messages_per_session
            del history.messages[:removed]
            logger.debug(f"Dropped {removed} old messages from session {session_id}")

        history.metadata.total_messages = len(history.messages)
        history.metadata.last_activity = now

    def get(self, session_id: str) -> Optional[ConversationHistory]:
        history = self._conversations.get(session_id)
        if history is None:
            logger.debug(f"History not found for session {session_id}")
        return history

    def recent(self, session_id: str, limit: int = 10) -> List[ChatMessage]:
        history = self._conversations.get(session_id)
        if history is None or limit <= 0:
            return []
        return history.messages[-limit:]

    def summary(self, session_id: str) -> Optional[str]:
        """One-line digest of a session, or None when there is nothing to summarize"""
        history = self._conversations.get(session_id)
        if history is None or not history.messages:
            return None

        user_messages = [m for m in history.messages if m.role == MessageRole.USER]
        last_user = user_messages[-1].content if user_messages else ""
        preview = last_user[:PREVIEW_LENGTH] + ("..." if len(last_user) > PREVIEW_LENGTH else "")

        return (
            f"Conversación activa con {len(history.messages)} mensajes. "
            f"Último mensaje del usuario: \"{preview}\". "
            f"Estado actual: {history.context.current_step.value}. "
            f"Items en carrito: {history.context.cart.total_items}."
        )

    def stats(self, session_id: str) -> Optional[Dict[str, int]]:
        history = self._conversations.get(session_id)
        if history is None:
            return None

        user_messages = [m for m in history.messages if m.role == MessageRole.USER]
        assistant_messages = [m for m in history.messages if m.role == MessageRole.ASSISTANT]
        average_length = 0
        if assistant_messages:
            average_length = round_half_up(sum(len(m.content) for m in assistant_messages) / len(assistant_messages))

        return {
            "message_count": len(history.messages),
            "duration_minutes": _duration_minutes(history),
            "user_messages": len(user_messages),
            "assistant_messages": len(assistant_messages),
            "average_response_length": average_length,
        }

    def search(self, user_id: Optional[str] = None, date_from: Optional[datetime] = None,
               date_to: Optional[datetime] = None, min_messages: Optional[int] = None,
               current_step: Optional[str] = None) -> List[MessageSummary]:
        """Summaries of every session matching all given filters, most recent first"""
        step_value = getattr(current_step, "value", current_step)
        date_from, date_to = _local_naive(date_from), _local_naive(date_to)
        results = []

        for session_id, history in self._conversations.items():
            if user_id is not None and history.user_id != user_id:
                continue
            if date_from is not None and history.created_at < date_from:
                continue
            if date_to is not None and history.created_at > date_to:
                continue
            if min_messages is not None and len(history.messages) < min_messages:
                continue
            if step_value is not None and history.context.current_step.value != step_value:
                continue

            last = history.messages[-1].content if history.messages else ""
            results.append(MessageSummary(
                session_id=session_id,
                message_count=len(history.messages),
                last_message=last[:PREVIEW_LENGTH],
                last_activity=history.updated_at,
                current_step=history.context.current_step.value,
                cart_items=history.context.cart.total_items,
            ))

        results.sort(key=lambda s: s.last_activity, reverse=True)
        return results

    def export_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        history = self._conversations.get(session_id)
        if history is None:
            return None

        return {
            "conversation": history,
            "export": {
                "sessionId": session_id,
                "userId": history.user_id,
                "startTime": history.created_at.isoformat(),
                "endTime": history.updated_at.isoformat(),
                "duration": f"{_duration_minutes(history)} minutos",
                "messageCount": len(history.messages),
                "messages": [
                    {
                        "timestamp": m.timestamp.isoformat(),
                        "role": m.role.value,
                        "content": m.content,
                        "action": m.action,
                    }
                    for m in history.messages
                ],
                "finalContext": {
                    "step": history.context.current_step.value,
                    "cartItems": history.context.cart.total_items,
                    "totalAmount": history.context.cart.total_amount,
                },
            },
        }

    def delete_session(self, session_id: str) -> bool:
        deleted = self._conversations.pop(session_id, None) is not None
        if deleted:
            logger.debug(f"History deleted for session {session_id}")
        return deleted

    def sweep_stale(self, retention_hours: float) -> int:
        cutoff = self._clock() - timedelta(hours=retention_hours)
        stale = [sid for sid, h in self._conversations.items() if h.updated_at < cutoff]
        for session_id in stale:
            self._conversations.pop(session_id, None)

        if stale:
            logger.info(f"History sweep: removed {len(stale)} conversations older than {retention_hours}h")
        return len(stale)

    def global_stats(self) -> Dict[str, Any]:
        active_since = self._clock() - ACTIVE_WINDOW
        histories = list(self._conversations.values())

        total_messages = sum(len(h.messages) for h in histories)
        active = sum(1 for h in histories if h.updated_at > active_since)
        step_counts = Counter(h.context.current_step.value for h in histories)

        return {
            "total_conversations": len(histories),
            "active_conversations": active,
            "total_messages": total_messages,
            "average_messages_per_conversation": round_half_up(total_messages / len(histories)) if histories else 0,
            "top_steps": [{"step": step, "count": count} for step, count in step_counts.most_common(5)],
        }

    def active_session_ids(self) -> List[str]:
        active_since = self._clock() - ACTIVE_WINDOW
        return [sid for sid, h in self._conversations.items() if h.updated_at > active_since]
