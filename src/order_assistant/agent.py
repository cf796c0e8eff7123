"""
Ordering assistant: wires the stores, the response engine and the tools
behind the call surface used by the host
"""
import asyncio
import logging
import weakref
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from order_assistant.config.settings import AssistantSettings
from order_assistant.errors import AssistantError
from order_assistant.models.default_menu import DEFAULT_MENU
from order_assistant.models.order_models import (
    ActionTag,
    AssistantReply,
    ChatMessage,
    ConversationContext,
    ConversationHistory,
    MenuItem,
    MessageRole,
    MessageSummary,
    ToolResult,
)
from order_assistant.services.context_store import SessionContextStore, apply_patch
from order_assistant.services.fallback_service import FallbackGenerator
from order_assistant.services.history_service import ConversationHistoryStore
from order_assistant.services.llm_client import LlmClient
from order_assistant.services.menu_service import MenuService
from order_assistant.services.response_engine import ResponseEngine
from order_assistant.services.sweeper import SweepScheduler
from order_assistant.services.utility_service import UtilityService
from order_assistant.tools.menu_tools import MenuTools
from order_assistant.tools.order_completion_tools import OrderCompletionTools
from order_assistant.tools.order_tools import OrderTools

logger = logging.getLogger(__name__)


class SessionLocks:
    """One asyncio.Lock per session id, dropped once nobody holds a reference"""

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def get(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock


class OrderingAssistant:
    def __init__(self, settings: Optional[AssistantSettings] = None,
                 menu_items: Optional[Iterable[MenuItem]] = None,
                 backend: Optional[LlmClient] = None,
                 clock: Callable[[], datetime] = datetime.now):
        self.settings = settings or AssistantSettings.from_env()
        self.settings.validate()
        self._clock = clock

        self.menu_service = MenuService(menu_items if menu_items is not None else DEFAULT_MENU,
                                        currency_symbol=self.settings.currency_symbol)
        self.contexts = SessionContextStore(clock=clock)
        self.history = ConversationHistoryStore(self.settings.max_messages_per_session, clock=clock)

        if backend is None and self.settings.llm_provider != "none":
            backend = LlmClient(self.settings)
        self.engine = ResponseEngine(
            self.menu_service,
            FallbackGenerator(self.menu_service, clock=clock,
                              restaurant_name=self.settings.restaurant_name,
                              assistant_name=self.settings.assistant_name),
            backend=backend,
            clock=clock,
            restaurant_name=self.settings.restaurant_name,
            assistant_name=self.settings.assistant_name,
        )

        # Initialize tools
        self.menu_tools = MenuTools(self.menu_service)
        self.order_tools = OrderTools(self.menu_service)
        self.completion_tools = OrderCompletionTools(self.settings.currency_symbol,
                                                     restaurant_name=self.settings.restaurant_name,
                                                     clock=clock)

        self.sweeper = SweepScheduler(
            self.reap_contexts,
            self.sweep_history,
            reap_interval_hours=self.settings.context_reap_interval_hours,
            sweep_interval_hours=self.settings.history_sweep_interval_hours,
        )
        self._locks = SessionLocks()

    async def handle(self, message: str, session_id: Optional[str] = None,
                     user_id: Optional[str] = None) -> AssistantReply:
        """Process one customer message and return the reply for the host"""
        if not message or not message.strip():
            raise AssistantError("El mensaje no puede estar vacío.")

        session_id = session_id or UtilityService.generate_session_id()
        async with self._locks.get(session_id):
            try:
                return await self._process_message(message, session_id, user_id)
            except Exception as e:
                logger.exception(f"Error processing message for session {session_id}")
                raise AssistantError() from e

    async def _process_message(self, message: str, session_id: str, user_id: Optional[str]) -> AssistantReply:
        # Work on a copy and write everything back at the end, so a failure
        # half-way leaves the session exactly as it was.
        working = self._working_context(session_id, user_id)
        working.last_activity = self._clock()
        before = working.snapshot()
        user_message = ChatMessage(MessageRole.USER, message, session_id, timestamp=self._clock())

        response = await self.engine.respond(message, working)
        apply_patch(working, response.context_patch)
        working.last_activity = self._clock()

        assistant_message = ChatMessage(
            MessageRole.ASSISTANT,
            response.text,
            session_id,
            timestamp=self._clock(),
            action=response.action.value if response.action else None,
            metadata={"source": response.source, "context": working.to_dict()},
        )

        self.contexts.put(working)
        self.history.add_message(session_id, user_message, before)
        self.history.add_message(session_id, assistant_message, working)
        logger.debug(f"Session {session_id} -> {working.current_step.value} ({response.source})")

        return AssistantReply(
            message=response.text,
            session_id=session_id,
            current_step=working.current_step,
            cart=working.cart,
            action=response.action,
            data=response.data,
        )

    def _working_context(self, session_id: str, user_id: Optional[str] = None) -> ConversationContext:
        stored = self.contexts.get(session_id)
        if stored is None:
            return self.contexts.build(session_id, user_id)
        working = stored.snapshot()
        if user_id and not working.user_id:
            working.user_id = user_id
        return working

    async def _run_cart_tool(self, session_id: str, action: str,
                             tool: Callable[[ConversationContext], ToolResult],
                             user_id: Optional[str] = None, mutates: bool = True) -> ToolResult:
        async with self._locks.get(session_id):
            exists = session_id in self.contexts
            working = self._working_context(session_id, user_id)
            result = tool(working)

            if result.is_error or not mutates or (not exists and working.cart.is_empty()):
                return result

            working.last_activity = self._clock()
            self.contexts.put(working)
            self.history.add_message(
                session_id,
                ChatMessage(MessageRole.SYSTEM, result.text, session_id, timestamp=self._clock(), action=action),
                working,
            )
            return result

    # Catalog

    def get_menu(self, category: Optional[str] = None) -> ToolResult:
        return self.menu_tools.get_menu(category)

    def find_item(self, name: str) -> ToolResult:
        return self.menu_tools.find_item(name)

    def get_menu_categories(self) -> List[str]:
        return self.menu_service.get_menu_categories()

    def item_details(self, item_id: int) -> ToolResult:
        return self.menu_tools.get_item_details(item_id)

    # Cart and order

    async def add_to_cart(self, session_id: str, item_id: int, quantity: int = 1,
                          notes: Optional[str] = None, user_id: Optional[str] = None) -> ToolResult:
        return await self._run_cart_tool(
            session_id,
            ActionTag.ADD_TO_CART.value,
            lambda ctx: self.order_tools.add_to_cart(ctx, item_id, quantity, notes),
            user_id=user_id,
        )

    async def update_quantity(self, session_id: str, item_id: int, quantity: int) -> ToolResult:
        return await self._run_cart_tool(
            session_id,
            "update_quantity",
            lambda ctx: self.order_tools.update_quantity(ctx, item_id, quantity),
        )

    async def remove_from_cart(self, session_id: str, item_id: int) -> ToolResult:
        return await self._run_cart_tool(
            session_id,
            ActionTag.REMOVE_FROM_CART.value,
            lambda ctx: self.order_tools.remove_item(ctx, item_id),
        )

    async def cart_summary(self, session_id: str) -> ToolResult:
        return await self._run_cart_tool(
            session_id,
            ActionTag.GET_CART_SUMMARY.value,
            self.order_tools.get_cart_summary,
            mutates=False,
        )

    async def clear_cart(self, session_id: str) -> ToolResult:
        return await self._run_cart_tool(session_id, "clear_cart", self.order_tools.clear_cart)

    async def confirm_order(self, session_id: str) -> ToolResult:
        return await self._run_cart_tool(
            session_id,
            ActionTag.CREATE_ORDER.value,
            self.completion_tools.confirm_order,
        )

    # Read accessors: None or empty for unknown sessions

    def get_context(self, session_id: str) -> Optional[ConversationContext]:
        return self.contexts.get(session_id)

    def get_history(self, session_id: str) -> Optional[ConversationHistory]:
        return self.history.get(session_id)

    def get_recent_messages(self, session_id: str, limit: int = 10) -> List[ChatMessage]:
        return self.history.recent(session_id, limit)

    def get_summary(self, session_id: str) -> Optional[str]:
        return self.history.summary(session_id)

    def get_stats(self, session_id: str) -> Optional[Dict[str, int]]:
        return self.history.stats(session_id)

    def search(self, **criteria) -> List[MessageSummary]:
        return self.history.search(**criteria)

    def export(self, session_id: str) -> Optional[Dict[str, Any]]:
        return self.history.export_session(session_id)

    def global_stats(self) -> Dict[str, Any]:
        return self.history.global_stats()

    def active_sessions(self) -> List[str]:
        return self.history.active_session_ids()

    def delete_session(self, session_id: str) -> bool:
        removed_context = self.contexts.remove(session_id)
        removed_history = self.history.delete_session(session_id)
        return removed_context or removed_history

    # Housekeeping

    def reap_contexts(self) -> int:
        return self.contexts.reap_older_than(self.settings.context_max_age_hours)

    def sweep_history(self) -> int:
        return self.history.sweep_stale(self.settings.history_retention_hours)

    def start_background_sweeps(self):
        self.sweeper.start()

    async def stop_background_sweeps(self):
        await self.sweeper.stop()
