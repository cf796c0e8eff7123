from datetime import datetime, timedelta

import pytest

from order_assistant.agent import OrderingAssistant
from order_assistant.config.settings import AssistantSettings
from order_assistant.models.default_menu import DEFAULT_MENU
from order_assistant.models.order_models import Cart, ConversationContext, ConversationStep
from order_assistant.services.menu_service import MenuService


class FakeClock:
    """Callable clock that only moves when a test advances it"""

    def __init__(self, start: datetime = datetime(2024, 5, 10, 13, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeBackend:
    """Stands in for LlmClient: returns queued replies or raises queued errors"""

    def __init__(self, replies=None, available=True):
        self.replies = list(replies or [])
        self.available = available
        self.calls = []

    def is_available(self) -> bool:
        return self.available

    async def complete(self, system_prompt, messages, max_tokens=None, temperature=None):
        self.calls.append({"system_prompt": system_prompt, "messages": messages})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return AssistantSettings.offline(max_messages_per_session=100)


@pytest.fixture
def menu_service():
    return MenuService(DEFAULT_MENU, currency_symbol="RD$")


@pytest.fixture
def context(clock):
    return ConversationContext(
        session_id="s1",
        current_step=ConversationStep.BROWSING,
        last_activity=clock(),
        cart=Cart(session_id="s1"),
    )


@pytest.fixture
def assistant(settings, clock):
    return OrderingAssistant(settings=settings, clock=clock)
