import pytest

from order_assistant.errors import BackendError
from order_assistant.models.order_models import ActionTag, ConversationStep
from order_assistant.services.fallback_service import FallbackGenerator
from order_assistant.services.response_engine import ResponseEngine

from conftest import FakeBackend


def _engine(menu_service, clock, backend=None):
    fallback = FallbackGenerator(menu_service, clock=clock)
    return ResponseEngine(menu_service, fallback, backend=backend, clock=clock,
                          restaurant_name="Delicia", assistant_name="Clara")


async def test_backend_reply_is_classified(menu_service, clock, context):
    backend = FakeBackend(["¡Claro! Te voy a añadir dos jugos."])
    response = await _engine(menu_service, clock, backend).respond("dos jugos", context)

    assert response.source == "backend"
    assert response.text == "¡Claro! Te voy a añadir dos jugos."
    assert response.action == ActionTag.ADD_TO_CART
    assert response.context_patch == {"current_step": ConversationStep.ORDERING}

    call = backend.calls[0]
    assert call["messages"] == [{"role": "user", "content": "dos jugos"}]
    assert "Delicia" in call["system_prompt"]
    assert "Paso de conversación: browsing" in call["system_prompt"]


async def test_unclassified_backend_reply_has_no_patch(menu_service, clock, context):
    response = await _engine(menu_service, clock, FakeBackend(["¡Buen provecho!"])).respond("gracias", context)
    assert response.action is None
    assert response.context_patch == {}


@pytest.mark.parametrize("error", [
    BackendError("timeout", retryable=True),
    BackendError("Rate limited by backend", status=429),
    BackendError("Malformed backend response"),
])
async def test_backend_failure_falls_back(menu_service, clock, context, error):
    response = await _engine(menu_service, clock, FakeBackend([error])).respond("Quiero pollo", context)
    assert response.source == "fallback"
    assert "tenemos de pollo" in response.text


async def test_unavailable_backend_is_not_called(menu_service, clock, context):
    backend = FakeBackend(["nunca"], available=False)
    response = await _engine(menu_service, clock, backend).respond("gracias", context)
    assert response.source == "fallback"
    assert backend.calls == []


async def test_no_backend_uses_templates(menu_service, clock, context):
    engine = _engine(menu_service, clock)
    assert not engine.backend_available()
    response = await engine.respond("menu", context)
    assert response.action == ActionTag.GET_MENU


def test_system_prompt_lists_catalog_and_cart(menu_service, clock, context):
    prompt = _engine(menu_service, clock).build_system_prompt(context)
    assert "Eres Clara" in prompt
    assert "1. Pollo Guisado - RD$350" in prompt
    assert "add_to_cart" in prompt
    assert "Hora del día: afternoon" in prompt
    assert "Total del carrito: RD$0" in prompt
