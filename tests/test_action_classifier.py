import pytest

from order_assistant.models.order_models import ActionTag, ConversationStep
from order_assistant.services.action_classifier import classify, match_rule


@pytest.mark.parametrize("text,expected", [
    ("Aquí tienes nuestro MENÚ del día", ActionTag.GET_MENU),
    ("Estos son los platos disponibles", ActionTag.GET_MENU),
    ("¿Quieres añadir un jugo?", ActionTag.ADD_TO_CART),
    ("Tu carrito tiene 2 items", ActionTag.GET_CART_SUMMARY),
    ("¡Buen provecho!", None),
    ("", None),
])
def test_classify(text, expected):
    assert classify(text) == expected


def test_menu_wins_over_add():
    assert classify("Puedo añadir algo del menú") == ActionTag.GET_MENU


def test_add_wins_over_cart():
    assert classify("Voy a agregar eso a tu carrito") == ActionTag.ADD_TO_CART


def test_rule_carries_next_step():
    assert match_rule("resumen de tu pedido").next_step == ConversationStep.CONFIRMING
    assert match_rule("quiero").next_step == ConversationStep.ORDERING


def test_recommendation_replies():
    rule = match_rule("Te recomiendo el Pollo Guisado, ¿quieres añadirlo?")
    assert rule.action == ActionTag.GET_RECOMMENDATIONS
    assert rule.next_step == ConversationStep.BROWSING
    assert classify("Mis recomendaciones del menú de hoy") == ActionTag.GET_MENU
